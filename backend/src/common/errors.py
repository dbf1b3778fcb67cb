"""
Taxonomia de erros do proxy.
Cada erro já sabe qual status HTTP deve ser devolvido ao frontend.
"""


class ProxyError(Exception):
    status_code = 500

    def __init__(self, message):
        super(ProxyError, self).__init__(message)
        self.message = message


class MethodNotAllowed(ProxyError):
    status_code = 405

    def __init__(self, message="Method Not Allowed"):
        super(MethodNotAllowed, self).__init__(message)


class MalformedRequest(ProxyError):
    pass


class ConfigurationError(ProxyError):
    pass


class UpstreamError(ProxyError):
    def __init__(self, message, upstream_status=None):
        super(UpstreamError, self).__init__(message)
        self.upstream_status = upstream_status


class EmptyResponseError(ProxyError):
    def __init__(self, message=(
        "The Gemini API returned no content. "
        "The response may have been withheld by safety filtering."
    )):
        super(EmptyResponseError, self).__init__(message)
