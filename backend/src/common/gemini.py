from urllib.parse import quote

import requests

from common.errors import UpstreamError, EmptyResponseError

GEMINI_URL_TEMPLATE = (
    "https://generativelanguage.googleapis.com/v1beta/models/"
    "{model}:generateContent?key={api_key}"
)

# Singleton para reaproveitar a conexão HTTP entre invocações (Warm Start)
_HTTP_SESSION = None


def get_http_session():
    global _HTTP_SESSION
    if _HTTP_SESSION is None:
        _HTTP_SESSION = requests.Session()
    return _HTTP_SESSION


class UpstreamResult:
    """Exatamente um entre text (sucesso) ou error (ProxyError) está presente."""

    def __init__(self, text=None, error=None):
        if (text is None) == (error is None):
            raise ValueError("UpstreamResult precisa de text OU error")
        self.text = text
        self.error = error

    @classmethod
    def success(cls, text):
        return cls(text=text)

    @classmethod
    def failure(cls, error):
        return cls(error=error)

    @property
    def ok(self):
        return self.error is None

    def to_body(self):
        if self.ok:
            return {"text": self.text}
        return {"error": self.error.message}


def build_url(model, api_key):
    return GEMINI_URL_TEMPLATE.format(model=model, api_key=api_key)


def masked_url(model):
    return build_url(model, "HIDDEN")


def extract_text(response_data):
    """
    Extrai candidates[0].content.parts[0].text.
    Retorna None para qualquer nível ausente ou com tipo inesperado.
    """
    if not isinstance(response_data, dict):
        return None

    candidates = response_data.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None

    content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
    if not isinstance(content, dict):
        return None

    parts = content.get("parts")
    if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
        return None

    text = parts[0].get("text")
    if not isinstance(text, str) or not text:
        return None
    return text


def _parse_body(response):
    # A API pode mandar um erro estruturado mesmo com status != 2xx
    try:
        return response.json()
    except ValueError:
        return {}


def _upstream_error_message(response_data, status_code):
    error = response_data.get("error") if isinstance(response_data, dict) else None
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message:
            return message
    return f"Unknown upstream error (HTTP {status_code})."


def normalize_response(response):
    """Converte a resposta HTTP do Gemini em um UpstreamResult."""
    response_data = _parse_body(response)

    if not 200 <= response.status_code < 300:
        return UpstreamResult.failure(UpstreamError(
            _upstream_error_message(response_data, response.status_code),
            upstream_status=response.status_code
        ))

    text = extract_text(response_data)
    if text is None:
        return UpstreamResult.failure(EmptyResponseError())

    return UpstreamResult.success(text)


def scrub_key(text, api_key):
    """Remove a chave (crua e URL-encoded) de qualquer texto."""
    if not api_key:
        return text
    text = text.replace(api_key, "HIDDEN")
    return text.replace(quote(api_key, safe=""), "HIDDEN")


def generate_content(history, settings, session=None):
    """
    Faz exatamente uma chamada ao generateContent.
    Erros de transporte viram UpstreamError sem a chave na mensagem,
    porque o requests inclui a URL completa (com ?key=) no texto.
    """
    http = session if session else get_http_session()

    print(f"Chamando Gemini: {masked_url(settings.model)}")
    try:
        response = http.post(
            build_url(settings.model, settings.api_key),
            json={"contents": history},
            headers={"Content-Type": "application/json"}
        )
    except requests.RequestException as e:
        raise UpstreamError(
            scrub_key(str(e), settings.api_key) or type(e).__name__
        ) from None
    print(f"Gemini respondeu com status {response.status_code}")

    return normalize_response(response)
