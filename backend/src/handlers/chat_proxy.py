import base64
import json

from common.config import load_settings
from common.errors import MethodNotAllowed, MalformedRequest
from common.gemini import generate_content

RESPONSE_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*"
}


def _get_method(event):
    # REST API (v1) / Netlify usam httpMethod; HTTP API (v2) usa requestContext
    if not isinstance(event, dict):
        return ""
    method = event.get("httpMethod")
    if not method:
        request_context = event.get("requestContext")
        http_context = request_context.get("http") if isinstance(request_context, dict) else None
        method = http_context.get("method") if isinstance(http_context, dict) else None
    return method.upper() if isinstance(method, str) else ""


def _parse_history(event):
    raw_body = event.get("body") or ""
    if event.get("isBase64Encoded"):
        raw_body = base64.b64decode(raw_body).decode("utf-8")

    # JSONDecodeError sobe direto: a mensagem do parser vai para o cliente
    body = json.loads(raw_body)

    if not isinstance(body, dict) or not isinstance(body.get("history"), list):
        raise MalformedRequest("Request body must be a JSON object with a 'history' array.")
    return body["history"]


def _response(status_code, body):
    return {
        "statusCode": status_code,
        "headers": dict(RESPONSE_HEADERS),
        "body": json.dumps(body)
    }


def _error_response(error):
    """Ponto único de saída para falhas: sempre JSON com 'error' string."""
    status_code = getattr(error, "status_code", 500)
    message = str(error) or type(error).__name__
    print(f"ERRO [{type(error).__name__}]: {message}")
    return _response(status_code, {"error": message})


def lambda_handler(event, context, settings=None, http_session=None, ssm_client=None):
    """
    Proxy seguro para o Gemini: recebe {"history": [...]} e devolve
    {"text": ...} ou {"error": ...}.
    Args:
        settings: ProxySettings opcional (testes). Sem ele, lê do ambiente.
        http_session: sessão compatível com requests opcional (testes).
        ssm_client: cliente SSM opcional, usado só quando a chave vem do SSM.
    """
    try:
        method = _get_method(event)
        print(f"Evento Recebido: {method or 'SEM METODO'}")

        if method != "POST":
            raise MethodNotAllowed()

        history = _parse_history(event)

        # Injeção de Dependência: falha de config acontece antes de qualquer rede
        config = settings if settings else load_settings(ssm_client=ssm_client)

        result = generate_content(history, config, session=http_session)
        if not result.ok:
            return _error_response(result.error)

        return _response(200, result.to_body())

    except Exception as e:
        return _error_response(e)
