import os
import re
import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from common.errors import ConfigurationError

API_KEY_ENV = "GEMINI_API_KEY"
API_KEY_PARAMETER_ENV = "GEMINI_API_KEY_PARAMETER"
MODEL_ENV = "GEMINI_MODEL"
DEFAULT_MODEL = "gemini-2.0-flash"
# Nome vai no path da URL: nada de "/", "?", "#" ou espaços
MODEL_NAME_PATTERN = re.compile(r"[A-Za-z0-9][A-Za-z0-9._-]*")

# --- Padrão Singleton para o cliente SSM (Cold Start Mitigation) ---
_SSM_CLIENT = None


def get_ssm_client():
    global _SSM_CLIENT
    if _SSM_CLIENT is None:
        config = Config(retries={'max_attempts': 3, 'mode': 'standard'})
        _SSM_CLIENT = boto3.client("ssm", config=config)
    return _SSM_CLIENT


class ProxySettings:
    """Configuração somente leitura injetada no handler."""

    def __init__(self, api_key, model=DEFAULT_MODEL):
        if not api_key:
            raise ConfigurationError(
                f"API key not found. Set {API_KEY_ENV} on the server."
            )
        model = model or DEFAULT_MODEL
        if not MODEL_NAME_PATTERN.fullmatch(model):
            raise ConfigurationError(
                f"Invalid model name {model!r} in {MODEL_ENV}."
            )
        self.api_key = api_key
        self.model = model

    def __repr__(self):
        # Nunca expor a chave em logs
        return f"ProxySettings(model={self.model!r}, api_key='***')"


def _read_parameter(name, ssm_client):
    client = ssm_client if ssm_client else get_ssm_client()
    try:
        response = client.get_parameter(Name=name, WithDecryption=True)
    except ClientError as e:
        raise ConfigurationError(
            f"Could not read API key from SSM parameter '{name}': {e}"
        ) from e
    return response.get("Parameter", {}).get("Value")


def load_settings(environ=None, ssm_client=None):
    """
    Resolve a configuração a cada requisição.
    Ordem: GEMINI_API_KEY, depois o parâmetro SSM indicado em
    GEMINI_API_KEY_PARAMETER.
    """
    env = os.environ if environ is None else environ

    api_key = env.get(API_KEY_ENV)
    parameter_name = env.get(API_KEY_PARAMETER_ENV)

    if not api_key and parameter_name:
        api_key = _read_parameter(parameter_name, ssm_client)

    if not api_key:
        raise ConfigurationError(
            f"API key not found. Set {API_KEY_ENV} or "
            f"{API_KEY_PARAMETER_ENV} on the server."
        )

    return ProxySettings(api_key, model=env.get(MODEL_ENV, DEFAULT_MODEL))
