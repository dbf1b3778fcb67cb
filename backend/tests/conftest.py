import json
import pytest
import boto3
import os
from unittest.mock import MagicMock
from moto import mock_aws

from common.config import ProxySettings

TEST_API_KEY = "secret_key_123"
PARAMETER_NAME = "/chat-proxy/test/gemini-api-key"


@pytest.fixture(scope="function")
def aws_credentials():
    """Mocked AWS Credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"


@pytest.fixture(scope="function")
def ssm_client(aws_credentials):
    with mock_aws():
        conn = boto3.client("ssm", region_name="us-east-1")
        conn.put_parameter(
            Name=PARAMETER_NAME,
            Value=TEST_API_KEY,
            Type="SecureString"
        )
        yield conn


@pytest.fixture
def gemini_env(monkeypatch):
    """Ambiente limpo: só a chave do Gemini definida."""
    monkeypatch.setenv("GEMINI_API_KEY", TEST_API_KEY)
    monkeypatch.delenv("GEMINI_API_KEY_PARAMETER", raising=False)
    monkeypatch.delenv("GEMINI_MODEL", raising=False)


@pytest.fixture
def settings():
    return ProxySettings(TEST_API_KEY)


def make_upstream_response(status_code, payload):
    """Simula a resposta do requests: payload None = corpo não-JSON."""
    response = MagicMock()
    response.status_code = status_code
    if payload is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = payload
    return response


def gemini_success(text):
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


@pytest.fixture
def mock_session():
    """Sessão HTTP falsa que responde 'hello' por padrão."""
    session = MagicMock()
    session.post.return_value = make_upstream_response(200, gemini_success("hello"))
    return session


def post_event(body):
    if not isinstance(body, str):
        body = json.dumps(body)
    return {"httpMethod": "POST", "body": body}
