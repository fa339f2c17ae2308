# ============================================================================
# FILE: tests/unit/test_llm_client.py
# ============================================================================
"""
Unit tests for the language model client factory and backends
"""

import asyncio
from types import SimpleNamespace

import pytest

from medication_identification.llm.base import BackendType
from medication_identification.llm.client import clear_client_cache, create_client
from medication_identification.llm.ollama_client import OllamaClient
from medication_identification.llm.openai_client import OpenAIClient
from medication_identification.utils.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def fresh_cache():
    clear_client_cache()
    yield
    clear_client_cache()


class FakeResponse:
    def __init__(self, status=200, payload=None, text=""):
        self.status = status
        self._payload = payload or {}
        self._text = text

    async def json(self):
        return self._payload

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        return False


class FakeSession:
    """Stands in for aiohttp.ClientSession"""

    def __init__(self, response):
        self.response = response
        self.closed = False
        self.posts = []

    def post(self, url, json=None, headers=None):
        self.posts.append((url, json))
        return self.response

    def get(self, url):
        return self.response

    async def close(self):
        self.closed = True


def _attach(client: OllamaClient, session: FakeSession):
    client._session = session
    client._session_loop = asyncio.get_running_loop()


# ============================================================================
# FACTORY
# ============================================================================

def test_create_client_selects_backend():
    assert isinstance(create_client({"backend": "openai", "openai_api_key": "k"}), OpenAIClient)
    assert isinstance(create_client({"backend": "ollama"}), OllamaClient)


def test_create_client_caches_by_connection():
    first = create_client({"backend": "ollama", "ollama_model": "llama3.1:8b"})

    assert create_client({"backend": "ollama", "ollama_model": "llama3.1:8b"}) is first
    assert create_client({"backend": "ollama", "ollama_model": "qwen2.5"}) is not first

    clear_client_cache()
    assert create_client({"backend": "ollama", "ollama_model": "llama3.1:8b"}) is not first


def test_unknown_backend_rejected():
    with pytest.raises(ConfigurationError):
        create_client({"backend": "medgemma"})


def test_statistics_start_empty():
    client = create_client({"backend": "openai", "openai_model": "gpt-4o"})

    stats = client.get_statistics()

    assert client.backend_type == BackendType.OPENAI
    assert stats["model"] == "gpt-4o"
    assert stats["inference_count"] == 0
    assert stats["avg_inference_time"] == 0.0


# ============================================================================
# OLLAMA
# ============================================================================

@pytest.mark.asyncio
async def test_ollama_generate_json_mode():
    client = OllamaClient({"ollama_model": "llama3.1:8b"})
    session = FakeSession(FakeResponse(payload={"response": ' {"brand_name": "Advil"} ', "eval_count": 7}))
    _attach(client, session)

    result = await client.generate("identify", json_mode=True)

    assert result["text"] == '{"brand_name": "Advil"}'
    assert result["generated_tokens"] == 7
    url, payload = session.posts[0]
    assert url.endswith("/api/generate")
    assert payload["format"] == "json"
    assert client.get_statistics()["inference_count"] == 1


@pytest.mark.asyncio
async def test_ollama_error_status_raises_runtime_error():
    client = OllamaClient({})
    _attach(client, FakeSession(FakeResponse(status=500, text="model crashed")))

    with pytest.raises(RuntimeError):
        await client.generate("identify")


@pytest.mark.asyncio
async def test_ollama_health_reports_missing_model():
    client = OllamaClient({"ollama_model": "llama3.1:8b"})
    _attach(client, FakeSession(FakeResponse(payload={"models": [{"name": "qwen2.5:7b"}]})))

    status = await client.health_check()

    assert status["healthy"] is False
    assert "ollama pull" in status["details"]


@pytest.mark.asyncio
async def test_ollama_close_releases_session():
    client = OllamaClient({})
    session = FakeSession(FakeResponse())
    _attach(client, session)

    await client.close()

    assert session.closed is True
    assert client._session is None


# ============================================================================
# OPENAI
# ============================================================================

@pytest.mark.asyncio
async def test_openai_generate_requests_json_object():
    client = OpenAIClient({"openai_api_key": "k", "openai_model": "gpt-4o-mini"})
    requests = []

    def create(**request):
        requests.append(request)
        message = SimpleNamespace(content='{"brand_name": "Xarelto"}')
        return SimpleNamespace(
            choices=[SimpleNamespace(message=message)],
            usage=SimpleNamespace(prompt_tokens=50, completion_tokens=12),
        )

    client._client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))

    result = await client.generate("identify", json_mode=True)

    assert result["text"] == '{"brand_name": "Xarelto"}'
    assert result["prompt_tokens"] == 50
    assert requests[0]["response_format"] == {"type": "json_object"}
    assert requests[0]["model"] == "gpt-4o-mini"
