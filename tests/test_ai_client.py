"""Tests for the Groq completion client (requests is faked)."""
import pytest
import requests

from complaint_modules.ai_client import DEFAULT_MODEL, DEFAULT_URL, GroqClient
from complaint_modules.errors import AIServiceError


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text="", bad_json=False):
        self.status_code = status_code
        self._payload = payload
        self.text = text
        self._bad_json = bad_json

    def json(self):
        if self._bad_json:
            raise ValueError("No JSON object could be decoded")
        return self._payload


def _completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


@pytest.fixture
def captured(monkeypatch):
    calls = []

    def install(response=None, error=None):
        def fake_post(url, headers=None, json=None, timeout=None):
            calls.append({"url": url, "headers": headers, "json": json, "timeout": timeout})
            if error is not None:
                raise error
            return response
        monkeypatch.setattr(requests, "post", fake_post)
        return calls

    return install


def test_complete_sends_single_user_message(captured):
    calls = captured(FakeResponse(payload=_completion("CATEGORY: Road\n---\nLetter")))
    client = GroqClient(api_key="gsk_abc", timeout=12)

    assert client.complete("PROMPT TEXT") == "CATEGORY: Road\n---\nLetter"
    call = calls[0]
    assert call["url"] == DEFAULT_URL
    assert call["timeout"] == 12
    assert call["headers"]["Authorization"] == "Bearer gsk_abc"
    assert call["json"]["model"] == DEFAULT_MODEL
    assert call["json"]["messages"] == [{"role": "user", "content": "PROMPT TEXT"}]
    assert call["json"]["temperature"] == 0.7
    assert call["json"]["max_tokens"] == 2048


def test_non_200_raises(captured):
    captured(FakeResponse(status_code=429, text="rate limit exceeded"))
    with pytest.raises(AIServiceError, match="429"):
        GroqClient(api_key="gsk_abc").complete("p")


def test_timeout_raises(captured):
    captured(error=requests.Timeout("read timed out"))
    with pytest.raises(AIServiceError, match="timed out"):
        GroqClient(api_key="gsk_abc").complete("p")


@pytest.mark.parametrize("response", [
    FakeResponse(payload=_completion("")),
    FakeResponse(payload=_completion("   \n")),
    FakeResponse(payload=_completion(None)),
])
def test_empty_content_raises(captured, response):
    captured(response)
    with pytest.raises(AIServiceError):
        GroqClient(api_key="gsk_abc").complete("p")


@pytest.mark.parametrize("response", [
    FakeResponse(bad_json=True),
    FakeResponse(payload={"choices": []}),
    FakeResponse(payload={"error": "nope"}),
])
def test_malformed_body_raises(captured, response):
    captured(response)
    with pytest.raises(AIServiceError):
        GroqClient(api_key="gsk_abc").complete("p")


def test_from_env_reads_settings(monkeypatch):
    monkeypatch.setenv("GROQ_API_KEY", "gsk_env")
    monkeypatch.setenv("GROQ_MODEL", "llama-3.1-8b-instant")
    monkeypatch.setenv("GROQ_API_URL", "http://localhost:9999/v1/chat/completions")
    monkeypatch.setenv("AI_TIMEOUT", "5")
    monkeypatch.setenv("AI_TEMPERATURE", "0.2")
    monkeypatch.setenv("AI_MAX_TOKENS", "512")

    client = GroqClient.from_env()
    assert client.api_key == "gsk_env"
    assert client.model == "llama-3.1-8b-instant"
    assert client.url == "http://localhost:9999/v1/chat/completions"
    assert client.timeout == 5.0
    assert client.temperature == 0.2
    assert client.max_tokens == 512


@pytest.mark.parametrize("key", ["", "   ", "your_groq_api_key_here"])
def test_from_env_without_usable_key(monkeypatch, key):
    monkeypatch.setenv("GROQ_API_KEY", key)
    assert GroqClient.from_env() is None


def test_constructor_requires_key():
    with pytest.raises(ValueError):
        GroqClient(api_key="")


@pytest.mark.parametrize("content", [
    [{"type": "text", "text": "CATEGORY: Road\n---\nLetter"}],
    {"text": "Letter"},
    42,
])
def test_non_string_content_raises(captured, content):
    captured(FakeResponse(payload=_completion(content)))
    with pytest.raises(AIServiceError, match="Malformed"):
        GroqClient(api_key="gsk_abc").complete("p")
