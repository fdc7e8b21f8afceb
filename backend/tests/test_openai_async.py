import asyncio
import json

import httpx
import pytest
from backend.clipper import openai_async
from backend.clipper.openai_async import OpenAIUnavailable, chat_completion, message_content
from backend.clipper.settings import settings


@pytest.fixture
def completions(monkeypatch):
    """Route the shared client through a canned transport and record requests."""
    settings.OPENAI_API_KEY = "test-key"
    seen = []

    def install(handler):
        def recording(request):
            seen.append(request)
            return handler(request)

        client = httpx.AsyncClient(
            base_url="https://llm.test/v1", transport=httpx.MockTransport(recording)
        )
        monkeypatch.setattr(openai_async, "_client", client)
        return seen

    yield install
    asyncio.run(openai_async.close_async_client())


def _run(messages):
    return asyncio.run(chat_completion(messages))


def test_chat_completion_sends_search_model_in_json_mode(completions, monkeypatch):
    monkeypatch.setattr(settings, "SHOP_SEARCH_GPT_MODEL", "gpt-test")
    monkeypatch.setattr(settings, "SHOP_SEARCH_MAX_TOKENS", 123)
    seen = completions(
        lambda request: httpx.Response(
            200, json={"choices": [{"message": {"content": '{"parsedFilters": {}}'}}]}
        )
    )

    content = _run([{"role": "user", "content": "fade"}])

    assert content == '{"parsedFilters": {}}'
    request = seen[0]
    assert request.url.path == "/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer test-key"
    body = json.loads(request.content)
    assert body["model"] == "gpt-test"
    assert body["max_tokens"] == 123
    assert body["temperature"] == 0
    assert body["response_format"] == {"type": "json_object"}
    assert body["messages"] == [{"role": "user", "content": "fade"}]


@pytest.mark.parametrize(
    ("status", "match"), [(429, "rate limited"), (500, "OpenAI error 500")]
)
def test_chat_completion_error_statuses(completions, status, match):
    completions(lambda request: httpx.Response(status, text="nope"))
    with pytest.raises(OpenAIUnavailable, match=match):
        _run([{"role": "user", "content": "fade"}])


def test_chat_completion_timeout(completions):
    def timeout(request):
        raise httpx.ReadTimeout("slow", request=request)

    completions(timeout)
    with pytest.raises(OpenAIUnavailable, match="timed out"):
        _run([{"role": "user", "content": "fade"}])


def test_chat_completion_requires_api_key():
    settings.OPENAI_API_KEY = "  "
    with pytest.raises(OpenAIUnavailable, match="not configured"):
        _run([{"role": "user", "content": "fade"}])


@pytest.mark.parametrize(
    "body",
    [
        {"choices": []},
        {"choices": ["text"]},
        {"choices": [{"message": {"content": "   "}}]},
        {"choices": [{"message": None}]},
        ["not", "an", "object"],
    ],
)
def test_message_content_without_usable_text(body):
    assert message_content(body) is None
