import json

import httpx
import pytest

from brand_core.api import router
from brand_core.domain.exceptions import ConfigurationError, TransportError
from brand_core.domain.models import ChatMessage


def _openai_event(content):
    return "data: " + json.dumps({"choices": [{"delta": {"content": content}}]}) + "\n\n"


@pytest.mark.asyncio
async def test_send_message_accumulates_and_calls_back(fake_transport):
    transport, client = fake_transport(
        [_openai_event("Hel"), _openai_event("lo "), _openai_event("world"), "data: [DONE]\n\n"]
    )
    seen = []
    result = await router.send_message(
        "openai",
        [{"role": "user", "content": "hi"}],
        credential="sk-test",
        system_prompt="You are helpful.",
        on_chunk=lambda delta, full: seen.append((delta, full)),
        client=client,
    )
    assert result == "Hello world"
    assert seen == [("Hel", "Hel"), ("lo ", "Hello "), ("world", "Hello world")]
    assert seen[-1][1] == result

    body = json.loads(transport.requests[0].content)
    assert body["model"] == "gpt-4o-mini"
    assert body["messages"] == [
        {"role": "system", "content": "You are helpful."},
        {"role": "user", "content": "hi"},
    ]


@pytest.mark.asyncio
async def test_send_message_without_preamble_and_explicit_model(fake_transport):
    transport, client = fake_transport(['{"message": {"content": "ok"}}\n'])
    result = await router.send_message(
        "ollama",
        [ChatMessage(role="user", content="hi")],
        model="llama3",
        system_prompt="",
        client=client,
    )
    assert result == "ok"
    body = json.loads(transport.requests[0].content)
    assert body["model"] == "llama3"
    assert [m["role"] for m in body["messages"]] == ["user"]


@pytest.mark.asyncio
async def test_send_message_unknown_provider_makes_no_request(fake_transport, monkeypatch):
    transport, client = fake_transport()
    created = []

    class CountingClient:
        def __init__(self, *a, **kw):
            created.append(1)

    monkeypatch.setattr("brand_core.api.router.httpx.AsyncClient", CountingClient)

    with pytest.raises(ConfigurationError) as exc_info:
        await router.send_message("claude", [{"role": "user", "content": "hi"}], client=client)
    assert exc_info.value.code == "UNKNOWN_PROVIDER"
    with pytest.raises(ConfigurationError):
        await router.send_message("mystery", [{"role": "user", "content": "hi"}])
    assert transport.requests == []
    assert created == []


@pytest.mark.asyncio
async def test_send_message_rejects_bad_messages(fake_transport):
    transport, client = fake_transport()
    with pytest.raises(ConfigurationError) as exc_info:
        await router.send_message("openai", [], client=client)
    assert exc_info.value.code == "EMPTY_MESSAGES"
    with pytest.raises(ConfigurationError) as exc_info:
        await router.send_message(
            "openai",
            [{"role": "system", "content": "x"}, {"role": "user", "content": "hi"}],
            client=client,
        )
    assert exc_info.value.code == "SYSTEM_IN_HISTORY"
    with pytest.raises(ConfigurationError) as exc_info:
        await router.send_message("openai", [{"content": "no role"}], client=client)
    assert exc_info.value.code == "INVALID_MESSAGE"
    with pytest.raises(ConfigurationError) as exc_info:
        await router.send_message("openai", ["just text"], client=client)
    assert exc_info.value.code == "INVALID_MESSAGE"
    assert transport.requests == []


@pytest.mark.asyncio
async def test_send_message_propagates_transport_error(fake_transport):
    transport, client = fake_transport(["boom"], status_code=500)
    with pytest.raises(TransportError) as exc_info:
        await router.send_message("gemini", [{"role": "user", "content": "hi"}], credential="k", client=client)
    assert exc_info.value.status_code == 500
    assert exc_info.value.provider == "gemini"
    # 不重试
    assert len(transport.requests) == 1


@pytest.mark.asyncio
async def test_send_message_credential_falls_back_to_settings(fake_transport, monkeypatch):
    monkeypatch.setattr(router.settings, "openai_api_key", "sk-from-env")
    transport, client = fake_transport(["data: [DONE]\n\n"])
    result = await router.send_message("openai", [{"role": "user", "content": "hi"}], client=client)
    assert result == ""
    assert transport.requests[0].headers["Authorization"] == "Bearer sk-from-env"


@pytest.mark.asyncio
async def test_connection_success(fake_transport):
    transport, client = fake_transport(['{"models": []}'])
    assert await router.test_connection("ollama", client=client) is True
    req = transport.requests[0]
    assert req.method == "GET"
    assert str(req.url) == "http://localhost:11434/api/tags"


@pytest.mark.asyncio
async def test_connection_openai_sends_key(fake_transport):
    transport, client = fake_transport(['{"data": []}'])
    assert await router.test_connection("openai", "sk-test", client=client) is True
    assert transport.requests[0].headers["Authorization"] == "Bearer sk-test"
    assert str(transport.requests[0].url) == "https://api.openai.com/v1/models"


@pytest.mark.asyncio
async def test_connection_non_success_is_false(fake_transport):
    _, client = fake_transport(['{"error": "invalid key"}'], status_code=403)
    assert await router.test_connection("gemini", "bad", client=client) is False


@pytest.mark.asyncio
async def test_connection_unreachable_is_false(fake_transport):
    _, client = fake_transport(exc=httpx.ConnectError("connection refused"))
    assert await router.test_connection("ollama", client=client) is False


@pytest.mark.asyncio
async def test_connection_unknown_provider_is_false():
    assert await router.test_connection("nope") is False
