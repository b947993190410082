import json

import httpx
import pytest

from brand_core.domain.exceptions import TransportError
from brand_core.domain.models import ChatMessage
from brand_core.providers.openai_adapter import OpenAIAdapter, OpenAIChunk
from brand_core.providers.registry import OPENAI


def _event(content):
    return "data: " + json.dumps({"choices": [{"index": 0, "delta": {"content": content}}]}) + "\n\n"


async def _collect(client, messages=None):
    msgs = messages or [ChatMessage(role="user", content="hi")]
    return [d async for d in OpenAIAdapter().stream(client, OPENAI, "sk-test", "gpt-4o-mini", msgs)]


@pytest.mark.asyncio
async def test_openai_stream_with_sentinel(fake_transport):
    transport, client = fake_transport(
        [_event("Hel"), _event("lo "), _event("world"), "data: [DONE]\n\n"]
    )
    deltas = await _collect(client)
    assert deltas == ["Hel", "lo ", "world"]
    assert "[DONE]" not in "".join(deltas)

    req = transport.requests[0]
    assert req.method == "POST"
    assert str(req.url) == "https://api.openai.com/v1/chat/completions"
    assert req.headers["Authorization"] == "Bearer sk-test"
    body = json.loads(req.content)
    assert body == {"model": "gpt-4o-mini", "messages": [{"role": "user", "content": "hi"}], "stream": True}


@pytest.mark.asyncio
async def test_openai_line_split_across_reads(fake_transport):
    raw = _event("Hello") + _event(" there") + "data: [DONE]\n\n"
    # 在 JSON 对象中间切开
    cut = raw.index("Hello") + 2
    _, client = fake_transport([raw[:cut], raw[cut:cut + 7], raw[cut + 7:]])
    assert await _collect(client) == ["Hello", " there"]


@pytest.mark.asyncio
async def test_openai_stops_at_sentinel(fake_transport):
    _, client = fake_transport([_event("a") + "data: [DONE]\n\n" + _event("ignored")])
    assert await _collect(client) == ["a"]


@pytest.mark.asyncio
async def test_openai_skips_malformed_lines(fake_transport):
    _, client = fake_transport(
        [
            _event("one"),
            "data: {not json\n\n",
            ": keep-alive comment\n\n",
            'data: {"choices": []}\n\n',
            'data: {"choices": [{"delta": {"role": "assistant"}}]}\n\n',
            _event("two"),
            "data: [DONE]\n\n",
        ]
    )
    assert await _collect(client) == ["one", "two"]


@pytest.mark.asyncio
async def test_openai_http_error(fake_transport):
    transport, client = fake_transport(['{"error": "bad key"}'], status_code=401)
    with pytest.raises(TransportError) as exc_info:
        await _collect(client)
    err = exc_info.value
    assert err.provider == "openai"
    assert err.status_code == 401
    assert err.code == "API_ERROR"
    assert "bad key" in err.message


@pytest.mark.asyncio
async def test_openai_network_error(fake_transport):
    _, client = fake_transport(exc=httpx.ConnectError("connection refused"))
    with pytest.raises(TransportError) as exc_info:
        await _collect(client)
    assert exc_info.value.code == "NETWORK_ERROR"
    assert exc_info.value.status_code is None


def test_openai_chunk_decode():
    chunk = OpenAIChunk.model_validate_json('{"choices": [{"delta": {"content": "x"}}]}')
    assert chunk.delta_text() == "x"
    assert OpenAIChunk.model_validate_json('{"choices": [{"delta": null}]}').delta_text() is None
    assert OpenAIChunk.model_validate_json("{}").delta_text() is None
