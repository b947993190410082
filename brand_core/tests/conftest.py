import tempfile
from pathlib import Path
from typing import Iterable, List, Optional

import httpx
import pytest

from brand_core.infrastructure.storage.json_store import JsonStore


async def _aiter(chunks: Iterable[bytes]):
    for chunk in chunks:
        yield chunk


class FakeTransport(httpx.AsyncBaseTransport):
    """按给定字节块回放响应体，并记录收到的请求。"""

    def __init__(
        self,
        chunks: Iterable[bytes] = (),
        status_code: int = 200,
        exc: Optional[Exception] = None,
    ):
        self.chunks = [c.encode("utf-8") if isinstance(c, str) else c for c in chunks]
        self.status_code = status_code
        self.exc = exc
        self.requests: List[httpx.Request] = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        return httpx.Response(self.status_code, content=_aiter(self.chunks))


@pytest.fixture
def fake_transport():
    def factory(chunks=(), status_code=200, exc=None):
        transport = FakeTransport(chunks, status_code=status_code, exc=exc)
        return transport, httpx.AsyncClient(transport=transport)

    return factory


@pytest.fixture
def store():
    with tempfile.TemporaryDirectory() as d:
        yield JsonStore(root=Path(d) / ".storage")
