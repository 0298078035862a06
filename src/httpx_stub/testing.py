"""pytest fixtures for httpx_stub.

Enable in a conftest.py:

    pytest_plugins = ["httpx_stub.testing"]

Each test gets a fresh StubTransport, so stubs never leak between tests.
Clients point at ``BASE_URL``; only the path matters to PathMatcher::

    def test_users(stub_transport, stub_client):
        stub_transport.on(PathMatcher("/users"), JsonReply([{"id": 1}]))
        assert stub_client.get("/users").json() == [{"id": 1}]
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest
import pytest_asyncio

from httpx_stub._transport import StubTransport

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator

BASE_URL = "https://stub.test"


@pytest.fixture
def stub_transport() -> StubTransport:
    """A fresh, empty transport."""
    return StubTransport()


@pytest.fixture
def stub_client(stub_transport: StubTransport) -> Iterator[httpx.Client]:
    """A sync client served by ``stub_transport``."""
    with httpx.Client(transport=stub_transport, base_url=BASE_URL) as client:
        yield client


@pytest_asyncio.fixture
async def async_stub_client(
    stub_transport: StubTransport,
) -> AsyncIterator[httpx.AsyncClient]:
    """An async client served by ``stub_transport`` (needs pytest-asyncio)."""
    async with httpx.AsyncClient(transport=stub_transport, base_url=BASE_URL) as client:
        yield client
