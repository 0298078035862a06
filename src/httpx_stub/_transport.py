"""StubTransport — an httpx transport answering requests from registered stubs.

Resolution is last-registered-wins: stubs are scanned newest first and the
first matching stub builds the response. Registrations made inside a test
therefore override the ones made in a shared fixture, with no removal API.

Example::

    transport = (
        StubTransport()
        .on(PathMatcher("/login", method="POST"), JsonReply({"token": "abc"}, status=201))
        .on(PathMatcher("/users"), JsonReply([{"id": 1}, {"id": 2}]))
        .on(CustomMatcher(PathPrefix("/v2/")), JsonReply({"version": 2}))
    )
    client = httpx.Client(transport=transport, base_url="https://api.example.com")
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Self

import httpx

from httpx_stub._config import load_stubs, parse_stub_config, read_yaml
from httpx_stub._matcher import StubError
from httpx_stub._request import StubRequest

if TYPE_CHECKING:
    from collections.abc import Coroutine
    from pathlib import Path

    from httpx_stub._matcher import Matcher
    from httpx_stub._reply import Reply
    from httpx_stub._types import RequestStream

logger = logging.getLogger(__name__)


class NoStubMatchedError(StubError):
    """No registered stub matched a request.

    Carries the request method and path and the diagnostic form of every
    registered matcher, in registration order.
    """

    def __init__(self, method: str, path: str, matchers: list[str]) -> None:
        self.method = method
        self.path = path
        self.matchers = list(matchers)
        listing = "\n".join(f"- {m}" for m in self.matchers) or "(none)"
        super().__init__(
            "no stub matched request.\n\n"
            f"Request: {method} {path}\n"
            "Did you forget to register a stub?\n\n"
            "Current stubs:\n"
            f"{listing}"
        )


@dataclass(frozen=True, slots=True)
class Stub:
    """Pairs a matcher with the reply used when it matches."""

    matcher: Matcher
    reply: Reply


class StubTransport(httpx.BaseTransport, httpx.AsyncBaseTransport):
    """Transport serving registered stubs to ``httpx.Client`` and ``httpx.AsyncClient``.

    The client's own pipeline (event hooks, ``raise_for_status``, decoding)
    runs unchanged on the stubbed responses.

    Not thread-safe: one transport serves one test at a time.
    """

    def __init__(self) -> None:
        self._stubs: list[Stub] = []

    @classmethod
    def from_config(cls, data: dict[str, Any]) -> StubTransport:
        """Create a transport with the stubs declared in a config dict."""
        return cls().load(data)

    @classmethod
    def from_yaml(cls, source: str | Path) -> StubTransport:
        """Create a transport with the stubs declared in YAML text or a YAML file."""
        return cls().load(read_yaml(source))

    def on(self, matcher: Matcher, reply: Reply) -> Self:
        """Register a stub. Later registrations take precedence."""
        self._stubs.append(Stub(matcher, reply))
        logger.debug("registered stub #%d: %s", len(self._stubs), matcher)
        return self

    def load(self, data: dict[str, Any]) -> Self:
        """Register every stub declared in a config dict, in document order."""
        for matcher, reply in load_stubs(parse_stub_config(data)):
            self.on(matcher, reply)
        return self

    def reset(self) -> None:
        """Drop every registration."""
        self._stubs.clear()

    @property
    def stubs(self) -> tuple[Stub, ...]:
        """Registered stubs in registration order."""
        return tuple(self._stubs)

    def resolve(self, request: StubRequest) -> Stub:
        """Find the stub answering a request.

        Raises:
            NoStubMatchedError: If no registered matcher matches.
        """
        for index in range(len(self._stubs) - 1, -1, -1):
            stub = self._stubs[index]
            if stub.matcher.matches(request):
                logger.debug(
                    "%s %s matched stub #%d: %s",
                    request.method,
                    request.path,
                    index + 1,
                    stub.matcher,
                )
                return stub

        logger.warning("no stub matched %s %s", request.method, request.path)
        raise NoStubMatchedError(
            request.method, request.path, [str(s.matcher) for s in self._stubs]
        )

    async def fetch(
        self, request: StubRequest, stream: RequestStream | None = None
    ) -> httpx.Response:
        """Resolve a request and build the matched stub's response.

        Errors raised by reply callbacks propagate unchanged.

        Raises:
            NoStubMatchedError: If no registered matcher matches.
        """
        stub = self.resolve(request)
        return await stub.reply.build(request, stream)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        await request.aread()
        return await self.fetch(StubRequest.from_httpx(request), _body_stream(request))

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        request.read()
        return _run_sync(self.fetch(StubRequest.from_httpx(request), _body_stream(request)))

    def close(self, force: bool = False) -> None:
        """Release nothing: the transport owns no connections."""

    async def aclose(self) -> None:
        """Release nothing: the transport owns no connections."""


def _body_stream(request: httpx.Request) -> RequestStream | None:
    # Reading the request re-wraps its body as a replayable ByteStream.
    if not request.content:
        return None
    if not isinstance(request.stream, httpx.AsyncByteStream):
        return None
    return request.stream


def _run_sync(coro: Coroutine[Any, Any, httpx.Response]) -> httpx.Response:
    # Replies are coroutines. Sync clients drive each one on a private loop,
    # moved to a worker thread when the calling thread already runs a loop.
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="httpx-stub") as pool:
        return pool.submit(asyncio.run, coro).result()

