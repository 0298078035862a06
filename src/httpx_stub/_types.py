"""Core protocols and type aliases for httpx_stub.

The type system keeps the two variant families apart:
- MatchesRequest is the matching port (PathMatcher, CustomMatcher)
- BuildsResponse is the reply port (JsonReply, TextReply, ...)
- Predicate is the shape of every CustomMatcher escape hatch
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import httpx

if TYPE_CHECKING:
    from httpx_stub._request import StubRequest

# Response headers: one list entry per header line.
type HeaderMap = Mapping[str, Sequence[str] | str]

# Query parameter values as a caller passes them to httpx: scalars, or
# sequences of scalars for repeated keys. Request-side values are strings.
type QueryParams = Mapping[str, Any]

# The outgoing body stream handed to CustomReply builders.
# httpx re-wraps read bodies in ByteStream, which is both sync and async.
type RequestStream = httpx.AsyncByteStream

type Predicate = Callable[[StubRequest], bool]

type ResponseBuilder = Callable[
    [StubRequest, RequestStream | None],
    httpx.Response | Awaitable[httpx.Response],
]

type JsonCallback = Callable[[StubRequest], Any | Awaitable[Any]]


@runtime_checkable
class MatchesRequest(Protocol):
    """Decide whether a stub applies to a request.

    Implementations must be pure: resolution may call them any number of
    times, in any order.
    """

    def matches(self, request: StubRequest, /) -> bool: ...


@runtime_checkable
class BuildsResponse(Protocol):
    """Produce the response for a matched request."""

    async def build(
        self, request: StubRequest, stream: RequestStream | None, /
    ) -> httpx.Response: ...
