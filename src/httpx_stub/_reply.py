"""Replies — the closed set of strategies turning a matched request into a response.

Every reply builds an ``httpx.Response``. The simple variants force their
content type after user headers are merged, so a conflicting
``content-type`` header never wins.
"""

from __future__ import annotations

import inspect
import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from httpx_stub._request import StubRequest
    from httpx_stub._types import HeaderMap, JsonCallback, RequestStream, ResponseBuilder

CONTENT_TYPE_HEADER = "content-type"
JSON_CONTENT_TYPE = "application/json"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"


@dataclass(frozen=True, slots=True)
class JsonReply:
    """Reply with a fixed JSON body.

    ``None`` produces an empty body rather than the literal ``null``, which
    suits 204 responses.

    >>> JsonReply({"id": 1})
    JsonReply(data={'id': 1}, status=200, headers={})
    >>> JsonReply({"error": "not found"}, status=404)
    JsonReply(data={'error': 'not found'}, status=404, headers={})
    """

    data: Any = None
    status: int = 200
    headers: HeaderMap = field(default_factory=dict)

    async def build(
        self, request: StubRequest, stream: RequestStream | None, /
    ) -> httpx.Response:
        return make_response(self.status, self.headers, JSON_CONTENT_TYPE, encode_json(self.data))


@dataclass(frozen=True, slots=True)
class JsonWithReply:
    """Reply with a JSON body computed from the request.

    The callback may be a plain function or a coroutine function. It sees
    the descriptor only (``request.data`` holds the decoded body); the body
    stream is not passed to it.
    """

    callback: JsonCallback
    status: int = 200
    headers: HeaderMap = field(default_factory=dict)

    async def build(
        self, request: StubRequest, stream: RequestStream | None, /
    ) -> httpx.Response:
        data = self.callback(request)
        if inspect.isawaitable(data):
            data = await data
        return make_response(self.status, self.headers, JSON_CONTENT_TYPE, encode_json(data))


@dataclass(frozen=True, slots=True)
class TextReply:
    """Reply with a UTF-8 plain text body."""

    text: str
    status: int = 200
    headers: HeaderMap = field(default_factory=dict)

    async def build(
        self, request: StubRequest, stream: RequestStream | None, /
    ) -> httpx.Response:
        return make_response(
            self.status, self.headers, TEXT_CONTENT_TYPE, self.text.encode("utf-8")
        )


@dataclass(frozen=True, slots=True)
class BytesReply:
    """Reply with raw bytes, for images, archives and other binary bodies.

    ``content_type`` has no default: binary bodies must say what they are.
    It overrides any ``content-type`` in ``headers``.
    """

    content: bytes
    content_type: str = field(kw_only=True)
    status: int = field(default=200, kw_only=True)
    headers: HeaderMap = field(default_factory=dict, kw_only=True)

    async def build(
        self, request: StubRequest, stream: RequestStream | None, /
    ) -> httpx.Response:
        return make_response(self.status, self.headers, self.content_type, bytes(self.content))


@dataclass(frozen=True, slots=True)
class CustomReply:
    """Reply with a fully custom builder.

    The builder receives the descriptor and the request body stream (``None``
    for an empty body) and returns an ``httpx.Response``, directly or as an
    awaitable. Reading the stream is up to the builder.
    """

    builder: ResponseBuilder

    async def build(
        self, request: StubRequest, stream: RequestStream | None, /
    ) -> httpx.Response:
        response = self.builder(request, stream)
        if inspect.isawaitable(response):
            response = await response
        return response


# Closed set of replies; dispatch sites may rely on exhaustiveness.
type Reply = JsonReply | JsonWithReply | TextReply | BytesReply | CustomReply


def encode_json(data: Any) -> bytes:
    """Encode a value as compact UTF-8 JSON; ``None`` encodes to no bytes.

    Raises:
        ValueError: If the value holds NaN or infinity, which JSON cannot represent.
    """
    if data is None:
        return b""
    encoded = json.dumps(data, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    return encoded.encode("utf-8")


def make_response(
    status: int, headers: HeaderMap, content_type: str, content: bytes
) -> httpx.Response:
    """Build a response whose content type overrides any same-named user header."""
    header_lines: list[tuple[str, str]] = []
    for name, values in headers.items():
        if name.lower() == CONTENT_TYPE_HEADER:
            continue
        if isinstance(values, str):
            values = [values]
        header_lines.extend((name, value) for value in values)
    header_lines.append((CONTENT_TYPE_HEADER, content_type))
    return httpx.Response(status, headers=header_lines, content=content)
