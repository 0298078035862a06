"""Matchers — the closed set of predicates deciding which stub answers a request.

PathMatcher covers the common case: exact path, optional method, query
parameters and body. CustomMatcher wraps any predicate for everything else.

Body comparison is deliberately asymmetric:
- mapping bodies compare with unordered deep equality (nested collections
  are compared as multisets)
- list bodies compare with ordered deep equality
- anything else compares with ==
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

from httpx_stub._request import query_dict

if TYPE_CHECKING:
    from httpx_stub._request import StubRequest
    from httpx_stub._types import Predicate, QueryParams


class StubError(Exception):
    """Base class for errors raised by httpx_stub."""


@dataclass(frozen=True, slots=True)
class PathMatcher:
    """Match requests on an exact path and, optionally, method, query and body.

    The path is normalized to start with ``/``, so ``PathMatcher("users")``
    and ``PathMatcher("/users")`` are the same matcher. Scheme and host of the
    request url are ignored, as is its query string (use ``query_params``).

    >>> from httpx_stub import StubRequest
    >>> PathMatcher("/users", method="get").matches(
    ...     StubRequest("GET", "https://api.example.com/users?page=2")
    ... )
    True
    """

    path: str
    method: str | None = None
    query_params: QueryParams | None = None
    data: Any = None
    _cmp_path: str = field(init=False, repr=False)
    _cmp_method: str | None = field(init=False, repr=False)
    _cmp_query: dict[str, str | list[str]] | None = field(init=False, repr=False)

    def __post_init__(self) -> None:
        path = self.path if self.path.startswith("/") else f"/{self.path}"
        object.__setattr__(self, "_cmp_path", path)
        object.__setattr__(
            self, "_cmp_method", self.method.upper() if self.method is not None else None
        )
        object.__setattr__(
            self,
            "_cmp_query",
            query_dict(httpx.QueryParams(self.query_params))
            if self.query_params is not None
            else None,
        )

    def matches(self, request: StubRequest, /) -> bool:
        return (
            request.path == self._cmp_path
            and self._matches_method(request)
            and self._matches_query(request)
            and self._matches_data(request)
        )

    def _matches_method(self, request: StubRequest) -> bool:
        return self._cmp_method is None or request.method.upper() == self._cmp_method

    def _matches_query(self, request: StubRequest) -> bool:
        if self._cmp_query is None:
            return True
        return dict(request.query_params) == self._cmp_query

    def _matches_data(self, request: StubRequest) -> bool:
        if self.data is None:
            return True
        if isinstance(self.data, bytes | bytearray):
            return request.content == bytes(self.data)
        if request.data is None:
            return False
        if isinstance(self.data, Mapping):
            return isinstance(request.data, Mapping) and unordered_equals(
                self.data, request.data
            )
        if isinstance(self.data, list | tuple):
            return isinstance(request.data, list | tuple) and ordered_equals(
                self.data, request.data
            )
        return self.data == request.data

    def __str__(self) -> str:
        parts = [f'PathMatcher("{self.path}"']
        if self.method is not None:
            parts.append(f'method="{self.method}"')
        if self.query_params is not None:
            parts.append(f"query_params={dict(self.query_params)!r}")
        if self.data is not None:
            parts.append(f"data={self.data!r}")
        return ", ".join(parts) + ")"


@dataclass(frozen=True, slots=True)
class CustomMatcher:
    """Match requests with an arbitrary predicate.

    The escape hatch for anything PathMatcher can't express: regex paths,
    prefixes, headers, combinations. See ``httpx_stub._predicates`` for
    ready-made predicates with readable diagnostics.
    """

    predicate: Predicate

    def matches(self, request: StubRequest, /) -> bool:
        return bool(self.predicate(request))

    def __str__(self) -> str:
        return f"CustomMatcher({self.predicate!r})"


# Closed set of matchers; dispatch sites may rely on exhaustiveness.
type Matcher = PathMatcher | CustomMatcher


# ═══════════════════════════════════════════════════════════════════════════════
# Deep equality
# ═══════════════════════════════════════════════════════════════════════════════


def ordered_equals(a: Any, b: Any) -> bool:
    """Deep equality where sequence order matters.

    Mappings compare by key regardless of insertion order. Booleans never
    equal numbers, unlike plain ``==``.
    """
    if isinstance(a, Mapping):
        if not isinstance(b, Mapping) or len(a) != len(b):
            return False
        return all(k in b and ordered_equals(v, b[k]) for k, v in a.items())
    if isinstance(a, list | tuple):
        if not isinstance(b, list | tuple) or len(a) != len(b):
            return False
        return all(ordered_equals(x, y) for x, y in zip(a, b, strict=True))
    return _scalar_equals(a, b)


def unordered_equals(a: Any, b: Any) -> bool:
    """Deep equality where sequence order is ignored at every level.

    Sequences compare as multisets: every element of ``a`` must pair with a
    distinct, deep-equal element of ``b``.
    """
    if isinstance(a, Mapping):
        if not isinstance(b, Mapping) or len(a) != len(b):
            return False
        return all(k in b and unordered_equals(v, b[k]) for k, v in a.items())
    if isinstance(a, list | tuple):
        if not isinstance(b, list | tuple) or len(a) != len(b):
            return False
        remaining = list(b)
        for x in a:
            for i, y in enumerate(remaining):
                if unordered_equals(x, y):
                    del remaining[i]
                    break
            else:
                return False
        return True
    return _scalar_equals(a, b)


def _scalar_equals(a: Any, b: Any) -> bool:
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    return a == b
