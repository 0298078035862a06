"""Ready-made predicates for CustomMatcher.

Each predicate is a frozen dataclass called with a StubRequest, so it shows
up readably in no-match diagnostics (a lambda only shows its address).

Regex uses ``google-re2`` for guaranteed linear-time matching. RE2 does not
support backreferences or lookahead/lookbehind because they require
backtracking; patterns using them are rejected at construction time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import re2

from httpx_stub._matcher import StubError

if TYPE_CHECKING:
    from httpx_stub._request import StubRequest
    from httpx_stub._types import Predicate


class InvalidPatternError(StubError):
    """A regex pattern was rejected by RE2."""

    def __init__(self, pattern: str, reason: str) -> None:
        self.pattern = pattern
        super().__init__(f'invalid regex pattern "{pattern}": {reason}')


def _method_matches(method: str | None, request: StubRequest) -> bool:
    return method is None or request.method.upper() == method.upper()


@dataclass(frozen=True, slots=True)
class PathRegex:
    """Regex search on the request path, optionally restricted to one method.

    Uses search (not fullmatch): anchor with ``^`` and ``$`` for whole paths.

    Raises:
        InvalidPatternError: If the pattern is not valid RE2 syntax.
    """

    pattern: str
    method: str | None = None
    _compiled: re2.Pattern[str] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        try:
            compiled = re2.compile(self.pattern)
        except re2.error as e:
            raise InvalidPatternError(self.pattern, str(e)) from e
        object.__setattr__(self, "_compiled", compiled)

    def __call__(self, request: StubRequest) -> bool:
        return (
            _method_matches(self.method, request)
            and self._compiled.search(request.path) is not None
        )


@dataclass(frozen=True, slots=True)
class PathPrefix:
    """Path prefix match (startswith), optionally restricted to one method."""

    prefix: str
    method: str | None = None

    def __call__(self, request: StubRequest) -> bool:
        return _method_matches(self.method, request) and request.path.startswith(
            self.prefix
        )


@dataclass(frozen=True, slots=True)
class HeaderEquals:
    """Request header equality; header names are always case-insensitive.

    A missing header never matches. When ignore_case is True the value
    comparison is case-insensitive too.
    """

    name: str
    value: str
    ignore_case: bool = False

    def __call__(self, request: StubRequest) -> bool:
        actual = request.header(self.name)
        if actual is None:
            return False
        if self.ignore_case:
            return actual.casefold() == self.value.casefold()
        return actual == self.value


@dataclass(frozen=True, slots=True)
class AllOf:
    """All predicates must match. Empty AllOf matches everything."""

    predicates: tuple[Predicate, ...]

    def __call__(self, request: StubRequest) -> bool:
        return all(p(request) for p in self.predicates)


@dataclass(frozen=True, slots=True)
class AnyOf:
    """Any predicate must match. Empty AnyOf matches nothing."""

    predicates: tuple[Predicate, ...]

    def __call__(self, request: StubRequest) -> bool:
        return any(p(request) for p in self.predicates)


@dataclass(frozen=True, slots=True)
class Not:
    """Inverts the inner predicate."""

    predicate: Predicate

    def __call__(self, request: StubRequest) -> bool:
        return not self.predicate(request)
