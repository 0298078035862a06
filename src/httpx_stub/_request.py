"""StubRequest — read-only request descriptor presented to matchers and replies.

Holds method, url (may include scheme, host and query string), headers
(case-insensitive), the raw body bytes and the decoded body. The path and
query parameters are parsed from the url once, at construction time.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from collections.abc import Mapping

_JSON_CONTENT_TYPE = "application/json"
_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


@dataclass(frozen=True, slots=True)
class StubRequest:
    """HTTP request descriptor for matching.

    The url is kept as given; ``path`` strips scheme, host and query string
    and always starts with ``/``. Query values are strings, or lists of
    strings when a key repeats.

    ``data`` is the decoded body. Build descriptors from live traffic with
    ``StubRequest.from_httpx()``, which decodes ``content`` according to the
    request's content type; direct construction takes ``data`` as given.
    """

    method: str = "GET"
    url: str = "/"
    headers: Mapping[str, str] = field(default_factory=dict)
    content: bytes = b""
    data: Any = None

    # Computed fields, parsed from url and headers
    _path: str = field(init=False, repr=False)
    _query_params: dict[str, str | list[str]] = field(init=False, repr=False)
    _lower_headers: dict[str, str] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        parsed = httpx.URL(self.url)
        path = parsed.path
        if not path.startswith("/"):
            path = f"/{path}"
        object.__setattr__(self, "_path", path)
        object.__setattr__(self, "_query_params", query_dict(parsed.params))
        object.__setattr__(
            self,
            "_lower_headers",
            {k.lower(): v for k, v in self.headers.items()},
        )

    @classmethod
    def from_httpx(cls, request: httpx.Request) -> StubRequest:
        """Describe an ``httpx.Request`` whose body has already been read."""
        headers = dict(request.headers.items())
        content = request.content
        return cls(
            method=request.method,
            url=str(request.url),
            headers=headers,
            content=content,
            data=decode_body(content, request.headers.get("content-type")),
        )

    @property
    def path(self) -> str:
        """Absolute path without scheme, host or query string."""
        return self._path

    @property
    def query_params(self) -> dict[str, str | list[str]]:
        """Parsed query parameters."""
        return self._query_params

    def header(self, name: str) -> str | None:
        """Get a header value by name (case-insensitive)."""
        return self._lower_headers.get(name.lower())

    def query_param(self, name: str) -> str | list[str] | None:
        """Get a query parameter by name."""
        return self._query_params.get(name)


def decode_body(content: bytes, content_type: str | None) -> Any:
    """Decode a raw request body into the value matchers compare against.

    JSON bodies decode to their structured value, form bodies to a mapping,
    other UTF-8 bodies to text. Anything else stays raw bytes.
    """
    if not content:
        return None

    media_type = (content_type or "").split(";", 1)[0].strip().lower()
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError:
        return content

    if media_type == _JSON_CONTENT_TYPE or media_type.endswith("+json"):
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return text
    if media_type == _FORM_CONTENT_TYPE:
        return query_dict(httpx.QueryParams(text))
    return text


def query_dict(params: httpx.QueryParams) -> dict[str, str | list[str]]:
    """Flatten single-valued keys to strings; keep repeated keys as lists.

    >>> query_dict(httpx.QueryParams({"page": 1, "tag": ["a", "b"], "flag": True}))
    {'page': '1', 'tag': ['a', 'b'], 'flag': 'true'}
    """
    collapsed: dict[str, str | list[str]] = {}
    for key in params.keys():
        values = params.get_list(key)
        collapsed[key] = values[0] if len(values) == 1 else values
    return collapsed
