"""Config types for declarative stubs.

Stubs can be declared as data instead of code. The pipeline mirrors code
registration:
  dict/YAML → parse_stub_config() → StubConfig → load_stubs() → (matcher, reply) pairs

Relationship to runtime types:

| Config type                  | Runtime type                        |
|------------------------------|-------------------------------------|
| PathMatchConfig              | PathMatcher                         |
| PatternMatchConfig           | CustomMatcher(PathRegex/PathPrefix) |
| JsonReplyConfig              | JsonReply                           |
| TextReplyConfig              | TextReply                           |
| BytesReplyConfig             | BytesReply                          |

Example YAML::

    stubs:
      - match: {path: /users, method: GET}
        reply: {json: [{id: 1}]}
      - match: {path_regex: "^/users/[0-9]+$"}
        reply: {text: not found, status: 404}
"""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

import yaml

from httpx_stub._matcher import CustomMatcher, PathMatcher, StubError
from httpx_stub._predicates import PathPrefix, PathRegex
from httpx_stub._reply import BytesReply, JsonReply, TextReply

if TYPE_CHECKING:
    from httpx_stub._matcher import Matcher
    from httpx_stub._reply import Reply

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# Config types
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class PathMatchConfig:
    """Exact path match with optional method, query and body constraints."""

    path: str
    method: str | None = None
    query_params: dict[str, Any] | None = None
    data: Any = None


@dataclass(frozen=True, slots=True)
class PatternMatchConfig:
    """Regex or prefix path match, optionally restricted to one method."""

    kind: Literal["regex", "prefix"]
    pattern: str
    method: str | None = None


type MatchConfig = PathMatchConfig | PatternMatchConfig


@dataclass(frozen=True, slots=True)
class JsonReplyConfig:
    data: Any = None
    status: int = 200
    headers: dict[str, list[str]] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class TextReplyConfig:
    text: str
    status: int = 200
    headers: dict[str, list[str]] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class BytesReplyConfig:
    content: bytes
    content_type: str
    status: int = 200
    headers: dict[str, list[str]] = field(default_factory=dict)


type ReplyConfig = JsonReplyConfig | TextReplyConfig | BytesReplyConfig


@dataclass(frozen=True, slots=True)
class StubEntryConfig:
    """Pairs a match config with a reply config."""

    match: MatchConfig
    reply: ReplyConfig


@dataclass(frozen=True, slots=True)
class StubConfig:
    """An ordered list of stub declarations; later entries win."""

    stubs: tuple[StubEntryConfig, ...]


# ═══════════════════════════════════════════════════════════════════════════════
# Parsing (dict → config types)
# ═══════════════════════════════════════════════════════════════════════════════

_MATCH_KINDS = ("path", "path_regex", "path_prefix")
_REPLY_KINDS = ("json", "text", "bytes")
_QUERY_SCALARS = (str, int, float, bool)


class ConfigParseError(StubError):
    """Error parsing a config dict into config types."""


def parse_stub_config(data: dict[str, Any]) -> StubConfig:
    """Parse a dict into a StubConfig.

    This is the main entry point for config loading.

    Raises:
        ConfigParseError: If the dict is malformed.
    """
    if not isinstance(data, dict):
        msg = f"expected dict, got {type(data).__name__}"
        raise ConfigParseError(msg)

    raw_stubs = data.get("stubs")
    if raw_stubs is None:
        msg = "missing required field 'stubs'"
        raise ConfigParseError(msg)
    if not isinstance(raw_stubs, list):
        msg = f"'stubs' must be a list, got {type(raw_stubs).__name__}"
        raise ConfigParseError(msg)

    return StubConfig(
        stubs=tuple(_parse_entry(i, entry) for i, entry in enumerate(raw_stubs))
    )


def _parse_entry(index: int, data: Any) -> StubEntryConfig:
    where = f"stubs[{index}]"
    if not isinstance(data, dict):
        msg = f"{where} must be a dict, got {type(data).__name__}"
        raise ConfigParseError(msg)
    for required in ("match", "reply"):
        if required not in data:
            msg = f"{where} missing required field '{required}'"
            raise ConfigParseError(msg)
    return StubEntryConfig(
        match=_parse_match(f"{where}.match", data["match"]),
        reply=_parse_reply(f"{where}.reply", data["reply"]),
    )


def _parse_match(where: str, data: Any) -> MatchConfig:
    """Parse a match dict.

    Enforces oneof: exactly one of path, path_regex or path_prefix.
    """
    if not isinstance(data, dict):
        msg = f"{where} must be a dict, got {type(data).__name__}"
        raise ConfigParseError(msg)

    kind = _one_of(where, data, _MATCH_KINDS)
    value = data[kind]
    if not isinstance(value, str):
        msg = f"{where}.{kind} must be a string, got {type(value).__name__}"
        raise ConfigParseError(msg)
    method = _optional_str(where, data, "method")

    if kind == "path":
        query_params = data.get("query_params")
        if query_params is not None:
            query_params = _parse_query_params(f"{where}.query_params", query_params)
        return PathMatchConfig(
            path=value, method=method, query_params=query_params, data=data.get("data")
        )

    for unsupported in ("query_params", "data"):
        if unsupported in data:
            msg = f"{where}.{unsupported} is only supported with 'path'"
            raise ConfigParseError(msg)
    pattern_kind: Literal["regex", "prefix"] = "regex" if kind == "path_regex" else "prefix"
    return PatternMatchConfig(kind=pattern_kind, pattern=value, method=method)


def _parse_reply(where: str, data: Any) -> ReplyConfig:
    """Parse a reply dict.

    Enforces oneof: exactly one of json, text or bytes.
    """
    if not isinstance(data, dict):
        msg = f"{where} must be a dict, got {type(data).__name__}"
        raise ConfigParseError(msg)

    kind = _one_of(where, data, _REPLY_KINDS)
    status = data.get("status", 200)
    if not isinstance(status, int) or isinstance(status, bool):
        msg = f"{where}.status must be an int, got {type(status).__name__}"
        raise ConfigParseError(msg)
    headers = _parse_headers(f"{where}.headers", data.get("headers", {}))

    if kind == "json":
        return JsonReplyConfig(data=data["json"], status=status, headers=headers)

    if kind == "text":
        text = data["text"]
        if not isinstance(text, str):
            msg = f"{where}.text must be a string, got {type(text).__name__}"
            raise ConfigParseError(msg)
        return TextReplyConfig(text=text, status=status, headers=headers)

    content_type = _optional_str(where, data, "content_type")
    if content_type is None:
        msg = f"{where} missing required field 'content_type' for bytes reply"
        raise ConfigParseError(msg)
    return BytesReplyConfig(
        content=_parse_bytes(f"{where}.bytes", data["bytes"]),
        content_type=content_type,
        status=status,
        headers=headers,
    )


def _one_of(where: str, data: dict[str, Any], kinds: tuple[str, ...]) -> str:
    present = [k for k in kinds if k in data]
    if len(present) != 1:
        msg = f"{where} must contain exactly one of {list(kinds)}, got keys: {sorted(data.keys())}"
        raise ConfigParseError(msg)
    return present[0]


def _optional_str(where: str, data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        msg = f"{where}.{key} must be a string, got {type(value).__name__}"
        raise ConfigParseError(msg)
    return value


def _parse_query_params(where: str, data: Any) -> dict[str, Any]:
    if not isinstance(data, dict):
        msg = f"{where} must be a dict, got {type(data).__name__}"
        raise ConfigParseError(msg)
    params: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, list) and all(isinstance(v, _QUERY_SCALARS) for v in value):
            params[str(key)] = list(value)
        elif isinstance(value, _QUERY_SCALARS):
            params[str(key)] = value
        else:
            msg = f"{where}.{key} must be a scalar or list of scalars, got {type(value).__name__}"
            raise ConfigParseError(msg)
    return params


def _parse_headers(where: str, data: Any) -> dict[str, list[str]]:
    if not isinstance(data, dict):
        msg = f"{where} must be a dict, got {type(data).__name__}"
        raise ConfigParseError(msg)
    headers: dict[str, list[str]] = {}
    for name, value in data.items():
        values = [value] if isinstance(value, str) else value
        if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
            msg = f"{where}.{name} must be a string or list of strings"
            raise ConfigParseError(msg)
        headers[str(name)] = list(values)
    return headers


def _parse_bytes(where: str, value: Any) -> bytes:
    """Accept raw bytes (YAML ``!!binary``) or base64 text."""
    if isinstance(value, bytes):
        return value
    if not isinstance(value, str):
        msg = f"{where} must be bytes or base64 text, got {type(value).__name__}"
        raise ConfigParseError(msg)
    try:
        return base64.b64decode(value, validate=True)
    except binascii.Error as e:
        msg = f"{where} is not valid base64: {e}"
        raise ConfigParseError(msg) from e


# ═══════════════════════════════════════════════════════════════════════════════
# Loading (config types → runtime matchers and replies)
# ═══════════════════════════════════════════════════════════════════════════════


def load_stubs(config: StubConfig) -> list[tuple[Matcher, Reply]]:
    """Turn a StubConfig into (matcher, reply) pairs in declaration order.

    Raises:
        InvalidPatternError: If a path_regex is not valid RE2 syntax.
    """
    stubs = [(_load_match(e.match), _load_reply(e.reply)) for e in config.stubs]
    logger.debug("loaded %d stubs from config", len(stubs))
    return stubs


def read_yaml(source: str | Path) -> dict[str, Any]:
    """Read stub config from a YAML file path or YAML text.

    A ``Path`` is always read from disk; a ``str`` is read from disk when it
    names an existing file and parsed as YAML text otherwise.

    Raises:
        ConfigParseError: If the YAML is invalid or not a mapping.
    """
    if isinstance(source, Path) or (
        "\n" not in source and source.endswith((".yaml", ".yml")) and Path(source).is_file()
    ):
        text = Path(source).read_text(encoding="utf-8")
    else:
        text = source
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        msg = f"invalid YAML: {e}"
        raise ConfigParseError(msg) from e
    if not isinstance(data, dict):
        msg = f"expected a YAML mapping, got {type(data).__name__}"
        raise ConfigParseError(msg)
    return data


def _load_match(config: MatchConfig) -> Matcher:
    match config:
        case PathMatchConfig(path=path, method=method, query_params=query, data=data):
            return PathMatcher(path, method=method, query_params=query, data=data)
        case PatternMatchConfig(kind="regex", pattern=pattern, method=method):
            return CustomMatcher(PathRegex(pattern, method=method))
        case PatternMatchConfig(kind="prefix", pattern=pattern, method=method):
            return CustomMatcher(PathPrefix(pattern, method=method))
        case _:  # pragma: no cover
            msg = f"unknown match config type: {type(config).__name__}"
            raise ConfigParseError(msg)


def _load_reply(config: ReplyConfig) -> Reply:
    match config:
        case JsonReplyConfig(data=data, status=status, headers=headers):
            return JsonReply(data, status=status, headers=headers)
        case TextReplyConfig(text=text, status=status, headers=headers):
            return TextReply(text, status=status, headers=headers)
        case BytesReplyConfig(
            content=content, content_type=content_type, status=status, headers=headers
        ):
            return BytesReply(content, content_type=content_type, status=status, headers=headers)
        case _:  # pragma: no cover
            msg = f"unknown reply config type: {type(config).__name__}"
            raise ConfigParseError(msg)
