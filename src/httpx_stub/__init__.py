"""httpx_stub — deterministic stubbed responses for httpx clients.

All public types are exported from this module for flat imports:

    from httpx_stub import StubTransport, PathMatcher, JsonReply
"""

__version__ = "0.1.0"

# Config-driven stubs, see httpx_stub._config for details
from httpx_stub._config import (
    BytesReplyConfig,
    ConfigParseError,
    JsonReplyConfig,
    PathMatchConfig,
    PatternMatchConfig,
    StubConfig,
    StubEntryConfig,
    TextReplyConfig,
    load_stubs,
    parse_stub_config,
    read_yaml,
)

# Matchers
from httpx_stub._matcher import (
    CustomMatcher,
    Matcher,
    PathMatcher,
    StubError,
    ordered_equals,
    unordered_equals,
)

# Predicates for CustomMatcher
from httpx_stub._predicates import (
    AllOf,
    AnyOf,
    HeaderEquals,
    InvalidPatternError,
    Not,
    PathPrefix,
    PathRegex,
)

# Replies
from httpx_stub._reply import (
    BytesReply,
    CustomReply,
    JsonReply,
    JsonWithReply,
    Reply,
    TextReply,
    encode_json,
)
from httpx_stub._request import StubRequest

# Transport
from httpx_stub._transport import NoStubMatchedError, Stub, StubTransport
from httpx_stub._types import BuildsResponse, MatchesRequest, RequestStream

__all__ = [
    # Protocols
    "MatchesRequest",
    "BuildsResponse",
    "RequestStream",
    # Descriptor
    "StubRequest",
    # Matchers
    "Matcher",
    "PathMatcher",
    "CustomMatcher",
    "ordered_equals",
    "unordered_equals",
    # Predicates
    "PathRegex",
    "PathPrefix",
    "HeaderEquals",
    "AllOf",
    "AnyOf",
    "Not",
    # Replies
    "Reply",
    "JsonReply",
    "JsonWithReply",
    "TextReply",
    "BytesReply",
    "CustomReply",
    "encode_json",
    # Transport
    "Stub",
    "StubTransport",
    # Config types
    "PathMatchConfig",
    "PatternMatchConfig",
    "JsonReplyConfig",
    "TextReplyConfig",
    "BytesReplyConfig",
    "StubEntryConfig",
    "StubConfig",
    "parse_stub_config",
    "load_stubs",
    "read_yaml",
    # Errors
    "StubError",
    "NoStubMatchedError",
    "ConfigParseError",
    "InvalidPatternError",
]
