"""Shared fixtures and conformance fixture loading.

Loads YAML fixtures from tests/fixtures/ and converts them to httpx_stub
types for parametrized matcher tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from httpx_stub import PathMatcher, StubRequest

pytest_plugins = ["httpx_stub.testing"]

FIXTURE_DIR = Path(__file__).resolve().parent / "fixtures"


@dataclass
class MatcherCase:
    """A single test case from a matcher conformance fixture."""

    fixture_name: str
    case_name: str
    matcher: PathMatcher
    request: StubRequest
    expect: bool

    @property
    def id(self) -> str:
        return f"{self.fixture_name}: {self.case_name}"


# ─── YAML → httpx_stub type conversion ──────────────────────────────────────


def parse_matcher(spec: dict[str, Any]) -> PathMatcher:
    """Parse a matcher spec into a PathMatcher."""
    return PathMatcher(
        spec["path"],
        method=spec.get("method"),
        query_params=spec.get("query_params"),
        data=spec.get("data"),
    )


def parse_request(spec: dict[str, Any]) -> StubRequest:
    """Parse a request spec into a StubRequest."""
    return StubRequest(
        method=str(spec.get("method", "GET")),
        url=str(spec.get("url", "/")),
        headers={str(k): str(v) for k, v in spec.get("headers", {}).items()},
        data=spec.get("data"),
    )


# ─── Fixture loading ────────────────────────────────────────────────────────


def load_matcher_cases() -> list[MatcherCase]:
    """Load all matcher conformance fixtures."""
    cases: list[MatcherCase] = []
    for yaml_file in sorted(FIXTURE_DIR.glob("*.yaml")):
        cases.extend(_load_file(yaml_file))
    return cases


def _load_file(path: Path) -> list[MatcherCase]:
    """Load a single fixture YAML file (may contain multiple documents)."""
    cases: list[MatcherCase] = []
    with path.open() as f:
        for doc in yaml.safe_load_all(f):
            if doc is None:
                continue
            matcher = parse_matcher(doc["matcher"])
            for case in doc["cases"]:
                cases.append(
                    MatcherCase(
                        fixture_name=doc["name"],
                        case_name=case["name"],
                        matcher=matcher,
                        request=parse_request(case["request"]),
                        expect=bool(case["expect"]),
                    )
                )
    return cases
