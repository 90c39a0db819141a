"""Static pattern scanner for opaque logic bodies.

The validation pipeline never interprets logic. It forwards each body to a
``PatternScanner`` and folds the findings into its report. The default
scanner flags constructs that give a cell undeclared side channels or hide
code from static inspection.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Final, Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class ScanFinding:
    pattern_label: str
    message: str


@dataclass(frozen=True, slots=True)
class BannedPattern:
    label: str
    regex: re.Pattern[str]
    message: str


@runtime_checkable
class PatternScanner(Protocol):
    def scan(self, body_text: str) -> list[ScanFinding]: ...


def _pattern(label: str, expression: str, message: str) -> BannedPattern:
    return BannedPattern(label=label, regex=re.compile(expression), message=message)


DEFAULT_BANNED_PATTERNS: Final[tuple[BannedPattern, ...]] = (
    _pattern("fetch()", r"\bfetch\s*\(", "fetch() detected: undeclared network access"),
    _pattern(
        "XMLHttpRequest",
        r"\bXMLHttpRequest\b",
        "XMLHttpRequest detected: undeclared network access",
    ),
    _pattern(
        "WebSocket", r"new\s+WebSocket\s*\(", "WebSocket detected: undeclared persistent connection"
    ),
    _pattern("fs.*", r"\bfs\.\w+", "filesystem call detected: filesystem side channel"),
    _pattern(
        "require('fs')",
        r"""require\s*\(\s*['"]fs['"]\s*\)""",
        "require('fs') detected: filesystem side channel",
    ),
    _pattern("eval()", r"\beval\s*\(", "eval() detected: code injection vector"),
    _pattern(
        "new Function()", r"new\s+Function\s*\(", "new Function() detected: code injection vector"
    ),
    _pattern("process.env", r"\bprocess\.env\b", "process.env detected: undeclared external data"),
    _pattern("globalThis", r"\bglobalThis\b", "globalThis detected: shared global state access"),
    _pattern("global[]", r"\bglobal\[", "global[] detected: shared global state access"),
    _pattern(
        "identity mutation",
        r"this\.identity\s*=",
        "identity mutation detected: violates immutable contract",
    ),
    _pattern("atob()", r"\batob\s*\(", "atob() detected: base64 decode can hide banned patterns"),
    _pattern(
        "btoa()", r"\bbtoa\s*\(", "btoa() detected: base64 encode enables exfiltration encoding"
    ),
    _pattern(
        "Buffer.from(base64)",
        r"""Buffer\.from\s*\([\s\S]*?['"]base64['"]""",
        "Buffer.from(..., 'base64') detected: base64 decode can hide banned patterns",
    ),
    _pattern(
        "Function() template literal",
        r"\bFunction\s*\(\s*`",
        "Function() with template literal detected: code injection vector",
    ),
    _pattern(
        "dynamic require()",
        r"""\brequire\s*\(\s*[^'"\s]""",
        "dynamic require() detected: variable module loading bypasses static analysis",
    ),
    _pattern(
        "dynamic import()",
        r"\bimport\s*\(",
        "dynamic import() detected: loads arbitrary modules at runtime",
    ),
    _pattern(
        "hex escape",
        r"\\x[0-9a-fA-F]{2}",
        "hex escape detected: can hide banned keywords character by character",
    ),
    _pattern(
        "unicode escape",
        r"\\u[0-9a-fA-F]{4}",
        "unicode escape detected: can hide banned keywords character by character",
    ),
)


class RegexPatternScanner:
    """Report each banned pattern at most once per body, in declaration order."""

    def __init__(self, patterns: Iterable[BannedPattern] | None = None) -> None:
        self._patterns: tuple[BannedPattern, ...] = (
            DEFAULT_BANNED_PATTERNS if patterns is None else tuple(patterns)
        )

    @property
    def patterns(self) -> Sequence[BannedPattern]:
        return self._patterns

    def scan(self, body_text: str) -> list[ScanFinding]:
        if not body_text:
            return []
        return [
            ScanFinding(pattern_label=pattern.label, message=pattern.message)
            for pattern in self._patterns
            if pattern.regex.search(body_text) is not None
        ]


__all__ = [
    "BannedPattern",
    "DEFAULT_BANNED_PATTERNS",
    "PatternScanner",
    "RegexPatternScanner",
    "ScanFinding",
]
