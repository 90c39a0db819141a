"""Tests for the regex pattern scanner over opaque logic bodies."""

from __future__ import annotations

import re

import pytest

from cellcheck.scanning.scanner import (
    DEFAULT_BANNED_PATTERNS,
    BannedPattern,
    PatternScanner,
    RegexPatternScanner,
)


@pytest.mark.parametrize(
    ("body", "label"),
    [
        ("return fetch('/api');", "fetch()"),
        ("const x = new XMLHttpRequest();", "XMLHttpRequest"),
        ("const ws = new WebSocket(url);", "WebSocket"),
        ("fs.readFileSync(path)", "fs.*"),
        ("const f = require('fs');", "require('fs')"),
        ("eval(code)", "eval()"),
        ("new Function('a', 'return a')", "new Function()"),
        ("const key = process.env.SECRET;", "process.env"),
        ("globalThis.cache = {}", "globalThis"),
        ("global['x'] = 1", "global[]"),
        ("this.identity = other;", "identity mutation"),
        ("atob(payload)", "atob()"),
        ("btoa(payload)", "btoa()"),
        ("Buffer.from(data, 'base64')", "Buffer.from(base64)"),
        ("Function(`return 1`)", "Function() template literal"),
        ("require(moduleName)", "dynamic require()"),
        ("await import('./x.js')", "dynamic import()"),
        ("const s = '\\x65val';", "hex escape"),
        ("const s = '\\u0065val';", "unicode escape"),
    ],
)
def test_each_banned_pattern_is_detected(body: str, label: str) -> None:
    labels = [finding.pattern_label for finding in RegexPatternScanner().scan(body)]

    assert label in labels


def test_clean_body_has_no_findings() -> None:
    assert RegexPatternScanner().scan("return input.trim().toUpperCase();") == []
    assert RegexPatternScanner().scan("") == []


def test_findings_follow_declaration_order_without_duplicates() -> None:
    findings = RegexPatternScanner().scan("eval(a); fetch(b); eval(c);")

    assert [finding.pattern_label for finding in findings] == ["fetch()", "eval()"]
    assert findings[1].message.startswith("eval() detected")


def test_custom_patterns_replace_the_defaults() -> None:
    scanner = RegexPatternScanner(
        [BannedPattern(label="todo", regex=re.compile(r"TODO"), message="unfinished logic")]
    )

    assert [finding.message for finding in scanner.scan("// TODO eval(x)")] == ["unfinished logic"]
    assert len(scanner.patterns) == 1


def test_scanner_satisfies_the_protocol() -> None:
    assert isinstance(RegexPatternScanner(), PatternScanner)
    assert len(DEFAULT_BANNED_PATTERNS) == 19
