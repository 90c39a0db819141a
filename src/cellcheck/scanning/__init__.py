"""Static pattern scanning of cell logic bodies."""

from cellcheck.scanning.scanner import (
    DEFAULT_BANNED_PATTERNS,
    BannedPattern,
    PatternScanner,
    RegexPatternScanner,
    ScanFinding,
)

__all__ = [
    "BannedPattern",
    "DEFAULT_BANNED_PATTERNS",
    "PatternScanner",
    "RegexPatternScanner",
    "ScanFinding",
]
