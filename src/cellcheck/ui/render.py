"""Plain-text rendering of validation reports and scan findings for the CLI.

File: src/cellcheck/ui/render.py
Last updated: 2026-10-19

Purpose
- Keep every human-readable output format in one place so CLI handlers only
  decide *what* to show.

Functional requirements
- Output is deterministic: violations are listed in the order checks
  produced them, checks in pipeline order.
- Plain text only; no terminal control sequences.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cellcheck.validation.pipeline import PipelineReport


class CLIRenderer:
    """Thin CLI output renderer writing to ``stream`` (stdout by default)."""

    def __init__(self, *, verbose: bool = False, stream: TextIO | None = None) -> None:
        self.verbose = verbose
        self._stream = stream

    def _print(self, line: str = "") -> None:
        print(line, file=self._stream if self._stream is not None else sys.stdout)

    def heading(self, text: str) -> None:
        self._print(text)

    def kv(self, key: str, value: object) -> None:
        self._print(f"{key}: {value}")

    def text(self, line: str) -> None:
        self._print(line)

    def section(self, title: str) -> None:
        """Print a section header with a preceding blank line."""

        self._print()
        self._print(title)

    def items(self, entries: Sequence[str], *, prefix: str = "- ") -> None:
        for entry in entries:
            self._print(f"  {prefix}{entry}")

    def table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[str]],
        *,
        title: str | None = None,
    ) -> None:
        """Print a column-aligned table; nothing at all when ``rows`` is empty."""

        if not rows:
            return

        col_count = len(headers)
        widths = [len(h) for h in headers]
        for row in rows:
            for i in range(min(len(row), col_count)):
                widths[i] = max(widths[i], len(str(row[i])))

        def _pad(cells: Sequence[str]) -> str:
            parts: list[str] = []
            for i in range(col_count):
                cell = str(cells[i]) if i < len(cells) else ""
                parts.append(cell.ljust(widths[i]))
            return "  ".join(parts).rstrip()

        if title:
            self.section(title)
        self._print(f"  {_pad(list(headers))}")
        self._print(f"  {'  '.join('-' * w for w in widths)}")
        for row in rows:
            self._print(f"  {_pad(list(row))}")

    def ok(self, label: str) -> None:
        self._print(f"  OK    {label}")

    def fail(self, label: str) -> None:
        self._print(f"  FAIL  {label}")

    def report(self, report: PipelineReport) -> None:
        """Render a pipeline report: one status line per check, then violations."""

        verdict = "ACCEPTED" if report.accepted else "REJECTED"
        self.heading(f"{report.root_name}: {verdict}")
        self.kv("cells", report.cell_count)
        self.kv("violations", len(report.violations))
        self.section("Checks:")
        for result in report.results:
            label = f"{result.check_name} ({len(result.violations)})"
            if result.passed:
                self.ok(label)
            else:
                self.fail(label)

        rows = [
            (
                violation.rule_id,
                violation.code,
                violation.path or violation.cell_name,
                violation.message,
            )
            for violation in report.violations
        ]
        self.table(("rule", "code", "cell", "message"), rows, title="Violations:")


def create_renderer(*, verbose: bool = False, stream: TextIO | None = None) -> CLIRenderer:
    return CLIRenderer(verbose=verbose, stream=stream)


__all__ = ["CLIRenderer", "create_renderer"]
