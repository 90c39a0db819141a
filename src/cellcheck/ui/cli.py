"""Command-line interface router for cellcheck."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

import yaml

from cellcheck.config import CellcheckSettings, load_settings
from cellcheck.domain.models import Signature
from cellcheck.domain.tree import CellIndex
from cellcheck.errors import ConfigLoadError, CyclicCompositionError, LoadError, ParseError
from cellcheck.loading import LoadedTree, load_cell_tree
from cellcheck.observability import configure_logging
from cellcheck.parsing.parser import ROOT_KEY
from cellcheck.scanning import RegexPatternScanner
from cellcheck.signature import fingerprint, sign_tree, verify_detailed
from cellcheck.ui.render import CLIRenderer, create_renderer
from cellcheck.validation import ValidationPipeline


@dataclass(frozen=True, slots=True)
class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    message: str
    exit_code: int = 1

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse command router."""

    parser = argparse.ArgumentParser(
        prog="cellcheck",
        description=(
            "cellcheck - static validator and signer for composable cell trees.\n\n"
            "Common workflows:\n"
            "  cellcheck validate app.transformer.fc   Run all checks on a tree\n"
            "  cellcheck sign app.transformer.fc --write\n"
            "  cellcheck fingerprint app.transformer.fc\n"
            "  cellcheck scan app.transformer.fc       Scan logic bodies only\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("file", help="Root cell file.")
    common.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to cellcheck TOML config (default: ./cellcheck.toml if present).",
    )
    common.add_argument(
        "--project-root",
        default=None,
        help="Directory child references resolve against (default: nearest project marker).",
    )
    common.add_argument(
        "--json", action="store_true", default=False, help="Emit machine-readable JSON."
    )
    common.add_argument(
        "--verbose", "-v", action="store_true", default=False, help="Log at DEBUG level."
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    validate_parser = subparsers.add_parser(
        "validate", parents=[common], help="Run the validation pipeline over a cell tree"
    )
    validate_parser.add_argument(
        "--check",
        dest="checks",
        action="append",
        default=None,
        help="Run only this check id (repeatable).",
    )
    validate_parser.add_argument(
        "--no-scan",
        action="store_true",
        default=False,
        help="Skip scanning logic bodies for banned patterns.",
    )
    validate_parser.set_defaults(handler=_cmd_validate)

    sign_parser = subparsers.add_parser(
        "sign", parents=[common], help="Recompute signatures bottom-up"
    )
    sign_parser.add_argument(
        "--write",
        action="store_true",
        default=False,
        help="Write the new signatures back into the source files.",
    )
    sign_parser.set_defaults(handler=_cmd_sign)

    fingerprint_parser = subparsers.add_parser(
        "fingerprint", parents=[common], help="Print the computed fingerprint of the root cell"
    )
    fingerprint_parser.set_defaults(handler=_cmd_fingerprint)

    scan_parser = subparsers.add_parser(
        "scan", parents=[common], help="Scan every logic body for banned patterns"
    )
    scan_parser.set_defaults(handler=_cmd_scan)

    return parser


# ---------------------------------------------------------------------------
# Entrypoints
# ---------------------------------------------------------------------------


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, route to a command handler, and return process exit code."""

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)
    handler = getattr(namespace, "handler", None)
    if not callable(handler):
        parser.print_help(sys.stderr)
        return 2

    try:
        result = handler(namespace)
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    return int(result)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_validate(args: argparse.Namespace) -> int:
    overrides: dict[str, object] = {}
    if args.checks:
        overrides["checks.enabled"] = list(args.checks)
    if args.no_scan:
        overrides["scan.enabled"] = False
    settings = _load_settings(args, overrides)
    loaded = _load_tree(args, settings)

    context = settings.to_validation_context(
        name_hints=loaded.name_hints, scanner=RegexPatternScanner()
    )
    report = ValidationPipeline(check_ids=settings.enabled_checks).run(loaded.root, context)

    if args.json:
        _emit_json({"command": "validate", **report.to_dict()})
    else:
        _get_renderer(args).report(report)
    return 0 if report.accepted else 1


def _cmd_sign(args: argparse.Namespace) -> int:
    settings = _load_settings(args)
    loaded = _load_tree(args, settings)
    try:
        signed = sign_tree(loaded.root)
    except CyclicCompositionError as exc:
        raise CLIError(str(exc), exit_code=2) from exc

    index = CellIndex(signed)
    entries: list[dict[str, object]] = []
    written: list[str] = []
    for node in index.walk():
        signature = node.cell.signature
        if signature is None:
            continue
        entries.append({"path": node.path, "fingerprint": signature.fingerprint})
        origin = loaded.origins.get(node.path)
        if args.write and origin is not None and str(origin) not in written:
            _write_signature(origin, signature)
            written.append(str(origin))

    if args.json:
        _emit_json({"command": "sign", "cells": entries, "written": written})
        return 0

    renderer = _get_renderer(args)
    renderer.table(
        ("cell", "fingerprint"),
        [(str(entry["path"]), str(entry["fingerprint"])) for entry in entries],
    )
    if written:
        renderer.section("Updated files:")
        renderer.items(written)
    return 0


def _cmd_fingerprint(args: argparse.Namespace) -> int:
    settings = _load_settings(args)
    root = _load_tree(args, settings).root
    verification = verify_detailed(root)
    payload: dict[str, object] = {
        "command": "fingerprint",
        "cell": root.name,
        "computed": fingerprint(root),
        "stored": verification.stored,
        "matches": verification.ok,
    }

    if args.json:
        _emit_json(payload)
        return 0

    renderer = _get_renderer(args)
    renderer.heading(root.name)
    renderer.kv("computed", payload["computed"])
    renderer.kv("stored", verification.stored or "(none)")
    renderer.kv("matches", "yes" if verification.ok else "no")
    return 0


def _cmd_scan(args: argparse.Namespace) -> int:
    settings = _load_settings(args)
    root = _load_tree(args, settings).root
    scanner = RegexPatternScanner()

    findings: list[dict[str, str]] = []
    for node in CellIndex(root).walk():
        for section, body in node.cell.logic:
            for finding in scanner.scan(body):
                findings.append(
                    {
                        "path": node.path,
                        "section": section,
                        "pattern": finding.pattern_label,
                        "message": finding.message,
                    }
                )

    if args.json:
        _emit_json({"command": "scan", "clean": not findings, "findings": findings})
    else:
        renderer = _get_renderer(args)
        if not findings:
            renderer.text("No banned patterns found.")
        renderer.table(
            ("cell", "section", "pattern", "message"),
            [
                (item["path"], item["section"], item["pattern"], item["message"])
                for item in findings
            ],
        )
    return 1 if findings else 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _emit_json(payload: Mapping[str, object]) -> None:
    """Emit a JSON payload to stdout with deterministic formatting."""

    print(json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))


def _get_renderer(args: argparse.Namespace) -> CLIRenderer:
    return create_renderer(verbose=bool(getattr(args, "verbose", False)))


def _load_settings(
    args: argparse.Namespace, overrides: Mapping[str, object] | None = None
) -> CellcheckSettings:
    try:
        settings = load_settings(args.config_path, cli_overrides=overrides)
    except ConfigLoadError as exc:
        raise CLIError(str(exc), exit_code=2) from exc
    configure_logging(
        "DEBUG" if args.verbose else settings.log_level, json_output=settings.log_json
    )
    return settings


def _load_tree(args: argparse.Namespace, settings: CellcheckSettings) -> LoadedTree:
    try:
        return load_cell_tree(
            args.file, project_root=args.project_root, types_dir=settings.types_dir
        )
    except (ParseError, LoadError, CyclicCompositionError) as exc:
        raise CLIError(str(exc), exit_code=2) from exc


def _write_signature(path: Path, signature: Signature) -> None:
    """Replace the ``signature`` section of one cell file, keeping the rest."""

    try:
        document = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise CLIError(f"unable to rewrite {path}: {exc}", exit_code=2) from exc

    body = document
    wrapped = isinstance(document, dict) and len(document) == 1
    if wrapped and isinstance(document.get(ROOT_KEY), dict):
        body = document[ROOT_KEY]
    if not isinstance(body, dict):
        raise CLIError(f"unable to rewrite {path}: document root is not a mapping", exit_code=2)
    body["signature"] = signature.to_dict()

    if path.suffix == ".json":
        rendered = json.dumps(document, indent=2, ensure_ascii=False) + "\n"
    else:
        rendered = yaml.safe_dump(document, sort_keys=False, allow_unicode=True)
    path.write_text(rendered, encoding="utf-8")


__all__ = ["CLIError", "build_parser", "run_cli"]
