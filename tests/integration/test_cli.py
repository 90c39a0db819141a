"""
cellcheck - CLI integration contracts

File: tests/integration/test_cli.py
Last updated: 2026-10-19

Purpose
- Drive ``validate``, ``sign``, ``fingerprint`` and ``scan`` end to end over a
  project on disk and check exit codes, JSON payloads and file side effects.
- One subprocess run of ``python -m cellcheck`` guards the module entrypoint.
"""

from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path
from typing import Any

import pytest
import yaml

from cellcheck.main import ExitCode, cli_entrypoint
from cellcheck.ui.cli import build_parser, run_cli
from cellcheck.parsing.parser import dump_cell_document
from tests.builders import channel, transformer, write_cell_file

PROJECT_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = PROJECT_ROOT / "src"

pytestmark = pytest.mark.integration


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "fractal.json").write_text("{}", encoding="utf-8")
    write_cell_file(tmp_path / "cells" / "parse.transformer.fc", transformer("parse"))
    write_cell_file(tmp_path / "cells" / "render.transformer.fc", transformer("render"))
    write_cell_file(tmp_path / "cells" / "bus.channel.fc", channel("bus"))
    write_cell_file(
        tmp_path / "pipeline.transformer.fc",
        transformer("pipeline"),
        ("cells/parse.transformer", "parse"),
        ("cells/render.transformer", "render"),
        ("cells/bus.channel", "bus"),
    )
    return tmp_path


def _json_out(capsys: pytest.CaptureFixture[str]) -> dict[str, Any]:
    captured = capsys.readouterr()
    return json.loads(captured.out)


def test_unsigned_composition_is_rejected_then_accepted_after_sign(
    project: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    root_file = str(project / "pipeline.transformer.fc")

    assert run_cli(["validate", root_file, "--json"]) == 1
    rejected = _json_out(capsys)
    assert rejected["accepted"] is False
    assert rejected["command"] == "validate"
    failed = {
        result["check_name"]
        for result in rejected["results"]
        if not result["passed"]
    }
    assert "Signature Integrity Check" in failed

    assert run_cli(["sign", root_file, "--write", "--json"]) == 0
    signed = _json_out(capsys)
    assert [entry["path"] for entry in signed["cells"]] == [
        "pipeline",
        "pipeline/parse",
        "pipeline/render",
        "pipeline/bus",
    ]
    assert len(signed["written"]) == 4

    assert run_cli(["validate", root_file, "--json"]) == 0
    accepted = _json_out(capsys)
    assert accepted["accepted"] is True
    assert accepted["cell_count"] == 4


def test_sign_write_keeps_the_rest_of_the_document(project: Path) -> None:
    root_file = project / "pipeline.transformer.fc"
    before = yaml.safe_load(root_file.read_text(encoding="utf-8"))

    assert run_cli(["sign", str(root_file), "--write"]) == 0

    after = yaml.safe_load(root_file.read_text(encoding="utf-8"))
    assert set(after) == {"cell"}
    assert after["cell"]["children"] == before["cell"]["children"]
    assert after["cell"]["identity"] == before["cell"]["identity"]
    assert len(after["cell"]["signature"]["child_fingerprints"]) == 3


def test_unsigned_document_is_reported_then_signed_in_place(
    project: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    app_file = project / "app.fc"
    app_file.write_text(dump_cell_document(transformer("app")), encoding="utf-8")
    assert "signature" not in yaml.safe_load(app_file.read_text(encoding="utf-8"))["cell"]

    assert run_cli(["validate", str(app_file), "--json"]) == 1
    rejected = _json_out(capsys)
    reported = {
        violation["code"]
        for result in rejected["results"]
        for violation in result["violations"]
    }
    assert {"signature.missing", "contract.signature-missing"} <= reported
    assert not any(code.startswith("kind.") for code in reported)

    assert run_cli(["sign", str(app_file), "--write", "--json"]) == 0
    written = _json_out(capsys)["written"]
    assert [Path(path).resolve() for path in written] == [app_file.resolve()]
    stored = yaml.safe_load(app_file.read_text(encoding="utf-8"))["cell"]["signature"]
    assert len(stored["fingerprint"]) == 64

    assert run_cli(["validate", str(app_file), "--json"]) == 0
    assert _json_out(capsys)["accepted"] is True


def test_fingerprint_reports_drift(project: Path, capsys: pytest.CaptureFixture[str]) -> None:
    root_file = str(project / "pipeline.transformer.fc")

    assert run_cli(["fingerprint", root_file, "--json"]) == 0
    before = _json_out(capsys)
    assert before["matches"] is False

    run_cli(["sign", root_file, "--write"])
    capsys.readouterr()

    assert run_cli(["fingerprint", root_file, "--json"]) == 0
    after = _json_out(capsys)
    assert after["matches"] is True
    assert after["computed"] == after["stored"]


def test_text_report_lists_checks(project: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = run_cli(["validate", str(project / "pipeline.transformer.fc")])

    out = capsys.readouterr().out
    assert exit_code == 1
    assert out.startswith("pipeline: REJECTED")
    assert "  OK    Type Taxonomy Check (0)" in out
    assert "FAIL  Signature Integrity Check" in out
    assert "signature.mismatch" in out


def test_check_selection_narrows_the_pipeline(
    project: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    root_file = str(project / "pipeline.transformer.fc")

    assert run_cli(["validate", root_file, "--check", "type-taxonomy", "--json"]) == 0
    payload = _json_out(capsys)
    assert [result["check_name"] for result in payload["results"]] == [
        "Type Taxonomy Check",
        "Logic Scan",
    ]


def test_scan_flags_banned_logic(project: Path, capsys: pytest.CaptureFixture[str]) -> None:
    write_cell_file(
        project / "cells" / "render.transformer.fc",
        transformer("render", logic=(("process", "return fetch(input);"),)),
    )
    root_file = str(project / "pipeline.transformer.fc")

    assert run_cli(["scan", root_file, "--json"]) == 1
    payload = _json_out(capsys)
    assert payload["clean"] is False
    assert payload["findings"] == [
        {
            "path": "pipeline/render",
            "section": "process",
            "pattern": "fetch()",
            "message": "fetch() detected: undeclared network access",
        }
    ]

    assert run_cli(["validate", root_file, "--no-scan", "--check", "type-taxonomy"]) == 0


def test_cyclic_project_exits_with_config_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)
    write_cell_file(tmp_path / "a.transformer.fc", transformer("a"), ("b.transformer.fc", "b"))
    write_cell_file(tmp_path / "b.transformer.fc", transformer("b"), ("a.transformer.fc", "a"))

    assert run_cli(["validate", str(tmp_path / "a.transformer.fc")]) == 2
    assert "cycle: a.transformer.fc -> b.transformer.fc -> a.transformer.fc" in (
        capsys.readouterr().err
    )


def test_missing_file_and_bad_config_exit_with_config_error(
    project: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert run_cli(["validate", str(project / "nope.transformer.fc")]) == 2
    assert "error: cell file not found" in capsys.readouterr().err

    (project / "bad.toml").write_text("[budget]\nmax_units = 0\n", encoding="utf-8")
    root_file = str(project / "pipeline.transformer.fc")
    assert run_cli(["validate", root_file, "--config", str(project / "bad.toml")]) == 2
    assert "budget.max_units" in capsys.readouterr().err


def test_config_file_in_working_directory_is_picked_up(
    project: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    (project / "cellcheck.toml").write_text(
        '[checks]\nenabled = ["provenance-completeness"]\n[scan]\nenabled = false\n',
        encoding="utf-8",
    )

    assert run_cli(["validate", str(project / "pipeline.transformer.fc"), "--json"]) == 0
    payload = _json_out(capsys)
    assert [result["check_name"] for result in payload["results"]] == [
        "Provenance Completeness Check"
    ]


def test_cli_entrypoint_normalizes_argparse_exits(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli_entrypoint(["--help"]) == ExitCode.SUCCESS
    assert cli_entrypoint(["validate"]) == ExitCode.CONFIG_ERROR
    assert "usage:" in capsys.readouterr().err


def test_parser_exposes_every_command() -> None:
    parser = build_parser()

    for command in ("validate", "sign", "fingerprint", "scan"):
        namespace = parser.parse_args([command, "root.fc"])
        assert namespace.command == command
        assert callable(namespace.handler)


def test_module_entrypoint_runs_in_a_subprocess(project: Path) -> None:
    env = os.environ.copy()
    existing_pythonpath = env.get("PYTHONPATH")
    env["PYTHONPATH"] = (
        str(SRC_PATH) if not existing_pythonpath else f"{SRC_PATH}{os.pathsep}{existing_pythonpath}"
    )

    completed = subprocess.run(
        [sys.executable, "-m", "cellcheck", "fingerprint", "pipeline.transformer.fc", "--json"],
        cwd=project,
        text=True,
        capture_output=True,
        check=False,
        env=env,
    )

    assert completed.returncode == 0, completed.stderr
    payload = json.loads(completed.stdout)
    assert payload["command"] == "fingerprint"
    assert payload["cell"] == "pipeline"
    assert len(payload["computed"]) == 64
