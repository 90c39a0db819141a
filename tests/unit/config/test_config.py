"""
cellcheck - unit tests for configuration loading and validation

File: tests/unit/config/test_config.py
Last updated: 2026-10-19

Purpose
- Verify precedence (CLI > env > file > defaults), env coercion, strict
  validation, and the typed settings view.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from cellcheck.config.loader import dump_effective_config, load_config, load_settings
from cellcheck.config.schema import (
    DEFAULT_CONFIG,
    CellcheckSettings,
    ConfigValidationError,
    default_config,
    merge_config,
    validate_config,
)
from cellcheck.constants import MAX_BUDGET_UNITS
from cellcheck.errors import ConfigLoadError
from cellcheck.scanning.scanner import RegexPatternScanner
from cellcheck.validation.pipeline import DEFAULT_CHECK_IDS


def write_toml(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_without_any_source(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)

    config = load_config(environ={})

    assert config == default_config()
    assert validate_config(DEFAULT_CONFIG) == ()


def test_file_env_and_cli_layer_in_order(tmp_path: Path) -> None:
    config_file = write_toml(
        tmp_path / "cellcheck.toml",
        "[budget]\nmax_units = 500\n\n[logging]\nlevel = \"debug\"\njson = false\n",
    )
    environ = {"CELLCHECK_BUDGET_MAX_UNITS": "400", "CELLCHECK_LOGGING_JSON": "yes"}

    config = load_config(
        config_file, environ=environ, cli_overrides={"budget.max_units": 300, "scan.enabled": None}
    )

    assert config["budget"]["max_units"] == 300
    assert config["logging"]["json"] is True
    assert config["logging"]["level"] == "DEBUG"
    assert config["scan"]["enabled"] is True


def test_env_lists_are_comma_separated(tmp_path: Path) -> None:
    config = load_config(
        write_toml(tmp_path / "c.toml", ""),
        environ={"CELLCHECK_CHECKS_ENABLED": "budget-sanity, type-taxonomy,"},
    )

    assert config["checks"]["enabled"] == ["type-taxonomy", "budget-sanity"]


@pytest.mark.parametrize(
    ("name", "value", "message"),
    [
        ("CELLCHECK_BUDGET_MAX_UNITS", "lots", "must be an integer"),
        ("CELLCHECK_SCAN_ENABLED", "maybe", "must be a boolean"),
    ],
)
def test_env_values_must_coerce(tmp_path: Path, name: str, value: str, message: str) -> None:
    with pytest.raises(ConfigLoadError, match=message):
        load_config(write_toml(tmp_path / "c.toml", ""), environ={name: value})


def test_explicit_config_path_must_exist(tmp_path: Path) -> None:
    with pytest.raises(ConfigLoadError, match="not found"):
        load_config(tmp_path / "missing.toml", environ={})


def test_invalid_toml_is_reported(tmp_path: Path) -> None:
    with pytest.raises(ConfigLoadError, match="invalid TOML"):
        load_config(write_toml(tmp_path / "c.toml", "[budget\n"), environ={})


def test_ceiling_can_be_lowered_but_not_raised(tmp_path: Path) -> None:
    with pytest.raises(ConfigValidationError) as exc_info:
        load_config(
            write_toml(tmp_path / "c.toml", f"[budget]\nmax_units = {MAX_BUDGET_UNITS + 1}\n"),
            environ={},
        )

    assert [issue.path for issue in exc_info.value.issues] == ["budget.max_units"]


def test_validation_reports_every_issue() -> None:
    payload = merge_config(
        default_config(),
        {
            "budget": {"max_units": 0},
            "signature": {"prefix_length": 99},
            "checks": {"enabled": ["type-taxonomy", "bogus"]},
            "logging": {"level": "LOUD", "json": "no"},
            "project": {"types_dir": ""},
            "extra": {},
        },
    )

    paths = [issue.path for issue in validate_config(payload)]

    assert paths == [
        "extra",
        "budget.max_units",
        "signature.prefix_length",
        "checks.enabled[1]",
        "logging.level",
        "logging.json",
        "project.types_dir",
    ]


def test_validation_rejects_non_mapping_root() -> None:
    issues = validate_config(["not", "a", "mapping"])

    assert [issue.path for issue in issues] == ["<root>"]


def test_unknown_section_key_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ConfigValidationError, match="scan.verbose: unknown field"):
        load_config(write_toml(tmp_path / "c.toml", "[scan]\nverbose = true\n"), environ={})


def test_settings_view_and_validation_context(tmp_path: Path) -> None:
    config_file = write_toml(
        tmp_path / "c.toml", "[scan]\nenabled = false\n[signature]\nprefix_length = 12\n"
    )
    settings = load_settings(
        config_file,
        environ={},
        cli_overrides={"budget.max_units": 250},
    )

    assert settings == CellcheckSettings(
        max_units=250, prefix_length=12, enabled_checks=DEFAULT_CHECK_IDS, scan_enabled=False
    )
    context = settings.to_validation_context(
        name_hints={"root": "root.transformer.fc"}, scanner=RegexPatternScanner()
    )
    assert context.scanner is None
    assert context.max_units_ceiling == 250
    assert context.prefix_length == 12
    assert context.name_hints == {"root": "root.transformer.fc"}


def test_merge_config_does_not_mutate_inputs() -> None:
    base = default_config()
    merged = merge_config(base, {"budget": {"max_units": 5}})

    assert base["budget"]["max_units"] == MAX_BUDGET_UNITS
    assert merged["budget"]["max_units"] == 5


def test_dump_effective_config_is_deterministic() -> None:
    dumped = dump_effective_config(default_config())

    assert json.loads(dumped) == default_config()
    assert dumped.startswith('{"budget":{"max_units":1000000}')
