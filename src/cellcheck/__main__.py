"""Module entrypoint for ``python -m cellcheck``."""

from __future__ import annotations

from cellcheck.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())
