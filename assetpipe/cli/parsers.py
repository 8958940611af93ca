"""CLI option parsers and validators."""

from __future__ import annotations

from pathlib import Path

import typer
from pydantic import ValidationError

from ..core.settings import BuildSettings, ModeSettings


def parse_root(value: Path | None) -> Path | None:
    """Validate the project root option."""
    if value is None:
        return None
    if not value.is_dir():
        raise typer.BadParameter(f"Not a directory: {value}")
    return value


def load_settings(*, prod: bool | None, root: Path | None) -> BuildSettings:
    """Resolve settings from the environment, with CLI flags taking precedence.

    Without ``--prod/--no-prod`` the mode comes from ``PROD`` or
    ``ASSETPIPE_PROD``.
    """
    overrides: dict[str, object] = {}
    try:
        if prod is None and ModeSettings().prod:
            prod = True
        if prod is not None:
            overrides["prod"] = prod
        if root is not None:
            overrides["root"] = root
        return BuildSettings(**overrides)
    except ValidationError as e:
        raise typer.BadParameter(f"Invalid settings: {e}") from e
