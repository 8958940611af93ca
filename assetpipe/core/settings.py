"""Runtime settings resolved once per invocation."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CSS_COMMAND = (
    "npx --no-install postcss {input} --use tailwindcss --use autoprefixer "
    "--no-map --output {output}"
)


class ModeSettings(BaseSettings):
    """The conventional unprefixed ``PROD`` switch."""

    model_config = SettingsConfigDict(case_sensitive=False)

    prod: bool = False


class BuildSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ASSETPIPE_",
        case_sensitive=False,
        frozen=True,
    )

    prod: bool = Field(default=False, description="Production mode: minify, no source maps")
    root: Path = Field(default_factory=Path.cwd)
    config_file: Path = Path("assetpipe.yaml")
    # {input} and {output} are substituted; without {output} stdout is used.
    css_command: str = DEFAULT_CSS_COMMAND
    babel_presets: list[str] = ["es2015"]
    server_host: str = "127.0.0.1"
    server_port: int = 3000
    live_css: bool = True
    max_workers: int | None = None
