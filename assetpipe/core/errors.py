"""Exceptions raised by the build pipeline."""

from __future__ import annotations

from pathlib import Path


class AssetPipeError(Exception):
    """Base class for every error the CLI reports as a failed run."""


class ConfigError(AssetPipeError):
    """Raised when settings or the project config file are invalid."""


class ProjectMetadataError(AssetPipeError):
    """Raised when the project name cannot be resolved."""


class MissingToolError(AssetPipeError):
    """Raised when an external command is not on PATH."""


class TransformError(AssetPipeError):
    """Raised when a processing step fails for a source file."""

    def __init__(self, source: Path | str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = Path(source)


class TaskCancelled(AssetPipeError):
    """Raised inside a task that stopped because a sibling failed."""


class GraphError(AssetPipeError):
    """Raised for duplicate nodes, unknown dependencies or cycles."""


class TaskFailed(AssetPipeError):
    """Raised by the executor when a task graph node fails."""

    def __init__(self, task: str, cause: BaseException) -> None:
        super().__init__(f"Task '{task}' failed: {cause}")
        self.task = task
        self.cause = cause


class ServeError(AssetPipeError):
    """Raised when the development server cannot be started."""
