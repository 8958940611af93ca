"""Per-invocation build context shared by every task."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from ..core.errors import TaskCancelled
from ..core.globs import SourceFile, resolve_sources
from ..core.models import Category, PathEntry, ProjectConfig
from ..core.project import load_project_config
from ..core.settings import BuildSettings

if TYPE_CHECKING:
    from ..server.session import DevSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildContext:
    """Immutable inputs of a run: one mode value for every task."""

    root: Path
    settings: BuildSettings
    config: ProjectConfig
    session: DevSession | None = None

    @property
    def production(self) -> bool:
        return self.settings.prod

    def entry(self, category: Category) -> PathEntry:
        return self.config.paths.entry(category)

    def sources(self, category: Category) -> list[SourceFile]:
        """Resolve a category's globs, warning when nothing matches."""
        entry = self.entry(category)
        files = resolve_sources(self.root, entry.src)
        if not files:
            logger.warning(f"{category.value}: no files matched {list(entry.src)}")
        return files

    def destination(self, category: Category, source: SourceFile) -> Path:
        return self.root / self.entry(category).dest / source.relative

    def relative(self, path: Path) -> str:
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return path.as_posix()


def create_context(settings: BuildSettings) -> BuildContext:
    """Build the context for an invocation from resolved settings."""
    root = settings.root.resolve()
    config = load_project_config(root, settings.config_file)
    mode = "production" if settings.prod else "development"
    logger.debug(f"Project root {root} ({mode})")
    return BuildContext(root=root, settings=settings, config=config)


def check_cancelled(cancel: threading.Event | None, task: str) -> None:
    """Stop a task between files once a sibling has failed."""
    if cancel is not None and cancel.is_set():
        raise TaskCancelled(f"Task '{task}' cancelled")
