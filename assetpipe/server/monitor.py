"""Filesystem monitor: re-run a category's tasks on change, then reload."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from ..core.errors import AssetPipeError
from ..core.globs import glob_base, matches, split_patterns
from ..core.models import Category, PathTable

logger = logging.getLogger(__name__)

_WATCHED_EVENTS = {
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
}

# Categories the monitor rebuilds; copyCss and package are not watched.
WATCHED_CATEGORIES = (
    Category.COPY_ASSETS,
    Category.STYLES,
    Category.SCRIPTS,
    Category.IMAGES,
)


@dataclass(frozen=True)
class WatchBinding:
    """Source globs and the tasks to run, in order, when they change."""

    category: Category
    patterns: tuple[str, ...]
    tasks: tuple[str, ...]


def default_bindings(paths: PathTable) -> list[WatchBinding]:
    return [
        WatchBinding(
            category=category,
            patterns=paths.entry(category).src,
            tasks=(category.value,),
        )
        for category in WATCHED_CATEGORIES
    ]


class _Handler(FileSystemEventHandler):
    def __init__(self, monitor: Monitor) -> None:
        super().__init__()
        self._monitor = monitor

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in _WATCHED_EVENTS:
            return
        for path in (event.src_path, getattr(event, "dest_path", "")):
            if path:
                self._monitor.dispatch(Path(path))


class Monitor:
    """Watches source globs and runs their bindings on change.

    Bindings run on a worker pool: concurrently across categories and
    serially within one. A change arriving while the same binding is
    already queued is folded into that queued run.
    """

    def __init__(
        self,
        root: Path,
        bindings: Iterable[WatchBinding],
        run_task: Callable[[str], Any],
        *,
        reload: Callable[[], None] | None = None,
        observer_factory: Callable[[], Any] = Observer,
    ) -> None:
        self.root = root
        self.bindings = list(bindings)
        self._run_task = run_task
        self._reload = reload
        self._observer_factory = observer_factory
        self._observer: Any = None
        self._pool = ThreadPoolExecutor(
            max_workers=max(len(self.bindings), 1), thread_name_prefix="assetpipe-watch"
        )
        self._locks = {binding.category: threading.Lock() for binding in self.bindings}
        self._queued: set[Category] = set()
        self._queued_lock = threading.Lock()

    def watch_dirs(self) -> list[Path]:
        """Distinct existing glob bases, with nested directories folded in."""
        bases: set[Path] = set()
        for binding in self.bindings:
            include, _ = split_patterns(binding.patterns)
            for pattern in include:
                base = self.root / glob_base(pattern)
                if base.is_dir():
                    bases.add(base)
                else:
                    logger.warning(f"{binding.category.value}: watch base {base} missing")
        ordered = sorted(bases, key=lambda path: len(path.parts))
        dirs: list[Path] = []
        for base in ordered:
            if not any(base == kept or kept in base.parents for kept in dirs):
                dirs.append(base)
        return dirs

    def start(self) -> None:
        handler = _Handler(self)
        self._observer = self._observer_factory()
        for directory in self.watch_dirs():
            self._observer.schedule(handler, str(directory), recursive=True)
            logger.debug(f"Watching {directory}")
        self._observer.start()
        logger.info(f"Watching {len(self.bindings)} source group(s) for changes")

    def stop(self) -> None:
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None
        self._pool.shutdown(wait=True)

    def dispatch(self, path: Path) -> list[Future]:
        """Queue every binding whose globs match ``path``."""
        try:
            rel = path.resolve().relative_to(self.root).as_posix()
        except ValueError:
            return []

        futures: list[Future] = []
        for binding in self.bindings:
            if not matches(rel, binding.patterns):
                continue
            with self._queued_lock:
                if binding.category in self._queued:
                    logger.debug(f"{binding.category.value}: run already queued for {rel}")
                    continue
                self._queued.add(binding.category)
            logger.info(f"Change detected: {rel}")
            futures.append(self._pool.submit(self._trigger, binding))
        return futures

    def _trigger(self, binding: WatchBinding) -> bool:
        with self._locks[binding.category]:
            with self._queued_lock:
                self._queued.discard(binding.category)
            try:
                for name in binding.tasks:
                    self._run_task(name)
            except AssetPipeError as exc:
                logger.error(str(exc))
                return False
            if self._reload is not None:
                self._reload()
            return True
