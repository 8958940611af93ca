"""Composite orchestrations: build, bundle and dev."""

from __future__ import annotations

import dataclasses
import logging
import threading
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Any

from ..server.monitor import Monitor, default_bindings
from ..server.session import DevSession
from ..tasks import TRANSFORMS, BuildContext, compress
from .graph import TaskGraph

logger = logging.getLogger(__name__)

SINGLE_TASKS = {**TRANSFORMS, "compress": compress}


def run_task(ctx: BuildContext, name: str) -> Any:
    """Run one named task through the executor."""
    graph = TaskGraph()
    graph.add(name, partial(SINGLE_TASKS[name], ctx))
    return graph.run()[name]


def build_graph(ctx: BuildContext) -> TaskGraph:
    """All transform tasks, independent of each other."""
    graph = TaskGraph()
    for name, task in TRANSFORMS.items():
        graph.add(name, partial(task, ctx))
    return graph


def build(ctx: BuildContext) -> dict[str, Any]:
    return build_graph(ctx).run(max_workers=ctx.settings.max_workers)


def bundle(ctx: BuildContext) -> dict[str, Any]:
    graph = build_graph(ctx)
    graph.add("compress", partial(compress, ctx), after=TRANSFORMS)
    return graph.run(max_workers=ctx.settings.max_workers)


@dataclass
class DevService:
    """Running dev server and monitor with an explicit stop."""

    session: DevSession | None
    monitor: Monitor
    stopped: threading.Event = dataclasses.field(default_factory=threading.Event)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until ``stop`` is called or the timeout expires."""
        return self.stopped.wait(timeout)

    def stop(self) -> None:
        if self.stopped.is_set():
            return
        self.monitor.stop()
        if self.session is not None:
            self.session.stop()
        self.stopped.set()
        logger.info("Dev session stopped")


def create_session(ctx: BuildContext) -> DevSession:
    settings = ctx.settings
    return DevSession(
        ctx.root / Path(ctx.config.serve_root),
        host=settings.server_host,
        port=settings.server_port,
        live_css=settings.live_css,
    )


def create_monitor(ctx: BuildContext) -> Monitor:
    """Monitor rebuilding each watched category, reloading the session if any."""
    session = ctx.session
    return Monitor(
        ctx.root,
        default_bindings(ctx.config.paths),
        partial(run_task, ctx),
        reload=session.reload if session is not None else None,
    )


def monitor(ctx: BuildContext) -> DevService:
    """Start watching without a server."""
    watcher = create_monitor(ctx)
    watcher.start()
    return DevService(session=None, monitor=watcher)


def dev(ctx: BuildContext, session: DevSession | None = None) -> DevService:
    """Build everything, start the server, then start the monitor."""
    session = session if session is not None else create_session(ctx)
    ctx = dataclasses.replace(ctx, session=session)
    watcher = create_monitor(ctx)

    graph = build_graph(ctx)
    graph.add("serve", lambda cancel: session.start(), after=TRANSFORMS)
    graph.add("monitor", lambda cancel: watcher.start(), after=("serve",))
    try:
        graph.run(max_workers=ctx.settings.max_workers)
    except BaseException:
        session.stop()
        watcher.stop()
        raise
    return DevService(session=session, monitor=watcher)
