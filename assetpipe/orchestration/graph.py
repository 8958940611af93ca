"""Task graph executor with fan-out/fan-in scheduling.

Nodes run on a thread pool as soon as all of their dependencies have
finished. The first failure cancels the rest of the run: queued nodes are
cancelled, dependants never start, and running nodes see the cancellation
event set so they stop before their next file.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from ..core.errors import GraphError, TaskCancelled, TaskFailed

logger = logging.getLogger(__name__)

NodeFunc = Callable[[threading.Event], Any]


@dataclass(frozen=True)
class Node:
    name: str
    func: NodeFunc
    after: tuple[str, ...] = ()


class TaskGraph:
    """A directed acyclic graph of named tasks."""

    def __init__(self) -> None:
        self._nodes: dict[str, Node] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._nodes

    @property
    def names(self) -> list[str]:
        return list(self._nodes)

    def add(self, name: str, func: NodeFunc, *, after: Iterable[str] = ()) -> None:
        """Add a node that runs after every node named in ``after``."""
        if name in self._nodes:
            raise GraphError(f"Duplicate task: {name}")
        self._nodes[name] = Node(name=name, func=func, after=tuple(after))

    def order(self) -> list[str]:
        """Return a topological order, stable with respect to insertion.

        Raises:
            GraphError: On unknown dependencies or cycles
        """
        for node in self._nodes.values():
            unknown = [dep for dep in node.after if dep not in self._nodes]
            if unknown:
                raise GraphError(f"Task '{node.name}' depends on unknown task(s): {unknown}")

        ordered: list[str] = []
        placed: set[str] = set()
        pending = list(self._nodes.values())
        while pending:
            ready = [node for node in pending if set(node.after) <= placed]
            if not ready:
                cycle = ", ".join(node.name for node in pending)
                raise GraphError(f"Dependency cycle between: {cycle}")
            for node in ready:
                ordered.append(node.name)
                placed.add(node.name)
            pending = [node for node in pending if node.name not in placed]
        return ordered

    def run(self, *, max_workers: int | None = None) -> dict[str, Any]:
        """Execute the graph and return each node's result by name.

        Raises:
            TaskFailed: For the first node that raised
        """
        order = self.order()
        if not order:
            return {}

        cancel = threading.Event()
        results: dict[str, Any] = {}
        started: set[str] = set()
        running: dict[Future, str] = {}
        failure: tuple[str, BaseException] | None = None
        workers = max_workers or len(order)

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="assetpipe") as pool:

            def submit_ready() -> None:
                # Nodes wait here rather than in the pool queue, so a failure
                # stops them from ever starting.
                for name in order:
                    if len(running) >= workers:
                        return
                    node = self._nodes[name]
                    if name in started or not all(dep in results for dep in node.after):
                        continue
                    started.add(name)
                    running[pool.submit(self._run_node, node, cancel)] = name

            submit_ready()
            while running:
                done, _ = wait(running, return_when=FIRST_COMPLETED)
                for future in done:
                    name = running.pop(future)
                    if future.cancelled():
                        continue
                    exc = future.exception()
                    if exc is None:
                        results[name] = future.result()
                    elif failure is None and not isinstance(exc, TaskCancelled):
                        failure = (name, exc)
                        cancel.set()
                        for other in running:
                            other.cancel()
                    else:
                        logger.debug(f"Ignoring error from '{name}' after failure: {exc}")
                if failure is None:
                    submit_ready()

        if failure is not None:
            name, exc = failure
            skipped = [node for node in order if node not in results and node != name]
            if skipped:
                logger.warning(f"Not completed after failure: {', '.join(skipped)}")
            raise TaskFailed(name, exc) from exc
        return results

    @staticmethod
    def _run_node(node: Node, cancel: threading.Event) -> Any:
        if cancel.is_set():
            raise TaskCancelled(f"Task '{node.name}' cancelled")
        logger.info(f"Starting '{node.name}'...")
        start = time.monotonic()
        try:
            result = node.func(cancel)
        except TaskCancelled:
            logger.info(f"Cancelled '{node.name}'")
            raise
        except Exception as exc:
            logger.error(f"'{node.name}' errored after {time.monotonic() - start:.2f} s")
            logger.debug(f"'{node.name}' error", exc_info=exc)
            raise
        logger.info(f"Finished '{node.name}' after {time.monotonic() - start:.2f} s")
        return result
