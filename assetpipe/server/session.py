"""Development server session backed by livereload."""

from __future__ import annotations

import asyncio
import logging
import threading
from pathlib import Path
from typing import Any, Callable, Iterable

from livereload import Server
from livereload.handlers import LiveReloadHandler
from tornado.ioloop import IOLoop

from ..core.errors import ServeError

logger = logging.getLogger(__name__)

START_TIMEOUT = 10.0


class DevSession:
    """A static file server over the source tree plus reload notifications.

    The server runs on its own thread and event loop; ``reload`` and
    ``stream`` hand messages to that loop and return immediately.
    """

    def __init__(
        self,
        root: Path,
        *,
        host: str = "127.0.0.1",
        port: int = 3000,
        live_css: bool = True,
        server_factory: Callable[[], Any] = Server,
    ) -> None:
        self.root = root
        self.host = host
        self.port = port
        self.live_css = live_css
        self._server_factory = server_factory
        self._loop: IOLoop | None = None
        self._thread: threading.Thread | None = None
        self._ready = threading.Event()
        self._error: BaseException | None = None

    @property
    def running(self) -> bool:
        return self._loop is not None and self._thread is not None and self._thread.is_alive()

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}/"

    def start(self) -> None:
        """Start serving and return once the server loop is running."""
        if self._thread is not None:
            raise ServeError("Dev server already started")
        if not self.root.is_dir():
            raise ServeError(f"Serve root not found: {self.root}")

        self._thread = threading.Thread(
            target=self._serve, name="assetpipe-serve", daemon=True
        )
        self._thread.start()
        if not self._ready.wait(START_TIMEOUT):
            raise ServeError(f"Dev server did not start within {START_TIMEOUT:.0f} s")
        if self._error is not None:
            raise ServeError(f"Dev server failed to start: {self._error}") from self._error
        logger.info(f"Serving {self.root} at {self.url}")

    def _serve(self) -> None:
        asyncio.set_event_loop(asyncio.new_event_loop())
        loop = IOLoop.current()
        loop.add_callback(self._ready.set)
        self._loop = loop
        try:
            self._server_factory().serve(
                root=str(self.root),
                host=self.host,
                port=self.port,
                live_css=self.live_css,
                open_url_delay=None,
                debug=False,
            )
        except Exception as exc:
            self._error = exc
            logger.debug("Dev server stopped with an error", exc_info=exc)
        finally:
            self._loop = None
            self._ready.set()
            loop.close(all_fds=True)

    def reload(self, path: str = "*") -> None:
        """Ask connected browsers to reload ``path`` (``*`` for the page)."""
        loop = self._loop
        if loop is None:
            logger.debug(f"No dev server running, skipping reload of {path}")
            return
        loop.add_callback(LiveReloadHandler.reload_waiters, path)
        logger.debug(f"Reload dispatched: {path}")

    def stream(self, paths: Iterable[str]) -> None:
        """Push updated files so browsers can hot-apply stylesheets."""
        for path in paths:
            self.reload(path)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the server thread exits; True once it has."""
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def stop(self) -> None:
        loop = self._loop
        if loop is not None:
            loop.add_callback(loop.stop)
        if self._thread is not None:
            self._thread.join(START_TIMEOUT)
            self._thread = None
        logger.debug("Dev server stopped")
