"""Main CLI application."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional, TypeVar

import typer
from typing_extensions import Annotated

from ..core.errors import AssetPipeError
from ..orchestration import composites
from ..tasks import BuildContext, create_context
from .parsers import load_settings, parse_root

logger = logging.getLogger(__name__)

T = TypeVar("T")

app = typer.Typer(
    name="assetpipe",
    help="Build, serve and package front-end assets.",
    no_args_is_help=False,
)


def _execute(action: Callable[[], T]) -> T:
    """Run an action, turning pipeline errors into exit code 1."""
    try:
        return action()
    except AssetPipeError as exc:
        logger.error(str(exc))
        raise typer.Exit(code=1) from exc


def _run_until_interrupted(service: composites.DevService) -> None:
    try:
        while not service.wait(timeout=1.0):
            pass
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    finally:
        service.stop()


def _context(ctx: typer.Context) -> BuildContext:
    return ctx.obj


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    prod: Annotated[
        Optional[bool],
        typer.Option(
            "--prod/--no-prod",
            help="Production build: minify, no source maps (default: $PROD).",
        ),
    ] = None,
    root: Annotated[
        Optional[Path],
        typer.Option(
            "--root",
            help="Project root containing src/ and package.json (default: cwd).",
            metavar="DIR",
            callback=parse_root,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose logging.",
        ),
    ] = False,
) -> None:
    """Build, serve and package front-end assets. Runs `dev` by default."""
    # Configure logging
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )

    settings = load_settings(prod=prod, root=root)
    ctx.obj = _execute(lambda: create_context(settings))
    logger.debug(f"Mode: {'production' if settings.prod else 'development'}")

    if ctx.invoked_subcommand is None:
        _run_until_interrupted(_execute(lambda: composites.dev(ctx.obj)))


def _task_command(name: str, summary: str) -> None:
    def command(ctx: typer.Context) -> None:
        build_ctx = _context(ctx)
        _execute(lambda: composites.run_task(build_ctx, name))

    command.__doc__ = summary
    app.command(name)(command)


_task_command("styles", "Build the entry stylesheet: expand, purge, minify or map.")
_task_command("images", "Compress images into the output tree.")
_task_command("js", "Transpile scripts, minified in production.")
_task_command("copyAssets", "Copy HTML files into the output tree.")
_task_command("copyCss", "Copy plain stylesheets into the output tree.")
_task_command("compress", "Zip the output tree into the package directory.")


@app.command()
def build(ctx: typer.Context) -> None:
    """Run every transform task in parallel."""
    build_ctx = _context(ctx)
    _execute(lambda: composites.build(build_ctx))


@app.command()
def bundle(ctx: typer.Context) -> None:
    """Build, then package the output tree."""
    build_ctx = _context(ctx)
    _execute(lambda: composites.bundle(build_ctx))


@app.command()
def dev(ctx: typer.Context) -> None:
    """Build, serve the sources with live reload and watch for changes."""
    build_ctx = _context(ctx)
    _run_until_interrupted(_execute(lambda: composites.dev(build_ctx)))


@app.command()
def monitor(ctx: typer.Context) -> None:
    """Watch sources and rebuild on change, without a server."""
    build_ctx = _context(ctx)
    _run_until_interrupted(_execute(lambda: composites.monitor(build_ctx)))


@app.command()
def serve(ctx: typer.Context) -> None:
    """Serve the sources with live reload, without building."""
    build_ctx = _context(ctx)
    session = composites.create_session(build_ctx)
    _execute(session.start)
    try:
        while not session.wait(timeout=1.0):
            pass
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    finally:
        session.stop()


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
