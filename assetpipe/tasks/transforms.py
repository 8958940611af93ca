"""Transform tasks: styles, images, js, copyAssets and copyCss.

Every task takes the build context and an optional cancellation event and
returns the list of files it wrote.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from ..core.globs import resolve_sources
from ..core.io import atomic_write_bytes, atomic_write_text, copy_file
from ..core.models import Category
from ..processing import css, images as image_processing, scripts, sourcemaps
from .context import BuildContext, check_cancelled

logger = logging.getLogger(__name__)


def styles(ctx: BuildContext, cancel: threading.Event | None = None) -> list[Path]:
    sources = ctx.sources(Category.STYLES)
    if not sources:
        return []

    contents = [
        item.path.read_text(encoding="utf-8")
        for item in resolve_sources(ctx.root, ctx.config.content)
    ]
    command = ctx.settings.css_command.strip()
    outputs: list[Path] = []

    for source in sources:
        check_cancelled(cancel, "styles")
        original = source.path.read_text(encoding="utf-8")
        text = (
            css.expand_framework(source.path, command, ctx.root) if command else original
        )
        text = css.purge(text, contents, source=source.path)

        if ctx.production:
            text = css.minify(text)
        else:
            # Line-for-line approximation: after framework expansion most
            # generated lines have no true counterpart in the source.
            name = ctx.relative(source.path)
            text = sourcemaps.inline_css(text, sourcemaps.line_map(name, original, text))

        destination = ctx.destination(Category.STYLES, source)
        atomic_write_text(destination, text)
        logger.debug(f"Built {source.path} → {destination}")
        outputs.append(destination)

    if ctx.session is not None:
        ctx.session.stream([ctx.relative(path) for path in outputs])

    logger.info(f"styles: wrote {len(outputs)} file(s)")
    return outputs


def images(ctx: BuildContext, cancel: threading.Event | None = None) -> list[Path]:
    outputs: list[Path] = []
    for source in ctx.sources(Category.IMAGES):
        check_cancelled(cancel, "images")
        destination = ctx.destination(Category.IMAGES, source)
        atomic_write_bytes(destination, image_processing.compress_image(source.path))
        outputs.append(destination)

    logger.info(f"images: wrote {len(outputs)} file(s)")
    return outputs


def js(ctx: BuildContext, cancel: threading.Event | None = None) -> list[Path]:
    outputs: list[Path] = []
    presets = ctx.settings.babel_presets

    for source in ctx.sources(Category.SCRIPTS):
        check_cancelled(cancel, "js")
        original = source.path.read_text(encoding="utf-8")
        name = ctx.relative(source.path)

        if ctx.production:
            code, _ = scripts.transpile(
                original, filename=name, presets=presets, source_maps=False
            )
            code = scripts.minify(code)
        else:
            code, source_map = scripts.transpile(
                original, filename=name, presets=presets, source_maps=True
            )
            if source_map is None:
                source_map = sourcemaps.line_map(name, original, code)
            else:
                source_map = sourcemaps.with_sources_content(source_map, name, original)
            code = sourcemaps.inline_js(code, source_map)

        destination = ctx.destination(Category.SCRIPTS, source)
        atomic_write_text(destination, code)
        outputs.append(destination)

    logger.info(f"js: wrote {len(outputs)} file(s)")
    return outputs


def _copy(
    ctx: BuildContext,
    category: Category,
    cancel: threading.Event | None,
    skip: frozenset[Path] = frozenset(),
) -> list[Path]:
    outputs: list[Path] = []
    for source in ctx.sources(category):
        check_cancelled(cancel, category.value)
        if source.path in skip:
            logger.debug(f"{category.value}: skipping {source.path}, built by styles")
            continue
        destination = ctx.destination(category, source)
        copy_file(source.path, destination)
        outputs.append(destination)

    logger.info(f"{category.value}: copied {len(outputs)} file(s)")
    return outputs


def copy_assets(ctx: BuildContext, cancel: threading.Event | None = None) -> list[Path]:
    return _copy(ctx, Category.COPY_ASSETS, cancel)


def copy_css(ctx: BuildContext, cancel: threading.Event | None = None) -> list[Path]:
    # The styles entry is written by the styles task; copying it too would race.
    built = frozenset(
        item.path for item in resolve_sources(ctx.root, ctx.entry(Category.STYLES).src)
    )
    return _copy(ctx, Category.COPY_CSS, cancel, skip=built)
