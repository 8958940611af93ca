"""Package task: archive the built output tree."""

from __future__ import annotations

import logging
import os
import tempfile
import threading
import zipfile
from pathlib import Path

from ..core.io import ensure_parent
from ..core.models import Category
from ..core.project import project_name
from .context import BuildContext, check_cancelled

logger = logging.getLogger(__name__)


def compress(ctx: BuildContext, cancel: threading.Event | None = None) -> list[Path]:
    """Zip every built file into ``<dest>/<project-name>.zip``.

    Entry names are the file paths relative to the glob base, so the
    default ``dist/**/*`` produces entries like ``assets/css/style.css``.
    """
    name = project_name(ctx.root, ctx.config.package_name)
    entry = ctx.entry(Category.PACKAGE)
    archive = ctx.root / entry.dest / f"{name}.zip"
    sources = sorted(ctx.sources(Category.PACKAGE), key=lambda item: item.relative)
    sources = [item for item in sources if item.path != archive]

    ensure_parent(archive)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{archive.name}.", dir=str(archive.parent))
    os.close(fd)
    try:
        with zipfile.ZipFile(tmp_name, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for source in sources:
                check_cancelled(cancel, "compress")
                zf.write(source.path, arcname=source.relative.as_posix())
        os.replace(tmp_name, archive)
    finally:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)

    logger.info(f"compress: archived {len(sources)} file(s) into {ctx.relative(archive)}")
    return [archive]
