"""Task registry."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable, Optional

from .context import BuildContext, create_context
from .package import compress
from .transforms import copy_assets, copy_css, images, js, styles

Task = Callable[[BuildContext, Optional[threading.Event]], list[Path]]

# Order matches the parallel build group.
TRANSFORMS: dict[str, Task] = {
    "styles": styles,
    "js": js,
    "images": images,
    "copyAssets": copy_assets,
    "copyCss": copy_css,
}

__all__ = [
    "BuildContext",
    "TRANSFORMS",
    "Task",
    "compress",
    "create_context",
]
