"""Script transpilation and minification."""

from __future__ import annotations

import functools
import logging
from pathlib import Path
from typing import Any, Sequence

import dukpy
import rjsmin

from ..core.errors import MissingToolError, TransformError

logger = logging.getLogger(__name__)

BABEL_COMPILER = Path(dukpy.__file__).parent / "jsmodules" / "babel-6.26.0.min.js"

# Runs after the Babel bundle inside the same interpreter; dukpy exposes
# keyword arguments as properties of the global ``dukpy`` object.
_TRANSFORM_JS = (
    "var bres = Babel.transform(dukpy.source, dukpy.options);",
    "var res = {code: bres.code, map: bres.map || null};",
    "res",
)


@functools.lru_cache(maxsize=1)
def _babel_source() -> str:
    try:
        return BABEL_COMPILER.read_text(encoding="utf-8")
    except OSError as exc:
        raise MissingToolError(f"Babel compiler not found: {BABEL_COMPILER}") from exc


def transpile(
    code: str,
    *,
    filename: str,
    presets: Sequence[str],
    source_maps: bool,
) -> tuple[str, dict[str, Any] | None]:
    """Transpile modern JavaScript with the Babel build bundled in dukpy.

    Args:
        code: Script source
        filename: Source name recorded in errors and source maps
        presets: Babel presets to apply
        source_maps: Whether Babel should produce a source map

    Returns:
        Tuple of (transpiled code, source map or None)
    """
    options: dict[str, Any] = {"presets": list(presets), "filename": filename}
    if source_maps:
        options.update(sourceMaps=True, sourceFileName=filename)

    logger.debug(f"babel {filename} presets={options['presets']}")
    try:
        result = dukpy.evaljs(
            (_babel_source(),) + _TRANSFORM_JS, source=code, options=options
        )
    except dukpy.JSRuntimeError as exc:
        raise TransformError(Path(filename), f"babel failed: {exc}") from exc

    source_map = result.get("map") if source_maps else None
    return result["code"], source_map or None


def minify(code: str) -> str:
    return rjsmin.jsmin(code)
