"""Inline source map emission for development builds."""

from __future__ import annotations

import base64
import json
from typing import Any

_DATA_URL = "data:application/json;charset=utf8;base64,"


def line_map(source_name: str, source_text: str, generated_text: str) -> dict[str, Any]:
    """Build a v3 source map mapping each generated line to the same source line.

    Lines beyond the end of the source are left unmapped. The map is only
    exact when the transform preserves line structure.
    """
    source_lines = max(len(source_text.splitlines()), 1)
    generated_lines = max(len(generated_text.splitlines()), 1)
    mapped = min(source_lines, generated_lines)
    # First segment is absolute, the rest advance the source line by one.
    segments = ["AAAA"] + ["AACA"] * (mapped - 1) + [""] * (generated_lines - mapped)
    return {
        "version": 3,
        "sources": [source_name],
        "names": [],
        "mappings": ";".join(segments),
        "sourcesContent": [source_text],
    }


def with_sources_content(
    source_map: dict[str, Any], source_name: str, source_text: str
) -> dict[str, Any]:
    """Embed the original source so the map is self-contained."""
    enriched = dict(source_map)
    enriched["sources"] = [source_name]
    enriched["sourcesContent"] = [source_text]
    return enriched


def _data_url(source_map: dict[str, Any]) -> str:
    payload = json.dumps(source_map, separators=(",", ":")).encode("utf-8")
    return _DATA_URL + base64.b64encode(payload).decode("ascii")


def inline_css(code: str, source_map: dict[str, Any]) -> str:
    return f"{code.rstrip()}\n\n/*# sourceMappingURL={_data_url(source_map)} */\n"


def inline_js(code: str, source_map: dict[str, Any]) -> str:
    return f"{code.rstrip()}\n\n//# sourceMappingURL={_data_url(source_map)}\n"


def extract(text: str) -> dict[str, Any] | None:
    """Decode an inline source map from built output, if present."""
    marker = f"sourceMappingURL={_DATA_URL}"
    start = text.rfind(marker)
    if start == -1:
        return None
    payload = text[start + len(marker) :].split()[0]
    return json.loads(base64.b64decode(payload))
