"""Stylesheet processing: framework expansion, purging and minification."""

from __future__ import annotations

import logging
import re
import shlex
import subprocess
import tempfile
from pathlib import Path
from typing import Iterable

import rcssmin
import tinycss2
from tinycss2 import ast

from ..core.errors import TransformError
from .external import ensure, run_logged

logger = logging.getLogger(__name__)

# At-rules whose blocks hold style rules and are purged recursively.
_NESTED_AT_RULES = {"media", "supports", "layer", "container", "document"}

_CONTENT_TOKEN = re.compile(r"[^<>\"'`\s=]+")
_WORD_SPLIT = re.compile(r"[^A-Za-z0-9_-]+")


def expand_framework(source: Path, command: str, cwd: Path) -> str:
    """Run the external framework/prefixer command over a stylesheet.

    Args:
        source: Stylesheet to process
        command: Command line with ``{input}`` and optional ``{output}``
        cwd: Working directory, so the tool finds its own config

    Returns:
        Processed CSS text
    """
    template = shlex.split(command)
    ensure(template[:1])

    with tempfile.TemporaryDirectory(prefix="assetpipe-css-") as tmpdir:
        output = Path(tmpdir) / source.name
        to_stdout = not any("{output}" in part for part in template)
        argv = [
            part.replace("{input}", str(source)).replace("{output}", str(output))
            for part in template
        ]
        try:
            result = run_logged(argv, capture_output=True, echo="on_error", cwd=cwd)
        except subprocess.CalledProcessError as exc:
            raise TransformError(
                source, f"{template[0]} exited with status {exc.returncode}"
            ) from exc

        if to_stdout:
            return result.stdout
        if not output.exists():
            raise TransformError(source, f"{template[0]} produced no output")
        return output.read_text(encoding="utf-8")


def content_words(contents: Iterable[str]) -> set[str]:
    """Extract candidate class, id and element names from content files.

    Whole tokens are kept so names like ``md:flex`` or ``w-1/2`` survive,
    and their word parts are added so ``</div>`` still yields ``div``.
    """
    words: set[str] = set()
    for text in contents:
        for token in _CONTENT_TOKEN.findall(text):
            words.add(token)
            words.update(part for part in _WORD_SPLIT.split(token) if part)
    return words


def _split_selectors(prelude: list) -> list[list]:
    selectors: list[list] = [[]]
    for token in prelude:
        if isinstance(token, ast.LiteralToken) and token.value == ",":
            selectors.append([])
        else:
            selectors[-1].append(token)
    return [tokens for tokens in selectors if tinycss2.serialize(tokens).strip()]


def _selector_names(tokens: list) -> set[str]:
    """Names a selector needs to find in content: classes, ids and elements."""
    names: set[str] = set()
    previous = None
    for token in tokens:
        if isinstance(token, ast.IdentToken):
            if isinstance(previous, ast.LiteralToken) and previous.value == ".":
                names.add(token.value)
            elif not (isinstance(previous, ast.LiteralToken) and previous.value == ":"):
                names.add(token.value.lower())
        elif isinstance(token, ast.HashToken) and token.is_identifier:
            names.add(token.value)
        if not isinstance(token, ast.Comment):
            previous = token
    return names


def _keep_selector(tokens: list, words: set[str]) -> bool:
    return all(name in words for name in _selector_names(tokens))


def _purge_rules(nodes: list, words: set[str]) -> list[str]:
    out: list[str] = []
    for node in nodes:
        if isinstance(node, ast.ParseError):
            raise ValueError(f"line {node.source_line}: {node.message}")
        if isinstance(node, ast.QualifiedRule):
            kept = [
                tinycss2.serialize(selector).strip()
                for selector in _split_selectors(node.prelude)
                if _keep_selector(selector, words)
            ]
            if kept:
                out.append(f"{', '.join(kept)} {{{tinycss2.serialize(node.content)}}}")
        elif (
            isinstance(node, ast.AtRule)
            and node.content is not None
            and node.lower_at_keyword in _NESTED_AT_RULES
        ):
            inner = _purge_rules(
                tinycss2.parse_stylesheet(node.content, skip_comments=False), words
            )
            if "".join(inner).strip():
                prelude = tinycss2.serialize(node.prelude)
                out.append(f"@{node.at_keyword}{prelude}{{{''.join(inner)}}}")
        else:
            out.append(node.serialize())
    return out


def purge(css: str, contents: Iterable[str], source: Path | str = "<css>") -> str:
    """Drop rules whose selectors are not referenced by any content.

    Grouped selectors are filtered one by one; conditional group at-rules
    are purged recursively and removed when empty. Purging is idempotent.
    """
    words = content_words(contents)
    nodes = tinycss2.parse_stylesheet(css, skip_comments=False, skip_whitespace=False)
    try:
        return "".join(_purge_rules(nodes, words))
    except ValueError as exc:
        raise TransformError(source, f"invalid stylesheet, {exc}") from exc


def minify(css: str) -> str:
    return rcssmin.cssmin(css)
