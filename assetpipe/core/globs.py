"""Glob expansion and matching for source patterns.

Patterns are project-relative POSIX globs supporting ``*``, ``?``, ``**``,
``{a,b}`` alternatives and a leading ``!`` for exclusion.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path, PurePosixPath
from typing import Iterable

logger = logging.getLogger(__name__)

_MAGIC = re.compile(r"[*?\[{]")
_BRACE = re.compile(r"\{([^{}]*)\}")


@dataclass(frozen=True)
class SourceFile:
    """A matched file and its path relative to the pattern's glob base."""

    path: Path
    relative: PurePosixPath


def expand_braces(pattern: str) -> list[str]:
    """Expand ``{a,b}`` alternatives, innermost first."""
    match = _BRACE.search(pattern)
    if match is None:
        return [pattern]
    head, tail = pattern[: match.start()], pattern[match.end() :]
    expanded: list[str] = []
    for option in match.group(1).split(","):
        expanded.extend(expand_braces(f"{head}{option}{tail}"))
    return expanded


def split_patterns(patterns: Iterable[str]) -> tuple[list[str], list[str]]:
    """Split patterns into (include, exclude), stripping the ``!`` prefix."""
    include: list[str] = []
    exclude: list[str] = []
    for pattern in patterns:
        if pattern.startswith("!"):
            exclude.append(pattern[1:])
        else:
            include.append(pattern)
    return include, exclude


def glob_base(pattern: str) -> PurePosixPath:
    """Return the leading non-magic directory of a pattern.

    A pattern without magic characters is a single file, so its base is
    the parent directory.
    """
    parts = PurePosixPath(pattern).parts
    base: list[str] = []
    for part in parts:
        if _MAGIC.search(part):
            return PurePosixPath(*base) if base else PurePosixPath(".")
        base.append(part)
    parent = PurePosixPath(*base).parent
    return parent


def _segment_regex(segment: str) -> str:
    out: list[str] = []
    for char in segment:
        if char == "*":
            out.append("[^/]*")
        elif char == "?":
            out.append("[^/]")
        else:
            out.append(re.escape(char))
    return "".join(out)


@lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a brace-free glob into an anchored regular expression."""
    segments = PurePosixPath(pattern).parts
    regex = ""
    for index, segment in enumerate(segments):
        last = index == len(segments) - 1
        if segment == "**":
            regex += ".*" if last else "(?:.*/)?"
        else:
            regex += _segment_regex(segment) + ("" if last else "/")
    return re.compile(rf"^{regex}$")


def matches(rel_path: str | PurePosixPath, patterns: Iterable[str]) -> bool:
    """True when a project-relative path is included and not excluded."""
    candidate = PurePosixPath(rel_path).as_posix()
    include, exclude = split_patterns(patterns)

    def _any(globs: list[str]) -> bool:
        return any(
            compile_pattern(expanded).match(candidate)
            for pattern in globs
            for expanded in expand_braces(pattern)
        )

    return _any(include) and not _any(exclude)


def resolve_sources(root: Path, patterns: Iterable[str]) -> list[SourceFile]:
    """Resolve patterns to files under root, in pattern order, deduplicated.

    Args:
        root: Project root the patterns are relative to
        patterns: Ordered globs, ``!`` prefixed ones exclude

    Returns:
        Matched files with their glob-base relative path
    """
    patterns = list(patterns)
    include, exclude = split_patterns(patterns)
    seen: set[Path] = set()
    files: list[SourceFile] = []

    for pattern in include:
        for expanded in expand_braces(pattern):
            base = glob_base(expanded)
            candidates = (
                sorted(root.glob(expanded)) if _MAGIC.search(expanded) else [root / expanded]
            )
            for path in candidates:
                if path in seen or not path.is_file():
                    continue
                rel = PurePosixPath(path.relative_to(root).as_posix())
                if exclude and matches(rel, exclude):
                    continue
                seen.add(path)
                files.append(SourceFile(path=path, relative=rel.relative_to(base)))

    logger.debug(f"Resolved {len(files)} file(s) for {patterns}")
    return files
