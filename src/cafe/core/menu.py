"""Menu policy: which paths under the base directory may be served."""

from __future__ import annotations

import os
import re
from fnmatch import fnmatchcase
from typing import Sequence

from .config import CafeConfig, MenuPattern


def _strip_sep(path: str) -> str:
    return path[1:] if path[:1] in ("/", os.sep) else path


def _match_segment(part: str, pattern: str) -> bool:
    # wildcards never match a leading dot, only a literal one does
    if part.startswith(".") and not pattern.startswith("."):
        return False
    return fnmatchcase(part, pattern)


def _match_segments(parts: Sequence[str], pattern: Sequence[str]) -> bool:
    if not pattern:
        return not parts
    head, rest = pattern[0], pattern[1:]
    if head == "**":
        # ** spans zero or more whole segments, none of them dot segments
        for i in range(len(parts) + 1):
            if _match_segments(parts[i:], rest):
                return True
            if i < len(parts) and parts[i].startswith("."):
                return False
        return False
    if not parts:
        return False
    return _match_segment(parts[0], head) and _match_segments(parts[1:], rest)


def glob_match(path: str, pattern: str) -> bool:
    """Match a ``/``-separated path against a glob where ``*`` stays within a segment.

    Segments starting with ``.`` are only matched by pattern segments that
    start with ``.`` themselves, so ``**/*`` skips dotfiles and dot directories.
    """
    return _match_segments(path.split("/"), pattern.split("/"))


def match_menu_patterns(patterns: Sequence[MenuPattern], path: str) -> bool:
    """Return the result of the last pattern in ``patterns`` applied to ``path``.

    Every pattern is evaluated in order and overwrites the previous result, so
    a later non-matching pattern resets an earlier match.
    """
    normalized = _strip_sep(path).replace(os.sep, "/")
    matched = False
    for pattern in patterns:
        if isinstance(pattern, str):
            matched = glob_match(normalized, pattern)
        elif isinstance(pattern, re.Pattern):
            matched = pattern.search(normalized) is not None
    return matched


def resolve_path(config: CafeConfig, relative_path: str) -> str:
    """Join ``relative_path`` onto the base path and normalize it textually."""
    return os.path.normpath(os.path.join(config.base_path, _strip_sep(relative_path)))


def is_outside_base(config: CafeConfig, resolved_path: str) -> bool:
    base = config.base_path
    prefix = base if base.endswith(os.sep) else base + os.sep
    return not (resolved_path == base or resolved_path.startswith(prefix))


def is_servable(config: CafeConfig, relative_path: str) -> bool:
    """Whether ``relative_path`` passes inclusion, exclusion and containment."""
    included = match_menu_patterns(config.menu.include, relative_path)
    excluded = match_menu_patterns(config.menu.exclude, relative_path)
    outside_base = is_outside_base(config, resolve_path(config, relative_path))
    return included and not excluded and not outside_base
