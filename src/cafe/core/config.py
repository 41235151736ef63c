"""Café configuration: menu patterns, base path and response flags."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Sequence, Union

MenuPattern = Union[str, re.Pattern]

DEFAULT_INCLUDE: tuple[MenuPattern, ...] = ("**/*",)
DEFAULT_EXCLUDE: tuple[MenuPattern, ...] = ()


def canonical_base_path(path: str | os.PathLike | None) -> str:
    """Absolute, normalized directory path without trailing separators."""
    return os.path.abspath(os.fspath(path if path is not None else os.getcwd()))


@dataclass(frozen=True, slots=True)
class MenuConfig:
    include: tuple[MenuPattern, ...] = DEFAULT_INCLUDE
    exclude: tuple[MenuPattern, ...] = DEFAULT_EXCLUDE

    def __post_init__(self):
        object.__setattr__(self, "include", tuple(self.include))
        object.__setattr__(self, "exclude", tuple(self.exclude))


@dataclass(frozen=True, slots=True)
class CafeConfig:
    base_path: str = field(default_factory=os.getcwd)
    menu: MenuConfig = field(default_factory=MenuConfig)
    alias: Mapping[str, str] = field(default_factory=dict)
    broadcast_version: bool = True
    debug_response_headers: bool = False

    def __post_init__(self):
        object.__setattr__(self, "base_path", canonical_base_path(self.base_path))
        object.__setattr__(self, "alias", MappingProxyType(dict(self.alias)))


def _merge_menu(partial: MenuConfig | Mapping[str, Sequence[MenuPattern]] | None) -> MenuConfig:
    if partial is None:
        return MenuConfig()
    if isinstance(partial, MenuConfig):
        return partial
    unknown = set(partial) - {"include", "exclude"}
    if unknown:
        raise TypeError(f"Unknown menu option(s): {', '.join(sorted(unknown))}")
    return MenuConfig(
        include=partial.get("include", DEFAULT_INCLUDE),
        exclude=partial.get("exclude", DEFAULT_EXCLUDE),
    )


def create_config(**partial: Any) -> CafeConfig:
    """Build a CafeConfig from partial settings merged over the defaults.

    ``menu`` may be a MenuConfig or a mapping with ``include``/``exclude``
    keys; a missing key keeps its default.
    """
    menu = _merge_menu(partial.pop("menu", None))
    base_path = canonical_base_path(partial.pop("base_path", None))
    return CafeConfig(base_path=base_path, menu=menu, **partial)
