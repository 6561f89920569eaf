"""Normalisation of raw, comma separated render options."""

from __future__ import annotations

from dataclasses import dataclass

from callscope.config import RenderOptions
from callscope.errors import InvalidOptionError

GROUP_PKG = "pkg"
GROUP_TYPE = "type"
GROUP_KEYS = (GROUP_PKG, GROUP_TYPE)


@dataclass(frozen=True, slots=True)
class NormalizedOptions:
    focus: str = ""
    group: tuple[str, ...] = ()
    ignore: tuple[str, ...] = ()
    include: tuple[str, ...] = ()
    limit: tuple[str, ...] = ()
    nointer: bool = False
    nostd: bool = False
    limit_depth: int = 1


def split_list(raw: str | None) -> tuple[str, ...]:
    """Split ``raw`` on commas, dropping blank segments and preserving order."""

    if not raw:
        return ()
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def parse_group(raw: str | None) -> tuple[str, ...]:
    keys: list[str] = []
    for key in split_list(raw):
        if key not in GROUP_KEYS:
            raise InvalidOptionError(f"invalid group option: {key}")
        if key not in keys:
            keys.append(key)
    return tuple(keys)


def normalize_options(options: RenderOptions) -> NormalizedOptions:
    """Validate ``options`` and split its list settings.

    Nothing is returned unless every setting is valid.
    """

    group = parse_group(options.group)
    if options.limit_depth < 1:
        raise InvalidOptionError(f"invalid limit depth: {options.limit_depth}")
    return NormalizedOptions(
        focus=options.focus.strip(),
        group=group,
        ignore=split_list(options.ignore),
        include=split_list(options.include),
        limit=split_list(options.limit),
        nointer=options.nointer,
        nostd=options.nostd,
        limit_depth=options.limit_depth,
    )


__all__ = ["GROUP_KEYS", "GROUP_PKG", "GROUP_TYPE", "NormalizedOptions", "normalize_options", "parse_group", "split_list"]
