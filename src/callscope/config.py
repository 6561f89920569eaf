"""Configuration primitives for render requests."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Mapping, Optional

# Form value names understood by the override protocol.
FOCUS_KEY = "f"
STD_KEY = "std"
NOINTER_KEY = "nointer"
GROUP_KEY = "group"
LIMIT_KEY = "limit"
IGNORE_KEY = "ignore"
INCLUDE_KEY = "include"

CLEAR_FOCUS = "all"

ENV_PREFIX = "CALLSCOPE_"


@dataclass(frozen=True, slots=True)
class RenderOptions:
    """Raw selection and grouping settings for one view of the call graph.

    The list-valued settings are kept as the comma separated strings they were
    configured with; :func:`callscope.analysis.options.normalize_options` turns
    them into validated tuples right before rendering.
    """

    focus: str = ""
    group: str = "pkg"
    ignore: str = ""
    include: str = ""
    limit: str = ""
    nointer: bool = False
    nostd: bool = False
    limit_depth: int = 1

    def with_overrides(self, values: Optional[Mapping[str, str]]) -> "RenderOptions":
        """Return a copy with per-request overrides applied.

        ``values`` is anything exposing ``get`` with form semantics, e.g. a dict or
        ``flask.request.values``. Missing or empty keys leave the setting untouched.
        """

        if values is None:
            return self

        changes: dict[str, object] = {}
        focus = values.get(FOCUS_KEY) or ""
        if focus == CLEAR_FOCUS:
            changes["focus"] = ""
        elif focus:
            changes["focus"] = focus
        # A non-empty std value shows the standard library, whatever the value says.
        if values.get(STD_KEY):
            changes["nostd"] = False
        if values.get(NOINTER_KEY):
            changes["nointer"] = True
        for key, field_name in (
            (GROUP_KEY, "group"),
            (LIMIT_KEY, "limit"),
            (IGNORE_KEY, "ignore"),
            (INCLUDE_KEY, "include"),
        ):
            raw = values.get(key)
            if raw:
                changes[field_name] = raw

        if not changes:
            return self
        return replace(self, **changes)


__all__ = [
    "CLEAR_FOCUS",
    "ENV_PREFIX",
    "FOCUS_KEY",
    "GROUP_KEY",
    "IGNORE_KEY",
    "INCLUDE_KEY",
    "LIMIT_KEY",
    "NOINTER_KEY",
    "RenderOptions",
    "STD_KEY",
]
