"""Tests for per-request overrides of the baseline render options."""

from __future__ import annotations

import dataclasses

import pytest

from callscope.config import RenderOptions


def test_no_overrides_returns_baseline() -> None:
    baseline = RenderOptions(focus="app/util")

    assert baseline.with_overrides(None) is baseline
    assert baseline.with_overrides({}) is baseline
    assert baseline.with_overrides({"f": "", "group": ""}) is baseline


def test_focus_override_and_clear() -> None:
    baseline = RenderOptions(focus="app/util")

    assert baseline.with_overrides({"f": "lib/util"}).focus == "lib/util"
    assert baseline.with_overrides({"f": "all"}).focus == ""
    assert baseline.focus == "app/util"


@pytest.mark.parametrize("value", ["1", "true", "0", "false"])
def test_any_std_value_disables_std_suppression(value: str) -> None:
    baseline = RenderOptions(nostd=True)

    assert baseline.with_overrides({"std": value}).nostd is False


def test_nointer_override_only_enables() -> None:
    assert RenderOptions().with_overrides({"nointer": "1"}).nointer is True
    assert RenderOptions(nointer=True).with_overrides({"group": "type"}).nointer is True


def test_list_overrides_replace_raw_values() -> None:
    baseline = RenderOptions(group="pkg", ignore="fmt", include="app/", limit="lib/")
    derived = baseline.with_overrides({"group": "pkg,type", "ignore": "app/util", "include": "lib/", "limit": "app/"})

    assert derived == RenderOptions(group="pkg,type", ignore="app/util", include="lib/", limit="app/")
    assert baseline == RenderOptions(group="pkg", ignore="fmt", include="app/", limit="lib/")


def test_options_are_immutable() -> None:
    with pytest.raises(dataclasses.FrozenInstanceError):
        RenderOptions().focus = "app/util"
