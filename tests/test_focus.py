"""Tests for focus token resolution."""

from __future__ import annotations

import pytest

from callscope.analysis.focus import resolve_focus
from callscope.errors import AmbiguousFocusError, FocusNotFoundError


def test_empty_token_is_a_no_op(analysis) -> None:
    assert resolve_focus(analysis, "") is None


def test_exact_path(analysis) -> None:
    assert resolve_focus(analysis, "app/util").path == "app/util"


def test_unique_bare_name(analysis) -> None:
    assert resolve_focus(analysis, "model").path == "app/model"


def test_unknown_path(analysis) -> None:
    with pytest.raises(FocusNotFoundError, match="package path not found: app/missing") as excinfo:
        resolve_focus(analysis, "app/missing")

    assert excinfo.value.stage == "focus"


def test_unknown_name(analysis) -> None:
    with pytest.raises(FocusNotFoundError, match="could not find package: nothing"):
        resolve_focus(analysis, "nothing")


def test_ambiguous_name_lists_candidates(analysis) -> None:
    with pytest.raises(AmbiguousFocusError) as excinfo:
        resolve_focus(analysis, "util")

    assert excinfo.value.candidates == ("app/util", "lib/util")
    assert "found multiple packages with name: util" in str(excinfo.value)
