"""Tests for the render session orchestration."""

from __future__ import annotations

from pathlib import Path

import pytest

from callscope.config import RenderOptions
from callscope.errors import AmbiguousFocusError, InvalidOptionError, ProcessingError, RenderError
from callscope.pipelines.render_session import RenderSession, open_session


def test_render_returns_dot_bytes(session) -> None:
    payload = session.render()

    assert payload.startswith(b"digraph callgraph {")


def test_override_does_not_leak_into_baseline(analysis) -> None:
    session = RenderSession(analysis, RenderOptions(focus="app/util"))

    cleared = session.options_for({"f": "all"})
    assert cleared.focus == ""
    assert session.reduce(cleared).focus is None

    assert session.baseline.focus == "app/util"
    assert session.reduce().focus == "app/util"


def test_ambiguous_focus_is_reported_with_candidates(session) -> None:
    with pytest.raises(AmbiguousFocusError) as excinfo:
        session.render(RenderOptions(focus="util"))

    assert excinfo.value.stage == "focus"
    assert excinfo.value.candidates == ("app/util", "lib/util")


def test_reduction_failures_become_processing_errors(session) -> None:
    with pytest.raises(ProcessingError, match="processing failed") as excinfo:
        session.render(RenderOptions(focus="app/util", ignore="app/"))

    assert isinstance(excinfo.value, RenderError)
    assert excinfo.value.stage == "processing"


def test_invalid_options_fail_before_rendering(session) -> None:
    with pytest.raises(InvalidOptionError):
        session.render(RenderOptions(group="file"))


def test_sessions_are_independent(analysis) -> None:
    plain = RenderSession(analysis)
    filtered = RenderSession(analysis, RenderOptions(nostd=True))

    assert "fmt.Println" in plain.reduce().node_ids
    assert "fmt.Println" not in filtered.reduce().node_ids
    assert plain.analysis is filtered.analysis


def test_open_session(artifact: Path) -> None:
    session = open_session(artifact, RenderOptions(group="type"))

    assert session.analysis.program == "sample"
    assert session.baseline.group == "type"
