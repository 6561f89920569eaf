"""High-level orchestration for rendering views of one analysis result."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Optional

from callscope.analysis.focus import resolve_focus
from callscope.analysis.graph_loader import AnalysisResult, load_analysis
from callscope.analysis.options import normalize_options
from callscope.analysis.reduction import ReducedGraph, reduce_graph
from callscope.config import RenderOptions
from callscope.errors import ProcessingError, ReductionError
from callscope.io.dot_writer import render_dot

LOGGER = logging.getLogger(__name__)


class RenderSession:
    """
    Pair a shared analysis result with the baseline options it is viewed with.

    Both are read-only for the lifetime of the session. Per-request changes go
    through :meth:`options_for`, which returns a derived copy of the baseline, so
    concurrent requests never see each other's settings.
    """

    def __init__(self, analysis: AnalysisResult, baseline: RenderOptions | None = None) -> None:
        self._analysis = analysis
        self._baseline = baseline or RenderOptions()

    @property
    def analysis(self) -> AnalysisResult:
        return self._analysis

    @property
    def baseline(self) -> RenderOptions:
        return self._baseline

    def options_for(self, overrides: Optional[Mapping[str, str]] = None) -> RenderOptions:
        return self._baseline.with_overrides(overrides)

    def reduce(self, options: RenderOptions | None = None) -> ReducedGraph:
        options = options or self._baseline
        normalized = normalize_options(options)
        focus = resolve_focus(self._analysis, normalized.focus)
        try:
            return reduce_graph(self._analysis, normalized, focus)
        except ReductionError as exc:
            raise ProcessingError(f"processing failed: {exc}") from exc

    def render(self, options: RenderOptions | None = None) -> bytes:
        """Render the DOT document for ``options`` (the baseline when omitted)."""

        return render_dot(self.reduce(options))


def open_session(path: Path, baseline: RenderOptions | None = None) -> RenderSession:
    analysis = load_analysis(path)
    LOGGER.info("Analysis loaded from %s", path)
    return RenderSession(analysis, baseline)


__all__ = ["RenderSession", "open_session"]
