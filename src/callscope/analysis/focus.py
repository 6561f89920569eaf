"""Resolution of a user supplied focus token to a single package."""

from __future__ import annotations

import logging

from callscope.analysis.graph_loader import AnalysisResult, Package
from callscope.errors import AmbiguousFocusError, FocusNotFoundError

LOGGER = logging.getLogger(__name__)


def resolve_focus(analysis: AnalysisResult, token: str) -> Package | None:
    """
    Map ``token`` to exactly one package of ``analysis``.

    Import paths must match exactly. Bare names are matched against package
    names and must be unique; otherwise :class:`AmbiguousFocusError` carries the
    candidate paths so the caller can retry with one of them.
    """

    if not token:
        return None

    package = analysis.imported_package(token)
    if package is None:
        if "/" in token:
            raise FocusNotFoundError(token, "package path not found")
        found = sorted(pkg.path for pkg in analysis.packages_named(token))
        if not found:
            raise FocusNotFoundError(token)
        if len(found) > 1:
            raise AmbiguousFocusError(token, found)
        package = analysis.imported_package(found[0])
        if package is None:  # pragma: no cover - names come from the same universe
            raise FocusNotFoundError(found[0], "package path not found")

    LOGGER.info("focusing: %s", package.path)
    return package


__all__ = ["resolve_focus"]
