"""Exception hierarchy shared by the loader, the render pipeline and the front-ends."""

from __future__ import annotations

from typing import Sequence


class CallscopeError(Exception):
    """Base class for every error raised by callscope itself."""


class AnalysisError(CallscopeError):
    """The analysis artefact cannot be turned into an analysis result."""


class PackageErrorsError(AnalysisError):
    """At least one analysed package reported compile errors."""

    def __init__(self, errors: Sequence[str]) -> None:
        super().__init__("packages contain errors")
        self.errors = tuple(errors)


class NoEntryPointError(AnalysisError):
    """No main package (and therefore no entry point) was found."""


class InvalidOptionError(CallscopeError, ValueError):
    """A render option failed validation."""


class RenderError(CallscopeError):
    """A render request failed; ``stage`` names the step that failed."""

    stage = "render"


class FocusError(RenderError):
    stage = "focus"


class FocusNotFoundError(FocusError):
    def __init__(self, token: str, reason: str = "could not find package") -> None:
        super().__init__(f"focus failed, {reason}: {token}")
        self.token = token


class AmbiguousFocusError(FocusError):
    """A bare package name matched several packages."""

    def __init__(self, token: str, candidates: Sequence[str]) -> None:
        super().__init__(f"focus failed, found multiple packages with name: {token}")
        self.token = token
        self.candidates = tuple(sorted(candidates))


class ProcessingError(RenderError):
    stage = "processing"


class ReductionError(CallscopeError):
    """Raised by the reduction engine; the render session wraps it in :class:`ProcessingError`."""


__all__ = [
    "AmbiguousFocusError",
    "AnalysisError",
    "CallscopeError",
    "FocusError",
    "FocusNotFoundError",
    "InvalidOptionError",
    "NoEntryPointError",
    "PackageErrorsError",
    "ProcessingError",
    "ReductionError",
    "RenderError",
]
