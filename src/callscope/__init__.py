"""Filtered, grouped and focusable views of whole-program call graphs."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("callscope")
except PackageNotFoundError:  # pragma: no cover - package metadata absent in dev mode
    __version__ = "0.0.0"

__all__ = ["__version__"]
