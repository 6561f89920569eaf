"""Interactive explorer for reduced call graphs."""

from callscope.ui.app import create_app

__all__ = ["create_app"]
