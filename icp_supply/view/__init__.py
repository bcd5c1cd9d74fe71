"""View module - expand/collapse state of the supply table."""

from .state import ViewState

__all__ = ["ViewState"]
