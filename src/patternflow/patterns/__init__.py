"""Pattern lookup."""

from .resolver import PatternResolver

__all__ = ["PatternResolver"]
