"""Vendor dispatch, stream aggregation and thinking-segment stripping."""

from .aggregator import Dispatcher
from .thinking import StripResult, ThinkingFilter, ThinkingStripper, strip_thinking

__all__ = [
    "Dispatcher",
    "StripResult",
    "ThinkingFilter",
    "ThinkingStripper",
    "strip_thinking",
]
