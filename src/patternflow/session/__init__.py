"""Session assembly and persistence bridge."""

from .assembler import SessionAssembler
from .bridge import SessionBridge

__all__ = ["SessionAssembler", "SessionBridge"]
