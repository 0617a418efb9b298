"""Settings loading, logging setup and registry bootstrap."""

from .settings import LOG_FORMAT, Settings, build_registry, configure_logging

__all__ = [
    "LOG_FORMAT",
    "Settings",
    "build_registry",
    "configure_logging",
]
