"""Chat orchestration.

The orchestrator coordinates the engine's components:
- Vendor registry for selection
- Pattern resolver and text stores for prompt material
- Session assembler and bridge
- Dispatcher for blocking and streamed sends
"""

from .engine import ChatOrchestrator, OrchestratorConfig, PreparedChat

__all__ = [
    "ChatOrchestrator",
    "OrchestratorConfig",
    "PreparedChat",
]
