"""Network client, orchestration and status services."""

from .board import BoardClient
from .orchestrator import Orchestrator
from .status import StatusLog

__all__ = [
    "BoardClient",
    "Orchestrator",
    "StatusLog",
]
