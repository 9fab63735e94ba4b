"""Base classes for CLI managers."""

from .manager import BaseManager
from .orchestrator import BaseOrchestrator
from .service import BaseService

__all__ = ["BaseManager", "BaseService", "BaseOrchestrator"]
