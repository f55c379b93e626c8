"""Bridge platform contract and the in-memory implementation."""

from ewebridge.platform.base import BridgePlatform
from ewebridge.platform.memory import MemoryPlatform, ReportedError, SentUpdate

__all__ = ["BridgePlatform", "MemoryPlatform", "ReportedError", "SentUpdate"]
