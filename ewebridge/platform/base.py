"""Capability contract the bridge provides to every device adapter."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from ewebridge.config.schema import BridgeConfig
from ewebridge.hap.accessory import Accessory
from ewebridge.history import HistoryService


class BridgePlatform(ABC):
    """Abstract platform injected into adapters: transport, error reporting, history."""

    name: str = "base"

    def __init__(self, config: BridgeConfig | None = None) -> None:
        self.config = config or BridgeConfig()

    @abstractmethod
    async def send_device_update(self, accessory: Accessory, params: dict[str, Any]) -> None:
        """Deliver a parameter payload to the vendor device. May raise."""

    @abstractmethod
    def device_update_error(self, accessory: Accessory, err: BaseException, is_local_edit: bool) -> None:
        """Report a failed update. Must never raise."""

    @abstractmethod
    def request_device_refresh(self, accessory: Accessory, err: BaseException) -> None:
        """Report a failure and schedule a state re-sync. Must never raise."""

    @abstractmethod
    def create_history(self, kind: str, accessory: Accessory) -> HistoryService:
        """Build the history log collaborator for one accessory."""
