"""In-memory platform used for local simulation and tests."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from loguru import logger

from ewebridge.config.schema import BridgeConfig
from ewebridge.hap.accessory import Accessory
from ewebridge.history import HistoryService, JsonlHistory, MemoryHistory
from ewebridge.platform.base import BridgePlatform


@dataclass(slots=True)
class SentUpdate:
    """One outbound payload captured by the memory platform."""

    device_id: str
    name: str
    params: dict[str, Any]


@dataclass(slots=True)
class ReportedError:
    device_id: str
    name: str
    error: str
    is_local_edit: bool
    refresh_requested: bool = False


class MemoryPlatform(BridgePlatform):
    """Platform that records every payload and error instead of talking to devices."""

    name = "memory"

    def __init__(self, config: BridgeConfig | None = None) -> None:
        super().__init__(config)
        self.sent: list[SentUpdate] = []
        self.errors: list[ReportedError] = []
        self.histories: dict[tuple[str, str], HistoryService] = {}
        self.adapters: dict[str, Any] = {}
        self._fail_next: list[BaseException] = []
        self.send_delay_s = 0.0

    def fail_next_send(self, err: BaseException | None = None) -> None:
        """Make the next send_device_update raise."""
        self._fail_next.append(err or RuntimeError("device offline"))

    async def send_device_update(self, accessory: Accessory, params: dict[str, Any]) -> None:
        if self.send_delay_s > 0:
            await asyncio.sleep(self.send_delay_s)
        if self._fail_next:
            raise self._fail_next.pop(0)
        update = SentUpdate(
            device_id=accessory.device_id,
            name=accessory.display_name,
            params=_copy_params(params),
        )
        self.sent.append(update)

    def device_update_error(self, accessory: Accessory, err: BaseException, is_local_edit: bool) -> None:
        try:
            source = "local edit" if is_local_edit else "device refresh"
            logger.warning(f"[{accessory.display_name}] {source} failed: {err}")
            self.errors.append(
                ReportedError(
                    device_id=accessory.device_id,
                    name=accessory.display_name,
                    error=str(err),
                    is_local_edit=bool(is_local_edit),
                )
            )
        except Exception as e:
            logger.error(f"device_update_error reporting failed: {e}")

    def request_device_refresh(self, accessory: Accessory, err: BaseException) -> None:
        try:
            logger.warning(f"[{accessory.display_name}] update failed, requesting refresh: {err}")
            self.errors.append(
                ReportedError(
                    device_id=accessory.device_id,
                    name=accessory.display_name,
                    error=str(err),
                    is_local_edit=True,
                    refresh_requested=True,
                )
            )
        except Exception as e:
            logger.error(f"request_device_refresh reporting failed: {e}")

    def create_history(self, kind: str, accessory: Accessory) -> HistoryService:
        key = (accessory.device_id or accessory.display_name, kind)
        existing = self.histories.get(key)
        if existing is not None:
            return existing
        debug = self.config.debug_history
        if self.config.history.storage == "fs":
            history: HistoryService = JsonlHistory(
                kind,
                accessory.device_id or accessory.display_name,
                Path(self.config.history.path),
                debug=debug,
            )
        else:
            history = MemoryHistory(kind, accessory.display_name, debug=debug)
        self.histories[key] = history
        return history

    def register(self, adapter: Any) -> Any:
        """Track an adapter so external updates can be routed to it by device id."""
        self.adapters[adapter.accessory.device_id] = adapter
        return adapter

    async def dispatch_external(self, device_id: str, params: dict[str, Any]) -> None:
        """Deliver a vendor state push to the registered adapter."""
        adapter = self.adapters.get(device_id)
        if adapter is None:
            raise ValueError(f"No adapter registered for device {device_id}")
        await adapter.external_update(params)

    def metrics_snapshot(self) -> dict[str, Any]:
        return {
            device_id: adapter.metrics.snapshot()
            for device_id, adapter in self.adapters.items()
        }


def _copy_params(params: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in params.items():
        if isinstance(value, list):
            out[key] = [dict(item) if isinstance(item, dict) else item for item in value]
        elif isinstance(value, dict):
            out[key] = dict(value)
        else:
            out[key] = value
    return out
