"""Adapter base contract shared by every device type."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any

from loguru import logger

from ewebridge.hap.accessory import Accessory
from ewebridge.observability import AdapterMetrics
from ewebridge.platform.base import BridgePlatform
from ewebridge.utils.debounce import SettleGate, SuppressionWindow


class DeviceAdapter(ABC):
    """Binds one accessory's characteristics to one vendor device.

    Subclasses provision their services in ``__init__`` (create-if-absent, so a
    restored accessory is reused), register async set handlers, and implement
    :meth:`external_update` for state pushed from the device.
    """

    kind: str = "base"

    def __init__(self, platform: BridgePlatform, accessory: Accessory) -> None:
        self.platform = platform
        self.accessory = accessory
        self.config = platform.config
        self.timing = platform.config.timing
        self.name = accessory.display_name
        self.device_id = accessory.device_id
        self.disable_device_logging = self._resolve_disable_logging()
        self.metrics = AdapterMetrics()
        self.window = SuppressionWindow(self.timing.suppression_window_s)

    def _resolve_disable_logging(self) -> bool:
        device_conf = self.config.get_single_device(self.device_id)
        if device_conf and device_conf.override_disabled_logging:
            return False
        return self.config.disable_device_logging

    def _log_init_options(self, opts: dict[str, Any]) -> None:
        if self.config.debug:
            logger.debug(f"[{self.name}] initialising with options {json.dumps(opts)}.")

    def _log_state(self, message: str) -> None:
        if not self.disable_device_logging:
            logger.info(f"[{self.name}] {message}.")

    def _log_echo(self, params: dict[str, Any], message: str) -> None:
        if params.get("updateSource"):
            self._log_state(message)

    def _make_gate(self, delay_s: float, name: str) -> SettleGate:
        return SettleGate(delay_s, name=f"{self.name}:{name}")

    async def _settle(self, gate: SettleGate) -> bool:
        """Wait out the settle delay; False when a newer edit superseded this one."""
        token = await gate.settle()
        if token is None:
            self.metrics.record_superseded()
            return False
        return True

    def _unchanged(self, gate: SettleGate | None = None) -> None:
        """Count a no-op edit; a pending settle on `gate` is dropped as well."""
        if gate is not None:
            gate.cancel()
        self.metrics.record_unchanged()

    async def _send_update(self, params: dict[str, Any]) -> None:
        """Open the suppression window and deliver params. Failures propagate to the caller."""
        self.window.arm()
        try:
            await self.platform.send_device_update(self.accessory, params)
        except Exception:
            self.metrics.record_send(success=False)
            raise
        self.metrics.record_send(success=True)

    def _report_local_error(self, err: Exception) -> None:
        self.platform.device_update_error(self.accessory, err, True)

    def _report_echo_error(self, err: Exception) -> None:
        self.metrics.record_echo_failure()
        self.platform.device_update_error(self.accessory, err, False)

    def _echo_suppressed(self) -> bool:
        suppressed = self.window.active
        self.metrics.record_echo(suppressed=suppressed)
        return suppressed

    async def async_setup(self) -> None:
        """Optional post-registration step run by the platform."""

    def close(self) -> None:
        """Drop timers and cancel handlers still in flight."""
        self.window.close()
        for service in self.accessory.services:
            for char in service.characteristics:
                char.cancel_pending()

    @abstractmethod
    async def external_update(self, params: dict[str, Any]) -> None:
        """Apply a state payload received from the vendor device."""
