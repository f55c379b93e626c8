"""Curtain motor exposed as a window covering.

Device parameters:
    switch: "on" fully open, "off" fully closed
    setclose: int, 0 = open, 100 = closed (inverted against the accessory scale)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ewebridge.devices.base import DeviceAdapter
from ewebridge.hap.accessory import Accessory, CharacteristicType, ServiceType
from ewebridge.platform.base import BridgePlatform
from ewebridge.utils.helpers import has_property

POSITION_STATE_STOPPED = 2


def encode_position(position: int) -> dict[str, Any]:
    """Map an accessory position (0 closed, 100 open) to curtain params."""
    position = int(position)
    if position == 100:
        return {"switch": "on"}
    if position == 0:
        return {"switch": "off"}
    return {"setclose": abs(100 - position)}


def decode_position(params: dict[str, Any]) -> int | None:
    """Map curtain params back to an accessory position, or None when absent."""
    if has_property(params, "setclose"):
        return abs(100 - int(params["setclose"]))
    if params.get("switch") == "on":
        return 100
    if params.get("switch") == "off":
        return 0
    return None


@dataclass(slots=True)
class CurtainState:
    position: int | None = None


class CurtainDevice(DeviceAdapter):
    kind = "curtain"

    def __init__(self, platform: BridgePlatform, accessory: Accessory) -> None:
        super().__init__(platform, accessory)
        self.state = CurtainState()

        self.service = (
            self.accessory.get_service(ServiceType.WINDOW_COVERING)
            or self.accessory.add_service(ServiceType.WINDOW_COVERING)
        )
        self.service.get_characteristic(CharacteristicType.TARGET_POSITION).on_set(
            self._on_target_position
        )

        self._log_init_options({"disableDeviceLogging": self.disable_device_logging})

    async def _on_target_position(self, value: int) -> None:
        try:
            self.metrics.record_edit()
            if value == self.state.position:
                self._unchanged()
                return
            params = encode_position(value)
            self.state.position = value
            await self._send_update(params)
            self._log_state(f"current position [{value}%]")
        except Exception as e:
            self._report_local_error(e)

    async def external_update(self, params: dict[str, Any]) -> None:
        try:
            if self._echo_suppressed():
                return
            position = decode_position(params)
            if position is None or position == self.state.position:
                return
            self.state.position = position
            self.service.update_characteristic(CharacteristicType.TARGET_POSITION, position)
            self.service.update_characteristic(CharacteristicType.CURRENT_POSITION, position)
            self.service.update_characteristic(CharacteristicType.POSITION_STATE, POSITION_STATE_STOPPED)
            self.metrics.record_applied("position")
            self._log_echo(params, f"current position [{position}%]")
        except Exception as e:
            self._report_echo_error(e)
