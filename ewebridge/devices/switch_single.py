"""Single-channel zigbee switch with a persisted on/off history."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ewebridge.devices.base import DeviceAdapter
from ewebridge.hap.accessory import Accessory, CharacteristicType, ServiceType
from ewebridge.platform.base import BridgePlatform
from ewebridge.utils.helpers import now_s


def encode_switch(value: bool) -> dict[str, Any]:
    return {"switch": "on" if value else "off"}


@dataclass(slots=True)
class SwitchState:
    on_off: str | None = None


class SwitchSingleDevice(DeviceAdapter):
    kind = "switch_single"

    def __init__(self, platform: BridgePlatform, accessory: Accessory) -> None:
        super().__init__(platform, accessory)
        self.state = SwitchState()

        self.service = (
            self.accessory.get_service(ServiceType.SWITCH)
            or self.accessory.add_service(ServiceType.SWITCH)
        )
        self.history = platform.create_history("switch", accessory)
        self.service.get_characteristic(CharacteristicType.ON).on_set(self._on_switch)

        self._log_init_options({"disableDeviceLogging": self.disable_device_logging})

    def _record_history(self, on_off: str) -> None:
        self.history.add_entry({"time": now_s(), "status": 1 if on_off == "on" else 0})

    async def _on_switch(self, value: bool) -> None:
        try:
            self.metrics.record_edit()
            params = encode_switch(value)
            if params["switch"] == self.state.on_off:
                self._unchanged()
                return
            self.state.on_off = params["switch"]
            await self._send_update(params)
            self._record_history(params["switch"])
            self._log_state(f"current state [{params['switch']}]")
        except Exception as e:
            self._report_local_error(e)

    async def external_update(self, params: dict[str, Any]) -> None:
        try:
            if self._echo_suppressed():
                return
            new_state = params.get("switch")
            if not new_state or new_state == self.state.on_off:
                return
            if new_state not in ("on", "off"):
                raise ValueError(f"unexpected switch value {new_state!r}")
            self.state.on_off = new_state
            self.service.update_characteristic(CharacteristicType.ON, new_state == "on")
            self._record_history(new_state)
            self.metrics.record_applied("switch")
            self._log_echo(params, f"current state [{new_state}]")
        except Exception as e:
            self._report_echo_error(e)
