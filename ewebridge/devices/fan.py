"""Ceiling fan with light, driven by a four-outlet relay board.

Outlet 0 switches the light. Outlets 1-3 encode the fan speed:

    speed 33  -> on  off off
    speed 66  -> on  on  off
    speed 99  -> on  off on

Any other relay combination reads back as off.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ewebridge.devices.base import DeviceAdapter
from ewebridge.hap.accessory import Accessory, CharacteristicType, ServiceType
from ewebridge.platform.base import BridgePlatform
from ewebridge.utils.helpers import has_property

SPEED_STEP = 33

_RELAY_SPEEDS: dict[str, int] = {
    "onoffoff": 33,
    "ononoff": 66,
    "onoffon": 99,
}


def speed_tier(value: float) -> int:
    """Discretise a rotation speed percentage onto {0, 33, 66, 99}."""
    if value >= 99:
        return 99
    if value >= 66:
        return 66
    if value >= 33:
        return 33
    return 0


def encode_relays(power: int, speed: int, light: bool) -> dict[str, Any]:
    on = power == 1
    relays = [
        bool(light),
        on and speed >= 33,
        on and 66 <= speed < 99,
        on and speed >= 99,
    ]
    return {
        "switches": [
            {"switch": "on" if state else "off", "outlet": outlet}
            for outlet, state in enumerate(relays)
        ]
    }


def decode_relays(params: dict[str, Any]) -> tuple[bool, int, int]:
    """Return (light, active, speed) from either payload shape the fan reports."""
    switches = params.get("switches")
    if isinstance(switches, list):
        by_outlet = _switches_by_outlet(switches)
        light = by_outlet.get(0) == "on"
        pattern = "".join(by_outlet.get(i, "off") for i in (1, 2, 3))
        speed = _RELAY_SPEEDS.get(pattern, 0)
        return light, 1 if speed else 0, speed
    if all(has_property(params, key) for key in ("light", "fan", "speed")):
        light = params["light"] == "on"
        active = 1 if params["fan"] == "on" else 0
        return light, active, int(params["speed"]) * SPEED_STEP * active
    raise ValueError("unknown parameters received")


def _switches_by_outlet(switches: list[Any]) -> dict[int, str]:
    out: dict[int, str] = {}
    for index, item in enumerate(switches):
        if not isinstance(item, dict):
            raise ValueError(f"invalid switch entry {item!r}")
        outlet = int(item.get("outlet", index))
        out[outlet] = str(item.get("switch") or "off")
    return out


@dataclass(slots=True)
class FanState:
    light: bool | None = None
    active: int | None = None
    speed: int | None = None


class FanDevice(DeviceAdapter):
    kind = "fan"

    def __init__(self, platform: BridgePlatform, accessory: Accessory) -> None:
        super().__init__(platform, accessory)
        self.state = FanState()
        self.speed_gate = self._make_gate(self.timing.speed_settle_s, "speed")

        self.fan_service = (
            self.accessory.get_service(ServiceType.FANV2)
            or self.accessory.add_service(ServiceType.FANV2)
        )
        self.light_service = (
            self.accessory.get_service(ServiceType.LIGHTBULB)
            or self.accessory.add_service(ServiceType.LIGHTBULB)
        )

        self.fan_service.get_characteristic(CharacteristicType.ACTIVE).on_set(self._on_power)
        self.fan_service.get_characteristic(CharacteristicType.ROTATION_SPEED).on_set(
            self._on_speed
        ).set_props(min_step=SPEED_STEP)
        self.light_service.get_characteristic(CharacteristicType.ON).on_set(self._on_light)

        self._log_init_options({"disableDeviceLogging": self.disable_device_logging})

    def _current(self) -> tuple[int, int, bool]:
        power = int(self.fan_service.get_characteristic(CharacteristicType.ACTIVE).value or 0)
        speed = int(self.fan_service.get_characteristic(CharacteristicType.ROTATION_SPEED).value or 0)
        light = bool(self.light_service.get_characteristic(CharacteristicType.ON).value)
        return power, speed, light

    async def _on_power(self, value: int) -> None:
        _, _, light = self._current()
        power = int(value)
        await self._apply_local(power, SPEED_STEP if power else 0, light)

    async def _on_speed(self, value: float) -> None:
        try:
            self.metrics.record_edit()
            speed = speed_tier(value)
            if speed == self.state.speed:
                self._unchanged(self.speed_gate)
                return
            if not await self._settle(self.speed_gate):
                return
        except Exception as e:
            self.platform.request_device_refresh(self.accessory, e)
            return
        _, _, light = self._current()
        await self._apply_local(1 if speed >= 33 else 0, speed, light, counted=True)

    async def _on_light(self, value: bool) -> None:
        power, speed, _ = self._current()
        await self._apply_local(power, speed_tier(speed), bool(value))

    async def _apply_local(self, power: int, speed: int, light: bool, *, counted: bool = False) -> None:
        try:
            if not counted:
                self.metrics.record_edit()
            if (light, power, speed) == (self.state.light, self.state.active, self.state.speed):
                self._unchanged()
                return
            self.state.light, self.state.active, self.state.speed = light, power, speed
            await self._send_update(encode_relays(power, speed, light))
            self.light_service.update_characteristic(CharacteristicType.ON, light)
            self.fan_service.update_characteristic(CharacteristicType.ACTIVE, power)
            self.fan_service.update_characteristic(CharacteristicType.ROTATION_SPEED, speed)
            self._log_state(
                f"current state [fan {'on' if power else 'off'} speed {speed}% light {'on' if light else 'off'}]"
            )
        except Exception as e:
            self.platform.request_device_refresh(self.accessory, e)

    async def external_update(self, params: dict[str, Any]) -> None:
        try:
            if self._echo_suppressed():
                return
            light, active, speed = decode_relays(params)
            if (light, active, speed) == (self.state.light, self.state.active, self.state.speed):
                return
            self.state.light, self.state.active, self.state.speed = light, active, speed
            self.light_service.update_characteristic(CharacteristicType.ON, light)
            self.fan_service.update_characteristic(CharacteristicType.ACTIVE, active)
            self.fan_service.update_characteristic(CharacteristicType.ROTATION_SPEED, speed)
            self.metrics.record_applied("switches")
            self._log_echo(
                params,
                f"current state [fan {'on' if active else 'off'} speed {speed}% light {'on' if light else 'off'}]",
            )
        except Exception as e:
            self._report_echo_error(e)
