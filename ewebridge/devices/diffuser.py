"""Aroma diffuser: a two-speed fan plus an RGB night light.

Device parameters:
    switch: "on" | "off"
    state: 0 | 1 | 2 (speed tier, x50 on the accessory scale)
    lightswitch: 0 | 1
    lightbright: 0-100
    lightRcolor / lightGcolor / lightBcolor: 0-255
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ewebridge.devices.base import DeviceAdapter
from ewebridge.hap.accessory import Accessory, CharacteristicType, ServiceType
from ewebridge.platform.base import BridgePlatform
from ewebridge.utils.colour import hs_to_rgb, rgb_to_hs
from ewebridge.utils.helpers import has_property

SPEED_STEP = 50
SPEED_ROUND_THRESHOLD = 75


def snap_speed(value: float) -> int:
    """Round a rotation speed onto the two device tiers {50, 100}."""
    return 50 if value <= SPEED_ROUND_THRESHOLD else 100


def speed_to_state(speed: int) -> int:
    return int(speed) // SPEED_STEP


def state_to_speed(state: Any) -> int:
    return int(state) * SPEED_STEP


@dataclass(slots=True)
class DiffuserState:
    on_off: str | None = None
    speed: int | None = None
    light_on_off: int | None = None
    brightness: int | None = None
    hue: int | None = None
    rgb: tuple[int, int, int] | None = None


class DiffuserDevice(DeviceAdapter):
    kind = "diffuser"

    def __init__(self, platform: BridgePlatform, accessory: Accessory) -> None:
        super().__init__(platform, accessory)
        self.state = DiffuserState()
        self.speed_gate = self._make_gate(self.timing.speed_settle_s, "speed")
        self.brightness_gate = self._make_gate(self.timing.brightness_settle_s, "brightness")
        self.colour_gate = self._make_gate(self.timing.colour_settle_s, "colour")

        self.fan_service = (
            self.accessory.get_service("Diffuser")
            or self.accessory.add_service(ServiceType.FAN, "Diffuser", "diffuser")
        )
        self.light_service = (
            self.accessory.get_service("Light")
            or self.accessory.add_service(ServiceType.LIGHTBULB, "Light", "light")
        )

        self.fan_service.get_characteristic(CharacteristicType.ON).on_set(self._on_diffuser_on_off)
        self.fan_service.get_characteristic(CharacteristicType.ROTATION_SPEED).on_set(
            self._on_diffuser_speed
        ).set_props(min_step=SPEED_STEP)
        self.light_service.get_characteristic(CharacteristicType.ON).on_set(self._on_light_on_off)
        self.light_service.get_characteristic(CharacteristicType.BRIGHTNESS).on_set(
            self._on_light_brightness
        )
        self.light_service.get_characteristic(CharacteristicType.HUE).on_set(self._on_light_colour)
        # Saturation is folded into the hue write.
        self.light_service.get_characteristic(CharacteristicType.SATURATION).on_set(self._ignore)

        self._log_init_options({"disableDeviceLogging": self.disable_device_logging})

    async def _ignore(self, value: Any) -> None:
        return None

    async def _on_diffuser_on_off(self, value: bool) -> None:
        try:
            self.metrics.record_edit()
            on_off = "on" if value else "off"
            if on_off == self.state.on_off:
                self._unchanged()
                return
            self.state.on_off = on_off
            await self._send_update({"switch": on_off})
            self._log_state(f"current state [{on_off}]")
        except Exception as e:
            self._report_local_error(e)

    async def _on_diffuser_speed(self, value: float) -> None:
        try:
            self.metrics.record_edit()
            # Speed 0 is an off request, handled by the on/off characteristic.
            if value == 0:
                return
            new_speed = snap_speed(value)
            if new_speed == self.state.speed:
                self._unchanged(self.speed_gate)
                return
            if not await self._settle(self.speed_gate):
                return
            self.state.speed = new_speed
            # Re-push the snapped value for controllers that ignore min_step.
            self.fan_service.update_characteristic(CharacteristicType.ROTATION_SPEED, new_speed)
            await self._send_update({"state": speed_to_state(new_speed)})
            self._log_state(f"current speed [{new_speed}%]")
        except Exception as e:
            self._report_local_error(e)

    async def _on_light_on_off(self, value: bool) -> None:
        try:
            self.metrics.record_edit()
            light = 1 if value else 0
            if light == self.state.light_on_off:
                self._unchanged()
                return
            self.state.light_on_off = light
            await self._send_update({"lightswitch": light})
            self._log_state(f"current light [{'on' if light else 'off'}]")
        except Exception as e:
            self._report_local_error(e)

    async def _on_light_brightness(self, value: int) -> None:
        try:
            self.metrics.record_edit()
            if value == self.state.brightness:
                self._unchanged(self.brightness_gate)
                return
            if not await self._settle(self.brightness_gate):
                return
            self.state.brightness = value
            await self._send_update({"lightbright": value})
            self._log_state(f"current brightness [{value}%]")
        except Exception as e:
            self._report_local_error(e)

    async def _on_light_colour(self, value: int) -> None:
        try:
            self.metrics.record_edit()
            if self.state.light_on_off == 0:
                return
            if value == self.state.hue:
                self._unchanged(self.colour_gate)
                return
            saturation = self.light_service.get_characteristic(CharacteristicType.SATURATION).value
            rgb = hs_to_rgb(value, saturation)
            if not await self._settle(self.colour_gate):
                return
            self.state.hue = value
            self.state.rgb = rgb
            r, g, b = rgb
            await self._send_update({"lightRcolor": r, "lightGcolor": g, "lightBcolor": b})
            self._log_state(f"current colour [rgb {r} {g} {b}]")
        except Exception as e:
            self._report_local_error(e)

    async def external_update(self, params: dict[str, Any]) -> None:
        try:
            if self._echo_suppressed():
                return
            self._apply_on_off(params)
            self._apply_speed(params)
            self._apply_light_on_off(params)
            self._apply_brightness(params)
            self._apply_colour(params)
        except Exception as e:
            self._report_echo_error(e)

    def _apply_on_off(self, params: dict[str, Any]) -> None:
        on_off = params.get("switch")
        if not on_off or on_off == self.state.on_off:
            return
        self.state.on_off = on_off
        self.fan_service.update_characteristic(CharacteristicType.ON, on_off == "on")
        if on_off == "on" and not has_property(params, "state") and self.state.speed is not None:
            self.fan_service.update_characteristic(CharacteristicType.ROTATION_SPEED, self.state.speed)
        self.metrics.record_applied("switch")
        self._log_echo(params, f"current state [{on_off}]")

    def _apply_speed(self, params: dict[str, Any]) -> None:
        if not has_property(params, "state"):
            return
        speed = state_to_speed(params["state"])
        if speed == self.state.speed:
            return
        self.state.speed = speed
        self.fan_service.update_characteristic(CharacteristicType.ROTATION_SPEED, speed)
        self.metrics.record_applied("state")
        self._log_echo(params, f"current speed [{speed}%]")

    def _apply_light_on_off(self, params: dict[str, Any]) -> None:
        if not has_property(params, "lightswitch"):
            return
        light = int(params["lightswitch"])
        if light == self.state.light_on_off:
            return
        self.state.light_on_off = light
        self.light_service.update_characteristic(CharacteristicType.ON, light == 1)
        self.metrics.record_applied("lightswitch")
        self._log_echo(params, f"current light [{'on' if light == 1 else 'off'}]")

    def _apply_brightness(self, params: dict[str, Any]) -> None:
        if not has_property(params, "lightbright"):
            return
        brightness = int(params["lightbright"])
        if brightness == self.state.brightness:
            return
        self.state.brightness = brightness
        self.light_service.update_characteristic(CharacteristicType.BRIGHTNESS, brightness)
        self.metrics.record_applied("lightbright")
        self._log_echo(params, f"current brightness [{brightness}%]")

    def _apply_colour(self, params: dict[str, Any]) -> None:
        if not has_property(params, "lightRcolor"):
            return
        rgb = (
            int(params["lightRcolor"]),
            int(params["lightGcolor"]),
            int(params["lightBcolor"]),
        )
        if rgb == self.state.rgb:
            return
        self.state.rgb = rgb
        hue, _ = rgb_to_hs(*rgb)
        self.state.hue = hue
        self.light_service.update_characteristic(CharacteristicType.HUE, hue)
        # The device has no saturation control.
        self.light_service.update_characteristic(CharacteristicType.SATURATION, 100)
        self.metrics.record_applied("lightcolor")
        self._log_echo(params, f"current colour [rgb {rgb[0]} {rgb[1]} {rgb[2]}]")
