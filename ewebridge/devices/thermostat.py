"""Thermostat simulated from a heater relay with a temperature/humidity probe.

The relay's on-device automation does the regulating: the adapter uploads two
trigger rules around the target temperature (off above it, on below it).
Current heating state is derived locally from current vs. target temperature.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

from ewebridge.devices.base import DeviceAdapter
from ewebridge.hap.accessory import Accessory, CharacteristicType, ServiceType
from ewebridge.platform.base import BridgePlatform
from ewebridge.utils.helpers import has_property

DEFAULT_TARGET = 20
SENSOR_WITHOUT_HUMIDITY = "DS18B20"
UNAVAILABLE = "unavailable"


def build_target_payload(target: float) -> dict[str, Any]:
    """Automation payload switching the heater off above and on below `target`."""
    threshold = f"{float(target):.1f}"
    return {
        "deviceType": "temperature",
        "targets": [
            {"targetHigh": threshold, "reaction": {"switch": "off"}},
            {"targetLow": threshold, "reaction": {"switch": "on"}},
        ],
    }


def build_mode_payload(mode: int) -> dict[str, Any]:
    if mode == 0:
        return {"mainSwitch": "off", "switch": "off"}
    return {"mainSwitch": "on"}


def heating_state(on_off: str | None, current: float | None, target: float) -> str:
    """'on' when the thermostat is enabled and the room is below target."""
    if on_off != "on" or current is None:
        return "off"
    return "on" if current < target else "off"


@dataclass(slots=True)
class ThermostatState:
    on_off: str | None = None
    heat: str | None = None
    target: float | None = None
    temperature: float | None = None
    humidity: int | None = None


class ThermostatDevice(DeviceAdapter):
    kind = "thermostat"

    def __init__(self, platform: BridgePlatform, accessory: Accessory) -> None:
        super().__init__(platform, accessory)
        self.state = ThermostatState()
        th_conf = self.config.get_th_device(self.device_id)
        sim_conf = self.config.get_simulation(self.device_id)
        self.temp_offset = th_conf.offset if th_conf else 0.0
        self.simulation_type = sim_conf.type if sim_conf else "thermostat"
        if (th_conf and th_conf.override_disabled_logging) or (
            sim_conf and sim_conf.override_disabled_logging
        ):
            self.disable_device_logging = False

        # Services left over from when this device was exposed as a plain switch/sensor.
        for stale in (
            ServiceType.SWITCH,
            ServiceType.TEMPERATURE_SENSOR,
            ServiceType.HUMIDITY_SENSOR,
        ):
            service = self.accessory.get_service(stale)
            if service is not None:
                self.accessory.remove_service(service)

        if not has_property(self.accessory.context, "cacheTarget"):
            self.accessory.context["cacheTarget"] = DEFAULT_TARGET

        self.service = (
            self.accessory.get_service(ServiceType.THERMOSTAT)
            or self.accessory.add_service(ServiceType.THERMOSTAT)
        )
        self.service.get_characteristic(CharacteristicType.CURRENT_TEMPERATURE).set_props(
            min_value=-100,
            min_step=0.1,
        )
        self.service.get_characteristic(CharacteristicType.TARGET_HEATING_COOLING_STATE).on_set(
            self._on_mode
        ).set_props(min_value=0, max_value=1, valid_values=[0, 1])
        self.service.get_characteristic(CharacteristicType.TARGET_TEMPERATURE).on_set(
            self._on_target_temperature
        ).set_props(min_value=0, max_value=30, min_step=0.5)

        if self.accessory.context.get("sensorType") != SENSOR_WITHOUT_HUMIDITY and not (
            self.service.test_characteristic(CharacteristicType.CURRENT_RELATIVE_HUMIDITY)
        ):
            self.service.add_characteristic(CharacteristicType.CURRENT_RELATIVE_HUMIDITY)

        self.history = platform.create_history("custom", accessory)

        self._log_init_options(
            {
                "disableDeviceLogging": self.disable_device_logging,
                "offset": self.temp_offset,
                "type": self.simulation_type,
            }
        )

    @property
    def target(self) -> float:
        return float(self.accessory.context.get("cacheTarget", DEFAULT_TARGET))

    def _current_temperature(self) -> float | None:
        value = self.service.get_characteristic(CharacteristicType.CURRENT_TEMPERATURE).value
        return None if value is None else float(value)

    def _push_heating(self) -> None:
        self.service.update_characteristic(
            CharacteristicType.CURRENT_HEATING_COOLING_STATE,
            1 if self.state.heat == "on" else 0,
        )

    async def async_setup(self) -> None:
        """Re-send the stored target so the device automation matches after a restart."""
        await asyncio.sleep(self.timing.thermostat_setup_delay_s)
        task = self.service.set_characteristic(CharacteristicType.TARGET_TEMPERATURE, self.target)
        if task is not None:
            await task

    async def _on_mode(self, value: int) -> None:
        try:
            self.metrics.record_edit()
            on_off = "on" if value != 0 else "off"
            if on_off == self.state.on_off:
                self._unchanged()
                return
            self.state.on_off = on_off
            self.state.heat = heating_state(on_off, self._current_temperature(), self.target)
            self._push_heating()
            await self._send_update(build_mode_payload(value))
            self._log_state(f"current state [{on_off}]")
        except Exception as e:
            self._report_local_error(e)

    async def _on_target_temperature(self, value: float) -> None:
        try:
            self.metrics.record_edit()
            if value == self.state.target:
                self._unchanged()
                return
            self.state.target = value
            self.accessory.context["cacheTarget"] = value
            self.state.on_off = "on"
            self.state.heat = heating_state("on", self._current_temperature(), value)
            self._push_heating()
            await self._send_update(build_target_payload(value))
            self._log_state(f"current target [{value}°C]")
        except Exception as e:
            self._report_local_error(e)

    async def external_update(self, params: dict[str, Any]) -> None:
        try:
            if self._echo_suppressed():
                return
            self._apply_main_switch(params)
            self._apply_heating(params)
            self._apply_temperature(params)
            self._apply_humidity(params)
        except Exception as e:
            self._report_echo_error(e)

    def _apply_main_switch(self, params: dict[str, Any]) -> None:
        new_state = params.get("mainSwitch")
        if not new_state or new_state == self.state.on_off:
            return
        self.state.on_off = new_state
        self.service.update_characteristic(
            CharacteristicType.TARGET_HEATING_COOLING_STATE,
            1 if new_state == "on" else 0,
        )
        self.history.add_entry({"status": 1 if new_state == "on" else 0})
        if new_state == "off":
            self.state.heat = "off"
            self._push_heating()
        self.metrics.record_applied("mainSwitch")
        # A heating change in the same payload logs its own line.
        if not params.get("switch"):
            self._log_echo(params, f"current state [{new_state}]")

    def _apply_heating(self, params: dict[str, Any]) -> None:
        heat = params.get("switch")
        if not heat or heat == self.state.heat:
            return
        self.state.heat = heat
        self._push_heating()
        self.metrics.record_applied("switch")
        self._log_echo(params, f"current heating [{heat}]")

    def _apply_temperature(self, params: dict[str, Any]) -> None:
        raw = params.get("currentTemperature")
        if raw is None or raw == UNAVAILABLE:
            return
        temperature = float(raw) + self.temp_offset
        if temperature == self.state.temperature:
            return
        self.state.temperature = temperature
        self.service.update_characteristic(CharacteristicType.CURRENT_TEMPERATURE, temperature)
        self.history.add_entry({"temp": temperature})
        self.metrics.record_applied("currentTemperature")
        self._log_echo(params, f"current temperature [{temperature}°C]")

    def _apply_humidity(self, params: dict[str, Any]) -> None:
        raw = params.get("currentHumidity")
        if raw is None or raw == UNAVAILABLE:
            return
        if not self.service.test_characteristic(CharacteristicType.CURRENT_RELATIVE_HUMIDITY):
            return
        humidity = int(float(raw))
        if humidity == self.state.humidity:
            return
        self.state.humidity = humidity
        self.service.update_characteristic(CharacteristicType.CURRENT_RELATIVE_HUMIDITY, humidity)
        self.history.add_entry({"humidity": humidity})
        self.metrics.record_applied("currentHumidity")
        self._log_echo(params, f"current humidity [{humidity}%]")
