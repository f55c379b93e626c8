"""In-memory accessory model: accessories own services, services own characteristics."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Any

SetHandler = Callable[[Any], Awaitable[None]]


class ServiceType(StrEnum):
    """Service groups an adapter can expose."""

    WINDOW_COVERING = "WindowCovering"
    FAN = "Fan"
    FANV2 = "Fanv2"
    LIGHTBULB = "Lightbulb"
    THERMOSTAT = "Thermostat"
    SWITCH = "Switch"
    TEMPERATURE_SENSOR = "TemperatureSensor"
    HUMIDITY_SENSOR = "HumiditySensor"


class CharacteristicType(StrEnum):
    """Characteristics used by the device adapters."""

    ON = "On"
    ACTIVE = "Active"
    ROTATION_SPEED = "RotationSpeed"
    BRIGHTNESS = "Brightness"
    HUE = "Hue"
    SATURATION = "Saturation"
    TARGET_POSITION = "TargetPosition"
    CURRENT_POSITION = "CurrentPosition"
    POSITION_STATE = "PositionState"
    CURRENT_TEMPERATURE = "CurrentTemperature"
    TARGET_TEMPERATURE = "TargetTemperature"
    CURRENT_HEATING_COOLING_STATE = "CurrentHeatingCoolingState"
    TARGET_HEATING_COOLING_STATE = "TargetHeatingCoolingState"
    CURRENT_RELATIVE_HUMIDITY = "CurrentRelativeHumidity"


_DEFAULT_PROPS: dict[CharacteristicType, dict[str, Any]] = {
    CharacteristicType.ACTIVE: {"min_value": 0, "max_value": 1, "valid_values": [0, 1]},
    CharacteristicType.ROTATION_SPEED: {"min_value": 0, "max_value": 100, "min_step": 1},
    CharacteristicType.BRIGHTNESS: {"min_value": 0, "max_value": 100, "min_step": 1},
    CharacteristicType.HUE: {"min_value": 0, "max_value": 360, "min_step": 1},
    CharacteristicType.SATURATION: {"min_value": 0, "max_value": 100, "min_step": 1},
    CharacteristicType.TARGET_POSITION: {"min_value": 0, "max_value": 100, "min_step": 1},
    CharacteristicType.CURRENT_POSITION: {"min_value": 0, "max_value": 100, "min_step": 1},
    CharacteristicType.POSITION_STATE: {"min_value": 0, "max_value": 2, "valid_values": [0, 1, 2]},
    CharacteristicType.CURRENT_TEMPERATURE: {"min_value": 0, "max_value": 100, "min_step": 0.1},
    CharacteristicType.TARGET_TEMPERATURE: {"min_value": 10, "max_value": 38, "min_step": 0.1},
    CharacteristicType.CURRENT_HEATING_COOLING_STATE: {
        "min_value": 0,
        "max_value": 2,
        "valid_values": [0, 1, 2],
    },
    CharacteristicType.TARGET_HEATING_COOLING_STATE: {
        "min_value": 0,
        "max_value": 3,
        "valid_values": [0, 1, 2, 3],
    },
    CharacteristicType.CURRENT_RELATIVE_HUMIDITY: {"min_value": 0, "max_value": 100, "min_step": 1},
}

_DEFAULT_VALUES: dict[CharacteristicType, Any] = {
    CharacteristicType.ON: False,
    CharacteristicType.TARGET_TEMPERATURE: 10,
}


class Characteristic:
    """One controllable/observable attribute with value constraints and a set handler."""

    def __init__(self, ctype: CharacteristicType, *, value: Any = None) -> None:
        self.type = CharacteristicType(ctype)
        props = _DEFAULT_PROPS.get(self.type, {})
        self.min_value: float | None = props.get("min_value")
        self.max_value: float | None = props.get("max_value")
        self.min_step: float | None = props.get("min_step")
        self.valid_values: list[Any] | None = props.get("valid_values")
        if value is None:
            value = _DEFAULT_VALUES.get(self.type, self.min_value if self.min_value is not None else 0)
        self.value: Any = value
        self._handler: SetHandler | None = None
        self._pending: set[asyncio.Task] = set()

    def on_set(self, handler: SetHandler) -> "Characteristic":
        """Register the async handler invoked for controller writes."""
        self._handler = handler
        return self

    def set_props(
        self,
        *,
        min_value: float | None = None,
        max_value: float | None = None,
        min_step: float | None = None,
        valid_values: list[Any] | None = None,
    ) -> "Characteristic":
        if min_value is not None:
            self.min_value = min_value
        if max_value is not None:
            self.max_value = max_value
        if min_step is not None:
            self.min_step = min_step
        if valid_values is not None:
            self.valid_values = list(valid_values)
        return self

    def validate(self, value: Any) -> None:
        if self.type == CharacteristicType.ON:
            if not isinstance(value, (bool, int)):
                raise ValueError(f"{self.type} expects a boolean, got {value!r}")
            return
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{self.type} expects a number, got {value!r}")
        if self.min_value is not None and value < self.min_value:
            raise ValueError(f"{self.type} value {value} below minimum {self.min_value}")
        if self.max_value is not None and value > self.max_value:
            raise ValueError(f"{self.type} value {value} above maximum {self.max_value}")
        if self.valid_values is not None and value not in self.valid_values:
            raise ValueError(f"{self.type} value {value} not in {self.valid_values}")

    def set_value(self, value: Any) -> asyncio.Task | None:
        """Apply a controller write.

        The write is acknowledged (stored) before the handler runs; the handler is
        spawned on the running loop and its task returned.
        """
        self.validate(value)
        self.value = value
        if self._handler is None:
            return None
        task = asyncio.get_running_loop().create_task(self._handler(value))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def update_value(self, value: Any) -> "Characteristic":
        """Push a value from the bridge side without invoking the set handler."""
        self.value = value
        return self

    @property
    def pending(self) -> set[asyncio.Task]:
        return set(self._pending)

    def cancel_pending(self) -> None:
        for task in list(self._pending):
            task.cancel()


class Service:
    """Typed group of characteristics on an accessory."""

    def __init__(self, stype: ServiceType, name: str | None = None, subtype: str | None = None) -> None:
        self.type = ServiceType(stype)
        self.name = name or self.type.value
        self.subtype = subtype
        self._characteristics: dict[CharacteristicType, Characteristic] = {}

    def get_characteristic(self, ctype: CharacteristicType) -> Characteristic:
        """Return the characteristic, creating it on first use."""
        ctype = CharacteristicType(ctype)
        existing = self._characteristics.get(ctype)
        if existing is None:
            existing = self.add_characteristic(ctype)
        return existing

    def test_characteristic(self, ctype: CharacteristicType) -> bool:
        return CharacteristicType(ctype) in self._characteristics

    def add_characteristic(self, ctype: CharacteristicType) -> Characteristic:
        char = Characteristic(ctype)
        self._characteristics[char.type] = char
        return char

    def update_characteristic(self, ctype: CharacteristicType, value: Any) -> "Service":
        self.get_characteristic(ctype).update_value(value)
        return self

    def set_characteristic(self, ctype: CharacteristicType, value: Any) -> asyncio.Task | None:
        """Write as the controller would, triggering the set handler."""
        return self.get_characteristic(ctype).set_value(value)

    @property
    def characteristics(self) -> list[Characteristic]:
        return list(self._characteristics.values())


class Accessory:
    """One physical device as exposed to the home-automation controller."""

    def __init__(
        self,
        display_name: str,
        *,
        device_id: str = "",
        context: dict[str, Any] | None = None,
    ) -> None:
        self.display_name = display_name
        self.context: dict[str, Any] = dict(context or {})
        if device_id:
            self.context["eweDeviceId"] = device_id
        self.services: list[Service] = []

    @property
    def device_id(self) -> str:
        return str(self.context.get("eweDeviceId") or "")

    def get_service(self, key: ServiceType | str) -> Service | None:
        """Find a service by type, or by display name for named sub-services."""
        for service in self.services:
            if service.type == key:
                return service
        for service in self.services:
            if service.name == key:
                return service
        return None

    def add_service(
        self,
        stype: ServiceType,
        name: str | None = None,
        subtype: str | None = None,
    ) -> Service:
        service = Service(stype, name=name, subtype=subtype)
        self.services.append(service)
        return service

    def remove_service(self, service: Service) -> None:
        with contextlib.suppress(ValueError):
            self.services.remove(service)

    def pending_tasks(self) -> set[asyncio.Task]:
        tasks: set[asyncio.Task] = set()
        for service in self.services:
            for char in service.characteristics:
                tasks |= char.pending
        return tasks

    async def drain(self) -> None:
        """Wait until every in-flight set handler on this accessory has finished."""
        while True:
            tasks = self.pending_tasks()
            if not tasks:
                return
            await asyncio.gather(*tasks, return_exceptions=True)
