"""Device-type adapters mapping accessory characteristics to vendor parameters."""

from __future__ import annotations

import re

from ewebridge.devices.base import DeviceAdapter
from ewebridge.devices.curtain import CurtainDevice
from ewebridge.devices.diffuser import DiffuserDevice
from ewebridge.devices.fan import FanDevice
from ewebridge.devices.switch_single import SwitchSingleDevice
from ewebridge.devices.thermostat import ThermostatDevice
from ewebridge.hap.accessory import Accessory
from ewebridge.platform.base import BridgePlatform

DEVICE_TYPES: dict[str, type[DeviceAdapter]] = {
    CurtainDevice.kind: CurtainDevice,
    DiffuserDevice.kind: DiffuserDevice,
    FanDevice.kind: FanDevice,
    ThermostatDevice.kind: ThermostatDevice,
    SwitchSingleDevice.kind: SwitchSingleDevice,
}

_DEVICE_ALIASES: dict[str, str] = {
    "window_covering": "curtain",
    "blind": "curtain",
    "aroma": "diffuser",
    "ceiling_fan": "fan",
    "heater": "thermostat",
    "switch": "switch_single",
    "zb_switch_single": "switch_single",
}


def _normalize_name(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", str(name or "").strip().lower()).strip("_")


def resolve_device_type(kind: str) -> type[DeviceAdapter]:
    normalized = _normalize_name(kind)
    normalized = _DEVICE_ALIASES.get(normalized, normalized)
    adapter_cls = DEVICE_TYPES.get(normalized)
    if adapter_cls is None:
        supported = ", ".join(sorted(DEVICE_TYPES))
        raise ValueError(f"Unsupported device type '{kind}'. Supported: {supported}")
    return adapter_cls


def list_device_types() -> list[str]:
    return sorted(DEVICE_TYPES)


def create_device(kind: str, platform: BridgePlatform, accessory: Accessory) -> DeviceAdapter:
    """Build the adapter for `kind` around an existing or new accessory."""
    return resolve_device_type(kind)(platform, accessory)


__all__ = [
    "DeviceAdapter",
    "CurtainDevice",
    "DiffuserDevice",
    "FanDevice",
    "ThermostatDevice",
    "SwitchSingleDevice",
    "DEVICE_TYPES",
    "create_device",
    "list_device_types",
    "resolve_device_type",
]
