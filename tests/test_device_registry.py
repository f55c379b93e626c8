import pytest

from ewebridge.devices import (
    CurtainDevice,
    FanDevice,
    SwitchSingleDevice,
    create_device,
    list_device_types,
    resolve_device_type,
)
from ewebridge.hap.accessory import Accessory
from ewebridge.platform.memory import MemoryPlatform


def test_list_device_types() -> None:
    assert list_device_types() == ["curtain", "diffuser", "fan", "switch_single", "thermostat"]


def test_resolve_device_type_aliases() -> None:
    assert resolve_device_type("Curtain") is CurtainDevice
    assert resolve_device_type("window-covering") is CurtainDevice
    assert resolve_device_type("ZB Switch Single") is SwitchSingleDevice


def test_resolve_device_type_unknown_raises() -> None:
    with pytest.raises(ValueError, match="Unsupported device type"):
        resolve_device_type("toaster")


def test_create_device_binds_accessory() -> None:
    platform = MemoryPlatform()
    accessory = Accessory("Fan", device_id="fan-9")

    device = create_device("fan", platform, accessory)

    assert isinstance(device, FanDevice)
    assert device.accessory is accessory
    assert device.device_id == "fan-9"
    assert device.platform is platform
