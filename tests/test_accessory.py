import asyncio

import pytest

from ewebridge.hap.accessory import Accessory, Characteristic, CharacteristicType, ServiceType
from ewebridge.history import MemoryHistory


def test_characteristic_defaults() -> None:
    assert Characteristic(CharacteristicType.ON).value is False
    assert Characteristic(CharacteristicType.BRIGHTNESS).value == 0
    assert Characteristic(CharacteristicType.TARGET_TEMPERATURE).value == 10


def test_validate_rejects_out_of_range_and_wrong_type() -> None:
    char = Characteristic(CharacteristicType.ROTATION_SPEED)

    with pytest.raises(ValueError):
        char.validate(101)
    with pytest.raises(ValueError):
        char.validate("fast")
    with pytest.raises(ValueError):
        char.validate(True)
    char.validate(50)


@pytest.mark.asyncio
async def test_set_value_acknowledges_before_handler_runs() -> None:
    seen: list[tuple[int, int]] = []
    char = Characteristic(CharacteristicType.BRIGHTNESS)

    async def handler(value: int) -> None:
        await asyncio.sleep(0.01)
        seen.append((value, char.value))

    char.on_set(handler)
    task = char.set_value(42)

    assert char.value == 42
    assert not task.done()
    await task
    assert seen == [(42, 42)]


@pytest.mark.asyncio
async def test_accessory_drain_waits_for_handlers() -> None:
    accessory = Accessory("Lamp", device_id="lamp-1")
    service = accessory.add_service(ServiceType.LIGHTBULB)
    done: list[int] = []

    async def handler(value: int) -> None:
        await asyncio.sleep(0.01)
        done.append(value)

    service.get_characteristic(CharacteristicType.BRIGHTNESS).on_set(handler)
    service.set_characteristic(CharacteristicType.BRIGHTNESS, 1)
    service.set_characteristic(CharacteristicType.BRIGHTNESS, 2)
    await accessory.drain()

    assert sorted(done) == [1, 2]
    assert accessory.pending_tasks() == set()


def test_get_service_by_type_then_name() -> None:
    accessory = Accessory("Diffuser")
    fan = accessory.add_service(ServiceType.FAN, "Diffuser", "diffuser")
    light = accessory.add_service(ServiceType.LIGHTBULB, "Light", "light")

    assert accessory.get_service(ServiceType.FAN) is fan
    assert accessory.get_service("Light") is light
    assert accessory.get_service(ServiceType.THERMOSTAT) is None

    accessory.remove_service(fan)
    accessory.remove_service(fan)
    assert accessory.services == [light]


def test_device_id_lives_in_context() -> None:
    accessory = Accessory("Switch", device_id="sw-1", context={"sensorType": "AM2301"})

    assert accessory.device_id == "sw-1"
    assert accessory.context == {"sensorType": "AM2301", "eweDeviceId": "sw-1"}


def test_memory_history_fills_time() -> None:
    history = MemoryHistory("switch", "Switch")

    record = history.add_entry({"status": 1})
    explicit = history.add_entry({"time": 5, "status": 0})

    assert isinstance(record["time"], int)
    assert explicit["time"] == 5
    assert history.entries() == [record, explicit]
