import pytest

from ewebridge.config.schema import BridgeConfig, TimingConfig
from ewebridge.devices.fan import FanDevice, decode_relays, encode_relays, speed_tier
from ewebridge.hap.accessory import Accessory, CharacteristicType, ServiceType
from ewebridge.platform.memory import MemoryPlatform


def _relays(*states: str) -> dict:
    return {"switches": [{"switch": s, "outlet": i} for i, s in enumerate(states)]}


def _make_fan() -> tuple[MemoryPlatform, Accessory, FanDevice]:
    config = BridgeConfig(timing=TimingConfig(speed_settle_ms=30, suppression_window_ms=150))
    platform = MemoryPlatform(config)
    accessory = Accessory("Ceiling Fan", device_id="fan-1")
    device = platform.register(FanDevice(platform, accessory))
    return platform, accessory, device


def test_speed_tier() -> None:
    assert speed_tier(0) == 0
    assert speed_tier(32) == 0
    assert speed_tier(50) == 33
    assert speed_tier(70) == 66
    assert speed_tier(100) == 99


def test_decode_relay_patterns() -> None:
    assert decode_relays(_relays("on", "on", "off", "off")) == (True, 1, 33)
    assert decode_relays(_relays("off", "on", "on", "off")) == (False, 1, 66)
    assert decode_relays(_relays("off", "on", "off", "on")) == (False, 1, 99)


def test_decode_unknown_relay_pattern_reads_as_off() -> None:
    assert decode_relays(_relays("on", "on", "on", "on")) == (True, 0, 0)
    assert decode_relays(_relays("off", "off", "on", "off")) == (False, 0, 0)


def test_decode_alternative_shape() -> None:
    assert decode_relays({"light": "on", "fan": "on", "speed": 2}) == (True, 1, 66)
    assert decode_relays({"light": "off", "fan": "off", "speed": 3}) == (False, 0, 0)


def test_decode_unknown_parameters_raises() -> None:
    with pytest.raises(ValueError):
        decode_relays({"power": 12})


def test_encode_relays() -> None:
    assert encode_relays(1, 66, False) == _relays("off", "on", "on", "off")
    assert encode_relays(0, 66, True) == _relays("on", "off", "off", "off")


@pytest.mark.asyncio
async def test_speed_edit_sends_relay_combination() -> None:
    platform, accessory, device = _make_fan()
    fan = accessory.get_service(ServiceType.FANV2)

    await fan.set_characteristic(CharacteristicType.ROTATION_SPEED, 70)

    assert [u.params for u in platform.sent] == [_relays("off", "on", "on", "off")]
    assert fan.get_characteristic(CharacteristicType.ACTIVE).value == 1
    assert fan.get_characteristic(CharacteristicType.ROTATION_SPEED).value == 66
    device.close()


@pytest.mark.asyncio
async def test_speed_burst_sends_once() -> None:
    platform, accessory, device = _make_fan()
    fan = accessory.get_service(ServiceType.FANV2)

    for value in (40, 70, 100):
        fan.set_characteristic(CharacteristicType.ROTATION_SPEED, value)
    await accessory.drain()

    assert [u.params for u in platform.sent] == [_relays("off", "on", "off", "on")]
    device.close()


@pytest.mark.asyncio
async def test_light_edit_keeps_fan_state() -> None:
    platform, accessory, device = _make_fan()

    await accessory.get_service(ServiceType.LIGHTBULB).set_characteristic(CharacteristicType.ON, True)

    assert [u.params for u in platform.sent] == [_relays("on", "off", "off", "off")]
    device.close()


@pytest.mark.asyncio
async def test_echo_updates_characteristics() -> None:
    platform, accessory, device = _make_fan()

    await platform.dispatch_external("fan-1", _relays("on", "on", "off", "off"))

    fan = accessory.get_service(ServiceType.FANV2)
    assert fan.get_characteristic(CharacteristicType.ACTIVE).value == 1
    assert fan.get_characteristic(CharacteristicType.ROTATION_SPEED).value == 33
    assert accessory.get_service(ServiceType.LIGHTBULB).get_characteristic(CharacteristicType.ON).value is True
    device.close()


@pytest.mark.asyncio
async def test_unknown_echo_reported_as_device_error() -> None:
    platform, _, device = _make_fan()

    await platform.dispatch_external("fan-1", {"power": 12})

    assert len(platform.errors) == 1
    assert platform.errors[0].is_local_edit is False
    assert platform.errors[0].refresh_requested is False
    assert "unknown parameters received" in platform.errors[0].error
    device.close()


@pytest.mark.asyncio
async def test_send_failure_requests_refresh() -> None:
    platform, accessory, device = _make_fan()
    platform.fail_next_send()

    await accessory.get_service(ServiceType.FANV2).set_characteristic(CharacteristicType.ACTIVE, 1)

    assert platform.sent == []
    assert len(platform.errors) == 1
    assert platform.errors[0].refresh_requested is True
    device.close()


@pytest.mark.asyncio
async def test_speed_returning_to_cached_tier_sends_nothing() -> None:
    platform, accessory, device = _make_fan()
    fan = accessory.get_service(ServiceType.FANV2)
    await fan.set_characteristic(CharacteristicType.ROTATION_SPEED, 40)

    fan.set_characteristic(CharacteristicType.ROTATION_SPEED, 100)
    fan.set_characteristic(CharacteristicType.ROTATION_SPEED, 40)
    await accessory.drain()

    assert [u.params for u in platform.sent] == [_relays("off", "on", "off", "off")]
    assert device.state.speed == 33
    assert device.metrics.edits_superseded == 1
    device.close()
