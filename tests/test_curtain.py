import asyncio

import pytest

from ewebridge.config.schema import BridgeConfig, TimingConfig
from ewebridge.devices.curtain import CurtainDevice, decode_position, encode_position
from ewebridge.hap.accessory import Accessory, CharacteristicType, ServiceType
from ewebridge.platform.memory import MemoryPlatform

WINDOW_S = 0.1


def _make_curtain() -> tuple[MemoryPlatform, Accessory, CurtainDevice]:
    config = BridgeConfig(timing=TimingConfig(suppression_window_ms=int(WINDOW_S * 1000)))
    platform = MemoryPlatform(config)
    accessory = Accessory("Lounge Curtain", device_id="cur-1")
    device = platform.register(CurtainDevice(platform, accessory))
    return platform, accessory, device


def test_encode_position() -> None:
    assert encode_position(100) == {"switch": "on"}
    assert encode_position(0) == {"switch": "off"}
    assert encode_position(30) == {"setclose": 70}


def test_decode_position() -> None:
    assert decode_position({"setclose": 70}) == 30
    assert decode_position({"setclose": 0}) == 100
    assert decode_position({"switch": "on"}) == 100
    assert decode_position({"switch": "off"}) == 0
    assert decode_position({"online": True}) is None


def test_encode_decode_agree_on_partial_positions() -> None:
    for position in (1, 25, 50, 99):
        assert decode_position(encode_position(position)) == position


@pytest.mark.asyncio
async def test_target_position_sends_setclose() -> None:
    platform, accessory, device = _make_curtain()
    service = accessory.get_service(ServiceType.WINDOW_COVERING)

    await service.set_characteristic(CharacteristicType.TARGET_POSITION, 30)

    assert [u.params for u in platform.sent] == [{"setclose": 70}]
    assert device.state.position == 30
    device.close()


@pytest.mark.asyncio
async def test_repeated_target_position_is_idempotent() -> None:
    platform, accessory, device = _make_curtain()
    service = accessory.get_service(ServiceType.WINDOW_COVERING)

    await service.set_characteristic(CharacteristicType.TARGET_POSITION, 100)
    await service.set_characteristic(CharacteristicType.TARGET_POSITION, 100)

    assert [u.params for u in platform.sent] == [{"switch": "on"}]
    assert device.metrics.edits_unchanged == 1
    device.close()


@pytest.mark.asyncio
async def test_echo_suppressed_then_applied_after_window() -> None:
    platform, accessory, device = _make_curtain()
    service = accessory.get_service(ServiceType.WINDOW_COVERING)
    await service.set_characteristic(CharacteristicType.TARGET_POSITION, 30)

    await platform.dispatch_external("cur-1", {"setclose": 0})
    assert device.state.position == 30
    assert device.metrics.echoes_suppressed == 1

    await asyncio.sleep(WINDOW_S + 0.05)
    await platform.dispatch_external("cur-1", {"setclose": 0})

    assert device.state.position == 100
    assert service.get_characteristic(CharacteristicType.TARGET_POSITION).value == 100
    assert service.get_characteristic(CharacteristicType.CURRENT_POSITION).value == 100
    assert service.get_characteristic(CharacteristicType.POSITION_STATE).value == 2
    device.close()


@pytest.mark.asyncio
async def test_send_failure_reported_as_local_edit() -> None:
    platform, accessory, device = _make_curtain()
    platform.fail_next_send(RuntimeError("cloud unreachable"))
    service = accessory.get_service(ServiceType.WINDOW_COVERING)

    await service.set_characteristic(CharacteristicType.TARGET_POSITION, 40)

    assert platform.sent == []
    assert len(platform.errors) == 1
    assert platform.errors[0].is_local_edit is True
    assert "cloud unreachable" in platform.errors[0].error
    assert device.metrics.send_failures == 1
    device.close()


@pytest.mark.asyncio
async def test_malformed_echo_reported() -> None:
    platform, _, device = _make_curtain()

    await platform.dispatch_external("cur-1", {"setclose": "half"})

    assert len(platform.errors) == 1
    assert platform.errors[0].is_local_edit is False
    assert device.metrics.echo_failures == 1
    device.close()


def test_restored_accessory_reuses_service() -> None:
    platform = MemoryPlatform()
    accessory = Accessory("Curtain", device_id="cur-2")
    existing = accessory.add_service(ServiceType.WINDOW_COVERING)

    CurtainDevice(platform, accessory)

    assert accessory.services == [existing]


def test_out_of_range_write_rejected_before_ack() -> None:
    platform = MemoryPlatform()
    accessory = Accessory("Curtain", device_id="cur-3")
    CurtainDevice(platform, accessory)
    char = accessory.get_service(ServiceType.WINDOW_COVERING).get_characteristic(
        CharacteristicType.TARGET_POSITION
    )

    with pytest.raises(ValueError):
        char.set_value(150)
    assert char.value == 0


@pytest.mark.asyncio
async def test_echo_during_inflight_send_is_suppressed() -> None:
    platform, accessory, device = _make_curtain()
    platform.send_delay_s = 0.05
    service = accessory.get_service(ServiceType.WINDOW_COVERING)

    task = service.set_characteristic(CharacteristicType.TARGET_POSITION, 100)
    await asyncio.sleep(0.01)
    await platform.dispatch_external("cur-1", {"switch": "off"})
    await task

    assert device.state.position == 100
    assert [u.params for u in platform.sent] == [{"switch": "on"}]
    device.close()


@pytest.mark.asyncio
async def test_dispatch_to_unknown_device_raises() -> None:
    platform, _, device = _make_curtain()

    with pytest.raises(ValueError):
        await platform.dispatch_external("nope", {"switch": "on"})
    device.close()
