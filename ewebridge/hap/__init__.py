"""Accessory/service/characteristic model exposed to the home-automation controller."""

from ewebridge.hap.accessory import (
    Accessory,
    Characteristic,
    CharacteristicType,
    Service,
    ServiceType,
)

__all__ = [
    "Accessory",
    "Characteristic",
    "CharacteristicType",
    "Service",
    "ServiceType",
]
