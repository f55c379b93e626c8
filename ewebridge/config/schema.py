"""Configuration schema using Pydantic."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings


class SingleDeviceConfig(BaseModel):
    """Per-device overrides for single-channel devices."""
    device_id: str = ""
    override_disabled_logging: bool = False  # Log state changes even when disable_device_logging is set


class ThermostatDeviceConfig(BaseModel):
    """Per-device overrides for temperature/humidity sensor devices."""
    device_id: str = ""
    offset: float = 0.0  # Added to every temperature reading
    override_disabled_logging: bool = False


class SimulationConfig(BaseModel):
    """Marks a device id as a simulated accessory (e.g. a thermostat built from a relay)."""
    device_id: str = ""
    type: str = "thermostat"
    override_disabled_logging: bool = False


class TimingConfig(BaseModel):
    """Settle delays and suppression windows, in milliseconds."""
    colour_settle_ms: int = 400
    speed_settle_ms: int = 450
    brightness_settle_ms: int = 500
    suppression_window_ms: int = 10000  # Echoes are ignored this long after a local command
    thermostat_setup_delay_ms: int = 5000

    @property
    def colour_settle_s(self) -> float:
        return max(0, self.colour_settle_ms) / 1000.0

    @property
    def speed_settle_s(self) -> float:
        return max(0, self.speed_settle_ms) / 1000.0

    @property
    def brightness_settle_s(self) -> float:
        return max(0, self.brightness_settle_ms) / 1000.0

    @property
    def suppression_window_s(self) -> float:
        return max(0, self.suppression_window_ms) / 1000.0

    @property
    def thermostat_setup_delay_s(self) -> float:
        return max(0, self.thermostat_setup_delay_ms) / 1000.0


class HistoryConfig(BaseModel):
    """History log storage used by switch and thermostat accessories."""
    storage: str = "memory"  # memory | fs
    path: str = "~/.ewebridge/history"


class BridgeConfig(BaseSettings):
    """Root configuration for ewebridge."""
    debug: bool = False
    disable_device_logging: bool = False
    debug_history: bool = False  # Echo history log writes to the bridge log
    single_devices: list[SingleDeviceConfig] = Field(default_factory=list)
    th_devices: list[ThermostatDeviceConfig] = Field(default_factory=list)
    simulations: list[SimulationConfig] = Field(default_factory=list)
    timing: TimingConfig = Field(default_factory=TimingConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)

    def get_single_device(self, device_id: str) -> SingleDeviceConfig | None:
        return next((d for d in self.single_devices if d.device_id == device_id), None)

    def get_th_device(self, device_id: str) -> ThermostatDeviceConfig | None:
        return next((d for d in self.th_devices if d.device_id == device_id), None)

    def get_simulation(self, device_id: str) -> SimulationConfig | None:
        return next((d for d in self.simulations if d.device_id == device_id), None)

    model_config = ConfigDict(
        env_prefix="EWEBRIDGE_",
        env_nested_delimiter="__",
        extra="ignore",
    )
