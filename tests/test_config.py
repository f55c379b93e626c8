import json

from ewebridge.config.loader import camel_to_snake, load_config, save_config, snake_to_camel
from ewebridge.config.profile_merge import find_unknown_paths, normalize_config_data
from ewebridge.config.schema import BridgeConfig


def test_load_config_reads_camel_case(tmp_path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(
        json.dumps(
            {
                "disableDeviceLogging": True,
                "singleDevices": [{"deviceId": "sw-1", "overrideDisabledLogging": True}],
                "thDevices": [{"deviceId": "th-1", "offset": -0.5}],
                "timing": {"brightnessSettleMs": 250, "suppressionWindowMs": 3000},
            }
        )
    )

    cfg = load_config(config_path)

    assert cfg.disable_device_logging is True
    assert cfg.get_single_device("sw-1").override_disabled_logging is True
    assert cfg.get_th_device("th-1").offset == -0.5
    assert cfg.get_th_device("missing") is None
    assert cfg.timing.brightness_settle_s == 0.25
    assert cfg.timing.suppression_window_s == 3.0
    assert cfg.timing.colour_settle_ms == 400


def test_load_config_falls_back_to_defaults_on_bad_json(tmp_path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text("{not json")

    cfg = load_config(config_path)

    assert cfg.timing.suppression_window_ms == 10000


def test_save_config_writes_camel_case(tmp_path) -> None:
    config_path = tmp_path / "nested" / "config.json"
    save_config(BridgeConfig(debug=True), config_path)

    data = json.loads(config_path.read_text())
    assert data["debug"] is True
    assert "disableDeviceLogging" in data
    assert data["timing"]["suppressionWindowMs"] == 10000


def test_env_overrides(monkeypatch) -> None:
    monkeypatch.setenv("EWEBRIDGE_DEBUG", "true")
    monkeypatch.setenv("EWEBRIDGE_TIMING__SPEED_SETTLE_MS", "100")

    cfg = BridgeConfig()

    assert cfg.debug is True
    assert cfg.timing.speed_settle_ms == 100


def test_key_case_conversion() -> None:
    assert camel_to_snake("suppressionWindowMs") == "suppression_window_ms"
    assert snake_to_camel("th_devices") == "thDevices"


def test_unknown_paths_detected() -> None:
    raw = {"debug": True, "timing": {"speedSettleMs": 100, "speedSettleMss": 1}, "extra": 1}
    normalized = normalize_config_data(raw)

    assert sorted(find_unknown_paths(raw, normalized)) == ["extra", "timing.speedSettleMss"]

