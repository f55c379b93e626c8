"""CLI commands for ewebridge."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from ewebridge import __logo__, __version__

app = typer.Typer(
    name="ewebridge",
    help=f"{__logo__} ewebridge - vendor appliances as home-automation accessories",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} ewebridge v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """ewebridge - device adapter toolkit."""
    pass


# ============================================================================
# Config
# ============================================================================

config_app = typer.Typer(help="Manage ewebridge config")
app.add_typer(config_app, name="config")


@config_app.command("check")
def config_check(
    config: Path | None = typer.Option(None, "--config", help="Config path to validate"),
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Fail when unknown keys are detected (possible typos)",
    ),
):
    """Validate config JSON structure and schema."""
    from ewebridge.config.loader import convert_keys, get_config_path
    from ewebridge.config.profile_merge import (
        find_unknown_paths,
        load_json_file,
        normalize_config_data,
    )
    from ewebridge.config.schema import BridgeConfig

    config_path = (config or get_config_path()).expanduser()
    if not config_path.exists():
        console.print(f"[red]Config file not found:[/red] {config_path}")
        raise typer.Exit(2)

    try:
        raw = load_json_file(config_path)
    except json.JSONDecodeError as exc:
        console.print(f"[red]Invalid JSON:[/red] {exc}")
        raise typer.Exit(2) from exc
    except Exception as exc:
        console.print(f"[red]Failed to read config:[/red] {exc}")
        raise typer.Exit(2) from exc

    try:
        normalized = normalize_config_data(raw)
        cfg = BridgeConfig.model_validate(convert_keys(normalized))
    except Exception as exc:
        console.print(f"[red]Schema validation failed:[/red] {exc}")
        raise typer.Exit(1) from exc

    unknown_paths = find_unknown_paths(raw, normalized)
    if unknown_paths:
        console.print(
            f"[yellow]Unknown config keys detected ({len(unknown_paths)}):[/yellow]"
        )
        for item in unknown_paths[:10]:
            console.print(f"  - {item}")
        if len(unknown_paths) > 10:
            console.print(f"  - ... ({len(unknown_paths) - 10} more)")
        if strict:
            raise typer.Exit(1)

    console.print("[green]✓[/green] Config validation passed")
    console.print(f"path={config_path}")
    console.print(
        f"devices=single:{len(cfg.single_devices)} "
        f"th:{len(cfg.th_devices)} simulations:{len(cfg.simulations)}"
    )
    console.print(
        "timing="
        f"settle:{cfg.timing.colour_settle_ms}/{cfg.timing.speed_settle_ms}/{cfg.timing.brightness_settle_ms}ms "
        f"suppression:{cfg.timing.suppression_window_ms}ms"
    )
    console.print(f"history={cfg.history.storage}")


# ============================================================================
# Devices
# ============================================================================


@app.command()
def devices():
    """List supported device types."""
    from ewebridge.devices import DEVICE_TYPES

    table = Table(title="Device types")
    table.add_column("Type", style="cyan")
    table.add_column("Adapter")
    table.add_column("Description")

    for kind, adapter_cls in sorted(DEVICE_TYPES.items()):
        doc = (sys.modules[adapter_cls.__module__].__doc__ or "").strip()
        table.add_row(kind, adapter_cls.__name__, doc.splitlines()[0] if doc else "")

    console.print(table)


# ============================================================================
# Simulation
# ============================================================================


def _parse_assignment(text: str) -> tuple[str | None, str, Any]:
    """Parse `[Service.]Characteristic=value`; value is JSON when it parses."""
    if "=" not in text:
        raise typer.BadParameter(f"expected Characteristic=value, got {text!r}")
    target, raw = text.split("=", 1)
    service_key: str | None = None
    if "." in target:
        service_key, target = target.split(".", 1)
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        value = raw
    return service_key, target.strip(), value


def _find_service(accessory: Any, service_key: str | None, char_name: str) -> Any:
    from ewebridge.hap.accessory import CharacteristicType

    ctype = CharacteristicType(char_name)
    if service_key:
        service = accessory.get_service(service_key)
        if service is None:
            raise typer.BadParameter(f"no service {service_key!r} on {accessory.display_name}")
        return service
    for service in accessory.services:
        if service.test_characteristic(ctype):
            return service
    raise typer.BadParameter(f"no service with characteristic {char_name!r}")


@app.command()
def simulate(
    kind: str = typer.Argument(..., help="Device type, see `ewebridge devices`"),
    sets: list[str] = typer.Option([], "--set", "-s", help="[Service.]Characteristic=value, applied as one burst"),
    echoes: list[str] = typer.Option([], "--echo", "-e", help="JSON payload pushed by the device after the edits"),
    wait_ms: int = typer.Option(0, "--wait-ms", help="Pause before echoes are delivered"),
    settle_ms: int = typer.Option(50, "--settle-ms", help="Settle delay for slider controls"),
    window_ms: int = typer.Option(200, "--window-ms", help="Echo suppression window"),
    logs: bool = typer.Option(False, "--logs/--no-logs", help="Show adapter log output"),
):
    """Drive one adapter against the in-memory platform and show what it sends."""
    from loguru import logger

    from ewebridge.config.schema import BridgeConfig, TimingConfig
    from ewebridge.devices import create_device
    from ewebridge.hap.accessory import Accessory, CharacteristicType
    from ewebridge.platform.memory import MemoryPlatform

    config = BridgeConfig(
        timing=TimingConfig(
            colour_settle_ms=settle_ms,
            speed_settle_ms=settle_ms,
            brightness_settle_ms=settle_ms,
            suppression_window_ms=window_ms,
            thermostat_setup_delay_ms=0,
        )
    )

    try:
        payloads = [json.loads(raw) for raw in echoes]
    except json.JSONDecodeError as exc:
        console.print(f"[red]Invalid echo JSON:[/red] {exc}")
        raise typer.Exit(2) from exc

    async def run() -> tuple[MemoryPlatform, Any]:
        platform = MemoryPlatform(config)
        accessory = Accessory(f"sim {kind}", device_id="sim-1")
        try:
            adapter = platform.register(create_device(kind, platform, accessory))
        except ValueError as exc:
            console.print(f"[red]{exc}[/red]")
            raise typer.Exit(2) from exc
        await adapter.async_setup()

        for item in sets:
            service_key, char_name, value = _parse_assignment(item)
            try:
                service = _find_service(accessory, service_key, char_name)
                service.set_characteristic(CharacteristicType(char_name), value)
            except ValueError as exc:
                console.print(f"[red]Rejected {item}:[/red] {exc}")
        await accessory.drain()

        if wait_ms > 0:
            await asyncio.sleep(wait_ms / 1000.0)
        for payload in payloads:
            await platform.dispatch_external("sim-1", payload)
        adapter.close()
        return platform, accessory

    if not logs:
        logger.disable("ewebridge")
    try:
        platform, accessory = asyncio.run(run())
    finally:
        logger.enable("ewebridge")

    sent_table = Table(title="Outbound payloads")
    sent_table.add_column("#", style="cyan")
    sent_table.add_column("Params")
    for index, update in enumerate(platform.sent, start=1):
        sent_table.add_row(str(index), json.dumps(update.params))
    console.print(sent_table)

    state_table = Table(title="Accessory state")
    state_table.add_column("Service", style="cyan")
    state_table.add_column("Characteristic")
    state_table.add_column("Value")
    for service in accessory.services:
        for char in service.characteristics:
            state_table.add_row(service.name, char.type.value, json.dumps(char.value))
    console.print(state_table)

    for err in platform.errors:
        console.print(f"[yellow]error[/yellow] local={err.is_local_edit} {err.error}")

    console.print(f"metrics={json.dumps(platform.metrics_snapshot().get('sim-1', {}))}")


if __name__ == "__main__":
    app()
