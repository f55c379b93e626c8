#!/usr/bin/env python3
"""Replay recorded device state pushes into one adapter on the memory platform."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from ewebridge.config.loader import load_config
from ewebridge.devices import create_device
from ewebridge.hap.accessory import Accessory
from ewebridge.platform.memory import MemoryPlatform


def _load_scenario(path: Path) -> list[tuple[dict[str, Any], int]]:
    raw = path.read_text(encoding="utf-8").strip()
    if not raw:
        raise ValueError(f"empty scenario: {path}")

    if raw.startswith("["):
        data = json.loads(raw)
        if not isinstance(data, list):
            raise ValueError(f"scenario root must be list: {path}")
        rows = data
    else:
        rows = []
        for line in raw.splitlines():
            text = line.strip()
            if not text or text.startswith("#"):
                continue
            rows.append(json.loads(text))

    output: list[tuple[dict[str, Any], int]] = []
    for idx, row in enumerate(rows, start=1):
        if not isinstance(row, dict):
            raise ValueError(f"scenario row #{idx} must be object")
        params = row.get("params") if "params" in row else row
        if not isinstance(params, dict):
            raise ValueError(f"scenario row #{idx} params must be object")
        delay_ms = row.get("delay_ms", 0)
        try:
            delay = max(0, int(delay_ms))
        except (TypeError, ValueError):
            delay = 0
        output.append((params, delay))
    if not output:
        raise ValueError(f"scenario has no updates: {path}")
    return output


async def _replay(
    kind: str,
    device_id: str,
    rows: list[tuple[dict[str, Any], int]],
    *,
    config_path: Path | None,
    default_delay_ms: int,
) -> tuple[MemoryPlatform, Accessory]:
    platform = MemoryPlatform(load_config(config_path))
    accessory = Accessory(f"replay {kind}", device_id=device_id)
    adapter = platform.register(create_device(kind, platform, accessory))
    try:
        for idx, (params, delay_ms) in enumerate(rows, start=1):
            if delay_ms <= 0:
                delay_ms = max(0, int(default_delay_ms))
            await platform.dispatch_external(device_id, params)
            print(f"[{idx}/{len(rows)}] keys={','.join(sorted(params))} errors={len(platform.errors)}")
            if delay_ms > 0:
                await asyncio.sleep(float(delay_ms) / 1000.0)
    finally:
        adapter.close()
    return platform, accessory


def _main() -> int:
    parser = argparse.ArgumentParser(description="Replay device state pushes into an adapter")
    parser.add_argument("--kind", required=True, help="Device type (curtain, diffuser, fan, ...)")
    parser.add_argument("--scenario", required=True, help="Path to scenario file (.json list or .jsonl)")
    parser.add_argument("--device-id", default="replay-1", help="Device id used for config lookups")
    parser.add_argument("--config", default=None, help="Bridge config path")
    parser.add_argument("--default-delay-ms", type=int, default=0, help="Delay between updates if not set")
    parser.add_argument("--expect-errors-max", type=int, default=None, help="Fail when more errors are reported")
    args = parser.parse_args()

    scenario_path = Path(args.scenario).expanduser().resolve()
    rows = _load_scenario(scenario_path)
    config_path = Path(args.config).expanduser() if args.config else None

    print(f"scenario: {scenario_path}")
    try:
        platform, accessory = asyncio.run(
            _replay(
                args.kind,
                str(args.device_id),
                rows,
                config_path=config_path,
                default_delay_ms=int(args.default_delay_ms),
            )
        )
    except ValueError as exc:
        print(f"replay failed: {exc}", file=sys.stderr)
        return 1

    for service in accessory.services:
        values = " ".join(f"{char.type.value}={char.value}" for char in service.characteristics)
        print(f"state {service.name}: {values}")

    metrics = platform.metrics_snapshot().get(str(args.device_id), {})
    print(
        "metrics: "
        f"echoes_total={metrics.get('echoes_total', 0)} "
        f"params_applied={metrics.get('params_applied', 0)} "
        f"echo_failures={metrics.get('echo_failures', 0)}"
    )

    expected_errors = args.expect_errors_max
    if expected_errors is not None and len(platform.errors) > int(expected_errors):
        print(
            f"expectation failed: errors={len(platform.errors)} > {int(expected_errors)}",
            file=sys.stderr,
        )
        return 2

    print("replay completed")
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())
