"""Runtime counters for device adapters."""

from __future__ import annotations

import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Any


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(slots=True)
class AdapterMetrics:
    """In-memory counters for one device adapter."""

    started_at_ms: int = field(default_factory=now_ms)
    edits_total: int = 0
    edits_unchanged: int = 0
    edits_superseded: int = 0
    sends_total: int = 0
    send_failures: int = 0
    echoes_total: int = 0
    echoes_suppressed: int = 0
    echo_failures: int = 0
    params_applied: Counter[str] = field(default_factory=Counter)

    def record_edit(self) -> None:
        self.edits_total += 1

    def record_unchanged(self) -> None:
        self.edits_unchanged += 1

    def record_superseded(self) -> None:
        self.edits_superseded += 1

    def record_send(self, *, success: bool) -> None:
        self.sends_total += 1
        if not success:
            self.send_failures += 1

    def record_echo(self, *, suppressed: bool = False) -> None:
        self.echoes_total += 1
        if suppressed:
            self.echoes_suppressed += 1

    def record_echo_failure(self) -> None:
        self.echo_failures += 1

    def record_applied(self, key: str) -> None:
        self.params_applied[str(key)] += 1

    def snapshot(self) -> dict[str, Any]:
        return {
            "started_at_ms": self.started_at_ms,
            "edits_total": self.edits_total,
            "edits_unchanged": self.edits_unchanged,
            "edits_superseded": self.edits_superseded,
            "sends_total": self.sends_total,
            "send_failures": self.send_failures,
            "echoes_total": self.echoes_total,
            "echoes_suppressed": self.echoes_suppressed,
            "echo_failures": self.echo_failures,
            "params_applied": dict(self.params_applied),
        }
