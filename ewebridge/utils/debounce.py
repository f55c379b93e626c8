"""Settle and echo-suppression primitives shared by device adapters.

Both primitives are generation counters. Every new claim supersedes the
previous one, and any delayed step re-checks its generation after it wakes
up; a stale generation does nothing. Nothing here locks: all callers run on
one asyncio loop.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SettleToken:
    """Handle for one pending edit on a control surface."""

    gate: "SettleGate"
    generation: int

    @property
    def is_current(self) -> bool:
        return self.gate.generation == self.generation


class SettleGate:
    """Single-flight settle: only the last claim inside the delay survives."""

    def __init__(self, delay_s: float, *, name: str = "") -> None:
        self.delay_s = max(0.0, float(delay_s))
        self.name = name
        self.generation = 0
        self.superseded = 0

    def claim(self) -> SettleToken:
        """Invalidate every earlier token and return a new current one."""
        self.generation += 1
        return SettleToken(gate=self, generation=self.generation)

    def cancel(self) -> None:
        """Invalidate the pending token without issuing a new one."""
        self.generation += 1

    async def settle(self) -> SettleToken | None:
        """Claim, wait out the delay, and return the token if it is still current."""
        token = self.claim()
        await asyncio.sleep(self.delay_s)
        if not token.is_current:
            self.superseded += 1
            return None
        return token


class SuppressionWindow:
    """Ignore remote echoes for a fixed period after each local command."""

    def __init__(self, duration_s: float) -> None:
        self.duration_s = max(0.0, float(duration_s))
        self.generation = 0
        self._active_generation: int | None = None
        self._timer: asyncio.TimerHandle | None = None

    @property
    def active(self) -> bool:
        return self._active_generation is not None

    def arm(self) -> int:
        """Open (or extend) the window; only the newest arm may close it."""
        self.generation += 1
        generation = self.generation
        self._active_generation = generation
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.duration_s, self._expire, generation)
        return generation

    def _expire(self, generation: int) -> None:
        if self._active_generation == generation:
            self._active_generation = None
            self._timer = None

    def close(self) -> None:
        """Close the window now and drop any pending expiry timer."""
        self.generation += 1
        self._active_generation = None
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
