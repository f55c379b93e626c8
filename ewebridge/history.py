"""History log collaborators used by switch and thermostat accessories."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from loguru import logger

from ewebridge.utils.helpers import ensure_dir, now_s, safe_filename


class HistoryService(ABC):
    """Append-only log of state samples for one accessory."""

    def __init__(self, kind: str, name: str, *, debug: bool = False) -> None:
        self.kind = kind
        self.name = name
        self.debug = debug

    def add_entry(self, entry: dict[str, Any]) -> dict[str, Any]:
        """Append one sample; a missing `time` is filled with the current epoch second."""
        record = dict(entry)
        record.setdefault("time", now_s())
        self._append(record)
        if self.debug:
            logger.debug(f"[{self.name}] history {self.kind} entry {record}")
        return record

    @abstractmethod
    def _append(self, record: dict[str, Any]) -> None:
        """Persist one record."""

    @abstractmethod
    def entries(self) -> list[dict[str, Any]]:
        """Return all records in insertion order."""


class MemoryHistory(HistoryService):
    """History kept in process memory."""

    def __init__(self, kind: str, name: str, *, debug: bool = False) -> None:
        super().__init__(kind, name, debug=debug)
        self._records: list[dict[str, Any]] = []

    def _append(self, record: dict[str, Any]) -> None:
        self._records.append(record)

    def entries(self) -> list[dict[str, Any]]:
        return list(self._records)


class JsonlHistory(HistoryService):
    """History persisted as one JSON line per record under a directory."""

    def __init__(self, kind: str, name: str, directory: Path, *, debug: bool = False) -> None:
        super().__init__(kind, name, debug=debug)
        self.path = ensure_dir(Path(directory).expanduser()) / f"{safe_filename(name)}_{kind}.jsonl"

    def _append(self, record: dict[str, Any]) -> None:
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(record, ensure_ascii=False) + "\n")

    def entries(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        records: list[dict[str, Any]] = []
        with self.path.open(encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    records.append(json.loads(line))
                except json.JSONDecodeError:
                    logger.warning(f"Skipping corrupt history line in {self.path}")
        return records
