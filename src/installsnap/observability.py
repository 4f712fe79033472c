"""Per-fixture structured log records, with optional echo to a console stream."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TextIO

LEVELS = ("debug", "info", "warning", "error")


@dataclass(frozen=True, slots=True)
class LogRecord:
    level: str
    operation: str
    fixture: str | None
    stage: str | None
    message: str
    extra: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "level": self.level,
            "operation": self.operation,
            "fixture": self.fixture,
            "stage": self.stage,
            "message": self.message,
        }
        if self.extra is not None:
            payload["extra"] = self.extra
        return payload

    def render(self) -> str:
        where = "/".join(part for part in (self.fixture, self.stage) if part)
        prefix = f"[{where}] " if where else ""
        return f"{self.level.upper():<7} {prefix}{self.message}"


@dataclass(slots=True)
class StructuredLogger:
    """Collects records for the JSON report; echoes those at *echo_level* or above."""

    records: list[LogRecord] = field(default_factory=list)
    stream: TextIO | None = None
    echo_level: str = "info"

    def __post_init__(self) -> None:
        if self.echo_level not in LEVELS:
            raise ValueError(f"Unknown log level {self.echo_level!r}.")

    def log(
        self,
        *,
        operation: str,
        fixture: str | None,
        stage: str | None,
        message: str,
        level: str = "info",
        extra: dict[str, Any] | None = None,
    ) -> LogRecord:
        if level not in LEVELS:
            raise ValueError(f"Unknown log level {level!r}.")
        record = LogRecord(
            level=level,
            operation=operation,
            fixture=fixture,
            stage=stage,
            message=message,
            extra=extra,
        )
        self.records.append(record)
        if self.stream is not None and LEVELS.index(level) >= LEVELS.index(self.echo_level):
            self.stream.write(record.render() + "\n")
        return record

    def records_for_fixture(self, fixture: str, *, stage: str | None = None) -> list[LogRecord]:
        return [
            record
            for record in self.records
            if record.fixture == fixture and (stage is None or record.stage == stage)
        ]

    def records_at(self, level: str) -> list[LogRecord]:
        return [record for record in self.records if record.level == level]

    def to_json_lines(self, path: str | Path) -> Path:
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        lines = [json.dumps(record.to_dict(), sort_keys=True) for record in self.records]
        output_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return output_path
