"""Core typed dataclasses for fixtures, comparisons and run results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from installsnap.errors import SnapshotError

EXPECTED_OUTPUT = "expected-output.txt"
EXPECTED_OUTPUT_WIN = "expected-output.win.txt"
EXPECTED_LOCK = "expected-lock.json"
EXPECTED_INSTALL = "expected-install"


@dataclass(frozen=True, slots=True)
class FixtureSpec:
    """One fixture directory plus everything the harness needs to run it."""

    name: str
    directory: Path
    command: tuple[str, ...]
    lockfile_name: str
    output_dir_name: str
    timeout: float
    keep_lockfile: bool = False
    skip_tree_check: bool = False
    skip_reason: str | None = None

    @property
    def lockfile_path(self) -> Path:
        return self.directory / self.lockfile_name

    @property
    def output_dir(self) -> Path:
        return self.directory / self.output_dir_name

    @property
    def expected_lock_path(self) -> Path:
        return self.directory / EXPECTED_LOCK

    @property
    def expected_install_dir(self) -> Path:
        return self.directory / EXPECTED_INSTALL

    def expected_output_path(self, *, windows: bool = False) -> Path:
        """Return the golden output file, preferring the Windows override there."""
        default = self.directory / EXPECTED_OUTPUT
        if windows:
            override = self.directory / EXPECTED_OUTPUT_WIN
            if override.exists():
                return override
        return default


@dataclass(frozen=True, slots=True)
class ProcessResult:
    output: str
    returncode: int | None
    duration: float


class DiffKind(StrEnum):
    CONTENT_MISMATCH = "content-mismatch"
    MISSING_ON_ACTUAL = "missing-on-actual"
    MISSING_ON_EXPECTED = "missing-on-expected"
    SKIP = "skip"


@dataclass(frozen=True, slots=True)
class DiffEntry:
    kind: DiffKind
    path: str
    expected: str | None = None
    actual: str | None = None
    reason: str | None = None


@dataclass(slots=True)
class ComparisonResult:
    expected_root: Path
    actual_root: Path
    entries: list[DiffEntry] = field(default_factory=list)

    @property
    def failures(self) -> list[DiffEntry]:
        return [entry for entry in self.entries if entry.kind is not DiffKind.SKIP]

    @property
    def skipped(self) -> list[DiffEntry]:
        return [entry for entry in self.entries if entry.kind is DiffKind.SKIP]

    @property
    def ok(self) -> bool:
        return not self.failures

    def of_kind(self, kind: DiffKind) -> list[DiffEntry]:
        return [entry for entry in self.entries if entry.kind is kind]


class Outcome(StrEnum):
    PASSED = "passed"
    FAILED = "failed"
    TIMED_OUT = "timed-out"
    ERROR = "error"
    SKIPPED = "skipped"


@dataclass(slots=True)
class FixtureResult:
    name: str
    outcome: Outcome
    failures: list[SnapshotError] = field(default_factory=list)
    duration: float = 0.0
    skip_reason: str | None = None

    @property
    def passed(self) -> bool:
        return self.outcome in (Outcome.PASSED, Outcome.SKIPPED)

    def message(self) -> str:
        if self.outcome is Outcome.SKIPPED:
            return f"{self.name}: skipped ({self.skip_reason})"
        if not self.failures:
            return f"{self.name}: {self.outcome.value}"
        lines = [f"{self.name}: {self.outcome.value}"]
        for failure in self.failures:
            lines.append(f"[{failure.code}] ({failure.origin}) {failure}")
        return "\n".join(lines)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "name": self.name,
            "outcome": self.outcome.value,
            "duration": round(self.duration, 3),
            "failures": [failure.to_dict() for failure in self.failures],
        }
        if self.skip_reason is not None:
            payload["skip_reason"] = self.skip_reason
        return payload


@dataclass(slots=True)
class SuiteResult:
    results: list[FixtureResult] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(result.passed for result in self.results)

    def counts(self) -> dict[str, int]:
        counts = {outcome.value: 0 for outcome in Outcome}
        for result in self.results:
            counts[result.outcome.value] += 1
        return counts

    def result_for(self, name: str) -> FixtureResult | None:
        for result in self.results:
            if result.name == name:
                return result
        return None

    def summary(self) -> str:
        counts = self.counts()
        parts = [f"{value} {key}" for key, value in counts.items() if value]
        return f"{len(self.results)} fixtures: " + (", ".join(parts) or "none run")

    def to_dict(self) -> dict[str, object]:
        return {
            "passed": self.passed,
            "counts": self.counts(),
            "fixtures": [result.to_dict() for result in self.results],
        }
