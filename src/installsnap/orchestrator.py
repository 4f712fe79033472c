"""Drive every fixture through run, compare and cleanup, one at a time."""

from __future__ import annotations

import time
from collections.abc import Iterable, Sequence
from pathlib import Path

from installsnap.config import HarnessConfig
from installsnap.discovery import discover_fixtures, select_fixtures
from installsnap.errors import (
    HarnessError,
    LockfileMismatchError,
    OutputMismatchError,
    ProcessTimeoutError,
    SnapshotError,
)
from installsnap.lockfile import LockfileGate
from installsnap.models import FixtureResult, FixtureSpec, Outcome, SuiteResult
from installsnap.normalize import OUTPUT_PIPELINE, Pipeline
from installsnap.observability import StructuredLogger
from installsnap.runner import ProcessRunner
from installsnap.tree import TreeComparator


class Orchestrator:
    """Runs fixtures sequentially and turns each into a single pass/fail result.

    Stages for one fixture: reset lockfile, run the tool, compare output,
    compare lockfile, compare the install tree, reset lockfile again. A
    failing stage does not stop the later ones; a harness error (missing
    golden output, tool not startable) or a timeout does. Lockfile cleanup
    runs on every way out.
    """

    def __init__(
        self,
        config: HarnessConfig | None = None,
        *,
        runner: ProcessRunner | None = None,
        gate: LockfileGate | None = None,
        tree: TreeComparator | None = None,
        logger: StructuredLogger | None = None,
        output_pipeline: Pipeline = OUTPUT_PIPELINE,
    ) -> None:
        self.config = config or HarnessConfig()
        self.logger = logger or StructuredLogger()
        self.runner = runner or ProcessRunner.from_config(self.config)
        self.gate = gate or LockfileGate(logger=self.logger)
        self.tree = tree or TreeComparator(
            exclude=self.config.tree_exclude,
            expected_failure_prefix=self.config.expected_failure_prefix,
            logger=self.logger,
        )
        self.output_pipeline = output_pipeline

    def discover(self, root: str | Path, names: Iterable[str] = ()) -> list[FixtureSpec]:
        return select_fixtures(discover_fixtures(root, self.config), names)

    def run_root(self, root: str | Path, names: Iterable[str] = ()) -> SuiteResult:
        return self.run(self.discover(root, names))

    def run(self, fixtures: Sequence[FixtureSpec]) -> SuiteResult:
        suite = SuiteResult()
        for fixture in fixtures:
            suite.results.append(self.run_fixture(fixture))
        self.logger.log(
            operation="suite",
            fixture=None,
            stage=None,
            message=suite.summary(),
            level="info" if suite.passed else "error",
            extra=suite.counts(),
        )
        return suite

    def run_fixture(self, fixture: FixtureSpec) -> FixtureResult:
        if fixture.skip_reason is not None:
            self._log(fixture, None, f"skipped: {fixture.skip_reason}", level="warning")
            return FixtureResult(
                name=fixture.name,
                outcome=Outcome.SKIPPED,
                skip_reason=fixture.skip_reason,
            )

        started = time.monotonic()
        failures: list[SnapshotError] = []
        outcome = Outcome.PASSED
        try:
            with self.gate.scope(fixture):
                self._run_stages(fixture, failures)
        except ProcessTimeoutError as exc:
            failures.append(exc)
            outcome = Outcome.TIMED_OUT
        except HarnessError as exc:
            failures.append(exc)
            outcome = Outcome.ERROR
        else:
            if failures:
                outcome = Outcome.FAILED

        for failure in failures:
            self._log(
                fixture,
                None,
                str(failure).splitlines()[0],
                level="error",
                extra={"code": failure.code, "origin": failure.origin},
            )
        result = FixtureResult(
            name=fixture.name,
            outcome=outcome,
            failures=failures,
            duration=time.monotonic() - started,
        )
        self._log(fixture, None, outcome.value, level="info" if result.passed else "error")
        return result

    def _run_stages(self, fixture: FixtureSpec, failures: list[SnapshotError]) -> None:
        self._log(fixture, "run", "running " + " ".join(fixture.command))
        process = self.runner.run(fixture.command, cwd=fixture.directory, timeout=fixture.timeout)
        self._log(
            fixture,
            "run",
            f"exited with {process.returncode}",
            extra={"returncode": process.returncode, "duration": round(process.duration, 3)},
        )

        failure = self.check_output(fixture, process.output)
        if failure is not None:
            failures.append(failure)

        try:
            self.gate.compare(fixture)
        except LockfileMismatchError as exc:
            failures.append(exc)

        failures.extend(self.tree.verify(fixture))

    def check_output(self, fixture: FixtureSpec, output: str) -> OutputMismatchError | None:
        golden_path = fixture.expected_output_path(windows=self.config.is_windows)
        try:
            golden = golden_path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise HarnessError(
                "Golden output file is missing.",
                hint="Every fixture needs an expected-output.txt; this is a test setup error.",
                context={"fixture": fixture.name, "path": str(golden_path)},
            ) from exc
        except UnicodeDecodeError as exc:
            raise HarnessError(
                "Golden output file is not valid UTF-8.",
                hint="Re-record the golden output; this is a test setup error.",
                context={"fixture": fixture.name, "path": str(golden_path), "error": str(exc)},
            ) from exc

        expected = self.output_pipeline(golden)
        actual = self.output_pipeline(output)
        if actual == expected:
            self._log(fixture, "output", f"output matches {golden_path.name}")
            return None
        return OutputMismatchError(
            "Tool output differs from golden output.",
            expected=expected,
            actual=actual,
            context={"fixture": fixture.name, "golden": str(golden_path)},
        )

    def _log(
        self,
        fixture: FixtureSpec,
        stage: str | None,
        message: str,
        *,
        level: str = "info",
        extra: dict[str, object] | None = None,
    ) -> None:
        self.logger.log(
            operation="fixture",
            fixture=fixture.name,
            stage=stage,
            message=message,
            level=level,
            extra=extra,
        )
