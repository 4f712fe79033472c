"""Lifecycle and comparison of the lockfile generated by the tool under test."""

from __future__ import annotations

import shutil
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from installsnap.errors import HarnessError, LockfileMismatchError
from installsnap.models import FixtureSpec
from installsnap.normalize import LOCKFILE_HASH_PIPELINE, LOCKFILE_PIPELINE, Pipeline
from installsnap.observability import StructuredLogger


@dataclass(slots=True)
class LockfileGate:
    logger: StructuredLogger | None = None

    def reset(self, fixture: FixtureSpec, *, force: bool = False) -> bool:
        """Delete the generated lockfile; retained lockfiles survive unless *force*.

        Returns whether a file was removed.
        """
        if fixture.keep_lockfile and not force:
            return False
        path = fixture.lockfile_path
        try:
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise HarnessError(
                "Could not remove generated lockfile.",
                hint="Another process may hold the file open.",
                context={"fixture": fixture.name, "path": str(path), "error": str(exc)},
            ) from exc
        self._log(fixture, "removed generated lockfile")
        return True

    @contextmanager
    def scope(self, fixture: FixtureSpec) -> Iterator[FixtureSpec]:
        """Reset before the body runs and again on every way out of it."""
        self.reset(fixture)
        try:
            yield fixture
        finally:
            self.reset(fixture)

    def pipeline_for(self, fixture: FixtureSpec) -> Pipeline:
        return LOCKFILE_PIPELINE if fixture.keep_lockfile else LOCKFILE_HASH_PIPELINE

    def compare(self, fixture: FixtureSpec) -> bool:
        """Compare the generated lockfile with ``expected-lock.json``.

        Returns False when the fixture has no golden lockfile.
        """
        golden_path = fixture.expected_lock_path
        try:
            golden = golden_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return False
        except UnicodeDecodeError as exc:
            raise HarnessError(
                "Golden lockfile is not valid UTF-8.",
                hint="Re-record the golden lockfile; this is a test setup error.",
                context={"fixture": fixture.name, "path": str(golden_path), "error": str(exc)},
            ) from exc

        normalize = self.pipeline_for(fixture)
        expected = normalize(golden)
        try:
            raw = fixture.lockfile_path.read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            raise LockfileMismatchError(
                "Lockfile was not generated.",
                expected=expected,
                actual="",
                hint=f"The fixture has a golden {golden_path.name} but the tool wrote none.",
                context={"fixture": fixture.name, "path": str(fixture.lockfile_path)},
            ) from None

        actual = normalize(raw)
        if actual != expected:
            raise LockfileMismatchError(
                "Generated lockfile differs from golden lockfile.",
                expected=expected,
                actual=actual,
                context={
                    "fixture": fixture.name,
                    "pipeline": normalize.name,
                    "path": str(fixture.lockfile_path),
                },
            )
        self._log(fixture, "lockfile matches golden")
        return True

    def _log(self, fixture: FixtureSpec, message: str) -> None:
        if self.logger is not None:
            self.logger.log(
                operation="lockfile",
                fixture=fixture.name,
                stage="lockfile",
                message=message,
            )
