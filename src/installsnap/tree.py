"""Recursive comparison of a golden install tree against the generated one."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from installsnap.errors import (
    ContentMismatchError,
    ExtraneousGeneratedFileError,
    MissingGeneratedFileError,
    SnapshotError,
    UnassertedOutputError,
)
from installsnap.models import ComparisonResult, DiffEntry, DiffKind, FixtureSpec
from installsnap.normalize import CHUNK_HASH, TREE_FILE_PIPELINE, Pipeline, Transform
from installsnap.observability import StructuredLogger


@dataclass(frozen=True, slots=True)
class _Indexed:
    files: dict[str, str]
    dirs: set[str]
    skipped: list[DiffEntry]


@dataclass(slots=True)
class TreeComparator:
    exclude: tuple[str, ...] = ("common",)
    expected_failure_prefix: str = "error-"
    pipeline: Pipeline = TREE_FILE_PIPELINE
    name_transform: Transform = CHUNK_HASH
    logger: StructuredLogger | None = None

    def is_excluded(self, relpath: str) -> bool:
        return any(pattern in relpath for pattern in self.exclude)

    def compare(self, expected_root: Path, actual_root: Path) -> ComparisonResult:
        """Diff two trees file by file after normalizing names and content."""
        result = ComparisonResult(expected_root=expected_root, actual_root=actual_root)
        expected = self._index(expected_root)
        actual = self._index(actual_root)
        result.entries.extend(expected.skipped)
        seen = {entry.path for entry in expected.skipped}
        result.entries.extend(entry for entry in actual.skipped if entry.path not in seen)

        for directory in sorted(expected.dirs ^ actual.dirs):
            result.entries.append(
                DiffEntry(kind=DiffKind.SKIP, path=directory, reason="directory")
            )

        for key in sorted(expected.files.keys() | actual.files.keys()):
            expected_rel = expected.files.get(key)
            actual_rel = actual.files.get(key)
            if actual_rel is None:
                result.entries.append(
                    DiffEntry(kind=DiffKind.MISSING_ON_ACTUAL, path=expected_rel or key)
                )
                continue
            if expected_rel is None:
                result.entries.append(
                    DiffEntry(kind=DiffKind.MISSING_ON_EXPECTED, path=actual_rel)
                )
                continue
            golden = self.pipeline(_read(expected_root / expected_rel))
            generated = self.pipeline(_read(actual_root / actual_rel))
            if golden != generated:
                result.entries.append(
                    DiffEntry(
                        kind=DiffKind.CONTENT_MISMATCH,
                        path=expected_rel,
                        expected=golden,
                        actual=generated,
                    )
                )
        return result

    def verify(self, fixture: FixtureSpec) -> list[SnapshotError]:
        """Apply the tree policy for *fixture* and return every failure found."""
        if not fixture.expected_install_dir.is_dir():
            return self._verify_without_golden(fixture)
        result = self.compare(fixture.expected_install_dir, fixture.output_dir)
        self._log(
            fixture,
            f"compared {fixture.output_dir_name}/ against expected-install/",
            extra={
                "failures": len(result.failures),
                "skipped": len(result.skipped),
            },
        )
        return list(errors_for(result, fixture=fixture.name))

    def _verify_without_golden(self, fixture: FixtureSpec) -> list[SnapshotError]:
        if fixture.skip_tree_check:
            self._log(fixture, "tree comparison skipped for this fixture")
            return []
        if fixture.name.startswith(self.expected_failure_prefix):
            self._log(fixture, "tree comparison skipped for expected-failure fixture")
            return []
        if fixture.output_dir.exists():
            return [
                UnassertedOutputError(
                    f"{fixture.output_dir} exists but the fixture has no expected-install/.",
                    hint="Add a golden expected-install/ tree for this fixture.",
                    context={"fixture": fixture.name, "path": str(fixture.output_dir)},
                )
            ]
        return []

    def _index(self, root: Path) -> _Indexed:
        files: dict[str, str] = {}
        dirs: set[str] = set()
        skipped: list[DiffEntry] = []
        if not root.is_dir():
            return _Indexed(files=files, dirs=dirs, skipped=skipped)

        plain: list[str] = []
        for path in sorted(root.rglob("*")):
            relpath = path.relative_to(root).as_posix()
            if self.is_excluded(relpath):
                skipped.append(DiffEntry(kind=DiffKind.SKIP, path=relpath, reason="excluded"))
            elif path.is_dir():
                dirs.add(relpath)
            elif path.is_file():
                plain.append(relpath)
            else:
                skipped.append(DiffEntry(kind=DiffKind.SKIP, path=relpath, reason="not a file"))

        # Two files that only differ by hash keep their literal names.
        keys = [self.name_transform(relpath) for relpath in plain]
        for relpath, key in zip(plain, keys, strict=True):
            files[key if keys.count(key) == 1 else relpath] = relpath
        return _Indexed(files=files, dirs=dirs, skipped=skipped)

    def _log(
        self,
        fixture: FixtureSpec,
        message: str,
        extra: dict[str, object] | None = None,
    ) -> None:
        if self.logger is not None:
            self.logger.log(
                operation="tree",
                fixture=fixture.name,
                stage="tree",
                message=message,
                extra=extra,
            )


def errors_for(result: ComparisonResult, *, fixture: str = "") -> Iterable[SnapshotError]:
    for entry in result.failures:
        context = {"fixture": fixture, "path": entry.path}
        if entry.kind is DiffKind.MISSING_ON_ACTUAL:
            yield MissingGeneratedFileError(
                f"File failed to generate: {entry.path}",
                context=context,
            )
        elif entry.kind is DiffKind.MISSING_ON_EXPECTED:
            yield ExtraneousGeneratedFileError(
                f"File not found in golden snapshot: {entry.path}",
                hint="Update the fixture's expected-install/ if the new file is intended.",
                context=context,
            )
        else:
            yield ContentMismatchError(
                f"File differs from golden snapshot: {entry.path}",
                expected=entry.expected or "",
                actual=entry.actual or "",
                context=context,
            )


def _read(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")
