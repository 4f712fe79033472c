"""Fixture registry: explicit ``fixtures.json`` descriptors or directory scan."""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from installsnap.config import HarnessConfig
from installsnap.errors import ConfigError
from installsnap.models import FixtureSpec

MANIFEST_NAME = "fixtures.json"


@dataclass(frozen=True, slots=True)
class FixtureDescriptor:
    name: str
    command: tuple[str, ...] | None = None
    keep_lockfile: bool | None = None
    skip_tree_check: bool | None = None
    skip: str | None = None
    timeout: float | None = None

    def resolve(self, root: Path, config: HarnessConfig) -> FixtureSpec:
        keep = self.keep_lockfile
        if keep is None:
            keep = self.name in config.keep_lockfile
        skip_tree = self.skip_tree_check
        if skip_tree is None:
            skip_tree = self.name in config.skip_tree_check
        return FixtureSpec(
            name=self.name,
            directory=root / self.name,
            command=self.command or config.command,
            lockfile_name=config.lockfile_name,
            output_dir_name=config.output_dir_name,
            timeout=self.timeout or config.timeout,
            keep_lockfile=keep,
            skip_tree_check=skip_tree,
            skip_reason=self.skip or config.skipped_fixtures.get(self.name),
        )


def discover_fixtures(root: str | Path, config: HarnessConfig) -> list[FixtureSpec]:
    """Return the fixtures under *root*, from its manifest when it has one."""
    fixtures_root = Path(root)
    if not fixtures_root.is_dir():
        raise ConfigError(
            "Fixtures root is not a directory.",
            context={"operation": "discover", "path": str(fixtures_root)},
        )
    manifest = fixtures_root / MANIFEST_NAME
    if manifest.exists():
        descriptors = load_manifest(manifest)
        for descriptor in descriptors:
            if not (fixtures_root / descriptor.name).is_dir():
                raise ConfigError(
                    f"Fixture `{descriptor.name}` listed in {MANIFEST_NAME} has no directory.",
                    context={"operation": "discover", "path": str(manifest)},
                )
    else:
        descriptors = scan_fixture_dirs(fixtures_root, ignored=config.ignored_entries)
    return [descriptor.resolve(fixtures_root, config) for descriptor in descriptors]


def scan_fixture_dirs(root: Path, *, ignored: Iterable[str] = ()) -> list[FixtureDescriptor]:
    ignored_names = set(ignored)
    descriptors: list[FixtureDescriptor] = []
    for entry in sorted(root.iterdir(), key=lambda path: path.name):
        if entry.name in ignored_names or "." in entry.name:
            continue
        if not entry.is_dir():
            continue
        descriptors.append(FixtureDescriptor(name=entry.name))
    return descriptors


def load_manifest(path: str | Path) -> list[FixtureDescriptor]:
    manifest_path = Path(path)
    try:
        payload = json.loads(manifest_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(
            "Invalid fixture manifest JSON.",
            hint=str(exc),
            context={"path": str(manifest_path)},
        ) from exc
    if isinstance(payload, dict):
        payload = payload.get("fixtures")
    if not isinstance(payload, list):
        raise ConfigError(
            "Fixture manifest must be a list of fixture objects.",
            context={"path": str(manifest_path)},
        )

    descriptors = [_parse_descriptor(item, manifest_path) for item in payload]
    names = [descriptor.name for descriptor in descriptors]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise ConfigError(
            f"Duplicate fixtures in manifest: {', '.join(duplicates)}.",
            context={"path": str(manifest_path)},
        )
    return descriptors


def select_fixtures(fixtures: Sequence[FixtureSpec], names: Iterable[str]) -> list[FixtureSpec]:
    wanted = list(names)
    if not wanted:
        return list(fixtures)
    known = {fixture.name for fixture in fixtures}
    unknown = [name for name in wanted if name not in known]
    if unknown:
        raise ConfigError(
            f"Unknown fixtures: {', '.join(unknown)}.",
            hint="Run `installsnap list` to see the available fixtures.",
        )
    return [fixture for fixture in fixtures if fixture.name in wanted]


def _parse_descriptor(item: Any, manifest_path: Path) -> FixtureDescriptor:
    if isinstance(item, str):
        item = {"name": item}
    if not isinstance(item, dict):
        raise ConfigError(
            "Invalid fixture entry in manifest.", context={"path": str(manifest_path)}
        )

    name = item.get("name")
    if not isinstance(name, str) or not name or "/" in name or "\\" in name:
        raise ConfigError(
            "Invalid fixture `name` value.", context={"path": str(manifest_path)}
        )
    context = {"path": str(manifest_path), "fixture": name}

    command = item.get("command")
    if command is not None and (
        not isinstance(command, list)
        or not command
        or not all(isinstance(arg, str) for arg in command)
    ):
        raise ConfigError("Invalid fixture `command` value.", context=context)

    flags: dict[str, bool | None] = {}
    for key in ("keep_lockfile", "skip_tree_check"):
        value = item.get(key)
        if value is not None and not isinstance(value, bool):
            raise ConfigError(f"Invalid fixture `{key}` value.", context=context)
        flags[key] = value

    skip = item.get("skip")
    if skip is not None and not isinstance(skip, str):
        raise ConfigError("Invalid fixture `skip` value.", context=context)

    timeout = item.get("timeout")
    if timeout is not None and (
        isinstance(timeout, bool) or not isinstance(timeout, int | float) or timeout <= 0
    ):
        raise ConfigError("Invalid fixture `timeout` value.", context=context)

    return FixtureDescriptor(
        name=name,
        command=tuple(command) if command is not None else None,
        keep_lockfile=flags["keep_lockfile"],
        skip_tree_check=flags["skip_tree_check"],
        skip=skip,
        timeout=float(timeout) if timeout is not None else None,
    )
