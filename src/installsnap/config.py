"""Harness configuration and loading helpers."""

from __future__ import annotations

import dataclasses
import json
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from installsnap.errors import ConfigError

DEFAULT_COMMAND = ("npm", "run", "testinstall", "--silent")
DEFAULT_LOCKFILE_NAME = "snowpack.lock.json"
DEFAULT_OUTPUT_DIR_NAME = "web_modules"
DEFAULT_TIMEOUT = 120.0

# The lockfile format itself is under test here.
DEFAULT_KEEP_LOCKFILE = frozenset({"source-pika-lockfile"})

DEFAULT_SKIP_TREE_CHECK = frozenset(
    {
        # Only the output is asserted; tree paths differ on Windows.
        "config-rollup",
        # Produces no output tree.
        "include-ignore-unsupported-files",
    }
)

# TODO: drop once the tool replaces its platform-specific spinner output.
DEFAULT_SKIPPED_FIXTURES: Mapping[str, str] = {
    "error-node-builtin-unresolved": (
        "spinner failure message differs between runtime versions and platforms"
    ),
}

# Shared chunks are hashed differently on Windows and Linux.
DEFAULT_TREE_EXCLUDE = ("common",)


@dataclass(frozen=True, slots=True)
class HarnessConfig:
    command: tuple[str, ...] = DEFAULT_COMMAND
    env: Mapping[str, str] = field(default_factory=lambda: {"CI": "1"})
    inherit_env: bool = True
    timeout: float = DEFAULT_TIMEOUT
    lockfile_name: str = DEFAULT_LOCKFILE_NAME
    output_dir_name: str = DEFAULT_OUTPUT_DIR_NAME
    keep_lockfile: frozenset[str] = DEFAULT_KEEP_LOCKFILE
    skip_tree_check: frozenset[str] = DEFAULT_SKIP_TREE_CHECK
    skipped_fixtures: Mapping[str, str] = field(
        default_factory=lambda: dict(DEFAULT_SKIPPED_FIXTURES)
    )
    tree_exclude: tuple[str, ...] = DEFAULT_TREE_EXCLUDE
    expected_failure_prefix: str = "error-"
    ignored_entries: frozenset[str] = frozenset({"node_modules"})
    platform: str = sys.platform

    def __post_init__(self) -> None:
        if not self.command:
            raise ConfigError(
                "Harness command must not be empty.",
                hint="Set `command` to the argv that runs the tool under test.",
                context={"operation": "config"},
            )
        if self.timeout <= 0:
            raise ConfigError(
                "Harness timeout must be positive.",
                hint="Every fixture needs a finite timeout.",
                context={"operation": "config", "timeout": str(self.timeout)},
            )

    @property
    def is_windows(self) -> bool:
        return self.platform == "win32"

    def replace(self, **changes: Any) -> HarnessConfig:
        return dataclasses.replace(self, **changes)


def load_config(path: str | Path, *, base: HarnessConfig | None = None) -> HarnessConfig:
    """Read a JSON config file and overlay it on *base* (or the defaults)."""
    config_path = Path(path)
    try:
        raw = config_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigError(
            "Config file does not exist.",
            context={"path": str(config_path)},
        ) from exc
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(
            "Invalid config JSON.",
            hint=str(exc),
            context={"path": str(config_path)},
        ) from exc
    if not isinstance(payload, dict):
        raise ConfigError("Invalid config payload type.", context={"path": str(config_path)})
    return config_from_mapping(payload, base=base)


def config_from_mapping(
    payload: Mapping[str, Any],
    *,
    base: HarnessConfig | None = None,
) -> HarnessConfig:
    known = {f.name for f in dataclasses.fields(HarnessConfig)}
    unknown = sorted(set(payload) - known)
    if unknown:
        raise ConfigError(
            f"Unknown config keys: {', '.join(unknown)}.",
            hint=f"Valid keys are: {', '.join(sorted(known))}.",
        )

    changes: dict[str, Any] = {}
    if "command" in payload:
        changes["command"] = tuple(_str_list(payload, "command"))
    if "env" in payload:
        changes["env"] = _str_mapping(payload, "env")
    if "inherit_env" in payload:
        changes["inherit_env"] = _bool(payload, "inherit_env")
    if "timeout" in payload:
        changes["timeout"] = _number(payload, "timeout")
    for key in ("lockfile_name", "output_dir_name", "expected_failure_prefix", "platform"):
        if key in payload:
            changes[key] = _str(payload, key)
    for key in ("keep_lockfile", "skip_tree_check", "ignored_entries"):
        if key in payload:
            changes[key] = frozenset(_str_list(payload, key))
    if "skipped_fixtures" in payload:
        changes["skipped_fixtures"] = _str_mapping(payload, "skipped_fixtures")
    if "tree_exclude" in payload:
        changes["tree_exclude"] = tuple(_str_list(payload, "tree_exclude"))

    return (base or HarnessConfig()).replace(**changes)


def _str(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value:
        raise ConfigError(f"Invalid config `{key}` value.")
    return value


def _bool(payload: Mapping[str, Any], key: str) -> bool:
    value = payload.get(key)
    if not isinstance(value, bool):
        raise ConfigError(f"Invalid config `{key}` value.")
    return value


def _number(payload: Mapping[str, Any], key: str) -> float:
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ConfigError(f"Invalid config `{key}` value.")
    return float(value)


def _str_list(payload: Mapping[str, Any], key: str) -> list[str]:
    value = payload.get(key)
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"Invalid config `{key}` value.", hint="Expected a list of strings.")
    return list(value)


def _str_mapping(payload: Mapping[str, Any], key: str) -> dict[str, str]:
    value = payload.get(key)
    if not isinstance(value, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    ):
        raise ConfigError(
            f"Invalid config `{key}` value.",
            hint="Expected an object with string values.",
        )
    return dict(value)
