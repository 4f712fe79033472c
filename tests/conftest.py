"""Shared test fixtures: a scripted stand-in for the tool under test."""

from __future__ import annotations

import json
import sys
import textwrap
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import pytest

from installsnap.config import HarnessConfig

# Reads plan.json from its working directory and acts it out.
FAKE_TOOL = textwrap.dedent(
    """\
    import json
    import pathlib
    import sys
    import time

    plan = json.loads(pathlib.Path("plan.json").read_text(encoding="utf-8"))
    if "lockfile" in plan:
        pathlib.Path("snowpack.lock.json").write_text(plan["lockfile"], encoding="utf-8")
    if "lockfile_hex" in plan:
        pathlib.Path("snowpack.lock.json").write_bytes(bytes.fromhex(plan["lockfile_hex"]))
    for rel, content in plan.get("files", {}).items():
        target = pathlib.Path("web_modules") / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    sys.stdout.write(plan.get("stdout", ""))
    sys.stdout.flush()
    sys.stderr.write(plan.get("stderr", ""))
    sys.stderr.flush()
    time.sleep(plan.get("sleep", 0))
    sys.exit(plan.get("exit", 0))
    """
)

MakeFixture = Callable[..., Path]


@pytest.fixture
def fixtures_root(tmp_path: Path) -> Path:
    root = tmp_path / "fixtures"
    root.mkdir()
    return root


@pytest.fixture
def harness_config(tmp_path: Path) -> HarnessConfig:
    tool = tmp_path / "fake_tool.py"
    tool.write_text(FAKE_TOOL, encoding="utf-8")
    return HarnessConfig(command=(sys.executable, str(tool)), timeout=30.0, platform="linux")


@pytest.fixture
def make_fixture(fixtures_root: Path) -> MakeFixture:
    """Create a fixture directory with a plan for the fake tool and golden files."""

    def _make(
        name: str,
        *,
        plan: Mapping[str, Any] | None = None,
        expected_output: str | None = "",
        expected_output_win: str | None = None,
        expected_lock: str | None = None,
        expected_install: Mapping[str, str] | None = None,
    ) -> Path:
        directory = fixtures_root / name
        directory.mkdir()
        (directory / "plan.json").write_text(json.dumps(dict(plan or {})), encoding="utf-8")
        if expected_output is not None:
            (directory / "expected-output.txt").write_text(expected_output, encoding="utf-8")
        if expected_output_win is not None:
            (directory / "expected-output.win.txt").write_text(
                expected_output_win, encoding="utf-8"
            )
        if expected_lock is not None:
            (directory / "expected-lock.json").write_text(expected_lock, encoding="utf-8")
        if expected_install is not None:
            write_tree(directory / "expected-install", expected_install)
        return directory

    return _make


def write_tree(root: Path, files: Mapping[str, str]) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    for rel, content in files.items():
        target = root / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def tree_writer() -> Callable[[Path, Mapping[str, str]], Path]:
    return write_tree
