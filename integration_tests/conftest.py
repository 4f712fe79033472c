"""Shared helpers for integration tests."""

from __future__ import annotations

import os
from pathlib import Path

from installsnap.config import HarnessConfig, load_config

FIXTURES_ENV = "INSTALLSNAP_FIXTURES"
CONFIG_ENV = "INSTALLSNAP_CONFIG"


def fixtures_root() -> Path | None:
    """Return the fixtures tree named by ``INSTALLSNAP_FIXTURES``, if any."""
    value = os.environ.get(FIXTURES_ENV)
    return Path(value) if value else None


def harness_config() -> HarnessConfig:
    value = os.environ.get(CONFIG_ENV)
    return load_config(value) if value else HarnessConfig()
