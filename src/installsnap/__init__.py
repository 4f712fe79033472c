"""Public package entrypoint for the install snapshot harness."""

from .config import HarnessConfig, load_config
from .discovery import FixtureDescriptor, discover_fixtures, select_fixtures
from .errors import (
    ConfigError,
    ContentMismatchError,
    ErrorCode,
    ExtraneousGeneratedFileError,
    HarnessError,
    LockfileMismatchError,
    MissingGeneratedFileError,
    OutputMismatchError,
    ProcessTimeoutError,
    SnapshotError,
    UnassertedOutputError,
)
from .lockfile import LockfileGate
from .models import (
    ComparisonResult,
    DiffEntry,
    DiffKind,
    FixtureResult,
    FixtureSpec,
    Outcome,
    ProcessResult,
    SuiteResult,
)
from .normalize import OUTPUT_PIPELINE, Pipeline, Transform
from .observability import LogRecord, StructuredLogger
from .orchestrator import Orchestrator
from .runner import ProcessRunner
from .tree import TreeComparator

__all__ = [
    "ComparisonResult",
    "ConfigError",
    "ContentMismatchError",
    "DiffEntry",
    "DiffKind",
    "ErrorCode",
    "ExtraneousGeneratedFileError",
    "FixtureDescriptor",
    "FixtureResult",
    "FixtureSpec",
    "HarnessConfig",
    "HarnessError",
    "LockfileGate",
    "LockfileMismatchError",
    "MissingGeneratedFileError",
    "OUTPUT_PIPELINE",
    "Orchestrator",
    "Outcome",
    "OutputMismatchError",
    "Pipeline",
    "ProcessResult",
    "ProcessRunner",
    "ProcessTimeoutError",
    "SnapshotError",
    "LogRecord",
    "StructuredLogger",
    "SuiteResult",
    "Transform",
    "TreeComparator",
    "UnassertedOutputError",
    "discover_fixtures",
    "load_config",
    "select_fixtures",
]
