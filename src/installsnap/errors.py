"""Typed harness error model with stable, machine-readable error codes."""

from __future__ import annotations

import difflib
from collections.abc import Mapping
from enum import StrEnum
from typing import Literal

Origin = Literal["tool", "harness"]


class ErrorCode(StrEnum):
    """Stable error identifiers used in reports and logs."""

    OUTPUT_MISMATCH = "E_OUTPUT_MISMATCH"
    LOCKFILE_MISMATCH = "E_LOCKFILE_MISMATCH"
    MISSING_GENERATED_FILE = "E_MISSING_GENERATED_FILE"
    EXTRANEOUS_GENERATED_FILE = "E_EXTRANEOUS_GENERATED_FILE"
    CONTENT_MISMATCH = "E_CONTENT_MISMATCH"
    UNASSERTED_OUTPUT = "E_UNASSERTED_OUTPUT"
    TIMEOUT = "E_TIMEOUT"
    HARNESS = "E_HARNESS"
    CONFIG = "E_CONFIG"


class SnapshotError(Exception):
    """Base error class that carries code, origin, optional hint, and context.

    ``origin`` tells a regression in the tool under test (``"tool"``) apart
    from a broken test infrastructure (``"harness"``).
    """

    origin: Origin = "tool"
    code: str
    hint: str | None
    context: Mapping[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code.value
        self.hint = hint
        self.context = dict(context or {})

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        if self.context:
            for k, v in self.context.items():
                if v:
                    parts.append(f"  {k}: {v}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "origin": self.origin,
            "message": str(self),
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class MismatchError(SnapshotError):
    """A normalized actual value differs from its normalized golden value."""

    expected: str
    actual: str

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        expected: str,
        actual: str,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(
            f"{message}\n{render_diff(expected, actual)}",
            code=code,
            hint=hint,
            context=context,
        )
        self.expected = expected
        self.actual = actual

    def to_dict(self) -> dict[str, object]:
        payload = super().to_dict()
        payload["expected"] = self.expected
        payload["actual"] = self.actual
        return payload


class OutputMismatchError(MismatchError):
    def __init__(
        self,
        message: str,
        *,
        expected: str,
        actual: str,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.OUTPUT_MISMATCH,
            expected=expected,
            actual=actual,
            hint=hint,
            context=context,
        )


class LockfileMismatchError(MismatchError):
    def __init__(
        self,
        message: str,
        *,
        expected: str,
        actual: str,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.LOCKFILE_MISMATCH,
            expected=expected,
            actual=actual,
            hint=hint,
            context=context,
        )


class ContentMismatchError(MismatchError):
    def __init__(
        self,
        message: str,
        *,
        expected: str,
        actual: str,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.CONTENT_MISMATCH,
            expected=expected,
            actual=actual,
            hint=hint,
            context=context,
        )


class MissingGeneratedFileError(SnapshotError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(
            message, code=ErrorCode.MISSING_GENERATED_FILE, hint=hint, context=context
        )


class ExtraneousGeneratedFileError(SnapshotError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(
            message, code=ErrorCode.EXTRANEOUS_GENERATED_FILE, hint=hint, context=context
        )


class UnassertedOutputError(SnapshotError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.UNASSERTED_OUTPUT, hint=hint, context=context)


class ProcessTimeoutError(SnapshotError):
    output: str

    def __init__(
        self,
        message: str,
        *,
        output: str = "",
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.TIMEOUT, hint=hint, context=context)
        self.output = output


class HarnessError(SnapshotError):
    origin: Origin = "harness"

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.HARNESS, hint=hint, context=context)


class ConfigError(SnapshotError):
    origin: Origin = "harness"

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.CONFIG, hint=hint, context=context)


def render_diff(expected: str, actual: str) -> str:
    """Return a unified diff of two normalized strings, golden side first."""
    lines = difflib.unified_diff(
        expected.splitlines(),
        actual.splitlines(),
        fromfile="expected",
        tofile="actual",
        lineterm="",
    )
    return "\n".join(lines)


__all__ = [
    "ConfigError",
    "ContentMismatchError",
    "ErrorCode",
    "ExtraneousGeneratedFileError",
    "HarnessError",
    "LockfileMismatchError",
    "MismatchError",
    "MissingGeneratedFileError",
    "Origin",
    "OutputMismatchError",
    "ProcessTimeoutError",
    "SnapshotError",
    "UnassertedOutputError",
    "render_diff",
]
