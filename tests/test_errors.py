from installsnap.errors import (
    ConfigError,
    ContentMismatchError,
    ErrorCode,
    ExtraneousGeneratedFileError,
    HarnessError,
    LockfileMismatchError,
    MissingGeneratedFileError,
    OutputMismatchError,
    ProcessTimeoutError,
    UnassertedOutputError,
    render_diff,
)


def test_error_codes_are_stable_and_machine_readable() -> None:
    errors = [
        OutputMismatchError("out", expected="a", actual="b"),
        LockfileMismatchError("lock", expected="a", actual="b"),
        MissingGeneratedFileError("missing"),
        ExtraneousGeneratedFileError("extra"),
        ContentMismatchError("content", expected="a", actual="b"),
        UnassertedOutputError("unasserted"),
        ProcessTimeoutError("timeout"),
        HarnessError("harness"),
        ConfigError("config"),
    ]
    assert [error.code for error in errors] == [
        ErrorCode.OUTPUT_MISMATCH.value,
        ErrorCode.LOCKFILE_MISMATCH.value,
        ErrorCode.MISSING_GENERATED_FILE.value,
        ErrorCode.EXTRANEOUS_GENERATED_FILE.value,
        ErrorCode.CONTENT_MISMATCH.value,
        ErrorCode.UNASSERTED_OUTPUT.value,
        ErrorCode.TIMEOUT.value,
        ErrorCode.HARNESS.value,
        ErrorCode.CONFIG.value,
    ]


def test_infrastructure_errors_are_told_apart_from_regressions() -> None:
    assert HarnessError("x").origin == "harness"
    assert ConfigError("x").origin == "harness"
    assert OutputMismatchError("x", expected="", actual="").origin == "tool"
    assert ProcessTimeoutError("x").origin == "tool"


def test_error_string_includes_hint_and_non_empty_context() -> None:
    error = HarnessError(
        "Failed to start.",
        hint="Install the tool.",
        context={"command": "npm run testinstall", "cwd": ""},
    )
    assert str(error) == (
        "Failed to start.\nHint: Install the tool.\n  command: npm run testinstall"
    )


def test_mismatch_error_carries_both_sides_and_a_diff() -> None:
    error = OutputMismatchError(
        "Tool output differs from golden output.",
        expected="Installed 3 dependencies.",
        actual="Installed 2 dependencies.",
    )
    text = str(error)
    assert "-Installed 3 dependencies." in text
    assert "+Installed 2 dependencies." in text
    payload = error.to_dict()
    assert payload["expected"] == "Installed 3 dependencies."
    assert payload["actual"] == "Installed 2 dependencies."
    assert payload["origin"] == "tool"


def test_render_diff_is_empty_for_equal_text() -> None:
    assert render_diff("same", "same") == ""
