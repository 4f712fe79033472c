"""Run the tool under test inside a fixture directory.

The invocation never fails on a nonzero exit status: fixtures that document
an intentional failure assert on the captured output instead. Failing to
start the process at all is a harness error.
"""

from __future__ import annotations

import os
import signal
import subprocess
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from installsnap.config import HarnessConfig
from installsnap.errors import HarnessError, ProcessTimeoutError
from installsnap.models import ProcessResult


@dataclass(slots=True)
class ProcessRunner:
    env: Mapping[str, str] = field(default_factory=lambda: {"CI": "1"})
    inherit_env: bool = True
    timeout: float = 120.0

    @classmethod
    def from_config(cls, config: HarnessConfig) -> ProcessRunner:
        return cls(env=dict(config.env), inherit_env=config.inherit_env, timeout=config.timeout)

    def build_env(self) -> dict[str, str]:
        env = dict(os.environ) if self.inherit_env else {}
        env.update(self.env)
        return env

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: str | Path,
        timeout: float | None = None,
    ) -> ProcessResult:
        """Run *command* in *cwd* and return stdout and stderr merged in order.

        The tool runs in its own process group. On timeout the whole group is
        killed, so processes it spawned cannot write into the fixture after
        the harness has cleaned it up.
        """
        limit = self.timeout if timeout is None else timeout
        argv = list(command)
        context = {"operation": "run", "command": " ".join(argv), "cwd": str(cwd)}
        started = time.monotonic()
        try:
            proc = subprocess.Popen(
                argv,
                cwd=str(cwd),
                env=self.build_env(),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
                start_new_session=True,
            )
        except OSError as exc:
            raise HarnessError(
                "Failed to start the tool under test.",
                hint="This is a test infrastructure problem, not a regression in the tool.",
                context={**context, "error": str(exc)},
            ) from exc

        with proc:
            try:
                output, _ = proc.communicate(timeout=limit)
            except subprocess.TimeoutExpired as exc:
                _kill_group(proc)
                partial, _ = proc.communicate()
                raise ProcessTimeoutError(
                    f"Tool under test timed out after {limit:g}s.",
                    output=_decode(partial or exc.output),
                    hint="Check for a prompt waiting on input or raise the fixture timeout.",
                    context={**context, "timeout": f"{limit:g}"},
                ) from exc

        return ProcessResult(
            output=output or "",
            returncode=proc.returncode,
            duration=time.monotonic() - started,
        )


def _kill_group(proc: subprocess.Popen[str]) -> None:
    if os.name != "posix":
        proc.kill()
        return
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        # Group already gone.
        pass


def _decode(payload: str | bytes | None) -> str:
    if payload is None:
        return ""
    if isinstance(payload, bytes):
        return payload.decode("utf-8", errors="replace")
    return payload
