"""Process collaborator used by the pipe commands."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from typing import Optional, Protocol


class ProcessFailure(RuntimeError):
    """The external command could not be started or reported a failure."""


@dataclass(slots=True)
class PipeResult:
    output: str
    errors: str = ""
    status: int = 0


class PipeCompletion(Protocol):
    def wait(self) -> PipeResult:
        """Block until the process output has been consumed."""
        ...


class ProcessRunner(Protocol):
    def run(
        self, command: str, *, stdin: Optional[str], directory: str
    ) -> PipeCompletion:
        """Start ``command``; ``stdin`` of ``None`` means no input."""
        ...


class _PopenCompletion:
    def __init__(self, process: "subprocess.Popen[str]", stdin: Optional[str]) -> None:
        self._process = process
        self._stdin = stdin

    def wait(self) -> PipeResult:
        output, errors = self._process.communicate(self._stdin)
        return PipeResult(
            output=output or "",
            errors=errors or "",
            status=self._process.returncode,
        )


class SubprocessRunner:
    """Runs commands through ``shell -c`` with captured text streams."""

    def __init__(self, shell: str = "/bin/sh") -> None:
        self.shell = shell

    def run(
        self, command: str, *, stdin: Optional[str], directory: str
    ) -> PipeCompletion:
        try:
            process = subprocess.Popen(
                [self.shell, "-c", command],
                stdin=subprocess.PIPE if stdin is not None else subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                cwd=directory or None,
                text=True,
            )
        except OSError as exc:
            raise ProcessFailure(f"{command}: {exc.strerror or exc}") from exc
        return _PopenCompletion(process, stdin)


__all__ = [
    "PipeCompletion",
    "PipeResult",
    "ProcessFailure",
    "ProcessRunner",
    "SubprocessRunner",
]
