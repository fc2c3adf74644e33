"""Collaborators the host supplies: buffers, diagnostics and processes."""

from .diagnostics import Diagnostics
from .events import EventBus
from .process import (
    PipeCompletion,
    PipeResult,
    ProcessFailure,
    ProcessRunner,
    SubprocessRunner,
)
from .workspace import Workspace

__all__ = [
    "Diagnostics",
    "EventBus",
    "PipeCompletion",
    "PipeResult",
    "ProcessFailure",
    "ProcessRunner",
    "SubprocessRunner",
    "Workspace",
]
