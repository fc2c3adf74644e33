"""Per-workspace interpreter state threaded through parse and execution."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from sam_engine.buffer import Buffer
from sam_engine.host.diagnostics import Diagnostics
from sam_engine.host.process import ProcessRunner, SubprocessRunner
from sam_engine.host.workspace import Workspace
from sam_engine.runtime.settings import EngineSettings
from sam_engine.search.history import PatternHistory


@dataclass(slots=True)
class EditSession:
    """Everything one edit command can see besides the command text.

    ``nest`` counts active loops so ``s`` can tolerate misses inside them,
    ``glooping`` guards against nested ``X``/``Y`` and ``seq`` numbers each
    top-level command for undo grouping.
    """

    workspace: Workspace = field(default_factory=Workspace)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    settings: EngineSettings = field(default_factory=EngineSettings)
    runner: Optional[ProcessRunner] = None
    patterns: Optional[PatternHistory] = None
    current: Optional[Buffer] = None
    nest: int = 0
    glooping: int = 0
    seq: int = 0

    def __post_init__(self) -> None:
        if self.runner is None:
            self.runner = SubprocessRunner(self.settings.shell)
        if self.patterns is None:
            self.patterns = PatternHistory(window=self.settings.backward_window)

    def reset(self) -> None:
        self.nest = 0
        self.glooping = 0

    def directory(self, buffer: Optional[Buffer] = None) -> str:
        """Directory relative names are resolved against."""

        buffer = buffer if buffer is not None else self.current
        if buffer is not None:
            directory = buffer.directory()
            if directory:
                return directory
        return self.workspace.directory


__all__ = ["EditSession"]
