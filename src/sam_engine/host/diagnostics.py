"""Warning sink and error raiser handed to the interpreter."""

from __future__ import annotations

from typing import List, NoReturn, Optional

from sam_engine.errors import EvalError
from sam_engine.runtime import telemetry

from .events import EventBus


class Diagnostics:
    """Collects warnings in arrival order and republishes them on the bus."""

    def __init__(self, *, bus: Optional[EventBus] = None) -> None:
        self.bus = bus or EventBus()
        self.messages: List[str] = []

    def warning(self, message: str) -> None:
        self.messages.append(message)
        telemetry.record_event(
            "edit.warning",
            level="debug",
            data={"message": message.rstrip("\n")},
        )
        self.bus.emit("edit.warning", message)

    def raise_edit_error(self, message: str) -> NoReturn:
        raise EvalError(message)

    def text(self) -> str:
        return "".join(self.messages)

    def drain(self) -> List[str]:
        messages, self.messages = self.messages, []
        return messages


__all__ = ["Diagnostics"]
