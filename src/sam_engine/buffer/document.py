"""Versioned text storage behind every buffer."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class BufferDocument:
    """Flat string storage with a version bumped on every mutation.

    Offsets are code-point indexes into ``text``. A piece table could replace
    the string later without changing this API.
    """

    text: str = ""
    version: int = 0

    @classmethod
    def from_text(cls, text: str) -> "BufferDocument":
        return cls(text=text)

    def __len__(self) -> int:
        return len(self.text)

    def read_char(self, q: int) -> str:
        return self.text[q]

    def view(self, q0: int, q1: int) -> str:
        return self.text[q0:q1]

    def insert(self, q0: int, text: str) -> None:
        if not text:
            return
        self.text = self.text[:q0] + text + self.text[q0:]
        self.version += 1

    def delete(self, q0: int, q1: int) -> None:
        if q1 <= q0:
            return
        self.text = self.text[:q0] + self.text[q1:]
        self.version += 1

    def reset(self, text: str) -> None:
        self.text = text
        self.version += 1
