"""Textual host for the edit engine."""

from .controller import TextualEditAdapter, TextualUIHooks

__all__ = ["TextualEditAdapter", "TextualUIHooks"]
