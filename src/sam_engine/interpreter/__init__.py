"""Command execution: session state, dispatch and the top-level driver."""

from .driver import run_edit
from .executor import Executor
from .session import EditSession

__all__ = ["EditSession", "Executor", "run_edit"]
