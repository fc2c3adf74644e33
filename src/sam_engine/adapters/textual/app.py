"""Executable Textual app that hosts the edit engine."""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

try:  # pragma: no cover - imported only when demo is run
    from textual.app import App, ComposeResult
    from textual.containers import Horizontal
    from textual.widgets import Footer, Input, Static
except ModuleNotFoundError as exc:  # pragma: no cover - friendly error for missing dep
    raise RuntimeError(
        "Install the 'textual' package to use sam_engine.adapters.textual.app"
    ) from exc

from sam_engine.addressing.resolver import menu_line
from sam_engine.buffer import Buffer, BufferMirror
from sam_engine.host import Workspace
from sam_engine.interpreter import EditSession
from sam_engine.runtime import telemetry
from sam_engine.runtime.settings import EngineSettings

from .controller import TextualEditAdapter, TextualUIHooks


def create_session(paths: Sequence[str] = ()) -> EditSession:
    """Session with one buffer per path, or a single scratch buffer."""

    workspace = Workspace()
    for path in paths:
        workspace.open(path)
    if not len(workspace):
        workspace.add(Buffer())
    session = EditSession(workspace=workspace, settings=EngineSettings.from_env())
    session.current = next(iter(workspace))
    return session


@dataclass
class UIState:
    text: str = ""
    status: str = ""
    warnings: List[str] = field(default_factory=list)


class SamEngineApp(App[None]):
    """Buffer text beside the buffer menu, with warnings and a command line below."""

    CSS = """
    #panes {
        height: 1fr;
    }

    #text {
        width: 3fr;
        border: solid $primary;
        overflow: auto;
    }

    #menu {
        width: 1fr;
        border: solid $secondary;
    }

    #warnings {
        height: auto;
        max-height: 10;
        color: $warning;
    }

    #status {
        height: 1;
        background: $boost;
    }
    """

    BINDINGS = [
        ("ctrl+q", "quit", "Quit"),
        ("ctrl+z", "undo", "Undo"),
        ("ctrl+l", "clear_warnings", "Clear"),
    ]

    def __init__(self, paths: Sequence[str] = ()) -> None:
        super().__init__()
        self._paths = list(paths)
        self._ui = UIState()
        self.adapter: Optional[TextualEditAdapter] = None

    def compose(self) -> ComposeResult:
        with Horizontal(id="panes"):
            yield Static("", id="text")
            yield Static("", id="menu")
        yield Static("", id="warnings")
        yield Static("", id="status")
        yield Input(placeholder=",x/pattern/ c/replacement/", id="command")
        yield Footer()

    def on_mount(self) -> None:
        hooks = TextualUIHooks(
            update_buffer=self._show_buffer,
            update_status=self._show_status,
            show_warnings=self._show_warnings,
            log=self._log_line,
        )
        self.adapter = TextualEditAdapter(create_session(self._paths), hooks)
        self._refresh_menu()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self._submit(event.value)
        event.input.value = ""

    def action_undo(self) -> None:
        self._submit("u")

    def action_clear_warnings(self) -> None:
        self._ui.warnings.clear()
        self.query_one("#warnings", Static).update("")

    def _submit(self, command: str) -> None:
        if self.adapter is None or not command:
            return
        self.adapter.submit(command)
        self._refresh_menu()

    def _refresh_menu(self) -> None:
        if self.adapter is None:
            return
        session = self.adapter.session
        lines = "".join(menu_line(session, buffer) for buffer in session.workspace)
        self.query_one("#menu", Static).update(lines.rstrip("\n"))

    def _show_buffer(self, mirror: BufferMirror) -> None:
        self._ui.text = mirror.text
        self.query_one("#text", Static).update(mirror.text)

    def _show_status(self, status: str) -> None:
        self._ui.status = status
        self.query_one("#status", Static).update(status)

    def _show_warnings(self, warnings: List[str]) -> None:
        self._ui.warnings = warnings
        self.query_one("#warnings", Static).update("".join(warnings).rstrip("\n"))

    def _log_line(self, line: str) -> None:
        telemetry.record_event("ui.log", level="debug", data={"line": line})


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Edit files with sam commands in a Textual UI.")
    parser.add_argument("files", nargs="*", help="files to load as buffers")
    args = parser.parse_args(argv)
    SamEngineApp(args.files).run()


if __name__ == "__main__":  # pragma: no cover - manual demo
    main()
