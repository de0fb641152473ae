"""Main Roost TUI application."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from textual import on, work
from textual.app import App, ComposeResult, SuspendNotSupported
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.message import Message
from textual.reactive import reactive
from textual.widgets import (
    DataTable,
    Footer,
    Header,
    Input,
    Label,
    Markdown,
    Rule,
    Static,
)

from roost.config import RoostConfig
from roost.errors import OpenerError
from roost.models import ProjectKind, ProjectRecord, utcnow
from roost.navigation import (
    Command,
    Navigator,
    NavState,
    OpenProject,
    Quit,
    Refresh,
    ViewModel,
)
from roost.opener import Opener
from roost.scanner import ScanCoordinator, ScanSession

logger = logging.getLogger(__name__)


KIND_ICONS = {
    ProjectKind.GIT_REPOSITORY: "🌿",
    ProjectKind.PLAIN_DIRECTORY: "📁",
}


def _span(seconds: int) -> str:
    days, rem = divmod(seconds, 86400)
    hours, rem = divmod(rem, 3600)
    minutes = rem // 60
    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes or not parts:
        parts.append(f"{minutes}m")
    return " ".join(parts)


def format_age(when: datetime, now: Optional[datetime] = None) -> str:
    """Human readable age of a timestamp.

    - under a minute either way: "just now"
    - more than 48 hours either way: the local date
    - otherwise "2h 5m ago" or "3m from now"
    """
    now = now or utcnow()
    seconds = int((now - when).total_seconds())
    if abs(seconds) < 60:
        return "just now"
    if abs(seconds) > 48 * 3600:
        return when.astimezone().strftime("%Y-%m-%d")
    if seconds > 0:
        return f"{_span(seconds)} ago"
    return f"{_span(-seconds)} from now"


class ScanUpdates(Message):
    """Posted from the scan thread when the bridge has events waiting."""

    def __init__(self, session_id: int) -> None:
        super().__init__()
        self.session_id = session_id


class ScanStatusWidget(Static):
    """Widget showing scan progress and project counts."""

    status: reactive[str] = reactive("Starting")
    shown: reactive[int] = reactive(0)
    total: reactive[int] = reactive(0)

    def compose(self) -> ComposeResult:
        yield Label(f"Scan: {self.status}", id="scan-status-label")
        yield Label(f"Projects: {self.shown}/{self.total}", id="count-label")

    def watch_status(self, value: str) -> None:
        # Reactives initialise during compose, before the labels exist
        if not self.is_mounted:
            return
        self.query_one("#scan-status-label", Label).update(f"Scan: {value}")

    def watch_shown(self, value: int) -> None:
        if not self.is_mounted:
            return
        self.query_one("#count-label", Label).update(f"Projects: {value}/{self.total}")

    def watch_total(self, value: int) -> None:
        if not self.is_mounted:
            return
        self.query_one("#count-label", Label).update(f"Projects: {self.shown}/{value}")


class ProjectDetailPanel(Vertical):
    """Panel showing the selected project."""

    project: reactive[Optional[ProjectRecord]] = reactive(None)

    def compose(self) -> ComposeResult:
        yield Label("Select a project", id="project-title", classes="title")
        yield Rule()
        yield VerticalScroll(
            Static("", id="project-info", markup=True),
            Markdown("", id="project-readme"),
            id="detail-scroll",
        )

    def watch_project(self, project: Optional[ProjectRecord]) -> None:
        if project is None:
            self.query_one("#project-title", Label).update("Select a project")
            self.query_one("#project-info", Static).update("")
            self.query_one("#project-readme", Markdown).update("")
            return

        self.query_one("#project-title", Label).update(f"{KIND_ICONS[project.kind]} {project.name}")

        info_lines = [
            f"📂 {project.path}",
            f"🕐 Modified: {project.last_modified.astimezone().strftime('%Y-%m-%d %H:%M')}"
            f" ({format_age(project.last_modified)})",
            f"🏷  Kind: {project.kind.value}",
        ]
        if project.markers:
            info_lines.append(f"🔎 Markers: {', '.join(project.markers)}")
        if project.file_count is not None:
            info_lines.append(f"📄 Files: {project.file_count:,}")

        self.query_one("#project-info", Static).update("\n".join(info_lines))
        self.query_one("#project-readme", Markdown).update(project.readme or "")


class RoostApp(App):
    """Browse configured roots for projects and open one."""

    TITLE = "Roost"
    SUB_TITLE = "Projects by recent activity"
    AUTO_FOCUS = None

    CSS = """
    Screen {
        layout: vertical;
    }

    #header-bar {
        height: 1;
        background: $primary-darken-2;
        padding: 0 1;
    }

    ScanStatusWidget {
        layout: horizontal;
        height: 1;
    }

    ScanStatusWidget Label {
        margin-right: 3;
    }

    #banner {
        height: auto;
        padding: 0 1;
        display: none;
    }

    #banner.visible {
        display: block;
    }

    #banner.information {
        background: $primary-darken-1;
    }

    #banner.warning {
        background: $warning-darken-2;
    }

    #banner.error {
        background: $error-darken-2;
    }

    #main-layout {
        height: 1fr;
    }

    #project-table {
        width: 1fr;
        height: 100%;
    }

    ProjectDetailPanel {
        width: 1fr;
        height: 100%;
        padding: 0 1;
        border-left: solid $primary;
    }

    ProjectDetailPanel .title {
        text-style: bold;
    }

    #filter-input {
        dock: bottom;
        display: none;
    }

    #filter-input.visible {
        display: block;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit", show=True),
        Binding("r", "nav('r')", "Refresh", show=True),
        Binding("/", "nav('/')", "Filter", show=True),
        Binding("o", "nav('o')", "Open", show=True),
        Binding("enter", "nav('enter')", "Open", show=False),
        Binding("escape", "nav('escape')", "Back", show=False, priority=True),
        Binding("x", "nav('x')", "Dismiss", show=False),
        Binding("y", "nav('y')", "Yes", show=False),
        Binding("n", "nav('n')", "No", show=False),
        Binding("down", "nav('down')", "Down", show=False),
        Binding("j", "nav('j')", "Down", show=False),
        Binding("up", "nav('up')", "Up", show=False),
        Binding("k", "nav('k')", "Up", show=False),
        Binding("home", "nav('home')", "Top", show=False),
        Binding("g", "nav('g')", "Top", show=False),
        Binding("end", "nav('end')", "Bottom", show=False),
        Binding("G", "nav('G')", "Bottom", show=False),
        Binding("pageup", "nav('pageup')", "Page Up", show=False),
        Binding("pagedown", "nav('pagedown')", "Page Down", show=False),
    ]

    def __init__(
        self,
        config: RoostConfig,
        coordinator: Optional[ScanCoordinator] = None,
        opener: Optional[Opener] = None,
    ) -> None:
        super().__init__()
        self._config = config
        self.coordinator = coordinator or ScanCoordinator.from_config(config)
        self.opener = opener or Opener.resolve(config.opener)
        self.navigator = Navigator(confirm_open=config.confirm_open)
        self._rendered_rows: tuple = ()

        if config.theme in self.available_themes:
            self.theme = config.theme
        else:
            logger.warning("Unknown theme %r, keeping %r", config.theme, self.theme)

    def compose(self) -> ComposeResult:
        yield Header()

        with Horizontal(id="header-bar"):
            yield ScanStatusWidget(id="scan-status")

        yield Static("", id="banner")

        with Horizontal(id="main-layout"):
            yield DataTable(id="project-table", cursor_type="row", zebra_stripes=True)
            yield ProjectDetailPanel(id="project-detail")

        yield Input(placeholder="🔍 Filter projects (enter to keep, esc to clear)", id="filter-input")
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one("#project-table", DataTable)
        table.add_column("", width=2, key="kind")
        table.add_column("Project", key="name")
        table.add_column("Modified", width=16, key="modified")
        table.can_focus = False

        self.start_scan()

    def on_unmount(self) -> None:
        self.coordinator.cancel()

    # -------------------------------------------------------------------------
    # Scanning
    # -------------------------------------------------------------------------

    def start_scan(self) -> None:
        """Start a scan session, cancelling any still running."""
        session = self.coordinator.start(notify=lambda sid: self.post_message(ScanUpdates(sid)))
        self.navigator.begin_scan()
        self._render_view()
        self.run_scan(session)

    @work(exclusive=True, thread=True, group="scan")
    def run_scan(self, session: ScanSession) -> None:
        """Run the traversal off the UI thread."""
        session.run()

    @on(ScanUpdates)
    def apply_scan_updates(self, message: ScanUpdates) -> None:
        """Apply everything the bridge has buffered in one refresh."""
        if not self.coordinator.is_current(message.session_id):
            return
        events = self.coordinator.current.bridge.drain()
        if not events:
            return
        self.navigator.apply(events)
        self._render_view()

    # -------------------------------------------------------------------------
    # Input
    # -------------------------------------------------------------------------

    def action_nav(self, key: str) -> None:
        """Feed a key to the navigator and carry out its command."""
        command = self.navigator.handle_key(key)
        self._render_view()
        if command is not None:
            self._execute(command)

    def action_quit(self) -> None:
        """Quit, cancelling any scan in flight."""
        self._execute(self.navigator.quit())

    @on(DataTable.RowHighlighted, "#project-table")
    def on_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        """Keep the navigator on the row a mouse click highlighted."""
        # Stale once a later render has moved the table cursor
        if event.cursor_row != event.data_table.cursor_row:
            return
        if event.cursor_row == self.navigator.cursor:
            return
        self.navigator.select(event.cursor_row)
        self._render_view()

    @on(Input.Changed, "#filter-input")
    def on_filter_changed(self, event: Input.Changed) -> None:
        if self.navigator.state != NavState.FILTERING:
            return
        self.navigator.set_filter(event.value)
        self._render_view()

    @on(Input.Submitted, "#filter-input")
    def on_filter_submitted(self, event: Input.Submitted) -> None:
        self.navigator.commit_filter()
        self._render_view()

    def _execute(self, command: Command) -> None:
        if isinstance(command, Quit):
            self.coordinator.cancel()
            self.exit()
        elif isinstance(command, Refresh):
            self.start_scan()
            self.notify("Rescanning project roots")
        elif isinstance(command, OpenProject):
            self.call_later(self.open_project, command.path)

    async def open_project(self, path: Path) -> None:
        """Hand the terminal to the opener while it runs."""
        try:
            try:
                with self.suspend():
                    self.opener.launch(path)
            except SuspendNotSupported:
                self.opener.launch(path)
        except OpenerError as e:
            logger.warning("Opening %s failed: %s", path, e)
            self.navigator.show_error(str(e))
        self.refresh()
        self._render_view()

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def _render_view(self) -> None:
        view = self.navigator.view()
        self._render_table(view)
        self._render_status(view)
        self._render_banner(view)
        self._render_filter(view)
        self.query_one("#project-detail", ProjectDetailPanel).project = view.selected

    def _render_table(self, view: ViewModel) -> None:
        table = self.query_one("#project-table", DataTable)
        signature = tuple((r.path, r.last_modified) for r in view.rows)
        if signature != self._rendered_rows:
            table.clear()
            now = utcnow()
            for record in view.rows:
                table.add_row(
                    KIND_ICONS[record.kind],
                    record.name,
                    format_age(record.last_modified, now),
                    key=str(record.path),
                )
            self._rendered_rows = signature

        table.show_cursor = view.cursor is not None
        if view.cursor is not None:
            table.move_cursor(row=view.cursor, animate=False)

    def _render_status(self, view: ViewModel) -> None:
        status = self.query_one("#scan-status", ScanStatusWidget)
        if view.state == NavState.LOADING:
            status.status = "Loading…"
        elif view.scanning:
            status.status = "Scanning…"
        else:
            status.status = "Idle"
        status.total = view.total
        status.shown = len(view.rows)

    def _render_banner(self, view: ViewModel) -> None:
        banner = self.query_one("#banner", Static)
        banner.remove_class("information", "warning", "error")

        if view.state == NavState.CONFIRMING_OPEN and view.selected is not None:
            banner.update(f"Open {view.selected.name}? (y/n)")
            banner.add_class("visible", "information")
        elif view.banner is not None:
            banner.update(f"{view.banner.message}  [dim](x to dismiss)[/]")
            banner.add_class("visible", view.banner.severity.value)
        else:
            banner.update("")
            banner.remove_class("visible")

    def _render_filter(self, view: ViewModel) -> None:
        filter_input = self.query_one("#filter-input", Input)
        if view.state == NavState.FILTERING:
            filter_input.add_class("visible")
            if not filter_input.has_focus:
                filter_input.focus()
            return

        if filter_input.value != view.filter_text:
            filter_input.value = view.filter_text
        if view.filter_text:
            filter_input.add_class("visible")
        else:
            filter_input.remove_class("visible")
        if filter_input.has_focus:
            self.set_focus(None)
