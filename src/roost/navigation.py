"""Navigation state machine for the project browser.

The navigator owns all UI state: the ranked items, the filter text, the
cursor, the scanning flag and the status banner. It consumes key names
and scan events, and answers with commands (open, quit, refresh) that the
application carries out. It never performs I/O itself.

States::

    Loading --Added--> Browsing --/--> Filtering --escape/enter--> Browsing
    Browsing --enter (confirm_open)--> ConfirmingOpen --y/n--> Browsing
    any --quit--> Exiting
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional, Union

from roost.models import (
    Added,
    ProjectRecord,
    ScanComplete,
    ScanEvent,
    ScanFailed,
    Updated,
)
from roost.ranking import ProjectRanking


PAGE_SIZE = 10


class NavState(str, Enum):
    """States of the navigation machine."""

    LOADING = "loading"  # no items yet, scan running
    BROWSING = "browsing"
    FILTERING = "filtering"  # editing the filter text
    CONFIRMING_OPEN = "confirming-open"
    EXITING = "exiting"  # terminal


class Severity(str, Enum):
    """Banner severities, named after Textual's notification levels."""

    INFORMATION = "information"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Banner:
    message: str
    severity: Severity = Severity.INFORMATION


# =============================================================================
# Commands returned to the application
# =============================================================================


@dataclass(frozen=True)
class OpenProject:
    """Hand ``path`` to the opener."""

    path: Path


@dataclass(frozen=True)
class Quit:
    """Cancel the scan and leave the terminal."""


@dataclass(frozen=True)
class Refresh:
    """Start a new scan, superseding the current one."""


Command = Union[OpenProject, Quit, Refresh]


@dataclass(frozen=True)
class ViewModel:
    """Everything a frame needs to render."""

    state: NavState
    rows: tuple[ProjectRecord, ...]
    cursor: Optional[int]
    filter_text: str
    scanning: bool
    banner: Optional[Banner]
    total: int

    @property
    def selected(self) -> Optional[ProjectRecord]:
        return self.rows[self.cursor] if self.cursor is not None else None


def matches(record: ProjectRecord, needle: str) -> bool:
    """Case-insensitive substring match on the name, and on the path when
    the filter contains a path separator."""
    if not needle:
        return True
    needle = needle.lower()
    if needle in record.name.lower():
        return True
    return "/" in needle and needle in record.path.as_posix().lower()


class Navigator:
    """The navigation state machine."""

    def __init__(self, confirm_open: bool = False, page_size: int = PAGE_SIZE) -> None:
        self.confirm_open = confirm_open
        self.page_size = page_size
        self.state = NavState.LOADING
        self.ranking = ProjectRanking()
        self.filter_text = ""
        self.cursor: Optional[int] = None
        self.scanning = False
        self.banner: Optional[Banner] = None
        self._visible: list[ProjectRecord] = []
        self._seen: set[Path] = set()

    # -------------------------------------------------------------------------
    # Derived state
    # -------------------------------------------------------------------------

    @property
    def visible(self) -> list[ProjectRecord]:
        return list(self._visible)

    @property
    def selected(self) -> Optional[ProjectRecord]:
        if self.cursor is None:
            return None
        return self._visible[self.cursor]

    def view(self) -> ViewModel:
        return ViewModel(
            state=self.state,
            rows=tuple(self._visible),
            cursor=self.cursor,
            filter_text=self.filter_text,
            scanning=self.scanning,
            banner=self.banner,
            total=len(self.ranking),
        )

    def _recompute(self, prefer: Optional[Path] = None) -> None:
        """Rebuild the visible subset and re-clamp the cursor.

        The cursor follows ``prefer`` if it is still visible, otherwise it
        goes to the first visible row, or to None when nothing is visible.
        """
        self._visible = [r for r in self.ranking if matches(r, self.filter_text)]
        if not self._visible:
            self.cursor = None
            return
        if prefer is not None:
            for i, record in enumerate(self._visible):
                if record.path == prefer:
                    self.cursor = i
                    return
        self.cursor = 0

    def _selected_path(self) -> Optional[Path]:
        record = self.selected
        return record.path if record is not None else None

    # -------------------------------------------------------------------------
    # Scan feed
    # -------------------------------------------------------------------------

    def begin_scan(self) -> None:
        """A new scan session started."""
        if self.state == NavState.EXITING:
            return
        self.scanning = True
        self._seen = set()
        if not len(self.ranking) and self.state == NavState.BROWSING:
            self.state = NavState.LOADING

    def apply(self, events: Iterable[ScanEvent]) -> None:
        """Apply a batch of scan events, re-ranking once."""
        if self.state == NavState.EXITING:
            return
        prefer = self._selected_path()
        changed = False

        for event in events:
            if isinstance(event, Added):
                self.ranking.upsert(event.record)
                self._seen.add(event.record.path)
                changed = True
            elif isinstance(event, Updated):
                changed |= self.ranking.refresh(event.path, event.last_modified, event.file_count)
            elif isinstance(event, ScanComplete):
                self.scanning = False
                if self.ranking.retain(self._seen):
                    changed = True
                if event.skipped:
                    count = len(event.skipped)
                    self.banner = Banner(
                        f"Skipped {count} unreadable director{'y' if count == 1 else 'ies'}",
                        Severity.WARNING,
                    )
                elif not len(self.ranking):
                    self.banner = Banner("No projects found under the configured roots")
            elif isinstance(event, ScanFailed):
                self.scanning = False
                self.banner = Banner(f"Scan failed: {event.reason}", Severity.ERROR)

        if changed or self.cursor is None:
            self._recompute(prefer)

        if self.state == NavState.LOADING and (len(self.ranking) or not self.scanning):
            self.state = NavState.BROWSING

    # -------------------------------------------------------------------------
    # Cursor
    # -------------------------------------------------------------------------

    def move(self, delta: int) -> None:
        """Move the cursor, holding at the first and last rows."""
        if self.cursor is None:
            return
        self.cursor = max(0, min(len(self._visible) - 1, self.cursor + delta))

    def top(self) -> None:
        if self._visible:
            self.cursor = 0

    def bottom(self) -> None:
        if self._visible:
            self.cursor = len(self._visible) - 1

    def select(self, index: int) -> bool:
        """Put the cursor on ``index``, clamped to the visible rows.

        Returns False when the cursor cannot move in the current state.
        """
        if self.cursor is None or self.state in (NavState.CONFIRMING_OPEN, NavState.EXITING):
            return False
        self.cursor = max(0, min(len(self._visible) - 1, index))
        return True

    # -------------------------------------------------------------------------
    # Filtering
    # -------------------------------------------------------------------------

    def begin_filter(self) -> None:
        if self.state == NavState.BROWSING:
            self.state = NavState.FILTERING

    def set_filter(self, text: str) -> None:
        if self.state == NavState.EXITING or text == self.filter_text:
            return
        prefer = self._selected_path()
        self.filter_text = text
        self._recompute(prefer)

    def clear_filter(self) -> None:
        self.set_filter("")
        if self.state == NavState.FILTERING:
            self.state = NavState.BROWSING

    def commit_filter(self) -> None:
        if self.state == NavState.FILTERING:
            self.state = NavState.BROWSING

    # -------------------------------------------------------------------------
    # Banner
    # -------------------------------------------------------------------------

    def show_error(self, message: str) -> None:
        self.banner = Banner(message, Severity.ERROR)

    def dismiss_banner(self) -> None:
        self.banner = None

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def quit(self) -> Quit:
        self.state = NavState.EXITING
        return Quit()

    def request_open(self) -> Optional[OpenProject]:
        record = self.selected
        if record is None:
            self.banner = Banner("No project selected", Severity.WARNING)
            return None
        if self.confirm_open:
            self.state = NavState.CONFIRMING_OPEN
            return None
        return OpenProject(record.path)

    def confirm(self, accepted: bool) -> Optional[OpenProject]:
        if self.state != NavState.CONFIRMING_OPEN:
            return None
        self.state = NavState.BROWSING
        record = self.selected
        if accepted and record is not None:
            return OpenProject(record.path)
        return None

    def refresh(self) -> Refresh:
        self.begin_scan()
        return Refresh()

    def handle_key(self, key: str) -> Optional[Command]:
        """Interpret one key press in the current state."""
        state = self.state
        if state == NavState.EXITING:
            return None
        if key == "ctrl+c":
            return self.quit()

        if state == NavState.CONFIRMING_OPEN:
            if key in ("y", "enter"):
                return self.confirm(True)
            if key in ("n", "escape"):
                return self.confirm(False)
            return None

        if state == NavState.FILTERING:
            if key == "escape":
                self.clear_filter()
            elif key == "enter":
                self.commit_filter()
            elif key == "backspace":
                self.set_filter(self.filter_text[:-1])
            elif key in ("up", "down", "pageup", "pagedown"):
                self._move_key(key)
            elif len(key) == 1 and key.isprintable():
                self.set_filter(self.filter_text + key)
            return None

        # Loading and Browsing
        if key == "q":
            return self.quit()
        if key == "escape":
            if self.filter_text:
                self.clear_filter()
                return None
            return self.quit()
        if key == "r":
            return self.refresh()
        if key == "x":
            self.dismiss_banner()
            return None
        if key == "/":
            self.begin_filter()
            return None
        if key in ("enter", "o"):
            return self.request_open()
        self._move_key(key)
        return None

    def _move_key(self, key: str) -> None:
        if key in ("down", "j"):
            self.move(1)
        elif key in ("up", "k"):
            self.move(-1)
        elif key == "pagedown":
            self.move(self.page_size)
        elif key == "pageup":
            self.move(-self.page_size)
        elif key in ("home", "g"):
            self.top()
        elif key in ("end", "G"):
            self.bottom()
