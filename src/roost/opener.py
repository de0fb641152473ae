"""Opening a project in an external program.

The configured strategy is resolved once at startup into an Opener with a
fixed argv prefix. Launching appends the project path.
"""

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from roost.config import OpenerKind, OpenerSelection
from roost.errors import OpenerError

logger = logging.getLogger(__name__)


def _editor_from_env(env: Mapping[str, str]) -> Optional[str]:
    return env.get("VISUAL") or env.get("EDITOR") or None


@dataclass(frozen=True)
class Opener:
    """A resolved opener.

    ``argv`` is None when resolution failed; ``problem`` then explains why
    and every launch raises OpenerError with it.
    """

    kind: OpenerKind
    argv: Optional[tuple[str, ...]]
    problem: Optional[str] = None

    @classmethod
    def resolve(
        cls,
        selection: OpenerSelection,
        env: Optional[Mapping[str, str]] = None,
    ) -> "Opener":
        """Pick the concrete program for ``selection``."""
        env = os.environ if env is None else env
        kind = selection.kind

        if kind == OpenerKind.COMMAND:
            return cls(kind, tuple(selection.command))

        if kind == OpenerKind.CODE:
            if shutil.which("code", path=env.get("PATH")) is None:
                return cls(kind, None, "'code' was not found on PATH")
            return cls(kind, ("code",))

        if kind == OpenerKind.EDITOR:
            editor = _editor_from_env(env)
            if editor is None:
                return cls(kind, None, "Neither $VISUAL nor $EDITOR is set")
            return cls(kind, tuple(editor.split()))

        # auto: prefer VS Code, then the user's editor
        if shutil.which("code", path=env.get("PATH")) is not None:
            return cls(OpenerKind.CODE, ("code",))
        editor = _editor_from_env(env)
        if editor is not None:
            return cls(OpenerKind.EDITOR, tuple(editor.split()))
        return cls(kind, None, "VS Code was not found and no $EDITOR is set")

    @property
    def available(self) -> bool:
        return self.argv is not None

    def describe(self) -> str:
        if self.argv is None:
            return f"{self.kind.value} (unavailable: {self.problem})"
        return " ".join(self.argv)

    def launch(self, path: Path) -> None:
        """Run the opener on ``path`` and wait for it to return."""
        if self.argv is None:
            raise OpenerError(self.problem or "No opener available")

        argv = [*self.argv, str(path)]
        logger.info("Opening %s with %s", path, " ".join(self.argv))
        try:
            result = subprocess.run(argv, cwd=path)
        except OSError as e:
            raise OpenerError(f"Could not start {self.argv[0]}: {e}") from e
        if result.returncode != 0:
            raise OpenerError(f"{self.argv[0]} exited with status {result.returncode}")
