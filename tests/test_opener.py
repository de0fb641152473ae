"""Tests for opening projects in external programs."""

import subprocess
from pathlib import Path

import pytest

from roost.config import OpenerKind, OpenerSelection
from roost.errors import OpenerError
from roost.opener import Opener


@pytest.fixture
def bin_dir(tmp_path: Path) -> Path:
    """A PATH directory holding a fake ``code`` executable."""
    directory = tmp_path / "bin"
    directory.mkdir()
    code = directory / "code"
    code.write_text("#!/bin/sh\nexit 0\n", encoding="utf-8")
    code.chmod(0o755)
    return directory


class TestOpenerResolve:
    """Tests for Opener.resolve."""

    def test_command(self) -> None:
        selection = OpenerSelection(OpenerKind.COMMAND, ("tmux", "new-window", "-c"))
        opener = Opener.resolve(selection, env={})
        assert opener.argv == ("tmux", "new-window", "-c")
        assert opener.available

    def test_code_found(self, bin_dir: Path) -> None:
        opener = Opener.resolve(OpenerSelection(OpenerKind.CODE), env={"PATH": str(bin_dir)})
        assert opener.argv == ("code",)

    def test_code_missing(self, tmp_path: Path) -> None:
        opener = Opener.resolve(OpenerSelection(OpenerKind.CODE), env={"PATH": str(tmp_path)})
        assert not opener.available
        assert "code" in opener.problem

    def test_editor_prefers_visual(self, tmp_path: Path) -> None:
        env = {"PATH": str(tmp_path), "VISUAL": "nvim -p", "EDITOR": "vi"}
        opener = Opener.resolve(OpenerSelection(OpenerKind.EDITOR), env=env)
        assert opener.argv == ("nvim", "-p")

    def test_editor_unset(self, tmp_path: Path) -> None:
        opener = Opener.resolve(OpenerSelection(OpenerKind.EDITOR), env={"PATH": str(tmp_path)})
        assert opener.argv is None
        assert "EDITOR" in opener.problem

    def test_auto_prefers_code(self, bin_dir: Path) -> None:
        env = {"PATH": str(bin_dir), "EDITOR": "vi"}
        opener = Opener.resolve(OpenerSelection(OpenerKind.AUTO), env=env)
        assert opener.kind == OpenerKind.CODE

    def test_auto_falls_back_to_editor(self, tmp_path: Path) -> None:
        env = {"PATH": str(tmp_path), "EDITOR": "hx"}
        opener = Opener.resolve(OpenerSelection(OpenerKind.AUTO), env=env)
        assert opener.kind == OpenerKind.EDITOR
        assert opener.argv == ("hx",)

    def test_auto_with_nothing(self, tmp_path: Path) -> None:
        opener = Opener.resolve(OpenerSelection(OpenerKind.AUTO), env={"PATH": str(tmp_path)})
        assert not opener.available
        assert "unavailable" in opener.describe()


class TestOpenerLaunch:
    """Tests for Opener.launch."""

    def test_launch_appends_path(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        calls = []

        def fake_run(argv, **kwargs):
            calls.append((argv, kwargs))
            return subprocess.CompletedProcess(argv, 0)

        monkeypatch.setattr(subprocess, "run", fake_run)
        Opener(OpenerKind.EDITOR, ("nvim", "-p")).launch(tmp_path)

        argv, kwargs = calls[0]
        assert argv == ["nvim", "-p", str(tmp_path)]
        assert kwargs["cwd"] == tmp_path

    def test_nonzero_exit(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(subprocess, "run", lambda argv, **kwargs: subprocess.CompletedProcess(argv, 2))
        with pytest.raises(OpenerError, match="status 2"):
            Opener(OpenerKind.CODE, ("code",)).launch(tmp_path)

    def test_program_missing(self, tmp_path: Path) -> None:
        opener = Opener(OpenerKind.COMMAND, (str(tmp_path / "no-such-program"),))
        with pytest.raises(OpenerError, match="Could not start"):
            opener.launch(tmp_path)

    def test_unavailable(self, tmp_path: Path) -> None:
        opener = Opener(OpenerKind.AUTO, None, "VS Code was not found and no $EDITOR is set")
        with pytest.raises(OpenerError, match="VS Code"):
            opener.launch(tmp_path)

    def test_real_process(self, bin_dir: Path, tmp_path: Path) -> None:
        Opener(OpenerKind.CODE, (str(bin_dir / "code"),)).launch(tmp_path)
