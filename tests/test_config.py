"""Tests for Roost configuration loading."""

from pathlib import Path

import pytest

from roost.config import (
    DEFAULT_MAX_DEPTH,
    OpenerKind,
    OpenerSelection,
    RoostConfig,
    expand_path,
)
from roost.errors import ConfigError


def write_config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestOpenerSelection:
    """Tests for parsing the opener setting."""

    def test_default_is_auto(self) -> None:
        assert OpenerSelection.parse(None).kind == OpenerKind.AUTO

    @pytest.mark.parametrize("value,kind", [
        ("auto", OpenerKind.AUTO),
        ("code", OpenerKind.CODE),
        ("EDITOR", OpenerKind.EDITOR),
    ])
    def test_named_openers(self, value: str, kind: OpenerKind) -> None:
        assert OpenerSelection.parse(value).kind == kind

    def test_custom_command(self) -> None:
        selection = OpenerSelection.parse({"command": ["tmux", "new-window", "-c"]})
        assert selection.kind == OpenerKind.COMMAND
        assert selection.command == ("tmux", "new-window", "-c")

    def test_command_string_is_split(self) -> None:
        selection = OpenerSelection.parse({"command": "nvim -c"})
        assert selection.command == ("nvim", "-c")

    def test_unknown_opener(self) -> None:
        with pytest.raises(ConfigError, match="Unknown opener"):
            OpenerSelection.parse("emacsclient")

    def test_bare_command_rejected(self) -> None:
        with pytest.raises(ConfigError):
            OpenerSelection.parse("command")

    def test_empty_command_rejected(self) -> None:
        with pytest.raises(ConfigError):
            OpenerSelection.parse({"command": []})


class TestRoostConfigLoad:
    """Tests for RoostConfig.load."""

    def test_load_full_file(self, tmp_path: Path) -> None:
        root = tmp_path / "code"
        root.mkdir()
        path = write_config(tmp_path, f"""
roots:
  - {root}
  - {root}
opener:
  command: [tmux, new-window, -c]
ignore: ["archive/"]
markers: [BUILD.bazel]
max_depth: 2
include_hidden: true
vcs_recency: false
deep_recency: true
confirm_open: true
theme: nord
""")
        config = RoostConfig.load(path)
        assert config.roots == (root,)
        assert config.opener.kind == OpenerKind.COMMAND
        assert config.ignore == ("archive/",)
        assert config.markers == ("BUILD.bazel",)
        assert config.max_depth == 2
        assert config.include_hidden is True
        assert config.vcs_recency is False
        assert config.deep_recency is True
        assert config.confirm_open is True
        assert config.theme == "nord"

    def test_defaults(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, "roots: [/srv/code]\n")
        config = RoostConfig.load(path)
        assert config.max_depth == DEFAULT_MAX_DEPTH
        assert config.opener.kind == OpenerKind.AUTO
        assert config.vcs_recency is True
        assert config.deep_recency is False

    def test_tilde_expanded(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        path = write_config(tmp_path, "roots: ['~/code']\n")
        config = RoostConfig.load(path)
        assert config.roots == (tmp_path / "code",)

    def test_cli_roots_override(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, "roots: [/srv/code]\n")
        config = RoostConfig.load(path, roots=[str(tmp_path)])
        assert config.roots == (tmp_path,)

    def test_missing_file_with_roots(self, tmp_path: Path) -> None:
        config = RoostConfig.load(tmp_path / "absent.yaml", roots=[str(tmp_path)])
        assert config.roots == (tmp_path,)

    def test_missing_file_without_roots(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="No config file"):
            RoostConfig.load(tmp_path / "absent.yaml")

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, "roots: [unclosed\n")
        with pytest.raises(ConfigError, match="Malformed"):
            RoostConfig.load(path)

    def test_wrong_type(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, "roots: /srv/code\n")
        with pytest.raises(ConfigError, match="roots"):
            RoostConfig.load(path)

    def test_bool_is_not_depth(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, "roots: [/srv]\nmax_depth: true\n")
        with pytest.raises(ConfigError, match="max_depth"):
            RoostConfig.load(path)

    def test_empty_roots(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, "roots: []\n")
        with pytest.raises(ConfigError, match="No project roots"):
            RoostConfig.load(path)

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, "- just\n- a list\n")
        with pytest.raises(ConfigError):
            RoostConfig.load(path)

    def test_env_var_location(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ROOST_CONFIG", str(tmp_path / "custom.yaml"))
        assert RoostConfig.get_config_path() == tmp_path / "custom.yaml"


class TestStarterConfig:
    """Tests for writing the starter file."""

    def test_write_and_load(self, tmp_path: Path) -> None:
        path = RoostConfig.write_starter(tmp_path / "nested" / "config.yaml")
        assert path.exists()
        config = RoostConfig.load(path)
        assert config.roots == (expand_path("~/code"),)

    def test_refuses_overwrite(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, "roots: [/srv]\n")
        with pytest.raises(ConfigError, match="already exists"):
            RoostConfig.write_starter(path)
        RoostConfig.write_starter(path, force=True)
        assert "Roost configuration" in path.read_text(encoding="utf-8")
