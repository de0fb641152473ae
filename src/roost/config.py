"""Roost configuration management.

Settings live in ~/.config/roost/config.yaml (or $ROOST_CONFIG) and are
loaded once per run into an immutable RoostConfig.
"""

import os
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import yaml

from roost.errors import ConfigError


# Default configuration values
DEFAULT_THEME = "textual-dark"
DEFAULT_MAX_DEPTH = 4
DEFAULT_VCS_RECENCY = True
DEFAULT_DEEP_RECENCY = False
DEFAULT_INCLUDE_HIDDEN = False
DEFAULT_CONFIRM_OPEN = False

CONFIG_ENV_VAR = "ROOST_CONFIG"

STARTER_CONFIG = """\
# Roost configuration
#
# Directories searched for projects, in order.
roots:
  - ~/code

# How to open a project: auto, code, editor, or a custom command, e.g.
#   opener:
#     command: ["tmux", "new-window", "-c"]
opener: auto

# Extra gitignore-style patterns excluded from traversal.
ignore: []

# Extra manifest file names that mark a project root.
markers: []

max_depth: 4
include_hidden: false
vcs_recency: true
deep_recency: false
confirm_open: false
theme: textual-dark
"""


class OpenerKind(str, Enum):
    """Strategies for opening a project."""

    AUTO = "auto"  # code if installed, else $EDITOR
    CODE = "code"  # Visual Studio Code CLI
    EDITOR = "editor"  # $VISUAL / $EDITOR
    COMMAND = "command"  # custom argv, project path appended


@dataclass(frozen=True)
class OpenerSelection:
    """Opener strategy chosen in configuration."""

    kind: OpenerKind = OpenerKind.AUTO
    command: tuple[str, ...] = ()

    @classmethod
    def parse(cls, value: Any) -> "OpenerSelection":
        """Parse the ``opener`` config value."""
        if value is None:
            return cls()
        if isinstance(value, str):
            try:
                kind = OpenerKind(value.strip().lower())
            except ValueError:
                choices = ", ".join(k.value for k in OpenerKind if k != OpenerKind.COMMAND)
                raise ConfigError(f"Unknown opener '{value}'. Use one of: {choices}, or {{command: [...]}}") from None
            if kind == OpenerKind.COMMAND:
                raise ConfigError("opener 'command' needs an argv list: opener: {command: [...]}")
            return cls(kind=kind)
        if isinstance(value, dict) and set(value) == {"command"}:
            command = value["command"]
            if isinstance(command, str):
                command = command.split()
            if not isinstance(command, list) or not command or not all(isinstance(c, str) for c in command):
                raise ConfigError("opener command must be a non-empty list of strings")
            return cls(kind=OpenerKind.COMMAND, command=tuple(command))
        raise ConfigError(f"Invalid opener setting: {value!r}")


def expand_path(raw: str) -> Path:
    """Expand ~ and environment variables, returning an absolute path."""
    expanded = os.path.expandvars(os.path.expanduser(raw))
    return Path(expanded).absolute()


def _unique_roots(raw_roots: list) -> tuple[Path, ...]:
    roots: list[Path] = []
    for raw in raw_roots:
        if not isinstance(raw, (str, os.PathLike)):
            raise ConfigError(f"Root entries must be paths, got {raw!r}")
        path = expand_path(os.fspath(raw))
        if path not in roots:
            roots.append(path)
    return tuple(roots)


def _expect(data: dict, key: str, kind: type, default: Any) -> Any:
    value = data.get(key, default)
    if value is None:
        return default
    # bool is an int subclass, keep them apart
    if kind is int and isinstance(value, bool):
        raise ConfigError(f"'{key}' must be an integer")
    if not isinstance(value, kind):
        raise ConfigError(f"'{key}' must be of type {kind.__name__}, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class RoostConfig:
    """Roost application configuration."""

    roots: tuple[Path, ...] = ()
    opener: OpenerSelection = field(default_factory=OpenerSelection)

    # Traversal
    ignore: tuple[str, ...] = ()
    markers: tuple[str, ...] = ()
    max_depth: int = DEFAULT_MAX_DEPTH
    include_hidden: bool = DEFAULT_INCLUDE_HIDDEN

    # Recency sources
    vcs_recency: bool = DEFAULT_VCS_RECENCY
    deep_recency: bool = DEFAULT_DEEP_RECENCY

    # Interface
    confirm_open: bool = DEFAULT_CONFIRM_OPEN
    theme: str = DEFAULT_THEME
    log_file: Optional[Path] = None

    @classmethod
    def get_config_path(cls) -> Path:
        """Get the path to the config file."""
        override = os.environ.get(CONFIG_ENV_VAR)
        if override:
            return expand_path(override)
        return Path.home() / ".config" / "roost" / "config.yaml"

    @classmethod
    def from_dict(cls, data: dict) -> "RoostConfig":
        """Build a config from parsed YAML, validating every known key."""
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a mapping of settings")

        raw_roots = _expect(data, "roots", list, [])
        max_depth = _expect(data, "max_depth", int, DEFAULT_MAX_DEPTH)
        if max_depth < 0:
            raise ConfigError("'max_depth' must not be negative")
        log_file = data.get("log_file")

        return cls(
            roots=_unique_roots(raw_roots),
            opener=OpenerSelection.parse(data.get("opener")),
            ignore=tuple(str(p) for p in _expect(data, "ignore", list, [])),
            markers=tuple(str(m) for m in _expect(data, "markers", list, [])),
            max_depth=max_depth,
            include_hidden=_expect(data, "include_hidden", bool, DEFAULT_INCLUDE_HIDDEN),
            vcs_recency=_expect(data, "vcs_recency", bool, DEFAULT_VCS_RECENCY),
            deep_recency=_expect(data, "deep_recency", bool, DEFAULT_DEEP_RECENCY),
            confirm_open=_expect(data, "confirm_open", bool, DEFAULT_CONFIRM_OPEN),
            theme=_expect(data, "theme", str, DEFAULT_THEME),
            log_file=expand_path(str(log_file)) if log_file else None,
        )

    @classmethod
    def load(
        cls,
        config_path: Optional[Path] = None,
        roots: Optional[list[str]] = None,
    ) -> "RoostConfig":
        """Load configuration, letting explicit ``roots`` override the file.

        Raises ConfigError when the file is malformed, or when it is missing
        and no roots were given on the command line.
        """
        path = config_path or cls.get_config_path()

        if path.exists():
            try:
                with open(path, "r", encoding="utf-8") as f:
                    data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Malformed config file {path}: {e}") from e
            except OSError as e:
                raise ConfigError(f"Could not read config file {path}: {e}") from e
            config = cls.from_dict(data or {})
        elif roots:
            config = cls()
        else:
            raise ConfigError(
                f"No config file at {path}. Run 'roost config init' or pass --root."
            )

        if roots:
            config = replace(config, roots=_unique_roots(list(roots)))

        if not config.roots:
            raise ConfigError("No project roots configured")

        return config

    @classmethod
    def write_starter(cls, path: Optional[Path] = None, force: bool = False) -> Path:
        """Write the commented starter config file."""
        path = path or cls.get_config_path()
        if path.exists() and not force:
            raise ConfigError(f"{path} already exists (use --force to overwrite)")

        # Ensure directory exists
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            f.write(STARTER_CONFIG)
        return path
