"""Click CLI for Roost."""

import json
import sys
import threading
from pathlib import Path
from typing import Optional

import click

from roost import __version__
from roost.config import RoostConfig
from roost.errors import ConfigError, TerminalError
from roost.log import setup_logging
from roost.models import Added, ScanComplete, ScanFailed, Updated
from roost.ranking import ProjectRanking
from roost.scanner import ScanCoordinator


EXIT_CONFIG_ERROR = 2
EXIT_TERMINAL_ERROR = 3


def load_config(ctx: click.Context) -> RoostConfig:
    """Load configuration from the group options, exiting on ConfigError."""
    opts = ctx.find_root().obj or {}
    try:
        config = RoostConfig.load(opts.get("config_path"), roots=opts.get("roots"))
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(EXIT_CONFIG_ERROR)

    setup_logging(opts.get("verbose", False), opts.get("log_file") or config.log_file)
    return config


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="roost")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file (default: ~/.config/roost/config.yaml or $ROOST_CONFIG)",
)
@click.option(
    "--root",
    "roots",
    multiple=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory to search; repeat for several. Overrides configured roots.",
)
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path), help="Also write logs to this file")
@click.option("--verbose", "-v", is_flag=True, help="Log debug details")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Optional[Path],
    roots: tuple[Path, ...],
    log_file: Optional[Path],
    verbose: bool,
) -> None:
    """Roost - find and open your code projects.

    Scans the configured roots for project directories (git repositories
    or directories with a build manifest) and lists them, most recently
    active first.

    Quick start:
        roost                     Browse projects interactively
        roost list                Print the ranked project list
        roost config init         Write a starter config file
    """
    ctx.obj = {
        "config_path": config_path,
        "roots": [str(r) for r in roots] or None,
        "log_file": log_file,
        "verbose": verbose,
    }
    if ctx.invoked_subcommand is None:
        ctx.invoke(browse)


@cli.command()
@click.pass_context
def browse(ctx: click.Context) -> None:
    """Launch the interactive project browser.

    Projects appear as they are discovered, most recently active first.

    Keyboard shortcuts:
        j/k, arrows   Move
        g/G           Top / Bottom
        /             Filter
        enter, o      Open project
        r             Refresh (rescan)
        x             Dismiss message
        q, esc        Quit
    """
    config = load_config(ctx)

    try:
        if not (sys.stdin.isatty() and sys.stdout.isatty()):
            raise TerminalError("The project browser needs an interactive terminal; try 'roost list'.")

        from roost.tui import RoostApp
        app = RoostApp(config)
        app.run()
        if app.return_code:
            raise TerminalError(f"Terminal session ended abnormally (code {app.return_code})")
    except TerminalError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(EXIT_TERMINAL_ERROR)


@cli.command("list")
@click.option("--limit", "-n", type=int, default=None, help="Show at most N projects")
@click.option("--json", "as_json", is_flag=True, help="Output JSON")
@click.pass_context
def list_projects(ctx: click.Context, limit: Optional[int], as_json: bool) -> None:
    """Print discovered projects, most recently active first."""
    config = load_config(ctx)
    coordinator = ScanCoordinator.from_config(config)
    session = coordinator.start()

    worker = threading.Thread(target=session.run, name="roost-scan", daemon=True)
    worker.start()

    ranking = ProjectRanking()
    skipped: tuple[str, ...] = ()
    failure: Optional[str] = None
    try:
        for event in session.bridge.events():
            if isinstance(event, Added):
                ranking.upsert(event.record)
            elif isinstance(event, Updated):
                ranking.refresh(event.path, event.last_modified, event.file_count)
            elif isinstance(event, ScanComplete):
                skipped = event.skipped
            elif isinstance(event, ScanFailed):
                failure = event.reason
    finally:
        coordinator.cancel()
        worker.join()

    records = ranking.items[:limit] if limit is not None else ranking.items

    if as_json:
        click.echo(json.dumps(
            [
                {
                    "name": r.name,
                    "path": str(r.path),
                    "kind": r.kind.value,
                    "last_modified": r.last_modified.isoformat(),
                    "markers": list(r.markers),
                }
                for r in records
            ],
            indent=2,
        ))
    elif not records:
        click.echo("No projects found.")
    else:
        from roost.tui.app import format_age
        width = max(len(r.name) for r in records)
        for r in records:
            click.echo(f"{format_age(r.last_modified):>16}  {r.name:<{width}}  {r.path}")

    for path in skipped:
        click.echo(f"Warning: skipped unreadable directory {path}", err=True)
    if failure:
        click.echo(f"Warning: scan stopped early: {failure}", err=True)


# =============================================================================
# Config Commands
# =============================================================================


@cli.group("config")
def config_group() -> None:
    """Inspect or create the configuration file."""
    pass


@config_group.command("path")
@click.pass_context
def config_path_cmd(ctx: click.Context) -> None:
    """Print where the config file is read from."""
    opts = ctx.find_root().obj or {}
    click.echo(str(opts.get("config_path") or RoostConfig.get_config_path()))


@config_group.command("init")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
@click.pass_context
def config_init(ctx: click.Context, force: bool) -> None:
    """Write a commented starter config file."""
    opts = ctx.find_root().obj or {}
    try:
        path = RoostConfig.write_starter(opts.get("config_path"), force=force)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    click.echo(f"Wrote {path}")


@config_group.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Print the effective configuration."""
    config = load_config(ctx)
    from roost.opener import Opener

    click.echo("Roots:")
    for root in config.roots:
        marker = "" if root.is_dir() else "  (missing)"
        click.echo(f"  {root}{marker}")
    click.echo(f"Opener: {Opener.resolve(config.opener).describe()}")
    click.echo(f"Max depth: {config.max_depth}")
    click.echo(f"Include hidden: {config.include_hidden}")
    click.echo(f"VCS recency: {config.vcs_recency}")
    click.echo(f"Deep recency: {config.deep_recency}")
    if config.ignore:
        click.echo(f"Ignore: {', '.join(config.ignore)}")
    if config.markers:
        click.echo(f"Extra markers: {', '.join(config.markers)}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
