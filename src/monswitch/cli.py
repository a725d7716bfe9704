"""Typer CLI entrypoints: the monswitch daemon and the monswitchctl client."""

from __future__ import annotations

import logging
from pathlib import Path

import typer

from .backends import create_compositor, create_enumerator, create_notifiers
from .config import CompositorKind, DaemonConfig, EnumeratorKind, LoaderKind, NotifierKind, load_config
from .daemon import MonitorDaemon, run_daemon
from .errors import MonswitchError, StartupConfigError
from .notifier import request_reload
from .profile_manager import ProfileManager
from .utils import control_socket_path, load_app_settings

app = typer.Typer(
    help="Apply the first matching display profile whenever monitors are plugged or unplugged.",
    add_completion=False,
)
ctl_app = typer.Typer(help="Control a running monswitch daemon.", add_completion=False)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [monswitch] %(levelname)s %(message)s",
    )


def _build_daemon(config: DaemonConfig) -> MonitorDaemon:
    return MonitorDaemon(
        create_enumerator(config.enumerator),
        ProfileManager(config.loader, config.config_path),
        create_compositor(config.compositor),
        create_notifiers(config.notifiers),
        primary_workspace=config.primary_workspace,
        settle_time=config.settle_time,
    )


@app.command()
def main(
    enumerator: EnumeratorKind | None = typer.Option(
        None, "--enumerator", help="How to list connected displays."),
    loader: LoaderKind | None = typer.Option(
        None, "--loader", help="Profile source format."),
    compositor: CompositorKind | None = typer.Option(
        None, "--compositor", help="Where to send output commands ('print' for a dry run)."),
    notifier: list[NotifierKind] | None = typer.Option(
        None, "--notifier",
        help="Change source, repeatable. 'none' applies the matching profile once and exits."),
    primary_workspace: str | None = typer.Option(
        None, "--primary-workspace", metavar="WORKSPACE",
        help="Workspace to bind to outputs marked 'primary'."),
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Profile source file."),
    settle: float | None = typer.Option(
        None, "--settle", help="Seconds to wait after a change before re-evaluating."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Watch for display changes and apply matching profiles."""
    _setup_logging(verbose)
    try:
        daemon_config = load_config(
            load_app_settings(),
            enumerator=enumerator,
            loader=loader,
            compositor=compositor,
            notifiers=notifier,
            primary_workspace=primary_workspace,
            config_path=config,
            settle_time=settle,
        )
        daemon = _build_daemon(daemon_config)
        run_daemon(daemon)
    except StartupConfigError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=2) from None
    except MonswitchError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@ctl_app.callback()
def ctl_main() -> None:
    """Control a running monswitch daemon."""


@ctl_app.command("reload")
def reload_profiles(
    socket_path: Path | None = typer.Option(
        None, "--socket", help="Control socket of the daemon."),
) -> None:
    """Re-read the profiles and re-apply the matching one."""
    path = socket_path or control_socket_path()
    try:
        reply = request_reload(path)
    except OSError as exc:
        typer.echo(
            f"Couldn't connect to monswitch at {path}: {exc}\nIs the monswitch daemon running?",
            err=True,
        )
        raise typer.Exit(code=1) from None
    if reply != "ok":
        typer.echo(f"Error: {reply or 'no reply from daemon'}", err=True)
        raise typer.Exit(code=1)


def run() -> None:
    app()


def run_ctl() -> None:
    ctl_app()


if __name__ == "__main__":
    run()
