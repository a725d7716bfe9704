from pathlib import Path

from typer.testing import CliRunner

from monswitch import cli
from monswitch.compositor import PrintControl
from monswitch.daemon import MonitorDaemon
from monswitch.enumerator import SysfsEnumerator
from monswitch.errors import EnumerationError, StartupConfigError
from monswitch.profile_manager import ProfileManager

runner = CliRunner()


def test_help() -> None:
    result = runner.invoke(cli.app, ["--help"])
    assert result.exit_code == 0
    assert "--primary-workspace" in result.output


def test_unknown_flag_value_is_rejected() -> None:
    result = runner.invoke(cli.app, ["--compositor", "weston"])
    assert result.exit_code != 0


def test_bad_settings_exit_with_startup_error(monkeypatch) -> None:
    monkeypatch.setattr(cli, "load_app_settings", lambda: {"enumerator": "drm"})
    monkeypatch.setattr(cli, "run_daemon", lambda daemon: None)
    result = runner.invoke(cli.app, [])
    assert result.exit_code == 2
    assert "unknown enumerator 'drm'" in result.output


def test_flags_select_backends(monkeypatch, tmp_path: Path) -> None:
    captured = []
    monkeypatch.setattr(cli, "load_app_settings", lambda: {})
    monkeypatch.setattr(cli, "run_daemon", captured.append)
    result = runner.invoke(cli.app, [
        "--enumerator", "sysfs",
        "--compositor", "print",
        "--notifier", "none",
        "--primary-workspace", "1",
        "--config", str(tmp_path / "config"),
        "--settle", "0",
    ])
    assert result.exit_code == 0, result.output

    (daemon,) = captured
    assert daemon.single_shot
    assert isinstance(daemon._enumerator, SysfsEnumerator)
    assert isinstance(daemon._compositor, PrintControl)
    assert daemon._profile_mgr.path == tmp_path / "config"
    assert daemon._primary_workspace == "1"


def test_startup_failure_from_backend(monkeypatch) -> None:
    def fail(config):
        raise StartupConfigError("no supported compositor detected")

    monkeypatch.setattr(cli, "load_app_settings", lambda: {})
    monkeypatch.setattr(cli, "_build_daemon", fail)
    result = runner.invoke(cli.app, [])
    assert result.exit_code == 2
    assert "no supported compositor detected" in result.output


def test_fatal_runtime_error_exits_1(monkeypatch) -> None:
    def fail(daemon):
        raise EnumerationError("cannot list /sys/class/drm")

    monkeypatch.setattr(cli, "load_app_settings", lambda: {})
    monkeypatch.setattr(cli, "run_daemon", fail)
    result = runner.invoke(cli.app, ["--enumerator", "sysfs", "--compositor", "print"])
    assert result.exit_code == 1
    assert "cannot list /sys/class/drm" in result.output


def test_single_shot_dry_run_end_to_end(tmp_path: Path, make_edid) -> None:
    drm = tmp_path / "drm"
    (drm / "card0-eDP-1").mkdir(parents=True)
    (drm / "card0-eDP-1" / "status").write_text("connected\n")
    (drm / "card0-eDP-1" / "edid").write_bytes(make_edid(vendor="BOE", name=None))
    config = tmp_path / "config"
    config.write_text("profile laptop {\n    output eDP-1 scale 1.5\n}\n")

    lines: list[str] = []

    class Collect:
        name = "collect"

        def execute(self, command) -> None:
            lines.append(command.to_sway())

    daemon = MonitorDaemon(SysfsEnumerator(drm), ProfileManager(path=config), Collect())
    cli.run_daemon(daemon)
    assert lines == ["output eDP-1 enable position 0 0 transform normal scale 1.5"]


def test_ctl_reload_without_daemon(tmp_path: Path) -> None:
    result = runner.invoke(cli.ctl_app, ["reload", "--socket", str(tmp_path / "absent.sock")])
    assert result.exit_code == 1
    assert "Is the monswitch daemon running?" in result.output


def test_ctl_reload_ok(monkeypatch, tmp_path: Path) -> None:
    requested = []
    monkeypatch.setattr(cli, "request_reload", lambda path: requested.append(path) or "ok")
    result = runner.invoke(cli.ctl_app, ["reload", "--socket", str(tmp_path / "ctl.sock")])
    assert result.exit_code == 0
    assert requested == [tmp_path / "ctl.sock"]


def test_ctl_reload_error_reply(monkeypatch) -> None:
    monkeypatch.setattr(cli, "request_reload", lambda path: "error: unknown command")
    result = runner.invoke(cli.ctl_app, ["reload"])
    assert result.exit_code == 1
