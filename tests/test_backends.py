from pathlib import Path

import pytest

from monswitch import backends
from monswitch.backends import create_compositor, create_notifiers, detect_compositor
from monswitch.compositor import PrintControl
from monswitch.config import CompositorKind, NotifierKind
from monswitch.errors import StartupConfigError
from monswitch.hyprland import HyprlandIPC
from monswitch.notifier import ControlSocketNotifier, LidNotifier, UdevNotifier
from monswitch.sway import SwayIPC


@pytest.fixture
def clean_env(monkeypatch, tmp_path: Path) -> Path:
    monkeypatch.delenv("HYPRLAND_INSTANCE_SIGNATURE", raising=False)
    monkeypatch.delenv("SWAYSOCK", raising=False)
    monkeypatch.setenv("XDG_RUNTIME_DIR", str(tmp_path))
    return tmp_path


def test_detect_from_environment(clean_env, monkeypatch) -> None:
    monkeypatch.setenv("SWAYSOCK", "/run/user/1000/sway-ipc.sock")
    assert isinstance(detect_compositor(), SwayIPC)
    monkeypatch.setenv("HYPRLAND_INSTANCE_SIGNATURE", "abc_123")
    assert isinstance(detect_compositor(), HyprlandIPC)


def test_detect_hyprland_socket_in_runtime_dir(clean_env: Path) -> None:
    instance = clean_env / "hypr" / "abc_123"
    instance.mkdir(parents=True)
    (instance / ".socket.sock").touch()
    ipc = detect_compositor()
    assert isinstance(ipc, HyprlandIPC)
    assert ipc.command_socket == instance / ".socket.sock"


def test_nothing_detected(clean_env: Path) -> None:
    assert detect_compositor() is None
    with pytest.raises(StartupConfigError):
        create_compositor(CompositorKind.AUTO)


def test_explicit_compositors(clean_env: Path) -> None:
    assert isinstance(create_compositor(CompositorKind.PRINT), PrintControl)
    assert isinstance(create_compositor(CompositorKind.SWAY), SwayIPC)
    assert isinstance(create_compositor(CompositorKind.HYPRLAND), HyprlandIPC)


def test_create_notifiers(tmp_path: Path) -> None:
    notifiers = create_notifiers(
        (NotifierKind.UDEV, NotifierKind.LID, NotifierKind.SOCKET), socket_path=tmp_path / "ctl.sock",
    )
    assert [type(n) for n in notifiers] == [UdevNotifier, LidNotifier, ControlSocketNotifier]
    assert notifiers[2].path == tmp_path / "ctl.sock"
    assert create_notifiers(()) == []


def test_udev_enumerator_unavailable(monkeypatch) -> None:
    def broken():
        raise ImportError("libudev.so.1: cannot open shared object file")

    monkeypatch.setattr(backends, "UdevEnumerator", broken)
    with pytest.raises(StartupConfigError, match="udev enumerator unavailable"):
        backends.create_enumerator(backends.EnumeratorKind.UDEV)
