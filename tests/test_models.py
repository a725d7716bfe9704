from monswitch.models import (
    AttachedDisplay,
    DisplaySpec,
    MatchedPair,
    OutputCommand,
    Profile,
    ResolvedProfile,
    Transform,
    WorkspaceCommand,
    build_commands,
)


def _resolved(*pairs: tuple[str, DisplaySpec]) -> ResolvedProfile:
    profile = Profile(outputs=[spec for _, spec in pairs], index=1)
    return ResolvedProfile(
        profile=profile,
        pairs=tuple(MatchedPair(AttachedDisplay(connector=c), spec) for c, spec in pairs),
    )


def test_display_falls_back_to_hex_codes() -> None:
    display = AttachedDisplay(connector="DP-1", vendor="DEL", product_code=0x40B3, serial_code=0xAB)
    assert display.product == "0x40B3"
    assert display.serial == "0xAB"
    assert str(display) == "output DP-1 vendor DEL product 0x40B3 serial 0xAB"


def test_transform_tokens() -> None:
    assert Transform.from_token("flipped-180") == Transform.FLIPPED_180
    assert Transform.from_token("upside-down") == Transform.NORMAL
    assert Transform.ROTATE_270.token == "270"
    assert Transform.FLIPPED_90.is_rotated
    assert not Transform.ROTATE_180.is_rotated


def test_sway_output_command() -> None:
    cmd = OutputCommand(
        connector="DP-1", x=1920, y=0, width=2560, height=1440,
        transform=Transform.ROTATE_90, scale=1.5,
    )
    assert cmd.to_sway() == "output DP-1 enable position 1920 0 resolution 2560x1440 transform 90 scale 1.5"


def test_sway_output_command_without_mode_keeps_transform() -> None:
    cmd = OutputCommand(connector="eDP-1")
    assert cmd.to_sway() == "output eDP-1 enable position 0 0 transform normal"


def test_refresh_rate_rendering() -> None:
    cmd = OutputCommand(connector="DP-1", width=1920, height=1080, refresh_rate=59.95)
    assert "resolution 1920x1080@59.95Hz" in cmd.to_sway()
    assert cmd.to_hyprland() == "DP-1,1920x1080@59.95,0x0,auto"


def test_disabled_output_command() -> None:
    cmd = OutputCommand.from_pair(
        MatchedPair(AttachedDisplay(connector="eDP-1"), DisplaySpec(enabled=False, width=1920, height=1080))
    )
    assert cmd.to_sway() == "output eDP-1 disable"
    assert cmd.to_hyprland() == "eDP-1,disable"


def test_hyprland_output_command() -> None:
    cmd = OutputCommand(connector="HDMI-A-1", x=-1080, y=0, transform=Transform.ROTATE_270, scale=2)
    assert cmd.to_hyprland() == "HDMI-A-1,preferred,-1080x0,2,transform,3"


def test_workspace_command() -> None:
    cmd = WorkspaceCommand("1", "DP-1")
    assert cmd.to_sway() == "workspace 1 output DP-1"
    assert cmd.to_hyprland() == "1,monitor:DP-1"


def test_commands_use_attached_connector_names() -> None:
    resolved = _resolved(("DP-3", DisplaySpec(connector="DP-1", x=10)))
    (cmd,) = build_commands(resolved)
    assert cmd.connector == "DP-3"
    assert cmd.x == 10


def test_primary_workspace_follows_its_output() -> None:
    resolved = _resolved(
        ("eDP-1", DisplaySpec(enabled=False, primary=True)),
        ("DP-1", DisplaySpec(primary=True)),
        ("HDMI-A-1", DisplaySpec(x=2560)),
    )
    cmds = build_commands(resolved, primary_workspace="1")
    assert [c.to_sway() for c in cmds] == [
        "output eDP-1 disable",
        "output DP-1 enable position 0 0 transform normal",
        "workspace 1 output DP-1",
        "output HDMI-A-1 enable position 2560 0 transform normal",
    ]


def test_no_workspace_without_option() -> None:
    resolved = _resolved(("DP-1", DisplaySpec(primary=True)))
    assert len(build_commands(resolved)) == 1


def test_nothing_to_apply() -> None:
    assert build_commands(None) == []


def test_fractional_values_keep_all_configured_digits() -> None:
    cmd = OutputCommand.from_pair(
        MatchedPair(
            AttachedDisplay(connector="DP-1"),
            DisplaySpec(width=2560, height=1440, refresh_rate=143.9995, scale=1.0666667),
        )
    )
    assert cmd.to_sway() == (
        "output DP-1 enable position 0 0 resolution 2560x1440@143.9995Hz "
        "transform normal scale 1.0666667"
    )
    assert cmd.to_hyprland() == "DP-1,2560x1440@143.9995,0x0,1.0666667"
