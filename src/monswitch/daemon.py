"""Control loop: enumerate displays, resolve a profile, apply it, run hooks, wait."""

from __future__ import annotations

import asyncio
import logging
import signal
import subprocess
from collections.abc import Sequence

from .backends import ChangeSource, DisplayEnumerator
from .compositor import CompositorControl
from .config import DEFAULT_SETTLE_S
from .errors import ApplyError, HookLaunchError, PatternError, ProfileLoadError
from .matching import resolve
from .models import AttachedDisplay, Profile, ResolvedProfile, build_commands
from .notifier import ChangeChannel
from .profile_manager import ProfileManager

log = logging.getLogger(__name__)


def launch_hook(argv: list[str]) -> subprocess.Popen:
    """Start a post-apply command without waiting for it."""
    if not argv:
        raise HookLaunchError("empty command")
    try:
        return subprocess.Popen(argv, stdin=subprocess.DEVNULL, start_new_session=True)
    except (OSError, ValueError) as e:
        raise HookLaunchError(f"cannot run {' '.join(argv)}: {e}") from e


class MonitorDaemon:
    """Applies the first matching profile whenever the set of displays changes.

    Each cycle runs to completion before the next change signal is consumed.
    With no change sources the daemon runs a single cycle and returns.
    """

    def __init__(
        self,
        enumerator: DisplayEnumerator,
        profile_mgr: ProfileManager,
        compositor: CompositorControl,
        notifiers: Sequence[ChangeSource] = (),
        *,
        primary_workspace: str | None = None,
        settle_time: float = DEFAULT_SETTLE_S,
    ) -> None:
        self._enumerator = enumerator
        self._profile_mgr = profile_mgr
        self._compositor = compositor
        self._notifiers = list(notifiers)
        self._primary_workspace = primary_workspace
        self._settle_time = settle_time
        self._hooks: list[tuple[list[str], subprocess.Popen]] = []

    @property
    def single_shot(self) -> bool:
        return not self._notifiers

    async def run(self) -> None:
        if self.single_shot:
            log.info("No change source configured, applying once")
            self.run_cycle(first=True)
            return

        log.info("Starting monswitch daemon")
        loop = asyncio.get_running_loop()
        channel = ChangeChannel(loop)
        started: list[ChangeSource] = []
        try:
            # Subscribe before the first pass so no hotplug event is lost
            for notifier in self._notifiers:
                await notifier.start(channel)
                started.append(notifier)
            loop.add_signal_handler(signal.SIGHUP, channel.notify)

            self.run_cycle(first=True)
            while True:
                await channel.wait()
                if self._settle_time > 0:
                    await asyncio.sleep(self._settle_time)
                coalesced = channel.drain()
                if coalesced:
                    log.debug("Coalesced %d extra change signal(s)", coalesced)
                self.run_cycle()
        finally:
            loop.remove_signal_handler(signal.SIGHUP)
            for notifier in reversed(started):
                await notifier.stop()

    def run_cycle(self, *, first: bool = False) -> ResolvedProfile | None:
        """Run one enumerate → resolve → apply → hooks pass.

        EnumerationError always propagates.  Profile load errors propagate on
        the *first* cycle only; afterwards they are logged and the outputs are
        left untouched.
        """
        self._reap_hooks()

        displays = self._enumerator.list_attached_displays()
        for display in displays:
            log.info("Connected: %s", display)

        resolved = self._resolve(displays, first=first)
        if resolved is None:
            return None

        log.info("Applying profile %s", resolved.profile.label)
        self._apply(resolved)
        self._run_hooks(resolved.profile)
        return resolved

    def _resolve(self, displays: list[AttachedDisplay], *, first: bool) -> ResolvedProfile | None:
        try:
            profiles = self._profile_mgr.list_all()
            resolved = resolve(displays, profiles)
        except (ProfileLoadError, PatternError) as e:
            if first:
                raise
            log.error("Cannot evaluate profiles, leaving outputs untouched: %s", e)
            return None

        if resolved is None:
            log.info("No matching profile found among %d profile(s)", len(profiles))
        return resolved

    def _apply(self, resolved: ResolvedProfile) -> None:
        for cmd in build_commands(resolved, self._primary_workspace):
            try:
                self._compositor.execute(cmd)
            except ApplyError as e:
                log.error("Profile %s: %s", resolved.profile.label, e)

    def _run_hooks(self, profile: Profile) -> None:
        for argv in profile.commands:
            try:
                proc = launch_hook(argv)
            except HookLaunchError as e:
                log.error("Profile %s: %s", profile.label, e)
                continue
            log.info("Profile %s: started hook %s (pid %d)", profile.label, argv[0], proc.pid)
            self._hooks.append((argv, proc))

    def _reap_hooks(self) -> None:
        """Collect finished hooks and report failures."""
        running: list[tuple[list[str], subprocess.Popen]] = []
        for argv, proc in self._hooks:
            status = proc.poll()
            if status is None:
                running.append((argv, proc))
            elif status != 0:
                log.warning("Hook %s exited with status %d", " ".join(argv), status)
        self._hooks = running


def run_daemon(daemon: MonitorDaemon) -> None:
    """Run the daemon until it returns, fails, or receives SIGTERM/SIGINT."""
    loop = asyncio.new_event_loop()
    task = loop.create_task(daemon.run())

    # Handle signals for clean shutdown
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, task.cancel)

    try:
        loop.run_until_complete(task)
    except asyncio.CancelledError:
        pass
    finally:
        loop.close()
        log.info("Daemon stopped")
