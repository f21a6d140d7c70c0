"""Git hook installation.

Writes the post-merge and post-checkout scripts that call `artisync hook`.
The hooks directory comes from `git rev-parse --git-path hooks`, so
core.hooksPath is honored. A hook that Artisync did not write is moved to
`<name>.artisync-backup` when installing with force and put back on uninstall.

The idempotency store and hook log are listed in `$GIT_DIR/info/exclude`
so they never show up as untracked files.
"""

import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path

from jinja2 import Environment, PackageLoader

from artisync import __version__
from artisync.config import ArtisyncConfig
from artisync.errors import GitCommandError, HookInstallError
from artisync.models.orchestration import HookEvent
from artisync.utils.git import GitClient

logger = logging.getLogger(__name__)

MANAGED_MARKER = "# artisync-managed hook"
BACKUP_SUFFIX = ".artisync-backup"
RUNTIME_EXCLUDE_COMMENT = "artisync runtime state"


@dataclass
class HookFileResult:
    """What happened to one hook script.

    Attributes:
        event: Hook event
        path: Hook script path
        action: installed, updated, removed, restored or absent
        backup_path: Where a foreign hook was moved (install) or restored from (uninstall)
    """

    event: HookEvent
    path: Path
    action: str
    backup_path: Path | None = None


def render_hook_script(event: HookEvent) -> str:
    """Render the shell script installed for an event."""
    env = Environment(loader=PackageLoader("artisync", "templates"), keep_trailing_newline=True)
    template = env.get_template("hook.sh.j2")
    return template.render(marker=MANAGED_MARKER, version=__version__, event=event.value)


def exclude_runtime_files(config: ArtisyncConfig) -> list[str]:
    """Add the idempotency store and hook log to the clone-local exclude file.

    Only applies when git_root is the top level of a working tree, so an
    enclosing repository is never touched.

    Returns:
        Patterns that were added
    """
    patterns = config.runtime_ignore_patterns()
    if not patterns:
        return []

    git = GitClient(config.git_root)
    toplevel = git.run(["rev-parse", "--show-toplevel"], check=False).stdout.strip()
    if not toplevel or Path(toplevel).resolve() != config.git_root.resolve():
        logger.debug("%s is not a working tree root, not excluding runtime files", config.git_root)
        return []

    return git.exclude(patterns, comment=RUNTIME_EXCLUDE_COMMENT)


def is_managed(path: Path) -> bool:
    """Whether a hook script was written by Artisync."""
    try:
        return MANAGED_MARKER in path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return False


class HookInstaller:
    """Installs and removes Artisync's git hook scripts.

    Usage:
        installer = HookInstaller(GitClient(root))
        for item in installer.install(force=True):
            print(item.event.value, item.action)
    """

    def __init__(self, git: GitClient, events: list[HookEvent] | None = None) -> None:
        self.git = git
        self.events = events or list(HookEvent)

    @property
    def hooks_dir(self) -> Path:
        try:
            return self.git.git_path("hooks")
        except GitCommandError as e:
            raise HookInstallError(f"Cannot locate hooks directory: {e}") from e

    def install(self, force: bool = False) -> list[HookFileResult]:
        """Write hook scripts for all events.

        Args:
            force: Back up and replace hooks Artisync did not write

        Returns:
            One HookFileResult per event

        Raises:
            HookInstallError: If a foreign hook exists and force is not set,
                or the scripts cannot be written
        """
        hooks_dir = self.hooks_dir

        # Check every event first so a refusal leaves nothing half-installed
        foreign = [
            hooks_dir / event.value
            for event in self.events
            if (hooks_dir / event.value).exists() and not is_managed(hooks_dir / event.value)
        ]
        if foreign and not force:
            names = ", ".join(str(p) for p in foreign)
            raise HookInstallError(f"Existing hook(s) not managed by artisync: {names} (use --force)")

        results = []
        try:
            hooks_dir.mkdir(parents=True, exist_ok=True)
            for event in self.events:
                results.append(self._install_one(hooks_dir / event.value, event))
        except OSError as e:
            raise HookInstallError(f"Failed to install hooks in {hooks_dir}: {e}") from e
        return results

    def _install_one(self, path: Path, event: HookEvent) -> HookFileResult:
        action = "installed"
        backup_path = None
        if path.exists():
            if is_managed(path):
                action = "updated"
            else:
                backup_path = path.with_name(path.name + BACKUP_SUFFIX)
                os.replace(path, backup_path)
                logger.info("Backed up existing %s hook to %s", event.value, backup_path)

        path.write_text(render_hook_script(event), encoding="utf-8")
        mode = path.stat().st_mode
        path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        logger.info("%s %s hook at %s", action.capitalize(), event.value, path)
        return HookFileResult(event=event, path=path, action=action, backup_path=backup_path)

    def uninstall(self) -> list[HookFileResult]:
        """Remove Artisync's hook scripts and restore backed-up hooks.

        Hooks Artisync did not write are left alone.

        Raises:
            HookInstallError: If a script cannot be removed or restored
        """
        hooks_dir = self.hooks_dir
        results = []
        try:
            for event in self.events:
                results.append(self._uninstall_one(hooks_dir / event.value, event))
        except OSError as e:
            raise HookInstallError(f"Failed to remove hooks in {hooks_dir}: {e}") from e
        return results

    def _uninstall_one(self, path: Path, event: HookEvent) -> HookFileResult:
        backup_path = path.with_name(path.name + BACKUP_SUFFIX)

        if path.exists() and not is_managed(path):
            logger.warning("Leaving %s hook at %s: not managed by artisync", event.value, path)
            return HookFileResult(event=event, path=path, action="absent")

        removed = path.exists()
        if removed:
            path.unlink()

        if backup_path.exists():
            os.replace(backup_path, path)
            logger.info("Restored %s hook from %s", event.value, backup_path)
            return HookFileResult(event=event, path=path, action="restored", backup_path=backup_path)

        return HookFileResult(event=event, path=path, action="removed" if removed else "absent")

    def status(self) -> dict[HookEvent, bool]:
        """Whether each event's hook is currently managed by Artisync."""
        hooks_dir = self.hooks_dir
        return {event: is_managed(hooks_dir / event.value) for event in self.events}
