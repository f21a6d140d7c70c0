"""Git hook entry point and hook script installation."""

from artisync.hooks.executor import (
    HookCallbacks,
    HookExecutor,
    HookRunOutcome,
    create_orchestrator,
)
from artisync.hooks.installer import (
    BACKUP_SUFFIX,
    MANAGED_MARKER,
    HookFileResult,
    HookInstaller,
    render_hook_script,
)

__all__ = [
    "BACKUP_SUFFIX",
    "HookCallbacks",
    "HookExecutor",
    "HookFileResult",
    "HookInstaller",
    "HookRunOutcome",
    "MANAGED_MARKER",
    "create_orchestrator",
    "render_hook_script",
]
