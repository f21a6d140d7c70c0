"""Preflight validation for the `check` command.

Verifies what a hook run needs before git ever invokes one:
- git is on PATH
- the git root is a repository
- the configuration loaded and names a command for every rule kind
- the idempotency store, if present, is readable
- the hook scripts are installed (warning only)
"""

import shlex
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from artisync.config import ArtisyncConfig
from artisync.errors import ArtisyncError, PersistenceError
from artisync.models.repository import Repository


@dataclass
class ToolCheck:
    """Result of a single check.

    Attributes:
        name: Check name
        available: Whether the check passed
        version: Tool version if applicable
        required: Whether a failure fails the preflight
        path: Related path (executable, repository, store)
        message: Status message (human-readable context)
    """

    name: str
    available: bool
    version: str | None = None
    required: bool = True
    path: str | None = None
    message: str = ""


@dataclass
class PreflightResult:
    """Result of preflight validation.

    Attributes:
        success: Whether all required checks passed
        checks: Individual check results
        errors: Messages for failed required checks
        warnings: Messages for failed optional checks
    """

    success: bool = True
    checks: list[ToolCheck] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_check(self, check: ToolCheck) -> None:
        """Add a check result."""
        self.checks.append(check)

        if not check.available:
            if check.required:
                self.success = False
                self.errors.append(f"{check.name}: {check.message}")
            else:
                self.warnings.append(f"{check.name}: {check.message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "success": self.success,
            "checks": [
                {
                    "name": c.name,
                    "available": c.available,
                    "version": c.version,
                    "required": c.required,
                    "path": c.path,
                    "message": c.message,
                }
                for c in self.checks
            ],
            "errors": self.errors,
            "warnings": self.warnings,
        }


class PreflightChecker:
    """Validates the environment hook runs depend on.

    Usage:
        checker = PreflightChecker()
        result = checker.check_all(config)
        if not result.success:
            sys.exit(1)
    """

    def __init__(self, timeout: int = 10) -> None:
        """Initialize preflight checker.

        Args:
            timeout: Timeout in seconds for version checks
        """
        self.timeout = timeout

    def check_command_available(self, command: str) -> tuple[bool, str | None]:
        """Check if a command is available in PATH.

        Returns:
            Tuple of (available, path)
        """
        path = shutil.which(command)
        return path is not None, path

    def get_command_version(
        self,
        command: str,
        version_args: list[str] | None = None,
    ) -> str | None:
        """Get the first line of a command's version output.

        Returns:
            Version string if available, None otherwise
        """
        if version_args is None:
            version_args = ["--version"]

        try:
            result = subprocess.run(
                [command, *version_args],
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (subprocess.TimeoutExpired, OSError):
            return None
        if result.returncode != 0:
            return None
        output = result.stdout.strip() or result.stderr.strip()
        return output.split("\n")[0] if output else None

    def check_git(self, required: bool = True) -> ToolCheck:
        """Check that git is on PATH."""
        available, path = self.check_command_available("git")

        if available:
            return ToolCheck(
                name="git",
                available=True,
                version=self.get_command_version("git"),
                required=required,
                path=path,
                message="Version control",
            )
        return ToolCheck(
            name="git",
            available=False,
            required=required,
            message="git not found on PATH. Install from: https://git-scm.com",
        )

    def check_repository(self, git_root: Path) -> ToolCheck:
        """Check that the git root is a git checkout."""
        try:
            warnings = Repository.from_path(git_root).validate()
        except ValueError as e:
            return ToolCheck(name="repository", available=False, path=str(git_root), message=str(e))
        return ToolCheck(
            name="repository",
            available=True,
            path=str(git_root),
            message="; ".join(warnings) or "Git repository",
        )

    def check_strategies(self, config: ArtisyncConfig) -> list[ToolCheck]:
        """Check that every rule kind has a strategy whose executable exists.

        Both are warnings: kinds without a strategy are skipped at run time.
        """
        checks = []
        kinds = sorted({rule.kind for rule in config.rules})
        for kind in kinds:
            strategy = config.strategies.get(kind)
            name = f"strategy:{kind}"
            if strategy is None or not strategy.enabled:
                checks.append(
                    ToolCheck(
                        name=name,
                        available=False,
                        required=False,
                        message="No enabled strategy; artifacts of this kind are skipped",
                    )
                )
                continue

            try:
                program = shlex.split(strategy.command)[0]
            except (ValueError, IndexError):
                program = strategy.command
            available, path = self.check_command_available(program)
            if not available and (config.git_root / program).exists():
                available, path = True, str(config.git_root / program)
            checks.append(
                ToolCheck(
                    name=name,
                    available=available,
                    required=False,
                    path=path,
                    message=strategy.command if available else f"{program} not found on PATH",
                )
            )
        return checks

    def check_store(self, config: ArtisyncConfig) -> ToolCheck:
        """Check that an existing idempotency store can be read."""
        from artisync.tracking.idempotency import IdempotencyStore

        path = config.idempotency_store_path
        if not path.exists():
            return ToolCheck(
                name="idempotency-store",
                available=True,
                path=str(path),
                message="Not created yet",
            )
        try:
            count = len(IdempotencyStore(path).records())
        except PersistenceError as e:
            return ToolCheck(name="idempotency-store", available=False, path=str(path), message=str(e))
        return ToolCheck(
            name="idempotency-store",
            available=True,
            path=str(path),
            message=f"{count} record(s)",
        )

    def check_hooks(self, config: ArtisyncConfig) -> ToolCheck:
        """Check that the hook scripts are installed (optional)."""
        from artisync.hooks.installer import HookInstaller
        from artisync.utils.git import GitClient

        try:
            status = HookInstaller(GitClient(config.git_root)).status()
        except ArtisyncError as e:
            return ToolCheck(name="hooks", available=False, required=False, message=str(e))

        missing = [event.value for event, managed in status.items() if not managed]
        if missing:
            return ToolCheck(
                name="hooks",
                available=False,
                required=False,
                message=f"Not installed: {', '.join(missing)} (run `artisync install`)",
            )
        return ToolCheck(name="hooks", available=True, required=False, message="Installed")

    def check_all(
        self,
        config: ArtisyncConfig | None,
        config_error: str | None = None,
    ) -> PreflightResult:
        """Run all preflight checks.

        Args:
            config: Loaded configuration (None if loading failed)
            config_error: Why the configuration failed to load

        Returns:
            PreflightResult with all check results
        """
        result = PreflightResult()

        git_check = self.check_git(required=True)
        result.add_check(git_check)

        if config is None:
            result.add_check(
                ToolCheck(name="config", available=False, message=config_error or "Not loaded")
            )
            return result

        source = str(config.config_path) if config.config_path else None
        result.add_check(
            ToolCheck(
                name="config",
                available=True,
                path=source,
                message=f"{len(config.rules)} rule(s), {len(config.strategies)} strategy(ies)"
                if source
                else "No config file found, using defaults",
            )
        )

        repo_check = self.check_repository(config.git_root)
        result.add_check(repo_check)
        result.add_check(self.check_store(config))

        for check in self.check_strategies(config):
            result.add_check(check)

        if git_check.available and repo_check.available:
            result.add_check(self.check_hooks(config))

        return result
