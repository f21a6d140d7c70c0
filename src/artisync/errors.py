"""Error taxonomy for the hook pipeline.

Fatal errors (abort the current run):
- InvalidRangeError: a commit range endpoint could not be resolved
- PersistenceError: the idempotency store could not be read or written
- CommitError: the cascade commit could not be created
- GitCommandError: any other git invocation failed

Per-artifact errors (captured by the strategy executor, never propagated):
- StrategyFailure: a strategy reported or raised a failure
- TimeoutFailure: a strategy exceeded its execution window

Setup errors (reported by the CLI):
- ConfigError: configuration missing or invalid
- HookInstallError: hook scripts could not be installed or removed
"""


class ArtisyncError(Exception):
    """Base class for all Artisync errors."""


class ConfigError(ArtisyncError):
    """Raised when configuration cannot be loaded or is invalid."""


class GitCommandError(ArtisyncError):
    """Raised when a git command exits with a non-zero status."""

    def __init__(
        self,
        args: list[str],
        message: str,
        exit_code: int | None = None,
        stderr: str | None = None,
    ) -> None:
        self.command = args
        self.exit_code = exit_code
        self.stderr = stderr
        full_message = f"git {' '.join(args)} failed: {message}"
        if exit_code is not None:
            full_message += f" (exit code: {exit_code})"
        super().__init__(full_message)


class InvalidRangeError(ArtisyncError):
    """Raised when a commit range endpoint cannot be resolved."""

    def __init__(self, ref: str, message: str | None = None) -> None:
        self.ref = ref
        self.message = message or f"Cannot resolve git ref: {ref}"
        super().__init__(self.message)


class PersistenceError(ArtisyncError):
    """Raised when the idempotency store cannot be read or written."""

    def __init__(self, path: object, message: str) -> None:
        self.path = path
        super().__init__(f"Idempotency store {path}: {message}")


class StrategyFailure(ArtisyncError):
    """Raised by a strategy when it fails to process an artifact."""

    def __init__(self, artifact_id: str, message: str) -> None:
        self.artifact_id = artifact_id
        self.message = message
        super().__init__(f"Strategy failed for {artifact_id}: {message}")


class TimeoutFailure(StrategyFailure):
    """Strategy exceeded its execution window."""

    def __init__(self, artifact_id: str, timeout_ms: int) -> None:
        self.timeout_ms = timeout_ms
        super().__init__(artifact_id, f"timed out after {timeout_ms}ms")


class CommitError(ArtisyncError):
    """Raised when the cascade commit cannot be created."""


class HookInstallError(ArtisyncError):
    """Raised when git hook scripts cannot be installed or removed."""
