"""Hook entry point.

Turns a git hook invocation into an orchestrator run and an exit code:
- 0: success, nothing to do, or partial strategy failures
- 1: fatal failure or unexpected exception

KeyboardInterrupt and SystemExit propagate untouched.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from artisync.config import ArtisyncConfig
from artisync.errors import GitCommandError
from artisync.hooks.installer import exclude_runtime_files
from artisync.models.orchestration import HookEvent, OrchestrationResult
from artisync.orchestration import (
    BaseOrchestrator,
    PostCheckoutOrchestrator,
    PostMergeOrchestrator,
)
from artisync.utils.logging import add_file_logging, structured

logger = logging.getLogger(__name__)

OrchestratorFactory = Callable[[HookEvent, ArtisyncConfig, Sequence[str]], BaseOrchestrator]


@dataclass
class HookCallbacks:
    """Optional observers of a hook run.

    Attributes:
        on_start: Called with the event before the orchestrator runs
        on_success: Called with the event and result of a successful run
        on_error: Called with the event and the failed result or exception
    """

    on_start: Callable[[HookEvent], None] | None = None
    on_success: Callable[[HookEvent, OrchestrationResult], None] | None = None
    on_error: Callable[[HookEvent, OrchestrationResult | Exception], None] | None = None


@dataclass
class HookRunOutcome:
    """Exit code and result of one hook invocation."""

    exit_code: int
    result: OrchestrationResult | None = None
    errors: list[str] = field(default_factory=list)


def _flag(args: Sequence[str], index: int) -> int | None:
    if len(args) <= index or args[index] == "":
        return None
    try:
        return int(args[index])
    except ValueError:
        raise ValueError(f"Expected an integer flag, got {args[index]!r}") from None


def create_orchestrator(
    event: HookEvent,
    config: ArtisyncConfig,
    args: Sequence[str],
) -> BaseOrchestrator:
    """Build the orchestrator for an event from git's hook arguments.

    Args:
        event: Hook event
        config: Loaded configuration
        args: Arguments git passed to the hook script

    Returns:
        Orchestrator ready to run

    Raises:
        ValueError: If the arguments do not match the hook's signature
    """
    if event == HookEvent.POST_MERGE:
        return PostMergeOrchestrator(config, squash_flag=_flag(args, 0))

    if len(args) < 3:
        raise ValueError(
            f"post-checkout expects PREVIOUS_HEAD NEW_HEAD FLAG, got {len(args)} argument(s)"
        )
    return PostCheckoutOrchestrator(
        config,
        previous_head=args[0],
        new_head=args[1],
        branch_flag=_flag(args, 2) or 0,
    )


class HookExecutor:
    """Runs one orchestrator per hook invocation and maps the outcome to an exit code.

    Usage:
        executor = HookExecutor(config)
        outcome = executor.run(HookEvent.POST_MERGE, sys.argv[1:])
        sys.exit(outcome.exit_code)
    """

    def __init__(
        self,
        config: ArtisyncConfig,
        callbacks: HookCallbacks | None = None,
        orchestrator_factory: OrchestratorFactory | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            config: Loaded configuration
            callbacks: Observers notified about the run
            orchestrator_factory: Builds the orchestrator (defaults to create_orchestrator)
        """
        self.config = config
        self.callbacks = callbacks or HookCallbacks()
        self.orchestrator_factory = orchestrator_factory or create_orchestrator

    def run(self, event: HookEvent, args: Sequence[str] = ()) -> HookRunOutcome:
        """Handle one hook invocation.

        Args:
            event: Hook event that fired
            args: Arguments git passed to the hook script

        Returns:
            HookRunOutcome with the process exit code
        """
        if not self.config.is_event_enabled(event):
            logger.debug("%s is disabled, nothing to do", event.value)
            return HookRunOutcome(exit_code=0)

        self._enable_file_logging()
        self._exclude_runtime_files()

        if self.callbacks.on_start:
            self.callbacks.on_start(event)

        try:
            orchestrator = self.orchestrator_factory(event, self.config, args)
            result = orchestrator.run()
        except Exception as e:
            structured(
                logger,
                logging.ERROR,
                f"{event.value} hook crashed: {e}",
                event="hook_error",
                hook=event.value,
            )
            logger.debug("Traceback:", exc_info=True)
            if self.callbacks.on_error:
                self.callbacks.on_error(event, e)
            return HookRunOutcome(exit_code=1, errors=[str(e)])

        if not result.success:
            for error in result.errors:
                logger.error("%s: %s", event.value, error)
            if self.callbacks.on_error:
                self.callbacks.on_error(event, result)
            return HookRunOutcome(exit_code=1, result=result, errors=list(result.errors))

        for warning in result.warnings:
            logger.warning("%s: %s", event.value, warning)
        if self.callbacks.on_success:
            self.callbacks.on_success(event, result)
        return HookRunOutcome(exit_code=0, result=result)

    def _enable_file_logging(self) -> None:
        path = self.config.log_file_path
        if path is None:
            return
        try:
            add_file_logging(
                path,
                max_bytes=self.config.logging.max_bytes,
                backup_count=self.config.logging.backup_count,
            )
        except OSError as e:
            logger.warning("Could not open hook log %s: %s", path, e)

    def _exclude_runtime_files(self) -> None:
        try:
            exclude_runtime_files(self.config)
        except (GitCommandError, OSError) as e:
            logger.warning("Could not add runtime files to git's exclude list: %s", e)
