"""Orchestration entities.

- HookEvent: git lifecycle events Artisync reacts to
- OrchestrationState: states of one orchestrator run
- CascadeCommitAttribution: machine identity and loop-prevention marker
- CascadeCommitResult: outcome of the cascade commit step
- OrchestrationResult: terminal value of one end-to-end run
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from artisync.models.execution import StrategyExecutionResult

# Trailer embedded in every cascade commit. Commits carrying it are excluded
# from impact analysis.
CASCADE_MARKER_KEY = "Artisync-Cascade"
CASCADE_MARKER_VALUE = "true"


class HookEvent(Enum):
    """Git hook events handled by Artisync."""

    POST_MERGE = "post-merge"
    POST_CHECKOUT = "post-checkout"

    @property
    def config_key(self) -> str:
        """Key of this event in the `events` config section."""
        return self.value.replace("-", "_")


class OrchestrationState(Enum):
    """Working states of an orchestrator run, in order.

    A finished run is described by OrchestrationResult.success and reason;
    final_state records where it stopped.
    """

    IDLE = "idle"
    DETECTING_EVENT = "detecting_event"
    ANALYZING_IMPACT = "analyzing_impact"
    FILTERING_BY_IDEMPOTENCY = "filtering_by_idempotency"
    EXECUTING_STRATEGIES = "executing_strategies"
    COMMITTING_CASCADE = "committing_cascade"


@dataclass
class CascadeCommitAttribution:
    """Identity and trailers used for a machine-generated cascade commit.

    Attributes:
        agent_name: Author/committer name
        agent_version: Version recorded in the Agent-Attribution trailer
        author_email: Author/committer email
        trigger_event: Hook event that produced the commit
        pr_number: Pull request that triggered the cascade (if known)
        human_actor: Human to credit with a Co-Authored-By trailer
    """

    agent_name: str
    agent_version: str
    author_email: str
    trigger_event: str
    pr_number: int | None = None
    human_actor: str | None = None

    @property
    def marker(self) -> str:
        """Loop-prevention trailer line."""
        return f"{CASCADE_MARKER_KEY}: {CASCADE_MARKER_VALUE}"

    def trailers(self) -> list[str]:
        """Trailer lines appended to the commit message, marker first."""
        trigger = self.trigger_event
        if self.pr_number is not None:
            trigger += f" (PR #{self.pr_number})"
        lines = [
            self.marker,
            f"Agent-Attribution: {self.agent_name}/{self.agent_version}",
            f"Trigger: {trigger}",
        ]
        if self.human_actor:
            lines.append(f"Co-Authored-By: {self.human_actor}")
        return lines


@dataclass
class CascadeCommitResult:
    """Outcome of the cascade commit step.

    Attributes:
        created: Whether a commit was created
        commit_sha: SHA of the new commit
        message: Commit message used
        files_changed: Number of paths committed
    """

    created: bool
    commit_sha: str | None = None
    message: str | None = None
    files_changed: int = 0


@dataclass
class OrchestrationResult:
    """Terminal value of one orchestrator run.

    Attributes:
        event: Hook event that was handled
        success: Overall outcome (partial strategy failures still succeed)
        reason: Short explanation of the outcome
        final_state: State the run stopped in (the failing state on fatal errors)
        impact_summary: ImpactReport.summary() (None if analysis never ran)
        idempotency_lookups: Number of should_execute calls made
        skipped_by_idempotency: Artifact ids filtered out by the tracker
        strategy_result: Aggregated strategy results (None if not executed)
        cascade_commit_created: Whether a cascade commit was created
        cascade_commit_sha: SHA of that commit
        errors: Fatal error messages
        warnings: Per-artifact failure messages
        duration_ms: Wall-clock duration of the run
    """

    event: HookEvent
    success: bool = True
    reason: str = ""
    final_state: OrchestrationState = OrchestrationState.IDLE
    impact_summary: dict[str, Any] | None = None
    idempotency_lookups: int = 0
    skipped_by_idempotency: list[str] = field(default_factory=list)
    strategy_result: StrategyExecutionResult | None = None
    cascade_commit_created: bool = False
    cascade_commit_sha: str | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    duration_ms: int = 0

    @property
    def skipped_count(self) -> int:
        return len(self.skipped_by_idempotency)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "event": self.event.value,
            "success": self.success,
            "reason": self.reason,
            "final_state": self.final_state.value,
            "impact": self.impact_summary,
            "idempotency_lookups": self.idempotency_lookups,
            "skipped_by_idempotency": list(self.skipped_by_idempotency),
            "strategies": self.strategy_result.to_dict() if self.strategy_result else None,
            "cascade_commit_created": self.cascade_commit_created,
            "cascade_commit_sha": self.cascade_commit_sha,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "duration_ms": self.duration_ms,
        }
