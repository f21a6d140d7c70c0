"""Artisync data models.

This module exports the entities passed between pipeline stages:
- ImpactReport, ImpactedArtifact, ImpactOperation, ImpactType: impact analysis
- CommitRange, CheckoutTransition: analyzer inputs
- HookExecutionMetadata, ShouldExecuteResult: idempotency tracking
- ArtifactExecutionResult, StrategyExecutionResult: strategy execution
- CascadeCommitAttribution, CascadeCommitResult: cascade commits
- MergeMetadata, CheckoutMetadata: detector output
- OrchestrationResult: end-to-end run summary
"""

from artisync.models.detection import CheckoutMetadata, MergeMetadata
from artisync.models.execution import (
    ArtifactExecutionResult,
    ArtifactExecutionStatus,
    HookExecutionMetadata,
    HookExecutionStatus,
    ShouldExecuteResult,
    StrategyExecutionResult,
)
from artisync.models.impact import (
    CheckoutTransition,
    CommitRange,
    ImpactedArtifact,
    ImpactOperation,
    ImpactReport,
    ImpactType,
)
from artisync.models.orchestration import (
    CASCADE_MARKER_KEY,
    CASCADE_MARKER_VALUE,
    CascadeCommitAttribution,
    CascadeCommitResult,
    HookEvent,
    OrchestrationResult,
    OrchestrationState,
)
from artisync.models.repository import Repository

__all__ = [
    "ArtifactExecutionResult",
    "ArtifactExecutionStatus",
    "CASCADE_MARKER_KEY",
    "CASCADE_MARKER_VALUE",
    "CascadeCommitAttribution",
    "CascadeCommitResult",
    "CheckoutMetadata",
    "CheckoutTransition",
    "CommitRange",
    "HookEvent",
    "HookExecutionMetadata",
    "HookExecutionStatus",
    "ImpactOperation",
    "ImpactReport",
    "ImpactType",
    "ImpactedArtifact",
    "MergeMetadata",
    "OrchestrationResult",
    "OrchestrationState",
    "Repository",
    "ShouldExecuteResult",
    "StrategyExecutionResult",
]
