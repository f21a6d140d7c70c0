"""Unit tests for Artisync data models."""

from datetime import UTC, datetime
from pathlib import Path

import pytest

from artisync.models import (
    ArtifactExecutionResult,
    ArtifactExecutionStatus,
    CascadeCommitAttribution,
    HookEvent,
    HookExecutionMetadata,
    HookExecutionStatus,
    ImpactedArtifact,
    ImpactOperation,
    ImpactReport,
    ImpactType,
    OrchestrationResult,
    OrchestrationState,
    Repository,
    StrategyExecutionResult,
)


def _artifact(artifact_id: str, impact: ImpactType = ImpactType.MODIFIED) -> ImpactedArtifact:
    return ImpactedArtifact(
        artifact_id=artifact_id,
        kind="docs",
        impact_type=impact,
        operations=[ImpactOperation(path=artifact_id, change=impact)],
        old_artifact_id="old" if impact == ImpactType.RENAMED else None,
    )


class TestImpactType:
    """Tests for git status mapping."""

    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            ("A", ImpactType.CREATED),
            ("C75", ImpactType.CREATED),
            ("M", ImpactType.MODIFIED),
            ("T", ImpactType.MODIFIED),
            ("D", ImpactType.DELETED),
            ("R100", ImpactType.RENAMED),
        ],
    )
    def test_from_git_status(self, status: str, expected: ImpactType) -> None:
        assert ImpactType.from_git_status(status) == expected


class TestImpactedArtifact:
    """Tests for ImpactedArtifact invariants."""

    def test_requires_operations(self) -> None:
        """Test that an artifact without operations is rejected."""
        with pytest.raises(ValueError, match="has no operations"):
            ImpactedArtifact(artifact_id="a", kind="docs", impact_type=ImpactType.MODIFIED)

    def test_renamed_requires_old_id(self) -> None:
        """Test that renamed artifacts need their previous identity."""
        with pytest.raises(ValueError, match="no old identity"):
            ImpactedArtifact(
                artifact_id="b",
                kind="docs",
                impact_type=ImpactType.RENAMED,
                operations=[ImpactOperation(path="b", change=ImpactType.RENAMED, old_path="a")],
            )

    def test_operation_serialization(self) -> None:
        operation = ImpactOperation(path="docs/b.md", change=ImpactType.RENAMED, old_path="docs/a.md")

        assert operation.to_dict() == {"path": "docs/b.md", "change": "renamed", "old_path": "docs/a.md"}

    def test_sort_key_and_paths(self) -> None:
        artifact = _artifact("docs/api.md", ImpactType.CREATED)

        assert artifact.sort_key == ("docs/api.md", "created")
        assert artifact.paths == ["docs/api.md"]
        assert artifact.to_dict()["impact_type"] == "created"


class TestImpactReport:
    """Tests for ImpactReport summaries."""

    def test_empty(self) -> None:
        report = ImpactReport(base="a" * 40, head="b" * 40)

        assert report.is_empty
        assert report.target_commit == "b" * 40
        assert report.count_by_type() == {"created": 0, "modified": 0, "deleted": 0, "renamed": 0}

    def test_summary_counts(self) -> None:
        report = ImpactReport(
            base="a" * 40,
            head="b" * 40,
            artifacts=[_artifact("x"), _artifact("y"), _artifact("z", ImpactType.DELETED)],
            excluded_commits=["c" * 40],
            source_head="d" * 40,
        )

        summary = report.summary()

        assert summary["total"] == 3
        assert summary["by_type"]["modified"] == 2
        assert summary["by_type"]["deleted"] == 1
        assert summary["excluded_commits"] == 1
        assert summary["target_commit"] == "d" * 40


class TestHookExecutionMetadata:
    """Tests for persisted idempotency records."""

    def test_round_trip(self) -> None:
        """Test serializing and restoring a finished record."""
        started = datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC)
        record = HookExecutionMetadata(
            artifact_id="docs/api.md",
            target_commit="abc123",
            status=HookExecutionStatus.FAILED,
            started_at=started,
            finished_at=started,
            error="boom",
        )

        restored = HookExecutionMetadata.from_dict(record.to_dict())

        assert restored == record
        assert restored.key == "docs/api.md@abc123"

    def test_naive_timestamps_become_utc(self) -> None:
        record = HookExecutionMetadata(
            artifact_id="a",
            target_commit="c",
            status=HookExecutionStatus.STARTED,
            started_at=datetime(2026, 1, 1),
        )

        assert record.started_at.tzinfo is UTC

    def test_invalid_status(self) -> None:
        with pytest.raises(ValueError):
            HookExecutionMetadata.from_dict(
                {
                    "artifact_id": "a",
                    "target_commit": "c",
                    "status": "exploded",
                    "started_at": "2026-01-01T00:00:00+00:00",
                }
            )

    def test_terminal_statuses(self) -> None:
        assert not HookExecutionStatus.STARTED.is_terminal
        assert HookExecutionStatus.SUCCEEDED.is_terminal
        assert HookExecutionStatus.FAILED.is_terminal


class TestStrategyExecutionResult:
    """Tests for aggregated strategy results."""

    def test_counts_and_changed_paths(self) -> None:
        result = StrategyExecutionResult(
            results=[
                ArtifactExecutionResult(
                    "a", "docs", ArtifactExecutionStatus.SUCCEEDED, written_paths=["site/a.html"]
                ),
                ArtifactExecutionResult(
                    "b", "docs", ArtifactExecutionStatus.SUCCEEDED, removed_paths=["site/b.html"]
                ),
                ArtifactExecutionResult(
                    "c", "docs", ArtifactExecutionStatus.FAILED, written_paths=["site/c.html"]
                ),
                ArtifactExecutionResult("d", "misc", ArtifactExecutionStatus.SKIPPED),
            ]
        )

        assert (result.succeeded, result.failed, result.skipped) == (2, 1, 1)
        # Failed artifacts never contribute paths
        assert result.changed_paths == ["site/a.html", "site/b.html"]
        assert [r.artifact_id for r in result.failed_results] == ["c"]


class TestCascadeCommitAttribution:
    """Tests for cascade commit trailers."""

    def test_trailers_with_pr_and_actor(self) -> None:
        attribution = CascadeCommitAttribution(
            agent_name="artisync",
            agent_version="1.2.3",
            author_email="bot@example.com",
            trigger_event="post-merge",
            pr_number=42,
            human_actor="Jane Doe <jane@example.com>",
        )

        assert attribution.trailers() == [
            "Artisync-Cascade: true",
            "Agent-Attribution: artisync/1.2.3",
            "Trigger: post-merge (PR #42)",
            "Co-Authored-By: Jane Doe <jane@example.com>",
        ]

    def test_trailers_minimal(self) -> None:
        attribution = CascadeCommitAttribution("bot", "0.1.0", "bot@example.com", "post-checkout")

        assert attribution.trailers()[0] == attribution.marker
        assert attribution.trailers()[-1] == "Trigger: post-checkout"


class TestOrchestrationResult:
    """Tests for OrchestrationResult serialization."""

    def test_to_dict(self) -> None:
        result = OrchestrationResult(event=HookEvent.POST_MERGE, reason="nothing impacted")
        result.skipped_by_idempotency.append("docs/api.md")

        data = result.to_dict()

        assert data["event"] == "post-merge"
        assert data["final_state"] == "idle"
        assert data["skipped_by_idempotency"] == ["docs/api.md"]
        assert data["strategies"] is None
        assert result.skipped_count == 1

    def test_states_are_working_states(self) -> None:
        """Every state is one the pipeline can stop in; completion lives in success and reason."""
        assert [state.value for state in OrchestrationState] == [
            "idle",
            "detecting_event",
            "analyzing_impact",
            "filtering_by_idempotency",
            "executing_strategies",
            "committing_cascade",
        ]

    def test_event_config_key(self) -> None:
        assert HookEvent.POST_CHECKOUT.config_key == "post_checkout"


class TestRepository:
    """Tests for Repository entity."""

    def test_validate_git_checkout(self, tmp_path: Path) -> None:
        (tmp_path / ".git").mkdir()
        repo = Repository.from_path(tmp_path)

        assert repo.validate() == []
        assert repo.name == tmp_path.name
        assert repo.state_dir == tmp_path.resolve() / ".artisync"

    def test_worktree_warning(self, tmp_path: Path) -> None:
        (tmp_path / ".git").write_text("gitdir: /elsewhere\n")

        warnings = Repository.from_path(tmp_path).validate()

        assert any("worktree" in w for w in warnings)

    def test_missing_path(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="does not exist"):
            Repository.from_path(tmp_path / "nope").validate()

    def test_not_a_git_repo(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="Not a git repository"):
            Repository.from_path(tmp_path).validate()

    def test_resolve(self, tmp_path: Path) -> None:
        repo = Repository.from_path(tmp_path)

        assert repo.resolve("docs/a.md") == tmp_path.resolve() / "docs" / "a.md"
        assert repo.resolve("/abs/path") == Path("/abs/path")
