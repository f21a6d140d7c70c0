"""Unit tests for the strategy executor."""

import threading
from pathlib import Path

import pytest

from artisync.errors import StrategyFailure
from artisync.models.execution import ArtifactExecutionStatus
from artisync.models.impact import ImpactedArtifact, ImpactOperation, ImpactType
from artisync.strategies import (
    Strategy,
    StrategyContext,
    StrategyExecutor,
    StrategyOutcome,
    StrategyRegistry,
)


def _artifact(artifact_id: str, kind: str = "docs") -> ImpactedArtifact:
    return ImpactedArtifact(
        artifact_id=artifact_id,
        kind=kind,
        impact_type=ImpactType.MODIFIED,
        operations=[ImpactOperation(path=artifact_id, change=ImpactType.MODIFIED)],
    )


class RecordingStrategy(Strategy):
    """Writes site/<stem>.html paths and fails for configured artifacts."""

    def __init__(self, kind: str = "docs", fail_for: set[str] | None = None) -> None:
        super().__init__(kind)
        self.fail_for = fail_for or set()
        self.calls: list[str] = []
        self.contexts: list[StrategyContext] = []

    def process(self, artifact: ImpactedArtifact, context: StrategyContext) -> StrategyOutcome:
        self.calls.append(artifact.artifact_id)
        self.contexts.append(context)
        if artifact.artifact_id in self.fail_for:
            raise StrategyFailure(artifact.artifact_id, "render error")
        stem = Path(artifact.artifact_id).stem
        return StrategyOutcome(written_paths=[f"site/{stem}.html"], message="ok")


class BlockingStrategy(Strategy):
    """Blocks until released, to exercise the timeout."""

    def __init__(self, release: threading.Event) -> None:
        super().__init__("slow")
        self.release = release

    def process(self, artifact: ImpactedArtifact, context: StrategyContext) -> StrategyOutcome:
        self.release.wait(10)
        return StrategyOutcome()


@pytest.fixture
def registry() -> StrategyRegistry:
    return StrategyRegistry()


class TestStrategyExecutor:
    """Tests for sequential execution with per-artifact isolation."""

    def test_success(self, registry: StrategyRegistry, tmp_path: Path) -> None:
        strategy = RecordingStrategy()
        registry.register("docs", strategy)

        result = StrategyExecutor(registry, tmp_path).execute(
            [_artifact("docs/a.md"), _artifact("docs/b.md")], target_commit="abc123"
        )

        assert strategy.calls == ["docs/a.md", "docs/b.md"]
        assert result.succeeded == 2
        assert result.changed_paths == ["site/a.html", "site/b.html"]
        assert strategy.contexts[0].target_commit == "abc123"
        assert strategy.contexts[0].git_root == tmp_path

    def test_partial_failure_continues(self, registry: StrategyRegistry, tmp_path: Path) -> None:
        registry.register("docs", RecordingStrategy(fail_for={"docs/b.md"}))

        result = StrategyExecutor(registry, tmp_path).execute(
            [_artifact("docs/a.md"), _artifact("docs/b.md"), _artifact("docs/c.md")]
        )

        assert (result.succeeded, result.failed) == (2, 1)
        failed = result.failed_results[0]
        assert failed.artifact_id == "docs/b.md"
        assert failed.error == "render error"
        assert result.changed_paths == ["site/a.html", "site/c.html"]

    def test_unexpected_exception_captured(self, registry: StrategyRegistry, tmp_path: Path) -> None:
        class Broken(Strategy):
            def process(self, artifact, context):
                raise KeyError("missing")

        registry.register("docs", Broken("docs"))

        result = StrategyExecutor(registry, tmp_path).execute([_artifact("docs/a.md")])

        assert result.failed == 1
        assert result.results[0].error == "KeyError: 'missing'"

    def test_missing_strategy_skipped(self, registry: StrategyRegistry, tmp_path: Path) -> None:
        registry.register("docs", RecordingStrategy())

        result = StrategyExecutor(registry, tmp_path).execute(
            [_artifact("docs/a.md"), _artifact("img/logo.png", kind="image")]
        )

        assert (result.succeeded, result.failed, result.skipped) == (1, 0, 1)
        skipped = result.results[1]
        assert skipped.status == ArtifactExecutionStatus.SKIPPED
        assert "no strategy registered" in skipped.message

    def test_timeout(self, registry: StrategyRegistry, tmp_path: Path) -> None:
        release = threading.Event()
        registry.register("slow", BlockingStrategy(release))
        registry.register("docs", RecordingStrategy())

        try:
            result = StrategyExecutor(registry, tmp_path, timeout_ms=100).execute(
                [_artifact("data/big.csv", kind="slow"), _artifact("docs/a.md")]
            )
        finally:
            release.set()

        timed_out = result.results[0]
        assert timed_out.status == ArtifactExecutionStatus.FAILED
        assert timed_out.timed_out is True
        assert timed_out.error == "timed out after 100ms"
        # Processing continues after a timeout
        assert result.results[1].status == ArtifactExecutionStatus.SUCCEEDED

    def test_wrong_return_type(self, registry: StrategyRegistry, tmp_path: Path) -> None:
        class Sloppy(Strategy):
            def process(self, artifact, context):
                return ["site/a.html"]

        registry.register("docs", Sloppy("docs"))

        result = StrategyExecutor(registry, tmp_path).execute([_artifact("docs/a.md")])

        assert result.failed == 1
        assert "expected StrategyOutcome" in result.results[0].error

    def test_paths_normalized(self, registry: StrategyRegistry, tmp_path: Path) -> None:
        class Absolute(Strategy):
            def process(self, artifact, context):
                return StrategyOutcome(
                    written_paths=[str(context.git_root / "site" / "a.html"), "site/a.html", "./site/b.html"]
                )

        registry.register("docs", Absolute("docs"))

        result = StrategyExecutor(registry, tmp_path).execute([_artifact("docs/a.md")])

        assert result.results[0].written_paths == ["site/a.html", "site/b.html"]

    def test_path_outside_repository(self, registry: StrategyRegistry, tmp_path: Path) -> None:
        class Escaping(Strategy):
            def process(self, artifact, context):
                return StrategyOutcome(written_paths=["../outside.txt"])

        registry.register("docs", Escaping("docs"))

        result = StrategyExecutor(registry, tmp_path).execute([_artifact("docs/a.md")])

        assert result.failed == 1
        assert "outside repository" in result.results[0].error

    def test_empty_input(self, registry: StrategyRegistry, tmp_path: Path) -> None:
        result = StrategyExecutor(registry, tmp_path).execute([])

        assert result.results == []
