"""Command-backed strategy configured from YAML.

Runs a shell command from the git root with the artifact described in the
environment:

    ARTISYNC_ARTIFACT_ID       artifact identity
    ARTISYNC_ARTIFACT_KIND     classification tag
    ARTISYNC_IMPACT_TYPE       created | modified | deleted | renamed
    ARTISYNC_OLD_ARTIFACT_ID   previous identity (renames only)
    ARTISYNC_PATHS             changed source paths, newline separated
    ARTISYNC_TARGET_COMMIT     commit the regeneration corresponds to

The configured `outputs` templates name what the command may produce; after
the command exits, the outputs that actually differ from HEAD are reported
as written (still present) or removed (gone).
"""

import logging
import os
import subprocess
from pathlib import Path

from artisync.analysis.rules import render_template
from artisync.errors import GitCommandError, StrategyFailure, TimeoutFailure
from artisync.models.impact import ImpactedArtifact
from artisync.strategies.base import Strategy, StrategyContext, StrategyOutcome
from artisync.utils.git import GitClient

logger = logging.getLogger(__name__)

# Characters of stderr kept in failure messages
_STDERR_TAIL = 500


class CommandStrategy(Strategy):
    """Regenerates an artifact by running a shell command."""

    def __init__(self, kind: str, command: str, outputs: list[str] | None = None) -> None:
        """Initialize the strategy.

        Args:
            kind: Artifact kind handled
            command: Shell command run from the git root
            outputs: Output path templates ({path}, {name}, {stem}, {parent}, {dir})
        """
        super().__init__(kind)
        self.command = command
        self.outputs = list(outputs or [])

    def build_env(self, artifact: ImpactedArtifact, context: StrategyContext) -> dict[str, str]:
        """Environment passed to the command."""
        env = {
            **os.environ,
            "ARTISYNC_ARTIFACT_ID": artifact.artifact_id,
            "ARTISYNC_ARTIFACT_KIND": artifact.kind,
            "ARTISYNC_IMPACT_TYPE": artifact.impact_type.value,
            "ARTISYNC_PATHS": "\n".join(artifact.paths),
        }
        if artifact.old_artifact_id:
            env["ARTISYNC_OLD_ARTIFACT_ID"] = artifact.old_artifact_id
        if context.target_commit:
            env["ARTISYNC_TARGET_COMMIT"] = context.target_commit
        return env

    def output_paths(self, artifact: ImpactedArtifact) -> list[str]:
        """Render output templates for an artifact."""
        return sorted({render_template(template, artifact.artifact_id) for template in self.outputs})

    def process(self, artifact: ImpactedArtifact, context: StrategyContext) -> StrategyOutcome:
        """Run the command and report changed outputs.

        Raises:
            TimeoutFailure: If the command exceeds the execution window
            StrategyFailure: If the command exits non-zero or cannot start
        """
        logger.debug("Running %r for %s", self.command, artifact.artifact_id)
        try:
            result = subprocess.run(
                self.command,
                shell=True,
                capture_output=True,
                text=True,
                cwd=context.git_root,
                env=self.build_env(artifact, context),
                timeout=context.timeout_seconds,
            )
        except subprocess.TimeoutExpired as e:
            raise TimeoutFailure(artifact.artifact_id, context.timeout_ms) from e
        except OSError as e:
            raise StrategyFailure(artifact.artifact_id, f"cannot run command: {e}") from e

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()[-_STDERR_TAIL:]
            message = f"command exited with {result.returncode}"
            if stderr:
                message += f": {stderr}"
            raise StrategyFailure(artifact.artifact_id, message)

        outputs = self.output_paths(artifact)
        if not outputs:
            return StrategyOutcome(message="command succeeded (no outputs declared)")

        try:
            changed = GitClient(context.git_root).changed_paths(outputs)
        except GitCommandError as e:
            raise StrategyFailure(artifact.artifact_id, f"cannot inspect outputs: {e}") from e

        root = Path(context.git_root)
        written = [p for p in changed if (root / p).exists()]
        removed = [p for p in changed if not (root / p).exists()]
        return StrategyOutcome(
            written_paths=written,
            removed_paths=removed,
            message=f"{len(written)} written, {len(removed)} removed",
        )
