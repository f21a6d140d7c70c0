"""Shared pytest fixtures for Artisync tests.

This module provides common fixtures used across unit and integration tests.
Fixtures are organized by category:
- Repository fixtures: real temporary git repositories
- Configuration fixtures: config dicts for various scenarios
- Logging fixtures: reset the artisync logger between tests
"""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Any

import pytest

from artisync.strategies.registry import reset_registry

GIT_AVAILABLE = shutil.which("git") is not None


# =============================================================================
# Repository Fixtures
# =============================================================================


class GitRepo:
    """Small driver for a throwaway git repository."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def git(self, *args: str) -> str:
        result = subprocess.run(
            ["git", *args],
            cwd=self.path,
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout.strip()

    def write(self, relative: str, content: str) -> Path:
        path = self.path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def commit(self, message: str, files: dict[str, str | None] | None = None) -> str:
        """Write files (None deletes), stage everything and commit.

        Returns:
            SHA of the new commit
        """
        for relative, content in (files or {}).items():
            if content is None:
                (self.path / relative).unlink()
            else:
                self.write(relative, content)
        self.git("add", "-A")
        self.git("commit", "-q", "--allow-empty", "-m", message)
        return self.head()

    def head(self) -> str:
        return self.git("rev-parse", "HEAD")

    def checkout(self, *args: str) -> None:
        self.git("checkout", "-q", *args)

    def merge(self, branch: str, message: str | None = None) -> str:
        args = ["merge", "-q", "--no-ff", "--no-edit", branch]
        if message:
            args += ["-m", message]
        self.git(*args)
        return self.head()

    def log_messages(self, count: int = 1) -> list[str]:
        output = self.git("log", f"-{count}", "--format=%B%x1e")
        return [m.strip() for m in output.split("\x1e") if m.strip()]

    def files_in(self, ref: str = "HEAD") -> list[str]:
        """Paths changed by a single commit."""
        output = self.git("diff-tree", "--no-commit-id", "--name-only", "-r", "--root", ref)
        return sorted(line for line in output.splitlines() if line)


@pytest.fixture
def git_repo(tmp_path: Path) -> GitRepo:
    """Create a git repository on `main` with one initial commit."""
    if not GIT_AVAILABLE:
        pytest.skip("git not found on PATH")

    path = tmp_path / "repo"
    path.mkdir()
    repo = GitRepo(path)
    repo.git("init", "-q")
    repo.git("symbolic-ref", "HEAD", "refs/heads/main")
    repo.git("config", "user.name", "Test User")
    repo.git("config", "user.email", "test@example.com")
    repo.git("config", "commit.gpgsign", "false")
    # Keep global hook settings out of the test repository
    repo.git("config", "core.hooksPath", ".git/hooks")
    repo.commit("initial commit", {"README.md": "# Test repository\n"})
    return repo


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def minimal_config() -> dict[str, Any]:
    """Return a minimal valid Artisync configuration."""
    return {
        "rules": [
            {"pattern": "docs/*.md", "kind": "docs"},
        ],
    }


@pytest.fixture
def docs_config() -> dict[str, Any]:
    """Configuration that renders docs/*.md into site/*.html with a shell command."""
    return {
        "events": {
            "post_merge": {"enabled": True, "target_branches": ["main"]},
            "post_checkout": {"enabled": True},
        },
        "rules": [
            {"pattern": "docs/*.md", "kind": "docs"},
        ],
        "strategies": {
            "docs": {
                "command": (
                    "mkdir -p site && "
                    'out="site/$(basename "$ARTISYNC_ARTIFACT_ID" .md).html"; '
                    'if [ -f "$ARTISYNC_ARTIFACT_ID" ]; then cp "$ARTISYNC_ARTIFACT_ID" "$out"; '
                    'else rm -f "$out"; fi'
                ),
                "outputs": ["site/{stem}.html"],
            },
        },
        "execution": {"strategy_timeout_ms": 20000},
        "logging": {"file": None},
    }


@pytest.fixture
def full_config() -> dict[str, Any]:
    """Return a complete Artisync configuration with all options."""
    return {
        "enabled": True,
        "git_root": ".",
        "events": {
            "post_merge": {
                "enabled": True,
                "target_branches": ["main", "release"],
                "require_pr": True,
            },
            "post_checkout": {"enabled": False},
        },
        "rules": [
            {"pattern": "docs/*.md", "kind": "docs"},
            {"pattern": "openapi/*.yaml", "kind": "api_spec", "artifact": "api/{stem}"},
        ],
        "strategies": {
            "docs": {"command": "make docs", "outputs": ["site/{stem}.html"]},
            "api_spec": {"command": "make client", "outputs": ["clients/{name}"], "enabled": False},
        },
        "idempotency": {
            "store_path": "state/runs.json",
            "allow_retry": False,
        },
        "execution": {"strategy_timeout_ms": 5000},
        "attribution": {
            "agent_name": "docs-bot",
            "author_email": "docs-bot@example.com",
            "human_actor": "Jane Doe <jane@example.com>",
        },
        "logging": {
            "file": "logs/hooks.log",
            "max_bytes": 2048,
            "backup_count": 1,
        },
    }


# =============================================================================
# Global State Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _reset_global_state() -> Any:
    """Reset the strategy registry and artisync log handlers around each test."""
    reset_registry()
    yield
    reset_registry()
    logger = logging.getLogger("artisync")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
