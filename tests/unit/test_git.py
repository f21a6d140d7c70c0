"""Unit tests for the git command wrapper."""

from pathlib import Path

import pytest

from artisync.errors import GitCommandError
from artisync.utils.git import CommitInfo, FileChange, GitClient, parse_name_status


class TestParseNameStatus:
    """Tests for -z name-status parsing."""

    def test_simple_entries(self) -> None:
        output = "M\0docs/a.md\0A\0docs/b.md\0D\0docs/c.md\0"

        assert parse_name_status(output) == [
            FileChange("M", "docs/a.md"),
            FileChange("A", "docs/b.md"),
            FileChange("D", "docs/c.md"),
        ]

    def test_rename_and_copy_carry_two_paths(self) -> None:
        output = "R100\0docs/old.md\0docs/new.md\0C80\0a.txt\0b.txt\0M\0z.md\0"

        assert parse_name_status(output) == [
            FileChange("R100", "docs/new.md", old_path="docs/old.md"),
            FileChange("C80", "b.txt", old_path="a.txt"),
            FileChange("M", "z.md"),
        ]

    def test_paths_with_spaces(self) -> None:
        assert parse_name_status("M\0docs/my file.md\0") == [FileChange("M", "docs/my file.md")]

    def test_empty(self) -> None:
        assert parse_name_status("") == []


class TestCommitInfo:
    def test_trailer_detection(self) -> None:
        info = CommitInfo(sha="a", message="cascade\n\nArtisync-Cascade: true\nTrigger: post-merge")

        assert info.has_trailer("Artisync-Cascade", "true")
        assert not info.has_trailer("Artisync-Cascade", "false")

    def test_trailer_must_be_whole_line(self) -> None:
        info = CommitInfo(sha="a", message="mention Artisync-Cascade: true inline")

        assert not info.has_trailer("Artisync-Cascade", "true")

    def test_is_merge(self) -> None:
        assert CommitInfo(sha="a", message="", parents=("b", "c")).is_merge
        assert not CommitInfo(sha="a", message="", parents=("b",)).is_merge


class TestGitClient:
    """Tests against a real repository."""

    def test_resolve_commit(self, git_repo) -> None:
        git = GitClient(git_repo.path)

        assert git.resolve_commit("HEAD") == git_repo.head()
        assert git.resolve_commit("no-such-ref") is None
        assert git.resolve_commit("0" * 40) is None
        assert git.resolve_commit("") is None

    def test_current_branch(self, git_repo) -> None:
        git = GitClient(git_repo.path)

        assert git.current_branch() == "main"
        git_repo.git("checkout", "-q", "--detach")
        assert git.current_branch() is None

    def test_commits_in_range(self, git_repo) -> None:
        base = git_repo.head()
        first = git_repo.commit("first\n\nbody line")
        second = git_repo.commit("second")

        commits = GitClient(git_repo.path).commits_in_range(base, second)

        assert [c.sha for c in commits] == [first, second]
        assert commits[0].message == "first\n\nbody line"
        assert commits[0].parents == (base,)

    def test_commit_info(self, git_repo) -> None:
        base = git_repo.head()
        sha = git_repo.commit("subject\n\nArtisync-Cascade: true")

        info = GitClient(git_repo.path).commit_info(sha)

        assert info.sha == sha
        assert info.parents == (base,)
        assert info.has_trailer("Artisync-Cascade", "true")

    def test_diff_name_status(self, git_repo) -> None:
        base = git_repo.head()
        head = git_repo.commit("docs", {"docs/a.md": "a\n", "README.md": "changed\n"})
        git = GitClient(git_repo.path)

        assert git.diff_name_status(base, head) == [
            FileChange("M", "README.md"),
            FileChange("A", "docs/a.md"),
        ]

    def test_changes_by_commit(self, git_repo) -> None:
        """One log call yields each commit's own changes; merges are left out."""
        base = git_repo.head()
        git_repo.checkout("-b", "feature")
        first = git_repo.commit("add docs", {"docs/a.md": "a\n", "docs/b.md": "b\n"})
        git_repo.git("mv", "docs/b.md", "docs/c.md")
        second = git_repo.commit("rename")
        git_repo.checkout("main")
        merge = git_repo.merge("feature")

        changes = GitClient(git_repo.path).changes_by_commit(base, merge)

        assert set(changes) == {first, second}
        assert changes[first] == [FileChange("A", "docs/a.md"), FileChange("A", "docs/b.md")]
        assert [(c.status[0], c.old_path, c.path) for c in changes[second]] == [
            ("R", "docs/b.md", "docs/c.md")
        ]

    def test_changes_by_commit_empty_commit(self, git_repo) -> None:
        base = git_repo.head()
        head = git_repo.commit("nothing")

        assert GitClient(git_repo.path).changes_by_commit(base, head) == {head: []}

    def test_changed_paths_includes_untracked(self, git_repo) -> None:
        git_repo.write("site/a.html", "new\n")
        git_repo.write("README.md", "edited\n")
        git = GitClient(git_repo.path)

        assert git.changed_paths(["site", "README.md", "docs"]) == ["README.md", "site/a.html"]
        assert git.changed_paths([]) == []

    def test_paths_are_literal(self, git_repo) -> None:
        """Glob characters in a path name only that file."""
        git_repo.write("site/a.html", "dirty\n")
        git_repo.write("site/[ab].html", "generated\n")
        git = GitClient(git_repo.path)

        assert git.changed_paths(["site/[ab].html"]) == ["site/[ab].html"]
        with pytest.raises(GitCommandError):
            git.add(["site/*.html"])
        assert git.staged_paths(["site"]) == []

    def test_exclude(self, git_repo) -> None:
        git = GitClient(git_repo.path)
        exclude_file = git_repo.path / ".git" / "info" / "exclude"

        added = git.exclude(["/state/runs.json", "/logs/hooks.log*"], comment="runtime state")
        again = git.exclude(["/state/runs.json"])

        assert added == ["/state/runs.json", "/logs/hooks.log*"]
        assert again == []
        lines = exclude_file.read_text(encoding="utf-8").splitlines()
        assert lines[-3:] == ["# runtime state", "/state/runs.json", "/logs/hooks.log*"]

        git_repo.write("state/runs.json", "{}\n")
        assert git.changed_paths(["state"]) == []

    def test_commit_with_identity(self, git_repo) -> None:
        git_repo.write("site/a.html", "new\n")
        git_repo.write("unrelated.txt", "leave me\n")
        git = GitClient(git_repo.path)

        git.add(["site/a.html"])
        assert git.staged_paths(["site/a.html"]) == ["site/a.html"]
        sha = git.commit("generated", ["site/a.html"], author_name="bot", author_email="bot@example.com")

        assert sha == git_repo.head()
        assert git_repo.git("log", "-1", "--format=%an <%ae> / %cn") == "bot <bot@example.com> / bot"
        assert git_repo.files_in(sha) == ["site/a.html"]
        assert (git_repo.path / "unrelated.txt").exists()

    def test_git_path_honors_hooks_path(self, git_repo) -> None:
        git = GitClient(git_repo.path)
        git_repo.git("config", "core.hooksPath", "custom-hooks")

        assert git.git_path("hooks") == git_repo.path / "custom-hooks"

    def test_failure_raises(self, git_repo) -> None:
        with pytest.raises(GitCommandError) as exc_info:
            GitClient(git_repo.path).run(["rev-parse", "--verify", "no-such-ref"])

        assert exc_info.value.exit_code != 0
        assert exc_info.value.command == ["rev-parse", "--verify", "no-such-ref"]

    def test_not_a_repository(self, tmp_path: Path) -> None:
        with pytest.raises(GitCommandError):
            GitClient(tmp_path).head_sha()
