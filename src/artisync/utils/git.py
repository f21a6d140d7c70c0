"""Git command surface.

Thin wrapper over the git CLI covering exactly what the hook pipeline needs:
- Resolve refs and the current branch
- Diff paths between two commits, per commit or per range
- List commits in a range with their messages (cascade marker detection)
- Stage specific paths and create commits with an explicit identity
"""

import logging
import os
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path

from artisync.errors import GitCommandError

logger = logging.getLogger(__name__)

# Separators for machine-readable `git log` output
_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"
_SHA_PREFIX = re.compile(r"[0-9a-f]{40,64}")


@dataclass(frozen=True)
class FileChange:
    """Single entry of `git diff --name-status`.

    Attributes:
        status: Status letter(s) as printed by git (A, M, D, R100, ...)
        path: Path after the change
        old_path: Path before a rename or copy
    """

    status: str
    path: str
    old_path: str | None = None


@dataclass(frozen=True)
class CommitInfo:
    """Commit SHA with its parents and full message."""

    sha: str
    message: str
    parents: tuple[str, ...] = ()

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1

    def has_trailer(self, key: str, value: str) -> bool:
        """Check whether the message carries `key: value` on a line of its own."""
        expected = f"{key.lower()}: {value.lower()}"
        return any(line.strip().lower() == expected for line in self.message.splitlines())


def parse_name_status(output: str) -> list[FileChange]:
    """Parse NUL-separated `--name-status -z` output.

    Renames and copies take two path fields (old, new); every other status
    takes one.
    """
    fields = output.split("\0")
    changes: list[FileChange] = []
    i = 0
    while i < len(fields):
        status = fields[i]
        if not status:
            i += 1
            continue
        if status[0] in ("R", "C"):
            if i + 2 >= len(fields):
                break
            old_path, new_path = fields[i + 1], fields[i + 2]
            changes.append(FileChange(status=status, path=new_path, old_path=old_path))
            i += 3
        else:
            if i + 1 >= len(fields):
                break
            changes.append(FileChange(status=status, path=fields[i + 1]))
            i += 2
    return changes


class GitClient:
    """Runs git commands inside one working tree.

    Usage:
        git = GitClient(Path("/path/to/repo"))
        head = git.resolve_commit("HEAD")
        changes = git.diff_name_status(base, head)
    """

    def __init__(self, repo_path: Path | None = None, timeout: int = 30) -> None:
        """Initialize git client.

        Args:
            repo_path: Working tree root (defaults to cwd)
            timeout: Timeout in seconds for each git invocation
        """
        self.repo_path = repo_path or Path.cwd()
        self.timeout = timeout

    # =========================================================================
    # Execution
    # =========================================================================

    def run(
        self,
        args: list[str],
        env: dict[str, str] | None = None,
        check: bool = True,
    ) -> subprocess.CompletedProcess[str]:
        """Run a git command.

        Pathspecs are always literal (GIT_LITERAL_PATHSPECS), so a file
        named `site/[ab].html` never matches `site/a.html`.

        Args:
            args: Arguments after `git`
            env: Extra environment variables
            check: Raise GitCommandError on non-zero exit

        Returns:
            Completed process with text stdout/stderr

        Raises:
            GitCommandError: If git is missing, times out or (with check) fails
        """
        full_env = {**os.environ, "GIT_LITERAL_PATHSPECS": "1", **(env or {})}

        logger.debug("git %s", " ".join(args))
        try:
            result = subprocess.run(
                ["git", *args],
                capture_output=True,
                text=True,
                cwd=self.repo_path,
                env=full_env,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise GitCommandError(args, f"timed out after {self.timeout}s") from e
        except (FileNotFoundError, OSError) as e:
            raise GitCommandError(args, str(e)) from e

        if check and result.returncode != 0:
            raise GitCommandError(
                args,
                result.stderr.strip() or "command failed",
                exit_code=result.returncode,
                stderr=result.stderr,
            )
        return result

    # =========================================================================
    # Refs
    # =========================================================================

    def resolve_commit(self, ref: str) -> str | None:
        """Resolve a ref to a full commit SHA.

        Returns:
            Commit SHA, or None if the ref does not name a commit
        """
        if not ref or ref.strip("0") == "":
            # git passes the null SHA for unborn branches
            return None
        result = self.run(["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"], check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def head_sha(self) -> str:
        """Return the SHA of HEAD."""
        return self.run(["rev-parse", "HEAD"]).stdout.strip()

    def current_branch(self) -> str | None:
        """Return the current branch name, or None on a detached HEAD."""
        result = self.run(["rev-parse", "--abbrev-ref", "HEAD"], check=False)
        if result.returncode != 0:
            return None
        branch = result.stdout.strip()
        return None if branch == "HEAD" else branch

    def last_reflog_subject(self) -> str | None:
        """Return the subject of the most recent HEAD reflog entry."""
        result = self.run(["reflog", "-1", "--format=%gs"], check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def commit_subject(self, ref: str = "HEAD") -> str | None:
        """Return the subject line of a commit."""
        result = self.run(["log", "-1", "--format=%s", ref], check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def git_path(self, name: str) -> Path:
        """Resolve a path inside the git directory (honors core.hooksPath for hooks)."""
        output = self.run(["rev-parse", "--git-path", name]).stdout.strip()
        path = Path(output)
        if not path.is_absolute():
            path = Path(self.repo_path) / path
        return path

    # =========================================================================
    # History and diffs
    # =========================================================================

    def diff_name_status(self, base: str, head: str) -> list[FileChange]:
        """List file changes between two commits (rename detection on)."""
        output = self.run(
            ["diff", "--name-status", "-M", "-z", "--no-color", base, head]
        ).stdout
        return parse_name_status(output)

    def changes_by_commit(
        self, base: str, head: str, symmetric: bool = False
    ) -> dict[str, list[FileChange]]:
        """File changes of every non-merge commit in a range, from one `git log` call.

        Args:
            base: Range start (excluded)
            head: Range end (included)
            symmetric: Use base...head instead of base..head

        Returns:
            Mapping of commit SHA to the changes it introduced (merges are absent)
        """
        separator = "..." if symmetric else ".."
        output = self.run(
            [
                "log",
                "--no-merges",
                "--name-status",
                "-M",
                "-z",
                f"--format={_RECORD_SEP}%H",
                f"{base}{separator}{head}",
            ]
        ).stdout

        changes: dict[str, list[FileChange]] = {}
        for record in output.split(_RECORD_SEP):
            record = record.strip("\n\0")
            match = _SHA_PREFIX.match(record)
            if match is None:
                continue
            rest = record[match.end():]
            changes[match.group(0)] = parse_name_status(rest.lstrip("\n\0"))
        return changes

    def commit_info(self, ref: str) -> CommitInfo:
        """Return SHA, parents and message of a single commit."""
        output = self.run(
            ["log", "-1", f"--format=%H{_FIELD_SEP}%P{_FIELD_SEP}%B", ref, "--"]
        ).stdout
        return _parse_commit(output)

    def commits_in_range(self, base: str, head: str, symmetric: bool = False) -> list[CommitInfo]:
        """List commits in a range, oldest first.

        Args:
            base: Range start (excluded)
            head: Range end (included)
            symmetric: Use base...head (commits on either side) instead of base..head
        """
        separator = "..." if symmetric else ".."
        output = self.run(
            [
                "log",
                "--reverse",
                f"--format=%H{_FIELD_SEP}%P{_FIELD_SEP}%B{_RECORD_SEP}",
                f"{base}{separator}{head}",
            ]
        ).stdout

        commits: list[CommitInfo] = []
        for record in output.split(_RECORD_SEP):
            record = record.strip("\n")
            if not record:
                continue
            commits.append(_parse_commit(record))
        return commits

    def changed_paths(self, paths: list[str]) -> list[str]:
        """Return files under the given paths that differ from HEAD (incl. untracked).

        Args:
            paths: Repository-relative files or directories

        Returns:
            Sorted repository-relative file paths with pending changes
        """
        if not paths:
            return []
        output = self.run(
            ["status", "--porcelain=v1", "-z", "--untracked-files=all", "--", *paths]
        ).stdout

        changed: set[str] = set()
        fields = output.split("\0")
        i = 0
        while i < len(fields):
            entry = fields[i]
            i += 1
            if len(entry) < 4:
                continue
            status, path = entry[:2], entry[3:]
            changed.add(path)
            if "R" in status or "C" in status:
                # Rename entries carry the original path in the next field
                i += 1
        return sorted(changed)

    # =========================================================================
    # Ignore rules
    # =========================================================================

    def exclude(self, patterns: list[str], comment: str | None = None) -> list[str]:
        """Append patterns to the clone-local ignore file ($GIT_DIR/info/exclude).

        Patterns already listed are skipped. Unlike .gitignore, the exclude
        file is never part of a commit.

        Args:
            patterns: gitignore patterns
            comment: Comment line written above newly added patterns

        Returns:
            Patterns that were added
        """
        exclude_file = self.git_path("info/exclude")
        content = ""
        if exclude_file.exists():
            content = exclude_file.read_text(encoding="utf-8")
        existing = {line.strip() for line in content.splitlines()}

        added = [p for p in dict.fromkeys(patterns) if p not in existing]
        if not added:
            return []

        lines = [f"# {comment}"] if comment else []
        lines.extend(added)
        prefix = "\n" if content and not content.endswith("\n") else ""
        exclude_file.parent.mkdir(parents=True, exist_ok=True)
        with open(exclude_file, "a", encoding="utf-8") as f:
            f.write(prefix + "\n".join(lines) + "\n")
        logger.debug("Excluded %s in %s", ", ".join(added), exclude_file)
        return added

    # =========================================================================
    # Staging and commits
    # =========================================================================

    def add(self, paths: list[str]) -> None:
        """Stage exactly the given paths, including deletions."""
        self.run(["add", "-A", "--", *paths])

    def staged_paths(self, paths: list[str]) -> list[str]:
        """Return which of the given paths have staged changes."""
        output = self.run(["diff", "--cached", "--name-only", "-z", "--", *paths]).stdout
        return [p for p in output.split("\0") if p]

    def commit(
        self,
        message: str,
        paths: list[str],
        author_name: str,
        author_email: str,
    ) -> str:
        """Commit the given paths with an explicit author and committer.

        Hooks are bypassed (--no-verify) since the commit is machine-generated.

        Returns:
            SHA of the new commit
        """
        env = {
            "GIT_AUTHOR_NAME": author_name,
            "GIT_AUTHOR_EMAIL": author_email,
            "GIT_COMMITTER_NAME": author_name,
            "GIT_COMMITTER_EMAIL": author_email,
        }
        self.run(
            ["commit", "--no-verify", "--quiet", "-m", message, "--", *paths],
            env=env,
        )
        return self.head_sha()


def _parse_commit(record: str) -> CommitInfo:
    sha, parents, message = (record.strip("\n").split(_FIELD_SEP, 2) + ["", ""])[:3]
    return CommitInfo(
        sha=sha.strip(),
        message=message.strip(),
        parents=tuple(parents.split()),
    )
