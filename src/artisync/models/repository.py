"""Repository entity representing the git working tree Artisync maintains.

The Repository entity resolves the working tree root and provides validation
to ensure the path exists and is a git checkout.
"""

from dataclasses import dataclass
from pathlib import Path

# Tool-managed directory inside the repository (config, state, logs)
STATE_DIR_NAME = ".artisync"


@dataclass
class Repository:
    """Git working tree whose derived artifacts are maintained.

    Attributes:
        path: Absolute path to the working tree root
        name: Repository name (derived from path)

    Validation Rules:
        - path must exist and be a directory
        - path must contain .git (a directory, or a file for worktrees)
    """

    path: Path
    name: str

    def __post_init__(self) -> None:
        """Normalize the repository path."""
        if isinstance(self.path, str):
            self.path = Path(self.path)

        self.path = self.path.resolve()

    def validate(self) -> list[str]:
        """Validate the repository.

        Returns:
            List of validation warning messages (empty if valid)

        Raises:
            ValueError: If path does not exist, is not a directory or not a git checkout
        """
        warnings: list[str] = []

        if not self.path.exists():
            raise ValueError(f"Repository path does not exist: {self.path}")

        if not self.path.is_dir():
            raise ValueError(f"Repository path is not a directory: {self.path}")

        if not self.is_git_repo:
            raise ValueError(f"Not a git repository (no .git): {self.path}")

        if (self.path / ".git").is_file():
            warnings.append(f"Linked worktree detected: {self.path}")

        return warnings

    @property
    def is_git_repo(self) -> bool:
        """Check if the path is a git checkout (repository or linked worktree)."""
        return (self.path / ".git").exists()

    @property
    def state_dir(self) -> Path:
        """Tool-managed directory for config, state and logs."""
        return self.path / STATE_DIR_NAME

    def resolve(self, relative: str | Path) -> Path:
        """Resolve a repository-relative path (absolute paths pass through)."""
        candidate = Path(relative)
        if candidate.is_absolute():
            return candidate
        return self.path / candidate

    @classmethod
    def from_path(cls, path: Path | str, name: str | None = None) -> "Repository":
        """Create a Repository from a path.

        Args:
            path: Path to the working tree root
            name: Optional name override (defaults to directory name)

        Returns:
            Repository instance
        """
        path = Path(path).resolve()
        if name is None:
            name = path.name

        return cls(path=path, name=name)
