"""Artisync utility modules.

- git: Thin subprocess wrapper around the git CLI
- logging: Standardized logging with human/verbose/JSON modes and a hook log file
- preflight: Environment checks for the `check` command
"""

from artisync.utils.git import CommitInfo, FileChange, GitClient
from artisync.utils.logging import get_logger, setup_logging, structured
from artisync.utils.preflight import PreflightChecker, PreflightResult

__all__ = [
    "CommitInfo",
    "FileChange",
    "GitClient",
    "get_logger",
    "setup_logging",
    "structured",
    "PreflightChecker",
    "PreflightResult",
]
