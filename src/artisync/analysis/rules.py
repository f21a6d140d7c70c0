"""Path classification rules.

A rule maps repository-relative paths matching a glob onto a logical
artifact. Several paths can map to the same artifact (e.g. every file under
`schemas/billing/` feeding one `billing` client), in which case the analyzer
merges their operations.

Patterns use fnmatch semantics: `*` also matches `/`.
"""

from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import PurePosixPath

from artisync.config import RuleConfig


def render_template(template: str, path: str) -> str:
    """Expand an artifact or output template for a path.

    Placeholders:
        {path}: full repository-relative path
        {name}: file name
        {stem}: file name without its last suffix
        {parent}: name of the containing directory
        {dir}: containing directory path ("." at the root)
    """
    posix = PurePosixPath(path)
    return template.format(
        path=path,
        name=posix.name,
        stem=posix.stem,
        parent=posix.parent.name,
        dir=str(posix.parent),
    )


@dataclass(frozen=True)
class ArtifactRule:
    """Maps matching paths to an artifact id and kind."""

    pattern: str
    kind: str
    artifact: str = "{path}"

    def matches(self, path: str) -> bool:
        return fnmatchcase(path, self.pattern)

    def artifact_id(self, path: str) -> str:
        return render_template(self.artifact, path)

    @classmethod
    def from_config(cls, rule: RuleConfig) -> "ArtifactRule":
        return cls(pattern=rule.pattern, kind=rule.kind, artifact=rule.artifact)


@dataclass(frozen=True)
class Classification:
    """Result of classifying one path."""

    artifact_id: str
    kind: str


class RuleSet:
    """Ordered classification rules; the first matching rule wins."""

    def __init__(self, rules: list[ArtifactRule] | None = None) -> None:
        self._rules: list[ArtifactRule] = list(rules or [])

    def __len__(self) -> int:
        return len(self._rules)

    def add(self, rule: ArtifactRule) -> None:
        self._rules.append(rule)

    def classify(self, path: str) -> Classification | None:
        """Classify a path, or return None if no rule matches."""
        for rule in self._rules:
            if rule.matches(path):
                return Classification(artifact_id=rule.artifact_id(path), kind=rule.kind)
        return None

    @classmethod
    def from_config(cls, rules: list[RuleConfig]) -> "RuleSet":
        return cls([ArtifactRule.from_config(rule) for rule in rules])
