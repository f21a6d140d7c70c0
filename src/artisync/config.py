"""Artisync configuration system.

Configuration is YAML-based and lives inside the repository it governs.
Supports environment variable substitution (${VAR}) in config files.

Configuration file discovery (in priority order):
1. CLI --config argument
2. <git root>/.artisync/config.yaml
3. <git root>/artisync.yaml
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from artisync.errors import ConfigError
from artisync.models.orchestration import HookEvent

# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass
class RuleConfig:
    """Classification rule mapping changed paths to logical artifacts.

    Attributes:
        pattern: Glob matched against repository-relative paths
        kind: Artifact classification tag (selects the strategy)
        artifact: Artifact id template ({path}, {name}, {stem}, {parent}, {dir})
    """

    pattern: str
    kind: str
    artifact: str = "{path}"

    def __post_init__(self) -> None:
        """Validate rule configuration."""
        if not self.pattern:
            raise ValueError("Rule pattern must not be empty")
        if not self.kind:
            raise ValueError(f"Rule {self.pattern!r} has no kind")


@dataclass
class StrategyConfig:
    """Command-backed strategy for one artifact kind.

    Attributes:
        command: Shell command run from the git root
        outputs: Path templates the command writes (staged in the cascade commit)
        enabled: Whether the strategy is registered
    """

    command: str
    outputs: list[str] = field(default_factory=list)
    enabled: bool = True

    def __post_init__(self) -> None:
        """Validate strategy configuration."""
        if not self.command:
            raise ValueError("Strategy command must not be empty")


@dataclass
class EventConfig:
    """Per-event switches.

    Attributes:
        enabled: Whether the hook runs for this event
        target_branches: Branches the event fires on (empty = any branch)
        require_pr: Only run for merges that reference a pull request
    """

    enabled: bool = True
    target_branches: list[str] = field(default_factory=list)
    require_pr: bool = False


@dataclass
class IdempotencyConfig:
    """Idempotency store settings.

    Attributes:
        store_path: JSON state file (relative to the git root)
        allow_retry: Retry failed or unfinished work on the next trigger
    """

    store_path: str = ".artisync/state/idempotency.json"
    allow_retry: bool = True


@dataclass
class ExecutionConfig:
    """Strategy execution settings.

    Attributes:
        strategy_timeout_ms: Execution window for each strategy invocation
    """

    strategy_timeout_ms: int = 60_000

    def __post_init__(self) -> None:
        """Validate execution configuration."""
        if self.strategy_timeout_ms <= 0:
            raise ValueError(
                f"strategy_timeout_ms must be positive (got {self.strategy_timeout_ms})"
            )


@dataclass
class AttributionConfig:
    """Identity used for cascade commits.

    Attributes:
        agent_name: Author/committer name
        author_email: Author/committer email
        human_actor: Optional Co-Authored-By value
    """

    agent_name: str = "artisync"
    author_email: str = "artisync@noreply.local"
    human_actor: str | None = None


@dataclass
class LoggingConfig:
    """Hook log file settings.

    Attributes:
        file: Log file path relative to the git root (None disables file logging)
        max_bytes: Rotation threshold
        backup_count: Rotated files kept
    """

    file: str | None = ".artisync/logs/hooks.log"
    max_bytes: int = 1_048_576
    backup_count: int = 3


def _default_events() -> dict[str, EventConfig]:
    return {event.config_key: EventConfig() for event in HookEvent}


@dataclass
class ArtisyncConfig:
    """Top-level Artisync configuration.

    Attributes:
        enabled: Master switch for all hooks
        git_root: Working tree root (relative paths resolve against the config file)
        events: Per-event settings keyed by post_merge / post_checkout
        rules: Ordered classification rules (first match wins)
        strategies: Command strategies keyed by artifact kind
        idempotency: Idempotency store settings
        execution: Strategy execution settings
        attribution: Cascade commit identity
        logging: Hook log file settings
    """

    enabled: bool = True
    git_root: Path = field(default_factory=Path.cwd)
    events: dict[str, EventConfig] = field(default_factory=_default_events)
    rules: list[RuleConfig] = field(default_factory=list)
    strategies: dict[str, StrategyConfig] = field(default_factory=dict)
    idempotency: IdempotencyConfig = field(default_factory=IdempotencyConfig)
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    attribution: AttributionConfig = field(default_factory=AttributionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    _config_path: Path | None = field(default=None, repr=False)

    @property
    def config_path(self) -> Path | None:
        """Get the path to the config file that was loaded."""
        return self._config_path

    def event(self, event: HookEvent) -> EventConfig:
        """Settings for one event (defaults if not configured)."""
        return self.events.get(event.config_key, EventConfig())

    def is_event_enabled(self, event: HookEvent) -> bool:
        """Whether hooks run for the given event."""
        return self.enabled and self.event(event).enabled

    def resolve_path(self, relative: str) -> Path:
        """Resolve a path relative to the git root."""
        path = Path(relative)
        return path if path.is_absolute() else self.git_root / path

    @property
    def idempotency_store_path(self) -> Path:
        return self.resolve_path(self.idempotency.store_path)

    @property
    def log_file_path(self) -> Path | None:
        if not self.logging.file:
            return None
        return self.resolve_path(self.logging.file)

    def runtime_ignore_patterns(self) -> list[str]:
        """gitignore patterns for the files hooks write inside the working tree.

        Covers the idempotency store (and its temporary files) and the hook
        log (and its rotated files). Paths outside git_root are left out.
        """
        root = self.git_root.resolve()
        patterns: list[str] = []

        store = self.idempotency_store_path.resolve()
        if store.is_relative_to(root):
            relative = store.relative_to(root)
            patterns.append(_ignore_pattern(relative))
            patterns.append(_ignore_pattern(relative.parent / f".{relative.name}.") + "*.tmp")

        log_file = self.log_file_path
        if log_file is not None and log_file.resolve().is_relative_to(root):
            patterns.append(_ignore_pattern(log_file.resolve().relative_to(root)) + "*")

        return patterns


def _ignore_pattern(relative: Path) -> str:
    """Anchored gitignore pattern for one repository-relative path, glob characters escaped."""
    return "/" + re.sub(r"([\\*?\[])", r"\\\1", relative.as_posix())


# =============================================================================
# Environment Variable Substitution
# =============================================================================


def substitute_env_vars(value: Any) -> Any:
    """Substitute environment variables in config values.

    Supports ${VAR} syntax for environment variable substitution.

    Args:
        value: Config value (string, dict, list, or other)

    Returns:
        Value with environment variables substituted
    """
    if isinstance(value, str):
        pattern = re.compile(r"\$\{([^}]+)\}")

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ValueError(f"Environment variable not set: {var_name}")
            return env_value

        return pattern.sub(replace_var, value)

    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [substitute_env_vars(v) for v in value]

    return value


# =============================================================================
# Config File Discovery
# =============================================================================


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find configuration file in standard locations.

    Search order:
    1. ./.artisync/config.yaml
    2. ./artisync.yaml

    Args:
        start_path: Directory to search (defaults to cwd)

    Returns:
        Path to config file if found, None otherwise
    """
    if start_path is None:
        start_path = Path.cwd()

    start_path = start_path.resolve()

    candidates = [
        start_path / ".artisync" / "config.yaml",
        start_path / "artisync.yaml",
    ]

    for candidate in candidates:
        if candidate.exists():
            return candidate

    return None


# =============================================================================
# Config Loading
# =============================================================================


def _load_events(data: dict[str, Any]) -> dict[str, EventConfig]:
    events = _default_events()
    valid = {event.config_key for event in HookEvent}
    for name, event_data in data.items():
        key = name.replace("-", "_")
        if key not in valid:
            raise ValueError(f"Unknown event: {name}. Valid: {sorted(valid)}")
        if isinstance(event_data, bool):
            events[key] = EventConfig(enabled=event_data)
            continue
        event_data = event_data or {}
        branches = event_data.get("target_branches", [])
        if isinstance(branches, str):
            branches = [branches]
        events[key] = EventConfig(
            enabled=event_data.get("enabled", True),
            target_branches=list(branches),
            require_pr=event_data.get("require_pr", False),
        )
    return events


def load_config_from_dict(
    data: dict[str, Any],
    base_dir: Path | None = None,
) -> ArtisyncConfig:
    """Load configuration from a dictionary.

    Args:
        data: Configuration dictionary
        base_dir: Directory relative git_root values resolve against (defaults to cwd)

    Returns:
        ArtisyncConfig instance

    Raises:
        ValueError: If a section is invalid
    """
    data = substitute_env_vars(data)
    base_dir = (base_dir or Path.cwd()).resolve()

    config = ArtisyncConfig(git_root=base_dir)
    config.enabled = data.get("enabled", True)

    if "git_root" in data and data["git_root"]:
        git_root = Path(data["git_root"])
        config.git_root = (git_root if git_root.is_absolute() else base_dir / git_root).resolve()

    if "events" in data:
        config.events = _load_events(data["events"] or {})

    if "rules" in data:
        config.rules = [
            RuleConfig(
                pattern=rule.get("pattern", ""),
                kind=rule.get("kind", ""),
                artifact=rule.get("artifact", "{path}"),
            )
            for rule in data["rules"] or []
        ]

    if "strategies" in data:
        for kind, strategy_data in (data["strategies"] or {}).items():
            if isinstance(strategy_data, str):
                strategy_data = {"command": strategy_data}
            outputs = strategy_data.get("outputs", [])
            if isinstance(outputs, str):
                outputs = [outputs]
            config.strategies[kind] = StrategyConfig(
                command=strategy_data.get("command", ""),
                outputs=list(outputs),
                enabled=strategy_data.get("enabled", True),
            )

    if "idempotency" in data:
        idem_data = data["idempotency"] or {}
        config.idempotency = IdempotencyConfig(
            store_path=idem_data.get("store_path", config.idempotency.store_path),
            allow_retry=idem_data.get("allow_retry", True),
        )

    if "execution" in data:
        exec_data = data["execution"] or {}
        config.execution = ExecutionConfig(
            strategy_timeout_ms=int(exec_data.get("strategy_timeout_ms", 60_000)),
        )

    if "attribution" in data:
        attr_data = data["attribution"] or {}
        config.attribution = AttributionConfig(
            agent_name=attr_data.get("agent_name", config.attribution.agent_name),
            author_email=attr_data.get("author_email", config.attribution.author_email),
            human_actor=attr_data.get("human_actor"),
        )

    if "logging" in data:
        log_data = data["logging"] or {}
        config.logging = LoggingConfig(
            file=log_data.get("file", config.logging.file),
            max_bytes=int(log_data.get("max_bytes", config.logging.max_bytes)),
            backup_count=int(log_data.get("backup_count", config.logging.backup_count)),
        )

    return config


def load_config(
    config_path: Path | None = None,
    auto_discover: bool = True,
    git_root: Path | None = None,
) -> ArtisyncConfig:
    """Load configuration from file.

    Args:
        config_path: Explicit path to config file
        auto_discover: Whether to search for config file if not specified
        git_root: Working tree root used for discovery and as default git_root

    Returns:
        ArtisyncConfig instance

    Raises:
        ConfigError: If config_path does not exist or the file is invalid
    """
    root = (git_root or Path.cwd()).resolve()

    if config_path is not None:
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")
        found_path: Path | None = config_path
    elif auto_discover:
        found_path = find_config_file(root)
    else:
        found_path = None

    if found_path is None:
        return ArtisyncConfig(git_root=root)

    try:
        with open(found_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to read config {found_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config {found_path} must be a mapping")

    try:
        config = load_config_from_dict(data, base_dir=root)
    except (ValueError, TypeError, AttributeError) as e:
        raise ConfigError(f"Invalid config {found_path}: {e}") from e

    config._config_path = found_path
    return config


def create_default_config() -> str:
    """Create default configuration YAML content.

    Returns:
        YAML string with default configuration and comments
    """
    return '''# Artisync Configuration

enabled: true

# Hook events
events:
  post_merge:
    enabled: true
    target_branches: []   # empty = any branch
    require_pr: false
  post_checkout:
    enabled: true

# Classification rules: changed path -> logical artifact (first match wins)
# Artifact templates: {path} {name} {stem} {parent} {dir}
rules:
  - pattern: "docs/*.md"
    kind: docs
  # - pattern: "openapi/*.yaml"
  #   kind: api_spec
  #   artifact: "api/{stem}"

# Strategies: artifact kind -> regeneration command
# The command runs from the git root with ARTISYNC_ARTIFACT_ID,
# ARTISYNC_ARTIFACT_KIND, ARTISYNC_IMPACT_TYPE and ARTISYNC_PATHS set.
strategies: {}
  # docs:
  #   command: "make site"
  #   outputs: ["site/{stem}.html"]

idempotency:
  store_path: ".artisync/state/idempotency.json"
  allow_retry: true

execution:
  strategy_timeout_ms: 60000

attribution:
  agent_name: "artisync"
  author_email: "artisync@noreply.local"

logging:
  file: ".artisync/logs/hooks.log"
  max_bytes: 1048576
  backup_count: 3
'''
