"""Strategy registry: artifact kind -> handler.

The registry is an explicit table. Kinds without a registered handler are
skipped by the executor (not failed).
"""

from typing import Any

from artisync.config import ArtisyncConfig
from artisync.strategies.base import Strategy


class StrategyRegistry:
    """Registry of regeneration strategies keyed by artifact kind.

    Configuration example:
        strategies:
          docs:                          # -> CommandStrategy("docs", ...)
            command: "make site"
            outputs: ["site/{stem}.html"]

    Adding a new strategy:
        1. Implement Strategy.process
        2. Register it for a kind
        3. Map paths to that kind with a classification rule
    """

    def __init__(self) -> None:
        """Initialize empty registry."""
        self._strategies: dict[str, Strategy] = {}

    # =========================================================================
    # Registration
    # =========================================================================

    def register(self, kind: str, strategy: Strategy, replace: bool = False) -> None:
        """Register a strategy for an artifact kind.

        Args:
            kind: Artifact classification tag
            strategy: Handler instance
            replace: Allow replacing an existing registration

        Raises:
            ValueError: If the kind is already registered and replace is False
        """
        if kind in self._strategies and not replace:
            raise ValueError(f"Strategy already registered for kind: {kind}")
        self._strategies[kind] = strategy

    def unregister(self, kind: str) -> None:
        """Remove the strategy for a kind (no-op if absent)."""
        self._strategies.pop(kind, None)

    # =========================================================================
    # Retrieval
    # =========================================================================

    def get(self, kind: str) -> Strategy | None:
        """Get the strategy for a kind, or None if unregistered."""
        return self._strategies.get(kind)

    def __contains__(self, kind: object) -> bool:
        return kind in self._strategies

    def __len__(self) -> int:
        return len(self._strategies)

    # =========================================================================
    # Introspection
    # =========================================================================

    def list_kinds(self) -> list[str]:
        """Get sorted list of registered kinds."""
        return sorted(self._strategies)

    def get_metadata(self) -> dict[str, Any]:
        """Get registry metadata for logging and debugging."""
        return {kind: self._strategies[kind].get_metadata() for kind in self.list_kinds()}


def build_registry(config: ArtisyncConfig, registry: StrategyRegistry | None = None) -> StrategyRegistry:
    """Register a CommandStrategy for every enabled strategy in config.

    Args:
        config: Loaded configuration
        registry: Registry to populate (uses the global registry if None)

    Returns:
        Populated StrategyRegistry
    """
    from artisync.strategies.command import CommandStrategy

    if registry is None:
        registry = get_registry()

    for kind, strategy_config in config.strategies.items():
        if not strategy_config.enabled:
            continue
        registry.register(
            kind,
            CommandStrategy(kind, strategy_config.command, strategy_config.outputs),
            replace=True,
        )
    return registry


# Global registry instance
_registry: StrategyRegistry | None = None


def get_registry() -> StrategyRegistry:
    """Get the global strategy registry instance.

    Programmatic strategies registered here are picked up by every hook run in
    this process, alongside the command strategies from config.
    """
    global _registry
    if _registry is None:
        _registry = StrategyRegistry()
    return _registry


def reset_registry() -> None:
    """Reset the global registry (primarily for testing)."""
    global _registry
    _registry = None
