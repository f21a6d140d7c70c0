"""Regeneration strategies and their execution.

- base: Strategy interface, StrategyContext, StrategyOutcome
- registry: kind -> Strategy table (unmatched kinds are skipped)
- command: CommandStrategy, shell command configured in YAML
- executor: StrategyExecutor, sequential runs with per-artifact timeouts
"""

from artisync.strategies.base import Strategy, StrategyContext, StrategyOutcome
from artisync.strategies.command import CommandStrategy
from artisync.strategies.executor import StrategyExecutor
from artisync.strategies.registry import (
    StrategyRegistry,
    build_registry,
    get_registry,
    reset_registry,
)

__all__ = [
    "CommandStrategy",
    "Strategy",
    "StrategyContext",
    "StrategyExecutor",
    "StrategyOutcome",
    "StrategyRegistry",
    "build_registry",
    "get_registry",
    "reset_registry",
]
