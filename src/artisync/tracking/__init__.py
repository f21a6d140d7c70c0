"""Persisted execution state (the only state Artisync keeps between runs)."""

from artisync.tracking.idempotency import IdempotencyStore, IdempotencyTracker

__all__ = ["IdempotencyStore", "IdempotencyTracker"]
