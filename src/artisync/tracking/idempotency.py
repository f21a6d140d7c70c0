"""Idempotency tracking for hook work.

Each unit of work is keyed by (artifact id, target commit). The store keeps
exactly one record per key, overwritten in place, so the state file is a
point-in-time snapshot rather than a history:

    started   -> work in progress, or crashed before finishing
    succeeded -> done for this commit, skip on the next trigger
    failed    -> retried on the next trigger

A `started` record is treated like a `failed` one: an unterminated run is
assumed incomplete and is eligible for retry.
"""

import json
import logging
import os
import tempfile
import threading
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from artisync.errors import PersistenceError
from artisync.models.execution import (
    HookExecutionMetadata,
    HookExecutionStatus,
    ShouldExecuteResult,
    record_key,
)

logger = logging.getLogger(__name__)

STORE_VERSION = 1


class IdempotencyStore:
    """JSON file holding one HookExecutionMetadata per (artifact, commit) key.

    Writes go through a temporary file and os.replace so a crash never leaves
    a half-written store behind. A lock serializes load-modify-write cycles
    for writers within one process.

    File layout:
        {"version": 1, "records": {"<artifact>@<commit>": {...}}}
    """

    def __init__(self, path: Path) -> None:
        """Initialize the store.

        Args:
            path: State file path (created on first write)
        """
        self.path = path
        self._lock = threading.Lock()

    # =========================================================================
    # File access
    # =========================================================================

    def _load(self) -> dict[str, HookExecutionMetadata]:
        if not self.path.exists():
            return {}

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError(self.path, f"cannot read: {e}") from e
        except json.JSONDecodeError as e:
            raise PersistenceError(self.path, f"corrupt JSON: {e}") from e

        if not isinstance(raw, dict) or not isinstance(raw.get("records"), dict):
            raise PersistenceError(self.path, "unexpected layout (missing 'records')")

        version = raw.get("version", STORE_VERSION)
        if version != STORE_VERSION:
            raise PersistenceError(self.path, f"unsupported store version {version}")

        records: dict[str, HookExecutionMetadata] = {}
        for key, data in raw["records"].items():
            try:
                records[key] = HookExecutionMetadata.from_dict(data)
            except (KeyError, TypeError, ValueError) as e:
                raise PersistenceError(self.path, f"invalid record {key!r}: {e}") from e
        return records

    def _save(self, records: dict[str, HookExecutionMetadata]) -> None:
        payload: dict[str, Any] = {
            "version": STORE_VERSION,
            "records": {key: records[key].to_dict() for key in sorted(records)},
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f, indent=2)
                    f.write("\n")
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PersistenceError(self.path, f"cannot write: {e}") from e

    # =========================================================================
    # Key-value surface
    # =========================================================================

    def get(self, artifact_id: str, target_commit: str) -> HookExecutionMetadata | None:
        """Return the record for a key, if any."""
        with self._lock:
            return self._load().get(record_key(artifact_id, target_commit))

    def put(self, record: HookExecutionMetadata) -> None:
        """Insert or overwrite the record for its key."""
        with self._lock:
            records = self._load()
            records[record.key] = record
            self._save(records)

    def latest_for(self, artifact_id: str) -> HookExecutionMetadata | None:
        """Most recently started record for an artifact, across commits."""
        with self._lock:
            candidates = [r for r in self._load().values() if r.artifact_id == artifact_id]
        if not candidates:
            return None
        return max(candidates, key=lambda r: r.started_at)

    def records(self) -> list[HookExecutionMetadata]:
        """All records, sorted by artifact id then start time."""
        with self._lock:
            records = list(self._load().values())
        return sorted(records, key=lambda r: (r.artifact_id, r.started_at))

    def check(self) -> None:
        """Verify the store can be read.

        Raises:
            PersistenceError: If the file exists but is unreadable or corrupt
        """
        with self._lock:
            self._load()


class IdempotencyTracker:
    """Decides whether work already ran for a commit and records outcomes.

    Usage:
        tracker = IdempotencyTracker(IdempotencyStore(path))
        decision = tracker.should_execute("docs/api.md", head_sha)
        if decision.should_execute:
            tracker.record_start("docs/api.md", head_sha)
            ...
            tracker.record_result("docs/api.md", head_sha, HookExecutionStatus.SUCCEEDED)
    """

    def __init__(self, store: IdempotencyStore, allow_retry: bool = True) -> None:
        """Initialize the tracker.

        Args:
            store: Backing store
            allow_retry: Re-run failed or unfinished work on the next trigger
        """
        self.store = store
        self.allow_retry = allow_retry

    def should_execute(self, artifact_id: str, target_commit: str) -> ShouldExecuteResult:
        """Decide whether the artifact should be processed for the target commit.

        Raises:
            PersistenceError: If the store cannot be read
        """
        record = self.store.get(artifact_id, target_commit)

        if record is None:
            latest = self.store.latest_for(artifact_id)
            if latest is None:
                return ShouldExecuteResult(True, "no prior record")
            return ShouldExecuteResult(
                True,
                f"no record for {target_commit} (last ran for {latest.target_commit})",
                last_execution=latest,
            )

        if record.status == HookExecutionStatus.SUCCEEDED:
            return ShouldExecuteResult(
                False,
                f"already succeeded for {target_commit}",
                last_execution=record,
            )

        if record.status == HookExecutionStatus.FAILED:
            reason = "previous attempt failed"
        else:
            reason = "previous attempt did not finish"

        if not self.allow_retry:
            return ShouldExecuteResult(False, f"{reason}, retry disabled", last_execution=record)

        return ShouldExecuteResult(True, f"{reason}, retry", last_execution=record)

    def record_start(self, artifact_id: str, target_commit: str) -> HookExecutionMetadata:
        """Write a started record, overwriting any prior record for the key.

        Raises:
            PersistenceError: If the store cannot be written
        """
        record = HookExecutionMetadata(
            artifact_id=artifact_id,
            target_commit=target_commit,
            status=HookExecutionStatus.STARTED,
            started_at=datetime.now(UTC),
        )
        self.store.put(record)
        return record

    def record_result(
        self,
        artifact_id: str,
        target_commit: str,
        status: HookExecutionStatus,
        error: str | None = None,
    ) -> HookExecutionMetadata:
        """Overwrite the record for the key with a terminal status.

        Raises:
            ValueError: If status is not terminal
            PersistenceError: If the store cannot be read or written
        """
        if not status.is_terminal:
            raise ValueError(f"record_result needs a terminal status, got {status.value}")

        now = datetime.now(UTC)
        existing = self.store.get(artifact_id, target_commit)
        record = HookExecutionMetadata(
            artifact_id=artifact_id,
            target_commit=target_commit,
            status=status,
            started_at=existing.started_at if existing else now,
            finished_at=now,
            error=error,
        )
        self.store.put(record)
        return record
