"""
Batch model.

Represents the keys collected during one coalescing window and the callers
waiting on each of them.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Hashable, List, Optional, Sequence

from jobboard.core.request import PendingRequest


class BatchStatus(str, Enum):
    """Status of a batch."""
    COLLECTING = "collecting"     # Still accepting keys
    DISPATCHED = "dispatched"     # Batch function running
    RESOLVED = "resolved"         # Every waiter notified with its value
    FAILED = "failed"             # Batch function failed or broke its contract


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Batch:
    """
    Keys collected for a single batch function invocation.

    Keys are kept unique in first-occurrence order. Each unique key can have
    several waiters, all of which are answered from the same slot of the
    batch function's result.

    Attributes:
        batch_id: Unique identifier for the batch
        keys: Unique keys in first-occurrence order
        waiters: Pending requests grouped by cache key
        status: Current processing status
        created_at: When the first key was added
        dispatched_at: When the batch function was invoked
        completed_at: When the last waiter was notified
    """

    batch_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    keys: List[Any] = field(default_factory=list)
    waiters: Dict[Hashable, List[PendingRequest]] = field(default_factory=dict)
    status: BatchStatus = BatchStatus.COLLECTING

    created_at: datetime = field(default_factory=_utcnow)
    dispatched_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    error_message: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.status, str):
            self.status = BatchStatus(self.status)

    def add_request(self, request: PendingRequest) -> None:
        """
        Register a waiter, adding its key if this is the key's first occurrence.

        Args:
            request: The pending request to add
        """
        if self.status != BatchStatus.COLLECTING:
            raise RuntimeError(f"Cannot add keys to a {self.status.value} batch")

        waiting = self.waiters.get(request.cache_key)
        if waiting is None:
            self.keys.append(request.key)
            self.waiters[request.cache_key] = [request]
        else:
            waiting.append(request)

    @property
    def size(self) -> int:
        """Number of unique keys."""
        return len(self.keys)

    @property
    def waiter_count(self) -> int:
        """Number of callers waiting, duplicates included."""
        return sum(len(w) for w in self.waiters.values())

    @property
    def is_empty(self) -> bool:
        return len(self.keys) == 0

    def is_full(self, max_size: Optional[int]) -> bool:
        """Check whether the batch has reached its size limit."""
        return max_size is not None and self.size >= max_size

    def requests(self) -> List[PendingRequest]:
        """All waiters in key order."""
        return [r for waiting in self.waiters.values() for r in waiting]

    def mark_dispatched(self) -> None:
        self.status = BatchStatus.DISPATCHED
        self.dispatched_at = _utcnow()

    def resolve(self, values: Sequence[Any]) -> List[PendingRequest]:
        """
        Fan positional results out to every waiter.

        ``values[i]`` answers ``keys[i]``. Exception instances reject only the
        waiters of their key.

        Args:
            values: Batch function results, already length-checked

        Returns:
            Waiters that were rejected by a per-key exception
        """
        rejected = []
        for waiting, value in zip(self.waiters.values(), values):
            for request in waiting:
                if isinstance(value, Exception):
                    request.reject(value)
                    rejected.append(request)
                else:
                    request.resolve(value)

        self.status = BatchStatus.RESOLVED
        self.completed_at = _utcnow()
        return rejected

    def fail(self, error: BaseException) -> None:
        """Reject every waiter with the same error."""
        for request in self.requests():
            request.reject(error)

        self.status = BatchStatus.FAILED
        self.error_message = str(error)
        self.completed_at = _utcnow()

    def cancel(self) -> None:
        """Cancel every waiter."""
        for request in self.requests():
            request.cancel()

        self.status = BatchStatus.FAILED
        self.error_message = "cancelled"
        self.completed_at = _utcnow()

    def to_dict(self) -> dict:
        """Convert to dictionary for logging and debugging."""
        return {
            "batch_id": self.batch_id,
            "status": self.status.value,
            "size": self.size,
            "waiters": self.waiter_count,
            "created_at": self.created_at.isoformat(),
            "dispatched_at": self.dispatched_at.isoformat() if self.dispatched_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "error_message": self.error_message,
        }

    def __repr__(self) -> str:
        return f"Batch(id={self.batch_id[:8]}..., status={self.status.value}, size={self.size})"
