"""
Pending load request model.

Represents a single caller waiting on a key inside a batch.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Hashable


class RequestStatus(str, Enum):
    """Status of a pending load request."""
    PENDING = "pending"           # Waiting for the batch to dispatch
    RESOLVED = "resolved"         # Future completed with a value
    REJECTED = "rejected"         # Future completed with an exception
    CANCELLED = "cancelled"       # Future cancelled before completion


@dataclass(eq=False)
class PendingRequest:
    """
    A caller's interest in one key of a batch.

    Attributes:
        key: The key handed to the batch function
        cache_key: Hashable value used for deduplication and caching
        future: Future returned to the caller by ``load``
        status: Current status
        created_at: When the request was registered
    """

    key: Any
    cache_key: Hashable
    future: asyncio.Future
    status: RequestStatus = RequestStatus.PENDING
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        if isinstance(self.status, str):
            self.status = RequestStatus(self.status)

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING

    def resolve(self, value: Any) -> None:
        """Complete the caller's future with a value."""
        if self.future.done():
            self._sync_from_future()
            return
        self.future.set_result(value)
        self.status = RequestStatus.RESOLVED

    def reject(self, error: BaseException) -> None:
        """Complete the caller's future with an exception."""
        if self.future.done():
            self._sync_from_future()
            return
        self.future.set_exception(error)
        self.status = RequestStatus.REJECTED

    def cancel(self) -> None:
        """Cancel the caller's future."""
        self.future.cancel()
        self.status = RequestStatus.CANCELLED

    def _sync_from_future(self) -> None:
        # The caller may have cancelled the future while it was waiting.
        if self.future.cancelled():
            self.status = RequestStatus.CANCELLED

    def to_dict(self) -> dict:
        """Convert to dictionary for logging and debugging."""
        return {
            "key": repr(self.key),
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
        }
