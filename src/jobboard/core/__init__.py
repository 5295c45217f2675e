"""
Core loader components.

This module contains the batch loader and the request and batch records it
uses to coalesce lookups.
"""

from jobboard.core.request import PendingRequest, RequestStatus
from jobboard.core.batch import Batch, BatchStatus
from jobboard.core.errors import BatchLengthMismatch, BatchLoaderError, InvalidBatchResult
from jobboard.core.loader import BatchLoader

__all__ = [
    "PendingRequest",
    "RequestStatus",
    "Batch",
    "BatchStatus",
    "BatchLoaderError",
    "BatchLengthMismatch",
    "InvalidBatchResult",
    "BatchLoader",
]
