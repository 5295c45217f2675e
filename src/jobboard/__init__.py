"""
Job Board Loader

Request-scoped batching loader for a job board GraphQL service.
Loaders collect the point lookups issued while resolving one request and
answer them with a single bulk query, removing the N+1 query pattern.
"""

__version__ = "0.1.0"

from jobboard.core.loader import BatchLoader
from jobboard.core.errors import BatchLengthMismatch, BatchLoaderError, InvalidBatchResult
from jobboard.core.batch import Batch, BatchStatus
from jobboard.core.request import PendingRequest, RequestStatus

__all__ = [
    "BatchLoader",
    "BatchLoaderError",
    "BatchLengthMismatch",
    "InvalidBatchResult",
    "Batch",
    "BatchStatus",
    "PendingRequest",
    "RequestStatus",
]
