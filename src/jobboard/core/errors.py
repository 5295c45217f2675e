"""
Loader error types.

Failures raised by the batch function itself are not wrapped; they reach
every waiter of the failing batch unchanged.
"""

from typing import Any


class BatchLoaderError(Exception):
    """Base class for batch function contract violations."""
    pass


class BatchLengthMismatch(BatchLoaderError):
    """The batch function returned a different number of values than keys."""

    def __init__(self, expected: int, actual: int, loader_name: str = "BatchLoader"):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{loader_name} batch function must return a sequence of the same "
            f"length as its keys: expected {expected} values, got {actual}"
        )


class InvalidBatchResult(BatchLoaderError):
    """The batch function returned something that is not a list or tuple."""

    def __init__(self, result: Any, loader_name: str = "BatchLoader"):
        self.result_type = type(result).__name__
        super().__init__(
            f"{loader_name} batch function must return a list or tuple, "
            f"got {self.result_type}"
        )
