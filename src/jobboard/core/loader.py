"""
Batch loader.

Coalesces point lookups issued during one event-loop tick into a single call
of a bulk batch function, and caches the results per loader instance.
"""

import asyncio
import inspect
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Generic,
    Hashable,
    Iterable,
    List,
    Optional,
    Sequence,
    Set,
    TypeVar,
    Union,
)

import structlog

from jobboard.core.batch import Batch
from jobboard.core.errors import BatchLengthMismatch, InvalidBatchResult
from jobboard.core.request import PendingRequest

logger = structlog.get_logger(__name__)

K = TypeVar("K")
V = TypeVar("V")

BatchFunction = Callable[[List[K]], Union[Sequence[V], Awaitable[Sequence[V]]]]


class BatchLoader(Generic[K, V]):
    """
    Per-request batching and caching loader.

    Every ``load`` made before the current batch dispatches joins that batch.
    Dispatch is scheduled with ``loop.call_soon`` when the batch is opened, so
    it runs after all callbacks already queued in the current tick: resolver
    tasks started together (for instance by ``asyncio.gather``) contribute
    their keys before the batch function is called.

    The batch function receives unique keys in first-occurrence order and must
    return a list or tuple of the same length, where ``result[i]`` answers
    ``keys[i]``. ``None`` is a valid "not found" answer. An ``Exception``
    instance in the result rejects only that key.

    Instances are meant to live for one request. Build a new one per unit of
    work instead of sharing one across requests.

    Usage:
        ```python
        loader = BatchLoader(database.fetch_companies_by_ids)
        company_a, company_b = await asyncio.gather(
            loader.load("a"), loader.load("b"),
        )
        ```
    """

    def __init__(
        self,
        batch_fn: BatchFunction,
        max_batch_size: Optional[int] = None,
        cache: bool = True,
        cache_key_fn: Optional[Callable[[K], Hashable]] = None,
        name: Optional[str] = None,
    ):
        """
        Initialize the loader.

        Args:
            batch_fn: Bulk lookup taking a list of keys, sync or async
            max_batch_size: Maximum unique keys per batch function call
            cache: Memoize futures per key for the life of the loader
            cache_key_fn: Maps a key to the hashable value used for caching
            name: Name used in log events (defaults to the batch function's)

        Raises:
            TypeError: If batch_fn or cache_key_fn is not callable
            ValueError: If max_batch_size is not a positive integer
        """
        if not callable(batch_fn):
            raise TypeError(
                f"batch_fn must be callable, got {type(batch_fn).__name__}"
            )
        if cache_key_fn is not None and not callable(cache_key_fn):
            raise TypeError(
                f"cache_key_fn must be callable, got {type(cache_key_fn).__name__}"
            )
        if max_batch_size is not None:
            if isinstance(max_batch_size, bool) or not isinstance(max_batch_size, int):
                raise TypeError("max_batch_size must be an integer or None")
            if max_batch_size < 1:
                raise ValueError("max_batch_size must be at least 1")

        self._batch_fn = batch_fn
        self.max_batch_size = max_batch_size
        self.cache = cache
        self._cache_key_fn = cache_key_fn
        self.name = name or getattr(batch_fn, "__qualname__", type(batch_fn).__name__)

        # Futures by cache key
        self._cache: Dict[Hashable, asyncio.Future] = {}

        # Batch currently collecting keys, if any
        self._batch: Optional[Batch] = None

        # Undispatched batch holding each collected key
        self._collecting: Dict[Hashable, Batch] = {}

        # Dispatch tasks in flight
        self._tasks: Set[asyncio.Task] = set()

        self._stats = {
            "loads": 0,
            "cache_hits": 0,
            "batches_dispatched": 0,
            "keys_dispatched": 0,
            "batch_failures": 0,
        }

    def load(self, key: K) -> "asyncio.Future[V]":
        """
        Load the value for a key.

        Must be called while the event loop is running. The returned future is
        shared by every caller of the same key, so put a timeout on a shielded
        copy: ``asyncio.wait_for(asyncio.shield(loader.load(key)), timeout)``.

        Args:
            key: Key to look up

        Returns:
            Future resolving to the batch function's answer for the key
        """
        loop = asyncio.get_running_loop()
        cache_key = self._get_cache_key(key)
        self._stats["loads"] += 1

        if self.cache:
            cached = self._cache.get(cache_key)
            if cached is not None and not cached.cancelled():
                self._stats["cache_hits"] += 1
                return cached

        future = loop.create_future()
        if self.cache:
            self._cache[cache_key] = future

        batch = self._get_current_batch(loop, cache_key)
        batch.add_request(PendingRequest(key=key, cache_key=cache_key, future=future))
        return future

    def load_many(
        self,
        keys: Iterable[K],
        return_exceptions: bool = False,
    ) -> "asyncio.Future[List[V]]":
        """
        Load several keys, answering in the order they were given.

        Args:
            keys: Keys to look up; duplicates share one batch slot
            return_exceptions: Put failures in the result list instead of raising

        Returns:
            Future resolving to the values in caller order. Cancelling it
            leaves the per-key futures shared with other callers running.
        """
        keys = list(keys)
        if not keys:
            future = asyncio.get_running_loop().create_future()
            future.set_result([])
            return future

        return asyncio.gather(
            *[asyncio.shield(self.load(key)) for key in keys],
            return_exceptions=return_exceptions,
        )

    def clear(self, key: K) -> "BatchLoader[K, V]":
        """Remove one key from the cache."""
        self._cache.pop(self._get_cache_key(key), None)
        return self

    def clear_many(self, keys: Iterable[K]) -> "BatchLoader[K, V]":
        """Remove several keys from the cache."""
        for key in keys:
            self.clear(key)
        return self

    def clear_all(self) -> "BatchLoader[K, V]":
        """Empty the cache."""
        self._cache.clear()
        return self

    def prime(self, key: K, value: Union[V, Exception]) -> "BatchLoader[K, V]":
        """
        Seed the cache with a known value.

        Keys already cached are left unchanged; ``clear`` them first to
        overwrite. A cancelled cached lookup counts as absent. An exception
        value primes a failed lookup.
        """
        if not self.cache:
            return self

        cache_key = self._get_cache_key(key)
        cached = self._cache.get(cache_key)
        if cached is not None and not cached.cancelled():
            return self

        future = asyncio.get_running_loop().create_future()
        if isinstance(value, Exception):
            future.set_exception(value)
        else:
            future.set_result(value)
        self._cache[cache_key] = future
        return self

    @property
    def stats(self) -> dict:
        """Counters describing the loader's work so far."""
        return {
            **self._stats,
            "cached_keys": len(self._cache),
            "in_flight_batches": len(self._tasks),
        }

    def _get_cache_key(self, key: K) -> Hashable:
        if self._cache_key_fn is not None:
            return self._cache_key_fn(key)
        return key

    def _get_current_batch(
        self, loop: asyncio.AbstractEventLoop, cache_key: Hashable
    ) -> Batch:
        # A key already collected joins its slot even when that batch is full.
        collecting = self._collecting.get(cache_key)
        if collecting is not None:
            return collecting

        batch = self._batch
        if batch is None or batch.is_full(self.max_batch_size):
            batch = Batch()
            self._batch = batch
            loop.call_soon(self._dispatch_batch, batch)
        self._collecting[cache_key] = batch
        return batch

    def _dispatch_batch(self, batch: Batch) -> None:
        if self._batch is batch:
            self._batch = None
        for cache_key in batch.waiters:
            if self._collecting.get(cache_key) is batch:
                del self._collecting[cache_key]

        if batch.is_empty:
            return

        batch.mark_dispatched()
        task = asyncio.get_running_loop().create_task(self._execute_batch(batch))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _execute_batch(self, batch: Batch) -> None:
        keys = list(batch.keys)
        self._stats["batches_dispatched"] += 1
        self._stats["keys_dispatched"] += len(keys)

        logger.debug(
            "loader_batch_dispatched",
            loader=self.name,
            batch_id=batch.batch_id[:8],
            size=len(keys),
            waiters=batch.waiter_count,
        )

        try:
            values = self._batch_fn(keys)
            if inspect.isawaitable(values):
                values = await values
            self._check_values(keys, values)

        except asyncio.CancelledError:
            self._evict_batch(batch)
            batch.cancel()
            raise

        except Exception as e:
            self._stats["batch_failures"] += 1
            self._evict_batch(batch)
            batch.fail(e)
            return

        for request in batch.resolve(values):
            self._evict(request)

    def _check_values(self, keys: List[K], values: Any) -> None:
        if not isinstance(values, (list, tuple)):
            raise InvalidBatchResult(values, loader_name=self.name)
        if len(values) != len(keys):
            raise BatchLengthMismatch(len(keys), len(values), loader_name=self.name)

    def _evict_batch(self, batch: Batch) -> None:
        for request in batch.requests():
            self._evict(request)

    def _evict(self, request: PendingRequest) -> None:
        # Only drop the entry if it still belongs to this request.
        if self._cache.get(request.cache_key) is request.future:
            del self._cache[request.cache_key]

    def __repr__(self) -> str:
        return f"BatchLoader(name={self.name!r}, cached={len(self._cache)})"
