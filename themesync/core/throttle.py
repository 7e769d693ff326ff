"""
Leaky-bucket rate limiter with an overflow queue.

Requests fire immediately while the bucket has headroom. Once it is full
they wait in a FIFO overflow queue which is drained one entry per leak
period, so bursts are fast and the sustained rate never exceeds the
endpoint's ceiling.
"""
import asyncio
from collections import deque
from typing import Awaitable, Callable, Deque, Optional, TypeVar

from .constants import DEFAULT_BUCKET_PADDING, DEFAULT_BUCKET_SIZE, DEFAULT_LEAK_RATE
from .exceptions import ThrottleClosed
from .logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class RateLimiter:
    """
    Leaky bucket shared by every request to one remote endpoint.

    State:
    - request_count: budget currently in use, 0 <= request_count <= bucket_limit
    - overflow: FIFO of waiters that could not be dispatched immediately

    Two background cycles run on the event loop with period 1 / leak_rate:
    - leak: decrements request_count by one per tick until it reaches 0
    - drain: releases the oldest waiter per tick while there is headroom

    Each cycle is started lazily and at most one of each runs at a time.
    """

    def __init__(
        self,
        bucket_size: int = DEFAULT_BUCKET_SIZE,
        leak_rate: float = DEFAULT_LEAK_RATE,
        padding: int = DEFAULT_BUCKET_PADDING,
    ):
        """
        Initialize rate limiter.

        Args:
            bucket_size: Maximum requests the endpoint accepts in a burst
            leak_rate: Requests recovered per second
            padding: Budget left unused for other clients of the endpoint

        Raises:
            ValueError: If the resulting limit or leak rate is not positive
        """
        if leak_rate <= 0:
            raise ValueError(f"leak_rate must be positive, got {leak_rate}")
        if bucket_size - padding < 1:
            raise ValueError(
                f"bucket_size ({bucket_size}) must exceed padding ({padding})"
            )

        self.bucket_size = bucket_size
        self.leak_rate = leak_rate
        self.padding = padding
        self.bucket_limit = bucket_size - padding
        self.interval = 1.0 / leak_rate

        self._request_count = 0
        self._overflow: Deque[asyncio.Future] = deque()
        self._leak_task: Optional[asyncio.Task] = None
        self._drain_task: Optional[asyncio.Task] = None
        self._closed = False

    # --------------------
    # Introspection
    # --------------------
    @property
    def request_count(self) -> int:
        return self._request_count

    @property
    def queued(self) -> int:
        return sum(1 for gate in self._overflow if not gate.done())

    @property
    def is_leaking(self) -> bool:
        return self._leak_task is not None and not self._leak_task.done()

    @property
    def is_draining(self) -> bool:
        return self._drain_task is not None and not self._drain_task.done()

    # --------------------
    # Public API
    # --------------------
    async def acquire(self) -> None:
        """
        Wait until this request may be dispatched, then take one unit of budget.

        Raises:
            ThrottleClosed: If the limiter is closed before the request is released
        """
        if self._closed:
            raise ThrottleClosed("rate limiter is closed")

        if not self._overflow and self._request_count < self.bucket_limit:
            self._dispatch()
            return

        gate = asyncio.get_running_loop().create_future()
        self._overflow.append(gate)
        self._ensure_draining()
        await gate

    async def submit(self, start: Callable[[], Awaitable[T]]) -> T:
        """
        Run a request once the bucket allows it.

        Args:
            start: Zero-argument callable producing the request awaitable

        Returns:
            Whatever the request returns
        """
        await self.acquire()
        return await start()

    async def aclose(self) -> None:
        """Stop both cycles and fail every queued waiter"""
        self._closed = True
        while self._overflow:
            gate = self._overflow.popleft()
            if not gate.done():
                gate.set_exception(ThrottleClosed("rate limiter closed while queued"))
        for task in (self._leak_task, self._drain_task):
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._leak_task = None
        self._drain_task = None

    # --------------------
    # Internals
    # --------------------
    def _dispatch(self) -> None:
        self._request_count += 1
        self._ensure_leaking()

    def _ensure_leaking(self) -> None:
        if not self.is_leaking:
            self._leak_task = asyncio.get_running_loop().create_task(self._leak())

    def _ensure_draining(self) -> None:
        if not self.is_draining:
            self._drain_task = asyncio.get_running_loop().create_task(self._drain())

    async def _leak(self) -> None:
        while self._request_count > 0:
            await asyncio.sleep(self.interval)
            if self._request_count > 0:
                self._request_count -= 1

    async def _drain(self) -> None:
        logger.debug("Throttling started")
        while self._overflow:
            await asyncio.sleep(self.interval)
            try:
                self._release_next()
            except Exception:
                logger.exception("Drain tick failed")
        logger.debug("Throttling stopped")

    def _release_next(self) -> None:
        if self._request_count >= self.bucket_limit:
            return
        while self._overflow:
            gate = self._overflow.popleft()
            # Waiter was cancelled while queued
            if gate.done():
                continue
            self._dispatch()
            gate.set_result(None)
            return
