"""Background event loop for driving connection managers from blocking code."""

import asyncio
import threading
from concurrent.futures import Future
from typing import Any, Coroutine, Optional, TypeVar

T = TypeVar("T")


class AsyncRunner:
    """Runs an asyncio event loop in a daemon thread.

    Every coroutine handed to ``run`` executes on that one loop, so the
    asyncio.Lock inside a ConnectionManager is only ever used from a single
    loop even when callers live on several threads.
    """

    def __init__(self) -> None:
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the loop thread.

        Raises:
            RuntimeError: If the runner is already started.
        """
        if self._loop is not None:
            raise RuntimeError("AsyncRunner is already started")

        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._run_loop, name="conduit-async-runner", daemon=True
        )
        self._thread.start()

    def _run_loop(self) -> None:
        assert self._loop is not None
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    def run(self, coro: Coroutine[Any, Any, T]) -> "Future[T]":
        """Schedule ``coro`` on the loop and return a concurrent Future."""
        if self._loop is None:
            coro.close()
            raise RuntimeError("AsyncRunner not started - call start() first")

        return asyncio.run_coroutine_threadsafe(coro, self._loop)

    def run_sync(self, coro: Coroutine[Any, Any, T], timeout: Optional[float] = None) -> T:
        """Run ``coro`` on the loop and block until it finishes.

        Exceptions raised by the coroutine propagate unchanged. If ``timeout``
        expires the coroutine is cancelled and TimeoutError is raised.
        """
        future = self.run(coro)
        try:
            return future.result(timeout=timeout)
        except TimeoutError:
            future.cancel()
            raise

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the loop and wait up to ``timeout`` seconds for the thread.

        If the thread is still busy when ``timeout`` expires the loop is left
        open and the runner keeps its state; call stop() again later.
        """
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self._loop.stop)

        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                return
            self._thread = None

        if self._loop is not None:
            self._loop.close()
            self._loop = None

    def __enter__(self) -> "AsyncRunner":
        self.start()
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.stop()
