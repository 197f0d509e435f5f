"""Synchronous facade over ConnectionManager.

Example usage:

    with BlockingConnectionManager(manager_from_url("ftp://ftp.example.com")) as conn:
        ftp = conn.get_handle()
"""

from types import TracebackType
from typing import Any, Coroutine, Generic, Optional, TypeVar
from typing_extensions import Self

from conduit.async_runner import AsyncRunner
from conduit.config.base import BaseRemoteConfig
from conduit.manager import ConnectionManager
from conduit.state import BackendKind, ConnectionState

H = TypeVar("H")
T = TypeVar("T")


class BlockingConnectionManager(Generic[H]):
    """Drives one ConnectionManager from code that has no event loop.

    Lifecycle calls run on an AsyncRunner. If no runner is passed in, one is
    started here and stopped again by close(). The native handle is returned
    as is; coroutines that need the runner's loop can be passed to ``run``.
    """

    def __init__(
        self,
        manager: ConnectionManager,
        runner: Optional[AsyncRunner] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._manager = manager
        self._timeout = timeout
        self._owns_runner = runner is None
        if runner is None:
            runner = AsyncRunner()
            runner.start()
        self._runner = runner

    @property
    def manager(self) -> ConnectionManager:
        return self._manager

    @property
    def backend(self) -> BackendKind:
        return self._manager.backend

    @property
    def state(self) -> ConnectionState:
        return self._manager.state

    def is_connected(self) -> bool:
        return self._manager.is_connected()

    def get_handle(self) -> H:
        return self._manager.get_handle()

    def get_config(self) -> BaseRemoteConfig:
        return self._manager.get_config()

    def connect(self) -> H:
        return self._runner.run_sync(self._manager.connect(), timeout=self._timeout)

    def disconnect(self) -> None:
        self._runner.run_sync(self._manager.disconnect(), timeout=self._timeout)

    def run(self, coro: Coroutine[Any, Any, T]) -> T:
        """Run a coroutine that uses the handle on the manager's loop."""
        return self._runner.run_sync(coro, timeout=self._timeout)

    def close(self) -> None:
        """Disconnect, then stop the runner if this facade started it."""
        try:
            self.disconnect()
        finally:
            if self._owns_runner:
                self._runner.stop()

    def __enter__(self) -> Self:
        try:
            self.connect()
        except BaseException:
            self.close()
            raise
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        self.close()
