"""Abstract base classes for backend connection adapters."""

import asyncio
import logging
from abc import abstractmethod, ABCMeta
from typing import ClassVar, Generic, Type, TypeVar

from conduit.config.base import BaseRemoteConfig
from conduit.state import BackendKind

C = TypeVar("C", bound=BaseRemoteConfig)
H = TypeVar("H")

logger = logging.getLogger(__name__)


class ConnectionAdapter(Generic[C, H], metaclass=ABCMeta):
    """Performs the handshake and teardown for one kind of remote endpoint.

    An adapter instance belongs to exactly one ConnectionManager. It only
    knows how to turn a config into a native handle and how to release that
    handle again; lifecycle bookkeeping lives in the manager.
    """

    backend: ClassVar[BackendKind]
    config_class: ClassVar[Type[BaseRemoteConfig]]

    # Eager adapters build their handle locally, without any network I/O.
    eager: ClassVar[bool] = False

    @abstractmethod
    async def connect(self, config: C) -> H:
        """
        Establish a session with the remote endpoint.

        Args:
            config: A private copy of the manager's configuration

        Returns:
            The native client handle for the established session
        """

    @abstractmethod
    async def disconnect(self, handle: H) -> None:
        """
        Release the handle and close the remote session if there is one.

        Args:
            handle: A handle previously returned by connect()
        """

    def is_alive(self, handle: H) -> bool:
        """Local check of the handle. Never touches the network."""
        return handle is not None


class EagerConnectionAdapter(ConnectionAdapter[C, H]):
    """Adapter whose handle is a locally constructed client.

    ``open`` and ``close`` never perform network I/O, so the manager may call
    them synchronously from its constructor. The async methods delegate to
    them without suspending.
    """

    eager: ClassVar[bool] = True

    @abstractmethod
    def open(self, config: C) -> H:
        """Construct the native client from ``config``."""

    @abstractmethod
    def close(self, handle: H) -> None:
        """Release local resources held by ``handle``."""

    async def connect(self, config: C) -> H:
        return self.open(config)

    async def disconnect(self, handle: H) -> None:
        self.close(handle)


class ThreadedConnectionAdapter(ConnectionAdapter[C, H]):
    """Adapter over a blocking driver.

    ``open`` and ``close`` do network I/O; they run in the event loop's
    default executor so the caller suspends instead of blocking the loop.
    If the caller is cancelled mid-handshake the thread cannot be
    interrupted, so a handle it still produces is closed once it arrives.
    """

    @abstractmethod
    def open(self, config: C) -> H:
        """Perform the handshake and login, returning the native client."""

    @abstractmethod
    def close(self, handle: H) -> None:
        """Close the remote session and release the handle."""

    async def connect(self, config: C) -> H:
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(None, self.open, config)
        try:
            return await asyncio.shield(future)
        except asyncio.CancelledError:
            future.add_done_callback(lambda f: self._release_abandoned(loop, f))
            raise

    def _release_abandoned(self, loop: asyncio.AbstractEventLoop, future: "asyncio.Future[H]") -> None:
        if future.cancelled() or future.exception() is not None:
            return
        release = loop.run_in_executor(None, self.close, future.result())
        release.add_done_callback(self._log_release_failure)

    def _log_release_failure(self, future: "asyncio.Future[None]") -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            # Nobody is awaiting this teardown any more
            logger.warning(
                "%s: closing an abandoned handle failed: %s",
                type(self).__name__, exc, exc_info=exc,
            )

    async def disconnect(self, handle: H) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self.close, handle)
