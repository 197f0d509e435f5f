"""Lifecycle management for a single remote connection.

A ConnectionManager owns exactly one adapter and one configuration snapshot
and moves through the states of ConnectionState:

    UNINITIALIZED --connect ok--> CONNECTED --disconnect--> DISCONNECTED
          |                           ^
          +------connect failed--> FAILED (retry allowed unless disabled)

DISCONNECTED is terminal; build a new manager to connect again. Managers are
never shared or cached, any number may exist for the same endpoint.

Example:
    manager = ConnectionManager(SftpAdapter(), SftpConfig(host="sftp.example.com"))
    sftp = await manager.connect()
    ...
    await manager.disconnect()
"""

import asyncio
import logging
from types import TracebackType
from typing import Generic, Optional, TypeVar
from typing_extensions import Self

from conduit.adapters.adapter import ConnectionAdapter, EagerConnectionAdapter
from conduit.config.base import BaseRemoteConfig
from conduit.exceptions import (
    AlreadyDisconnectedError,
    ConduitError,
    ConfigInvalidError,
    HandshakeFailedError,
    NotConnectedError,
    StateViolationError,
    wrap_error,
)
from conduit.state import BackendKind, ConnectionState

logger = logging.getLogger(__name__)

C = TypeVar("C", bound=BaseRemoteConfig)
H = TypeVar("H")


class ConnectionManager(Generic[C, H]):
    """Owns one adapter, one config snapshot and the resulting handle.

    Args:
        adapter: A fresh adapter instance, owned by this manager from now on
        config: The endpoint configuration; a private copy is kept
        eager: Connect from the constructor without a network round-trip.
            Defaults to the adapter's policy (on for object storage). Only
            adapters that build their handle locally can be eager.
        retry_after_failure: Whether connect() may be retried after a failed
            attempt. When False a FAILED manager must be discarded.

    Raises:
        ConfigInvalidError: If the config does not suit the adapter, or an
            eager connection cannot be built from it.
    """

    def __init__(
        self,
        adapter: ConnectionAdapter[C, H],
        config: C,
        *,
        eager: Optional[bool] = None,
        retry_after_failure: bool = True,
    ) -> None:
        if not isinstance(config, adapter.config_class):
            raise ConfigInvalidError(
                f"{type(adapter).__name__} expects {adapter.config_class.__name__}, "
                f"got {type(config).__name__}",
                backend=adapter.backend,
            )

        self._adapter = adapter
        self._config: C = config.copy()  # type: ignore[assignment]
        self._retry_after_failure = retry_after_failure
        self._state = ConnectionState.UNINITIALIZED
        self._handle: Optional[H] = None
        self._lock = asyncio.Lock()

        if eager is None:
            eager = adapter.eager
        if eager:
            if not isinstance(adapter, EagerConnectionAdapter):
                raise ConfigInvalidError(
                    f"{type(adapter).__name__} needs a network handshake and cannot connect eagerly",
                    backend=adapter.backend,
                )
            self._open_eagerly(adapter)

    def _open_eagerly(self, adapter: EagerConnectionAdapter[C, H]) -> None:
        try:
            handle = adapter.open(self.get_config())
        except Exception as e:
            self._transition(ConnectionState.FAILED)
            raise wrap_error(e, ConfigInvalidError, self.backend, "Unable to build client")
        self._handle = handle
        self._transition(ConnectionState.CONNECTED)

    def _transition(self, state: ConnectionState) -> None:
        logger.debug("%s connection %s -> %s", self.backend.name, self._state, state)
        self._state = state

    @property
    def backend(self) -> BackendKind:
        return self._adapter.backend

    @property
    def state(self) -> ConnectionState:
        return self._state

    def get_config(self) -> C:
        """Return an independent copy of the configuration snapshot."""
        return self._config.copy()  # type: ignore[return-value]

    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    def is_alive(self) -> bool:
        """Connected and the adapter's local view of the handle agrees.

        No network probe is made; a peer that silently went away is only
        noticed on the next operation on the handle.
        """
        return self.is_connected() and self._adapter.is_alive(self._handle)

    def get_handle(self) -> H:
        """Return the native client.

        Raises:
            NotConnectedError: If the manager is not in the CONNECTED state.
        """
        if self._state is not ConnectionState.CONNECTED:
            raise NotConnectedError(
                f"{self.backend.name} connection is {self._state}; call connect() first",
                backend=self.backend,
            )
        return self._handle  # type: ignore[return-value]

    async def connect(self) -> H:
        """Establish the connection and return the native handle.

        Concurrent callers are serialized; whoever acquires the lock after a
        successful handshake receives the existing handle without a second
        handshake.

        Raises:
            AlreadyDisconnectedError: If the manager was disconnected.
            StateViolationError: If a previous attempt failed and retries are disabled.
            HandshakeFailedError: If the remote handshake or login failed.
            ConfigInvalidError: If the adapter rejected the configuration.
        """
        async with self._lock:
            if self._state is ConnectionState.CONNECTED:
                return self._handle  # type: ignore[return-value]

            if self._state.is_terminal:
                raise AlreadyDisconnectedError(
                    f"{self.backend.name} connection was disconnected; create a new manager",
                    backend=self.backend,
                )

            if self._state is ConnectionState.FAILED and not self._retry_after_failure:
                raise StateViolationError(
                    f"{self.backend.name} connection failed and retries are disabled",
                    backend=self.backend,
                )

            try:
                handle = await self._adapter.connect(self.get_config())
            except asyncio.CancelledError:
                self._transition(ConnectionState.FAILED)
                raise
            except Exception as e:
                self._transition(ConnectionState.FAILED)
                raise wrap_error(
                    e, HandshakeFailedError, self.backend, f"{self.backend.name} handshake failed"
                )

            self._handle = handle
            self._transition(ConnectionState.CONNECTED)
            return handle

    async def disconnect(self) -> None:
        """Release the handle and close the remote session.

        A no-op when no handle is held, so calling it twice is safe. The
        manager is DISCONNECTED afterwards even if the remote side failed to
        acknowledge the teardown.

        Raises:
            HandshakeFailedError: If closing the remote session failed.
        """
        async with self._lock:
            if self._handle is None:
                return

            handle, self._handle = self._handle, None
            try:
                await self._adapter.disconnect(handle)
            except ConduitError:
                raise
            except Exception as e:
                raise HandshakeFailedError(
                    f"{self.backend.name} teardown failed: {e}", backend=self.backend, cause=e
                )
            finally:
                self._transition(ConnectionState.DISCONNECTED)

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.disconnect()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.backend.name} {self._state}>"
