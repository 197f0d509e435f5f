"""Centralized exception definitions for conduit."""

from enum import Enum
from typing import Optional, Type, TypeVar

from conduit.state import BackendKind


class ErrorKind(Enum):
    CONFIG_INVALID = "ConfigInvalid"
    HANDSHAKE_FAILED = "HandshakeFailed"
    NOT_CONNECTED = "NotConnected"
    ALREADY_DISCONNECTED = "AlreadyDisconnected"
    STATE_VIOLATION = "StateViolation"


class ConduitError(Exception):
    """Base exception for all conduit errors.

    Every error carries its ``kind``, the ``backend`` it was raised for (when
    known) and the original ``cause``. The cause is kept as an object so that
    callers can inspect it without matching on message text.
    """

    kind: ErrorKind

    def __init__(
        self,
        message: str,
        *,
        backend: Optional[BackendKind] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.backend = backend
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


# Configuration Exceptions


class ConfigInvalidError(ConduitError):
    """A required configuration field is missing or malformed."""

    kind = ErrorKind.CONFIG_INVALID


class RemoteNotFoundError(ConfigInvalidError):
    """Exception raised when a named remote is not in the configuration."""


class UnsupportedProtocolError(ConfigInvalidError):
    """Raised when a URL names a scheme no adapter handles."""


class MissingDependencyError(ConfigInvalidError):
    """Raised when the driver library for a backend is not installed."""


# Connection Exceptions


class HandshakeFailedError(ConduitError):
    """Network handshake or authentication with the remote server failed."""

    kind = ErrorKind.HANDSHAKE_FAILED


class NotConnectedError(ConduitError):
    """A handle was requested while the manager is not connected."""

    kind = ErrorKind.NOT_CONNECTED


class AlreadyDisconnectedError(ConduitError):
    """The manager has been disconnected and cannot be reused."""

    kind = ErrorKind.ALREADY_DISCONNECTED


class StateViolationError(ConduitError):
    """Any other lifecycle precondition was breached."""

    kind = ErrorKind.STATE_VIOLATION


E = TypeVar("E", bound=ConduitError)


def wrap_error(
    exc: BaseException,
    error_cls: Type[E],
    backend: Optional[BackendKind],
    message: str,
) -> ConduitError:
    """Normalize ``exc`` into the conduit taxonomy.

    Errors that already belong to the taxonomy are returned unchanged (with
    the backend filled in if it was unknown), anything else is wrapped in
    ``error_cls`` with ``exc`` kept as the cause.
    """
    if isinstance(exc, ConduitError):
        if exc.backend is None:
            exc.backend = backend
        return exc
    return error_cls(f"{message}: {exc}", backend=backend, cause=exc)
