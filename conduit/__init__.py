"""conduit - independent connections to remote storage endpoints.

One ConnectionManager per endpoint, the same lifecycle for every backend:
object storage (S3 and compatibles), FTP/FTPS and SFTP.

Quick Start:
    from conduit import ConnectionManager, SftpAdapter, SftpConfig

    manager = ConnectionManager(SftpAdapter(), SftpConfig(host="sftp.example.com",
                                                          username="user",
                                                          password="pass"))
    sftp = await manager.connect()
    sftp.listdir(".")
    await manager.disconnect()

    # Object storage is connected as soon as the manager exists
    s3 = create_manager(ObjectStorageConfig(region="us-east-1"))
    s3.get_handle().list_buckets()
"""

from conduit.state import BackendKind, ConnectionState
from conduit.config import (
    Config,
    Credentials,
    ObjectStorageConfig,
    FtpConfig,
    SftpConfig,
)
from conduit.adapters import (
    ConnectionAdapter,
    EagerConnectionAdapter,
    ThreadedConnectionAdapter,
    S3Adapter,
    FtpAdapter,
    SftpAdapter,
)
from conduit.manager import ConnectionManager
from conduit.blocking import BlockingConnectionManager
from conduit.factory import (
    adapter_for,
    config_from_url,
    create_manager,
    manager_from_url,
)
from conduit.exceptions import (
    ErrorKind,
    ConduitError,
    ConfigInvalidError,
    HandshakeFailedError,
    NotConnectedError,
    AlreadyDisconnectedError,
    StateViolationError,
    RemoteNotFoundError,
    UnsupportedProtocolError,
    MissingDependencyError,
)

__all__ = [
    # State
    "BackendKind",
    "ConnectionState",
    # Configuration
    "Config",
    "Credentials",
    "ObjectStorageConfig",
    "FtpConfig",
    "SftpConfig",
    # Adapters
    "ConnectionAdapter",
    "EagerConnectionAdapter",
    "ThreadedConnectionAdapter",
    "S3Adapter",
    "FtpAdapter",
    "SftpAdapter",
    # Managers
    "ConnectionManager",
    "BlockingConnectionManager",
    # Convenience functions
    "adapter_for",
    "config_from_url",
    "create_manager",
    "manager_from_url",
    # Exceptions
    "ErrorKind",
    "ConduitError",
    "ConfigInvalidError",
    "HandshakeFailedError",
    "NotConnectedError",
    "AlreadyDisconnectedError",
    "StateViolationError",
    "RemoteNotFoundError",
    "UnsupportedProtocolError",
    "MissingDependencyError",
]

__version__ = "0.1.0"
