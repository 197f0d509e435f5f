"""Configuration management for conduit."""

from .base import Config, BaseRemoteConfig, ConfigInvalidError, RemoteNotFoundError
from .remotes import (
    Credentials,
    ObjectStorageConfig,
    FtpConfig,
    SftpConfig,
)

__all__ = [
    "Config",
    "BaseRemoteConfig",
    "ConfigInvalidError",
    "RemoteNotFoundError",
    "Credentials",
    "ObjectStorageConfig",
    "FtpConfig",
    "SftpConfig",
]
