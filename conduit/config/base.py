import copy
import tomllib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, IO, List, Optional, Type, TYPE_CHECKING

from conduit.exceptions import ConfigInvalidError, RemoteNotFoundError
from conduit.state import BackendKind

if TYPE_CHECKING:
    from conduit.manager import ConnectionManager

__all__ = ["ConfigInvalidError", "RemoteNotFoundError", "BaseRemoteConfig", "Config"]


class BaseRemoteConfig(ABC):
    """Immutable description of how to reach one remote endpoint.

    Subclasses are frozen dataclasses which call ``validate()`` from
    ``__post_init__``, so an invalid config can never be constructed.
    """

    type: ClassVar[str]
    backend: ClassVar[BackendKind]

    @classmethod
    @abstractmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BaseRemoteConfig":
        """Create a remote configuration from a dictionary.

        Args:
            data: Dictionary containing configuration data

        Returns:
            Instance of the remote configuration class

        Raises:
            ConfigInvalidError: If configuration data is invalid
        """

    @abstractmethod
    def validate(self) -> None:
        """Validate the configuration.

        Raises:
            ConfigInvalidError: If configuration is invalid
        """

    def copy(self) -> "BaseRemoteConfig":
        """Return an independent deep copy of this configuration."""
        return copy.deepcopy(self)

    def _invalid(self, message: str) -> ConfigInvalidError:
        return ConfigInvalidError(message, backend=self.backend)


@dataclass
class Config:
    remotes: Dict[str, BaseRemoteConfig]
    warnings: List[str]

    @classmethod
    def from_file(cls, config_file: Optional[IO[bytes]]) -> "Config":
        """Load remote definitions from a TOML file.

        Each top-level table is one named remote and must carry a ``type``
        key. Remotes that fail validation are skipped and reported through
        ``get_warnings()``.

        Args:
            config_file: Open binary file handle to a TOML configuration file

        Returns:
            Config instance with all valid remote configurations loaded

        Raises:
            ConfigInvalidError: If the file cannot be parsed or holds no valid remote
        """
        if config_file is None:
            raise ConfigInvalidError("Configuration file not provided")

        try:
            config_data = tomllib.load(config_file)
        except tomllib.TOMLDecodeError as e:
            raise ConfigInvalidError(f"Failed to parse TOML configuration: {e}", cause=e)

        return cls.from_dict(config_data)

    @classmethod
    def from_dict(cls, config_data: Dict[str, Any]) -> "Config":
        remotes = {}
        warnings = []

        for remote_name, remote_data in config_data.items():
            if not isinstance(remote_data, dict):
                warnings.append(
                    f"Remote '{remote_name}' configuration must be a table - skipping"
                )
                continue

            if "type" not in remote_data:
                warnings.append(
                    f"Remote '{remote_name}' missing required 'type' field - skipping"
                )
                continue

            remote_type = remote_data["type"]
            config_class = cls._get_config_class(remote_type)

            if config_class is None:
                warnings.append(
                    f"Unknown remote type '{remote_type}' for remote '{remote_name}' - skipping"
                )
                continue

            try:
                remotes[remote_name] = config_class.from_dict(remote_data)
            except ConfigInvalidError as e:
                warnings.append(
                    f"Invalid configuration for remote '{remote_name}': {e} - skipping"
                )

        config = cls(remotes=remotes, warnings=warnings)
        config.validate()
        return config

    @staticmethod
    def _get_config_class(remote_type: str) -> Optional[Type[BaseRemoteConfig]]:
        """Get the configuration class for a given remote type.

        Args:
            remote_type: The type of remote ('s3', 'ftp' or 'sftp')

        Returns:
            Configuration class for the remote type, or None if unknown
        """
        from .remotes import ObjectStorageConfig, FtpConfig, SftpConfig

        type_mapping: Dict[str, Type[BaseRemoteConfig]] = {
            ObjectStorageConfig.type: ObjectStorageConfig,
            FtpConfig.type: FtpConfig,
            SftpConfig.type: SftpConfig,
        }

        return type_mapping.get(remote_type)

    def get_remote(self, name: str) -> BaseRemoteConfig:
        """Get a copy of a remote configuration by name.

        Raises:
            RemoteNotFoundError: If remote configuration is not found
        """
        if name not in self.remotes:
            available = ", ".join(self.remotes.keys())
            raise RemoteNotFoundError(
                f"Remote '{name}' not found in configuration. "
                f"Available remotes: {available}"
            )

        return self.remotes[name].copy()

    def create_manager(self, name: str, **options: Any) -> "ConnectionManager":
        """Build a new, independent ConnectionManager for the named remote."""
        from conduit.factory import create_manager

        return create_manager(self.get_remote(name), **options)

    def validate(self) -> None:
        if not self.remotes:
            raise ConfigInvalidError("Configuration must contain at least one valid remote")

    def list_remotes(self) -> Dict[str, str]:
        return {name: config.type for name, config in self.remotes.items()}

    def get_warnings(self) -> List[str]:
        """Get list of configuration warnings."""
        return self.warnings.copy()
