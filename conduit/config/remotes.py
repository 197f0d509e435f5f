import copy
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Mapping, Optional, Union

from conduit.state import BackendKind
from .base import BaseRemoteConfig, ConfigInvalidError

TLS_OPTION_KEYS = frozenset({"cafile", "capath", "certfile", "keyfile", "verify"})


def _require(data: Dict[str, Any], key: str, label: str, backend: BackendKind) -> Any:
    if key not in data:
        raise ConfigInvalidError(f"{label} configuration requires '{key}' field", backend=backend)
    return data[key]


def _valid_port(port: Any) -> bool:
    return isinstance(port, int) and not isinstance(port, bool) and 1 <= port <= 65535


@dataclass(frozen=True)
class Credentials:
    """Access key pair for object storage. Passed through to the driver untouched."""

    access_key_id: str
    secret_access_key: str = field(repr=False)
    session_token: Optional[str] = field(default=None, repr=False)


@dataclass(frozen=True)
class ObjectStorageConfig(BaseRemoteConfig):
    type: ClassVar[str] = "s3"
    backend: ClassVar[BackendKind] = BackendKind.OBJECT_STORAGE

    region: str
    credentials: Optional[Credentials] = None
    endpoint: Optional[str] = None
    force_path_style: bool = False

    def __post_init__(self) -> None:
        self.validate()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ObjectStorageConfig":
        region = _require(data, "region", "Object storage", cls.backend)

        credentials = None
        key_id = data.get("access_key_id")
        secret = data.get("secret_access_key")
        if key_id is not None or secret is not None:
            if not key_id or not secret:
                raise ConfigInvalidError(
                    "Object storage credentials require both 'access_key_id' and 'secret_access_key'",
                    backend=cls.backend,
                )
            credentials = Credentials(
                access_key_id=key_id,
                secret_access_key=secret,
                session_token=data.get("session_token"),
            )

        return cls(
            region=region,
            credentials=credentials,
            endpoint=data.get("endpoint"),
            force_path_style=data.get("force_path_style", False),
        )

    def validate(self) -> None:
        if not self.region or not isinstance(self.region, str):
            raise self._invalid("Object storage region cannot be empty")

        if self.credentials is not None:
            if not isinstance(self.credentials, Credentials):
                raise self._invalid("Object storage credentials must be a Credentials pair")
            if not self.credentials.access_key_id or not self.credentials.secret_access_key:
                raise self._invalid("Object storage credentials must include both key id and secret")

        if self.endpoint is not None and not self.endpoint:
            raise self._invalid("Object storage endpoint override cannot be empty")

        if not isinstance(self.force_path_style, bool):
            raise self._invalid("Path-style setting must be a boolean")


@dataclass(frozen=True)
class FtpConfig(BaseRemoteConfig):
    type: ClassVar[str] = "ftp"
    backend: ClassVar[BackendKind] = BackendKind.FTP

    host: str
    port: int = 21
    user: str = "anonymous"
    password: str = field(default="", repr=False)
    tls: bool = False
    tls_options: Optional[Mapping[str, Any]] = None

    def __post_init__(self) -> None:
        # Snapshot the caller's mapping so later mutation cannot leak in
        if self.tls_options is not None:
            object.__setattr__(self, "tls_options", copy.deepcopy(dict(self.tls_options)))
        self.validate()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FtpConfig":
        host = _require(data, "host", "FTP", cls.backend)

        tls_options = data.get("tls_options")
        if tls_options is not None and not isinstance(tls_options, dict):
            raise ConfigInvalidError("FTP 'tls_options' must be a table", backend=cls.backend)

        return cls(
            host=host,
            port=data.get("port", 21),
            user=data.get("user") or "anonymous",
            password=data.get("password", ""),
            tls=data.get("tls", False),
            tls_options=tls_options,
        )

    def validate(self) -> None:
        if not self.host or not isinstance(self.host, str):
            raise self._invalid("FTP host cannot be empty")

        if not _valid_port(self.port):
            raise self._invalid("FTP port must be an integer between 1 and 65535")

        if not isinstance(self.tls, bool):
            raise self._invalid("TLS setting must be a boolean")

        if self.tls_options is not None:
            unknown = set(self.tls_options) - TLS_OPTION_KEYS
            if unknown:
                raise self._invalid(f"Unknown TLS options: {', '.join(sorted(unknown))}")
            if not self.tls:
                raise self._invalid("TLS options given but TLS is disabled")


@dataclass(frozen=True)
class SftpConfig(BaseRemoteConfig):
    type: ClassVar[str] = "sftp"
    backend: ClassVar[BackendKind] = BackendKind.SFTP

    host: str
    port: int = 22
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    private_key: Optional[Union[str, bytes]] = field(default=None, repr=False)
    passphrase: Optional[str] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        self.validate()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SftpConfig":
        host = _require(data, "host", "SFTP", cls.backend)

        return cls(
            host=host,
            port=data.get("port", 22),
            username=data.get("username"),
            password=data.get("password"),
            private_key=data.get("private_key"),
            passphrase=data.get("passphrase"),
        )

    def validate(self) -> None:
        if not self.host or not isinstance(self.host, str):
            raise self._invalid("SFTP host cannot be empty")

        if not _valid_port(self.port):
            raise self._invalid("SFTP port must be an integer between 1 and 65535")

        if self.private_key is not None and not isinstance(self.private_key, (str, bytes)):
            raise self._invalid("SFTP private key must be str or bytes")

        if self.passphrase is not None and self.private_key is None:
            raise self._invalid("SFTP passphrase given without a private key")
