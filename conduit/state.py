from enum import Enum, auto


class BackendKind(Enum):
    OBJECT_STORAGE = auto()
    FTP = auto()
    SFTP = auto()


class ConnectionState(Enum):
    """Lifecycle states of a single ConnectionManager."""
    UNINITIALIZED = auto()
    CONNECTED = auto()
    DISCONNECTED = auto()
    FAILED = auto()

    @property
    def is_terminal(self) -> bool:
        return self == ConnectionState.DISCONNECTED

    def __str__(self) -> str:
        return self.name.lower()
