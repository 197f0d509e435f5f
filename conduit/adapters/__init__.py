"""Backend adapters for conduit."""

from typing import Dict, List, Type

from conduit.adapters.adapter import (
    ConnectionAdapter,
    EagerConnectionAdapter,
    ThreadedConnectionAdapter,
)
from conduit.adapters.ftpadapter import FtpAdapter
from conduit.adapters.s3adapter import S3Adapter
from conduit.adapters.sftpadapter import SftpAdapter

_adapter_classes: List[Type[ConnectionAdapter]] = [
    S3Adapter,
    FtpAdapter,
    SftpAdapter,
]

# Keyed by the config type tag ("s3", "ftp", "sftp")
ADAPTERS: Dict[str, Type[ConnectionAdapter]] = {
    cls.config_class.type: cls for cls in _adapter_classes
}

__all__ = (
    ['ConnectionAdapter', 'EagerConnectionAdapter', 'ThreadedConnectionAdapter', 'ADAPTERS']
    + [cls.__name__ for cls in _adapter_classes]
)
