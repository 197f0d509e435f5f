"""Object storage adapter using boto3."""

from typing import Any, Dict

from conduit.adapters.adapter import EagerConnectionAdapter
from conduit.config.remotes import ObjectStorageConfig
from conduit.exceptions import MissingDependencyError
from conduit.state import BackendKind

try:
    import boto3
    from botocore.config import Config as BotoConfig
    BOTO3_AVAILABLE = True
except ImportError:
    BOTO3_AVAILABLE = False


class S3Adapter(EagerConnectionAdapter[ObjectStorageConfig, Any]):
    """S3 and S3-compatible object storage.

    The handle is a botocore S3 client. Building it is purely local: boto3
    does not contact the service until the first request is made, so a
    successful connect says nothing about reachability.
    """

    backend = BackendKind.OBJECT_STORAGE
    config_class = ObjectStorageConfig

    def __init__(self) -> None:
        if not BOTO3_AVAILABLE:
            raise MissingDependencyError(
                "Object storage support requires boto3. Install with: pip install boto3",
                backend=self.backend,
            )

    def open(self, config: ObjectStorageConfig) -> Any:
        session_kwargs: Dict[str, Any] = {"region_name": config.region}

        if config.credentials is not None:
            session_kwargs["aws_access_key_id"] = config.credentials.access_key_id
            session_kwargs["aws_secret_access_key"] = config.credentials.secret_access_key
            if config.credentials.session_token:
                session_kwargs["aws_session_token"] = config.credentials.session_token

        session = boto3.session.Session(**session_kwargs)

        client_config = None
        if config.force_path_style:
            client_config = BotoConfig(s3={"addressing_style": "path"})

        return session.client(
            "s3",
            endpoint_url=config.endpoint,
            config=client_config,
        )

    def close(self, handle: Any) -> None:
        handle.close()
