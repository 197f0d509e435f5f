"""SFTP adapter using paramiko."""

import io
import threading
from typing import Any, Dict, Optional

from conduit.adapters.adapter import ThreadedConnectionAdapter
from conduit.config.remotes import SftpConfig
from conduit.exceptions import ConfigInvalidError, MissingDependencyError
from conduit.state import BackendKind

try:
    import paramiko
    PARAMIKO_AVAILABLE = True
except ImportError:
    PARAMIKO_AVAILABLE = False


def load_private_key(material: Any, passphrase: Optional[str]) -> "paramiko.PKey":
    """Parse in-memory key material, trying each key type paramiko supports.

    Raises:
        ConfigInvalidError: If the material is not a usable private key.
    """
    text = material.decode() if isinstance(material, bytes) else material

    for key_class in (paramiko.Ed25519Key, paramiko.ECDSAKey, paramiko.RSAKey):
        try:
            return key_class.from_private_key(io.StringIO(text), password=passphrase)
        except paramiko.PasswordRequiredException as e:
            raise ConfigInvalidError(
                "SFTP private key is encrypted and needs a passphrase",
                backend=BackendKind.SFTP,
                cause=e,
            )
        except (paramiko.SSHException, ValueError):
            continue

    raise ConfigInvalidError("Unable to load SFTP private key", backend=BackendKind.SFTP)


class SftpAdapter(ThreadedConnectionAdapter[SftpConfig, "paramiko.SFTPClient"]):
    """SFTP over a paramiko SSH connection.

    The handle is the ``paramiko.SFTPClient``. The SSHClient carrying each
    handle is kept by the adapter, keyed by handle, and closed together with
    it. A handshake abandoned by a cancelled caller can finish after a retry
    has opened a newer handle, so several may be registered at once.
    """

    backend = BackendKind.SFTP
    config_class = SftpConfig

    def __init__(self, timeout: float = 10.0) -> None:
        if not PARAMIKO_AVAILABLE:
            raise MissingDependencyError(
                "SFTP support requires paramiko. Install with: pip install paramiko",
                backend=self.backend,
            )

        self.timeout = timeout
        self._ssh_clients: Dict[int, "paramiko.SSHClient"] = {}
        # open() and close() run on executor threads
        self._ssh_clients_lock = threading.Lock()

    def open(self, config: SftpConfig) -> "paramiko.SFTPClient":
        connect_kwargs: Dict[str, Any] = {
            "hostname": config.host,
            "port": config.port,
            "timeout": self.timeout,
        }

        if config.username:
            connect_kwargs["username"] = config.username

        if config.password:
            connect_kwargs["password"] = config.password

        if config.private_key is not None:
            connect_kwargs["pkey"] = load_private_key(config.private_key, config.passphrase)
        else:
            connect_kwargs["look_for_keys"] = False
            connect_kwargs["allow_agent"] = False

        ssh_client = paramiko.SSHClient()
        ssh_client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        try:
            ssh_client.connect(**connect_kwargs)
            sftp_client = ssh_client.open_sftp()
        except BaseException:
            ssh_client.close()
            raise

        with self._ssh_clients_lock:
            self._ssh_clients[id(sftp_client)] = ssh_client
        return sftp_client

    def _ssh_client_for(self, handle: "paramiko.SFTPClient") -> Optional["paramiko.SSHClient"]:
        with self._ssh_clients_lock:
            return self._ssh_clients.get(id(handle))

    def close(self, handle: "paramiko.SFTPClient") -> None:
        with self._ssh_clients_lock:
            ssh_client = self._ssh_clients.pop(id(handle), None)

        handle.close()
        if ssh_client is not None:
            ssh_client.close()

    def is_alive(self, handle: "paramiko.SFTPClient") -> bool:
        if handle is None:
            return False
        ssh_client = self._ssh_client_for(handle)
        if ssh_client is None:
            return False
        transport = ssh_client.get_transport()
        return transport is not None and transport.is_active()
