"""FTP/FTPS adapter using ftplib."""

import ssl
from ftplib import FTP, FTP_TLS, error_perm, error_reply, error_temp
from typing import Any, Mapping, Optional, Union

from conduit.adapters.adapter import ThreadedConnectionAdapter
from conduit.config.remotes import FtpConfig
from conduit.state import BackendKind

FtpHandle = Union[FTP, FTP_TLS]


def build_ssl_context(options: Optional[Mapping[str, Any]]) -> ssl.SSLContext:
    """Build a client-side SSL context from FtpConfig.tls_options."""
    options = options or {}

    context = ssl.create_default_context(
        cafile=options.get("cafile"),
        capath=options.get("capath"),
    )

    if options.get("certfile"):
        context.load_cert_chain(options["certfile"], options.get("keyfile"))

    if not options.get("verify", True):
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

    return context


class FtpAdapter(ThreadedConnectionAdapter[FtpConfig, FtpHandle]):
    """FTP and explicit FTPS.

    With ``tls`` enabled the control channel is secured with ``AUTH TLS``
    before login and the data channel with ``PROT P`` after it.
    """

    backend = BackendKind.FTP
    config_class = FtpConfig

    def __init__(self, timeout: float = 10.0) -> None:
        self.timeout = timeout

    def _create_client(self, config: FtpConfig) -> FtpHandle:
        if config.tls:
            return FTP_TLS(context=build_ssl_context(config.tls_options), timeout=self.timeout)
        return FTP(timeout=self.timeout)

    def open(self, config: FtpConfig) -> FtpHandle:
        client = self._create_client(config)
        try:
            client.connect(config.host, config.port)
            if config.tls:
                client.auth()
            client.login(user=config.user, passwd=config.password)
            if config.tls:
                client.prot_p()
        except BaseException:
            client.close()
            raise

        return client

    def close(self, handle: FtpHandle) -> None:
        try:
            handle.quit()
        except (error_perm, error_temp, error_reply, OSError, EOFError):
            # Server already gone or refused QUIT; drop the socket ourselves
            handle.close()

    def is_alive(self, handle: FtpHandle) -> bool:
        return handle is not None and handle.sock is not None
