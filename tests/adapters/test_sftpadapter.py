"""Tests for SftpAdapter class."""

import asyncio
import io
import threading
import unittest
from unittest.mock import Mock, patch

import paramiko

from conduit.adapters.sftpadapter import SftpAdapter, load_private_key
from conduit.config.remotes import SftpConfig
from conduit.exceptions import ConfigInvalidError, HandshakeFailedError, NotConnectedError
from conduit.factory import create_manager
from conduit.state import BackendKind, ConnectionState
from tests.fixtures.test_data import TestDataFixtures


def make_private_key(passphrase=None):
    key = paramiko.RSAKey.generate(bits=2048)
    buffer = io.StringIO()
    key.write_private_key(buffer, password=passphrase)
    return buffer.getvalue()


class TestLoadPrivateKey(unittest.TestCase):

    def test_plain_key(self):
        key = load_private_key(make_private_key(), None)

        self.assertIsInstance(key, paramiko.RSAKey)

    def test_bytes_key_with_passphrase(self):
        material = make_private_key("secret").encode()

        key = load_private_key(material, "secret")

        self.assertIsInstance(key, paramiko.RSAKey)

    def test_encrypted_key_without_passphrase(self):
        with self.assertRaises(ConfigInvalidError) as context:
            load_private_key(make_private_key("secret"), None)

        self.assertEqual(context.exception.backend, BackendKind.SFTP)

    def test_garbage(self):
        with self.assertRaises(ConfigInvalidError):
            load_private_key("not a key", None)


class TestSftpAdapter(unittest.TestCase):
    """Test cases for SftpAdapter class."""

    @patch('conduit.adapters.sftpadapter.paramiko.SSHClient')
    def test_open_with_password(self, mock_ssh_class):
        mock_ssh = Mock()
        mock_ssh_class.return_value = mock_ssh

        handle = SftpAdapter().open(TestDataFixtures.sftp_config())

        self.assertIs(handle, mock_ssh.open_sftp.return_value)
        mock_ssh.connect.assert_called_once_with(
            hostname="sftp.example.com",
            port=22,
            timeout=10.0,
            username="user",
            password="pass",
            look_for_keys=False,
            allow_agent=False,
        )
        policy = mock_ssh.set_missing_host_key_policy.call_args.args[0]
        self.assertIsInstance(policy, paramiko.AutoAddPolicy)

    @patch('conduit.adapters.sftpadapter.paramiko.SSHClient')
    def test_open_with_private_key(self, mock_ssh_class):
        mock_ssh = Mock()
        mock_ssh_class.return_value = mock_ssh
        config = SftpConfig(
            host="sftp.example.com",
            username="user",
            private_key=make_private_key("secret"),
            passphrase="secret",
        )

        SftpAdapter().open(config)

        kwargs = mock_ssh.connect.call_args.kwargs
        self.assertIsInstance(kwargs["pkey"], paramiko.RSAKey)
        self.assertNotIn("look_for_keys", kwargs)
        self.assertNotIn("password", kwargs)

    @patch('conduit.adapters.sftpadapter.paramiko.SSHClient')
    def test_malformed_private_key(self, mock_ssh_class):
        config = SftpConfig(host="sftp.example.com", private_key="not a key")

        with self.assertRaises(ConfigInvalidError):
            SftpAdapter().open(config)

        mock_ssh_class.assert_not_called()

    @patch('conduit.adapters.sftpadapter.paramiko.SSHClient')
    def test_subsystem_failure_closes_connection(self, mock_ssh_class):
        mock_ssh = Mock()
        mock_ssh.open_sftp.side_effect = paramiko.SSHException("subsystem request failed")
        mock_ssh_class.return_value = mock_ssh

        with self.assertRaises(paramiko.SSHException):
            SftpAdapter().open(TestDataFixtures.sftp_config())

        mock_ssh.close.assert_called_once_with()

    @patch('conduit.adapters.sftpadapter.paramiko.SSHClient')
    def test_close(self, mock_ssh_class):
        mock_ssh = Mock()
        mock_ssh.get_transport.return_value.is_active.return_value = True
        mock_ssh_class.return_value = mock_ssh
        adapter = SftpAdapter()

        handle = adapter.open(TestDataFixtures.sftp_config())
        self.assertTrue(adapter.is_alive(handle))

        adapter.close(handle)

        self.assertFalse(adapter.is_alive(handle))
        handle.close.assert_called_once_with()
        mock_ssh.close.assert_called_once_with()


class TestSftpManager(unittest.TestCase):
    """SFTP managers connect through a handshake."""

    @patch('conduit.adapters.sftpadapter.paramiko.SSHClient')
    def test_connect_use_disconnect(self, mock_ssh_class):
        mock_ssh = Mock()
        mock_ssh_class.return_value = mock_ssh
        manager = create_manager(TestDataFixtures.sftp_config())

        async def run_test():
            await manager.connect()
            self.assertIs(manager.get_handle(), mock_ssh.open_sftp.return_value)
            await manager.disconnect()

        asyncio.run(run_test())

        with self.assertRaises(NotConnectedError):
            manager.get_handle()
        self.assertEqual(manager.state, ConnectionState.DISCONNECTED)
        mock_ssh.close.assert_called_once_with()

    @patch('conduit.adapters.sftpadapter.paramiko.SSHClient')
    def test_authentication_rejected(self, mock_ssh_class):
        mock_ssh = Mock()
        mock_ssh.connect.side_effect = paramiko.AuthenticationException("Authentication failed.")
        mock_ssh_class.return_value = mock_ssh
        manager = create_manager(TestDataFixtures.sftp_config())

        with self.assertRaises(HandshakeFailedError) as context:
            asyncio.run(manager.connect())

        self.assertIsInstance(context.exception.cause, paramiko.AuthenticationException)
        self.assertEqual(context.exception.backend, BackendKind.SFTP)
        self.assertFalse(manager.is_connected())
        mock_ssh.close.assert_called_once_with()

    @patch('conduit.adapters.sftpadapter.paramiko.SSHClient')
    def test_connection_refused(self, mock_ssh_class):
        mock_ssh = Mock()
        mock_ssh.connect.side_effect = ConnectionRefusedError(111, "Connection refused")
        mock_ssh_class.return_value = mock_ssh
        manager = create_manager(SftpConfig(host="127.0.0.1", port=2222))

        with self.assertRaises(HandshakeFailedError):
            asyncio.run(manager.connect())

        self.assertEqual(manager.state, ConnectionState.FAILED)

    @patch('conduit.adapters.sftpadapter.paramiko.SSHClient')
    def test_late_handshake_after_retry(self, mock_ssh_class):
        release = threading.Event()
        late_closed = threading.Event()

        late_ssh = Mock()
        late_ssh.connect.side_effect = lambda **kwargs: release.wait(5)
        late_ssh.close.side_effect = late_closed.set
        current_ssh = Mock()
        current_ssh.get_transport.return_value.is_active.return_value = True
        mock_ssh_class.side_effect = [late_ssh, current_ssh]

        manager = create_manager(TestDataFixtures.sftp_config())

        async def run_test():
            with self.assertRaises(asyncio.TimeoutError):
                await asyncio.wait_for(manager.connect(), 0.05)
            self.assertEqual(manager.state, ConnectionState.FAILED)

            handle = await manager.connect()
            self.assertIs(handle, current_ssh.open_sftp.return_value)

            release.set()
            self.assertTrue(await asyncio.to_thread(late_closed.wait, 5))

            self.assertTrue(manager.is_alive())
            current_ssh.close.assert_not_called()
            late_ssh.open_sftp.return_value.close.assert_called_once_with()

            await manager.disconnect()

        asyncio.run(run_test())

        current_ssh.close.assert_called_once_with()
        current_ssh.open_sftp.return_value.close.assert_called_once_with()
        late_ssh.close.assert_called_once_with()
        self.assertEqual(manager.state, ConnectionState.DISCONNECTED)

    def test_malformed_key_is_config_invalid(self):
        manager = create_manager(SftpConfig(host="sftp.example.com", private_key="not a key"))

        with self.assertRaises(ConfigInvalidError):
            asyncio.run(manager.connect())

        self.assertEqual(manager.state, ConnectionState.FAILED)


if __name__ == "__main__":
    unittest.main()
