"""Tests for SSH remote execution."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from infrakit_aliyun.providers.ssh import SSHExecutor, ssh_executor


@pytest.fixture
def mock_connection():
    """Mock asyncssh connection."""
    conn = MagicMock()
    conn.run = AsyncMock(return_value=MagicMock(stdout="hello\n", exit_status=0))
    conn.wait_closed = AsyncMock()
    return conn


@pytest.mark.asyncio
class TestSSHExecutor:
    """Test SSHExecutor."""

    async def test_run_command(self, mock_connection):
        """Commands run over a password-authenticated session."""
        with patch("infrakit_aliyun.providers.ssh.asyncssh.connect", new_callable=AsyncMock) as mock_connect:
            mock_connect.return_value = mock_connection

            async with SSHExecutor("10.0.0.5", username="root", password="secret") as executor:
                output = await executor.run("docker info")

        assert output == "hello\n"
        mock_connect.assert_called_once()
        args, kwargs = mock_connect.call_args
        assert args == ("10.0.0.5",)
        assert kwargs["port"] == 22
        assert kwargs["username"] == "root"
        assert kwargs["password"] == "secret"
        assert kwargs["known_hosts"] is None
        mock_connection.run.assert_called_once_with("docker info", check=True, timeout=None)
        mock_connection.close.assert_called_once()
        mock_connection.wait_closed.assert_awaited_once()

    async def test_run_without_connection(self):
        """Running before connecting is an error."""
        executor = SSHExecutor("10.0.0.5")
        with pytest.raises(RuntimeError, match="not connected"):
            await executor.run("true")

    async def test_command_failure_closes_session(self, mock_connection):
        """The session is closed when the command fails."""
        mock_connection.run.side_effect = OSError("channel closed")
        with patch("infrakit_aliyun.providers.ssh.asyncssh.connect", new_callable=AsyncMock) as mock_connect:
            mock_connect.return_value = mock_connection

            with pytest.raises(OSError):
                async with SSHExecutor("10.0.0.5") as executor:
                    await executor.run("false")

        mock_connection.close.assert_called_once()

    async def test_bytes_output_decoded(self, mock_connection):
        """Binary output is decoded."""
        mock_connection.run.return_value = MagicMock(stdout=b"done")
        with patch("infrakit_aliyun.providers.ssh.asyncssh.connect", new_callable=AsyncMock) as mock_connect:
            mock_connect.return_value = mock_connection
            async with SSHExecutor("10.0.0.5") as executor:
                assert await executor.run("true") == "done"


def test_factory():
    """The default factory passes connection details through."""
    executor = ssh_executor("10.0.0.7", 2222, "admin", "pw")

    assert isinstance(executor, SSHExecutor)
    assert (executor.host, executor.port, executor.username) == ("10.0.0.7", 2222, "admin")
