"""SSH remote execution."""

import logging
from typing import Optional

import asyncssh

from infrakit_aliyun.providers.base import RemoteExecutor


logger = logging.getLogger(__name__)


class SSHExecutor(RemoteExecutor):
    """Runs commands over SSH with password authentication."""

    def __init__(
        self,
        host: str,
        port: int = 22,
        username: str = "root",
        password: Optional[str] = None,
        connect_timeout: int = 30,
        command_timeout: Optional[int] = None,
    ):
        """Initialize SSH executor."""
        self.host = host
        self.port = port
        self.username = username
        self._password = password
        self.connect_timeout = connect_timeout
        self.command_timeout = command_timeout
        self.conn: Optional[asyncssh.SSHClientConnection] = None

    async def connect(self) -> None:
        """Open the SSH connection."""
        logger.debug(f"SSH connecting to {self.username}@{self.host}:{self.port}")
        self.conn = await asyncssh.connect(
            self.host,
            port=self.port,
            username=self.username,
            password=self._password,
            known_hosts=None,
            client_keys=None,
            connect_timeout=self.connect_timeout,
        )

    async def run(self, command: str) -> str:
        """Run a command, raising on a non-zero exit status."""
        if self.conn is None:
            raise RuntimeError(f"SSH session to {self.host} is not connected")

        result = await self.conn.run(command, check=True, timeout=self.command_timeout)
        output = result.stdout or ""
        if isinstance(output, bytes):
            output = output.decode(errors="replace")
        return output

    async def close(self) -> None:
        """Close the SSH connection."""
        if self.conn is not None:
            self.conn.close()
            await self.conn.wait_closed()
            self.conn = None


def ssh_executor(host: str, port: int, username: str, password: Optional[str]) -> SSHExecutor:
    """Default executor factory used by the provisioner."""
    return SSHExecutor(host, port=port, username=username, password=password)
