from __future__ import annotations

import asyncio
import logging
import subprocess
from pathlib import Path
from typing import Sequence

import asyncssh

from site_controller.runner import CommandResult, RunnerError

log = logging.getLogger(__name__)


CONNECT_TIMEOUT = 3


def windows_command_line(args: Sequence[str]) -> str:
    """Quote an argument vector the way the Windows C runtime parses it."""
    return subprocess.list2cmdline(list(args))


class SSHRunner:
    """Runs platform tools on a remote Windows host through its OpenSSH server."""

    def __init__(self, host: str, connect_timeout: float = CONNECT_TIMEOUT):
        self.host = host
        self.connect_timeout = connect_timeout
        self._conn: asyncssh.SSHClientConnection | None = None

    async def connect(self) -> None:
        if self._conn is not None:
            return
        log.info("Connecting to %s", self.host)
        ssh_config = Path.home() / ".ssh" / "config"
        config_paths = [str(ssh_config)] if ssh_config.exists() else []
        try:
            try:
                conn = await asyncio.wait_for(
                    asyncssh.connect(self.host, known_hosts=None, config=config_paths),
                    timeout=self.connect_timeout,
                )
            except asyncssh.ConfigParseError:
                log.warning("SSH config parse failed for %s, retrying without config", self.host, exc_info=True)
                conn = await asyncio.wait_for(
                    asyncssh.connect(self.host, known_hosts=None),
                    timeout=self.connect_timeout,
                )
        except asyncio.TimeoutError as exc:
            raise RunnerError(f"SSH connection timed out for {self.host}") from exc
        except (OSError, asyncssh.Error) as exc:
            raise RunnerError(f"SSH connection failed for {self.host}: {exc}") from exc
        self._conn = conn
        log.info("Connected to %s", self.host)

    async def run(self, args: Sequence[str]) -> CommandResult:
        await self.connect()
        command = windows_command_line(args)
        log.debug("Running command on %s: %s", self.host, command)
        try:
            result = await self._conn.run(command, check=False)
        except (OSError, asyncssh.Error) as exc:
            raise RunnerError(f"Command failed on {self.host} ({command}): {exc}") from exc
        stdout = result.stdout or ""
        stderr = result.stderr or ""
        if stderr:
            log.debug("Command stderr on %s (%s): %s", self.host, command, stderr.strip())
        # exit_status is None when the remote side reports a signal instead
        exit_status = result.exit_status if result.exit_status is not None else -1
        log.debug("Command on %s finished (exit %d): %s", self.host, exit_status, command)
        return CommandResult(exit_status, str(stdout), str(stderr))

    async def close(self) -> None:
        if self._conn is None:
            return
        log.info("Closing SSH connection to %s", self.host)
        self._conn.close()
        await self._conn.wait_closed()
        self._conn = None
