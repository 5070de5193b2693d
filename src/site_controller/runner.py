from __future__ import annotations

import asyncio
import locale
import logging
import os
from dataclasses import dataclass
from typing import Protocol, Sequence

log = logging.getLogger(__name__)


class RunnerError(Exception):
    """A platform command could not be executed at all."""


@dataclass
class CommandResult:
    exit_status: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_status == 0

    @property
    def output(self) -> str:
        return "\n".join(part.strip() for part in (self.stdout, self.stderr) if part.strip())


class CommandRunner(Protocol):
    async def run(self, args: Sequence[str]) -> CommandResult: ...

    async def close(self) -> None: ...


class LocalRunner:
    """Runs platform tools on this machine."""

    def __init__(self, encoding: str | None = None):
        self.encoding = encoding or locale.getpreferredencoding(False)

    def _decode(self, data: bytes | None) -> str:
        return (data or b"").decode(self.encoding, errors="replace")

    async def run(self, args: Sequence[str]) -> CommandResult:
        log.debug("Running command: %s", " ".join(args))
        try:
            proc = await asyncio.create_subprocess_exec(
                os.path.expandvars(args[0]),
                *args[1:],
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise RunnerError(f"Cannot run {args[0]}: {exc}") from exc
        stdout, stderr = await proc.communicate()
        result = CommandResult(proc.returncode, self._decode(stdout), self._decode(stderr))
        log.debug("Command finished (exit %d): %s", result.exit_status, " ".join(args))
        return result

    async def close(self) -> None:
        pass
