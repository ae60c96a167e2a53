"""Synchronous execution of external SDK/NDK tools.

All packaging steps are performed by external programs (aapt, zipalign,
apksigner, adb, readelf, keytool). They are described as :class:`Command`
values and executed by a :class:`ToolInvoker`, which tests replace with a fake
that records commands instead of spawning processes.
"""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from common.errors import ApkIoError, CommandFailed, CommandNotFound
from common.logging_utils import Timer, extra_context, is_debug_enabled

logger = logging.getLogger(__name__)

Arg = Union[str, Path, int]


@dataclass
class Command:
    """A tool invocation: program, arguments, working directory, extra env.

    ``env`` entries are added to the inherited environment and are never part
    of the displayed command line, which makes them the channel for secrets.
    """

    program: str
    args: List[str] = field(default_factory=list)
    cwd: Optional[Path] = None
    env: Dict[str, str] = field(default_factory=dict)

    def arg(self, *values: Arg) -> "Command":
        self.args.extend(str(v) for v in values)
        return self

    @property
    def argv(self) -> List[str]:
        return [str(self.program)] + list(self.args)

    @property
    def name(self) -> str:
        return os.path.basename(str(self.program))

    def display(self) -> str:
        return " ".join(self.argv)

    def __str__(self) -> str:
        return self.display()


@dataclass
class ToolResult:
    """Exit status and captured output of a finished command."""

    returncode: int
    stdout: bytes = b""
    stderr: bytes = b""

    @property
    def success(self) -> bool:
        return self.returncode == 0


class ToolInvoker:
    """Runs commands with :mod:`subprocess`, blocking until they exit."""

    def run(self, command: Command, capture: bool = False) -> ToolResult:
        """Execute ``command`` and return its result without judging the status.

        Raises:
            CommandNotFound: If the program does not exist.
            ApkIoError: If the process could not be spawned.
        """
        env = None
        if command.env:
            env = os.environ.copy()
            env.update(command.env)

        with Timer() as t:
            try:
                proc = subprocess.run(  # noqa: S603
                    command.argv,
                    cwd=str(command.cwd) if command.cwd is not None else None,
                    env=env,
                    capture_output=capture,
                    check=False,
                )
            except FileNotFoundError as exc:
                raise CommandNotFound(command.name) from exc
            except OSError as exc:
                raise ApkIoError(f"Failed to run {command.name}: {exc}") from exc

        if is_debug_enabled(logger):
            logger.debug(
                "Tool finished: %s",
                command.display(),
                extra=extra_context(
                    event="tool_exit",
                    component="invoker",
                    tool=command.name,
                    returncode=proc.returncode,
                    duration_ms=t.duration_ms(),
                ),
            )
        return ToolResult(
            returncode=proc.returncode,
            stdout=proc.stdout or b"",
            stderr=proc.stderr or b"",
        )

    def check(self, command: Command) -> None:
        """Run ``command`` and raise :class:`CommandFailed` on non-zero exit."""
        logger.info("Running: %s", command.display())
        result = self.run(command)
        if not result.success:
            raise CommandFailed(command.argv, result.returncode)

    def output(self, command: Command) -> bytes:
        """Run ``command`` capturing stdout; non-zero exit raises :class:`CommandFailed`."""
        result = self.run(command, capture=True)
        if not result.success:
            raise CommandFailed(command.argv, result.returncode)
        return result.stdout
