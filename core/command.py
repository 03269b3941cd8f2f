"""Blocking execution of external commands."""

import logging
import os
import subprocess
from pathlib import Path

from .errors import CommandError


class CommandRunner:
    """Run commands as argv lists in an explicit working directory.

    Output is returned as a single string combining stdout and stderr, the way
    the tools write it to a terminal.
    """

    def __init__(self, logger: logging.Logger | None = None, timeout: float | None = 1800):
        self.logger = logger or logging.getLogger(__name__)
        self.timeout = timeout

    def run(
        self,
        command: list[str],
        cwd: Path | str | None = None,
        check: bool = True,
        env: dict[str, str] | None = None,
    ) -> str:
        """Run a command and return its combined output.

        Args:
            command: Program and arguments
            cwd: Directory to run in
            check: Raise CommandError when the exit status is non-zero
            env: Extra environment variables layered over the current ones

        Returns:
            Captured stdout and stderr
        """
        self.logger.debug("$ %s (in %s)", " ".join(command), cwd or ".")
        try:
            result = subprocess.run(
                command,
                cwd=cwd,
                env={**os.environ, **env} if env else None,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                stdin=subprocess.DEVNULL,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            output = e.output if isinstance(e.output, str) else ""
            raise CommandError(command, output + "\nCommand timed out", -1) from e
        except OSError as e:
            raise CommandError(command, str(e), -1) from e

        output = result.stdout or ""
        if output:
            self.logger.debug(output.rstrip())
        if check and result.returncode != 0:
            raise CommandError(command, output, result.returncode)
        return output

    def succeeds(self, command: list[str], cwd: Path | str | None = None) -> bool:
        """Run a command only for its exit status."""
        try:
            self.run(command, cwd=cwd)
        except CommandError:
            return False
        return True
