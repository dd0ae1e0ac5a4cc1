#!/usr/bin/env python3
"""
Phlesk Command Runner
Synchronous execution of external commands with errors reported as values
"""

import logging
import subprocess
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from phlesk.errors import CommandFailedError

logger = logging.getLogger(__name__)

# Exit code reported when the program could not be started at all (as a shell would)
EXIT_NOT_FOUND = 127


@dataclass(frozen=True)
class CommandResult:
    """Snapshot of one process execution"""
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    command: tuple = ()

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def check(self) -> 'CommandResult':
        """Raise CommandFailedError unless the command exited 0"""
        if not self.ok:
            raise CommandFailedError(" ".join(self.command), self.exit_code, self.stderr)
        return self

    def to_dict(self) -> Dict:
        """Convert to the code/stdout/stderr mapping the panel API uses"""
        return {
            'code': self.exit_code,
            'stdout': self.stdout,
            'stderr': self.stderr,
        }


class CommandRunner:
    """
    Run external commands on behalf of an extension.

    Every call blocks until the process exits. A failing command never raises;
    callers inspect CommandResult.exit_code. Unless the call is tolerant, a
    failure is logged with the command line and its stderr.
    """

    def __init__(self, wrapper: Optional[str] = None):
        """
        Args:
            wrapper: Privileged helper to run commands through (None = run directly)
        """
        self.wrapper = wrapper

    def run(self, program: str, args: Sequence[str] = (), tolerant: bool = False) -> CommandResult:
        """
        Run program with args

        Args:
            program: Executable name or path
            args: Arguments
            tolerant: Whether a non-zero exit is expected (not logged)

        Returns:
            CommandResult of the execution
        """
        return self.exec([program, *args], tolerant=tolerant)

    def exec(self, command: Sequence[str], tolerant: bool = False) -> CommandResult:
        """
        Execute a command with error control

        Args:
            command: The command and its arguments
            tolerant: Whether a non-zero exit is expected (not logged)

        Returns:
            CommandResult of the execution
        """
        command = [str(part) for part in command]
        argv = self._argv(command)

        try:
            completed = subprocess.run(argv, capture_output=True, text=True, errors='replace',
                                       check=False, shell=False)
            result = CommandResult(completed.returncode, completed.stdout or "", completed.stderr or "", tuple(command))
        except OSError as e:
            result = CommandResult(EXIT_NOT_FOUND, "", str(e), tuple(command))

        if not result.ok and not tolerant:
            logger.error("Error executing: '%s'", " ".join(command))
            logger.error("stderr: %s", result.stderr)

        return result

    def _argv(self, command: List[str]) -> List[str]:
        if self.wrapper:
            return [self.wrapper, *command]
        return command
