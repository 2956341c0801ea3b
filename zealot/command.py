"""Library for issuing commands using asyncio and returning the result."""

import asyncio
import logging
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path

from .exceptions import CommandException

_LOGGER = logging.getLogger(__name__)


# No public API
__all__: list[str] = []


def format_path(path: Path) -> str:
    """Format path for debugging."""
    if path.is_absolute():
        cwd = Path.cwd()
        if path.is_relative_to(cwd):
            rel_path = str(path.relative_to(cwd))
            return f"{rel_path} (abs)"
    return str(path)


@dataclass
class CommandResult:
    """The outcome of a finished command."""

    returncode: int
    """Process exit status."""

    output: bytes
    """Combined stdout and stderr."""

    @property
    def text(self) -> str:
        """Return the output decoded as text."""
        return self.output.decode("utf-8", errors="replace")


@dataclass
class Command:
    """An instance of a command to run."""

    cmd: list[str]
    """Array of command line arguments."""

    cwd: Path | None = None
    """Current working directory."""

    exc: type[CommandException] = CommandException
    """Exception to throw in case of an error."""

    check: bool = True
    """Raise on a non-zero exit code, otherwise return it to the caller."""

    @property
    def string(self) -> str:
        """Render the command as a single string."""
        return " ".join([shlex.quote(arg) for arg in self.cmd])

    def __str__(self) -> str:
        """Render as a debug string."""
        cwd: str = ""
        if self.cwd:
            cwd = f"({format_path(self.cwd)}) "
        return f"{cwd}{self.string}"

    async def run(self) -> CommandResult:
        """Run the command to completion, returning the combined output.

        There is no timeout: a hung process blocks the caller.
        """
        _LOGGER.debug("Running command: %s", self)
        try:
            proc = await asyncio.create_subprocess_shell(
                self.string,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                cwd=self.cwd,
            )
        except OSError as err:
            raise self.exc(f"Command '{self}' could not be started: {err}") from err
        out, _ = await proc.communicate()
        returncode = proc.returncode or 0
        if self.check and returncode:
            errors = [f"Command '{self}' failed with return code {returncode}"]
            if out:
                errors.append(out.decode("utf-8", errors="replace"))
            _LOGGER.debug("\n".join(errors))
            raise self.exc("\n".join(errors))
        return CommandResult(returncode=returncode, output=out or b"")
