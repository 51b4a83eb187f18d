"""Process execution for OS commands."""
import asyncio
import logging
import shlex
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from ..errors import CommandError
from ..utils.logging_config import timed_section

logger = logging.getLogger(__name__)


@dataclass
class Command:
    """An executable and its argv, never passed through a shell."""
    executable: str
    args: list[str] = field(default_factory=list)

    def argv(self) -> list[str]:
        return [self.executable, *self.args]

    def __str__(self) -> str:
        return " ".join(shlex.quote(part) for part in self.argv())


class CommandRunner(ABC):
    """Runs one command and returns its stdout split into lines."""

    @abstractmethod
    async def run(self, command: Command) -> list[str]:
        """Execute the command.

        Returns:
            stdout split on "\\n" (a trailing newline yields a final "")

        Raises:
            CommandError: If the process cannot start or exits non-zero
        """
        pass


class SubprocessRunner(CommandRunner):
    """Run commands as child processes of the event loop.

    Cancelling the awaiting task kills the child process.
    """

    async def run(self, command: Command) -> list[str]:
        logger.info(f"executing command: {command}")

        async with timed_section("command", subject=command.executable):
            try:
                proc = await asyncio.create_subprocess_exec(
                    *command.argv(),
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                )
            except OSError as e:
                raise CommandError(
                    f"failed to execute command {command}: {e}",
                    command=str(command),
                ) from e

            try:
                stdout, stderr = await proc.communicate()
            except asyncio.CancelledError:
                if proc.returncode is None:
                    proc.kill()
                    await proc.wait()
                raise

        if proc.returncode != 0:
            err_text = stderr.decode("utf-8", errors="replace").strip()
            raise CommandError(
                f"failed to execute command {command}: "
                f"exit status {proc.returncode}: {err_text}",
                command=str(command),
                returncode=proc.returncode,
                stderr=err_text,
            )

        return stdout.decode("utf-8", errors="replace").split("\n")
