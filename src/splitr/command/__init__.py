"""OS command execution and output parsing.

Usage:
    from splitr.command import CommandExecutor

    executor = CommandExecutor()
    vpn = await executor.get_current_vpn()
"""

from .executor import CommandExecutor
from .parser import OutputParser
from .runner import Command, CommandRunner, SubprocessRunner

__all__ = [
    "CommandExecutor",
    "OutputParser",
    "Command",
    "CommandRunner",
    "SubprocessRunner",
]
