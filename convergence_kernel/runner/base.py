"""
Command Runner — the kernel's only window onto the host.

The kernel never decides how a command is spawned. Anything that satisfies
`CommandRunner` can be injected: a local subprocess runner, a remote
transport, or a scripted double in tests.
"""

from typing import Protocol

from convergence_kernel.errors import CommandFailed
from convergence_kernel.models.command import Command, CommandResult


class CommandRunner(Protocol):
    """Protocol for command execution — pluggable backend."""

    def run(self, command: Command) -> CommandResult: ...

    def run_or_fail(self, command: Command) -> CommandResult: ...


class RunOrFailMixin:
    """Derives `run_or_fail` from `run`."""

    def run_or_fail(self, command: Command) -> CommandResult:
        """
        Run a command and raise CommandFailed on a non-zero exit.

        The message carries the exit code and stderr, not the command text:
        the caller knows whether the command is safe to show.
        """
        result = self.run(command)
        if result.error:
            raise CommandFailed(
                f"Command exited with status {result.exit_code}: {result.stderr.strip()}",
                exit_code=result.exit_code,
                stderr=result.stderr,
            )
        return result
