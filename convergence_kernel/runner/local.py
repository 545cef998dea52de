"""Local command runner backed by `subprocess`, without a shell."""

import logging
import os
import subprocess
from typing import Dict, Optional

from convergence_kernel.models.command import Command, CommandResult
from convergence_kernel.runner.base import RunOrFailMixin

logger = logging.getLogger(__name__)

# Exit statuses shells report for "not found" and "not executable".
NOT_FOUND_EXIT_CODE = 127
NOT_EXECUTABLE_EXIT_CODE = 126


class SubprocessCommandRunner(RunOrFailMixin):
    """
    Runs commands on the local host. Blocks until the child exits; no
    timeout is imposed here, a caller-supplied deadline wraps this call.
    """

    def __init__(self, inherit_environment: bool = True, env: Optional[Dict[str, str]] = None):
        self.inherit_environment = inherit_environment
        self.env = dict(env or {})

    def _build_environment(self, command: Command) -> Dict[str, str]:
        if self.inherit_environment:
            env_vars = os.environ.copy()
        else:
            env_vars = {"PATH": os.environ.get("PATH", "")}

        env_vars.update(self.env)
        env_vars.update(command.env)
        return env_vars

    def run(self, command: Command) -> CommandResult:
        try:
            completed = subprocess.run(
                command.argv,
                env=self._build_environment(command),
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as exc:
            logger.warning("Executable not found", extra={"executable": command.argv[0]})
            return CommandResult(exit_code=NOT_FOUND_EXIT_CODE, stderr=str(exc))
        except PermissionError as exc:
            return CommandResult(exit_code=NOT_EXECUTABLE_EXIT_CODE, stderr=str(exc))

        return CommandResult(
            exit_code=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
