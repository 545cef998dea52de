"""
Scripted command runner — deterministic responses for tests and rehearsals.

Responses are keyed by an argv prefix. Each key holds a queue: calls consume
responses in order and the last one sticks, so a probe can report "absent"
once and "present" on every later call.
"""

from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from convergence_kernel.models.command import Command, CommandResult
from convergence_kernel.runner.base import RunOrFailMixin

Response = Union[CommandResult, Callable[[Command], CommandResult]]


class ScriptedCommandRunner(RunOrFailMixin):
    """Records every command and answers from a script."""

    def __init__(self, default: Optional[CommandResult] = None):
        self.default = default or CommandResult(exit_code=0)
        self.calls: List[Command] = []
        self._script: Dict[Tuple[str, ...], List[Response]] = {}

    def on(self, prefix: Sequence[str], *responses: Response) -> "ScriptedCommandRunner":
        """Answer commands whose argv starts with `prefix`."""
        if not responses:
            raise ValueError("at least one response is required")
        self._script[tuple(prefix)] = list(responses)
        return self

    def succeed(self, prefix: Sequence[str], stdout: str = "") -> "ScriptedCommandRunner":
        return self.on(prefix, CommandResult(exit_code=0, stdout=stdout))

    def fail(self, prefix: Sequence[str], stderr: str = "", exit_code: int = 1) -> "ScriptedCommandRunner":
        return self.on(prefix, CommandResult(exit_code=exit_code, stderr=stderr))

    def run(self, command: Command) -> CommandResult:
        self.calls.append(command)
        queue = self._match(command)
        if queue is None:
            return self.default

        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(response):
            return response(command)
        return response

    def _match(self, command: Command) -> Optional[List[Response]]:
        """Longest matching prefix wins."""
        argv = tuple(command.argv)
        best = None
        for prefix, queue in self._script.items():
            if argv[:len(prefix)] == prefix and (best is None or len(prefix) > len(best)):
                best = prefix
        return self._script[best] if best is not None else None

    def commands_matching(self, prefix: Sequence[str]) -> List[Command]:
        prefix = tuple(prefix)
        return [c for c in self.calls if tuple(c.argv[:len(prefix)]) == prefix]

    def reset_calls(self) -> None:
        self.calls.clear()
