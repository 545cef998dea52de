"""
State Probe — read-only queries of the current system state.

Behavioral Contract:
- Never mutates the system; safe to call repeatedly
- Re-run every cycle, results are never cached
- Any non-zero exit raises ProbeError carrying the raw stderr
"""

from datetime import datetime, timezone
from typing import Any, Protocol

from convergence_kernel.errors import ProbeError
from convergence_kernel.models.command import Command, CommandResult
from convergence_kernel.models.resource import ObservedState, ResourceModel
from convergence_kernel.runner.base import CommandRunner


class StateProbe(Protocol):
    """Protocol for a resource kind's probe."""

    def __call__(self, model: ResourceModel, runner: CommandRunner) -> ObservedState: ...


def query(runner: CommandRunner, command: Command, purpose: str) -> CommandResult:
    """Run a read-only command, raising ProbeError when it fails."""
    result = runner.run(command)
    if result.error:
        raise ProbeError(
            f"Failed to {purpose}: {result.stderr.strip()}",
            stderr=result.stderr,
        )
    return result


def observed(model: ResourceModel, **facts: Any) -> ObservedState:
    return ObservedState(
        kind=model.kind,
        identity=model.identity,
        facts=facts,
        observed_at=datetime.now(timezone.utc),
    )
