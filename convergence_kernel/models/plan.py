"""Action plan — the ordered steps that take a resource to its desired state."""

from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, Field

from convergence_kernel.models.command import Command
from convergence_kernel.models.effects import DeferredEffect

SENSITIVE_COMMAND_PLACEHOLDER = "<sensitive command suppressed>"


class RunCommand(BaseModel):
    """Mutate the target system by running one command."""

    type: Literal["run_command"] = "run_command"
    command: Command
    description: str                        # e.g. "join Active Directory domain corp.example.com"
    sensitive: bool = False

    def display(self) -> str:
        return SENSITIVE_COMMAND_PLACEHOLDER if self.sensitive else self.command.display()


class RequestDeferredEffect(BaseModel):
    """Hand an effect to the scheduler once the plan has fully succeeded."""

    type: Literal["request_deferred_effect"] = "request_deferred_effect"
    effect: DeferredEffect

    @property
    def description(self) -> str:
        return f"request {self.effect.kind.value} ({self.effect.policy.value})"


Step = Annotated[Union[RunCommand, RequestDeferredEffect], Field(discriminator="type")]


class ActionPlan(BaseModel):
    """Ordered steps. An empty plan means the resource is already converged."""

    kind: str
    identity: str
    action: str
    steps: List[Step] = []

    @property
    def is_empty(self) -> bool:
        return len(self.steps) == 0

    @property
    def commands(self) -> List[RunCommand]:
        return [s for s in self.steps if isinstance(s, RunCommand)]

    def describe(self) -> List[dict]:
        """Serialisable view of the plan with sensitive command text suppressed."""
        described = []
        for step in self.steps:
            if isinstance(step, RunCommand):
                described.append({
                    "type": step.type,
                    "description": step.description,
                    "command": step.display(),
                    "sensitive": step.sensitive,
                })
            else:
                described.append({
                    "type": step.type,
                    "description": step.description,
                    "effect": step.effect.model_dump(mode="json"),
                })
        return described
