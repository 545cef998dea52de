"""Step builders shared by the resource planners."""

from typing import List

from convergence_kernel.models.command import Command
from convergence_kernel.models.effects import DeferredEffect, EffectKind, EffectPolicy
from convergence_kernel.models.plan import RequestDeferredEffect, RunCommand, Step
from convergence_kernel.models.resource import ResourceModel


def carries_sensitive_value(model: ResourceModel, command: Command) -> bool:
    """True when the value of a sensitive property appears in argv."""
    for name in model.sensitive_properties:
        value = model.properties.get(name)
        if value is None or value == "":
            continue
        if any(str(value) in arg for arg in command.argv):
            return True
    return False


def run_command(model: ResourceModel, command: Command, description: str, sensitive: bool = False) -> RunCommand:
    return RunCommand(
        command=command,
        description=description,
        sensitive=sensitive or carries_sensitive_value(model, command),
    )


def request_effect(model: ResourceModel, kind: EffectKind, policy: str, reason: str) -> List[Step]:
    """A RequestDeferredEffect step, or nothing when the policy is `never`."""
    policy = EffectPolicy(policy)
    if policy == EffectPolicy.NEVER:
        return []
    effect = DeferredEffect(kind=kind, policy=policy, reason=reason, requested_by=model.describe())
    return [RequestDeferredEffect(effect=effect)]
