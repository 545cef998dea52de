"""
Convergence Planner — compares desired state with observed state and
produces an ordered ActionPlan.

Behavioral Contract:
- Dispatches on (kind, action); the action was already validated
- Returns an empty plan when the observed state satisfies the desired one
- Never runs commands; the probe already ran
- Commands are argv lists; a step is sensitive when the resource asks for it
  or when a sensitive property value ends up in the command
"""

import logging

from convergence_kernel.models.plan import ActionPlan
from convergence_kernel.models.resource import ObservedState, ResourceModel
from convergence_kernel.resources.registry import ResourceRegistry

logger = logging.getLogger(__name__)


class ConvergencePlanner:
    def __init__(self, registry: ResourceRegistry):
        self.registry = registry

    def plan(self, model: ResourceModel, observed: ObservedState) -> ActionPlan:
        """Build the plan for one resource from a fresh observation."""
        resource_type = self.registry.get(model.kind)
        planner = resource_type.planners[model.action]
        steps = planner(model, observed)

        plan = ActionPlan(kind=model.kind, identity=model.identity, action=model.action, steps=steps)
        if plan.is_empty:
            logger.info(
                "Resource already converged",
                extra={"resource": model.describe(), "action": model.action},
            )
        else:
            logger.info(
                "Planned %d step(s)", len(plan.steps),
                extra={"resource": model.describe(), "action": model.action},
            )
        return plan
