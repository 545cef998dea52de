"""
Resource Registry — the resource kinds the kernel knows how to converge.

Each kind bundles its property schema, its state probe and one planner per
declared action.
"""

from typing import Callable, Dict, List, Optional

from convergence_kernel.errors import SchemaDefinitionError, UnknownResourceKind
from convergence_kernel.models.plan import Step
from convergence_kernel.models.resource import ObservedState, ResourceModel
from convergence_kernel.probe.base import StateProbe
from convergence_kernel.schema.properties import ResourceSchema

ActionPlanner = Callable[[ResourceModel, ObservedState], List[Step]]


class ResourceType:
    """Schema, probe and planners of one resource kind."""

    def __init__(
        self,
        schema: ResourceSchema,
        probe: StateProbe,
        planners: Dict[str, ActionPlanner],
        description: str = "",
    ):
        missing = [a for a in schema.actions if a not in planners]
        if missing:
            raise SchemaDefinitionError(
                f"Resource kind '{schema.kind}' has no planner for: {', '.join(missing)}."
            )
        self.schema = schema
        self.probe = probe
        self.planners = dict(planners)
        self.description = description

    @property
    def kind(self) -> str:
        return self.schema.kind

    def describe(self) -> dict:
        described = self.schema.describe()
        described["description"] = self.description
        return described


class ResourceRegistry:
    def __init__(self):
        self._types: Dict[str, ResourceType] = {}

    def register(self, resource_type: ResourceType) -> None:
        """Register a resource kind. A later registration replaces an earlier one."""
        self._types[resource_type.kind] = resource_type

    def get(self, kind: str) -> ResourceType:
        resource_type = self._types.get(kind)
        if resource_type is None:
            raise UnknownResourceKind(kind)
        return resource_type

    def find(self, kind: str) -> Optional[ResourceType]:
        return self._types.get(kind)

    def kinds(self) -> List[str]:
        return sorted(self._types)


def default_registry() -> ResourceRegistry:
    """Registry with every resource kind shipped with the kernel."""
    from convergence_kernel.resources import swap_file, windows_ad_join

    registry = ResourceRegistry()
    registry.register(windows_ad_join.RESOURCE_TYPE)
    registry.register(swap_file.RESOURCE_TYPE)
    return registry
