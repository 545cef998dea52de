"""Desired resource model and observed system state."""

from datetime import datetime
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict

SENSITIVE_PLACEHOLDER = "*sensitive value suppressed*"


class ResourceModel(BaseModel):
    """
    A validated resource instance. Only produced by schema validation and
    immutable afterwards; consumed once per convergence cycle.
    """

    model_config = ConfigDict(frozen=True)

    kind: str
    identity: str
    action: str
    properties: Dict[str, Any]              # declaration order preserved
    sensitive_properties: List[str] = []

    def get(self, name: str, default: Any = None) -> Any:
        """Value of a bound property, or `default` when unbound."""
        value = self.properties.get(name)
        return default if value is None else value

    def is_bound(self, name: str) -> bool:
        return self.properties.get(name) is not None

    def redacted_properties(self) -> Dict[str, Any]:
        """Property mapping safe for logs and API responses."""
        return {
            name: (SENSITIVE_PLACEHOLDER if name in self.sensitive_properties and value is not None else value)
            for name, value in self.properties.items()
        }

    def describe(self) -> str:
        return f"{self.kind}[{self.identity}]"


class ObservedState(BaseModel):
    """Snapshot of system facts taken right before planning. Never cached."""

    kind: str
    identity: str
    facts: Dict[str, Any] = {}
    observed_at: datetime

    def fact(self, name: str, default: Any = None) -> Any:
        return self.facts.get(name, default)
