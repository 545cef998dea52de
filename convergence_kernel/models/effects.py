"""Deferred effects — side effects applied on a separate timing policy."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class EffectKind(str, Enum):
    REBOOT = "reboot"


class EffectPolicy(str, Enum):
    IMMEDIATE = "immediate"     # apply at the end of the requesting cycle
    DELAYED = "delayed"         # apply once the whole batch has converged
    NEVER = "never"             # suppressed


# Higher wins under "most_urgent_wins" arbitration.
POLICY_URGENCY = {
    EffectPolicy.NEVER: 0,
    EffectPolicy.DELAYED: 1,
    EffectPolicy.IMMEDIATE: 2,
}


class EffectState(str, Enum):
    UNREQUESTED = "unrequested"
    PENDING_IMMEDIATE = "pending_immediate"
    PENDING_DEFERRED = "pending_deferred"
    SUPPRESSED = "suppressed"


class DeferredEffect(BaseModel):
    """A named effect requested by a resource during execution."""

    model_config = ConfigDict(frozen=True)

    kind: EffectKind
    policy: EffectPolicy
    reason: str = ""
    requested_by: str = ""
