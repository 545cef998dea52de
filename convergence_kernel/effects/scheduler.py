"""
Deferred Effect Scheduler — collects post-convergence effects (reboot) and
decides when they apply.

State machine per effect kind:
  UNREQUESTED --register(immediate)--> PENDING_IMMEDIATE  (reported by resolve(), then cleared)
              --register(delayed)----> PENDING_DEFERRED   (drained by the caller after the batch)
              --register(never)------> SUPPRESSED         (never applied)

Re-registering a kind replaces its pending entry. Under last-write-wins the
newest request always replaces; under most-urgent-wins a request only
replaces an entry of equal or lower urgency (immediate > delayed > never).
"""

import logging
from typing import Dict, List

from convergence_kernel.models.config import EffectArbitration
from convergence_kernel.models.effects import (
    POLICY_URGENCY,
    DeferredEffect,
    EffectKind,
    EffectPolicy,
    EffectState,
)

logger = logging.getLogger(__name__)

_STATE_BY_POLICY = {
    EffectPolicy.IMMEDIATE: EffectState.PENDING_IMMEDIATE,
    EffectPolicy.DELAYED: EffectState.PENDING_DEFERRED,
    EffectPolicy.NEVER: EffectState.SUPPRESSED,
}


class DeferredEffectScheduler:
    """At most one pending effect per kind."""

    def __init__(self, arbitration: EffectArbitration = EffectArbitration.LAST_WRITE_WINS):
        self.arbitration = EffectArbitration(arbitration)
        self._entries: Dict[EffectKind, DeferredEffect] = {}

    def register(self, effect: DeferredEffect) -> bool:
        """Record an effect request. Returns False when arbitration kept the earlier one."""
        current = self._entries.get(effect.kind)
        if current is not None and not self._replaces(current, effect):
            logger.info(
                "Effect request kept earlier policy",
                extra={
                    "effect": effect.kind.value,
                    "kept_policy": current.policy.value,
                    "requested_policy": effect.policy.value,
                    "requested_by": effect.requested_by,
                },
            )
            return False

        self._entries[effect.kind] = effect
        logger.debug(
            "Effect registered",
            extra={"effect": effect.kind.value, "policy": effect.policy.value, "requested_by": effect.requested_by},
        )
        return True

    def _replaces(self, current: DeferredEffect, new: DeferredEffect) -> bool:
        if self.arbitration == EffectArbitration.LAST_WRITE_WINS:
            return True
        return POLICY_URGENCY[new.policy] >= POLICY_URGENCY[current.policy]

    def state(self, kind: EffectKind) -> EffectState:
        entry = self._entries.get(kind)
        if entry is None:
            return EffectState.UNREQUESTED
        return _STATE_BY_POLICY[entry.policy]

    def resolve(self) -> List[DeferredEffect]:
        """
        Immediate effects to apply now. Reported entries are cleared, so a
        second call returns nothing new.
        """
        due = [e for e in self._entries.values() if e.policy == EffectPolicy.IMMEDIATE]
        for effect in due:
            del self._entries[effect.kind]
        return due

    def pending(self) -> List[DeferredEffect]:
        """Every entry still waiting to be applied, immediate ones included."""
        return [e for e in self._entries.values() if e.policy != EffectPolicy.NEVER]

    def pending_deferred(self) -> List[DeferredEffect]:
        return [e for e in self._entries.values() if e.policy == EffectPolicy.DELAYED]

    def drain_deferred(self) -> List[DeferredEffect]:
        """Delayed effects for the caller to apply after the batch; clears them."""
        due = self.pending_deferred()
        for effect in due:
            del self._entries[effect.kind]
        return due

    def snapshot(self) -> Dict[str, str]:
        return {kind.value: self.state(kind).value for kind in EffectKind}

    def reset(self) -> None:
        self._entries.clear()
