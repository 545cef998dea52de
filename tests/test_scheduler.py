"""Tests for the Deferred Effect Scheduler."""

from convergence_kernel.effects.scheduler import DeferredEffectScheduler
from convergence_kernel.models.config import EffectArbitration
from convergence_kernel.models.effects import (
    DeferredEffect,
    EffectKind,
    EffectPolicy,
    EffectState,
)


def _reboot(policy: EffectPolicy, requested_by: str = "test") -> DeferredEffect:
    return DeferredEffect(
        kind=EffectKind.REBOOT,
        policy=policy,
        reason="Reboot to join domain corp.example.com",
        requested_by=requested_by,
    )


class TestStateMachine:
    def test_unrequested_by_default(self):
        scheduler = DeferredEffectScheduler()
        assert scheduler.state(EffectKind.REBOOT) == EffectState.UNREQUESTED
        assert scheduler.resolve() == []

    def test_immediate_resolved_once(self):
        scheduler = DeferredEffectScheduler()
        scheduler.register(_reboot(EffectPolicy.IMMEDIATE))

        assert scheduler.state(EffectKind.REBOOT) == EffectState.PENDING_IMMEDIATE
        first = scheduler.resolve()
        assert [e.policy for e in first] == [EffectPolicy.IMMEDIATE]

        # Cleared once reported
        assert scheduler.resolve() == []
        assert scheduler.state(EffectKind.REBOOT) == EffectState.UNREQUESTED

    def test_delayed_not_resolved(self):
        scheduler = DeferredEffectScheduler()
        scheduler.register(_reboot(EffectPolicy.DELAYED))

        assert scheduler.resolve() == []
        assert scheduler.state(EffectKind.REBOOT) == EffectState.PENDING_DEFERRED
        assert len(scheduler.pending_deferred()) == 1

    def test_drain_deferred_clears(self):
        scheduler = DeferredEffectScheduler()
        scheduler.register(_reboot(EffectPolicy.DELAYED))

        drained = scheduler.drain_deferred()
        assert len(drained) == 1
        assert scheduler.drain_deferred() == []
        assert scheduler.state(EffectKind.REBOOT) == EffectState.UNREQUESTED

    def test_never_is_suppressed(self):
        scheduler = DeferredEffectScheduler()
        scheduler.register(_reboot(EffectPolicy.NEVER))

        assert scheduler.state(EffectKind.REBOOT) == EffectState.SUPPRESSED
        assert scheduler.resolve() == []
        assert scheduler.drain_deferred() == []

    def test_pending_includes_unresolved_immediate(self):
        scheduler = DeferredEffectScheduler()
        scheduler.register(_reboot(EffectPolicy.IMMEDIATE))
        assert [e.policy for e in scheduler.pending()] == [EffectPolicy.IMMEDIATE]
        assert scheduler.pending_deferred() == []

        scheduler.resolve()
        assert scheduler.pending() == []

    def test_pending_excludes_suppressed(self):
        scheduler = DeferredEffectScheduler()
        scheduler.register(_reboot(EffectPolicy.NEVER))
        assert scheduler.pending() == []

    def test_snapshot(self):
        scheduler = DeferredEffectScheduler()
        scheduler.register(_reboot(EffectPolicy.DELAYED))
        assert scheduler.snapshot() == {"reboot": "pending_deferred"}


class TestArbitration:
    def test_last_write_wins_by_default(self):
        scheduler = DeferredEffectScheduler()
        scheduler.register(_reboot(EffectPolicy.DELAYED, "a"))
        assert scheduler.register(_reboot(EffectPolicy.NEVER, "b")) is True

        assert scheduler.state(EffectKind.REBOOT) == EffectState.SUPPRESSED

    def test_last_write_wins_can_promote(self):
        scheduler = DeferredEffectScheduler()
        scheduler.register(_reboot(EffectPolicy.DELAYED))
        scheduler.register(_reboot(EffectPolicy.IMMEDIATE))

        assert scheduler.state(EffectKind.REBOOT) == EffectState.PENDING_IMMEDIATE
        assert scheduler.pending_deferred() == []

    def test_most_urgent_wins_keeps_delayed_over_never(self):
        scheduler = DeferredEffectScheduler(EffectArbitration.MOST_URGENT_WINS)
        scheduler.register(_reboot(EffectPolicy.DELAYED, "a"))
        assert scheduler.register(_reboot(EffectPolicy.NEVER, "b")) is False

        pending = scheduler.pending_deferred()
        assert len(pending) == 1
        assert pending[0].requested_by == "a"

    def test_most_urgent_wins_promotes_to_immediate(self):
        scheduler = DeferredEffectScheduler(EffectArbitration.MOST_URGENT_WINS)
        scheduler.register(_reboot(EffectPolicy.NEVER))
        scheduler.register(_reboot(EffectPolicy.IMMEDIATE))

        assert scheduler.state(EffectKind.REBOOT) == EffectState.PENDING_IMMEDIATE

    def test_most_urgent_wins_same_policy_replaces(self):
        scheduler = DeferredEffectScheduler(EffectArbitration.MOST_URGENT_WINS)
        scheduler.register(_reboot(EffectPolicy.DELAYED, "a"))
        scheduler.register(_reboot(EffectPolicy.DELAYED, "b"))

        assert scheduler.pending_deferred()[0].requested_by == "b"
