"""
Convergence Engine — the caller-facing API of the kernel.

One convergence cycle:
  VALIDATED -> PROBE -> PLAN -> (no-op | EXECUTE) -> RESOLVE EFFECTS -> REPORT

A batch runs cycles in order and applies delayed effects once at the end.
The engine keeps no state between cycles except the effect scheduler, whose
delayed entries live until the batch is drained.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from convergence_kernel.effects.handlers import RebootHandler
from convergence_kernel.effects.scheduler import DeferredEffectScheduler
from convergence_kernel.errors import CommandFailed, ProbeError
from convergence_kernel.execution.executor import ActionExecutor
from convergence_kernel.models.config import EffectArbitration, EngineConfig
from convergence_kernel.models.effects import DeferredEffect, EffectKind
from convergence_kernel.models.plan import ActionPlan
from convergence_kernel.models.report import BatchReport, ConvergenceReport, ReportError
from convergence_kernel.models.resource import ObservedState, ResourceModel
from convergence_kernel.planning.planner import ConvergencePlanner
from convergence_kernel.resources.registry import ResourceRegistry, default_registry
from convergence_kernel.runner.base import CommandRunner
from convergence_kernel.schema.properties import validate

logger = logging.getLogger(__name__)

EffectHandler = Callable[[DeferredEffect], None]


class ConvergenceEngine:
    def __init__(
        self,
        runner: CommandRunner,
        registry: Optional[ResourceRegistry] = None,
        config: Optional[EngineConfig] = None,
        scheduler: Optional[DeferredEffectScheduler] = None,
    ):
        self.runner = runner
        self.registry = registry or default_registry()
        self._config = config or EngineConfig()
        self.scheduler = scheduler or DeferredEffectScheduler(self._config.effect_arbitration)
        self.planner = ConvergencePlanner(self.registry)
        self.executor = ActionExecutor()

        self._effect_handlers: Dict[EffectKind, EffectHandler] = {}
        self._custom_handler_kinds: Set[EffectKind] = set()
        self._register_default_handlers()

    @property
    def config(self) -> EngineConfig:
        return self._config

    @config.setter
    def config(self, config: EngineConfig) -> None:
        """Replacing the config takes effect from the next cycle on."""
        self._config = config
        self.scheduler.arbitration = EffectArbitration(config.effect_arbitration)
        self._register_default_handlers()

    def _register_default_handlers(self) -> None:
        if EffectKind.REBOOT not in self._custom_handler_kinds:
            self._effect_handlers[EffectKind.REBOOT] = RebootHandler(
                self.runner,
                platform=self._config.platform,
                delay_seconds=self._config.reboot_delay_seconds,
            )

    def register_effect_handler(self, kind: EffectKind, handler: EffectHandler) -> None:
        """Register a custom handler for an effect kind; config changes leave it in place."""
        kind = EffectKind(kind)
        self._effect_handlers[kind] = handler
        self._custom_handler_kinds.add(kind)

    # --- Cycle ---

    def validate(
        self,
        kind: str,
        identity: str,
        properties: Optional[dict] = None,
        action: Optional[str] = None,
    ) -> ResourceModel:
        """Raw caller input to a ResourceModel; raises ValidationError."""
        resource_type = self.registry.get(kind)
        return validate(resource_type.schema, identity, properties, action)

    def observe(self, model: ResourceModel) -> ObservedState:
        """Probe the host for this resource; raises ProbeError."""
        return self.registry.get(model.kind).probe(model, self.runner)

    def plan(self, model: ResourceModel) -> ActionPlan:
        """Probe and plan without mutating anything."""
        return self.planner.plan(model, self.observe(model))

    def converge(self, model: ResourceModel) -> ConvergenceReport:
        """
        Run one convergence cycle. Probe and command failures end up in the
        report; nothing is retried.
        """
        started_at = datetime.now(timezone.utc)
        log_extra = {"resource": model.describe(), "action": model.action}

        try:
            observed = self.observe(model)
        except ProbeError as e:
            logger.error("Probe failed: %s", e, extra=log_extra)
            return ConvergenceReport(
                kind=model.kind,
                identity=model.identity,
                action=model.action,
                error=ReportError(type="ProbeError", message=str(e)),
                effects_pending=self.scheduler.pending(),
                started_at=started_at,
                finished_at=datetime.now(timezone.utc),
            )

        plan = self.planner.plan(model, observed)
        report = self.executor.execute(plan, self.runner, self.scheduler)

        if self.config.apply_immediate_effects:
            applied, unhandled, failure = self._apply_effects(self.scheduler.resolve())
            report.effects_applied = applied
            report.effects_unhandled = unhandled
            if failure is not None and report.error is None:
                report.error = ReportError(type=type(failure).__name__, message=str(failure))
        # Immediate effects not applied here stay pending for the caller.
        report.effects_pending = self.scheduler.pending()

        logger.info(
            "Cycle finished",
            extra={**log_extra, "changed": report.changed, "success": report.success},
        )
        return report

    def converge_batch(self, models: Iterable[ResourceModel]) -> BatchReport:
        """Converge resources in order, then apply delayed effects once."""
        started_at = datetime.now(timezone.utc)
        reports: List[ConvergenceReport] = [self.converge(model) for model in models]

        applied: List[DeferredEffect] = []
        unhandled: List[DeferredEffect] = []
        if self.config.apply_delayed_effects:
            applied, unhandled, failure = self._apply_effects(self.scheduler.drain_deferred())
            if failure is not None:
                logger.error("Delayed effect failed: %s", failure)

        return BatchReport(
            reports=reports,
            effects_applied=applied,
            effects_unhandled=unhandled,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
        )

    # --- Effects ---

    def _apply_effects(
        self, effects: List[DeferredEffect]
    ) -> Tuple[List[DeferredEffect], List[DeferredEffect], Optional[CommandFailed]]:
        """Hand effects to their handlers; stops at the first failing handler."""
        applied: List[DeferredEffect] = []
        unhandled: List[DeferredEffect] = []
        for effect in effects:
            handler = self._effect_handlers.get(effect.kind)
            if handler is None:
                logger.warning("No handler for effect %s", effect.kind.value, extra={"reason": effect.reason})
                unhandled.append(effect)
                continue
            try:
                handler(effect)
            except CommandFailed as e:
                failure = CommandFailed(
                    f"Failed to apply {effect.kind.value} ({effect.reason}): {e}",
                    exit_code=e.exit_code,
                    stderr=e.stderr,
                )
                return applied, unhandled, failure
            applied.append(effect)
        return applied, unhandled, None
