"""
Action Executor — runs an ActionPlan's steps against the host.

Behavioral Contract:
- Steps run strictly in order; the first failing command aborts the cycle
- Commands already run stay applied: there is no rollback and no retry
- Deferred effects reach the scheduler only when every step succeeded
- A sensitive step's command text never appears in errors, logs or outcomes;
  stderr returned by the host is passed through as-is
"""

import logging
import time
from datetime import datetime, timezone
from typing import List, Optional

from convergence_kernel.effects.scheduler import DeferredEffectScheduler
from convergence_kernel.errors import CommandFailed
from convergence_kernel.models.command import CommandResult
from convergence_kernel.models.effects import DeferredEffect
from convergence_kernel.models.plan import ActionPlan, RequestDeferredEffect, RunCommand
from convergence_kernel.models.report import ConvergenceReport, ReportError, StepOutcome
from convergence_kernel.runner.base import CommandRunner

logger = logging.getLogger(__name__)


def command_failure(step: RunCommand, result: CommandResult) -> CommandFailed:
    """Build the CommandFailed error of a step, redacting sensitive commands."""
    message = f"Failed to {step.description}: {result.stderr.strip()}"
    if not step.sensitive:
        message += f" (command: {step.command.display()}, exit status {result.exit_code})"
    return CommandFailed(message, exit_code=result.exit_code, stderr=result.stderr)


class ActionExecutor:
    """Holds no state between plans; runner and scheduler are passed per call."""

    def execute(
        self,
        plan: ActionPlan,
        runner: CommandRunner,
        scheduler: DeferredEffectScheduler,
    ) -> ConvergenceReport:
        """Execute a plan. Failures are reported, never raised."""
        started_at = datetime.now(timezone.utc)
        start_time = time.monotonic()
        log_extra = {"resource": f"{plan.kind}[{plan.identity}]", "action": plan.action}

        outcomes: List[StepOutcome] = []
        requested: List[DeferredEffect] = []
        error: Optional[CommandFailed] = None
        changed = False

        for index, step in enumerate(plan.steps):
            if error is not None:
                outcomes.append(self._skipped(index, step))
                continue

            if isinstance(step, RequestDeferredEffect):
                requested.append(step.effect)
                outcomes.append(StepOutcome(
                    index=index,
                    type=step.type,
                    description=step.description,
                    status="succeeded",
                ))
                continue

            outcome, failure = self._run(index, step, runner, log_extra)
            outcomes.append(outcome)
            if failure is None:
                changed = True
            else:
                error = failure

        if error is None:
            for effect in requested:
                scheduler.register(effect)
        elif requested:
            for outcome in outcomes:
                if outcome.type == "request_deferred_effect" and outcome.status == "succeeded":
                    outcome.status = "dropped"
            logger.info(
                "Dropping %d deferred effect request(s) after failure", len(requested),
                extra=log_extra,
            )

        return ConvergenceReport(
            kind=plan.kind,
            identity=plan.identity,
            action=plan.action,
            changed=changed,
            steps=outcomes,
            error=ReportError(type=type(error).__name__, message=str(error)) if error else None,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
            duration_seconds=round(time.monotonic() - start_time, 3),
        )

    def _run(self, index: int, step: RunCommand, runner: CommandRunner, log_extra: dict):
        logger.info("Converging: %s", step.description, extra=log_extra)
        logger.debug("Running %s", step.display(), extra=log_extra)

        start = time.monotonic()
        result = runner.run(step.command)
        elapsed = round(time.monotonic() - start, 3)

        outcome = StepOutcome(
            index=index,
            type=step.type,
            description=step.description,
            status="failed" if result.error else "succeeded",
            command=step.display(),
            exit_code=result.exit_code,
            duration_seconds=elapsed,
        )
        if not result.error:
            return outcome, None

        failure = command_failure(step, result)
        logger.error("%s", failure, extra=log_extra)
        return outcome, failure

    def _skipped(self, index: int, step) -> StepOutcome:
        return StepOutcome(
            index=index,
            type=step.type,
            description=step.description,
            status="skipped",
            command=step.display() if isinstance(step, RunCommand) else None,
        )
