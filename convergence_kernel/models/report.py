"""Convergence reports for single cycles and batches."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, computed_field

from convergence_kernel.models.effects import DeferredEffect


class StepOutcome(BaseModel):
    """Result of one plan step. Command text is already redacted."""

    index: int
    type: str
    description: str
    status: str                             # "succeeded" | "failed" | "skipped" | "dropped"
    command: Optional[str] = None
    exit_code: Optional[int] = None
    duration_seconds: float = 0.0


class ReportError(BaseModel):
    type: str                               # "ProbeError" | "CommandFailed"
    message: str


class ConvergenceReport(BaseModel):
    """Result of one convergence cycle. Read-only once returned to the caller."""

    kind: str
    identity: str
    action: str
    changed: bool = False
    steps: List[StepOutcome] = []
    error: Optional[ReportError] = None
    effects_applied: List[DeferredEffect] = []
    effects_unhandled: List[DeferredEffect] = []
    effects_pending: List[DeferredEffect] = []
    started_at: datetime
    finished_at: datetime
    duration_seconds: float = 0.0

    @computed_field
    @property
    def success(self) -> bool:
        return self.error is None


class BatchReport(BaseModel):
    """Reports for every resource of a run plus effects applied after it."""

    reports: List[ConvergenceReport]
    effects_applied: List[DeferredEffect] = []
    effects_unhandled: List[DeferredEffect] = []
    started_at: datetime
    finished_at: datetime

    @computed_field
    @property
    def changed(self) -> bool:
        return any(r.changed for r in self.reports)

    @computed_field
    @property
    def success(self) -> bool:
        return all(r.success for r in self.reports)
