"""Convergence Kernel data models."""

from convergence_kernel.models.command import Command, CommandResult
from convergence_kernel.models.config import EffectArbitration, EngineConfig, Platform
from convergence_kernel.models.effects import (
    DeferredEffect,
    EffectKind,
    EffectPolicy,
    EffectState,
)
from convergence_kernel.models.plan import ActionPlan, RequestDeferredEffect, RunCommand
from convergence_kernel.models.report import (
    BatchReport,
    ConvergenceReport,
    ReportError,
    StepOutcome,
)
from convergence_kernel.models.resource import ObservedState, ResourceModel
from convergence_kernel.models.schema import PropertyDefinition, PropertyType

__all__ = [
    "ActionPlan",
    "BatchReport",
    "Command",
    "CommandResult",
    "ConvergenceReport",
    "DeferredEffect",
    "EffectArbitration",
    "EffectKind",
    "EffectPolicy",
    "EffectState",
    "EngineConfig",
    "ObservedState",
    "Platform",
    "PropertyDefinition",
    "PropertyType",
    "ReportError",
    "RequestDeferredEffect",
    "ResourceModel",
    "RunCommand",
    "StepOutcome",
]
