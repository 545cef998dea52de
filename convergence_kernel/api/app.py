"""
Convergence Kernel API — FastAPI endpoints.

Exposes the caller-facing operations to an orchestrator:
- Resource kind discovery
- Validation of raw resource input
- Planning (probe + plan, no mutation)
- Batch convergence
- Deferred effect inspection
"""

from typing import List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from convergence_kernel.errors import ProbeError, UnknownResourceKind, ValidationError
from convergence_kernel.models.config import EngineConfig
from convergence_kernel.reconciler.engine import ConvergenceEngine
from convergence_kernel.runner.base import CommandRunner
from convergence_kernel.runner.local import SubprocessCommandRunner


# --- Request/Response Models ---

class ResourceRequest(BaseModel):
    kind: str
    identity: str
    action: Optional[str] = None
    properties: dict = {}


class ValidateRequest(BaseModel):
    identity: str
    action: Optional[str] = None
    properties: dict = {}


class ConvergeRequest(BaseModel):
    resources: List[ResourceRequest]


def _validation_failed(error: ValidationError) -> HTTPException:
    status = 404 if isinstance(error, UnknownResourceKind) else 422
    return HTTPException(status, error.to_dict())


def _model_view(model) -> dict:
    return {
        "kind": model.kind,
        "identity": model.identity,
        "action": model.action,
        "properties": model.redacted_properties(),
    }


# --- Application Factory ---

def create_app(
    engine: Optional[ConvergenceEngine] = None,
    runner: Optional[CommandRunner] = None,
    config: Optional[EngineConfig] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Convergence Kernel API",
        description="Desired-state resource convergence",
        version="0.1.0",
    )

    engine = engine or ConvergenceEngine(
        runner=runner or SubprocessCommandRunner(),
        config=config,
    )
    app.state.engine = engine

    def _validate_all(resources: List[ResourceRequest]):
        # Every resource is validated before anything is probed.
        models = []
        for req in resources:
            try:
                models.append(engine.validate(req.kind, req.identity, req.properties, req.action))
            except ValidationError as e:
                raise _validation_failed(e)
        return models

    # === RESOURCES ===

    @app.get("/resources")
    def list_resources():
        """Registered resource kinds with their properties and actions."""
        return [engine.registry.get(kind).describe() for kind in engine.registry.kinds()]

    @app.get("/resources/{kind}")
    def get_resource(kind: str):
        resource_type = engine.registry.find(kind)
        if resource_type is None:
            raise HTTPException(404, "Resource kind not found")
        return resource_type.describe()

    @app.post("/resources/{kind}/validate")
    def validate_resource(kind: str, req: ValidateRequest):
        """Validate raw input; sensitive values are suppressed in the response."""
        try:
            model = engine.validate(kind, req.identity, req.properties, req.action)
        except ValidationError as e:
            raise _validation_failed(e)
        return _model_view(model)

    # === CONVERGENCE ===

    @app.post("/plan")
    def plan_resource(req: ResourceRequest):
        """Probe and plan one resource without changing the host."""
        model = _validate_all([req])[0]
        try:
            plan = engine.plan(model)
        except ProbeError as e:
            raise HTTPException(502, {"type": "ProbeError", "message": str(e)})
        return {
            "resource": _model_view(model),
            "converged": plan.is_empty,
            "steps": plan.describe(),
        }

    @app.post("/converge")
    def converge_resources(req: ConvergeRequest):
        """Converge a batch of resources in order."""
        models = _validate_all(req.resources)
        report = engine.converge_batch(models)
        return report.model_dump(mode="json")

    # === EFFECTS ===

    @app.get("/effects")
    def get_effects():
        """Scheduler state per effect kind."""
        return {
            "states": engine.scheduler.snapshot(),
            "pending_deferred": [
                e.model_dump(mode="json") for e in engine.scheduler.pending_deferred()
            ],
            "arbitration": engine.scheduler.arbitration.value,
        }

    @app.get("/config")
    def get_config():
        return engine.config.model_dump(mode="json")

    return app


# Default application instance
app = create_app()
