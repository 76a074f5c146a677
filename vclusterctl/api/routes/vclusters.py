"""
HTTP surface for the lifecycle operations.

The caller owns the records: every request carries the current record and
gets the new one back with diagnostics, so any orchestrator can drive it.
"""
from typing import Any, Callable, Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from vclusterctl import reconciler
from vclusterctl.invoker import Runner, make_runner
from vclusterctl.models import Diagnostic, OperationResult, ResourceState, VClusterSpec
from vclusterctl.provider import Meta, configure
from vclusterctl.schema import SchemaValidationError, validate_resource

router = APIRouter(prefix="/vcluster")

class Record(BaseModel):
    id: str = ""
    spec: Dict[str, Any]
    observed: Dict[str, Any] = {}

class CreateRequest(BaseModel):
    spec: Dict[str, Any]
    kubernetes: Optional[Dict[str, Any]] = None

class StateRequest(BaseModel):
    state: Record
    kubernetes: Optional[Dict[str, Any]] = None

class UpdateRequest(BaseModel):
    state: Record
    spec: Dict[str, Any]

def get_runner_factory() -> Callable[[Meta], Runner]:
    return lambda meta: make_runner(env=meta.process_env())

def _runner(kubernetes: Optional[Dict[str, Any]],
            factory: Callable[[Meta], Runner]) -> Tuple[Runner, List[Diagnostic]]:
    try:
        meta, diagnostics = configure(kubernetes)
    except SchemaValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return factory(meta), diagnostics

def _state(record: Record) -> ResourceState:
    spec = _spec(record.spec)
    try:
        return ResourceState.from_dict({"id": record.id, "spec": spec.to_dict(), "observed": record.observed})
    except ValueError as e:
        raise HTTPException(status_code=422, detail=f"state.observed: {e}")

def _spec(block: Dict[str, Any]) -> VClusterSpec:
    try:
        return validate_resource(block)
    except SchemaValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))

def _response(result: OperationResult, extra: List[Diagnostic] = ()) -> Dict[str, Any]:
    return {
        "state": result.state.to_dict(),
        "exists": result.state.exists,
        "diagnostics": [d.to_dict() for d in list(extra) + result.diagnostics],
    }

@router.post("/create")
def create_vcluster(req: CreateRequest, factory=Depends(get_runner_factory)):
    spec = _spec(req.spec)
    run, diagnostics = _runner(req.kubernetes, factory)
    return _response(reconciler.create(ResourceState(spec=spec), run), diagnostics)

@router.post("/read")
def read_vcluster(req: StateRequest, factory=Depends(get_runner_factory)):
    state = _state(req.state)
    run, diagnostics = _runner(req.kubernetes, factory)
    return _response(reconciler.read(state, run), diagnostics)

@router.post("/update")
def update_vcluster(req: UpdateRequest):
    return _response(reconciler.update(_state(req.state), _spec(req.spec)))

@router.post("/delete")
def delete_vcluster(req: StateRequest, factory=Depends(get_runner_factory)):
    state = _state(req.state)
    run, diagnostics = _runner(req.kubernetes, factory)
    return _response(reconciler.delete(state, run), diagnostics)
