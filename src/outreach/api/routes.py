# src/outreach/api/routes.py
from __future__ import annotations

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Path, Response
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from outreach.domain.errors import NotFoundError, OperationCancelledError, OutreachError
from outreach.domain.models import (
    ErrorResponse,
    Sequence,
    SequenceCreate,
    SequenceFlags,
    SequencePatch,
    Step,
    StepContent,
    StepPatch,
)
from outreach.logging import get_logger
from outreach.storage import SequenceStore, ping

from .deps import get_engine, get_store

_LOG = get_logger(__name__)
router = APIRouter()

RESOURCE_NOT_FOUND = "resource not found"
CREATION_FAILED = "resource creation failed"
FETCHING_FAILED = "resource fetching failed"
UPDATE_FAILED = "resource update failed"
DELETION_FAILED = "resource deletion failed"

SequenceId = Annotated[int, Path(ge=0)]
StepId = Annotated[int, Path(ge=0)]


def error_response(err: OutreachError, http_status: int, message: Optional[str] = None) -> JSONResponse:
    payload = ErrorResponse(
        error=message or err.message,
        code=err.code,
        details=err.details or {},
    ).model_dump()
    return JSONResponse(status_code=http_status, content=payload)


def _not_found(err: NotFoundError) -> JSONResponse:
    return error_response(err, 404, RESOURCE_NOT_FOUND)


def _cancelled(err: OperationCancelledError) -> JSONResponse:
    return error_response(err, 503)


def _failure(message: str) -> JSONResponse:
    payload = ErrorResponse(error=message, code="INTERNAL_ERROR").model_dump()
    return JSONResponse(status_code=500, content=payload)


@router.get("/healthz")
def healthz(engine: Engine = Depends(get_engine)) -> dict:
    ping(engine)
    return {"ok": True}


@router.post("/sequences", response_model=Sequence, status_code=201)
def create_sequence(
    payload: SequenceCreate,
    store: SequenceStore = Depends(get_store),
):
    """
    Create a sequence with its steps in one transaction.
    """
    sequence = Sequence.from_create(payload)
    try:
        return store.create_sequence(sequence)
    except OperationCancelledError as e:
        return _cancelled(e)
    except Exception:
        _LOG.exception("Failed to create sequence")
        return _failure(CREATION_FAILED)


@router.get("/sequences/{sequence_id}", response_model=Sequence)
def fetch_sequence(
    sequence_id: SequenceId,
    store: SequenceStore = Depends(get_store),
):
    try:
        return store.fetch_sequence(sequence_id)
    except NotFoundError as e:
        return _not_found(e)
    except OperationCancelledError as e:
        return _cancelled(e)
    except Exception:
        _LOG.exception("Failed to fetch sequence %s", sequence_id)
        return _failure(FETCHING_FAILED)


@router.put("/sequences/{sequence_id}", response_model=SequenceFlags)
def update_sequence(
    sequence_id: SequenceId,
    patch: SequencePatch,
    store: SequenceStore = Depends(get_store),
):
    """
    Update open/click tracking. The name cannot be changed.
    """
    try:
        return store.update_sequence(sequence_id, patch)
    except NotFoundError as e:
        return _not_found(e)
    except OperationCancelledError as e:
        return _cancelled(e)
    except Exception:
        _LOG.exception("Failed to update sequence %s", sequence_id)
        return _failure(UPDATE_FAILED)


@router.put("/sequences/{sequence_id}/steps/{step_id}", response_model=Step)
def update_step(
    sequence_id: SequenceId,
    step_id: StepId,
    body: StepContent,
    store: SequenceStore = Depends(get_store),
):
    patch = StepPatch(sequence_id=sequence_id, subject=body.subject, content=body.content)
    try:
        return store.update_step(step_id, patch)
    except NotFoundError as e:
        return _not_found(e)
    except OperationCancelledError as e:
        return _cancelled(e)
    except Exception:
        _LOG.exception("Failed to update step %s of sequence %s", step_id, sequence_id)
        return _failure(UPDATE_FAILED)


@router.delete("/sequences/{sequence_id}/steps/{step_id}", status_code=204, response_class=Response)
def delete_step(
    sequence_id: SequenceId,
    step_id: StepId,
    store: SequenceStore = Depends(get_store),
):
    try:
        store.delete_step(step_id, sequence_id)
    except NotFoundError as e:
        return _not_found(e)
    except OperationCancelledError as e:
        return _cancelled(e)
    except Exception:
        _LOG.exception("Failed to delete step %s of sequence %s", step_id, sequence_id)
        return _failure(DELETION_FAILED)
    return Response(status_code=204)
