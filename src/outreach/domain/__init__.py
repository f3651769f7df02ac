"""
Domain layer for outreach sequences.

- models: Pydantic models for API input/output and store values
- errors: domain-level exceptions
"""

from .models import (
    ErrorResponse,
    Sequence,
    SequenceCreate,
    SequenceFlags,
    SequencePatch,
    Step,
    StepContent,
    StepCreate,
    StepPatch,
)
from .errors import (
    OutreachError,
    NotFoundError,
    OperationCancelledError,
    PoolTimeoutError,
)

__all__ = [
    "Sequence",
    "SequenceCreate",
    "SequenceFlags",
    "SequencePatch",
    "Step",
    "StepContent",
    "StepCreate",
    "StepPatch",
    "ErrorResponse",
    "OutreachError",
    "NotFoundError",
    "OperationCancelledError",
    "PoolTimeoutError",
]
