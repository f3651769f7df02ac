from __future__ import annotations

from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field


NonEmptyText = Annotated[str, Field(min_length=1)]


class StepCreate(BaseModel):
    """
    API input model for one step of a new sequence.
    """
    model_config = ConfigDict(extra="forbid")

    subject: NonEmptyText
    content: NonEmptyText


class SequenceCreate(BaseModel):
    """
    API input model for creating a sequence together with its steps.

    `steps` must be present but may be empty.
    """
    model_config = ConfigDict(extra="forbid")

    name: NonEmptyText
    open_tracking_enabled: bool = False
    click_tracking_enabled: bool = False
    steps: list[StepCreate]


class SequencePatch(BaseModel):
    """
    API input model for updating tracking flags. The name is immutable.
    """
    model_config = ConfigDict(extra="forbid")

    open_tracking_enabled: bool
    click_tracking_enabled: bool


class StepContent(BaseModel):
    model_config = ConfigDict(extra="forbid")

    subject: NonEmptyText
    content: NonEmptyText


class StepPatch(BaseModel):
    """
    Store input for a step update; sequence_id is the ownership check.
    """
    model_config = ConfigDict(extra="forbid")

    sequence_id: int
    subject: str
    content: str


class Step(BaseModel):
    """
    A persisted step. Identity and timestamps are unset until the store
    assigns them.
    """
    model_config = ConfigDict(extra="forbid")

    id: Optional[int] = None
    # Owning sequence; immutable and not part of the JSON representation.
    sequence_id: Optional[int] = Field(default=None, exclude=True)
    subject: str
    content: str
    created_at: Optional[int] = None
    updated_at: Optional[int] = None


class Sequence(BaseModel):
    """
    API output model for a sequence with its steps ordered by step id.
    """
    model_config = ConfigDict(extra="forbid")

    id: Optional[int] = None
    name: str
    open_tracking_enabled: bool = False
    click_tracking_enabled: bool = False
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    steps: list[Step] = Field(default_factory=list)

    @classmethod
    def from_create(cls, payload: SequenceCreate) -> "Sequence":
        return cls(
            name=payload.name,
            open_tracking_enabled=payload.open_tracking_enabled,
            click_tracking_enabled=payload.click_tracking_enabled,
            steps=[Step(subject=s.subject, content=s.content) for s in payload.steps],
        )


class SequenceFlags(BaseModel):
    """
    Result of a flags update, read back from the UPDATE itself.
    """
    model_config = ConfigDict(extra="forbid")

    id: int
    open_tracking_enabled: bool
    click_tracking_enabled: bool
    created_at: int
    updated_at: int


class ErrorResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    error: str
    code: str
    details: dict = Field(default_factory=dict)
