"""Pydantic schemas for SCORM profile configuration, state documents and statement parts."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = [
    "SCORMConfig",
    "Attempt",
    "ActivityState",
    "ActivityComment",
    "Preferences",
    "ADLData",
    "AttemptState",
    "ResultScore",
    "InteractionDefinition",
    "ObjectiveDefinition",
    "as_document",
]


class SCORMConfig(BaseModel):
    """Launch configuration for one learner working through one lesson.

    Field names follow the launch-parameter contract, so a query string such as
    ``?lessonIRI=...&courseIRI=...&actor={...}`` validates directly into this model.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    actor: Dict[str, Any] = Field(description="xAPI Agent identifying the learner; passed through untouched.")
    endpoint: str = Field(default="", description="Base URL of the Learning Record Store.")
    auth: str | None = Field(default=None, description="Value of the Authorization header sent to the LRS.")
    courseIRI: str | None = None
    courseTitle: str | None = None
    courseDescription: str | None = None
    lessonIRI: str | None = None
    lessonTitle: str | None = None
    lessonDescription: str | None = None
    attemptIRI: str | None = Field(
        default=None,
        description="Attempt to continue with; normally absent until an attempt is created or resumed.",
    )
    entry: Literal["ab-initio", "resume"] | None = None


class Attempt(BaseModel):
    """Handle for the attempt a session is currently reporting against."""

    model_config = ConfigDict(frozen=True)

    iri: str
    created: bool = Field(
        default=False,
        description="True when this session created the attempt, False when it was resumed.",
    )


class ActivityState(BaseModel):
    """Per-lesson state document listing every attempt in creation order."""

    model_config = ConfigDict(extra="allow")

    attempts: List[str] = Field(default_factory=list)

    @field_validator("attempts", mode="before")
    @classmethod
    def _null_attempts(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def latest(self) -> str | None:
        return self.attempts[-1] if self.attempts else None


class ActivityComment(BaseModel):
    comment: str
    location: str | None = None
    timestamp: datetime | None = None


class Preferences(BaseModel):
    """Learner preferences kept in the SCORM agent profile."""

    model_config = ConfigDict(extra="allow")

    audio_level: float | None = None
    language: str | None = None
    delivery_speed: float | None = None
    audio_captioning: Literal[-1, 0, 1] | None = None


class ADLData(BaseModel):
    id: str
    store: str | None = None


class AttemptState(BaseModel):
    """Runtime bookkeeping for one attempt.

    The LRS treats this as an opaque JSON document; the model only exists so
    callers can build patches with some help from a type checker.
    """

    model_config = ConfigDict(extra="allow")

    comments_from_lms: List[ActivityComment] | None = None
    credit: Literal["credit", "no-credit"] | None = None
    mode: Literal["browse", "normal", "review"] | None = None
    location: str | None = None
    preferences: Preferences | None = None
    total_time: str | None = None
    adl_data: List[ADLData] | None = None


class ResultScore(BaseModel):
    scaled: float | None = Field(default=None, ge=-1.0, le=1.0)
    raw: float | None = None
    min: float | None = None
    max: float | None = None


class InteractionDefinition(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str = "http://adlnet.gov/expapi/activities/cmi.interaction"
    interactionType: Literal[
        "true-false",
        "choice",
        "fill-in",
        "long-fill-in",
        "matching",
        "performance",
        "sequencing",
        "likert",
        "numeric",
        "other",
    ]
    name: Dict[str, str] | None = None
    description: Dict[str, str] | None = None
    correctResponsesPattern: List[str] | None = None


class ObjectiveDefinition(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str = "http://adlnet.gov/expapi/activities/objective"
    name: Dict[str, str] | None = None
    description: Dict[str, str] | None = None


def as_document(value: BaseModel | Mapping[str, Any] | None, *, partial: bool = False) -> Dict[str, Any]:
    """Return a plain JSON-ready dict for either a model or a mapping.

    With ``partial`` a model only contributes the fields that were explicitly set,
    which is what a state patch needs. Otherwise defaults are kept and ``None``
    values dropped.
    """

    if value is None:
        return {}
    if isinstance(value, BaseModel):
        if partial:
            return value.model_dump(mode="json", exclude_unset=True)
        return value.model_dump(mode="json", exclude_none=True)
    return dict(value)
