"""Attempt identity lifecycle backed by LRS state documents.

Two documents are involved:

* the activity state (``activity-state`` on the lesson) holds the append-only
  list of attempt IRIs for the learner, oldest first;
* the attempt state (``attempt-state`` on the attempt IRI) holds free-form
  runtime bookkeeping for one attempt.

Both are read-modify-write without any version check. Callers must not run two
attempt-manipulating coroutines for the same learner and lesson at once.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, Dict, Mapping, Optional, Protocol

from pydantic import BaseModel

from lrs import StateNotFoundError
from schemas import ActivityState, Attempt, SCORMConfig, as_document
from xapi import ACTIVITY_STATE_ID, ATTEMPT_STATE_ID

LOGGER = logging.getLogger("scorm.attempts")


class NoCurrentAttemptError(RuntimeError):
    """Raised when an attempt-scoped operation runs before initialize/resume."""


class NoAttemptsFoundError(LookupError):
    """Raised when resuming a lesson that has no recorded attempts."""


class StateStore(Protocol):
    async def get_state(self, actor: Mapping[str, Any], activity_id: str, state_id: str) -> Dict[str, Any]: ...

    async def create_state(
        self, actor: Mapping[str, Any], activity_id: str, state_id: str, document: Dict[str, Any]
    ) -> None: ...

    async def set_state(
        self, actor: Mapping[str, Any], activity_id: str, state_id: str, document: Dict[str, Any]
    ) -> None: ...


def require_attempt(attempt: Optional[Attempt]) -> Attempt:
    if attempt is None:
        raise NoCurrentAttemptError("No current attempt; call initialize() or resume() first.")
    return attempt


def _require_lesson(config: SCORMConfig) -> str:
    if not config.lessonIRI:
        raise ValueError("lessonIRI is required to track attempts")
    return config.lessonIRI


class AttemptManager:
    def __init__(self, store: StateStore, id_factory: Optional[Callable[[], str]] = None):
        self.store = store
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))

    def new_attempt_iri(self, config: SCORMConfig) -> str:
        return f"{_require_lesson(config)}?attemptId={self._id_factory()}"

    async def create_attempt(self, config: SCORMConfig) -> Attempt:
        """Register a fresh attempt at the end of the lesson's attempt list."""

        lesson_iri = _require_lesson(config)
        attempt = Attempt(iri=self.new_attempt_iri(config), created=True)
        try:
            document = await self.store.get_state(config.actor, lesson_iri, ACTIVITY_STATE_ID)
        except StateNotFoundError:
            LOGGER.debug("No activity state for %s yet; creating it", lesson_iri)
            await self.store.create_state(
                config.actor, lesson_iri, ACTIVITY_STATE_ID, {"attempts": [attempt.iri]}
            )
        else:
            state = ActivityState.model_validate(document)
            # Unknown keys written by other tools are kept; the document is replaced whole.
            updated = {**document, "attempts": [*state.attempts, attempt.iri]}
            await self.store.set_state(config.actor, lesson_iri, ACTIVITY_STATE_ID, updated)
        LOGGER.info("Created attempt %s", attempt.iri)
        return attempt

    async def resolve_latest_attempt(self, config: SCORMConfig) -> Attempt:
        lesson_iri = _require_lesson(config)
        try:
            document = await self.store.get_state(config.actor, lesson_iri, ACTIVITY_STATE_ID)
        except StateNotFoundError as exc:
            raise NoAttemptsFoundError(f"No attempts found for {lesson_iri}") from exc
        state = ActivityState.model_validate(document)
        if state.latest is None:
            raise NoAttemptsFoundError(f"No attempts found for {lesson_iri}")
        LOGGER.info("Resuming attempt %s (%d on record)", state.latest, len(state.attempts))
        return Attempt(iri=state.latest)

    async def get_attempt_state(self, config: SCORMConfig, attempt: Optional[Attempt]) -> Optional[Dict[str, Any]]:
        """Return the attempt state document, or ``None`` if nothing was saved yet."""

        attempt = require_attempt(attempt)
        try:
            return await self.store.get_state(config.actor, attempt.iri, ATTEMPT_STATE_ID)
        except StateNotFoundError:
            return None

    async def set_attempt_state(
        self,
        config: SCORMConfig,
        attempt: Optional[Attempt],
        patch: BaseModel | Mapping[str, Any],
    ) -> Dict[str, Any]:
        """Shallow-merge ``patch`` over the stored attempt state and return what was written.

        Only a missing document leads to ``patch`` being written as-is; any other
        failure while reading propagates and nothing is written.
        """

        attempt = require_attempt(attempt)
        changes = as_document(patch, partial=True)
        try:
            current = await self.store.get_state(config.actor, attempt.iri, ATTEMPT_STATE_ID)
        except StateNotFoundError:
            LOGGER.debug("Creating attempt state for %s", attempt.iri)
            document = changes
        else:
            document = {**current, **changes}
        await self.store.create_state(config.actor, attempt.iri, ATTEMPT_STATE_ID, document)
        return document
