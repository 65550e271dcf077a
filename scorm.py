"""Experience API SCORM Profile.

``SCORMProfile`` turns SCORM runtime events into profile-conformant statements:
https://adl.gitbooks.io/scorm-profile-xapi/content/xapi-scorm-profile.html

A profile instance is one learner session. It holds the resolved configuration
and the current attempt; every statement is reported against that attempt.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel

from lifecycle.attempt_manager import AttemptManager, require_attempt
from lifecycle.context_builder import build_context, build_lesson_object
from lrs import LRSClient, StateNotFoundError
from schemas import (
    Attempt,
    InteractionDefinition,
    ObjectiveDefinition,
    ResultScore,
    SCORMConfig,
    as_document,
)
from xapi import AGENT_PROFILE_ID, VERBS, now_iso, validate_statement

LOGGER = logging.getLogger("scorm.profile")

ConfigSource = Union[SCORMConfig, Mapping[str, Any]]
LaunchParams = Callable[[], Mapping[str, Any]]
Score = Union[ResultScore, Mapping[str, Any]]


class ConfigurationMissingError(ValueError):
    """Raised when neither launch parameters nor an explicit configuration are available."""


def no_launch_params() -> Dict[str, Any]:
    return {}


def resolve_config(explicit: Optional[ConfigSource], launch_params: Optional[Mapping[str, Any]]) -> SCORMConfig:
    """Pick the configuration source; launch parameters win over the explicit argument.

    The sources are never merged: whichever one is used supplies every field.
    """

    if launch_params:
        LOGGER.debug("Using launch parameter configuration")
        return SCORMConfig.model_validate(dict(launch_params))
    if isinstance(explicit, SCORMConfig):
        return explicit
    if explicit:
        return SCORMConfig.model_validate(dict(explicit))
    raise ConfigurationMissingError(
        "Unable to construct, no xAPI configuration found in the launch parameters "
        "and fallback configuration not provided."
    )


def _activity_id(config: SCORMConfig, kind: str, local_id: Any) -> str:
    return f"{config.courseIRI}/{config.lessonIRI}/{kind}/{local_id}"


def _resolve_verb(verb: Union[str, Mapping[str, Any]]) -> Dict[str, Any]:
    if isinstance(verb, Mapping):
        return dict(verb)
    return dict(VERBS.get(verb, {"id": verb}))


class SCORMProfile:
    """Public SCORM profile operations for one learner session.

    Construction resolves the configuration and performs no I/O. Call
    :meth:`start` (or use :meth:`launch`) to honour ``entry``.
    """

    def __init__(
        self,
        config: Optional[ConfigSource] = None,
        *,
        launch_params: LaunchParams = no_launch_params,
        lrs: Optional[Any] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self._config = resolve_config(config, launch_params())
        self.lrs = lrs if lrs is not None else LRSClient(self._config.endpoint, self._config.auth)
        self.attempts = AttemptManager(self.lrs, id_factory)
        self._attempt: Optional[Attempt] = (
            Attempt(iri=self._config.attemptIRI) if self._config.attemptIRI else None
        )

    @classmethod
    async def launch(cls, config: Optional[ConfigSource] = None, **kwargs: Any) -> "SCORMProfile":
        profile = cls(config, **kwargs)
        await profile.start()
        return profile

    def get_config(self) -> SCORMConfig:
        return self._config

    @property
    def current_attempt(self) -> Optional[Attempt]:
        return self._attempt

    async def start(self) -> Optional[List[str]]:
        """Create or resume an attempt according to ``entry``; a no-op without one."""

        if self._config.entry == "ab-initio":
            return await self.initialize()
        if self._config.entry == "resume":
            return await self.resume()
        return None

    def build_statement(self, attempt: Attempt, **fields: Any) -> Dict[str, Any]:
        statement: Dict[str, Any] = {"actor": dict(self._config.actor)}
        lesson = build_lesson_object(self._config)
        if lesson is not None:
            statement["object"] = lesson
        statement["context"] = build_context(self._config, attempt)
        statement["timestamp"] = now_iso()
        statement.update(fields)
        return statement

    async def _request(self, **fields: Any) -> List[str]:
        attempt = require_attempt(self._attempt)
        statement = validate_statement(self.build_statement(attempt, **fields))
        LOGGER.debug("Sending %s for attempt %s", statement["verb"]["id"], attempt.iri)
        return await self.lrs.send_statement(statement)

    # https://adl.gitbooks.io/scorm-profile-xapi/content/xapi-scorm-profile.html#entry
    async def initialize(self) -> List[str]:
        self._attempt = await self.attempts.create_attempt(self._config)
        return await self._request(verb=VERBS["initialized"])

    async def resume(self) -> List[str]:
        self._attempt = await self.attempts.resolve_latest_attempt(self._config)
        return await self._request(verb=VERBS["resumed"])

    # https://adl.gitbooks.io/scorm-profile-xapi/content/xapi-scorm-profile.html#exit
    async def exit(
        self,
        duration: Optional[str] = None,
        success: Optional[bool] = None,
        completion: Optional[bool] = None,
        score: Optional[Score] = None,
    ) -> List[str]:
        result: Dict[str, Any] = {}
        if duration is not None:
            result["duration"] = duration
        if success is not None:
            result["success"] = success
        if completion is not None:
            result["completion"] = completion
        if score is not None:
            result["score"] = as_document(score)
        fields: Dict[str, Any] = {"verb": VERBS["terminated"]}
        if result:
            fields["result"] = result
        return await self._request(**fields)

    async def suspend(self, duration: Optional[str] = None) -> List[str]:
        fields: Dict[str, Any] = {"verb": VERBS["suspended"]}
        if duration is not None:
            fields["result"] = {"duration": duration}
        return await self._request(**fields)

    # https://adl.gitbooks.io/scorm-profile-xapi/content/xapi-scorm-profile.html#comments-from-learner
    async def comment(self, text: str) -> List[str]:
        return await self._request(verb=VERBS["commented"], result={"response": text})

    comments = comment

    async def complete(self) -> List[str]:
        return await self._request(verb=VERBS["completed"])

    # https://adl.gitbooks.io/scorm-profile-xapi/content/xapi-scorm-profile.html#success-status
    async def pass_(self) -> List[str]:
        return await self._request(verb=VERBS["passed"])

    async def fail(self) -> List[str]:
        return await self._request(verb=VERBS["failed"])

    # https://adl.gitbooks.io/scorm-profile-xapi/content/xapi-scorm-profile.html#score
    async def score(self, score: Score) -> List[str]:
        return await self._request(verb=VERBS["scored"], result={"score": as_document(score)})

    # https://adl.gitbooks.io/scorm-profile-xapi/content/xapi-scorm-profile.html#interactions
    async def interaction(
        self,
        interaction_id: Any,
        response: str,
        definition: Union[InteractionDefinition, Mapping[str, Any]],
        activity_id: Optional[str] = None,
    ) -> List[str]:
        activity = {
            "objectType": "Activity",
            "id": activity_id or _activity_id(self._config, "interaction", interaction_id),
            "definition": as_document(definition),
        }
        return await self._request(verb=VERBS["responded"], result={"response": response}, object=activity)

    # https://adl.gitbooks.io/scorm-profile-xapi/content/xapi-scorm-profile.html#objectives
    async def objective(
        self,
        objective_id: str,
        verb: Union[str, Mapping[str, Any]],
        definition: Union[ObjectiveDefinition, Mapping[str, Any]],
        activity_id: Optional[str] = None,
    ) -> List[str]:
        activity = {
            "objectType": "Activity",
            "id": activity_id or _activity_id(self._config, "objective", objective_id),
            "definition": as_document(definition),
        }
        return await self._request(verb=_resolve_verb(verb), object=activity)

    async def get_attempt_state(self) -> Optional[Dict[str, Any]]:
        return await self.attempts.get_attempt_state(self._config, self._attempt)

    async def set_attempt_state(self, patch: Union[BaseModel, Mapping[str, Any]]) -> Dict[str, Any]:
        return await self.attempts.set_attempt_state(self._config, self._attempt, patch)

    async def get_agent_profile(self) -> Optional[Dict[str, Any]]:
        """Learner preferences from the SCORM agent profile, or ``None`` if never stored."""

        try:
            return await self.lrs.get_agent_profile(self._config.actor, AGENT_PROFILE_ID)
        except StateNotFoundError:
            return None
