"""xAPI vocabulary and statement helpers for the SCORM profile.

The module defines the verbs, activity types and document identifiers used by the
xAPI SCORM Profile (https://adl.gitbooks.io/scorm-profile-xapi/) together with a
light validation pass applied to every statement before it is handed to the LRS.
"""

from __future__ import annotations

import base64
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Mapping
from urllib.parse import parse_qsl, urlsplit

LOGGER = logging.getLogger("scorm.xapi")

XAPI_VERSION = "1.0.3"
LANGUAGE = "en-US"

# ---------------------------------------------------------------------------
# SCORM profile vocabulary
# ---------------------------------------------------------------------------

SCORM_PROFILE_IRI = "https://w3id.org/xapi/scorm"
ACTIVITY_STATE_ID = "activity-state"
ATTEMPT_STATE_ID = "attempt-state"
AGENT_PROFILE_ID = "https://w3id.org/xapi/scorm/agent-profile"

ACTIVITY_TYPES: dict[str, str] = {
    "profile": "http://adlnet.gov/expapi/activities/profile",
    "course": "http://adlnet.gov/expapi/activities/course",
    "lesson": "http://adlnet.gov/expapi/activities/lesson",
    "attempt": "http://adlnet.gov/expapi/activities/attempt",
    "interaction": "http://adlnet.gov/expapi/activities/cmi.interaction",
    "objective": "http://adlnet.gov/expapi/activities/objective",
}


def _verb(name: str) -> dict[str, Any]:
    return {"id": f"http://adlnet.gov/expapi/verbs/{name}", "display": {LANGUAGE: name}}


VERBS: dict[str, dict[str, Any]] = {
    name: _verb(name)
    for name in (
        "initialized",
        "resumed",
        "suspended",
        "terminated",
        "commented",
        "completed",
        "passed",
        "failed",
        "scored",
        "responded",
        "satisfied",
        "mastered",
    )
}


def language_map(text: str) -> dict[str, str]:
    return {LANGUAGE: text}


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------


def validate_statement(statement: Dict[str, Any]) -> Dict[str, Any]:
    """Check the parts of a statement this package is responsible for.

    Raises ``ValueError`` when the statement could never be accepted by an LRS;
    the statement is returned unchanged otherwise.
    """

    if not isinstance(statement, dict):
        raise ValueError("statement must be a dict")

    actor = statement.get("actor")
    if not isinstance(actor, Mapping) or not actor:
        raise ValueError("actor must be provided")

    verb = statement.get("verb")
    if not isinstance(verb, Mapping) or not isinstance(verb.get("id"), str):
        raise ValueError("verb.id must be provided")
    if not verb["id"].strip():
        raise ValueError("verb.id must be a non-empty string")

    if "object" in statement:
        obj = statement["object"]
        if not isinstance(obj, Mapping) or not isinstance(obj.get("id"), str) or not obj["id"].strip():
            raise ValueError("object.id must be a non-empty string")

    result = statement.get("result")
    if result is not None:
        if not isinstance(result, Mapping):
            raise ValueError("result must be a dict when provided")
        score = result.get("score")
        if score is not None:
            if not isinstance(score, Mapping):
                raise ValueError("result.score must be a dict when provided")
            scaled = score.get("scaled")
            if scaled is not None and not -1.0 <= float(scaled) <= 1.0:
                raise ValueError("result.score.scaled must be between -1 and 1")
        for flag in ("success", "completion"):
            if flag in result and not isinstance(result[flag], bool):
                raise ValueError(f"result.{flag} must be a boolean")

    context = statement.get("context")
    if context is not None and not isinstance(context, Mapping):
        raise ValueError("context must be a dict")

    return statement


def basic_auth(username: str, password: str) -> str:
    """Build an ``Authorization`` header value for HTTP Basic auth."""

    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def _decode_param(value: str) -> Any:
    try:
        decoded = json.loads(value)
    except ValueError:
        return value
    # Only structured values are decoded, so numeric-looking ids stay strings.
    if isinstance(decoded, (dict, list)):
        return decoded
    return value


def launch_params_from_url(url: str) -> Dict[str, Any]:
    """Extract launch parameters from the query string of a launch URL."""

    query = urlsplit(url).query
    params = {key: _decode_param(value) for key, value in parse_qsl(query, keep_blank_values=False)}
    if params:
        LOGGER.debug("Found launch parameters: %s", ", ".join(sorted(params)))
    return params
