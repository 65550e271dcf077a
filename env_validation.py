"""Environment variable validation and out-of-band configuration."""

import json
import logging
import os
from typing import Any, Dict

from xapi import basic_auth

logger = logging.getLogger(__name__)

class EnvironmentError(Exception):
    """Raised when required environment variables are missing or invalid."""
    pass

_CONFIG_VARS = {
    "XAPI_COURSE_IRI": "courseIRI",
    "XAPI_COURSE_TITLE": "courseTitle",
    "XAPI_COURSE_DESCRIPTION": "courseDescription",
    "XAPI_LESSON_IRI": "lessonIRI",
    "XAPI_LESSON_TITLE": "lessonTitle",
    "XAPI_LESSON_DESCRIPTION": "lessonDescription",
    "XAPI_ENTRY": "entry",
}

def validate_environment() -> None:
    """Validate the LRS related environment variables.

    Raises EnvironmentError if validation fails.
    """
    required_vars: Dict[str, str] = {
        "LRS_URL": "Learning Record Store URL",
        "XAPI_ACTOR": "xAPI Agent JSON for the learner",
    }

    optional_vars = {
        "LRS_AUTH": "Learning Record Store authentication",
        "XAPI_COURSE_IRI": "Course activity IRI",
        "XAPI_LESSON_IRI": "Lesson activity IRI",
    }

    # Check required variables
    missing = []
    for var, description in required_vars.items():
        if not os.getenv(var):
            missing.append(f"{var} ({description})")

    if missing:
        raise EnvironmentError(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    value = os.getenv("LRS_URL", "")
    if not (value.startswith("http://") or value.startswith("https://")):
        raise EnvironmentError(f"Invalid URL format for LRS_URL: {value}")

    try:
        actor = json.loads(os.environ["XAPI_ACTOR"])
    except ValueError as exc:
        raise EnvironmentError(f"XAPI_ACTOR is not valid JSON: {exc}") from exc
    if not isinstance(actor, dict):
        raise EnvironmentError("XAPI_ACTOR must be a JSON object")

    entry = os.getenv("XAPI_ENTRY")
    if entry and entry not in {"ab-initio", "resume"}:
        raise EnvironmentError(f"Invalid XAPI_ENTRY: {entry}")

    # Log optional variables status
    for var, description in optional_vars.items():
        if not os.getenv(var):
            logger.warning("Optional environment variable not set: %s (%s)", var, description)

def config_from_environment() -> Dict[str, Any]:
    """Build a configuration mapping from the environment.

    Returns an empty dict when ``LRS_URL`` is unset so it can be passed straight
    to ``SCORMProfile`` and fall through to ``ConfigurationMissingError``.
    """
    if not os.getenv("LRS_URL"):
        return {}
    validate_environment()

    config: Dict[str, Any] = {
        "endpoint": os.environ["LRS_URL"],
        "actor": json.loads(os.environ["XAPI_ACTOR"]),
    }
    auth = os.getenv("LRS_AUTH")
    if not auth and os.getenv("LRS_USERNAME"):
        auth = basic_auth(os.environ["LRS_USERNAME"], os.getenv("LRS_PASSWORD", ""))
    if auth:
        config["auth"] = auth

    for var, field in _CONFIG_VARS.items():
        value = os.getenv(var)
        if value:
            config[field] = value
    return config
