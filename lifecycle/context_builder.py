"""Derive the object and context activities shared by every SCORM profile statement.

All functions are pure: they read the configuration and the current attempt and
return fresh dicts. Missing optional inputs shrink the output instead of raising.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from schemas import Attempt, SCORMConfig
from xapi import ACTIVITY_TYPES, SCORM_PROFILE_IRI, language_map


def _definition(activity_type: str, name: Optional[str] = None, description: Optional[str] = None) -> Dict[str, Any]:
    definition: Dict[str, Any] = {}
    if name:
        definition["name"] = language_map(name)
    if description:
        definition["description"] = language_map(description)
    definition["type"] = ACTIVITY_TYPES[activity_type]
    return definition


def build_lesson_object(config: SCORMConfig) -> Optional[Dict[str, Any]]:
    """Statement object for the lesson, or ``None`` when no lesson IRI is configured."""

    if not config.lessonIRI:
        return None
    return {
        "objectType": "Activity",
        "id": config.lessonIRI,
        "definition": _definition("lesson", config.lessonTitle, config.lessonDescription),
    }


def attempt_grouping_id(course_iri: str, attempt_iri: str) -> str:
    return f"{course_iri}?attemptId={attempt_iri}"


def build_attempt_grouping_activity(config: SCORMConfig, attempt: Optional[Attempt]) -> Optional[Dict[str, Any]]:
    if not config.courseIRI or attempt is None or not attempt.iri:
        return None
    name = description = None
    if config.courseTitle and config.lessonTitle:
        name = f"Attempt of {config.courseTitle}"
        description = (
            f"The activity representing an attempt of {config.lessonTitle} "
            f"in the course {config.courseTitle}"
        )
    return {
        "id": attempt_grouping_id(config.courseIRI, attempt.iri),
        "definition": _definition("attempt", name, description),
    }


def build_course_grouping_activity(config: SCORMConfig) -> Optional[Dict[str, Any]]:
    if not config.courseIRI:
        return None
    return {
        "id": config.courseIRI,
        "definition": _definition("course", config.courseTitle, config.courseDescription),
    }


def build_context(config: SCORMConfig, attempt: Optional[Attempt] = None) -> Dict[str, Any]:
    """Context with the SCORM profile category and attempt/course groupings, in that order."""

    grouping = [
        activity
        for activity in (
            build_attempt_grouping_activity(config, attempt),
            build_course_grouping_activity(config),
        )
        if activity is not None
    ]
    return {
        "contextActivities": {
            "category": [{"id": SCORM_PROFILE_IRI, "definition": {"type": ACTIVITY_TYPES["profile"]}}],
            "grouping": grouping,
        }
    }
