import pytest

from lifecycle import context_builder
from schemas import Attempt, SCORMConfig
from xapi import ACTIVITY_TYPES, SCORM_PROFILE_IRI

ATTEMPT = Attempt(iri="https://github.com/xapijs/scorm?attemptId=abc")


def _config(config_data, **overrides):
    data = dict(config_data)
    data.update(overrides)
    return SCORMConfig.model_validate(data)


def test_lesson_object_includes_only_present_labels(config_data):
    plain = context_builder.build_lesson_object(_config(config_data))
    assert plain == {
        "objectType": "Activity",
        "id": "https://github.com/xapijs/scorm",
        "definition": {"type": ACTIVITY_TYPES["lesson"]},
    }

    titled = context_builder.build_lesson_object(_config(config_data, lessonTitle="Lesson 1", lessonDescription=""))
    assert titled["definition"] == {"name": {"en-US": "Lesson 1"}, "type": ACTIVITY_TYPES["lesson"]}


def test_lesson_object_absent_without_lesson_iri(config_data):
    assert context_builder.build_lesson_object(_config(config_data, lessonIRI=None)) is None


def test_attempt_grouping_labels_need_both_titles(config_data):
    course_only = context_builder.build_attempt_grouping_activity(
        _config(config_data, courseTitle="Course"), ATTEMPT
    )
    assert course_only["id"] == "https://github.com/xapijs?attemptId=https://github.com/xapijs/scorm?attemptId=abc"
    assert course_only["definition"] == {"type": ACTIVITY_TYPES["attempt"]}

    both = context_builder.build_attempt_grouping_activity(
        _config(config_data, courseTitle="Course", lessonTitle="Lesson"), ATTEMPT
    )
    assert both["definition"]["name"] == {"en-US": "Attempt of Course"}
    assert both["definition"]["description"] == {
        "en-US": "The activity representing an attempt of Lesson in the course Course"
    }


def test_course_grouping(config_data):
    course = context_builder.build_course_grouping_activity(
        _config(config_data, courseTitle="Course", courseDescription="All about it")
    )
    assert course == {
        "id": "https://github.com/xapijs",
        "definition": {
            "name": {"en-US": "Course"},
            "description": {"en-US": "All about it"},
            "type": ACTIVITY_TYPES["course"],
        },
    }
    assert context_builder.build_course_grouping_activity(_config(config_data, courseIRI=None)) is None


@pytest.mark.parametrize(
    "course_iri, attempt, expected_ids",
    [
        ("https://github.com/xapijs", ATTEMPT, ["https://github.com/xapijs?attemptId=" + ATTEMPT.iri, "https://github.com/xapijs"]),
        ("https://github.com/xapijs", None, ["https://github.com/xapijs"]),
        (None, ATTEMPT, []),
        (None, None, []),
    ],
)
def test_context_grouping_combinations(config_data, course_iri, attempt, expected_ids):
    context = context_builder.build_context(_config(config_data, courseIRI=course_iri), attempt)

    activities = context["contextActivities"]
    assert [activity["id"] for activity in activities["grouping"]] == expected_ids
    assert activities["category"] == [
        {"id": SCORM_PROFILE_IRI, "definition": {"type": "http://adlnet.gov/expapi/activities/profile"}}
    ]
