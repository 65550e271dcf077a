import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

TESTS = Path(__file__).resolve().parent
if str(TESTS) not in sys.path:
    sys.path.insert(0, str(TESTS))


ACTOR = {"objectType": "Agent", "name": "Jest", "mbox": "mailto:hello@example.com"}
COURSE_IRI = "https://github.com/xapijs"
LESSON_IRI = "https://github.com/xapijs/scorm"


@pytest.fixture
def config_data():
    return {
        "endpoint": "https://lrs.example.com/xapi",
        "auth": "Basic dGVzdDp0ZXN0",
        "actor": dict(ACTOR),
        "courseIRI": COURSE_IRI,
        "lessonIRI": LESSON_IRI,
    }


@pytest.fixture
def config(config_data):
    from schemas import SCORMConfig

    return SCORMConfig.model_validate(config_data)


@pytest.fixture
def fake_lrs():
    from fakes import FakeLRS

    return FakeLRS()


@pytest.fixture
def id_factory():
    counter = iter(range(1, 1000))
    return lambda: f"uuid-{next(counter)}"
