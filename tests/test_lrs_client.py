import asyncio
import json

import pytest
import requests

from lrs import LRSClient, LRSError, StateNotFoundError

ACTOR = {"mbox": "mailto:hello@example.com"}


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else ("" if payload is None else json.dumps(payload))

    def json(self):
        if self._payload is None and self.text:
            return json.loads(self.text)
        return self._payload


class FakeSession:
    def __init__(self, *responses):
        self.headers = {}
        self.requests = []
        self._responses = list(responses)

    def request(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def test_client_sets_protocol_headers():
    session = FakeSession()
    LRSClient("https://lrs.example.com/xapi/", "Basic abc", session=session)

    assert session.headers["X-Experience-API-Version"] == "1.0.3"
    assert session.headers["Authorization"] == "Basic abc"
    assert session.headers["Content-Type"] == "application/json"


def test_send_statement_posts_and_returns_ids():
    session = FakeSession(FakeResponse(200, ["id-1"]))
    client = LRSClient("https://lrs.example.com/xapi/", session=session, timeout=3)

    ids = asyncio.run(client.send_statement({"verb": {"id": "http://adlnet.gov/expapi/verbs/completed"}}))

    assert ids == ["id-1"]
    method, url, kwargs = session.requests[0]
    assert (method, url) == ("POST", "https://lrs.example.com/xapi/statements")
    assert json.loads(kwargs["data"])["verb"]["id"].endswith("completed")
    assert kwargs["timeout"] == 3
    assert "Authorization" not in session.headers


def test_get_state_sends_document_address():
    session = FakeSession(FakeResponse(200, {"attempts": ["a"]}))
    client = LRSClient("https://lrs.example.com/xapi", session=session)

    document = asyncio.run(client.get_state(ACTOR, "https://example.com/lesson", "activity-state"))

    assert document == {"attempts": ["a"]}
    method, url, kwargs = session.requests[0]
    assert (method, url) == ("GET", "https://lrs.example.com/xapi/activities/state")
    assert kwargs["params"] == {
        "activityId": "https://example.com/lesson",
        "agent": '{"mbox":"mailto:hello@example.com"}',
        "stateId": "activity-state",
    }
    assert kwargs["data"] is None


def test_get_state_not_found():
    client = LRSClient("https://lrs.example.com/xapi", session=FakeSession(FakeResponse(404)))

    with pytest.raises(StateNotFoundError):
        asyncio.run(client.get_state(ACTOR, "https://example.com/lesson", "activity-state"))


def test_create_posts_and_set_puts():
    session = FakeSession(FakeResponse(204), FakeResponse(204))
    client = LRSClient("https://lrs.example.com/xapi", session=session)

    asyncio.run(client.create_state(ACTOR, "act", "attempt-state", {"location": "1"}))
    asyncio.run(client.set_state(ACTOR, "act", "activity-state", {"attempts": ["a"]}))

    assert [request[0] for request in session.requests] == ["POST", "PUT"]
    assert json.loads(session.requests[1][2]["data"]) == {"attempts": ["a"]}


def test_error_status_raises_lrs_error():
    client = LRSClient("https://lrs.example.com/xapi", session=FakeSession(FakeResponse(500, {"error": "x"})))

    with pytest.raises(LRSError) as excinfo:
        asyncio.run(client.set_state(ACTOR, "act", "attempt-state", {}))

    assert excinfo.value.status_code == 500


def test_statement_404_is_not_treated_as_missing_state():
    client = LRSClient("https://lrs.example.com/xapi", session=FakeSession(FakeResponse(404)))

    with pytest.raises(LRSError) as excinfo:
        asyncio.run(client.send_statement({"verb": {"id": "v"}}))

    assert excinfo.value.status_code == 404


def test_connection_error_wrapped():
    client = LRSClient(
        "https://lrs.example.com/xapi",
        session=FakeSession(requests.ConnectionError("refused")),
    )

    with pytest.raises(LRSError) as excinfo:
        asyncio.run(client.get_state(ACTOR, "act", "attempt-state"))

    assert excinfo.value.status_code is None
    assert isinstance(excinfo.value.__cause__, requests.ConnectionError)


def test_get_agent_profile():
    session = FakeSession(FakeResponse(200, {"language": "en-US"}), FakeResponse(404))
    client = LRSClient("https://lrs.example.com/xapi", session=session)

    assert asyncio.run(client.get_agent_profile(ACTOR, "https://w3id.org/xapi/scorm/agent-profile")) == {
        "language": "en-US"
    }
    assert session.requests[0][1] == "https://lrs.example.com/xapi/agents/profile"
    assert session.requests[0][2]["params"]["profileId"] == "https://w3id.org/xapi/scorm/agent-profile"

    with pytest.raises(StateNotFoundError):
        asyncio.run(client.get_agent_profile(ACTOR, "https://w3id.org/xapi/scorm/agent-profile"))


@pytest.mark.parametrize(
    "call",
    [
        lambda client: client.get_state(ACTOR, "act", "attempt-state"),
        lambda client: client.send_statement({"verb": {"id": "v"}}),
        lambda client: client.get_agent_profile(ACTOR, "https://w3id.org/xapi/scorm/agent-profile"),
    ],
)
def test_non_json_body_raises_lrs_error(call):
    client = LRSClient(
        "https://lrs.example.com/xapi",
        session=FakeSession(FakeResponse(200, text="<html>proxy login</html>")),
    )

    with pytest.raises(LRSError) as excinfo:
        asyncio.run(call(client))

    assert excinfo.value.status_code == 200
    assert isinstance(excinfo.value.__cause__, ValueError)
