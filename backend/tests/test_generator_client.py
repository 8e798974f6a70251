import json

import pytest
import requests

from slotcraft.core.config import get_settings
from slotcraft.core.exceptions import ConfigurationError, GenerationError
from slotcraft.schemas.constraints import Constraints
from slotcraft.schemas.entities import EntityBundle
from slotcraft.services import generator_client
from slotcraft.services.generator_client import GeneratorClient, parse_generation_body
from slotcraft.services.request_builder import build_generation_request


class StubResponse:
    def __init__(self, status_code=200, body="", reason="OK"):
        self.status_code = status_code
        self.text = body
        self.reason = reason


class StubSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture()
def generation_request(entities):
    data = EntityBundle.model_validate(entities)
    return build_generation_request(data.classes, data.faculty, data.subjects, data.rooms, Constraints())


def test_generate_posts_once_and_parses_result(generation_request):
    body = {
        "timetable": [
            {
                "day": "Monday",
                "time": "09:00-10:00",
                "className": "CSE-2A",
                "subject": "Data Structures",
                "faculty": "Dr. Rao",
                "room": "A101",
                "type": "theory",
            }
        ],
        "unscheduledSessions": [{"className": "CSE-2B", "subject": "DS Lab", "reason": "No lab free"}],
    }
    session = StubSession(StubResponse(body=json.dumps(body)))
    client = GeneratorClient("http://generator.local/generate", api_key="secret", timeout_seconds=12, session=session)

    result = client.generate(generation_request)

    assert len(session.calls) == 1
    url, kwargs = session.calls[0]
    assert url == "http://generator.local/generate"
    assert kwargs["timeout"] == 12
    assert kwargs["headers"]["Authorization"] == "Bearer secret"
    assert json.loads(kwargs["data"])["constraints"]["workingDays"][0] == "monday"
    assert result.timetable[0].day == "monday"
    assert result.timetable[0].type == "Theory"
    assert result.timetable[0].classType == "regular"
    assert result.unscheduledSessions[0].reason == "No lab free"


def test_http_error_keeps_generator_message(generation_request):
    session = StubSession(StubResponse(status_code=500, body=json.dumps({"message": "model overloaded"})))
    client = GeneratorClient("http://generator.local/generate", session=session)

    with pytest.raises(GenerationError) as exc_info:
        client.generate(generation_request)

    assert exc_info.value.status_code == 502
    assert exc_info.value.details["raw"] == "model overloaded"
    assert exc_info.value.details["status_code"] == 500
    assert "guidance" in exc_info.value.details
    assert len(session.calls) == 1


def test_timeout_is_not_retried(generation_request):
    session = StubSession(error=requests.exceptions.Timeout("read timed out"))
    client = GeneratorClient("http://generator.local/generate", timeout_seconds=5, session=session)

    with pytest.raises(GenerationError) as exc_info:
        client.generate(generation_request)

    assert "5 seconds" in exc_info.value.message
    assert len(session.calls) == 1


def test_connection_error_becomes_generation_error(generation_request):
    session = StubSession(error=requests.exceptions.ConnectionError("refused"))
    client = GeneratorClient("http://generator.local/generate", session=session)

    with pytest.raises(GenerationError) as exc_info:
        client.generate(generation_request)
    assert "refused" in exc_info.value.details["raw"]


@pytest.mark.parametrize("body", ["", "   ", "not json", json.dumps({"entries": []}), json.dumps({"timetable": {}})])
def test_malformed_bodies_are_rejected(body):
    with pytest.raises(GenerationError):
        parse_generation_body(body)


def test_bare_array_is_accepted():
    result = parse_generation_body(json.dumps([{"day": "tue", "time": "10:00-11:00", "className": "CSE-2A"}]))
    assert result.timetable[0].day == "tuesday"
    assert result.unscheduledSessions == []


def test_unknown_values_are_kept_for_analytics():
    result = parse_generation_body(
        json.dumps({"timetable": [{"day": "Funday", "type": "Seminar", "room": None}], "unscheduledSessions": None})
    )
    entry = result.timetable[0]
    assert (entry.day, entry.type, entry.room) == ("funday", "Seminar", "")


def test_missing_generator_url_is_a_configuration_error(monkeypatch):
    monkeypatch.setattr(generator_client, "get_settings", lambda: get_settings().model_copy(update={"generator_url": None}))
    with pytest.raises(ConfigurationError):
        generator_client.get_generator_client()


def test_generator_client_is_built_from_settings(monkeypatch):
    settings = get_settings().model_copy(
        update={"generator_url": "http://generator.local/generate", "generator_timeout_seconds": 30.0}
    )
    monkeypatch.setattr(generator_client, "get_settings", lambda: settings)
    client = generator_client.get_generator_client()
    assert client.base_url == "http://generator.local/generate"
    assert client.timeout_seconds == 30.0
