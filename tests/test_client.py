"""
Tests for the LLM sentiment client.

The HTTP layer is replaced by a fake session so no request leaves the process.
"""

import json

import pytest
import requests

from sentiment_hub.client import SentimentClient, parse_sentiment_payload
from sentiment_hub.config import Settings
from sentiment_hub.errors import ClassifierError


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=None):
        self.status_code = status_code
        self._body = body
        self._text = text

    def json(self):
        if self._text is not None:
            return json.loads(self._text)
        return self._body

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakeSession:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def make_client(responses, **overrides):
    params = dict(api_url="http://llm.local/v1/chat/completions", api_key="k", model="m",
                  timeout=5.0, max_retries=3, retry_delay=0.5)
    params.update(overrides)
    session = FakeSession(responses)
    sleeps = []
    client = SentimentClient(Settings(**params), session=session, sleep=sleeps.append)
    return client, session, sleeps


class TestParsePayload:

    def test_completion_with_code_fence(self):
        body = completion('```json\n{"polarity": 0.6, "subjectivity": 0.9, "named_entities": ["Paris"]}\n```')
        assert parse_sentiment_payload(body) == {
            "polarity": 0.6, "subjectivity": 0.9, "named_entities": ["Paris"],
        }

    def test_direct_record_with_entity_objects(self):
        body = {"polarity": "-0.4", "subjectivity": 0.1,
                "named_entities": [{"text": "bob@example.com", "type": "EMAIL"}, {"label": "x"}, "  "]}
        result = parse_sentiment_payload(body)
        assert result["polarity"] == -0.4
        assert result["named_entities"] == ["bob@example.com"]

    def test_missing_entities_is_empty_list(self):
        assert parse_sentiment_payload({"polarity": 0, "subjectivity": 0})["named_entities"] == []

    @pytest.mark.parametrize("body", [
        completion("not json at all"),
        completion('["a list"]'),
        {"choices": []},
        {"polarity": "high", "subjectivity": 0.2},
        {"subjectivity": 0.2},
        {"polarity": True, "subjectivity": 0.2},
        completion('{"polarity": NaN, "subjectivity": 0.3}'),
        completion('{"polarity": 0.1, "subjectivity": Infinity}'),
        {"polarity": "-inf", "subjectivity": 0.3},
    ])
    def test_unusable_replies_raise(self, body):
        with pytest.raises(ClassifierError):
            parse_sentiment_payload(body)


class TestSentimentClient:

    def test_request_shape(self):
        reply = completion('{"polarity": 0.2, "subjectivity": 0.3, "named_entities": []}')
        client, session, _ = make_client([FakeResponse(body=reply)])
        result = client.analyze("I love Lisbon")

        assert result["polarity"] == 0.2
        call = session.calls[0]
        assert call["url"] == "http://llm.local/v1/chat/completions"
        assert call["timeout"] == 5.0
        assert call["headers"]["Authorization"] == "Bearer k"
        assert call["json"]["model"] == "m"
        assert call["json"]["messages"][-1] == {"role": "user", "content": "I love Lisbon"}

    def test_no_auth_header_without_key(self):
        reply = {"polarity": 0, "subjectivity": 0}
        client, session, _ = make_client([FakeResponse(body=reply)], api_key="")
        client.analyze("x")
        assert "Authorization" not in session.calls[0]["headers"]

    def test_rate_limit_retries_with_backoff(self):
        reply = completion('{"polarity": -0.5, "subjectivity": 0.7}')
        client, session, sleeps = make_client([
            FakeResponse(status_code=429),
            FakeResponse(status_code=503),
            FakeResponse(body=reply),
        ])
        assert client.analyze("meh")["polarity"] == -0.5
        assert len(session.calls) == 3
        assert sleeps == [0.5, 1.0]

    def test_gives_up_after_max_retries(self):
        client, session, sleeps = make_client([FakeResponse(status_code=429)] * 3)
        with pytest.raises(ClassifierError):
            client.analyze("x")
        assert len(session.calls) == 3
        assert len(sleeps) == 2

    def test_client_error_not_retried(self):
        client, session, _ = make_client([FakeResponse(status_code=401)])
        with pytest.raises(ClassifierError):
            client.analyze("x")
        assert len(session.calls) == 1

    def test_transport_error(self):
        client, _, _ = make_client([requests.ConnectionError("refused")])
        with pytest.raises(ClassifierError):
            client.analyze("x")

    def test_non_json_body(self):
        client, _, _ = make_client([FakeResponse(text="<html>oops</html>")])
        with pytest.raises(ClassifierError):
            client.analyze("x")
