"""
Tests for message_generator.py and the Gemini message provider.
"""

import json
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from google.genai import errors as genai_errors

from notifications.delay_resolver import TrafficDelayResolver
from notifications.errors import (
    ConfigurationError,
    InputValidationError,
    MessageParseError,
    MissingOutputError,
    ProviderDataError,
    TransientProviderError,
)
from notifications.message_generator import (
    TRAFFIC_MESSAGE_SCHEMA,
    TrafficMessageGenerator,
    build_prompt,
)
from notifications.models import NotificationMessage, RouteComparison
from providers.real_providers import GeminiMessageProvider


DEPARTURE = datetime(2026, 1, 20, 14, 0, tzinfo=timezone.utc)


def _resolution(with_traffic=5400, without_traffic=1800):
    comparison = RouteComparison(
        duration_with_traffic=with_traffic,
        duration_without_traffic=without_traffic,
        distance=52000,
        route_origin_label="Depot A",
        route_destination_label="Customer B",
        departure_time=DEPARTURE,
        estimated_arrival_time=DEPARTURE + timedelta(seconds=with_traffic),
    )
    return TrafficDelayResolver.resolve(comparison, 30)


class StubMessages:
    def __init__(self, content):
        self.content = content
        self.prompts = []
        self.schemas = []

    async def generate_json(self, prompt, schema):
        self.prompts.append(prompt)
        self.schemas.append(schema)
        return self.content


class TestBuildPrompt:

    def test_prompt_carries_route_facts(self):
        prompt = build_prompt(_resolution())

        assert "Origin: Depot A" in prompt
        assert "Destination: Customer B" in prompt
        assert "Delay Minutes: 60" in prompt
        assert "Estimated Arrival Time: 2026-01-20T15:30:00.000Z" in prompt
        assert "Distance: 52000 meters" in prompt
        assert "Duration with Traffic: 5400 seconds" in prompt
        assert "Duration without Traffic: 1800 seconds" in prompt
        assert "subject, message" in prompt


class TestTrafficMessageGenerator:

    @pytest.mark.asyncio
    async def test_returns_notification_message(self):
        provider = StubMessages(json.dumps({
            "subject": "Delivery delayed",
            "message": "Traffic is heavy; we expect to arrive an hour late.",
        }))

        message = await TrafficMessageGenerator(provider).generate(_resolution())

        assert message == NotificationMessage(
            subject="Delivery delayed",
            body="Traffic is heavy; we expect to arrive an hour late.",
        )
        assert provider.schemas == [TRAFFIC_MESSAGE_SCHEMA]
        assert len(provider.prompts) == 1

    @pytest.mark.asyncio
    async def test_whitespace_is_stripped(self):
        provider = StubMessages('{"subject": "  Late  ", "message": "\\nSorry.\\n"}')

        message = await TrafficMessageGenerator(provider).generate(_resolution())

        assert message.subject == "Late"
        assert message.body == "Sorry."

    @pytest.mark.parametrize("content", [None, ""])
    @pytest.mark.asyncio
    async def test_scenario_d_empty_content(self, content):
        generator = TrafficMessageGenerator(StubMessages(content))

        with pytest.raises(MissingOutputError, match="No content received") as exc_info:
            await generator.generate(_resolution())
        assert exc_info.value.retryable is False

    @pytest.mark.parametrize("content", [
        "not json at all",
        '{"subject": "Late"}',
        '{"subject": "Late", "message": "Sorry", "extra": "field"}',
        '{"subject": "", "message": "Sorry"}',
        '{"subject": 42, "message": "Sorry"}',
        '["Late", "Sorry"]',
    ])
    @pytest.mark.asyncio
    async def test_schema_mismatch_is_parse_error(self, content):
        generator = TrafficMessageGenerator(StubMessages(content))

        with pytest.raises(MessageParseError, match="Failed to parse structured output"):
            await generator.generate(_resolution())

    @pytest.mark.asyncio
    async def test_rejects_non_resolution(self):
        provider = StubMessages("{}")

        with pytest.raises(InputValidationError):
            await TrafficMessageGenerator(provider).generate({"delay_minutes": 60})
        assert provider.prompts == []


class FakeModels:
    """Mimics client.models.generate_content from google-genai."""

    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    def generate_content(self, model, contents, config):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.text)


def _gemini(text=None, error=None):
    models = FakeModels(text=text, error=error)
    return GeminiMessageProvider(client=SimpleNamespace(models=models), model="gemini-test"), models


class TestGeminiMessageProvider:

    def test_missing_key_fails_at_construction(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)

        with pytest.raises(ConfigurationError, match="GEMINI_API_KEY is not set"):
            GeminiMessageProvider()

    @pytest.mark.asyncio
    async def test_requests_json_with_schema(self):
        provider, models = _gemini(text='{"subject": "s", "message": "m"}')

        content = await provider.generate_json("prompt text", TRAFFIC_MESSAGE_SCHEMA)

        assert content == '{"subject": "s", "message": "m"}'
        call = models.calls[0]
        assert call["model"] == "gemini-test"
        assert call["contents"] == "prompt text"
        assert call["config"].response_mime_type == "application/json"
        assert call["config"].response_json_schema == TRAFFIC_MESSAGE_SCHEMA

    @pytest.mark.asyncio
    async def test_empty_response_passes_through(self):
        provider, _ = _gemini(text=None)
        assert await provider.generate_json("prompt", TRAFFIC_MESSAGE_SCHEMA) is None

    @pytest.mark.parametrize("code,expected", [
        (401, ConfigurationError),
        (403, ConfigurationError),
        (429, TransientProviderError),
        (400, ProviderDataError),
    ])
    @pytest.mark.asyncio
    async def test_client_errors_are_classified(self, code, expected):
        error = genai_errors.ClientError(code, {"error": {"code": code, "message": "nope", "status": "ERR"}})
        provider, _ = _gemini(error=error)

        with pytest.raises(expected):
            await provider.generate_json("prompt", TRAFFIC_MESSAGE_SCHEMA)

    @pytest.mark.asyncio
    async def test_server_errors_are_transient(self):
        error = genai_errors.ServerError(503, {"error": {"code": 503, "message": "overloaded", "status": "UNAVAILABLE"}})
        provider, _ = _gemini(error=error)

        with pytest.raises(TransientProviderError):
            await provider.generate_json("prompt", TRAFFIC_MESSAGE_SCHEMA)
