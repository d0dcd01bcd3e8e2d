"""Shared fixtures for triage tests."""

import json
from typing import Any, Callable, Optional

import httpx
import pytest

from casework_triage.config import EngineConfig
from casework_triage.schemas import TriageContext


def build_context(
    existing_cases: Optional[list[dict]] = None,
    matched_campaigns: Optional[list[dict]] = None,
    matched_constituent: Optional[dict] = None,
    subject: str = "Housing repair needed urgently",
) -> TriageContext:
    """Build a context with a small, fixed office reference data set."""
    return TriageContext.model_validate(
        {
            "email": {
                "subject": subject,
                "body": "My flat has had no heating for two weeks. Jane Doe, 12 High St, SW1A 1AA",
                "senderEmail": "jane@example.com",
                "senderName": "Jane Doe",
                "receivedAt": "2025-01-06T09:30:00Z",
            },
            "referenceData": {
                "caseTypes": [
                    {"id": 1, "name": "Housing"},
                    {"id": 2, "name": "Benefits"},
                    {"id": 3, "name": "Immigration"},
                ],
                "categories": [
                    {"id": 10, "name": "Repairs", "keywords": ["heating", "damp"]},
                    {"id": 11, "name": "Universal Credit"},
                ],
                "caseworkers": [
                    {"id": 100, "name": "Sam Patel", "specialties": ["housing"]},
                ],
                "tags": [
                    {"id": "t-urgent", "name": "Urgent"},
                    {"id": "t-vulnerable", "name": "Vulnerable"},
                ],
            },
            "existingCases": existing_cases or [],
            "matchedCampaigns": matched_campaigns or [],
            "matchedConstituent": matched_constituent,
        }
    )


def suggestion_payload(**overrides: Any) -> dict[str, Any]:
    """A valid raw suggestion as the provider would return it."""
    payload = {
        "emailType": "casework",
        "classificationConfidence": 0.9,
        "classificationReasoning": "Constituent needs help with housing",
        "recommendedAction": "create_case",
        "actionConfidence": 0.85,
        "suggestedPriority": "high",
        "priorityConfidence": 0.8,
        "suggestedCaseType": {"id": 1, "name": "Housing", "confidence": 0.9},
        "suggestedCategory": {"id": 10, "name": "Repairs", "confidence": 0.8},
        "suggestedAssignee": {"id": 100, "name": "Sam Patel", "confidence": 0.7},
        "suggestedTags": [{"id": "t-urgent", "name": "Urgent", "confidence": 0.9}],
        "suggestedSummary": "No heating for two weeks.",
    }
    payload.update(overrides)
    return payload


def completion_body(content: Optional[str]) -> dict[str, Any]:
    return {
        "model": "test/model",
        "choices": [{"message": {"role": "assistant", "content": content}}],
    }


class ScriptedTransport(httpx.AsyncBaseTransport):
    """Replays a fixed list of responses or exceptions, one per request."""

    def __init__(self, script: list[Any]):
        self._script = list(script)
        self.requests: list[httpx.Request] = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._script:
            raise AssertionError("Unexpected extra request")
        step = self._script.pop(0)
        if isinstance(step, Exception):
            raise step
        if isinstance(step, httpx.Response):
            # Fresh copy so one scripted response can be replayed.
            return httpx.Response(step.status_code, headers=step.headers, content=step.content)
        if isinstance(step, str):
            return httpx.Response(200, json=completion_body(step))
        return httpx.Response(200, json=step)


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def config() -> EngineConfig:
    return EngineConfig(openrouter_api_key="test-key", model="test/model")


@pytest.fixture
def context() -> TriageContext:
    return build_context()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def raw_suggestion() -> Callable[..., str]:
    def _make(**overrides: Any) -> str:
        return json.dumps(suggestion_payload(**overrides))

    return _make
