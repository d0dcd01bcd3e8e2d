"""End-to-end tests for TriageEngine with a scripted provider."""

import asyncio

import httpx
import pytest

from casework_triage import TriageEngine
from casework_triage.config import (
    EmailType,
    FailureKind,
    Priority,
    RecommendedAction,
    SuggestionPath,
)

from tests.conftest import ScriptedTransport, build_context, completion_body
from tests.test_repair import assert_invariants


def _engine(config, script, sleep):
    transport = ScriptedTransport(script)
    return TriageEngine(config, transport=transport, sleep=sleep), transport


def _analyze(engine, context):
    async def _run():
        async with engine:
            return await engine.analyze_with_diagnostics(context)

    return asyncio.run(_run())


class TestGeneratedPath:
    """Valid provider output is repaired and returned."""

    def test_valid_output(self, config, context, sleep, raw_suggestion):
        """A conforming response is returned with GENERATED diagnostics."""
        engine, transport = _engine(config, [raw_suggestion()], sleep)
        result = _analyze(engine, context)

        assert result.suggestion.recommended_action == RecommendedAction.CREATE_CASE
        assert result.suggestion.suggested_case_type.id == 1
        diag = result.diagnostics
        assert diag.path == SuggestionPath.GENERATED
        assert diag.attempts == 1
        assert diag.errors == []
        assert diag.raw_response == raw_suggestion()
        assert diag.suggestion == result.suggestion
        assert diag.model == "test/model"
        assert "## Email Being Triaged" in diag.prompt
        assert len(transport.requests) == 1

    def test_hallucinated_ids_repaired(self, config, context, sleep, raw_suggestion):
        """Unknown ids are removed before the suggestion is returned."""
        raw = raw_suggestion(
            suggestedCaseType={"id": 999, "name": "Made up", "confidence": 0.9},
            recommendedAction="add_to_case",
            suggestedExistingCaseId="ghost",
        )
        engine, _ = _engine(config, [raw], sleep)
        result = _analyze(engine, context)

        assert result.suggestion.suggested_case_type is None
        assert result.suggestion.recommended_action == RecommendedAction.CREATE_CASE
        assert result.diagnostics.path == SuggestionPath.GENERATED
        assert_invariants(result.suggestion, context)

    def test_retry_then_success(self, config, context, sleep, raw_suggestion):
        """A schema failure followed by a valid response still succeeds."""
        engine, _ = _engine(config, ['{"emailType": "casework"}', raw_suggestion()], sleep)
        result = _analyze(engine, context)

        assert result.diagnostics.path == SuggestionPath.GENERATED
        assert result.diagnostics.attempts == 2
        assert result.diagnostics.errors[0].kind == FailureKind.SCHEMA_VIOLATION
        assert sleep.delays == [2.0]


class TestFallbackPath:
    """Exhausted generation produces the deterministic fallback."""

    def test_campaign_fallback(self, config, sleep):
        """Three transport failures with a 0.9 campaign match assign the campaign."""
        context = build_context(
            matched_campaigns=[{"id": "c1", "name": "Library", "matchConfidence": 0.9}]
        )
        engine, _ = _engine(config, [httpx.Response(503)] * 3, sleep)
        result = _analyze(engine, context)

        suggestion = result.suggestion
        assert suggestion.email_type == EmailType.CAMPAIGN
        assert suggestion.recommended_action == RecommendedAction.ASSIGN_CAMPAIGN
        assert suggestion.suggested_campaign_id == "c1"
        assert suggestion.classification_confidence == 0.9
        assert suggestion.suggested_priority == Priority.LOW
        assert result.diagnostics.path == SuggestionPath.FALLBACK
        assert result.diagnostics.attempts == 3
        assert "LLM failed after 3 attempts" in result.diagnostics.raw_response
        assert sleep.delays == [2.0, 4.0]

    def test_malformed_fallback(self, config, context, sleep):
        """Malformed output on every attempt yields the generic fallback."""
        engine, _ = _engine(config, ["oops 1", "oops 2", "oops 3"], sleep)
        result = _analyze(engine, context)

        suggestion = result.suggestion
        assert suggestion.email_type == EmailType.CASEWORK
        assert suggestion.recommended_action == RecommendedAction.CREATE_CASE
        assert suggestion.classification_confidence == 0.4
        assert suggestion.action_confidence == 0.4
        assert suggestion.priority_confidence == 0.5
        assert result.diagnostics.raw_response == "oops 3"
        assert [e.kind for e in result.diagnostics.errors] == [FailureKind.MALFORMED] * 3

    def test_never_raises_on_provider_errors(self, config, context, sleep):
        """Network failures never escape the engine."""
        script = [httpx.ConnectError("down")] * 3
        engine, _ = _engine(config, script, sleep)

        async def _run():
            async with engine:
                return await engine.analyze(context)

        suggestion = asyncio.run(_run())
        assert suggestion.recommended_action == RecommendedAction.CREATE_CASE
        assert_invariants(suggestion, context)


class TestEngineSurface:
    """analyze_many and run_sync."""

    def test_analyze_many_keeps_order(self, config, sleep, raw_suggestion):
        """Results line up with their inputs."""
        contexts = [build_context(subject=f"Message {i}") for i in range(3)]
        engine, transport = _engine(config, [raw_suggestion()] * 3, sleep)

        async def _run():
            async with engine:
                return await engine.analyze_many(contexts)

        results = asyncio.run(_run())
        assert len(results) == 3
        for i, result in enumerate(results):
            assert f"Subject: Message {i}" in result.diagnostics.prompt
        assert len(transport.requests) == 3

    def test_run_sync(self, config, context, sleep, raw_suggestion):
        """The synchronous wrapper returns a full result."""
        engine, _ = _engine(config, [raw_suggestion()], sleep)
        result = engine.run_sync(context)
        assert result.diagnostics.path == SuggestionPath.GENERATED

    def test_config_exposed(self, config, sleep):
        """Configuration is readable from the engine."""
        engine, _ = _engine(config, [], sleep)
        assert engine.config is config
        asyncio.run(engine.aclose())

    @pytest.mark.parametrize("subject", ["", "Re: bins"])
    def test_wire_output_omits_absent_fields(self, config, sleep, subject):
        """Fallback wire output carries no null values."""
        context = build_context(subject=subject)
        engine, _ = _engine(config, [httpx.Response(500)] * 3, sleep)
        wire = _analyze(engine, context).suggestion.to_wire()
        assert None not in wire.values()
        assert "suggestedCampaignId" not in wire


OVERSIZED_NUMBER = '{"emailType": "casework", "classificationConfidence": ' + "1" * 5000 + "}"
DEEP_NESTING = "[" * 100000 + "]" * 100000

PATHOLOGICAL_OUTPUT = [
    pytest.param(OVERSIZED_NUMBER, id="oversized-number"),
    pytest.param(DEEP_NESTING, id="deep-nesting"),
    pytest.param('{"emailType": {"nested": ' * 500 + "1" + "}" * 1000, id="nested-objects"),
    pytest.param([1, 2, 3], id="list-envelope"),
    pytest.param({"choices": "nope"}, id="string-choices"),
    pytest.param(
        {"model": 123, "choices": [{"message": {"content": {"emailType": "spam"}}}]},
        id="non-string-content",
    ),
]


class TestUntrustedOutput:
    """Hostile or broken provider output always ends in a suggestion."""

    @pytest.mark.parametrize("step", PATHOLOGICAL_OUTPUT)
    def test_falls_back(self, config, context, sleep, step):
        """Every attempt failing on bad output reaches the fallback."""
        engine, _ = _engine(config, [step] * 3, sleep)
        result = _analyze(engine, context)

        assert result.diagnostics.path == SuggestionPath.FALLBACK
        assert result.diagnostics.attempts == 3
        assert result.suggestion.recommended_action == RecommendedAction.CREATE_CASE
        assert_invariants(result.suggestion, context)

    def test_non_string_model_in_envelope(self, config, context, sleep, raw_suggestion):
        """A bogus model field does not spoil an otherwise valid response."""
        body = completion_body(raw_suggestion())
        body["model"] = 123
        engine, _ = _engine(config, [body], sleep)
        result = _analyze(engine, context)

        assert result.diagnostics.path == SuggestionPath.GENERATED
        assert result.diagnostics.attempts == 1
