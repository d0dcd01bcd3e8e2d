"""Triage pipeline: compile, generate, validate, repair, or fall back."""

import logging

from casework_triage.config import EngineConfig, SuggestionPath
from casework_triage.schemas import (
    DiagnosticRecord,
    TriageContext,
    TriageResult,
    suggestion_json_schema,
)
from casework_triage.triage.compiler import compile_prompt
from casework_triage.triage.fallback import fallback_suggestion
from casework_triage.triage.generation import StructuredGenerator
from casework_triage.triage.repair import repair_suggestion
from casework_triage.triage.validator import validate_response

logger = logging.getLogger(__name__)

SUGGESTION_SCHEMA = suggestion_json_schema()


async def run_triage(
    context: TriageContext,
    generator: StructuredGenerator,
    config: EngineConfig,
) -> TriageResult:
    """Produce a reference-consistent suggestion for one message.

    Provider and validation failures never escape: once retries are
    exhausted the deterministic fallback is returned instead.

    Args:
        context: Message plus office reference data
        generator: Retrying structured generator
        config: Engine configuration

    Returns:
        TriageResult with the suggestion and its diagnostic record
    """
    prompt = compile_prompt(context)
    outcome = await generator.generate(prompt, SUGGESTION_SCHEMA, validate_response)

    if outcome.succeeded:
        suggestion = repair_suggestion(outcome.value, context)
        return TriageResult(
            suggestion=suggestion,
            diagnostics=DiagnosticRecord(
                prompt=prompt,
                raw_response=outcome.last_raw or "",
                suggestion=suggestion,
                model=config.model,
                latency_ms=outcome.latency_ms,
                path=SuggestionPath.GENERATED,
                attempts=outcome.attempts,
                errors=outcome.failures,
            ),
        )

    logger.warning(
        f"Generation exhausted for '{context.email.subject}', using fallback suggestion"
    )
    suggestion = fallback_suggestion(context)
    raw_response = outcome.last_raw or (
        f"LLM failed after {outcome.attempts} attempts: {outcome.last_error}"
    )
    return TriageResult(
        suggestion=suggestion,
        diagnostics=DiagnosticRecord(
            prompt=prompt,
            raw_response=raw_response,
            suggestion=suggestion,
            model=config.model,
            latency_ms=outcome.latency_ms,
            path=SuggestionPath.FALLBACK,
            attempts=outcome.attempts,
            errors=outcome.failures,
        ),
    )
