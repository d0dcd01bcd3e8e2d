"""Validation of raw generative output against the suggestion contract."""

import json
from typing import Any, Union

from pydantic import ValidationError

from casework_triage.config import FailureKind
from casework_triage.schemas import TriageSuggestion, ValidationFailure


def _strip_code_fence(text: str) -> str:
    """Remove markdown code fencing if present."""
    text = text.strip()
    if text.startswith("```"):
        lines = text.split("\n")
        # Remove first line (```json or ```)
        lines = lines[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        text = "\n".join(lines)
    return text


def parse_json_response(raw: str) -> Union[dict[str, Any], ValidationFailure]:
    """Phase 1: parse raw text into a JSON object."""
    text = _strip_code_fence(raw or "")
    try:
        data = json.loads(text)
    except (ValueError, RecursionError) as e:
        return ValidationFailure(
            kind=FailureKind.MALFORMED,
            message=f"Failed to parse response as JSON: {e}",
        )
    if not isinstance(data, dict):
        return ValidationFailure(
            kind=FailureKind.MALFORMED,
            message=f"Expected a JSON object, got {type(data).__name__}",
        )
    return data


def _error_location(error: dict[str, Any]) -> str:
    return ".".join(str(part) for part in error.get("loc", ()))


def validate_response(raw: str) -> Union[TriageSuggestion, ValidationFailure]:
    """Parse and type-check raw provider output.

    Returns the suggestion, or a ValidationFailure describing the first
    problem found. Never raises for bad input.
    """
    data = parse_json_response(raw)
    if isinstance(data, ValidationFailure):
        return data

    try:
        return TriageSuggestion.model_validate(data)
    except RecursionError:
        return ValidationFailure(
            kind=FailureKind.MALFORMED,
            message="Response nested too deeply to validate",
        )
    except ValidationError as e:
        first = e.errors()[0]
        field = _error_location(first)
        return ValidationFailure(
            kind=FailureKind.SCHEMA_VIOLATION,
            message=f"{field or '<root>'}: {first.get('msg', 'invalid value')}",
            field=field or None,
        )
