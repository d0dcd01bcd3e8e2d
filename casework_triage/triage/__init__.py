"""Triage suggestion pipeline."""

from casework_triage.triage.agent import run_triage
from casework_triage.triage.compiler import compile_prompt
from casework_triage.triage.fallback import fallback_suggestion
from casework_triage.triage.generation import GenerationOutcome, GenerationState, StructuredGenerator
from casework_triage.triage.repair import repair_suggestion
from casework_triage.triage.validator import validate_response

__all__ = [
    "GenerationOutcome",
    "GenerationState",
    "StructuredGenerator",
    "compile_prompt",
    "fallback_suggestion",
    "repair_suggestion",
    "run_triage",
    "validate_response",
]
