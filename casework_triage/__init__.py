"""casework-triage: triage suggestions for constituent casework inboxes.

Public exports:
- TriageEngine: Runs the suggestion pipeline for inbound messages
- EngineConfig: Configuration for the engine
- TriageContext: Input describing one message and its office reference data
- TriageSuggestion: Validated, reference-consistent output
- TriageResult: Suggestion plus diagnostic record
"""

from casework_triage.config import EngineConfig
from casework_triage.engine import TriageEngine
from casework_triage.schemas import TriageContext, TriageResult, TriageSuggestion

__all__ = [
    "EngineConfig",
    "TriageContext",
    "TriageEngine",
    "TriageResult",
    "TriageSuggestion",
]
