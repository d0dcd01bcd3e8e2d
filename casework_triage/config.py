"""Engine configuration and enums."""

import os
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

OPENROUTER_API_URL = "https://openrouter.ai/api/v1/chat/completions"
DEFAULT_MODEL = "google/gemini-2.0-flash-001"


class EmailType(str, Enum):
    """Classification of an inbound message."""

    CASEWORK = "casework"
    POLICY = "policy"
    CAMPAIGN = "campaign"
    SPAM = "spam"
    PERSONAL = "personal"


class RecommendedAction(str, Enum):
    """Administrative action a message should trigger."""

    CREATE_CASE = "create_case"
    ADD_TO_CASE = "add_to_case"
    ASSIGN_CAMPAIGN = "assign_campaign"
    IGNORE = "ignore"


class Priority(str, Enum):
    """Suggested case priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class CampaignMatchType(str, Enum):
    """How the caller matched a message to a campaign."""

    PATTERN = "pattern"
    FINGERPRINT = "fingerprint"
    FUZZY = "fuzzy"


class FailureKind(str, Enum):
    """Why a single generation attempt failed."""

    TRANSPORT = "transport"
    EMPTY_RESPONSE = "empty_response"
    MALFORMED = "malformed"
    SCHEMA_VIOLATION = "schema_violation"


class SuggestionPath(str, Enum):
    """Which branch of the pipeline produced a suggestion."""

    GENERATED = "generated"
    FALLBACK = "fallback"


class EngineConfig(BaseModel):
    """Configuration for the triage engine.

    Shared read-only by every invocation; holds no per-message state.
    """

    openrouter_api_key: Optional[str] = None
    model: str = Field(
        default=DEFAULT_MODEL,
        description="OpenRouter model ID used for structured generation",
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        description="Total generation attempts before falling back",
    )
    base_delay: float = Field(
        default=1.0,
        ge=0,
        description="Backoff unit in seconds; attempt n waits base_delay * 2**n",
    )
    request_timeout: float = Field(
        default=60.0,
        gt=0,
        description="Per-attempt HTTP timeout in seconds",
    )
    api_url: str = OPENROUTER_API_URL

    @model_validator(mode="after")
    def resolve_api_key(self) -> "EngineConfig":
        """Resolve API key from explicit value or OPENROUTER_KEY environment variable."""
        if self.openrouter_api_key and self.openrouter_api_key.strip():
            return self
        env_key = os.environ.get("OPENROUTER_KEY")
        if env_key and env_key.strip():
            object.__setattr__(self, "openrouter_api_key", env_key)
            return self
        raise ValueError(
            "openrouter_api_key must be provided or OPENROUTER_KEY environment variable must be set"
        )
