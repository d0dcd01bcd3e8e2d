"""Data structures for casework triage (frozen schema).

Wire names are camelCase; Python attributes are snake_case. Both are
accepted on input.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator
from pydantic.alias_generators import to_camel

from casework_triage.config import (
    CampaignMatchType,
    EmailType,
    FailureKind,
    Priority,
    RecommendedAction,
    SuggestionPath,
)


class _WireModel(BaseModel):
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "frozen": True,
    }


# ─── Triage context (input) ─────────────────────────────────────────────────


class EmailContent(_WireModel):
    """The inbound message being triaged."""

    subject: str = ""
    body: str = ""
    sender_email: str
    sender_name: Optional[str] = None
    received_at: Optional[str] = None


class ReferenceItem(_WireModel):
    """A case type or category from the office's reference data."""

    id: int
    name: str
    description: Optional[str] = None
    keywords: list[str] = Field(default_factory=list)


class Caseworker(_WireModel):
    id: int
    name: str
    email: Optional[str] = None
    specialties: list[str] = Field(default_factory=list)


class Tag(_WireModel):
    id: str
    name: str
    color: Optional[str] = None
    description: Optional[str] = None
    keywords: list[str] = Field(default_factory=list)


class ReferenceData(_WireModel):
    """Office-scoped authoritative sets suggestions are validated against."""

    case_types: list[ReferenceItem] = Field(default_factory=list)
    categories: list[ReferenceItem] = Field(default_factory=list)
    caseworkers: list[Caseworker] = Field(default_factory=list)
    tags: list[Tag] = Field(default_factory=list)


class ConstituentContext(_WireModel):
    """Known constituent record matched to the sender."""

    id: str
    full_name: str
    title: Optional[str] = None
    is_organisation: bool = False
    previous_case_count: int = 0
    last_contact_date: Optional[str] = None


class ExistingCase(_WireModel):
    """Open case belonging to the matched constituent."""

    id: str
    external_id: Optional[int] = None
    summary: Optional[str] = None
    case_type_name: Optional[str] = None
    category_name: Optional[str] = None
    status_name: Optional[str] = None
    created_at: Optional[str] = None


class MatchedCampaign(_WireModel):
    """Campaign candidate; callers order these by descending confidence."""

    id: str
    name: str
    match_confidence: float = Field(ge=0, le=1)
    description: Optional[str] = None
    email_count: int = 0
    match_type: CampaignMatchType = CampaignMatchType.PATTERN


class OfficeContext(_WireModel):
    representative_name: Optional[str] = None
    constituency_name: Optional[str] = None
    office_guidelines: Optional[str] = None


class TriageContext(_WireModel):
    """Everything the engine knows about one message. Immutable per invocation."""

    email: EmailContent
    reference_data: ReferenceData = Field(default_factory=ReferenceData)
    existing_cases: list[ExistingCase] = Field(default_factory=list)
    matched_campaigns: list[MatchedCampaign] = Field(default_factory=list)
    matched_constituent: Optional[ConstituentContext] = None
    constituent_match_confidence: Optional[float] = Field(default=None, ge=0, le=1)
    office_context: Optional[OfficeContext] = None


# ─── Triage suggestion (output contract) ────────────────────────────────────


class SuggestedReference(_WireModel):
    id: int = Field(description="The ID from reference data")
    name: str = Field(description="The name from reference data")
    confidence: float = Field(ge=0, le=1, description="Confidence in this suggestion")


class SuggestedAssignee(_WireModel):
    id: int = Field(description="The caseworker ID from reference data")
    name: str = Field(description="The caseworker name")
    confidence: float = Field(ge=0, le=1, description="Confidence in this suggestion")
    reasoning: Optional[str] = Field(
        default=None, description="Why this caseworker was suggested"
    )


class SuggestedTag(_WireModel):
    id: str = Field(description="The tag ID from reference data")
    name: str = Field(description="The tag name")
    confidence: float = Field(ge=0, le=1, description="Confidence this tag applies")


class ExtractedContactDetails(_WireModel):
    name: Optional[str] = Field(default=None, description="Full name if found in email")
    address: Optional[str] = Field(default=None, description="Address if found in email")
    phone: Optional[str] = Field(default=None, description="Phone number if found in email")
    postcode: Optional[str] = Field(default=None, description="Postcode if found in email")


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict)):
        return len(value) == 0
    return False


def _prune(value: Any) -> Any:
    """Recursively drop empty optional values from raw mappings."""
    if isinstance(value, dict):
        pruned = {k: _prune(v) for k, v in value.items()}
        return {k: v for k, v in pruned.items() if not _is_empty(v)}
    if isinstance(value, list):
        return [_prune(v) for v in value]
    return value


class TriageSuggestion(_WireModel):
    """Structured classification and routing suggestion for one message."""

    email_type: EmailType = Field(
        description=(
            "The type of email: casework (constituent needs help), policy (opinion on "
            "legislation), campaign (organized mass email), spam (junk), personal "
            "(non-constituent business)"
        )
    )
    classification_confidence: float = Field(
        ge=0, le=1, description="Confidence in the email type classification (0-1)"
    )
    classification_reasoning: Optional[str] = Field(
        default=None, description="Brief explanation of why this classification was chosen"
    )

    recommended_action: RecommendedAction = Field(
        description=(
            "What action to take: create_case (new constituent issue), add_to_case "
            "(relates to existing case), assign_campaign (bulk campaign email), ignore "
            "(spam/not relevant)"
        )
    )
    action_confidence: float = Field(
        ge=0, le=1, description="Confidence in the recommended action (0-1)"
    )
    action_reasoning: Optional[str] = Field(
        default=None, description="Brief explanation of why this action is recommended"
    )

    suggested_existing_case_id: Optional[str] = Field(
        default=None, description="If action is add_to_case, the ID of the existing case"
    )
    suggested_existing_case_confidence: Optional[float] = Field(
        default=None, ge=0, le=1,
        description="Confidence that this email relates to the suggested existing case",
    )

    suggested_campaign_id: Optional[str] = Field(
        default=None, description="If action is assign_campaign, the ID of the campaign"
    )
    suggested_campaign_confidence: Optional[float] = Field(
        default=None, ge=0, le=1,
        description="Confidence that this email belongs to the suggested campaign",
    )

    suggested_case_type: Optional[SuggestedReference] = Field(
        default=None, description="Suggested case type for new cases"
    )
    suggested_category: Optional[SuggestedReference] = Field(
        default=None, description="Suggested category for the case"
    )
    suggested_assignee: Optional[SuggestedAssignee] = Field(
        default=None, description="Suggested caseworker to assign the case to"
    )

    suggested_priority: Priority = Field(
        description=(
            "Suggested priority level: low (routine), medium (standard), high "
            "(time-sensitive), urgent (immediate action needed)"
        )
    )
    priority_confidence: float = Field(
        ge=0, le=1, description="Confidence in the priority suggestion"
    )

    suggested_tags: Optional[list[SuggestedTag]] = Field(
        default=None, description="Suggested tags to apply to the case"
    )
    suggested_summary: Optional[str] = Field(
        default=None, description="A concise summary of the constituent's issue (2-3 sentences max)"
    )
    suggested_review_date: Optional[str] = Field(
        default=None, description="Suggested review date in ISO format if the case needs follow-up"
    )
    suggested_response: Optional[str] = Field(
        default=None, description="Draft response for policy or campaign emails"
    )
    extracted_constituent_details: Optional[ExtractedContactDetails] = Field(
        default=None, description="Contact details extracted from the email body"
    )

    @model_validator(mode="before")
    @classmethod
    def drop_empty_optionals(cls, data: Any) -> Any:
        """Treat empty strings, lists and objects as absent."""
        if isinstance(data, dict):
            return _prune(data)
        return data

    def to_wire(self) -> dict[str, Any]:
        """Serialize with camelCase keys, omitting absent fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def _inline_refs(node: Any, defs: dict[str, Any]) -> Any:
    if isinstance(node, dict):
        ref = node.get("$ref")
        if isinstance(ref, str) and ref.startswith("#/$defs/"):
            target = dict(defs[ref.split("/")[-1]])
            extras = {k: v for k, v in node.items() if k != "$ref"}
            target.update(extras)
            return _inline_refs(target, defs)
        return {k: _inline_refs(v, defs) for k, v in node.items() if k != "$defs"}
    if isinstance(node, list):
        return [_inline_refs(v, defs) for v in node]
    return node


def suggestion_json_schema() -> dict[str, Any]:
    """JSON Schema of TriageSuggestion (by alias) with all $refs inlined.

    Some providers reject $ref in structured-output schemas, so the
    contract is sent fully expanded.
    """
    schema = TriageSuggestion.model_json_schema(by_alias=True)
    return _inline_refs(schema, schema.get("$defs", {}))


# ─── Diagnostics ────────────────────────────────────────────────────────────


class ValidationFailure(BaseModel):
    """Raw output rejected by the validator."""

    model_config = {"frozen": True}

    kind: FailureKind
    message: str
    field: Optional[str] = None


class AttemptFailure(BaseModel):
    """Record of one failed generation attempt."""

    model_config = {"frozen": True}

    attempt: int
    kind: FailureKind
    message: str


class DiagnosticRecord(BaseModel):
    """Side-channel record of one invocation, for logging and test tooling."""

    prompt: str
    raw_response: str
    suggestion: TriageSuggestion
    model: str
    latency_ms: int
    path: SuggestionPath
    attempts: int
    errors: list[AttemptFailure] = Field(default_factory=list)


class TriageResult(BaseModel):
    """Suggestion plus diagnostics returned by the pipeline."""

    suggestion: TriageSuggestion
    diagnostics: DiagnosticRecord
