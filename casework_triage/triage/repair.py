"""Reference integrity repair for generated suggestions.

Generated output is untrusted and occasionally names ids that do not
exist. Every id-bearing field is checked against the context that
produced it; dangling references are dropped or substituted and the
recommended action is kept coherent with the links that survive.

Order matters: plain id checks run before case/campaign substitution so
the final action reflects only links that are genuinely available.
"""

import logging
from typing import Any

from casework_triage.config import RecommendedAction
from casework_triage.schemas import TriageContext, TriageSuggestion

logger = logging.getLogger(__name__)

CASE_NOT_FOUND_REASONING = "Suggested case not found, recommending new case instead"
CAMPAIGN_NOT_FOUND_REASONING = "No valid campaign found, recommending new case"


def _check_reference_fields(
    suggestion: TriageSuggestion, context: TriageContext, update: dict[str, Any]
) -> None:
    reference = context.reference_data
    checks = (
        ("suggested_case_type", "case type", {ct.id for ct in reference.case_types}),
        ("suggested_category", "category", {c.id for c in reference.categories}),
        ("suggested_assignee", "assignee", {cw.id for cw in reference.caseworkers}),
    )
    for field_name, label, valid_ids in checks:
        value = getattr(suggestion, field_name)
        if value is not None and value.id not in valid_ids:
            logger.warning(f"Suggested {label} {value.id} not in reference data, dropping")
            update[field_name] = None


def _check_tags(
    suggestion: TriageSuggestion, context: TriageContext, update: dict[str, Any]
) -> None:
    if not suggestion.suggested_tags:
        return
    valid_ids = {tag.id for tag in context.reference_data.tags}
    kept = []
    for tag in suggestion.suggested_tags:
        if tag.id in valid_ids:
            kept.append(tag)
        else:
            logger.warning(f"Suggested tag {tag.id} not in reference data, dropping")
    if len(kept) != len(suggestion.suggested_tags):
        update["suggested_tags"] = kept or None


def _check_existing_case(
    suggestion: TriageSuggestion, context: TriageContext, update: dict[str, Any]
) -> None:
    case_id = suggestion.suggested_existing_case_id
    if case_id is not None and case_id not in {c.id for c in context.existing_cases}:
        logger.warning(f"Suggested case {case_id} not in existing cases, dropping")
        update["suggested_existing_case_id"] = None
        update["suggested_existing_case_confidence"] = None
        case_id = None

    if case_id is None and suggestion.suggested_existing_case_confidence is not None:
        update["suggested_existing_case_confidence"] = None

    if case_id is None and suggestion.recommended_action == RecommendedAction.ADD_TO_CASE:
        update["recommended_action"] = RecommendedAction.CREATE_CASE
        update["action_reasoning"] = CASE_NOT_FOUND_REASONING


def _check_campaign(
    suggestion: TriageSuggestion, context: TriageContext, update: dict[str, Any]
) -> None:
    campaign_id = suggestion.suggested_campaign_id
    if campaign_id is not None and campaign_id not in {
        c.id for c in context.matched_campaigns
    }:
        logger.warning(f"Suggested campaign {campaign_id} not in matched campaigns, dropping")
        update["suggested_campaign_id"] = None
        update["suggested_campaign_confidence"] = None
        campaign_id = None

    if campaign_id is not None:
        return
    if suggestion.recommended_action != RecommendedAction.ASSIGN_CAMPAIGN:
        if suggestion.suggested_campaign_confidence is not None:
            update["suggested_campaign_confidence"] = None
        return

    # Matched campaigns arrive best-first
    if context.matched_campaigns:
        best = context.matched_campaigns[0]
        logger.warning(f"Substituting best matched campaign {best.id}")
        update["suggested_campaign_id"] = best.id
        update["suggested_campaign_confidence"] = best.match_confidence
    else:
        update["suggested_campaign_confidence"] = None
        update["recommended_action"] = RecommendedAction.CREATE_CASE
        update["action_reasoning"] = CAMPAIGN_NOT_FOUND_REASONING


def repair_suggestion(
    suggestion: TriageSuggestion, context: TriageContext
) -> TriageSuggestion:
    """Enforce reference integrity and action/link coherence.

    Total function: always returns a suggestion. The input is not modified.
    """
    update: dict[str, Any] = {}
    _check_reference_fields(suggestion, context, update)
    _check_tags(suggestion, context, update)
    _check_existing_case(suggestion, context, update)
    # Both checks read the original action; at most one of them applies
    _check_campaign(suggestion, context, update)

    if not update:
        return suggestion
    return suggestion.model_copy(update=update)
