"""Deterministic fallback suggestion used when generation is exhausted."""

from casework_triage.config import EmailType, Priority, RecommendedAction
from casework_triage.schemas import TriageContext, TriageSuggestion

CAMPAIGN_MATCH_THRESHOLD = 0.8
MANUAL_REVIEW_SUMMARY = "Email requires manual review"


def fallback_suggestion(context: TriageContext) -> TriageSuggestion:
    """Build a conservative suggestion from the context alone.

    Decision order:
    1. Strong campaign match (>= 0.8) -> assign to that campaign
    2. Known constituent with open cases -> add to the first case
    3. Otherwise -> create a new case for manual review

    Only ids already present in the context are referenced.
    """
    summary = context.email.subject.strip() or MANUAL_REVIEW_SUMMARY

    best_campaign = context.matched_campaigns[0] if context.matched_campaigns else None
    if best_campaign and best_campaign.match_confidence >= CAMPAIGN_MATCH_THRESHOLD:
        return TriageSuggestion(
            email_type=EmailType.CAMPAIGN,
            classification_confidence=best_campaign.match_confidence,
            classification_reasoning=f"Matched to campaign: {best_campaign.name}",
            recommended_action=RecommendedAction.ASSIGN_CAMPAIGN,
            action_confidence=best_campaign.match_confidence,
            suggested_campaign_id=best_campaign.id,
            suggested_campaign_confidence=best_campaign.match_confidence,
            suggested_priority=Priority.LOW,
            priority_confidence=0.7,
        )

    first_case = context.existing_cases[0] if context.existing_cases else None
    if first_case and context.matched_constituent is not None:
        return TriageSuggestion(
            email_type=EmailType.CASEWORK,
            classification_confidence=0.6,
            classification_reasoning="Known constituent with existing cases",
            recommended_action=RecommendedAction.ADD_TO_CASE,
            action_confidence=0.5,
            action_reasoning="Review existing cases for relevance",
            suggested_existing_case_id=first_case.id,
            suggested_existing_case_confidence=0.5,
            suggested_priority=Priority.MEDIUM,
            priority_confidence=0.5,
            suggested_summary=summary,
        )

    return TriageSuggestion(
        email_type=EmailType.CASEWORK,
        classification_confidence=0.4,
        classification_reasoning="LLM analysis failed - manual review required",
        recommended_action=RecommendedAction.CREATE_CASE,
        action_confidence=0.4,
        action_reasoning="Unable to analyze automatically - please review manually",
        suggested_priority=Priority.MEDIUM,
        priority_confidence=0.5,
        suggested_summary=summary,
    )
