"""Prompt compilation for triage requests."""

from typing import Optional

from casework_triage.schemas import (
    Caseworker,
    ConstituentContext,
    EmailContent,
    ExistingCase,
    MatchedCampaign,
    OfficeContext,
    ReferenceData,
    ReferenceItem,
    Tag,
    TriageContext,
)
from casework_triage.triage.prompts import CLOSING_INSTRUCTION, TRIAGE_POLICY_PROMPT

SECTION_BREAK = "---"


def _percent(value: Optional[float]) -> str:
    return f"{round((value or 0) * 100)}%"


def _format_email(email: EmailContent) -> list[str]:
    sender = (
        f"{email.sender_name} <{email.sender_email}>"
        if email.sender_name
        else email.sender_email
    )
    lines = [
        "## Email Being Triaged",
        f"Subject: {email.subject}",
        f"From: {sender}",
    ]
    if email.received_at:
        lines.append(f"Received: {email.received_at}")
    lines.extend(["", "Body:", email.body, ""])
    return lines


def _format_constituent(
    constituent: Optional[ConstituentContext], confidence: Optional[float]
) -> list[str]:
    if constituent is None:
        return [
            "## Constituent Status",
            "No existing constituent match found. This may be a new constituent.",
            "",
        ]
    lines = [
        "## Matched Constituent",
        f"Name: {constituent.full_name}",
        f"Type: {'Organisation' if constituent.is_organisation else 'Individual'}",
        f"Previous Cases: {constituent.previous_case_count}",
    ]
    if constituent.last_contact_date:
        lines.append(f"Last Contact: {constituent.last_contact_date}")
    lines.extend([f"Match Confidence: {_percent(confidence)}", ""])
    return lines


def _format_cases(cases: list[ExistingCase]) -> list[str]:
    if not cases:
        return []
    lines = ["## Open Cases for This Constituent"]
    for case in cases:
        ref = f" (ref {case.external_id})" if case.external_id is not None else ""
        lines.append(f"- [id: {case.id}]{ref} {case.summary or 'No summary'}")
        lines.append(
            f"  - Type: {case.case_type_name or 'Unknown'}, "
            f"Category: {case.category_name or 'Unknown'}"
        )
        lines.append(
            f"  - Status: {case.status_name or 'Unknown'}, "
            f"Created: {case.created_at or 'Unknown'}"
        )
    lines.append("")
    return lines


def _format_campaigns(campaigns: list[MatchedCampaign]) -> list[str]:
    if not campaigns:
        return []
    lines = ["## Potential Campaign Matches"]
    for campaign in campaigns:
        lines.append(
            f"- [id: {campaign.id}] {campaign.name} "
            f"({_percent(campaign.match_confidence)} confidence, "
            f"{campaign.match_type.value} match)"
        )
        if campaign.description:
            lines.append(f"  - {campaign.description}")
        lines.append(f"  - {campaign.email_count} emails in this campaign")
    lines.append("")
    return lines


def _format_reference_item(item: ReferenceItem) -> str:
    line = f"- [id: {item.id}] {item.name}"
    if item.description:
        line += f": {item.description}"
    if item.keywords:
        line += f" (keywords: {', '.join(item.keywords)})"
    return line


def _format_caseworker(caseworker: Caseworker) -> str:
    line = f"- [id: {caseworker.id}] {caseworker.name}"
    if caseworker.specialties:
        line += f" (specialties: {', '.join(caseworker.specialties)})"
    return line


def _format_tag(tag: Tag) -> str:
    line = f"- [id: {tag.id}] {tag.name}"
    if tag.description:
        line += f": {tag.description}"
    if tag.keywords:
        line += f" (keywords: {', '.join(tag.keywords)})"
    return line


def _format_reference_data(reference: ReferenceData) -> list[str]:
    sections = [
        ("Case Types", [_format_reference_item(i) for i in reference.case_types]),
        ("Categories", [_format_reference_item(i) for i in reference.categories]),
        ("Caseworkers", [_format_caseworker(c) for c in reference.caseworkers]),
        ("Tags", [_format_tag(t) for t in reference.tags]),
    ]
    lines = ["## Reference Data"]
    for title, entries in sections:
        lines.append(f"### {title}")
        lines.extend(entries or ["(none available)"])
    lines.append("")
    return lines


def _format_office(office: Optional[OfficeContext]) -> list[str]:
    if office is None:
        return []
    lines = ["## Office Context"]
    if office.representative_name:
        lines.append(f"Representative: {office.representative_name}")
    if office.constituency_name:
        lines.append(f"Constituency: {office.constituency_name}")
    if office.office_guidelines:
        lines.append(f"Guidelines: {office.office_guidelines}")
    lines.append("")
    return lines


def render_context(context: TriageContext) -> str:
    """Render a triage context as the data section of the prompt."""
    lines: list[str] = []
    lines.extend(_format_email(context.email))
    lines.extend(
        _format_constituent(
            context.matched_constituent, context.constituent_match_confidence
        )
    )
    lines.extend(_format_cases(context.existing_cases))
    lines.extend(_format_campaigns(context.matched_campaigns))
    lines.extend(_format_reference_data(context.reference_data))
    lines.extend(_format_office(context.office_context))
    return "\n".join(lines).rstrip("\n")


def compile_prompt(context: TriageContext) -> str:
    """Compile the full triage prompt for a context.

    Pure function: the same context always yields a byte-identical prompt.
    """
    return "\n\n".join(
        [
            TRIAGE_POLICY_PROMPT,
            SECTION_BREAK,
            render_context(context),
            SECTION_BREAK,
            CLOSING_INSTRUCTION,
        ]
    )
