"""Escalation email text and recipient suggestions for at-risk epics."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from epic_app.core.config import DEFAULT_EMAIL_DOMAIN

from .time_sla import parse_duration, threshold_for

logger = logging.getLogger(__name__)

SIGNATURE = "Thanks,\n[Your Name]"


@dataclass(slots=True)
class EscalationTemplate:
    subject: str
    body: str
    recipient: str = ""


@dataclass(frozen=True, slots=True)
class RecipientSuggestion:
    role: str
    name: str
    email: str


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def build_escalation_template(epic: Any, thresholds: Mapping[str, int] | None = None) -> EscalationTemplate:
    """Format the escalation notice for one at-risk epic.

    Falls back to a minimal id + title notice if any detail is missing.
    """
    try:
        threshold = threshold_for(epic.status, thresholds)
        days_in_status = parse_duration(epic.time_in_status)
        days_over = _round_half_up(days_in_status - threshold)
        subject = f"URGENT: Epic {epic.key} at risk - Exceeding SLA by {days_over} days"
        body = (
            "Hello,\n\n"
            "I wanted to bring to your attention that the following epic is currently at risk:\n\n"
            f"Epic ID: {epic.key}\n"
            f"Title: {epic.name}\n"
            f"Current Status: {epic.status}\n"
            f"Time in Current Status: {epic.time_in_status}\n"
            f"Sprint: {epic.sprint or 'Not assigned'}\n"
            f"Story Points: {_format_points(epic.total_story_points)}\n"
            f"Child Issues: {len(epic.children)}\n\n"
            f"This epic has been in {epic.status} status for {days_in_status:.1f} days, which exceeds "
            f"our defined SLA threshold of {threshold} days by {days_over} days.\n\n"
            "Can we please prioritize this epic or determine if we need to take any actions "
            "to address the delay?\n\n"
            f"{SIGNATURE}\n"
        )
        return EscalationTemplate(subject=subject, body=body)
    except Exception as exc:
        logger.warning("Falling back to minimal escalation template: %s", exc)
        return minimal_template(epic)


def minimal_template(epic: Any) -> EscalationTemplate:
    key = getattr(epic, "key", "") or "?"
    name = getattr(epic, "name", "") or ""
    body = (
        "This epic requires attention as it's currently at risk.\n\n"
        f"Epic ID: {key}\n"
        f"Title: {name}\n\n"
        f"{SIGNATURE}"
    )
    return EscalationTemplate(subject=f"URGENT: Epic {key} at risk", body=body)


def _format_points(points: float | None) -> str:
    if not points:
        return "Not assigned"
    return f"{points:g}"


def guess_email(name: str | None, domain: str = DEFAULT_EMAIL_DOMAIN) -> str:
    """Guess ``first.last@domain`` from a display name; empty if unsure.

    >>> guess_email("Ada Byron Lovelace")
    'ada.lovelace@company.com'
    """
    parts = (name or "").split()
    if len(parts) < 2:
        return ""
    return f"{parts[0].lower()}.{parts[-1].lower()}@{domain}"


def suggest_recipients(epic: Any, domain: str = DEFAULT_EMAIL_DOMAIN) -> list[RecipientSuggestion]:
    suggestions = []
    for role, attr in (("Creator", "creator"), ("Assignee", "assignee")):
        name = getattr(epic, attr, "") or ""
        if name:
            suggestions.append(RecipientSuggestion(role, name, guess_email(name, domain)))
    return suggestions
