from types import SimpleNamespace

from epic_app.analytics.escalation import build_escalation_template, guess_email, suggest_recipients
from epic_app.core.models import SLA_AT_RISK, ChildIssue, Epic


def _at_risk_epic(time_in_status="25d 12h", points=13.0):
    child = ChildIssue("T-1", "Child", "task", "To Do", "", 1.0, "EPIC-7", False, "epic-link")
    return Epic(
        key="EPIC-7",
        name="Search revamp",
        status="In Progress",
        sprint="Sprint 4",
        total_story_points=points,
        children=[child],
        time_in_status=time_in_status,
        sla_status=SLA_AT_RISK,
        creator="Grace Hopper",
        assignee="Linus",
    )


def test_subject_rounds_days_over_half_up():
    template = build_escalation_template(_at_risk_epic())
    assert template.subject == "URGENT: Epic EPIC-7 at risk - Exceeding SLA by 6 days"
    assert "Epic ID: EPIC-7" in template.body
    assert "Story Points: 13" in template.body
    assert "Child Issues: 1" in template.body
    assert "25.5 days" in template.body


def test_custom_thresholds_and_unassigned_points():
    template = build_escalation_template(_at_risk_epic("10d", points=0), {"in progress": 7})
    assert template.subject.endswith("Exceeding SLA by 3 days")
    assert "Story Points: Not assigned" in template.body


def test_minimal_template_when_details_missing():
    epic = SimpleNamespace(key="EPIC-9", name="Broken")
    template = build_escalation_template(epic)
    assert template.subject == "URGENT: Epic EPIC-9 at risk"
    assert "Epic ID: EPIC-9" in template.body
    assert "Title: Broken" in template.body


def test_recipient_suggestions():
    assert guess_email("Grace Brewster Hopper", "acme.io") == "grace.hopper@acme.io"
    assert guess_email("Linus") == ""
    suggestions = suggest_recipients(_at_risk_epic())
    assert [(s.role, s.email) for s in suggestions] == [
        ("Creator", "grace.hopper@company.com"),
        ("Assignee", ""),
    ]
