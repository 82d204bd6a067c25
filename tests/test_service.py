from datetime import datetime

import pytest
from conftest import MAIN_HEADERS, make_table

from epic_app.core.errors import AnalysisError, ValidationError
from epic_app.core.models import RawTable
from epic_app.core.service import AnalysisService, analyze


def test_end_to_end_on_track(main_table, time_table):
    result = analyze(main_table, time_table)
    epic = result.epic("EPIC-1")
    assert epic.total_story_points == 8
    assert epic.completed_story_points == 3
    assert epic.time_in_status == "10d"
    assert epic.cycle_time == "10.0"
    assert epic.sla_class == "on-track"
    assert result.has_time_data
    assert isinstance(result.generated_at, datetime)
    assert result.generated_at.tzinfo is not None
    assert result.summary_message() == (
        "Successfully analyzed 1 epics and 1 child issues with time tracking data."
    )
    assert result.metrics.overall.realization == 37.5


def test_long_time_in_status_is_at_risk(main_table):
    time_table = make_table(["Key", "In Progress"], [["EPIC-1", "21d"]])
    result = analyze(main_table, time_table)
    assert result.epics[0].sla_class == "at-risk"
    assert result.metrics.overall.at_risk_count == 1


def test_reanalyze_with_new_thresholds_matches_fresh_run(main_table, time_table):
    service = AnalysisService()
    first = service.analyze(main_table, time_table)
    assert first.epics[0].sla_class == "on-track"

    again = service.reanalyze({"in progress": 5, "default": 30})
    fresh = AnalysisService({"in progress": 5, "default": 30}).analyze(main_table, time_table)
    assert again.epics[0].sla_class == "at-risk"
    assert again.epics[0].total_story_points == fresh.epics[0].total_story_points == 8
    assert again.epics[0].child_count == fresh.epics[0].child_count == 1
    assert service.last_result is again


def test_reanalyze_before_analyze_returns_none():
    assert AnalysisService().reanalyze({"default": 3}) is None


def test_missing_time_csv(main_table):
    result = analyze(main_table)
    epic = result.epics[0]
    assert epic.time_in_status == "-"
    assert epic.cycle_time == "-"
    assert epic.sla_class == "on-track"
    assert not result.has_time_data
    assert result.metrics.overall.avg_cycle_time == 0.0


def test_time_csv_with_unknown_keys_warns(main_table):
    time_table = make_table(["Key", "In Progress"], [["OTHER-1", "3d"]])
    result = analyze(main_table, time_table)
    assert any("No matching epic keys" in w for w in result.warnings)
    assert result.epics[0].time_in_status == "-"


def test_invalid_main_table_raises_validation_error():
    with pytest.raises(ValidationError) as excinfo:
        analyze(RawTable(headers=["Key", "Summary"], records=[{"Key": "A-1", "Summary": "x"}]))
    assert "Issue Type" in str(excinfo.value)
    assert "Status" in str(excinfo.value)
    with pytest.raises(ValidationError):
        analyze(RawTable(headers=MAIN_HEADERS, records=[]))


def test_no_epics_is_a_warning_unless_required():
    table = make_table(MAIN_HEADERS, [["TASK-1", "1", "Task", "To Do", "Lonely"]])
    result = analyze(table)
    assert result.epics == []
    assert any("No epics found" in w for w in result.warnings)
    with pytest.raises(AnalysisError):
        AnalysisService(require_epics=True).analyze(table)


def test_progress_callback_reaches_completion(main_table):
    calls = []
    AnalysisService().analyze(main_table, progress=lambda msg, cur, total: calls.append((msg, cur, total)))
    assert calls[0][1] == 0
    assert calls[-1] == ("Analysis complete", 5, 5)


@pytest.mark.parametrize(
    "headers",
    [
        ["Key", "Type", "State", "Title", "Story Points", "Epic Link"],
        ["Issue key", "Issue Type", "Current Status", "Name", "Story Points", "Epic Link"],
    ],
)
def test_alternate_header_names_accepted_by_validation_reach_the_hierarchy(headers):
    table = make_table(
        headers,
        [
            ["EPIC-1", "Epic", "In Progress", "Checkout revamp", "5", ""],
            ["TASK-1", "Task", "Done", "Payment form", "3", "EPIC-1"],
        ],
    )
    result = analyze(table)
    epic = result.epic("EPIC-1")
    assert epic.name == "Checkout revamp"
    assert epic.status == "In Progress"
    assert epic.total_story_points == 8
    assert epic.completed_story_points == 3
    assert result.child_issues[0].status == "Done"


def _balanced_table():
    rows = [
        ["ABC-2", "2", "Epic", "In Progress", "Second", "Sprint 2", "3"],
        ["ABC-1", "1", "Epic", "Done", "First", "Sprint 1", "2"],
    ]
    rows += [[f"ABC-{i}", str(i), "Task", "Done" if i % 3 else "To Do", "t", "", "1"] for i in range(10, 25)]
    return make_table(MAIN_HEADERS, rows)


def test_identical_runs_give_identical_metrics_and_order():
    time_table = make_table(["Key", "In Progress", "Code Review"], [["ABC-2", "1w 2d", "5h"]])
    first = analyze(_balanced_table(), time_table)
    second = analyze(_balanced_table(), time_table)
    assert first.hierarchy.used_balanced_distribution
    assert first.metrics.overall == second.metrics.overall
    assert first.metrics.overall.formatted() == second.metrics.overall.formatted()
    assert first.metrics.sprint_data == second.metrics.sprint_data
    assert [e.key for e in first.epics] == [e.key for e in second.epics] == ["ABC-1", "ABC-2"]
    assert [c.key for c in first.child_issues] == [c.key for c in second.child_issues]

    service = AnalysisService()
    baseline = service.analyze(_balanced_table(), time_table)
    again = service.reanalyze()
    assert again.metrics.overall == baseline.metrics.overall == first.metrics.overall


def test_custom_completed_statuses_apply_to_points_and_sla():
    table = make_table(
        MAIN_HEADERS,
        [
            ["EPIC-1", "1", "Epic", "Shipped", "Epic", "", "5"],
            ["TASK-1", "2", "Task", "Shipped", "Task", "", "3", "EPIC-1"],
        ],
    )
    time_table = make_table(["Key", "Shipped"], [["EPIC-1", "40d"]])
    default = analyze(table, time_table)
    assert default.epics[0].completed_story_points == 0
    assert default.epics[0].sla_class == "at-risk"

    custom = AnalysisService(completed_statuses={"Shipped"}).analyze(table, time_table)
    assert custom.epics[0].completed_story_points == 8
    assert custom.epics[0].sla_class == "closed"
