from epic_app.analytics.metrics import calculate_metrics, metrics_to_frame
from epic_app.core.models import SLA_AT_RISK, SLA_CLOSED, SLA_ON_TRACK, Epic


def _epic(key, sprint, total, done, cycle="-", sla=SLA_ON_TRACK):
    return Epic(
        key=key,
        name=key,
        status="In Progress",
        sprint=sprint,
        total_story_points=total,
        completed_story_points=done,
        cycle_time=cycle,
        sla_status=sla,
    )


def test_overall_and_sprint_rollups():
    epics = [
        _epic("E-1", "Sprint 1", 8, 3, cycle="10.0", sla=SLA_AT_RISK),
        _epic("E-2", "Sprint 2", 4, 4, cycle="4.0", sla=SLA_CLOSED),
        _epic("E-3", "", 4, 0),
    ]
    metrics = calculate_metrics(epics)
    overall = metrics.overall
    assert overall.total_epics == 3
    assert overall.committed == 16
    assert overall.completed == 7
    assert overall.realization == 43.75
    assert overall.avg_cycle_time == 7.0
    assert overall.at_risk_count == 1
    assert round(overall.at_risk_percentage, 1) == 33.3
    assert [s.name for s in metrics.sprint_data] == ["Sprint 1", "Sprint 2", "No Sprint"]
    sprint1 = metrics.sprint_data[0]
    assert sprint1.realization == 37.5
    assert sprint1.epic_keys == ["E-1"]
    assert metrics.sprint_data[2].avg_cycle_time == 0.0


def test_zero_committed_and_empty_input():
    metrics = calculate_metrics([_epic("E-1", "S", 0, 0)])
    assert metrics.overall.realization == 0.0
    empty = calculate_metrics([])
    assert empty.overall.total_epics == 0
    assert empty.overall.at_risk_percentage == 0.0
    assert empty.sprint_data == []


def test_formatted_and_frame_views():
    metrics = calculate_metrics([_epic("E-1", "Sprint 1", 8, 3, cycle="10.0")])
    formatted = metrics.overall.formatted()
    assert formatted["realization"] == "37.5"
    assert formatted["avgCycleTime"] == "10.0"
    assert formatted["atRiskPercentage"] == "0.0"
    df = metrics_to_frame(metrics)
    assert list(df["sprint"]) == ["Sprint 1"]
    assert df.loc[0, "realization"] == 37.5
