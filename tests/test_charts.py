from epic_app.analytics.frames import epics_to_dataframe
from epic_app.analytics.metrics import calculate_metrics
from epic_app.core.models import SLA_AT_RISK, SLA_ON_TRACK, ChildIssue, Epic, Metrics, MetricsRollup
from epic_app.visual.charts import sla_distribution_chart, sprint_points_chart
from epic_app.visual.hierarchy import build_epic_sunburst


def _sample_epics():
    e1 = Epic(key="OBS-1", name="One", status="In Progress", sprint="Sprint 1", sla_status=SLA_AT_RISK)
    e1.attach(ChildIssue("OBS-5", "c", "task", "Done", "", 2.0, "OBS-1", True, "epic-link"))
    e1.attach(ChildIssue("OBS-6", "d", "task", "To Do", "", 1.0, "OBS-1", False, "epic-link"))
    e2 = Epic(key="OBS-2", name="Two", status="To Do", sla_status=SLA_ON_TRACK)
    return [e1, e2]


def test_sprint_points_chart_shapes():
    chart = sprint_points_chart(calculate_metrics(_sample_epics()))
    assert chart is not None
    chart_dict = chart.to_dict()
    assert chart_dict["mark"]["type"] == "bar"
    assert len(chart.data) == 4
    assert set(chart.data["kind"]) == {"Committed", "Completed"}


def test_sprint_points_chart_without_sprints():
    assert sprint_points_chart(Metrics(overall=MetricsRollup("Overall"))) is None


def test_sla_distribution_chart():
    chart = sla_distribution_chart(epics_to_dataframe(_sample_epics()))
    assert chart is not None
    assert sorted(chart.data["sla_class"]) == ["at-risk", "on-track"]
    assert sla_distribution_chart(epics_to_dataframe([])) is None


def test_epic_sunburst():
    fig = build_epic_sunburst(_sample_epics())
    trace = fig.data[0]
    assert "p:OBS" in trace.ids
    assert "e:OBS-1/Done" in trace.ids
    values = dict(zip(trace.ids, trace.values, strict=False))
    assert values["e:OBS-1"] == 2
    assert values["e:OBS-2"] == 1
    assert values["p:OBS"] == 3
    assert build_epic_sunburst([]) is None
