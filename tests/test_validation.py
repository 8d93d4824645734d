"""Tests for report aggregation across all checks."""

from flowspec.graph import SpecGraph
from flowspec.issues import CATEGORY_ORDER, IssueCategory
from flowspec.models import Project
from flowspec.validation import IssueCounts, validate_graph, validate_project

from tests.conftest import BROKEN_CANVAS, SAMPLE_CANVAS
from tests.helpers import (
    component,
    datapoint,
    edge,
    screen,
    table,
    transform,
    violations,
    workflow,
)


def _kitchen_sink():
    nodes = [
        table("t1", "Orders", {"state": "tbd"}),
        datapoint("d1", "Lonely"),
        transform("x1", "Calc"),
        workflow("w1", "Flow"),
        component("c1", "Form", captures=["nope"]),
        datapoint("d2", "lonely"),
    ]
    return SpecGraph(nodes, [], [screen("s1", "Home")])


def test_empty_graph_is_valid():
    report = validate_project([], [])
    assert report.issues == []
    assert report.counts == IssueCounts()
    assert report.valid


def test_sample_project_is_clean():
    graph = SpecGraph.from_project(Project.from_json_dict(SAMPLE_CANVAS))
    report = validate_graph(graph, check_screens=True)
    assert report.issues == []
    assert report.valid


def test_issues_follow_category_order():
    report = validate_graph(_kitchen_sink(), check_screens=True)
    assert violations(report.issues) == [
        "missing-source",
        "missing-source",
        "no-inputs",
        "no-outputs",
        "empty-workflow",
        "invalid-capture-reference",
        "component-no-datapoints",
        "orphan-node",
        "orphan-node",
        "orphan-node",
        "orphan-node",
        "orphan-node",
        "orphan-node",
        "table-column-tbd",
        "duplicate-label",
        "empty-screen",
    ]
    positions = [CATEGORY_ORDER.index(issue.category) for issue in report.issues]
    assert positions == sorted(positions)


def test_counts_by_severity():
    report = validate_graph(_kitchen_sink(), check_screens=True)
    assert report.counts == IssueCounts(total=16, error=11, warning=4, info=1)
    assert not report.valid


def test_screen_check_is_opt_in():
    report = validate_graph(_kitchen_sink())
    assert "empty-screen" not in violations(report.issues)
    assert report.counts.info == 0


def test_warnings_alone_keep_report_valid():
    graph = SpecGraph([datapoint("d1", "Status", "tbd"), component("c1", "Form")], [edge("c1", "d1")])
    report = validate_graph(graph)
    assert violations(report.issues) == ["datapoint-tbd-type"]
    assert report.valid


def test_workflow_members_left_out_of_standalone_checks():
    graph = SpecGraph(
        [
            workflow("w1", "Flow", [("one", "t1"), ("two", "t2")]),
            transform("t1", "One"),
            transform("t2", "Two"),
            datapoint("d1", "Result", "number", "inferred"),
        ],
        [edge("w1", "d1")],
    )
    assert validate_graph(graph).issues == []


def test_sections_group_non_empty_categories():
    report = validate_graph(SpecGraph.from_project(Project.from_json_dict(BROKEN_CANVAS)))
    sections = report.sections()
    assert [category for category, _ in sections] == [
        IssueCategory.DATAPOINT_SOURCE,
        IssueCategory.CIRCULAR_DEPENDENCY,
    ]
    assert [len(issues) for _, issues in sections] == [2, 1]


def test_issues_for_node():
    report = validate_graph(SpecGraph.from_project(Project.from_json_dict(BROKEN_CANVAS)))
    assert violations(report.issues_for("a")) == ["wrong-source-type", "circular-dependency"]
    assert report.issues_for("zzz") == []


def test_report_to_dict():
    report = validate_graph(SpecGraph.from_project(Project.from_json_dict(BROKEN_CANVAS)))
    data = report.to_dict()
    assert data["counts"] == {"total": 3, "error": 1, "warning": 2, "info": 0}
    assert data["valid"] is False
    assert data["issues"][0] == {
        "violation": "wrong-source-type",
        "severity": "warning",
        "label": "A",
        "nodeId": "a",
        "source": "captured",
        "expectedSourceTypes": ["screen", "component"],
        "actualSourceTypes": ["datapoint"],
    }
    assert data["issues"][2] == {
        "violation": "circular-dependency",
        "severity": "error",
        "label": "",
        "cycle": ["a", "b", "a"],
        "labels": ["A", "B", "A"],
    }


def test_validation_is_repeatable():
    graph = _kitchen_sink()
    first = validate_graph(graph, check_screens=True).to_dict()
    second = validate_graph(graph, check_screens=True).to_dict()
    assert first == second
