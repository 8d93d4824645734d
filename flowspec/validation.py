"""
Specification validation - run every rule check and aggregate the findings.

The validator is a pure function of a graph snapshot. It performs no I/O
and holds no state between runs; a malformed specification produces a
report, never an exception.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from . import checks
from .graph import SpecGraph
from .issues import CATEGORY_ORDER, IssueCategory, IssueSeverity, ValidationIssue
from .models import BaseNode, Edge, Screen
from .workflow import collect_workflow_member_ids

logger = logging.getLogger(__name__)


@dataclass
class IssueCounts:
    total: int = 0
    error: int = 0
    warning: int = 0
    info: int = 0

    @classmethod
    def from_issues(cls, issues: Iterable[ValidationIssue]) -> "IssueCounts":
        counts = cls()
        for issue in issues:
            counts.total += 1
            if issue.severity == IssueSeverity.ERROR:
                counts.error += 1
            elif issue.severity == IssueSeverity.WARNING:
                counts.warning += 1
            else:
                counts.info += 1
        return counts

    def to_dict(self) -> dict:
        return {"total": self.total, "error": self.error, "warning": self.warning, "info": self.info}


@dataclass
class ValidationReport:
    """Ordered findings of one validation run."""
    issues: list[ValidationIssue] = field(default_factory=list)
    counts: IssueCounts = field(default_factory=IssueCounts)

    @property
    def valid(self) -> bool:
        """True when no error-severity issue was found."""
        return self.counts.error == 0

    def sections(self) -> list[tuple[IssueCategory, list[ValidationIssue]]]:
        """Non-empty categories in canonical order."""
        grouped: dict[IssueCategory, list[ValidationIssue]] = {}
        for issue in self.issues:
            grouped.setdefault(issue.category, []).append(issue)
        return [(category, grouped[category]) for category in CATEGORY_ORDER if category in grouped]

    def issues_for(self, node_id: str) -> list[ValidationIssue]:
        return [i for i in self.issues if node_id in i.affected_node_ids()]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "issues": [issue.to_dict() for issue in self.issues],
            "counts": self.counts.to_dict(),
            "valid": self.valid,
        }


def validate_graph(graph: SpecGraph, *, check_screens: bool = False) -> ValidationReport:
    """
    Validate a specification graph and return the aggregated report.

    Checks, in report order:
    - DataPoint provenance (missing/multiple/wrong-kind sources)
    - Transform inputs and outputs
    - Workflow structure (full node set, members included)
    - Component capture/display references
    - Table column vs retrieved data point types
    - Circular dependencies over derives-from/transforms edges
    - Orphan nodes
    - TBD placeholder types
    - Duplicate labels
    - Empty screens (only when `check_screens` is set)

    Workflow member transforms are left out of every check except the
    workflow check.
    """
    excluded = collect_workflow_member_ids(graph)

    issues: list[ValidationIssue] = []
    issues.extend(checks.check_datapoint_sources(graph, excluded))
    issues.extend(checks.check_transform_io(graph, excluded))
    issues.extend(checks.check_workflows(graph))
    issues.extend(checks.check_component_references(graph, excluded))
    issues.extend(checks.check_table_types(graph, excluded))
    issues.extend(checks.check_cycles(graph, excluded))
    issues.extend(checks.check_orphans(graph, excluded))
    issues.extend(checks.check_tbd_types(graph, excluded))
    issues.extend(checks.check_duplicate_labels(graph, excluded))
    if check_screens:
        issues.extend(checks.check_empty_screens(graph))

    report = ValidationReport(issues=issues, counts=IssueCounts.from_issues(issues))
    logger.debug(
        "Validated %d nodes, %d edges (%d workflow members excluded): %s",
        len(graph.nodes), len(graph.edges), len(excluded), report.counts.to_dict(),
    )
    return report


def validate_project(
    nodes: Iterable[BaseNode],
    edges: Iterable[Edge],
    screens: Optional[Iterable[Screen]] = None,
    *,
    check_screens: bool = False,
) -> ValidationReport:
    """Validate a node/edge/screen snapshot."""
    return validate_graph(SpecGraph(nodes, edges, screens), check_screens=check_screens)
