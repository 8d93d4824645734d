"""Render validation reports as markdown or JSON."""

import json
from typing import Optional

from .issues import (
    CycleIssue,
    DuplicateLabelIssue,
    OrphanIssue,
    ReferenceIssue,
    SourceIssue,
    TransformIssue,
    TypeMismatchIssue,
    ValidationIssue,
)
from .validation import ValidationReport

NO_ISSUES_MESSAGE = "All data flow rules passed - no issues found."


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def _issue_lines(issue: ValidationIssue) -> list[str]:
    """Markdown bullet (plus detail sub-bullets) for one issue."""
    prefix = f"- [{issue.severity.value}]"
    title = issue.violation.title

    if isinstance(issue, SourceIssue):
        lines = [f"{prefix} **{issue.label}** ({issue.source}): {title}",
                 f"  - Expected: {', '.join(issue.expected_source_types)}"]
        if issue.actual_source_types:
            lines.append(f"  - Actual: {', '.join(issue.actual_source_types)}")
        return lines

    if isinstance(issue, TransformIssue):
        return [f"{prefix} **{issue.label}** ({issue.transform_type}): {title}"]

    if isinstance(issue, ReferenceIssue):
        lines = [f"{prefix} **{issue.label}**: {title}"]
        if issue.invalid_refs:
            lines.append(f"  - Invalid references: {', '.join(issue.invalid_refs)}")
        return lines

    if isinstance(issue, TypeMismatchIssue):
        return [
            f"{prefix} **{issue.label}** ({issue.data_point_type}) <- "
            f"**{issue.table_label}.{issue.column_name}** ({issue.column_type})"
        ]

    if isinstance(issue, CycleIssue):
        return [f"{prefix} Cycle: {' -> '.join(issue.labels)}"]

    if isinstance(issue, OrphanIssue):
        return [f"{prefix} **{issue.label}** ({issue.node_type}): no edges"]

    if isinstance(issue, DuplicateLabelIssue):
        return [
            f"{prefix} **{issue.label}** ({issue.node_type}): "
            f"{len(issue.duplicate_ids)} nodes with same label",
            f"  - Nodes: {', '.join(issue.duplicate_ids)}",
        ]

    # Workflow, TBD and screen issues carry their specifics in `detail`
    if issue.detail:
        return [f"{prefix} **{issue.label}**: {title} - {issue.detail}"]
    return [f"{prefix} **{issue.label}**: {title}"]


def format_report(report: ValidationReport, project_name: Optional[str] = None) -> str:
    """
    Render a report as markdown.

    Issues are grouped under one `###` heading per category, in canonical
    order; empty categories are omitted.
    """
    heading = "## Data Flow Validation"
    if project_name:
        heading = f"{heading} for {project_name}"
    lines = [heading, ""]

    counts = report.counts
    if counts.total == 0:
        lines.append(NO_ISSUES_MESSAGE)
        return "\n".join(lines)

    lines.append(
        f"**{_plural(counts.total, 'issue')} found**: "
        f"{_plural(counts.error, 'error')}, {_plural(counts.warning, 'warning')}, {counts.info} info"
    )

    for category, issues in report.sections():
        lines.append("")
        lines.append(f"### {category.value} ({len(issues)})")
        for issue in issues:
            lines.extend(_issue_lines(issue))

    return "\n".join(lines)


def report_to_json(report: ValidationReport, project_name: Optional[str] = None, indent: int = 2) -> str:
    """Render a report as JSON."""
    data = report.to_dict()
    if project_name:
        data = {"project": project_name, **data}
    return json.dumps(data, indent=indent)
