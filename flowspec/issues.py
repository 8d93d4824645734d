"""
Validation issue taxonomy.

Every finding carries a violation kind; its severity is fixed by the kind
and assigned when the issue is built. Issues serialise to camelCase dicts
for JSON consumers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class IssueSeverity(str, Enum):
    """Severity levels for validation issues."""
    ERROR = "error"      # Broken specification, must be fixed
    WARNING = "warning"  # Potential problem, should review
    INFO = "info"        # Informational, may be intentional


class Violation(str, Enum):
    MISSING_SOURCE = "missing-source"
    WRONG_SOURCE_TYPE = "wrong-source-type"
    MULTIPLE_SOURCES = "multiple-sources"
    NO_INPUTS = "no-inputs"
    NO_OUTPUTS = "no-outputs"
    EMPTY_WORKFLOW = "empty-workflow"
    INSUFFICIENT_WORKFLOW_MEMBERS = "insufficient-workflow-members"
    WORKFLOW_NO_OUTPUTS = "workflow-no-outputs"
    DANGLING_MEMBER_REFERENCE = "dangling-member-reference"
    NESTED_WORKFLOW = "nested-workflow"
    INVALID_CAPTURE_REFERENCE = "invalid-capture-reference"
    INVALID_DISPLAY_REFERENCE = "invalid-display-reference"
    COMPONENT_NO_DATAPOINTS = "component-no-datapoints"
    TYPE_MISMATCH = "type-mismatch"
    CIRCULAR_DEPENDENCY = "circular-dependency"
    ORPHAN_NODE = "orphan-node"
    DATAPOINT_TBD_TYPE = "datapoint-tbd-type"
    TABLE_COLUMN_TBD = "table-column-tbd"
    DUPLICATE_LABEL = "duplicate-label"
    EMPTY_SCREEN = "empty-screen"

    @property
    def title(self) -> str:
        return self.value.replace("-", " ")


SEVERITY_MAP: dict[Violation, IssueSeverity] = {
    Violation.MISSING_SOURCE: IssueSeverity.ERROR,
    Violation.NO_INPUTS: IssueSeverity.ERROR,
    Violation.NO_OUTPUTS: IssueSeverity.ERROR,
    Violation.INSUFFICIENT_WORKFLOW_MEMBERS: IssueSeverity.ERROR,
    Violation.WORKFLOW_NO_OUTPUTS: IssueSeverity.ERROR,
    Violation.COMPONENT_NO_DATAPOINTS: IssueSeverity.ERROR,
    Violation.CIRCULAR_DEPENDENCY: IssueSeverity.ERROR,
    Violation.ORPHAN_NODE: IssueSeverity.ERROR,
    Violation.WRONG_SOURCE_TYPE: IssueSeverity.WARNING,
    Violation.MULTIPLE_SOURCES: IssueSeverity.WARNING,
    Violation.TYPE_MISMATCH: IssueSeverity.WARNING,
    Violation.INVALID_CAPTURE_REFERENCE: IssueSeverity.WARNING,
    Violation.INVALID_DISPLAY_REFERENCE: IssueSeverity.WARNING,
    Violation.DUPLICATE_LABEL: IssueSeverity.WARNING,
    Violation.DATAPOINT_TBD_TYPE: IssueSeverity.WARNING,
    Violation.TABLE_COLUMN_TBD: IssueSeverity.WARNING,
    Violation.DANGLING_MEMBER_REFERENCE: IssueSeverity.WARNING,
    Violation.NESTED_WORKFLOW: IssueSeverity.WARNING,
    Violation.EMPTY_WORKFLOW: IssueSeverity.WARNING,
    Violation.EMPTY_SCREEN: IssueSeverity.INFO,
}


def severity_for(violation: Violation) -> IssueSeverity:
    return SEVERITY_MAP.get(violation, IssueSeverity.WARNING)


class IssueCategory(str, Enum):
    """Report sections, declared in canonical report order."""
    DATAPOINT_SOURCE = "DataPoint Source Issues"
    TRANSFORM = "Transform Issues"
    WORKFLOW = "Workflow Issues"
    COMPONENT_REFERENCE = "Component Reference Issues"
    TYPE_MISMATCH = "Type Mismatches"
    CIRCULAR_DEPENDENCY = "Circular Dependencies"
    ORPHAN = "Orphan Nodes"
    TBD = "TBD Issues"
    DUPLICATE_LABEL = "Duplicate Labels"
    SCREEN = "Screen Issues"


CATEGORY_ORDER: tuple[IssueCategory, ...] = tuple(IssueCategory)

VIOLATION_CATEGORY: dict[Violation, IssueCategory] = {
    Violation.MISSING_SOURCE: IssueCategory.DATAPOINT_SOURCE,
    Violation.WRONG_SOURCE_TYPE: IssueCategory.DATAPOINT_SOURCE,
    Violation.MULTIPLE_SOURCES: IssueCategory.DATAPOINT_SOURCE,
    Violation.NO_INPUTS: IssueCategory.TRANSFORM,
    Violation.NO_OUTPUTS: IssueCategory.TRANSFORM,
    Violation.EMPTY_WORKFLOW: IssueCategory.WORKFLOW,
    Violation.INSUFFICIENT_WORKFLOW_MEMBERS: IssueCategory.WORKFLOW,
    Violation.WORKFLOW_NO_OUTPUTS: IssueCategory.WORKFLOW,
    Violation.DANGLING_MEMBER_REFERENCE: IssueCategory.WORKFLOW,
    Violation.NESTED_WORKFLOW: IssueCategory.WORKFLOW,
    Violation.INVALID_CAPTURE_REFERENCE: IssueCategory.COMPONENT_REFERENCE,
    Violation.INVALID_DISPLAY_REFERENCE: IssueCategory.COMPONENT_REFERENCE,
    Violation.COMPONENT_NO_DATAPOINTS: IssueCategory.COMPONENT_REFERENCE,
    Violation.TYPE_MISMATCH: IssueCategory.TYPE_MISMATCH,
    Violation.CIRCULAR_DEPENDENCY: IssueCategory.CIRCULAR_DEPENDENCY,
    Violation.ORPHAN_NODE: IssueCategory.ORPHAN,
    Violation.DATAPOINT_TBD_TYPE: IssueCategory.TBD,
    Violation.TABLE_COLUMN_TBD: IssueCategory.TBD,
    Violation.DUPLICATE_LABEL: IssueCategory.DUPLICATE_LABEL,
    Violation.EMPTY_SCREEN: IssueCategory.SCREEN,
}


@dataclass
class ValidationIssue:
    """A single finding about the specification's content."""
    violation: Violation
    node_id: Optional[str] = None
    label: str = ""
    detail: Optional[str] = None
    severity: IssueSeverity = field(init=False)

    def __post_init__(self):
        self.violation = Violation(self.violation)
        self.severity = severity_for(self.violation)

    @property
    def category(self) -> IssueCategory:
        return VIOLATION_CATEGORY[self.violation]

    def affected_node_ids(self) -> list[str]:
        return [self.node_id] if self.node_id else []

    def extra_fields(self) -> dict:
        """Kind-specific fields, already in wire form."""
        return {}

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "violation": self.violation.value,
            "severity": self.severity.value,
            "label": self.label,
        }
        if self.node_id:
            result["nodeId"] = self.node_id
        if self.detail:
            result["detail"] = self.detail
        result.update(self.extra_fields())
        return result


@dataclass
class SourceIssue(ValidationIssue):
    """Provenance finding on a data point."""
    source: str = "captured"
    expected_source_types: list[str] = field(default_factory=list)
    actual_source_types: list[str] = field(default_factory=list)

    def extra_fields(self) -> dict:
        return {
            "source": self.source,
            "expectedSourceTypes": list(self.expected_source_types),
            "actualSourceTypes": list(self.actual_source_types),
        }


@dataclass
class TransformIssue(ValidationIssue):
    transform_type: str = "formula"

    def extra_fields(self) -> dict:
        return {"transformType": self.transform_type}


@dataclass
class ReferenceIssue(ValidationIssue):
    """Component reference finding; `invalid_refs` keeps input order."""
    invalid_refs: list[str] = field(default_factory=list)

    def extra_fields(self) -> dict:
        return {"invalidRefs": list(self.invalid_refs)}


@dataclass
class TypeMismatchIssue(ValidationIssue):
    data_point_type: str = "unknown"
    table_id: str = ""
    table_label: str = ""
    column_name: str = ""
    column_type: str = ""

    def affected_node_ids(self) -> list[str]:
        return [i for i in (self.node_id, self.table_id) if i]

    def extra_fields(self) -> dict:
        return {
            "dataPointType": self.data_point_type,
            "tableId": self.table_id,
            "tableLabel": self.table_label,
            "columnName": self.column_name,
            "columnType": self.column_type,
        }


@dataclass
class CycleIssue(ValidationIssue):
    """A cycle path, closed by repeating its first node."""
    cycle: list[str] = field(default_factory=list)
    labels: list[str] = field(default_factory=list)

    def affected_node_ids(self) -> list[str]:
        return list(dict.fromkeys(self.cycle))

    def extra_fields(self) -> dict:
        return {"cycle": list(self.cycle), "labels": list(self.labels)}


@dataclass
class WorkflowIssue(ValidationIssue):
    member_name: Optional[str] = None

    def extra_fields(self) -> dict:
        if self.member_name is None:
            return {}
        return {"memberName": self.member_name}


@dataclass
class OrphanIssue(ValidationIssue):
    node_type: str = "unknown"

    def extra_fields(self) -> dict:
        return {"nodeType": self.node_type}


@dataclass
class TbdIssue(ValidationIssue):
    column_name: Optional[str] = None

    def extra_fields(self) -> dict:
        if self.column_name is None:
            return {}
        return {"columnName": self.column_name}


@dataclass
class DuplicateLabelIssue(ValidationIssue):
    """One group of same-kind nodes sharing a normalised label."""
    duplicate_ids: list[str] = field(default_factory=list)
    node_type: str = "unknown"

    def affected_node_ids(self) -> list[str]:
        return list(self.duplicate_ids)

    def extra_fields(self) -> dict:
        return {"nodeIds": list(self.duplicate_ids), "nodeType": self.node_type}
