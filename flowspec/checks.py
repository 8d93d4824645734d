"""
Rule checks over a specification graph.

Each check is a pure function of the graph (and, for most, the set of
workflow member ids to leave out of its candidate pool). Lookups such as
edge endpoints and labels always see the full graph. Checks never raise on
missing optional data; every defect becomes an issue.
"""

from collections import defaultdict
from typing import Optional

from .graph import SpecGraph
from .issues import (
    CycleIssue,
    DuplicateLabelIssue,
    OrphanIssue,
    ReferenceIssue,
    SourceIssue,
    TbdIssue,
    TransformIssue,
    TypeMismatchIssue,
    ValidationIssue,
    Violation,
    WorkflowIssue,
)
from .models import (
    DataType,
    Edge,
    EdgeType,
    NodeKind,
    SourceKind,
    as_component,
    as_datapoint,
    as_table,
    as_transform,
    as_workflow,
)
from .workflow import candidate_nodes

UNKNOWN_KIND = "unknown"

# Node kinds a data point's declared source may originate from
EXPECTED_SOURCE_KINDS: dict[SourceKind, tuple[str, ...]] = {
    SourceKind.CAPTURED: (NodeKind.SCREEN.value, NodeKind.COMPONENT.value),
    SourceKind.RETRIEVED: (NodeKind.TABLE.value, NodeKind.TRANSFORM.value, NodeKind.COMPONENT.value),
    SourceKind.INFERRED: (NodeKind.TRANSFORM.value,),
}

# Only computation edges can form meaningful cycles
CYCLE_EDGE_TYPES = frozenset({EdgeType.DERIVES_FROM, EdgeType.TRANSFORMS})


def _type_name(value: Optional[DataType]) -> str:
    return value.value if value is not None else UNKNOWN_KIND


def _is_tbd(value: Optional[DataType]) -> bool:
    return value == DataType.TBD


def _normalise_label(label: str) -> str:
    return label.strip().lower()


# --- Provenance ---

def _is_provenance_edge(graph: SpecGraph, edge: Edge) -> bool:
    """Screen-sourced containment is a capture path, table-sourced is structure."""
    if not edge.is_containment:
        return True
    return graph.source_kind(edge) != NodeKind.TABLE.value


def check_datapoint_sources(graph: SpecGraph, excluded: frozenset[str]) -> list[SourceIssue]:
    """Check every data point has exactly one source of the declared kind."""
    issues: list[SourceIssue] = []

    for node in candidate_nodes(graph.nodes, excluded, NodeKind.DATAPOINT.value):
        datapoint = as_datapoint(node)
        source = datapoint.data.source
        expected = list(EXPECTED_SOURCE_KINDS[source])

        edges = [e for e in graph.incoming(datapoint.id) if _is_provenance_edge(graph, e)]
        actual = [graph.source_kind(e) or UNKNOWN_KIND for e in edges]

        if not edges:
            violation = Violation.MISSING_SOURCE
        elif len(edges) > 1:
            violation = Violation.MULTIPLE_SOURCES
        elif actual[0] not in expected:
            violation = Violation.WRONG_SOURCE_TYPE
        else:
            continue

        if violation == Violation.MULTIPLE_SOURCES:
            # Unresolved origins still count as sources but are not listed
            actual = [kind for kind in actual if kind != UNKNOWN_KIND]

        issues.append(SourceIssue(
            violation=violation,
            node_id=datapoint.id,
            label=datapoint.display_label,
            source=source.value,
            expected_source_types=expected,
            actual_source_types=actual,
        ))

    return issues


# --- Transform I/O ---

def check_transform_io(graph: SpecGraph, excluded: frozenset[str]) -> list[TransformIssue]:
    """Non-workflow transforms need data-flow inputs and outputs."""
    issues: list[TransformIssue] = []

    for node in candidate_nodes(graph.nodes, excluded, NodeKind.TRANSFORM.value):
        transform = as_transform(node)
        if transform.data.is_workflow:
            continue
        transform_type = transform.data.type.value

        if not any(not e.is_containment for e in graph.incoming(transform.id)):
            issues.append(TransformIssue(
                violation=Violation.NO_INPUTS,
                node_id=transform.id,
                label=transform.display_label,
                transform_type=transform_type,
            ))
        if not any(not e.is_containment for e in graph.outgoing(transform.id)):
            issues.append(TransformIssue(
                violation=Violation.NO_OUTPUTS,
                node_id=transform.id,
                label=transform.display_label,
                transform_type=transform_type,
            ))

    return issues


# --- Workflows ---

def check_workflows(graph: SpecGraph) -> list[WorkflowIssue]:
    """
    Check the structure of every workflow transform.

    Runs over the full node set: workflows and their members are both
    visible here.
    """
    issues: list[WorkflowIssue] = []

    for node in graph.nodes_of_kind(NodeKind.TRANSFORM.value):
        workflow = as_workflow(node)
        if workflow is None:
            continue
        label = workflow.display_label
        members = workflow.data.members

        if not members:
            issues.append(WorkflowIssue(
                violation=Violation.EMPTY_WORKFLOW,
                node_id=workflow.id,
                label=label,
                detail="Workflow has no members",
            ))
            continue

        if len(members) < 2:
            issues.append(WorkflowIssue(
                violation=Violation.INSUFFICIENT_WORKFLOW_MEMBERS,
                node_id=workflow.id,
                label=label,
                detail=f"Workflow has only {len(members)} member (need at least 2)",
            ))

        if not graph.outgoing(workflow.id):
            issues.append(WorkflowIssue(
                violation=Violation.WORKFLOW_NO_OUTPUTS,
                node_id=workflow.id,
                label=label,
                detail="Workflow has no output connections",
            ))

        for member in members:
            if member.transform_id and not graph.has_node(member.transform_id):
                issues.append(WorkflowIssue(
                    violation=Violation.DANGLING_MEMBER_REFERENCE,
                    node_id=workflow.id,
                    label=label,
                    member_name=member.name,
                    detail=f'Member "{member.name}" references missing transform {member.transform_id}',
                ))

        for member in members:
            if not member.transform_id:
                continue
            if as_workflow(graph.get_node(member.transform_id)) is not None:
                issues.append(WorkflowIssue(
                    violation=Violation.NESTED_WORKFLOW,
                    node_id=workflow.id,
                    label=label,
                    member_name=member.name,
                    detail=f'Member "{member.name}" is itself a workflow (nesting not supported)',
                ))

    return issues


# --- Component references ---

def check_component_references(graph: SpecGraph, excluded: frozenset[str]) -> list[ReferenceIssue]:
    """Component captures/displays must resolve; components need a data point edge."""
    issues: list[ReferenceIssue] = []

    for node in candidate_nodes(graph.nodes, excluded, NodeKind.COMPONENT.value):
        component = as_component(node)
        label = component.display_label

        for violation, references in (
            (Violation.INVALID_CAPTURE_REFERENCE, component.data.captures),
            (Violation.INVALID_DISPLAY_REFERENCE, component.data.displays),
        ):
            invalid = [ref for ref in references if not graph.resolve_reference(ref).resolved]
            if invalid:
                issues.append(ReferenceIssue(
                    violation=violation,
                    node_id=component.id,
                    label=label,
                    invalid_refs=invalid,
                ))

        has_datapoint_edge = False
        for edge in graph.incident(component.id):
            other_id = edge.target if edge.source == component.id else edge.source
            if graph.kind_of(other_id) == NodeKind.DATAPOINT.value:
                has_datapoint_edge = True
                break
        if not has_datapoint_edge:
            issues.append(ReferenceIssue(
                violation=Violation.COMPONENT_NO_DATAPOINTS,
                node_id=component.id,
                label=label,
            ))

    return issues


# --- Table/data point types ---

def check_table_types(graph: SpecGraph, excluded: frozenset[str]) -> list[TypeMismatchIssue]:
    """Retrieved data points must agree with the type of the table column they name."""
    issues: list[TypeMismatchIssue] = []

    for node in candidate_nodes(graph.nodes, excluded, NodeKind.DATAPOINT.value):
        datapoint = as_datapoint(node)
        if datapoint.data.source != SourceKind.RETRIEVED:
            continue
        wanted = _normalise_label(datapoint.label)
        dp_type = datapoint.data.type

        for edge in graph.incoming(datapoint.id):
            table = as_table(graph.get_node(edge.source))
            if table is None:
                continue
            column = next(
                (c for c in table.data.columns if _normalise_label(c.name) == wanted),
                None,
            )
            if column is None or column.type == dp_type:
                continue
            if _is_tbd(column.type) or _is_tbd(dp_type):
                continue
            issues.append(TypeMismatchIssue(
                violation=Violation.TYPE_MISMATCH,
                node_id=datapoint.id,
                label=datapoint.display_label,
                data_point_type=_type_name(dp_type),
                table_id=table.id,
                table_label=table.display_label,
                column_name=column.name,
                column_type=_type_name(column.type),
            ))

    return issues


# --- Cycles ---

def find_dependency_cycles(graph: SpecGraph, excluded: frozenset[str]) -> list[list[str]]:
    """
    Find cycles over derives-from/transforms edges using DFS.

    Each cycle is the stack suffix from the re-entered node, closed by that
    node. Cycles sharing a node set are reported once, first discovery wins.
    Traversal uses an explicit stack so deep chains do not hit the
    recursion limit.
    """
    adjacency: dict[str, list[str]] = defaultdict(list)
    for edge in graph.edges:
        if edge.edge_type in CYCLE_EDGE_TYPES:
            adjacency[edge.source].append(edge.target)

    visited: set[str] = set()
    on_stack: set[str] = set()
    path: list[str] = []
    found: list[list[str]] = []

    def enter(node_id: str):
        visited.add(node_id)
        on_stack.add(node_id)
        path.append(node_id)
        return node_id, iter(adjacency.get(node_id, ()))

    for start in candidate_nodes(graph.nodes, excluded):
        if start.id in visited:
            continue
        frames = [enter(start.id)]
        while frames:
            node_id, neighbors = frames[-1]
            for neighbor in neighbors:
                if neighbor not in visited:
                    frames.append(enter(neighbor))
                    break
                if neighbor in on_stack:
                    found.append(path[path.index(neighbor):] + [neighbor])
            else:
                frames.pop()
                on_stack.discard(node_id)
                path.pop()

    unique: list[list[str]] = []
    seen: set[tuple[str, ...]] = set()
    for cycle in found:
        key = tuple(sorted(cycle[:-1]))  # Rotation-insensitive
        if key not in seen:
            seen.add(key)
            unique.append(cycle)
    return unique


def check_cycles(graph: SpecGraph, excluded: frozenset[str]) -> list[CycleIssue]:
    return [
        CycleIssue(
            violation=Violation.CIRCULAR_DEPENDENCY,
            cycle=cycle,
            labels=[graph.label_of(node_id) for node_id in cycle],
        )
        for cycle in find_dependency_cycles(graph, excluded)
    ]


# --- Orphans ---

def check_orphans(graph: SpecGraph, excluded: frozenset[str]) -> list[OrphanIssue]:
    connected = graph.connected_node_ids()
    return [
        OrphanIssue(
            violation=Violation.ORPHAN_NODE,
            node_id=node.id,
            label=node.display_label,
            node_type=node.type,
            detail="no edges",
        )
        for node in candidate_nodes(graph.nodes, excluded)
        if not node.is_visual and node.id not in connected
    ]


# --- Placeholders & duplicates ---

def check_tbd_types(graph: SpecGraph, excluded: frozenset[str]) -> list[TbdIssue]:
    issues: list[TbdIssue] = []

    for node in candidate_nodes(graph.nodes, excluded):
        datapoint = as_datapoint(node)
        if datapoint is not None and _is_tbd(datapoint.data.type):
            issues.append(TbdIssue(
                violation=Violation.DATAPOINT_TBD_TYPE,
                node_id=datapoint.id,
                label=datapoint.display_label,
                detail="DataPoint type is TBD",
            ))

        table = as_table(node)
        if table is None:
            continue
        for column in table.data.columns:
            if _is_tbd(column.type):
                issues.append(TbdIssue(
                    violation=Violation.TABLE_COLUMN_TBD,
                    node_id=table.id,
                    label=table.display_label,
                    column_name=column.name,
                    detail=f'Column "{column.name}" has type TBD',
                ))

    return issues


def check_duplicate_labels(graph: SpecGraph, excluded: frozenset[str]) -> list[DuplicateLabelIssue]:
    """Group same-kind nodes by trimmed, case-folded label."""
    groups: dict[tuple[str, str], list] = {}
    for node in candidate_nodes(graph.nodes, excluded):
        if node.is_visual:
            continue
        key = _normalise_label(node.label)
        if not key:
            continue
        groups.setdefault((node.type, key), []).append(node)

    issues: list[DuplicateLabelIssue] = []
    for (node_type, _), group in groups.items():
        if len(group) < 2:
            continue
        issues.append(DuplicateLabelIssue(
            violation=Violation.DUPLICATE_LABEL,
            label=group[0].label,
            node_type=node_type,
            duplicate_ids=[n.id for n in group],
            detail=f"{len(group)} nodes with same label",
        ))
    return issues


# --- Screens ---

def check_empty_screens(graph: SpecGraph) -> list[ValidationIssue]:
    return [
        ValidationIssue(
            violation=Violation.EMPTY_SCREEN,
            node_id=screen.id,
            label=screen.name or "Untitled",
            detail="Screen has no regions",
        )
        for screen in graph.screens
        if not screen.regions
    ]
