"""
Workflow member resolution.

A workflow transform composes other transforms through its `members` list.
Transforms bound as members are referenced structurally rather than wired
on the main graph, so standalone checks leave them out of their candidate
pool.
"""

from typing import Iterable, Iterator

from .graph import SpecGraph
from .models import BaseNode, NodeKind, as_workflow


def collect_workflow_member_ids(graph: SpecGraph) -> frozenset[str]:
    """Collect every `members[].transformId` of every workflow transform."""
    member_ids: set[str] = set()
    for node in graph.nodes_of_kind(NodeKind.TRANSFORM.value):
        workflow = as_workflow(node)
        if workflow is None:
            continue
        for member in workflow.data.members:
            if member.transform_id:
                member_ids.add(member.transform_id)
    return frozenset(member_ids)


def candidate_nodes(
    nodes: Iterable[BaseNode],
    excluded: frozenset[str],
    kind: str | None = None,
) -> Iterator[BaseNode]:
    """Nodes outside the exclusion set, optionally restricted to one kind."""
    for node in nodes:
        if node.id in excluded:
            continue
        if kind is not None and node.type != kind:
            continue
        yield node
