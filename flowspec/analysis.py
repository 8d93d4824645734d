"""
Project analysis - lightweight structural summaries of a specification.

Complements validation with views that help locate things rather than
judge them: orphans annotated with the screens that show them, label
collisions across node kinds, screen/region context and label search.
"""

from dataclasses import dataclass, field
from typing import Optional

from .graph import SpecGraph
from .models import NodeKind


class ScreenNotFoundError(LookupError):
    """Raised when a requested screen id is not part of the project."""


@dataclass
class OrphanNode:
    node_id: str
    label: str
    node_type: str
    screen_refs: list[str] = field(default_factory=list)  # Names of screens referencing the node


@dataclass
class DuplicateGroup:
    label: str
    node_type: str  # Single kind, or "mixed"
    node_ids: list[str] = field(default_factory=list)
    node_types: list[str] = field(default_factory=list)


@dataclass
class ProjectAnalysis:
    orphans: list[OrphanNode]
    duplicates: list[DuplicateGroup]
    total_nodes: int
    connected_nodes: int

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "orphans": [
                {"id": o.node_id, "label": o.label, "nodeType": o.node_type, "screenRefs": o.screen_refs}
                for o in self.orphans
            ],
            "duplicates": [
                {"label": d.label, "nodeType": d.node_type, "nodeIds": d.node_ids, "nodeTypes": d.node_types}
                for d in self.duplicates
            ],
            "totalNodes": self.total_nodes,
            "connectedNodes": self.connected_nodes,
        }


@dataclass
class NodeMatch:
    node_id: str
    node_type: str
    label: str

    def to_dict(self) -> dict:
        return {"nodeId": self.node_id, "nodeType": self.node_type, "label": self.label}


def screen_references(graph: SpecGraph) -> dict[str, list[str]]:
    """Map node id to the names of screens whose regions reference it."""
    refs: dict[str, list[str]] = {}
    for screen in graph.screens:
        for region in screen.regions:
            for element_id in region.element_ids:
                names = refs.setdefault(element_id, [])
                if screen.name not in names:
                    names.append(screen.name)
    return refs


def analyse_project(graph: SpecGraph) -> ProjectAnalysis:
    """
    Find orphan nodes and duplicate labels across all node kinds.

    Image and screen nodes are ignored. Unlike validation, duplicates are
    grouped by label alone so collisions between kinds show up.
    """
    analysable = [n for n in graph.nodes if not n.is_visual]
    connected = graph.connected_node_ids()
    refs = screen_references(graph)

    orphans = [
        OrphanNode(
            node_id=node.id,
            label=node.display_label,
            node_type=node.type,
            screen_refs=list(refs.get(node.id, [])),
        )
        for node in analysable
        if node.id not in connected
    ]

    groups: dict[str, DuplicateGroup] = {}
    for node in analysable:
        key = node.label.strip().lower()
        if not key:
            continue
        group = groups.setdefault(key, DuplicateGroup(label=key, node_type=node.type))
        group.node_ids.append(node.id)
        group.node_types.append(node.type)

    duplicates: list[DuplicateGroup] = []
    for group in groups.values():
        if len(group.node_ids) < 2:
            continue
        kinds = set(group.node_types)
        group.node_type = group.node_types[0] if len(kinds) == 1 else "mixed"
        duplicates.append(group)

    return ProjectAnalysis(
        orphans=orphans,
        duplicates=duplicates,
        total_nodes=len(analysable),
        connected_nodes=len(connected),
    )


def format_analysis(analysis: ProjectAnalysis, project_name: Optional[str] = None) -> str:
    """Render an analysis as markdown."""
    heading = "## Analysis"
    if project_name:
        heading = f"{heading} for {project_name}"
    lines = [
        heading,
        f"Total nodes: {analysis.total_nodes} | Connected: {analysis.connected_nodes} | "
        f"Orphans: {len(analysis.orphans)} | Duplicate labels: {len(analysis.duplicates)}",
    ]

    if analysis.orphans:
        lines.append("")
        lines.append("### Orphan Nodes (no edges)")
        for orphan in analysis.orphans:
            screens = f" [screens: {', '.join(orphan.screen_refs)}]" if orphan.screen_refs else ""
            lines.append(f"- **{orphan.label}** ({orphan.node_type}, id: {orphan.node_id}){screens}")

    if analysis.duplicates:
        lines.append("")
        lines.append("### Duplicate Labels")
        for group in analysis.duplicates:
            lines.append(
                f"- **{group.label}** ({group.node_type}): "
                f"{len(group.node_ids)} nodes: {', '.join(group.node_ids)}"
            )

    if not analysis.orphans and not analysis.duplicates:
        lines.append("")
        lines.append("No issues found: all nodes are connected and labels are unique.")

    return "\n".join(lines)


def screen_context(graph: SpecGraph, screen_id: Optional[str] = None) -> list[dict]:
    """
    Describe screens, their regions and the elements each region groups.

    Args:
        graph: The specification graph
        screen_id: Restrict to one screen (all screens when omitted)

    Returns:
        One dict per screen, elements resolved to node labels and kinds

    Raises:
        ScreenNotFoundError: if `screen_id` is given and does not exist
    """
    elements: dict[str, tuple[str, str]] = {
        node.id: (node.display_label, node.type)
        for node in graph.nodes
        if node.type != NodeKind.IMAGE.value
    }

    def _element(element_id: str) -> dict:
        label, kind = elements.get(element_id, ("Missing element", "unknown"))
        return {"nodeId": element_id, "nodeLabel": label, "nodeType": kind}

    screens = list(graph.screens)
    if screen_id is not None:
        screens = [s for s in screens if s.id == screen_id]
        if not screens:
            raise ScreenNotFoundError(f"Screen not found: {screen_id}")

    result = []
    for screen in screens:
        result.append({
            "id": screen.id,
            "name": screen.name,
            "imageFilename": screen.image_filename,
            "regionCount": len(screen.regions),
            "elementCount": sum(len(r.element_ids) for r in screen.regions),
            "regions": [
                {
                    "id": region.id,
                    "label": region.label,
                    "position": region.position.model_dump(),
                    "size": region.size.model_dump(),
                    "componentNodeId": region.component_node_id,
                    "elements": [_element(element_id) for element_id in region.element_ids],
                }
                for region in screen.regions
            ],
        })
    return result


def search_nodes(graph: SpecGraph, query: str, node_type: Optional[str] = None) -> list[NodeMatch]:
    """Case-insensitive label substring search; image nodes are skipped."""
    needle = query.lower()
    matches: list[NodeMatch] = []
    for node in graph.nodes:
        if node.type == NodeKind.IMAGE.value:
            continue
        if node_type and node.type != node_type:
            continue
        if needle in node.label.lower():
            matches.append(NodeMatch(node_id=node.id, node_type=node.type, label=node.label))
    return matches
