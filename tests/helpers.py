"""Builders for specification graphs used across the tests."""

import itertools
from typing import Optional

from flowspec.models import Edge, Screen, parse_node

_edge_ids = itertools.count(1)


def datapoint(node_id: str, label: str, type: Optional[str] = "string", source: str = "captured", **data):
    payload = {"label": label, "source": source, **data}
    if type is not None:
        payload["type"] = type
    return parse_node({"id": node_id, "type": "datapoint", "data": payload})


def component(node_id: str, label: str, captures=(), displays=()):
    return parse_node({
        "id": node_id,
        "type": "component",
        "data": {"label": label, "captures": list(captures), "displays": list(displays)},
    })


def transform(node_id: str, label: str, type: str = "formula"):
    return parse_node({"id": node_id, "type": "transform", "data": {"label": label, "type": type}})


def workflow(node_id: str, label: str, members=()):
    """Members are (name, transform_id) pairs; transform_id may be None."""
    return parse_node({
        "id": node_id,
        "type": "transform",
        "data": {
            "label": label,
            "type": "workflow",
            "members": [{"name": name, "transformId": tid} for name, tid in members],
        },
    })


def table(node_id: str, label: str, columns: Optional[dict] = None):
    return parse_node({
        "id": node_id,
        "type": "table",
        "data": {
            "label": label,
            "sourceType": "database",
            "columns": [{"name": name, "type": kind} for name, kind in (columns or {}).items()],
        },
    })


def screen_node(node_id: str, label: str = "Screen"):
    return parse_node({"id": node_id, "type": "screen", "data": {"label": label}})


def image(node_id: str):
    return parse_node({"id": node_id, "type": "image", "data": {"src": "shot.png"}})


def edge(source: str, target: str, edge_type: str = "flows-to") -> Edge:
    return Edge.model_validate({
        "id": f"e{next(_edge_ids)}",
        "source": source,
        "target": target,
        "data": {"edgeType": edge_type},
    })


def screen(screen_id: str, name: str, regions=()) -> Screen:
    """Regions are lists of element ids."""
    return Screen.model_validate({
        "id": screen_id,
        "name": name,
        "regions": [
            {"id": f"{screen_id}-r{i}", "elementIds": list(ids)}
            for i, ids in enumerate(regions)
        ],
    })


def violations(issues) -> list[str]:
    return [issue.violation.value for issue in issues]
