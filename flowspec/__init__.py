"""
FlowSpec - consistency validation for data model specifications.

This module provides the models, graph accessor, rule checks and report
rendering shared by the CLI, the HTTP API and the MCP tools.
"""

__version__ = "0.1.0"

from .models import (
    # Enums
    NodeKind,
    EdgeType,
    DataType,
    SourceKind,
    TransformType,
    # Core models
    DataPointNode,
    ComponentNode,
    TransformNode,
    TableNode,
    ScreenNode,
    ImageNode,
    Edge,
    Screen,
    ScreenRegion,
    CanvasState,
    Project,
    parse_node,
    # Narrowing
    as_datapoint,
    as_component,
    as_transform,
    as_table,
    as_workflow,
)

from .graph import SpecGraph
from .issues import IssueSeverity, Violation, ValidationIssue
from .validation import ValidationReport, validate_graph, validate_project
from .report import format_report, report_to_json
from .analysis import analyse_project, screen_context, search_nodes

__all__ = [
    "__version__",
    # Enums
    "NodeKind",
    "EdgeType",
    "DataType",
    "SourceKind",
    "TransformType",
    # Models
    "DataPointNode",
    "ComponentNode",
    "TransformNode",
    "TableNode",
    "ScreenNode",
    "ImageNode",
    "Edge",
    "Screen",
    "ScreenRegion",
    "CanvasState",
    "Project",
    "parse_node",
    "as_datapoint",
    "as_component",
    "as_transform",
    "as_table",
    "as_workflow",
    # Graph
    "SpecGraph",
    # Validation
    "IssueSeverity",
    "Violation",
    "ValidationIssue",
    "ValidationReport",
    "validate_graph",
    "validate_project",
    "format_report",
    "report_to_json",
    # Analysis
    "analyse_project",
    "screen_context",
    "search_nodes",
]
