#!/usr/bin/env python3
"""
FlowSpec MCP Server

Provides MCP tools for AI agents to check FlowSpec projects stored on the
local FlowSpec server. Projects are fetched on every call; nothing is
cached between calls.
"""

import json
import logging
from typing import Optional

from mcp.server.fastmcp import FastMCP

from .analysis import ScreenNotFoundError, analyse_project, format_analysis, screen_context
from .client import GraphSourceError, LocalProjectSource, ProjectNotFoundError
from .config import load_config
from .report import format_report
from .validation import validate_graph

logger = logging.getLogger(__name__)

# Create MCP server
mcp = FastMCP("flowspec")


def get_project_source() -> LocalProjectSource:
    """Graph source used by every tool."""
    return LocalProjectSource.from_config(load_config())


def _fetch(project_id: str):
    """Fetch (project, graph), or an error text for the agent."""
    try:
        project, graph = get_project_source().get_graph(project_id)
    except (ProjectNotFoundError, GraphSourceError) as e:
        logger.info("Cannot load project %s: %s", project_id, e)
        return None, None, str(e)
    return project, graph, None


# ============================================================================
# READ TOOLS
# ============================================================================

@mcp.tool()
def flowspec_list_projects() -> str:
    """
    List all FlowSpec projects with names and dates.
    """
    try:
        projects = get_project_source().list_projects()
    except GraphSourceError as e:
        return str(e)
    if not projects:
        return "No projects found."
    return json.dumps(projects, indent=2)


@mcp.tool()
def flowspec_search_nodes(query: str, node_type: Optional[str] = None) -> str:
    """
    Search for nodes by label across all projects.

    Args:
        query: Search term matched against node labels (case-insensitive)
        node_type: Optional filter (datapoint, component, transform, table)
    """
    try:
        matches = get_project_source().search_nodes(query, node_type)
    except GraphSourceError as e:
        return str(e)
    if not matches:
        return f'No nodes found matching "{query}".'
    lines = [
        f"- **{m['label']}** ({m['nodeType']}) in project \"{m['projectName']}\" "
        f"(node: {m['nodeId']}, project: {m['projectId']})"
        for m in matches
    ]
    return f"Found {len(matches)} node(s):\n\n" + "\n".join(lines)


@mcp.tool()
def flowspec_get_screen_context(project_id: str, screen_id: Optional[str] = None) -> str:
    """
    Get screen/region/element structure for a FlowSpec project.

    Args:
        project_id: UUID of the FlowSpec project
        screen_id: Specific screen ID (omit for all screens)

    Lightweight alternative to reading the full project.
    """
    project, graph, error = _fetch(project_id)
    if error:
        return error
    if not graph.screens:
        return "No screens defined in this project."
    try:
        screens = screen_context(graph, screen_id)
    except ScreenNotFoundError as e:
        return str(e)
    return json.dumps(screens, indent=2)


# ============================================================================
# ANALYSIS TOOLS
# ============================================================================

@mcp.tool()
def flowspec_analyse_project(project_id: str) -> str:
    """
    Find orphan nodes and duplicate labels in a FlowSpec project.

    Args:
        project_id: UUID of the project to analyse

    Orphans list the screens whose regions still reference them.
    """
    project, graph, error = _fetch(project_id)
    if error:
        return error
    return format_analysis(analyse_project(graph), project.name)


@mcp.tool()
def flowspec_validate_project(project_id: str, check_screens: bool = False) -> str:
    """
    Validate the data flow rules of a FlowSpec project.

    Args:
        project_id: UUID of the project to validate
        check_screens: Also report screens without regions

    Reports, grouped by category with error/warning/info severity:
    - DataPoints with missing, multiple or wrong-kind sources
    - Transforms without inputs or outputs
    - Malformed workflows
    - Invalid component references
    - Table column / DataPoint type mismatches
    - Circular dependencies
    - Orphan nodes, TBD types and duplicate labels
    """
    project, graph, error = _fetch(project_id)
    if error:
        return error
    report = validate_graph(graph, check_screens=check_screens or load_config().check_screens)
    return format_report(report, project.name)


# ============================================================================
# MAIN
# ============================================================================

def main():
    logging.basicConfig(level=load_config().log_level)
    mcp.run()


if __name__ == "__main__":
    main()
