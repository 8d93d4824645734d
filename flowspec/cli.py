#!/usr/bin/env python3
"""FlowSpec CLI - validate and analyse specification graphs."""

import argparse
import json
import logging
import sys

from pydantic import ValidationError

from .analysis import ScreenNotFoundError, analyse_project, format_analysis, screen_context, search_nodes
from .client import GraphSourceError, LocalProjectSource, ProjectNotFoundError
from .config import FlowSpecConfig, load_config
from .graph import SpecGraph
from .models import Project
from .report import format_report
from .validation import validate_graph

logger = logging.getLogger(__name__)


def _json_out(data, code=0):
    print(json.dumps(data))
    sys.exit(code)


def _text_out(text, code=0):
    print(text)
    sys.exit(code)


def _error_out(message):
    _json_out({"status": "error", "error": message}, code=1)


def _load_project(args, config: FlowSpecConfig) -> Project:
    """Load a project from --file or fetch it by --project-id."""
    if args.file:
        try:
            with open(args.file, encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            _error_out(f"Cannot read {args.file}: {e}")
        except json.JSONDecodeError as e:
            _error_out(f"Invalid JSON in {args.file}: {e}")
        if not isinstance(data, dict):
            _error_out(f"Expected a JSON object in {args.file}")
        try:
            return Project.from_json_dict(data)
        except ValidationError as e:
            _error_out(f"Invalid specification in {args.file}: {e}")

    try:
        return LocalProjectSource.from_config(config).get_project(args.project_id)
    except ProjectNotFoundError as e:
        _error_out(str(e))
    except GraphSourceError as e:
        _error_out(str(e))


def _add_project_args(p):
    group = p.add_mutually_exclusive_group(required=True)
    group.add_argument("--file", default=None, help="Project or canvas JSON document")
    group.add_argument("--project-id", default=None, help="Project id on the local server")


# ── Validation ───────────────────────────────────────────────────────────────

def cmd_validate(args, config):
    project = _load_project(args, config)
    check_screens = args.check_screens or config.check_screens
    report = validate_graph(SpecGraph.from_project(project), check_screens=check_screens)
    code = 1 if args.strict and not report.valid else 0

    if args.format == "json":
        _json_out({"success": True, "project": project.name, **report.to_dict()}, code=code)
    _text_out(format_report(report, project.name), code=code)


# ── Analysis ─────────────────────────────────────────────────────────────────

def cmd_analyse(args, config):
    project = _load_project(args, config)
    analysis = analyse_project(SpecGraph.from_project(project))

    if args.format == "json":
        _json_out({"success": True, "project": project.name, "analysis": analysis.to_dict()})
    _text_out(format_analysis(analysis, project.name))


def cmd_screen_context(args, config):
    project = _load_project(args, config)
    try:
        screens = screen_context(SpecGraph.from_project(project), args.screen_id)
    except ScreenNotFoundError as e:
        _error_out(str(e))
    _json_out({"success": True, "screens": screens})


def cmd_search_nodes(args, config):
    if args.file:
        project = _load_project(args, config)
        matches = [
            {"projectId": project.id, "projectName": project.name, **m.to_dict()}
            for m in search_nodes(SpecGraph.from_project(project), args.query, args.node_type)
        ]
    else:
        try:
            matches = LocalProjectSource.from_config(config).search_nodes(args.query, args.node_type)
        except GraphSourceError as e:
            _error_out(str(e))
    _json_out({"success": True, "matches": matches})


def cmd_list_projects(args, config):
    try:
        projects = LocalProjectSource.from_config(config).list_projects()
    except GraphSourceError as e:
        _error_out(str(e))
    _json_out({"success": True, "projects": projects})


# ── Service ──────────────────────────────────────────────────────────────────

def cmd_serve(args, config):
    import uvicorn

    uvicorn.run(
        "flowspec.api:app",
        host=args.host or config.host,
        port=args.port or config.port,
        log_level=config.log_level.lower(),
    )


# ── Main ─────────────────────────────────────────────────────────────────────

def main(argv=None):
    parser = argparse.ArgumentParser(description="FlowSpec specification validator")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("validate")
    _add_project_args(p)
    p.add_argument("--format", choices=["markdown", "json"], default="markdown")
    p.add_argument("--check-screens", action="store_true", help="Also report screens without regions")
    p.add_argument("--strict", action="store_true", help="Exit with status 1 when errors are found")

    p = sub.add_parser("analyse")
    _add_project_args(p)
    p.add_argument("--format", choices=["markdown", "json"], default="markdown")

    p = sub.add_parser("screen-context")
    _add_project_args(p)
    p.add_argument("--screen-id", default=None)

    p = sub.add_parser("search-nodes")
    p.add_argument("--query", required=True)
    p.add_argument("--node-type", default=None, choices=["datapoint", "component", "transform", "table"])
    p.add_argument("--file", default=None, help="Search one document instead of the local server")
    p.set_defaults(project_id=None)

    sub.add_parser("list-projects")

    p = sub.add_parser("serve")
    p.add_argument("--host", default=None)
    p.add_argument("--port", type=int, default=None)

    args = parser.parse_args(argv)

    config = load_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    cmd_map = {
        "validate": cmd_validate,
        "analyse": cmd_analyse,
        "screen-context": cmd_screen_context,
        "search-nodes": cmd_search_nodes,
        "list-projects": cmd_list_projects,
        "serve": cmd_serve,
    }
    logger.debug("Running %s", args.command)
    cmd_map[args.command](args, config)


if __name__ == "__main__":
    main()
