"""
FlowSpec Validator - FastAPI Application

Provides:
- Validation, analysis and screen context over posted specification documents
- Validation of stored projects fetched from the local FlowSpec server
- CORS configuration for the local editor frontend
"""

import logging
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from . import __version__
from .analysis import ScreenNotFoundError, analyse_project, screen_context
from .client import GraphSourceError, InvalidProjectError, LocalProjectSource, ProjectNotFoundError
from .config import load_config
from .graph import SpecGraph
from .models import Project
from .report import format_report
from .validation import validate_graph

logger = logging.getLogger(__name__)


app = FastAPI(
    title="FlowSpec Validator API",
    description="Consistency checks for FlowSpec data model specifications",
    version=__version__,
)

# CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000", "http://127.0.0.1:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_project_source() -> LocalProjectSource:
    """Dependency: graph source for stored projects."""
    return LocalProjectSource.from_config(load_config())


def _parse_document(document: dict[str, Any]) -> Project:
    """Parse a posted project or canvas document, 422 when malformed."""
    try:
        return Project.from_json_dict(document)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))


def _validation_response(project: Project, check_screens: bool, output: str) -> dict:
    report = validate_graph(SpecGraph.from_project(project), check_screens=check_screens)
    if output == "markdown":
        return {"success": True, "project": project.name, "text": format_report(report, project.name)}
    return {"success": True, "project": project.name, **report.to_dict()}


# --- Health Check ---

@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


# --- Validation ---

@app.post("/api/validate")
async def validate_document(
    document: dict[str, Any] = Body(...),
    check_screens: bool = Query(default=False),
    output: str = Query(default="json", pattern="^(json|markdown)$"),
):
    """
    Validate a posted specification.

    The body is either a project document (`{id, name, canvas_state}`) or a
    bare canvas (`{nodes, edges, screens}`). Returns the issue list, severity
    counts and a `valid` flag, or the markdown report with `output=markdown`.
    """
    project = _parse_document(document)
    return _validation_response(project, check_screens, output)


@app.get("/api/projects/{project_id}/validate")
def validate_stored_project(
    project_id: str,
    check_screens: bool = Query(default=False),
    output: str = Query(default="json", pattern="^(json|markdown)$"),
    source: LocalProjectSource = Depends(get_project_source),
):
    """Fetch a project from the local server and validate it."""
    try:
        project = source.get_project(project_id)
    except ProjectNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidProjectError as e:
        raise HTTPException(status_code=422, detail=e.errors)
    except GraphSourceError as e:
        logger.warning("Graph source failed for %s: %s", project_id, e)
        raise HTTPException(status_code=502, detail=str(e))
    return _validation_response(project, check_screens, output)


# --- Analysis ---

@app.post("/api/analyse")
async def analyse_document(document: dict[str, Any] = Body(...)):
    """Orphans (with screen references) and duplicate labels across kinds."""
    project = _parse_document(document)
    analysis = analyse_project(SpecGraph.from_project(project))
    return {"success": True, "project": project.name, "analysis": analysis.to_dict()}


@app.post("/api/screen-context")
async def screen_context_document(
    document: dict[str, Any] = Body(...),
    screen_id: str | None = Query(default=None),
):
    """Screen/region/element structure of a posted specification."""
    project = _parse_document(document)
    try:
        screens = screen_context(SpecGraph.from_project(project), screen_id)
    except ScreenNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "screens": screens}


# --- Run with uvicorn ---

if __name__ == "__main__":
    import uvicorn

    config = load_config()
    uvicorn.run(app, host=config.host, port=config.port)
