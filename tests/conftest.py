"""Shared fixtures: sample projects and an in-memory project source."""

import httpx
import pytest

from flowspec.client import LocalProjectSource

SAMPLE_CANVAS = {
    "nodes": [
        {"id": "scr", "type": "screen", "position": {"x": 0, "y": 0}, "data": {"label": "Signup"}},
        {"id": "form", "type": "component", "data": {"label": "Signup Form", "captures": ["email"], "displays": []}},
        {"id": "email", "type": "datapoint", "data": {"label": "Email", "type": "string", "source": "captured"}},
        {"id": "users", "type": "table", "data": {
            "label": "Users", "sourceType": "database",
            "columns": [{"name": "email", "type": "string"}, {"name": "age", "type": "number"}],
        }},
        {"id": "age", "type": "datapoint", "data": {"label": "Age", "type": "number", "source": "retrieved"}},
        {"id": "check", "type": "transform", "data": {"label": "Check Email", "type": "validation", "logic": "contains @"}},
        {"id": "valid", "type": "datapoint", "data": {"label": "Email Valid", "type": "boolean", "source": "inferred"}},
    ],
    "edges": [
        {"id": "e1", "source": "form", "target": "email", "data": {"edgeType": "flows-to"}},
        {"id": "e2", "source": "users", "target": "age", "data": {"edgeType": "flows-to"}},
        {"id": "e3", "source": "email", "target": "check", "data": {"edgeType": "flows-to"}},
        {"id": "e4", "source": "check", "target": "valid", "data": {"edgeType": "transforms"}},
        {"id": "e5", "source": "age", "target": "form", "data": {"edgeType": "flows-to"}},
    ],
    "screens": [
        {"id": "s1", "name": "Signup", "regions": [
            {"id": "r1", "label": "Form", "position": {"x": 10, "y": 10}, "size": {"width": 50, "height": 40},
             "elementIds": ["form", "email"]},
        ]},
    ],
}

BROKEN_CANVAS = {
    "nodes": [
        {"id": "a", "type": "datapoint", "data": {"label": "A", "type": "number"}},
        {"id": "b", "type": "datapoint", "data": {"label": "B", "type": "number"}},
    ],
    "edges": [
        {"id": "e1", "source": "a", "target": "b", "data": {"edgeType": "derives-from"}},
        {"id": "e2", "source": "b", "target": "a", "data": {"edgeType": "derives-from"}},
    ],
}


@pytest.fixture
def sample_canvas() -> dict:
    return {key: list(value) for key, value in SAMPLE_CANVAS.items()}


@pytest.fixture
def sample_project(sample_canvas) -> dict:
    return {"id": "p1", "name": "Signup Flow", "canvas_state": sample_canvas}


@pytest.fixture
def broken_project() -> dict:
    return {"id": "p2", "name": "Loop", "canvas_state": BROKEN_CANVAS}


@pytest.fixture
def project_source(sample_project, broken_project) -> LocalProjectSource:
    """LocalProjectSource backed by an in-memory transport."""
    projects = {p["id"]: p for p in (sample_project, broken_project)}

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/projects":
            return httpx.Response(200, json=[{"id": p["id"], "name": p["name"]} for p in projects.values()])
        project_id = request.url.path.rsplit("/", 1)[-1]
        if project_id in projects:
            return httpx.Response(200, json=projects[project_id])
        return httpx.Response(404, json={"error": "not found"})

    return LocalProjectSource("http://flowspec.test", transport=httpx.MockTransport(handler))


INVALID_PROJECT = {
    "id": "p3",
    "name": "Due Dates",
    "canvas_state": {
        "nodes": [{"id": "a", "type": "datapoint", "data": {"label": "Due", "dataType": "date"}}],
        "edges": [],
    },
}


@pytest.fixture
def mixed_project_source(sample_project) -> LocalProjectSource:
    """Server holding one valid project and one that does not parse."""
    projects = {p["id"]: p for p in (sample_project, INVALID_PROJECT)}

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/projects":
            return httpx.Response(200, json=[{"id": p["id"], "name": p["name"]} for p in projects.values()])
        project_id = request.url.path.rsplit("/", 1)[-1]
        if project_id in projects:
            return httpx.Response(200, json=projects[project_id])
        return httpx.Response(404, json={"error": "not found"})

    return LocalProjectSource("http://flowspec.test", transport=httpx.MockTransport(handler))


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep FLOWSPEC_* settings from the host out of the tests."""
    for name in (
        "FLOWSPEC_LOCAL_URL",
        "FLOWSPEC_API_TIMEOUT",
        "FLOWSPEC_TOKEN_PATH",
        "FLOWSPEC_LOG_LEVEL",
        "FLOWSPEC_CHECK_SCREENS",
        "FLOWSPEC_HOST",
        "FLOWSPEC_PORT",
    ):
        monkeypatch.delenv(name, raising=False)
