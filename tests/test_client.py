"""Tests for the HTTP project source."""

import httpx
import pytest

from flowspec.client import (
    GraphSourceError,
    InvalidProjectError,
    LocalProjectSource,
    ProjectNotFoundError,
)
from flowspec.config import load_config


def test_list_projects(project_source):
    assert [p["id"] for p in project_source.list_projects()] == ["p1", "p2"]


def test_get_project(project_source):
    project = project_source.get_project("p1")
    assert project.id == "p1"
    assert project.name == "Signup Flow"
    assert len(project.canvas_state.nodes) == 7
    assert len(project.canvas_state.screens) == 1


def test_get_graph(project_source):
    project, graph = project_source.get_graph("p2")
    assert project.name == "Loop"
    assert [n.id for n in graph.nodes] == ["a", "b"]


def test_missing_project(project_source):
    with pytest.raises(ProjectNotFoundError) as excinfo:
        project_source.get_project("p9")
    assert excinfo.value.project_id == "p9"
    assert str(excinfo.value) == "Project not found: p9"


def test_search_across_projects(project_source):
    assert project_source.search_nodes("email", "datapoint") == [
        {"projectId": "p1", "projectName": "Signup Flow", "nodeId": "email", "nodeType": "datapoint", "label": "Email"},
        {"projectId": "p1", "projectName": "Signup Flow", "nodeId": "valid", "nodeType": "datapoint", "label": "Email Valid"},
    ]


def test_bearer_token_sent():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["authorization"] = request.headers.get("authorization")
        return httpx.Response(200, json=[])

    source = LocalProjectSource("http://flowspec.test/", token="abc", transport=httpx.MockTransport(handler))
    assert source.list_projects() == []
    assert seen["authorization"] == "Bearer abc"
    assert source.base_url == "http://flowspec.test"


def test_no_token_no_header():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["authorization"] = request.headers.get("authorization")
        return httpx.Response(200, json=[])

    LocalProjectSource("http://flowspec.test", transport=httpx.MockTransport(handler)).list_projects()
    assert seen["authorization"] is None


def test_server_error_on_listing():
    transport = httpx.MockTransport(lambda request: httpx.Response(500, text="boom"))
    source = LocalProjectSource("http://flowspec.test", transport=transport)
    with pytest.raises(GraphSourceError, match=r"API error \(500\): boom"):
        source.list_projects()


def test_connection_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    source = LocalProjectSource("http://flowspec.test", transport=httpx.MockTransport(handler))
    with pytest.raises(GraphSourceError, match="Connection failed"):
        source.get_project("p1")


def test_from_config(tmp_path):
    token_file = tmp_path / "token"
    token_file.write_text("xyz", encoding="utf-8")
    config = load_config({
        "FLOWSPEC_LOCAL_URL": "http://localhost:4000",
        "FLOWSPEC_TOKEN_PATH": str(token_file),
        "FLOWSPEC_API_TIMEOUT": "2.5",
    })
    source = LocalProjectSource.from_config(config)
    assert (source.base_url, source.token, source.timeout) == ("http://localhost:4000", "xyz", 2.5)


def test_unparseable_project(mixed_project_source):
    with pytest.raises(InvalidProjectError) as excinfo:
        mixed_project_source.get_project("p3")
    error = excinfo.value
    assert isinstance(error, GraphSourceError)
    assert error.project_id == "p3"
    assert str(error) == "Project p3 is not a valid specification: 1 validation error(s)"
    assert error.errors[0]["loc"][-1] == "type"


def test_search_skips_unparseable_project(mixed_project_source):
    assert mixed_project_source.search_nodes("due") == []
    assert [m["nodeId"] for m in mixed_project_source.search_nodes("email", "datapoint")] == ["email", "valid"]
