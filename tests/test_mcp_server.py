"""Tests for the MCP tools."""

import json

import httpx
import pytest

from flowspec import mcp_server
from flowspec.client import LocalProjectSource


@pytest.fixture(autouse=True)
def source(monkeypatch, project_source):
    monkeypatch.setattr(mcp_server, "get_project_source", lambda: project_source)
    return project_source


@pytest.fixture
def unreachable(monkeypatch):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    offline = LocalProjectSource("http://flowspec.test", transport=httpx.MockTransport(handler))
    monkeypatch.setattr(mcp_server, "get_project_source", lambda: offline)


def test_list_projects():
    projects = json.loads(mcp_server.flowspec_list_projects())
    assert [p["id"] for p in projects] == ["p1", "p2"]


def test_list_projects_empty(monkeypatch):
    empty = LocalProjectSource(
        "http://flowspec.test",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=[])),
    )
    monkeypatch.setattr(mcp_server, "get_project_source", lambda: empty)
    assert mcp_server.flowspec_list_projects() == "No projects found."


def test_list_projects_unreachable(unreachable):
    assert mcp_server.flowspec_list_projects().startswith("Connection failed")


def test_search_nodes():
    text = mcp_server.flowspec_search_nodes("email valid")
    assert text.startswith("Found 1 node(s):")
    assert '- **Email Valid** (datapoint) in project "Signup Flow" (node: valid, project: p1)' in text


def test_search_nodes_no_match():
    assert mcp_server.flowspec_search_nodes("zzz") == 'No nodes found matching "zzz".'


def test_screen_context():
    [screen] = json.loads(mcp_server.flowspec_get_screen_context("p1"))
    assert screen["name"] == "Signup"
    assert mcp_server.flowspec_get_screen_context("p1", "nope") == "Screen not found: nope"


def test_screen_context_without_screens():
    assert mcp_server.flowspec_get_screen_context("p2") == "No screens defined in this project."


def test_analyse_project():
    text = mcp_server.flowspec_analyse_project("p1")
    assert text.startswith("## Analysis for Signup Flow")


def test_validate_project():
    text = mcp_server.flowspec_validate_project("p2")
    assert "**3 issues found**: 1 error, 2 warnings, 0 info" in text
    assert "### Circular Dependencies (1)" in text


def test_unknown_project():
    assert mcp_server.flowspec_validate_project("p9") == "Project not found: p9"
    assert mcp_server.flowspec_analyse_project("p9") == "Project not found: p9"


def test_validate_unreachable(unreachable):
    assert mcp_server.flowspec_validate_project("p1").startswith("Connection failed")


def test_unparseable_project_becomes_text(monkeypatch, mixed_project_source):
    monkeypatch.setattr(mcp_server, "get_project_source", lambda: mixed_project_source)
    expected = "Project p3 is not a valid specification: 1 validation error(s)"
    assert mcp_server.flowspec_validate_project("p3") == expected
    assert mcp_server.flowspec_analyse_project("p3") == expected
    assert mcp_server.flowspec_get_screen_context("p3") == expected
    assert "(node: email, project: p1)" in mcp_server.flowspec_search_nodes("email")
