"""
Graph source - fetch project snapshots from the local FlowSpec server.

The validator never loads projects itself; surfaces use this client to
obtain a snapshot and report a missing project before validation runs.
"""

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from .analysis import search_nodes
from .config import FlowSpecConfig, read_auth_token
from .graph import SpecGraph
from .models import Project

logger = logging.getLogger(__name__)


class GraphSourceError(RuntimeError):
    """The graph source could not be reached or answered with an error."""


class InvalidProjectError(GraphSourceError):
    """The server answered with a project that does not parse as a specification."""

    def __init__(self, project_id: str, errors: list[dict]):
        super().__init__(
            f"Project {project_id} is not a valid specification: {len(errors)} validation error(s)"
        )
        self.project_id = project_id
        self.errors = errors


class ProjectNotFoundError(LookupError):
    """The requested project does not exist (or is not visible)."""

    def __init__(self, project_id: str):
        super().__init__(f"Project not found: {project_id}")
        self.project_id = project_id


class LocalProjectSource:
    """HTTP client for the desktop server's project API."""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_config(cls, config: FlowSpecConfig) -> "LocalProjectSource":
        return cls(
            base_url=config.local_url,
            token=read_auth_token(config.token_path),
            timeout=config.api_timeout,
        )

    def _get(self, endpoint: str) -> httpx.Response:
        """Make a GET request to the desktop server."""
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        logger.debug("GET %s%s", self.base_url, endpoint)
        try:
            with httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self._transport) as client:
                return client.get(endpoint, headers=headers)
        except httpx.HTTPError as e:
            raise GraphSourceError(
                f"Connection failed: {e}. Is the FlowSpec desktop server running?"
            ) from e

    def list_projects(self) -> list[dict]:
        """List project summaries (id, name, created_at, updated_at)."""
        response = self._get("/api/projects")
        if response.status_code >= 400:
            raise GraphSourceError(f"API error ({response.status_code}): {response.text}")
        return response.json()

    def get_project(self, project_id: str) -> Project:
        """
        Fetch one project snapshot.

        Raises:
            ProjectNotFoundError: if the server does not answer with the project
            InvalidProjectError: if the stored project does not parse
            GraphSourceError: if the server cannot be reached
        """
        response = self._get(f"/api/projects/{project_id}")
        if response.status_code >= 400:
            logger.info("Project %s not available (HTTP %d)", project_id, response.status_code)
            raise ProjectNotFoundError(project_id)
        try:
            return Project.from_json_dict(response.json())
        except ValidationError as e:
            logger.warning("Project %s failed to parse: %s", project_id, e)
            raise InvalidProjectError(
                project_id, e.errors(include_url=False, include_context=False)
            ) from e

    def get_graph(self, project_id: str) -> tuple[Project, SpecGraph]:
        project = self.get_project(project_id)
        return project, SpecGraph.from_project(project)

    def search_nodes(self, query: str, node_type: Optional[str] = None) -> list[dict]:
        """Search node labels across every project."""
        results: list[dict] = []
        for summary in self.list_projects():
            try:
                project, graph = self.get_graph(summary["id"])
            except ProjectNotFoundError:
                continue
            except InvalidProjectError as e:
                logger.warning("Skipping project %s in search: %s", summary["id"], e)
                continue
            for match in search_nodes(graph, query, node_type):
                results.append({
                    "projectId": project.id or summary["id"],
                    "projectName": project.name,
                    **match.to_dict(),
                })
        return results
