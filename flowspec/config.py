"""
Runtime configuration, read from the environment.

Only the surfaces (CLI, HTTP API, MCP server) consult configuration. The
validator takes every option as an explicit argument.
"""

import logging
import os
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, field_validator

DEFAULT_LOCAL_URL = "http://localhost:3456"
DEFAULT_TOKEN_PATH = Path.home() / "Library" / "Application Support" / "com.flowspec.app" / "auth-token"

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}


class FlowSpecConfig(BaseModel):
    local_url: str = DEFAULT_LOCAL_URL
    api_timeout: float = 30.0
    token_path: Path = DEFAULT_TOKEN_PATH
    log_level: str = "WARNING"
    check_screens: bool = False
    host: str = "127.0.0.1"
    port: int = 8765

    @field_validator("local_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def known_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level


def load_config(environ: Optional[Mapping[str, str]] = None) -> FlowSpecConfig:
    """Build the configuration from FLOWSPEC_* environment variables."""
    env = os.environ if environ is None else environ
    values: dict = {}
    if env.get("FLOWSPEC_LOCAL_URL"):
        values["local_url"] = env["FLOWSPEC_LOCAL_URL"]
    if env.get("FLOWSPEC_API_TIMEOUT"):
        values["api_timeout"] = env["FLOWSPEC_API_TIMEOUT"]
    if env.get("FLOWSPEC_TOKEN_PATH"):
        values["token_path"] = env["FLOWSPEC_TOKEN_PATH"]
    if env.get("FLOWSPEC_LOG_LEVEL"):
        values["log_level"] = env["FLOWSPEC_LOG_LEVEL"]
    if env.get("FLOWSPEC_CHECK_SCREENS"):
        values["check_screens"] = env["FLOWSPEC_CHECK_SCREENS"].strip().lower() in _TRUTHY
    if env.get("FLOWSPEC_HOST"):
        values["host"] = env["FLOWSPEC_HOST"]
    if env.get("FLOWSPEC_PORT"):
        values["port"] = env["FLOWSPEC_PORT"]
    return FlowSpecConfig(**values)


def read_auth_token(token_path: Path) -> Optional[str]:
    """Read the desktop server's auth token, None when unavailable."""
    try:
        token = token_path.read_text(encoding="utf-8").strip()
    except OSError:
        logger.debug("No auth token at %s", token_path)
        return None
    return token or None
