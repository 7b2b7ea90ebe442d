"""
App-wide constants for route configuration.

This module provides a single source of truth for route prefixes, tags,
and common response definitions for API routes.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape


@dataclass(frozen=True)
class RouteConfig:
    """Configuration for a route group."""

    prefix: str
    tag: str


class Routes:
    """Route configurations for all API endpoints."""

    HEALTH = RouteConfig(prefix="/health", tag="health")
    AUTH = RouteConfig(prefix="/auth", tag="auth")
    PROFILE = RouteConfig(prefix="/profiles", tag="profiles")
    GENERATION = RouteConfig(prefix="/generations", tag="generations")
    COPY = RouteConfig(prefix="/copy", tag="copy")
    IMAGES = RouteConfig(prefix="/images", tag="images")
    WEBHOOKS = RouteConfig(prefix="/webhooks", tag="webhooks")
    DASHBOARD = RouteConfig(prefix="/dashboard", tag="dashboard")


# Common response definitions for reuse across routers
# Use these when configuring APIRouter or individual endpoints
class CommonResponses:
    """Standard HTTP error response definitions for OpenAPI documentation."""

    BAD_REQUEST: dict[int, dict[str, Any]] = {
        400: {"description": "Missing or malformed input"}
    }
    UNAUTHORIZED: dict[int, dict[str, Any]] = {
        401: {"description": "Not authenticated or invalid credentials"}
    }
    FORBIDDEN: dict[int, dict[str, Any]] = {
        403: {"description": "Account is banned or lacks permissions"}
    }
    NOT_FOUND: dict[int, dict[str, Any]] = {404: {"description": "Resource not found"}}
    CONFLICT: dict[int, dict[str, Any]] = {
        409: {"description": "Operation conflicts with the resource state"}
    }
    UPSTREAM: dict[int, dict[str, Any]] = {
        500: {"description": "Service misconfigured or result could not be saved"},
        502: {"description": "Third-party API failed"},
    }
    TIMEOUT: dict[int, dict[str, Any]] = {
        504: {"description": "Third-party processing exceeded its time bound"}
    }


# HTML Templates Directory
EmailTemplatesDir = Path(__file__).parent.parent / "templates" / "emails"
CompiledEmailTemplatesDir = EmailTemplatesDir / "compiled"

# Jinja2 environment for source templates (used by compile script)
JinjaEmailTemplatesEnv = Environment(
    loader=FileSystemLoader(str(EmailTemplatesDir)),
    autoescape=select_autoescape(["html", "xml", "j2"]),
)

# Jinja2 environment for compiled templates (used at runtime)
JinjaCompiledEmailTemplatesEnv = Environment(
    loader=FileSystemLoader(str(CompiledEmailTemplatesDir)),
    autoescape=select_autoescape(["html", "xml"]),
)
