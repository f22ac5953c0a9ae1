"""OpenAPI metadata and customization utilities.

Provides a helper to enrich the generated OpenAPI schema with:
- Tags metadata
- API Key security scheme (``X-API-Key``) declared only on the operations
  that depend on ``verify_api_key``

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict, Set, Tuple

from fastapi import FastAPI
from fastapi.dependencies.models import Dependant
from fastapi.routing import APIRoute

from agency.core.auth import verify_api_key

TAGS_METADATA = [
    {"name": "Customers", "description": "Customer sign-up form, public counter and admin management."},
    {"name": "Contacts", "description": "Contact form submissions (leads) and their triage."},
    {"name": "Services", "description": "Public services catalog and its administration."},
    {"name": "Blog", "description": "Blog posts and categories."},
    {"name": "Admin", "description": "Dashboard counters."},
    {"name": "Health", "description": "Liveness and readiness checks."},
]


def _uses_api_key(dependant: Dependant) -> bool:
    return any(
        dep.call is verify_api_key or _uses_api_key(dep) for dep in dependant.dependencies
    )


def protected_operations(app: FastAPI) -> Set[Tuple[str, str]]:
    """(path, lower-case method) pairs guarded by the admin API key."""
    protected: Set[Tuple[str, str]] = set()
    for route in app.routes:
        if isinstance(route, APIRoute) and _uses_api_key(route.dependant):
            for method in route.methods:
                protected.add((route.path_format, method.lower()))
    return protected


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and security.

    - Injects components.securitySchemes for API Key auth (header ``X-API-Key``)
    - Marks admin operations as requiring the key and every other operation
      as public with ``security: []``
    - Adds tags metadata if not present
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "ApiKeyAuth",
            {
                "type": "apiKey",
                "in": "header",
                "name": "X-API-Key",
                "description": "Admin API key for dashboard endpoints.",
            },
        )

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS_METADATA:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        protected = protected_operations(app)
        for path, methods in schema.get("paths", {}).items():
            for method, method_obj in methods.items():
                if isinstance(method_obj, dict):
                    method_obj["security"] = [{"ApiKeyAuth": []}] if (path, method) in protected else []

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
