"""OpenAPI customization utilities.

Documents the session header and CSRF header as security schemes and
exempts endpoints that do not need them.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

from termhunt.core.config import settings


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add security schemes and tags.

    - ``SessionAuth``: session id header, required by every ``/v1`` operation
    - ``CSRFToken``: anti-forgery header, required by state-changing operations
    - health endpoints get ``security: []``
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "SessionAuth",
            {
                "type": "apiKey",
                "in": "header",
                "name": settings.app.session_header_name,
                "description": "Session identifier issued by the sign-in flow.",
            },
        )
        security_schemes.setdefault(
            "CSRFToken",
            {
                "type": "apiKey",
                "in": "header",
                "name": settings.app.csrf_header_name,
                "description": "Token from GET /v1/csrf/token, required on state-changing requests.",
            },
        )

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in (
            {"name": "CSRF", "description": "Anti-forgery token issuance and revocation."},
            {"name": "Health", "description": "Liveness checks."},
        ):
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            for method, method_obj in methods.items():
                if not isinstance(method_obj, dict):
                    continue
                if path.endswith("/health"):
                    method_obj["security"] = []
                elif method.lower() in {"post", "put", "patch", "delete"}:
                    method_obj["security"] = [{"SessionAuth": [], "CSRFToken": []}]
                else:
                    method_obj["security"] = [{"SessionAuth": []}]

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
