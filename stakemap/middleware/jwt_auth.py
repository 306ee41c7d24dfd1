"""
JWT identity middleware — parses the Bearer token, sets g.jwt_*.

Only identifies the caller (for the audit trail). Token issuance and
role enforcement live outside this service.

    Authorization: Bearer <token>  →  g.jwt_user_id, g.jwt_username, g.jwt_roles
"""

import logging

import jwt as pyjwt
from flask import current_app, g, request

logger = logging.getLogger(__name__)

JWT_SKIP_PREFIXES = (
    "/api/v1/health",
)


def decode_access_token(token: str) -> dict:
    """Decode and verify an HS256 access token with the app's JWT secret."""
    return pyjwt.decode(
        token,
        current_app.config["JWT_SECRET_KEY"],
        algorithms=[current_app.config.get("JWT_ALGORITHM", "HS256")],
    )


def init_jwt_middleware(app):
    """Register JWT middleware as a before_request hook."""

    @app.before_request
    def _jwt_identity():
        g.jwt_user_id = None
        g.jwt_username = None
        g.jwt_roles = []

        path = request.path
        if not path.startswith("/api/v1/"):
            return
        for prefix in JWT_SKIP_PREFIXES:
            if path.startswith(prefix):
                return

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return

        try:
            payload = decode_access_token(auth_header[7:])
        except pyjwt.ExpiredSignatureError:
            logger.info("Expired JWT presented", extra={"path": path})
            return
        except pyjwt.InvalidTokenError:
            logger.info("Invalid JWT presented", extra={"path": path})
            return

        g.jwt_user_id = payload.get("sub") or payload.get("userId")
        g.jwt_username = payload.get("username")
        g.jwt_roles = payload.get("roles", [])
