"""Authentication endpoints: login, rotation, logout and session listing."""

from __future__ import annotations

from flask import Blueprint, current_app, g, request

from pairauth.api.deps import (
    bearer_token,
    build_auth_service,
    parse_pagination,
    require_ability,
    require_token,
    timing,
)
from pairauth.core.extensions import limiter
from pairauth.core.responses import success_response
from pairauth.schemas import LoginSchema
from pairauth.services.auth.dto import LoginIn

bp = Blueprint("auth", __name__, url_prefix="/auth")

login_schema = LoginSchema()

TOKENS_READ_ABILITY = "tokens:read"


def _login_rate_limit() -> str:
    return str(current_app.config.get("AUTH_LOGIN_RATE_LIMIT", "5 per minute"))


@bp.post("/login")
@limiter.limit(_login_rate_limit)
@timing
def login():
    """Authenticate credentials and issue a token pair."""

    data = login_schema.load(request.get_json(silent=True) or {})
    service = build_auth_service()
    dto = LoginIn(email=data["email"], password=data["password"], ip=request.remote_addr)
    return success_response(service.login(dto))


@bp.post("/refresh")
@require_token
@timing
def refresh():
    """Rotate the pair of the presented REFRESH token.

    The gate only lets REFRESH tokens through on this endpoint; the rotation
    itself re-resolves the credential under a row lock.
    """

    tokens = build_auth_service().refresh(bearer_token())
    return success_response(tokens)


@bp.post("/logout")
@require_token
@timing
def logout():
    """Revoke the current pair."""

    build_auth_service().logout(g.bearer_token)
    return success_response(None)


@bp.post("/logout-others")
@require_token
@timing
def logout_others():
    """Revoke every pair of the current user except this one."""

    removed = build_auth_service().logout_others(g.bearer_token)
    return success_response(None, meta={"revoked": removed})


@bp.post("/logout-all")
@require_token
@timing
def logout_all():
    """Revoke every pair of the current user, this one included."""

    removed = build_auth_service().logout_all(g.current_user_id)
    return success_response(None, meta={"revoked": removed})


@bp.get("/me")
@require_token
@timing
def me():
    """Return the authenticated user profile."""

    user = build_auth_service().whoami(g.current_user_id)
    return success_response(user)


@bp.get("/tokens")
@require_token
@require_ability(TOKENS_READ_ABILITY)
@timing
def tokens():
    """List the current user's sessions (AUTH halves), newest first."""

    args = parse_pagination()
    page = build_auth_service().sessions(
        g.current_user_id, page=args["page"], per_page=args["per_page"]
    )
    return success_response(page)
