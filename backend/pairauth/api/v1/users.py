"""Account registration endpoint."""

from __future__ import annotations

from flask import Blueprint, request

from pairauth.api.deps import build_auth_service, timing
from pairauth.core.responses import success_response
from pairauth.schemas import RegisterSchema
from pairauth.services.auth.dto import RegisterIn

bp = Blueprint("users", __name__)

register_schema = RegisterSchema()


@bp.post("/register")
@timing
def register():
    """Create an account and return its public profile."""

    payload = register_schema.load(request.get_json(silent=True) or {})
    user = build_auth_service().register(RegisterIn(**payload))
    return success_response(user, status=201)
