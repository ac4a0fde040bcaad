"""Health check endpoint."""

from __future__ import annotations

from flask import Blueprint, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from pairauth.api.deps import timing
from pairauth.core.extensions import db
from pairauth.core.responses import success_response

bp = Blueprint("health", __name__)


@bp.get("/health")
@timing
def healthcheck():
    """Return application and database health information."""

    db_status = "ok"
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:  # pragma: no cover - depends on DB backend
        current_app.logger.exception("healthcheck.db_error")
        db.session.rollback()
        db_status = "fail"
    payload = {
        "status": "ok",
        "db": db_status,
        "version": current_app.config.get("APP_VERSION", "dev"),
    }
    return success_response(payload)
