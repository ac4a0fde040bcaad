"""Centralized envelope error handling for the API."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, current_app, request
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from werkzeug.exceptions import HTTPException

from pairauth.core.logger import ensure_request_id
from pairauth.core.responses import error_response
from pairauth.services._shared.errors import (
    ConflictError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    ServiceError,
)

log = logging.getLogger(__name__)

UNEXPECTED_MESSAGE = "An unexpected error occurred."


def _http_status_to_code(status_code: int) -> str:
    """Map framework HTTP status codes to stable envelope error codes."""
    mapping = {
        400: "BAD_REQUEST",
        401: "UNAUTHENTICATED",
        403: "FORBIDDEN",
        404: "ROUTE_NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        409: "CONFLICT",
        413: "PAYLOAD_TOO_LARGE",
        415: "UNSUPPORTED_MEDIA_TYPE",
        422: "VALIDATION_ERROR",
        429: "TOO_MANY_REQUESTS",
        500: "UNEXPECTED_ERROR",
        503: "SERVICE_UNAVAILABLE",
    }
    return mapping.get(status_code, "ERROR")


class APIError(Exception):
    """
    Represent an error rendered through the response envelope.

    Parameters
    ----------
    message : str | None
        Human-readable description presented to clients. Defaults to the
        class ``default_message``.
    status_code : int | None
        HTTP status code to return. Defaults to the class ``status_code``.
    code : str | None
        Machine-readable identifier in SCREAMING_SNAKE_CASE.
    details : dict[str, Any] | None
        Optional structured payload, emitted as ``error.details``.
    """

    status_code: int = HTTPStatus.BAD_REQUEST
    code: str = "BAD_REQUEST"
    default_message: str = "Bad request."

    def __init__(
        self,
        message: str | None = None,
        status_code: int | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)
        self.status_code = int(status_code or self.status_code)
        self.code = code or self.code
        self.details = details


class InvalidCredentials(APIError):
    """401 when an email/password pair fails to authenticate."""

    status_code = HTTPStatus.UNAUTHORIZED
    code = "INVALID_CREDENTIALS"
    default_message = "Invalid credentials provided."


class Unauthenticated(APIError):
    """401 when the bearer token is missing or unusable."""

    status_code = HTTPStatus.UNAUTHORIZED
    code = "UNAUTHENTICATED"
    default_message = "Unauthenticated."


class Forbidden(APIError):
    """403 when the token lacks the required ability."""

    status_code = HTTPStatus.FORBIDDEN
    code = "FORBIDDEN"
    default_message = "Forbidden."


class NotFound(APIError):
    """404 when resources are missing."""

    status_code = HTTPStatus.NOT_FOUND
    code = "NOT_FOUND"
    default_message = "Resource not found."


class Conflict(APIError):
    """409 for uniqueness/constraint collisions."""

    status_code = HTTPStatus.CONFLICT
    code = "CONFLICT"
    default_message = "Resource conflict."


def translate_service_error(exc: ServiceError) -> APIError:
    """
    Map a framework-agnostic service error to its API error.

    Token failures of every kind surface as ``UNAUTHENTICATED``.
    """
    if isinstance(exc, InvalidCredentialsError):
        return InvalidCredentials()
    if isinstance(exc, InvalidTokenError):
        return Unauthenticated()
    if isinstance(exc, NotFoundError):
        return NotFound(str(exc))
    if isinstance(exc, ConflictError):
        return Conflict(str(exc))
    return APIError(str(exc) or None)


def init_app(app: Flask) -> None:
    """
    Attach envelope error handlers to the Flask app.

    Notes
    -----
    - Every handled error is rendered with the standard envelope.
    - 5xx are logged with ``exc_info``; 4xx as warnings.
    - ``UNEXPECTED_ERROR`` hides exception details unless
      ``EXPOSE_ERROR_DETAILS`` is enabled.
    """

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        level = log.error if err.status_code >= 500 else log.warning
        level(
            "APIError: code=%s status=%s msg=%s request_id=%s",
            err.code,
            err.status_code,
            err.message,
            ensure_request_id(),
        )
        return error_response(err.message, err.code, err.status_code, err.details)

    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        return handle_api_error(translate_service_error(err))

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        error_code = _http_status_to_code(status)
        if status == HTTPStatus.NOT_FOUND:
            message = "Resource route not found"
        else:
            message = (err.description or HTTPStatus(status).phrase).strip()
        level = log.error if status >= 500 else log.warning
        level(
            "HTTPException: code=%s status=%s path=%s request_id=%s",
            error_code,
            status,
            request.path,
            ensure_request_id(),
        )
        response = error_response(message, error_code, status)
        # Keep framework-supplied headers such as Allow or Retry-After.
        for header, value in err.get_headers():
            if header.lower() != "content-type":
                response.headers[header] = value
        return response

    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        log.warning("ValidationError: request_id=%s", ensure_request_id())
        messages = err.messages if isinstance(err.messages, dict) else {"_schema": err.messages}
        return error_response(
            "The given data was invalid.",
            "VALIDATION_ERROR",
            HTTPStatus.UNPROCESSABLE_ENTITY,
            messages,
        )

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        log.error("IntegrityError: request_id=%s", ensure_request_id(), exc_info=True)
        return error_response("Resource conflict.", "CONFLICT", HTTPStatus.CONFLICT)

    @app.errorhandler(OperationalError)
    def handle_operational_error(err: OperationalError):
        log.error("OperationalError: request_id=%s", ensure_request_id(), exc_info=True)
        return error_response(
            "Service temporarily unavailable.",
            "SERVICE_UNAVAILABLE",
            HTTPStatus.SERVICE_UNAVAILABLE,
        )

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        log.error("Unhandled exception: request_id=%s", ensure_request_id(), exc_info=True)
        details = None
        if current_app.config.get("EXPOSE_ERROR_DETAILS"):
            details = {"exception": type(err).__name__, "message": str(err)}
        return error_response(
            UNEXPECTED_MESSAGE,
            "UNEXPECTED_ERROR",
            HTTPStatus.INTERNAL_SERVER_ERROR,
            details,
        )
