"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import LoginSchema, RegisterSchema
from .common import PaginationQuerySchema

__all__ = [
    "LoginSchema",
    "RegisterSchema",
    "PaginationQuerySchema",
]
