"""Persistence-only repositories."""

from .base import BaseRepository, Page, Pagination
from .token import TokenRecordRepository
from .user import UserRepository

__all__ = [
    "BaseRepository",
    "Page",
    "Pagination",
    "TokenRecordRepository",
    "UserRepository",
]
