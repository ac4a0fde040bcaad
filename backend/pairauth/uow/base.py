"""
Abstract Unit of Work contracts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pairauth.repositories import TokenRecordRepository, UserRepository


class UnitOfWork(ABC):
    """
    Coordinates a transactional boundary for a use-case.

    Responsibilities:
    - Provide access to repositories bound to the same session/transaction.
    - Commit on success, rollback on error.
    """

    users: UserRepository
    tokens: TokenRecordRepository

    @abstractmethod
    def __enter__(self) -> UnitOfWork: ...
    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None: ...
    @abstractmethod
    def commit(self) -> None: ...
    @abstractmethod
    def rollback(self) -> None: ...
