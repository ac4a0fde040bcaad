"""Application services: orchestration over units of work, no HTTP."""

from .auth import AuthService
from .tokens import CredentialVerifier, TokenPairService

__all__ = ["AuthService", "CredentialVerifier", "TokenPairService"]
