"""Token pair engine and credential verification."""

from .dto import NewToken, TokenLifetimes, TokenPairOut
from .plaintext import PlainTextToken
from .service import TokenPairService
from .verifier import CredentialVerifier

__all__ = [
    "CredentialVerifier",
    "NewToken",
    "PlainTextToken",
    "TokenLifetimes",
    "TokenPairOut",
    "TokenPairService",
]
