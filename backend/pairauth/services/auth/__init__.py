"""Authentication use-cases."""

from .dto import LoginIn, RegisterIn, TokenResponseOut
from .service import AuthService

__all__ = ["AuthService", "LoginIn", "RegisterIn", "TokenResponseOut"]
