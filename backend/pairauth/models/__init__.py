from pairauth.models.token import REFRESH_TOKEN_ABILITY, TokenRecord, TokenType
from pairauth.models.user import User

__all__ = [
    "REFRESH_TOKEN_ABILITY",
    "TokenRecord",
    "TokenType",
    "User",
]
