"""
Token authorization for vishing routes.
"""

from .token_cache import TokenCache, CachedTokenEntry
from .token_authorizer import TokenAuthorizer, ValidationOutcome, BASE_URL_HEADER

__all__ = [
    "TokenCache",
    "CachedTokenEntry",
    "TokenAuthorizer",
    "ValidationOutcome",
    "BASE_URL_HEADER",
]
