"""Authentication module."""

from dochub.api.auth.context import SessionContext
from dochub.api.auth.jwt import TokenService, TokenState, Valid, Expired, Invalid

__all__ = ["SessionContext", "TokenService", "TokenState", "Valid", "Expired", "Invalid"]
