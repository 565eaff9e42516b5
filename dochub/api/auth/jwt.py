"""
JWT Token Handling

Issue, classify and refresh signed bearer tokens.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, Optional, Union
from uuid import UUID, uuid4

import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

from dochub.api.auth.context import SessionContext
from dochub.api.config import Settings
from dochub.api.errors import TokenGenerationError


logger = logging.getLogger(__name__)


# ============================================================
# Token State
# ============================================================


@dataclass(frozen=True)
class Valid:
    """Signature verifies and the token has not expired."""

    token: str
    claims: Dict[str, Any] = field(repr=False)
    context: Optional[SessionContext] = None


@dataclass(frozen=True)
class Expired:
    """Signature verifies but the token is past its expiry."""

    token: str
    claims: Dict[str, Any] = field(repr=False)
    context: Optional[SessionContext] = None


@dataclass(frozen=True)
class Invalid:
    """Signature fails, token is malformed, or its actor is gone."""

    reason: str


TokenState = Union[Valid, Expired, Invalid]

ActorResolver = Callable[[UUID], Awaitable[Optional[SessionContext]]]


def token_from_header(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer <token>`` value."""
    if not authorization:
        return None

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


class TokenService:
    """
    Stateless JWT service.

    Output is a pure function of signing key, clock and payload, so no
    locking or server-side token store is involved.
    """

    def __init__(self, settings: Settings):
        self._secret = settings.JWT_SECRET_KEY
        self._algorithm = settings.JWT_ALGORITHM
        self._issuer = settings.JWT_ISSUER
        self._audience = settings.JWT_AUDIENCE
        self._expire_minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES

    @property
    def expires_in(self) -> int:
        """Token lifetime in seconds."""
        return self._expire_minutes * 60

    def remaining(self, claims: Dict[str, Any], now: Optional[datetime] = None) -> int:
        """Seconds until the ``exp`` claim, never negative."""
        now = now or datetime.now(timezone.utc)
        return max(0, int(claims["exp"] - now.timestamp()))

    def generate(
        self,
        context: Optional[SessionContext],
        issued_at: Optional[datetime] = None,
    ) -> str:
        """
        Create a signed token for the actor in a session context.

        Args:
            context: Authenticated session context
            issued_at: Issue time, defaults to now

        Returns:
            Encoded JWT

        Raises:
            TokenGenerationError: If there is no actor to issue for
        """
        if context is None:
            raise TokenGenerationError("No session context to issue a token for.")

        now = issued_at or datetime.now(timezone.utc)
        expire = now + timedelta(minutes=self._expire_minutes)

        payload = {
            "sub": str(context.actor_id),
            "username": context.username,
            "role_id": str(context.role_id),
            "iat": now,
            "exp": expire,
            "iss": self._issuer,
            "aud": self._audience,
            "jti": str(uuid4()),
        }

        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def _decode(self, token: str, verify_exp: bool) -> Dict[str, Any]:
        return jwt.decode(
            token,
            self._secret,
            algorithms=[self._algorithm],
            audience=self._audience,
            issuer=self._issuer,
            options={
                "verify_exp": verify_exp,
                "require": ["sub", "exp", "iat"],
            },
        )

    def classify(self, token: Optional[str]) -> TokenState:
        """
        Classify a raw token by signature and expiry only.

        PyJWT verifies the signature before any claim, so an
        ``ExpiredSignatureError`` means the signature is good.
        """
        if not token:
            return Invalid("missing token")

        try:
            claims = self._decode(token, verify_exp=True)
            return Valid(token=token, claims=claims)
        except ExpiredSignatureError:
            pass
        except InvalidTokenError as e:
            return Invalid(f"token rejected: {e}")

        try:
            claims = self._decode(token, verify_exp=False)
        except InvalidTokenError as e:
            return Invalid(f"token rejected: {e}")
        return Expired(token=token, claims=claims)

    async def get_state(self, token: Optional[str], resolve: ActorResolver) -> TokenState:
        """
        Classify a token, treating an unresolvable actor as invalid.

        Pure classification; nothing is stored or mutated. Valid and Expired
        states carry the freshly resolved session context.
        """
        state = self.classify(token)
        if isinstance(state, Invalid):
            return state

        try:
            actor_id = UUID(state.claims["sub"])
        except (KeyError, ValueError):
            return Invalid("malformed subject")

        context = await resolve(actor_id)
        if context is None:
            logger.info("Token subject %s no longer resolvable", actor_id)
            return Invalid("actor not resolvable")

        return replace(state, context=context)
