"""
Access Token Module
===================

Creation and verification of the HS256 access tokens handed out by /login
and required on /get and /post.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError as JWTInvalidTokenError
from pydantic import ValidationError

from ..config import Settings
from ..errors import InvalidCredentialsError, InvalidTokenError, MissingTokenError
from ..models import LoginResponse, TokenClaims, UserClaims
from .credentials import CredentialStore

logger = logging.getLogger(__name__)


# =============================================================================
# Helper Functions
# =============================================================================

def extract_token_from_header(authorization: Optional[str]) -> str:
    """
    Extract Bearer token from Authorization header.

    Args:
        authorization: Authorization header value

    Returns:
        Extracted token string

    Raises:
        MissingTokenError: If the header is absent, uses another scheme,
            or carries an empty token
    """
    if not authorization:
        raise MissingTokenError("Missing Authorization header")

    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()

    if scheme.lower() != "bearer" or not token:
        raise MissingTokenError("Expected 'Bearer <token>'")

    return token


# =============================================================================
# Token Verification
# =============================================================================

class TokenVerifier:
    """Validates bearer tokens against the shared secret"""

    def __init__(self, settings: Settings):
        self._secret = settings.JWT_SECRET
        self._algorithm = settings.JWT_ALGORITHM

    def decode(self, token: str) -> TokenClaims:
        """
        Verify signature and expiry, then extract identity claims.

        Raises:
            InvalidTokenError: If the token is malformed, expired, signed with
                another key, or lacks ``id``/``username``
        """
        try:
            decoded = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"verify_signature": True, "verify_exp": True},
            )
        except ExpiredSignatureError:
            logger.warning("Access token expired")
            raise InvalidTokenError("Token has expired")
        except JWTInvalidTokenError as e:
            logger.warning(f"Invalid access token: {e}")
            raise InvalidTokenError(str(e))

        try:
            claims = TokenClaims.model_validate(decoded)
        except ValidationError as e:
            logger.warning(f"Access token is missing identity claims: {e.error_count()} error(s)")
            raise InvalidTokenError("Missing identity claims")

        logger.debug("Access token verified", extra={"user_id": claims.id})
        return claims

    def verify(self, authorization: Optional[str]) -> TokenClaims:
        """Extract the bearer token from a raw header value and decode it."""
        return self.decode(extract_token_from_header(authorization))


# =============================================================================
# Token Creation
# =============================================================================

class TokenIssuer:
    """Exchanges valid credentials for a signed, time-limited access token"""

    def __init__(self, settings: Settings, credential_store: CredentialStore):
        self._secret = settings.JWT_SECRET
        self._algorithm = settings.JWT_ALGORITHM
        self._lifetime = timedelta(minutes=settings.JWT_EXPIRY_MINUTES)
        self._credential_store = credential_store

    def sign(self, user: UserClaims, now: Optional[datetime] = None) -> str:
        """
        Sign identity claims with an ``iat`` and an ``exp`` one lifetime later.

        Args:
            user: Identity to embed
            now: Issue time (defaults to the current UTC time)
        """
        now = now or datetime.now(timezone.utc)
        payload = user.model_dump()
        payload.update({
            "iat": now,
            "exp": now + self._lifetime,
        })
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def login(self, username: Any, password: Any) -> LoginResponse:
        """
        Check credentials and issue a token.

        Raises:
            InvalidCredentialsError: If the credential store rejects the pair
        """
        user = self._credential_store.verify(username, password)
        if user is None:
            raise InvalidCredentialsError()

        token = self.sign(user)
        logger.info("Issued access token", extra={"user_id": user.id, "username": user.username})
        return LoginResponse(token=token, user=user)
