"""
Gateway Exceptions
==================

Authentication failures are raised as exceptions and rendered to JSON by the
handler installed in ``gateway.main``. Upstream failures are not exceptions;
the forwarder turns them into envelopes itself.
"""

from typing import Any, Dict, Optional

from fastapi import status


class GatewayError(Exception):
    """Base exception for failures that end a request with a JSON error body"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error: str = "Internal server error"
    authenticated: Optional[bool] = False
    headers: Optional[Dict[str, str]] = None

    def __init__(self, reason: Optional[str] = None):
        super().__init__(reason or self.error)
        self.reason = reason

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.error}
        if self.authenticated is not None:
            payload["authenticated"] = self.authenticated
        return payload


class MissingTokenError(GatewayError):
    """No bearer token on a protected route"""

    status_code = status.HTTP_401_UNAUTHORIZED
    error = "Access token required"
    headers = {"WWW-Authenticate": "Bearer"}


class InvalidTokenError(GatewayError):
    """Bad signature, expired, or missing identity claims"""

    status_code = status.HTTP_403_FORBIDDEN
    error = "Invalid or expired token"


class InvalidCredentialsError(GatewayError):
    """Login attempt that the credential store rejected"""

    status_code = status.HTTP_401_UNAUTHORIZED
    error = "Invalid credentials"
    authenticated = None
