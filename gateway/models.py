"""
Data Models Module

This module defines Pydantic models for request/response validation
and data serialization throughout the gateway.

Models are organized by functional area:
- Authentication models (login request/response, token claims)
- Forwarding models (upstream outcomes, response envelope)
- Error models (route-not-found body)
"""

from datetime import datetime, timezone
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


def utc_timestamp() -> str:
    """Current time as ISO-8601 UTC with millisecond precision, e.g. 2024-01-01T00:00:00.000Z"""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


# ============================================================================
# Authentication Models
# ============================================================================

class LoginRequest(BaseModel):
    """Credentials posted to /login. Missing fields are treated as a failed login."""
    username: Optional[Any] = Field(None, description="Account name")
    password: Optional[Any] = Field(None, description="Account password")


class UserClaims(BaseModel):
    """Identity carried inside an access token."""
    model_config = ConfigDict(frozen=True)

    username: str = Field(..., description="Account name")
    id: int = Field(..., description="Numeric user identifier", strict=True)


class TokenClaims(UserClaims):
    """Identity plus the registered claims recovered from a verified token."""
    iat: Optional[Union[int, float]] = Field(None, description="Issued-at (seconds since epoch)")
    exp: Optional[Union[int, float]] = Field(None, description="Expiry (seconds since epoch)")


class LoginResponse(BaseModel):
    """Body returned by a successful /login."""
    message: str = Field(default="Login successful")
    token: str = Field(..., description="Signed access token")
    user: UserClaims


# ============================================================================
# Forwarding Models
# ============================================================================

class UpstreamSuccess(BaseModel):
    """Upstream answered with a 2xx status."""
    status_code: int
    body: Any = None


class UpstreamError(BaseModel):
    """Upstream answered with a non-2xx status."""
    status_code: int
    body: Any = None


class UpstreamUnreachable(BaseModel):
    """Request was sent but no response arrived (refused, DNS, timeout)."""
    reason: str


class ForwardingFailure(BaseModel):
    """Local failure while building or sending the request."""
    message: str


ForwardOutcome = Union[UpstreamSuccess, UpstreamError, UpstreamUnreachable, ForwardingFailure]


class ResponseEnvelope(BaseModel):
    """
    Uniform body returned for every forwarded call.

    Serialize with ``model_dump(exclude_unset=True)`` so that only the keys
    relevant to the outcome appear; an explicit ``None`` upstream body is kept.
    """
    error: Optional[str] = None
    authenticated: bool = True
    user: Optional[TokenClaims] = None
    azureResponse: Any = None
    azureError: Any = None
    statusCode: Optional[int] = None
    message: Optional[str] = None
    timestamp: str = Field(default_factory=utc_timestamp)


# ============================================================================
# Error Models
# ============================================================================

class RouteNotFoundResponse(BaseModel):
    """Body returned for any path or method the gateway does not serve."""
    error: str = Field(default="Route not found")
    availableRoutes: List[str] = Field(default_factory=lambda: ["/get", "/post", "/login"])
