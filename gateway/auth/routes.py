"""
Authentication routes and dependencies.

``POST /login`` exchanges the placeholder credentials for an access token;
``get_user_claims`` guards the forwarding routes.
"""

from typing import Any

from fastapi import APIRouter, Body, Request

from ..models import LoginRequest, LoginResponse, TokenClaims
from .session import TokenIssuer, TokenVerifier


# =============================================================================
# Router Setup
# =============================================================================

auth_router = APIRouter(tags=["authentication"])


# =============================================================================
# Dependencies
# =============================================================================

def get_token_verifier(request: Request) -> TokenVerifier:
    return request.app.state.token_verifier


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer


async def get_user_claims(request: Request) -> TokenClaims:
    """
    Dependency to verify the bearer token and extract user claims.

    Raises:
        MissingTokenError: No bearer token (401)
        InvalidTokenError: Token failed verification (403)
    """
    verifier = get_token_verifier(request)
    return verifier.verify(request.headers.get("Authorization"))


# =============================================================================
# Login Endpoint
# =============================================================================

@auth_router.post("/login", response_model=LoginResponse)
async def login(request: Request, payload: Any = Body(None)):
    """
    Issue an access token for a valid username/password pair.

    Returns:
        ``{message, token, user}`` on success

    Raises:
        InvalidCredentialsError: 401 ``{"error": "Invalid credentials"}``
    """
    # Anything but a JSON object (form data, text, arrays) carries no credentials
    credentials = LoginRequest.model_validate(payload) if isinstance(payload, dict) else LoginRequest()
    issuer = get_token_issuer(request)
    return issuer.login(credentials.username, credentials.password)
