"""
Proxy Routes - Azure Function Forwarding
========================================

Authenticated endpoints that forward to the two configured Azure Functions.

Security Model:
---------------
1. Every request must carry a valid access token (issued by /login)
2. The token is verified before anything is sent upstream
3. Inbound headers, including Authorization, are not forwarded
4. The caller's identity is passed upstream as x-user-id / x-username

Endpoints:
----------
- GET /get: forward to AZURE_GET_URL (query string merged in)
- POST /post: forward the JSON body to AZURE_POST_URL
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Request

from ..auth.routes import get_user_claims
from ..models import TokenClaims
from .forwarder import RequestForwarder

# Create router
proxy_router = APIRouter(tags=["proxy"])


# ============================================================================
# Dependencies
# ============================================================================

def get_forwarder(request: Request) -> RequestForwarder:
    return request.app.state.forwarder


# ============================================================================
# Proxy Endpoints
# ============================================================================

@proxy_router.get("/get")
async def proxy_get(
    request: Request,
    user_claims: TokenClaims = Depends(get_user_claims),
    forwarder: RequestForwarder = Depends(get_forwarder),
):
    """Forward a GET to the Azure GET function, passing the query string through."""
    settings = request.app.state.settings
    return await forwarder.forward(
        settings.AZURE_GET_URL,
        "GET",
        request.query_params.multi_items(),
        user_claims,
    )


@proxy_router.post("/post")
async def proxy_post(
    request: Request,
    payload: Any = Body(None),
    user_claims: TokenClaims = Depends(get_user_claims),
    forwarder: RequestForwarder = Depends(get_forwarder),
):
    """Forward a POST and its JSON body to the Azure POST function."""
    settings = request.app.state.settings

    # Non-JSON bodies arrive as raw bytes and are not forwarded
    if isinstance(payload, (bytes, bytearray)):
        payload = None

    return await forwarder.forward(
        settings.AZURE_POST_URL,
        "POST",
        request.query_params.multi_items(),
        user_claims,
        body=payload,
    )
