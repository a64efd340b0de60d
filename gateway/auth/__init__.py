"""
Authentication Package

Access tokens for the gateway: issuing them on /login and verifying them on
the forwarding routes.

Modules:
- credentials: CredentialStore interface and the placeholder account
- session: token signing (TokenIssuer) and verification (TokenVerifier)
- routes: /login endpoint and the get_user_claims dependency
"""

from .routes import auth_router, get_user_claims

__all__ = [
    "auth_router",
    "get_user_claims",
]
