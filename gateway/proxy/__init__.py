"""
Proxy Package
=============

Forwards authenticated requests to the configured Azure Functions.

Main Components:
----------------
- forwarder.py: RequestForwarder (outbound request, outcome, envelope)
- routes.py: FastAPI router with /get and /post
"""

from .forwarder import RequestForwarder
from .routes import proxy_router

__all__ = ["RequestForwarder", "proxy_router"]
