"""
Auth Gateway
============

Minimal authenticated reverse proxy: verifies a bearer token and forwards the
request to one of two Azure Functions, wrapping the answer in a JSON envelope.
"""

__version__ = "1.0.0"
