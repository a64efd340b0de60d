"""
FastAPI Gateway Application Factory
===================================

Entry point for the authentication gateway that sits between clients and two
Azure Functions.

Architecture:
    Client → Gateway (this service, verifies the token) → Azure Function

Routes:
    - POST /login : exchange credentials for an access token
    - GET  /get   : forwarded to AZURE_GET_URL (requires token)
    - POST /post  : forwarded to AZURE_POST_URL (requires token)

Environment Variables:
    - JWT_SECRET: Secret for signing access tokens (required)
    - AZURE_GET_URL / AZURE_POST_URL: Upstream targets (required)
    - PORT: Listen port (default: 3000)
    - LOG_LEVEL: Logging level (default: INFO)
    - ALLOWED_ORIGINS: Comma-separated CORS origins (default: *)

Running the Service:
    Development:
        uvicorn gateway.main:create_application --factory --reload --port 3000

    Console script:
        auth-gateway
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth.credentials import CredentialStore, PlaceholderCredentialStore
from .auth.routes import auth_router
from .auth.session import TokenIssuer, TokenVerifier
from .config import Settings, get_settings
from .errors import GatewayError
from .models import RouteNotFoundResponse
from .proxy.forwarder import RequestForwarder
from .proxy.routes import proxy_router

logger = logging.getLogger("gateway.main")

MAX_UPSTREAM_REDIRECTS = 5


# Configure structured JSON logging
def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s", "module": "%(module)s", "function": "%(funcName)s"}',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


# Lifespan context manager for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup: configure logging and report the listening port and targets.
    Shutdown: close the shared upstream HTTP client.
    """
    settings: Settings = app.state.settings
    setup_logging(settings.LOG_LEVEL)

    logger.info(f"Auth gateway running on port {settings.PORT}")
    logger.info("Available routes: GET /get, POST /post")
    logger.info("Login endpoint: POST /login")
    for name, url in settings.target_urls.items():
        logger.info(f"Azure Function {name.upper()}: {url}")

    yield

    logger.info("Shutting down auth gateway")
    if app.state.owns_upstream_client:
        await app.state.upstream_client.aclose()
        logger.info("Closed upstream HTTP client")


def register_exception_handlers(app: FastAPI) -> None:
    """Map every failure to a JSON body; tracebacks only go to the log."""

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
        logger.info(
            f"{type(exc).__name__}: {exc}",
            extra={"path": request.url.path, "method": request.method},
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_payload(),
            headers=exc.headers,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Unknown paths and known paths with the wrong method look the same to callers
        if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND,
                content=RouteNotFoundResponse().model_dump(),
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail, "authenticated": False},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        # Unparseable request bodies fail the whole pipeline, same as any other error
        logger.error(
            "Failed to parse request body",
            extra={"path": request.url.path, "method": request.method, "error_count": len(exc.errors())},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error", "authenticated": False},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__
            },
            exc_info=True
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error", "authenticated": False},
        )


# Create FastAPI application
def create_application(
    settings: Optional[Settings] = None,
    upstream_client: Optional[httpx.AsyncClient] = None,
    credential_store: Optional[CredentialStore] = None,
) -> FastAPI:
    """
    Application factory function.

    Args:
        settings: Gateway settings (loaded from the environment when omitted)
        upstream_client: HTTP client used for forwarding (a new one when omitted)
        credential_store: Account lookup for /login (the placeholder when omitted)

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Auth Gateway",
        description="Token-authenticated gateway in front of two Azure Functions",
        version="1.0.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    client = upstream_client or httpx.AsyncClient(
        timeout=settings.UPSTREAM_TIMEOUT_SECONDS,
        max_redirects=MAX_UPSTREAM_REDIRECTS,
    )

    app.state.settings = settings
    app.state.upstream_client = client
    app.state.owns_upstream_client = upstream_client is None
    app.state.token_verifier = TokenVerifier(settings)
    app.state.token_issuer = TokenIssuer(settings, credential_store or PlaceholderCredentialStore())
    app.state.forwarder = RequestForwarder(client, timeout=settings.UPSTREAM_TIMEOUT_SECONDS)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(auth_router)
    app.include_router(proxy_router)

    register_exception_handlers(app)

    return app


def run() -> None:
    """Start the gateway with uvicorn on HOST:PORT."""
    settings = get_settings()
    uvicorn.run(
        create_application(settings),
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
