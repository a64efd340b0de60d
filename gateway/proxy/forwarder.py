"""
Request Forwarder
=================

Builds the outbound request for an authenticated call, sends it to the
configured Azure Function and turns the outcome into a response envelope.

Outcomes are one of four values (see ``gateway.models``):

- UpstreamSuccess: response with a 2xx status
- UpstreamError: response with any other status
- UpstreamUnreachable: request went out but nothing came back
- ForwardingFailure: anything else that went wrong locally
"""

import logging
from typing import Any, Dict, Sequence, Tuple

import httpx
from fastapi import status
from fastapi.responses import JSONResponse, Response

from ..models import (
    ForwardingFailure,
    ForwardOutcome,
    ResponseEnvelope,
    TokenClaims,
    UpstreamError,
    UpstreamSuccess,
    UpstreamUnreachable,
    utc_timestamp,
)

logger = logging.getLogger(__name__)

BODY_METHODS = {"POST", "PUT", "PATCH"}

# Statuses that must not carry a response body
BODILESS_STATUSES = {status.HTTP_204_NO_CONTENT, status.HTTP_304_NOT_MODIFIED}


def merge_query_params(target_url: str, params: Sequence[Tuple[str, str]]) -> httpx.URL:
    """
    Merge inbound query parameters into the target URL.

    Inbound keys replace any value the target already carries; keys only the
    target defines (such as an Azure ``code``) are kept.
    """
    return httpx.URL(target_url).copy_merge_params(list(params))


def build_forward_headers(claims: TokenClaims) -> Dict[str, str]:
    """Outbound headers. Nothing from the inbound request is carried over."""
    return {
        "Content-Type": "application/json",
        "Accept": "application/json",
        "x-user-id": str(claims.id),
        "x-username": claims.username,
    }


def decode_upstream_body(response: httpx.Response) -> Any:
    """JSON body when there is one, otherwise the raw text"""
    if not response.content:
        return ""
    try:
        return response.json()
    except ValueError:
        return response.text


class RequestForwarder:
    """Forwards authenticated requests to an upstream target"""

    def __init__(self, client: httpx.AsyncClient, timeout: float = 30.0):
        self.client = client
        self.timeout = timeout

    async def send(
        self,
        target_url: str,
        method: str,
        query_params: Sequence[Tuple[str, str]],
        claims: TokenClaims,
        body: Any = None,
    ) -> ForwardOutcome:
        """
        Send one request upstream. Never raises; every failure becomes an outcome.

        Args:
            target_url: Absolute upstream URL, possibly with its own query string
            method: HTTP method to use upstream
            query_params: Inbound query parameters as (key, value) pairs
            claims: Verified identity of the caller
            body: Parsed inbound JSON body (write methods only)
        """
        method = method.upper()
        try:
            url = merge_query_params(target_url, query_params)
            headers = build_forward_headers(claims)

            request_kwargs: Dict[str, Any] = {}
            if method in BODY_METHODS:
                request_kwargs["json"] = {} if body is None else body
                logger.debug("Forwarding request body", extra={"body": request_kwargs["json"]})

            logger.info(
                f"Forwarding {method} request to: {url.scheme}://{url.netloc.decode()}{url.path}",
                extra={"user_id": claims.id, "query_keys": sorted(url.params.keys())},
            )

            response = await self.client.request(
                method,
                url,
                headers=headers,
                timeout=self.timeout,
                follow_redirects=True,
                **request_kwargs,
            )
        except (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError) as e:
            logger.error(
                f"Error forwarding to Azure Function: {e!r}",
                extra={"method": method, "error_type": type(e).__name__},
            )
            return UpstreamUnreachable(reason=str(e) or type(e).__name__)
        except Exception as e:
            logger.error(
                f"Error forwarding to Azure Function: {e}",
                exc_info=True,
                extra={"method": method, "error_type": type(e).__name__},
            )
            return ForwardingFailure(message=str(e))

        upstream_body = decode_upstream_body(response)

        if response.is_success:
            logger.info(f"Azure Function responded {response.status_code}")
            return UpstreamSuccess(status_code=response.status_code, body=upstream_body)

        logger.error(
            f"Azure Function returned {response.status_code} {response.reason_phrase}",
            extra={"status_code": response.status_code, "method": method},
        )
        return UpstreamError(status_code=response.status_code, body=upstream_body)

    async def forward(
        self,
        target_url: str,
        method: str,
        query_params: Sequence[Tuple[str, str]],
        claims: TokenClaims,
        body: Any = None,
    ) -> Response:
        """Send upstream and wrap the outcome for the caller."""
        outcome = await self.send(target_url, method, query_params, claims, body)
        status_code, envelope = build_envelope(outcome, claims)
        return render_envelope(status_code, envelope)


def build_envelope(outcome: ForwardOutcome, claims: TokenClaims) -> Tuple[int, ResponseEnvelope]:
    """
    Map a forwarding outcome to the HTTP status and envelope sent to the caller.

    Every envelope carries ``authenticated: true``; the caller's token was
    verified before anything was sent.
    """
    timestamp = utc_timestamp()

    if isinstance(outcome, UpstreamSuccess):
        return outcome.status_code, ResponseEnvelope(
            authenticated=True,
            user=claims,
            azureResponse=outcome.body,
            timestamp=timestamp,
        )

    if isinstance(outcome, UpstreamError):
        return outcome.status_code, ResponseEnvelope(
            error="Azure Function error",
            authenticated=True,
            user=claims,
            azureError=outcome.body,
            statusCode=outcome.status_code,
            timestamp=timestamp,
        )

    if isinstance(outcome, UpstreamUnreachable):
        return status.HTTP_503_SERVICE_UNAVAILABLE, ResponseEnvelope(
            error="Unable to reach Azure Function",
            authenticated=True,
            user=claims,
            message="Service temporarily unavailable",
            timestamp=timestamp,
        )

    if isinstance(outcome, ForwardingFailure):
        return status.HTTP_500_INTERNAL_SERVER_ERROR, ResponseEnvelope(
            error="Internal server error",
            authenticated=True,
            user=claims,
            message=outcome.message,
            timestamp=timestamp,
        )

    raise TypeError(f"Unknown forward outcome: {type(outcome).__name__}")


def render_envelope(status_code: int, envelope: ResponseEnvelope) -> Response:
    if status_code in BODILESS_STATUSES:
        return Response(status_code=status_code)
    return JSONResponse(
        status_code=status_code,
        content=envelope.model_dump(mode="json", exclude_unset=True),
    )
