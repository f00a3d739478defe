"""
OIDC endpoints using Starlette.

Implements:
- OpenID Provider Metadata and JWKS
- Authorization endpoint (redirects to Steam)
- Steam OpenID callback (redirects back to the client with a code)
- Token endpoint
- Userinfo endpoint
"""

import json
import logging

import httpx
from starlette.requests import Request
from starlette.responses import (
    JSONResponse,
    PlainTextResponse,
    RedirectResponse,
    Response,
)

from steam_oidc.core.exceptions import (
    OIDCError,
    ServerError,
    SessionCorrelationError,
)

from .oidc_server import OIDCProvider, append_query_params
from .session import pop_pending, store_pending

logger = logging.getLogger(__name__)

NO_STORE_HEADERS = {"Cache-Control": "no-store", "Pragma": "no-cache"}

SESSION_EXPIRED_MESSAGE = "Session expired or invalid. Please try logging in again."
VERIFICATION_FAILED_MESSAGE = "Error verifying Steam assertion. Please try logging in again."


def is_redirectable(uri: str | None) -> bool:
    """True when ``uri`` is a syntactically valid absolute http(s) URL."""
    if not uri:
        return False
    try:
        url = httpx.URL(uri)
    except (httpx.InvalidURL, TypeError):
        return False
    return url.scheme in ("http", "https") and bool(url.host)


def oidc_error_response(redirect_uri: str | None, error: OIDCError) -> Response:
    """Report an /authorize failure to the client's redirect_uri when possible."""
    if is_redirectable(redirect_uri):
        url = append_query_params(
            redirect_uri,
            {"error": error.error, "error_description": error.description},
        )
        return RedirectResponse(url=url, status_code=302)
    status_code = error.status_code if error.status_code >= 500 else 400
    return JSONResponse(error.to_dict(), status_code=status_code)


def error_json(error: OIDCError) -> JSONResponse:
    return JSONResponse(
        error.to_dict(),
        status_code=error.status_code,
        headers={**NO_STORE_HEADERS, **error.headers},
    )


async def read_token_request(request: Request) -> dict[str, str]:
    """Token request parameters from a form or JSON body."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return {}
        if not isinstance(body, dict):
            return {}
        return {k: v for k, v in body.items() if isinstance(v, str)}
    form = await request.form()
    return {k: v for k, v in form.items() if isinstance(v, str)}


# OIDC endpoint handlers
async def discovery_document(request: Request, provider: OIDCProvider):
    """OpenID Provider Metadata."""
    return JSONResponse(provider.get_discovery_document())


async def jwks(request: Request, provider: OIDCProvider):
    """JSON Web Key Set."""
    return JSONResponse(provider.get_jwks())


async def authorize(request: Request, provider: OIDCProvider):
    """Authorization endpoint - validates the request and redirects to Steam."""
    params = request.query_params
    redirect_uri = params.get("redirect_uri")

    try:
        result = await provider.authorize(
            client_id=params.get("client_id"),
            redirect_uri=redirect_uri,
            response_type=params.get("response_type"),
            scope=params.get("scope"),
            state=params.get("state"),
            nonce=params.get("nonce"),
        )
    except OIDCError as e:
        return oidc_error_response(redirect_uri, e)
    except Exception:
        logger.exception("Unexpected error in authorization endpoint")
        return oidc_error_response(redirect_uri, ServerError())

    store_pending(request.session, result.pending)
    return RedirectResponse(url=result.url, status_code=302)


async def steam_callback(
    request: Request, provider: OIDCProvider, pending_ttl_seconds: int
):
    """Steam OpenID return URL - issues the authorization code."""
    logger.debug("Steam callback received with query: %s", dict(request.query_params))

    # The pending request is single-use whatever the outcome
    pending = pop_pending(request.session, pending_ttl_seconds)

    try:
        steam_id = await provider.verify_callback(dict(request.query_params))
        redirect_url = provider.complete_authorization(steam_id, pending)
    except SessionCorrelationError:
        return PlainTextResponse(SESSION_EXPIRED_MESSAGE, status_code=400)
    except ServerError:
        return PlainTextResponse(VERIFICATION_FAILED_MESSAGE, status_code=500)
    except Exception:
        logger.exception("Unexpected error in Steam callback")
        return PlainTextResponse(VERIFICATION_FAILED_MESSAGE, status_code=500)

    return RedirectResponse(url=redirect_url, status_code=302)


async def token_endpoint(request: Request, provider: OIDCProvider):
    """Token endpoint - exchanges an authorization code for tokens."""
    try:
        data = await read_token_request(request)
        token_response = await provider.exchange_code(
            grant_type=data.get("grant_type"),
            code=data.get("code"),
            redirect_uri=data.get("redirect_uri"),
            client_id=data.get("client_id"),
            client_secret=data.get("client_secret"),
        )
    except OIDCError as e:
        return error_json(e)
    except Exception:
        logger.exception("Unexpected error in token endpoint")
        return error_json(ServerError())

    return JSONResponse(token_response.model_dump(), headers=NO_STORE_HEADERS)


async def userinfo_endpoint(request: Request, provider: OIDCProvider):
    """Userinfo endpoint - returns claims for a bearer access token."""
    try:
        user = await provider.userinfo(request.headers.get("Authorization"))
    except OIDCError as e:
        return error_json(e)
    except Exception:
        logger.exception("Unexpected error in userinfo endpoint")
        return error_json(ServerError())

    return JSONResponse(user.model_dump(), headers=NO_STORE_HEADERS)
