"""
Catalog Gateway - serverless cache endpoint
Browsers fetch cacheable Jikan listings through here so the shared server
cache and the rate limit apply across all clients.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from catalog_gateway.errors import InvalidParamsError, UpstreamError
from catalog_gateway.facade import get_fetch_facade
from config.settings import settings

logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger("catalog_gateway")

# Version tracking
APP_VERSION = "v0.1.0"
APP_NAME = "Catalog Gateway"

app = FastAPI(
    title=APP_NAME,
    description="Rate-limited, cached access to the Jikan API",
    version=APP_VERSION,
)


def cors_headers() -> dict:
    """Permissive CORS headers sent on every /cache response."""
    return {
        "Access-Control-Allow-Origin": settings.cors_allow_origin,
        "Access-Control-Allow-Headers": "Content-Type",
        "Access-Control-Allow-Methods": "GET, OPTIONS",
    }


def _error(status_code: int, error: str, details: str = None) -> JSONResponse:
    body = {"error": error}
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body, headers=cors_headers())


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok", "source": "jikan", "version": APP_VERSION}


@app.get("/cache/stats")
def cache_stats():
    """Get cache and queue statistics."""
    return get_fetch_facade().get_stats()


@app.options("/cache")
def cache_preflight():
    """CORS preflight."""
    return Response(status_code=204, headers=cors_headers())


@app.get("/cache")
def serve_cache(request: Request):
    """
    Proxy a Jikan endpoint through the server cache.

    Query: endpoint=<path> plus that endpoint's own parameters
    (page, limit, filter, type, sfw, ...).
    """
    params = dict(request.query_params)
    endpoint = params.pop("endpoint", None)

    if not endpoint:
        return _error(400, "Endpoint parameter is required")

    if not endpoint.startswith("/"):
        endpoint = "/" + endpoint

    try:
        data = get_fetch_facade().fetch_server(endpoint, params)
    except InvalidParamsError as e:
        return _error(400, "Invalid parameters", e.message)
    except UpstreamError as e:
        logger.error(f"Error in cache endpoint for {endpoint}: {e}")
        return _error(500, "Failed to fetch data from upstream API", e.message)

    headers = cors_headers()
    headers["Cache-Control"] = f"public, max-age={settings.response_max_age_seconds}"
    return JSONResponse(content=data, headers=headers)
