"""
Generation job proxy.

Forwards job requests to the Runway API so the browser never holds the API
key. Upstream status codes and bodies are echoed verbatim; only the auth
headers are added on the way out.
"""

import logging
from traceback import format_exc
from typing import AsyncIterator, Optional

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response

from config import CORS_ALLOW_ORIGIN, RUNWAY_API_BASE, RUNWAY_API_KEY, RUNWAY_API_VERSION

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Create a router for generation job operations
jobs_router = APIRouter()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": CORS_ALLOW_ORIGIN,
    "Access-Control-Allow-Methods": "GET, POST, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

UPSTREAM_TIMEOUT = httpx.Timeout(30.0, connect=30.0, read=30.0)
UNSUPPORTED_METHODS = ["PUT", "PATCH", "HEAD"]


def get_runway_api_key() -> Optional[str]:
    return RUNWAY_API_KEY


async def get_runway_client() -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(
        base_url=RUNWAY_API_BASE, timeout=UPSTREAM_TIMEOUT
    ) as client:
        yield client


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code, headers=CORS_HEADERS)


def _echo(upstream: httpx.Response) -> Response:
    """Relay an upstream response unchanged, plus the CORS headers."""
    headers = dict(CORS_HEADERS)
    content_type = upstream.headers.get("content-type")
    if content_type and upstream.content:
        headers["Content-Type"] = content_type
    return Response(
        content=upstream.content, status_code=upstream.status_code, headers=headers
    )


async def _forward(
    client: httpx.AsyncClient,
    api_key: Optional[str],
    method: str,
    path: str,
    body: Optional[bytes] = None,
) -> Response:
    if not api_key:
        return _error("Runway API key not configured on the server.", 500)

    headers = {
        "Authorization": f"Bearer {api_key}",
        "X-Runway-Version": RUNWAY_API_VERSION,
        "Content-Type": "application/json",
    }
    try:
        upstream = await client.request(method, path, headers=headers, content=body)
    except httpx.HTTPError as e:
        logger.error(f"Upstream {method} {path} failed: {str(e)}\n{format_exc()}")
        return _error(str(e), 500)

    logger.info(f"{method} {path} -> {upstream.status_code}")
    return _echo(upstream)


@jobs_router.options("/jobs")
@jobs_router.options("/jobs/{job_id}")
async def preflight() -> Response:
    """Answer CORS preflight requests."""
    return Response(status_code=204, headers=CORS_HEADERS)


@jobs_router.post("/jobs")
async def start_job(
    request: Request,
    client: httpx.AsyncClient = Depends(get_runway_client),
    api_key: Optional[str] = Depends(get_runway_api_key),
) -> Response:
    """Start a character performance job."""
    body = await request.body()
    return await _forward(client, api_key, "POST", "/v1/character_performance", body)


@jobs_router.get("/jobs/{job_id}")
async def get_job_status(
    job_id: str,
    client: httpx.AsyncClient = Depends(get_runway_client),
    api_key: Optional[str] = Depends(get_runway_api_key),
) -> Response:
    """Check the status of a job."""
    return await _forward(client, api_key, "GET", f"/v1/tasks/{job_id}")


@jobs_router.delete("/jobs/{job_id}")
async def cancel_job(
    job_id: str,
    client: httpx.AsyncClient = Depends(get_runway_client),
    api_key: Optional[str] = Depends(get_runway_api_key),
) -> Response:
    """Cancel or delete a job. Upstream answers 204, or 404 once the job has settled."""
    return await _forward(client, api_key, "DELETE", f"/v1/tasks/{job_id}")


@jobs_router.api_route("/jobs", methods=UNSUPPORTED_METHODS, include_in_schema=False)
@jobs_router.api_route(
    "/jobs/{job_id}", methods=UNSUPPORTED_METHODS, include_in_schema=False
)
async def method_not_allowed() -> Response:
    return _error("Method Not Allowed", 405)
