"""
Generation Jobs Client

Talks to the external generation API through the same-origin proxy served by
gallery.server, which injects the credentials. Also downloads finished outputs.
"""

import logging
from traceback import format_exc
from typing import Any, Dict, Optional

import httpx

from gallery.exceptions import JobApiError
from gallery.models import JobStatusReport, JobSubmission

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = httpx.Timeout(30.0, connect=30.0, read=30.0)
DOWNLOAD_TIMEOUT = httpx.Timeout(120.0, connect=30.0)


class JobsClient:
    """Submit, poll and cancel external generation jobs."""

    def __init__(self, base_url: str, client: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=DEFAULT_TIMEOUT)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            return await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {url} failed: {str(e)}\n{format_exc()}")
            raise JobApiError(f"{method} {url} failed: {e}") from e

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason_phrase
        if isinstance(body, dict):
            return str(body.get("error") or body)
        return str(body)

    async def submit_job(self, payload: Dict[str, Any]) -> JobSubmission:
        """
        Start a generation job.

        Args:
            payload: Body with character, reference, ratio and model

        Returns:
            The accepted job with its external id
        """
        response = await self._request("POST", "/jobs", json=payload)
        if not response.is_success:
            detail = self._error_detail(response)
            logger.error(f"Job submission rejected ({response.status_code}): {detail}")
            raise JobApiError(
                f"Job submission rejected: {detail}", status_code=response.status_code
            )
        return JobSubmission.model_validate(response.json())

    async def get_job(self, job_id: str) -> JobStatusReport:
        """Current status of an external job."""
        response = await self._request("GET", f"/jobs/{job_id}")
        if not response.is_success:
            detail = self._error_detail(response)
            raise JobApiError(
                f"Status check for job {job_id} failed: {detail}",
                status_code=response.status_code,
            )
        return JobStatusReport.model_validate(response.json())

    async def cancel_job(self, job_id: str) -> bool:
        """
        Cancel an external job.

        Returns:
            True if the job was cancelled, False if it had already settled (404)
        """
        response = await self._request("DELETE", f"/jobs/{job_id}")
        if response.status_code == 404:
            return False
        if not response.is_success:
            raise JobApiError(
                f"Cancelling job {job_id} failed with status {response.status_code}",
                status_code=response.status_code,
            )
        return True

    async def download(self, url: str) -> bytes:
        """Fetch a finished output by its absolute URL."""
        try:
            response = await self._client.get(
                url, timeout=DOWNLOAD_TIMEOUT, follow_redirects=True
            )
        except httpx.HTTPError as e:
            logger.error(f"Failed to download {url}: {str(e)}\n{format_exc()}")
            raise JobApiError(f"Failed to download {url}: {e}") from e

        if not response.is_success:
            raise JobApiError(
                f"Failed to download {url}: {response.reason_phrase}",
                status_code=response.status_code,
            )
        return response.content
