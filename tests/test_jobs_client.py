import json

import httpx
import pytest

from gallery.exceptions import JobApiError
from gallery.services.jobs_client import JobsClient

BASE_URL = "http://proxy.test/api"


def make_client(handler) -> JobsClient:
    return JobsClient(
        BASE_URL + "/", client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )


async def test_submit_job_posts_payload():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "job-9"})

    client = make_client(handler)
    submission = await client.submit_job({"model": "act_two"})
    await client.aclose()

    assert submission.id == "job-9"
    assert seen == {
        "method": "POST",
        "url": f"{BASE_URL}/jobs",
        "body": {"model": "act_two"},
    }


async def test_submit_job_rejection_carries_upstream_error():
    def handler(request):
        return httpx.Response(400, json={"error": "Invalid asset"})

    client = make_client(handler)
    with pytest.raises(JobApiError) as info:
        await client.submit_job({})

    assert info.value.status_code == 400
    assert "Invalid asset" in str(info.value)


async def test_get_job_parses_report():
    def handler(request):
        assert request.url.path == "/api/jobs/job-3"
        return httpx.Response(
            200, json={"id": "job-3", "status": "SUCCEEDED", "output": ["https://x/o.mp4"]}
        )

    report = await make_client(handler).get_job("job-3")

    assert report.status == "SUCCEEDED"
    assert report.output_url == "https://x/o.mp4"


async def test_get_job_error_status_raises():
    client = make_client(lambda request: httpx.Response(404, json={"error": "Not found"}))

    with pytest.raises(JobApiError) as info:
        await client.get_job("missing")
    assert info.value.status_code == 404


@pytest.mark.parametrize("status_code, expected", [(204, True), (404, False)])
async def test_cancel_job(status_code, expected):
    def handler(request):
        assert request.method == "DELETE"
        return httpx.Response(status_code)

    assert await make_client(handler).cancel_job("job-1") is expected


async def test_cancel_job_server_error_raises():
    client = make_client(lambda request: httpx.Response(502))

    with pytest.raises(JobApiError):
        await client.cancel_job("job-1")


async def test_transport_error_becomes_job_api_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(JobApiError):
        await make_client(handler).get_job("job-1")


async def test_download_returns_content():
    def handler(request):
        assert str(request.url) == "https://cdn.test/out.mp4"
        return httpx.Response(200, content=b"video-bytes")

    assert await make_client(handler).download("https://cdn.test/out.mp4") == b"video-bytes"
