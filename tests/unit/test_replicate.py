"""Unit tests for the Replicate image client (no API calls)"""

import httpx
import pytest

from storyreel.errors import ExternalServiceError
from storyreel.models import ImageOptions
from storyreel.providers.base import ImageProviderConfig
from storyreel.providers.image.replicate import ReplicateImageClient
from tests.mocks.http import FakeResponse, FakeSession


def make_client(session=None, download_client=None):
    return ReplicateImageClient(
        ImageProviderConfig(api_key="r8_test"),
        session=session or FakeSession(),
        download_client=download_client,
    )


def test_requires_token():
    with pytest.raises(ValueError, match="Replicate API token required"):
        ReplicateImageClient(ImageProviderConfig(api_key=None))


@pytest.mark.asyncio
async def test_submit_posts_prediction_input():
    session = FakeSession([FakeResponse(201, {
        "id": "p1",
        "status": "starting",
        "output": None,
        "error": None,
        "urls": {"get": "https://api.replicate.com/v1/predictions/p1"},
    })])
    client = make_client(session)

    job = await client.submit("A ghost.", ImageOptions())

    assert job == {
        "id": "p1",
        "status": "processing",
        "output": [],
        "error": None,
        "poll_url": "https://api.replicate.com/v1/predictions/p1",
    }
    request = session.requests[0]
    assert request["url"] == (
        "https://api.replicate.com/v1/models/black-forest-labs/flux-schnell/predictions"
    )
    assert request["headers"]["Authorization"] == "Bearer r8_test"
    assert request["json"] == {
        "input": {
            "prompt": "A ghost.",
            "num_outputs": 1,
            "aspect_ratio": "1:1",
            "output_format": "webp",
            "output_quality": 100,
        }
    }


@pytest.mark.asyncio
async def test_status_output_string_is_normalized_to_list():
    session = FakeSession([FakeResponse(200, {
        "id": "p1", "status": "succeeded", "output": "https://img/1.webp",
    })])

    job = await make_client(session).check_status("https://poll/p1")

    assert job["status"] == "succeeded"
    assert job["output"] == ["https://img/1.webp"]
    assert session.requests[0]["method"] == "GET"


@pytest.mark.asyncio
async def test_canceled_is_reported_as_failed():
    session = FakeSession([FakeResponse(200, {"id": "p1", "status": "canceled"})])

    job = await make_client(session).check_status("https://poll/p1")

    assert job["status"] == "failed"


@pytest.mark.asyncio
async def test_error_status_raises():
    session = FakeSession([FakeResponse(422, "invalid input")])

    with pytest.raises(ExternalServiceError) as exc_info:
        await make_client(session).submit("x", ImageOptions())

    assert exc_info.value.status == 422
    assert exc_info.value.detail == "invalid input"


@pytest.mark.asyncio
async def test_download_returns_bytes():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"webp-bytes"))
    async with httpx.AsyncClient(transport=transport) as http_client:
        client = make_client(download_client=http_client)
        assert await client.download("https://img/1.webp") == b"webp-bytes"


@pytest.mark.asyncio
async def test_download_failure_raises():
    transport = httpx.MockTransport(lambda request: httpx.Response(404, text="gone"))
    async with httpx.AsyncClient(transport=transport) as http_client:
        client = make_client(download_client=http_client)
        with pytest.raises(ExternalServiceError) as exc_info:
            await client.download("https://img/1.webp")

    assert exc_info.value.status == 404
