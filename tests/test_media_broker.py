"""Tests for signed media URL issuance."""

import asyncio
import time

import pytest
from botocore.exceptions import EndpointConnectionError

from rankshare.services.media import MediaContext, MediaUrlBroker


@pytest.mark.asyncio
async def test_none_and_empty_resolve_to_none(broker) -> None:
    assert await broker.resolve(None) is None
    assert await broker.resolve("") is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "value",
    [
        "blob:https://app.test/8a3c0f0e",
        "data:image/png;base64,iVBORw0KGgo=",
        "https://images.example.org/cat.png",
    ],
)
async def test_direct_references_pass_through(broker, s3_client, value) -> None:
    assert await broker.resolve(value) == value
    assert s3_client.signed == []


@pytest.mark.asyncio
async def test_storage_key_is_signed_with_context_ttl(broker, s3_client) -> None:
    feed_url = await broker.resolve("posts/a.jpg", MediaContext.FEED)
    preview_url = await broker.resolve("posts/a.jpg", MediaContext.EDIT_PREVIEW)

    assert feed_url.endswith("posts/a.jpg?expires=86400")
    assert preview_url.endswith("posts/a.jpg?expires=600")


@pytest.mark.asyncio
async def test_public_url_of_own_bucket_is_resigned(broker, s3_client) -> None:
    url = await broker.resolve("https://cdn.test/media/avatars/x.png")

    assert url.startswith("https://signed.test/media/avatars/x.png")
    assert s3_client.signed == [("avatars/x.png", 86400)]


@pytest.mark.asyncio
async def test_signing_failure_returns_original_key(broker) -> None:
    assert await broker.resolve("missing/a.jpg") == "missing/a.jpg"


@pytest.mark.asyncio
async def test_existence_check_failure_returns_original_key(s3_client) -> None:
    broker = MediaUrlBroker(s3_client, bucket="media", verify_exists=True)

    assert await broker.resolve("missing/a.jpg") == "missing/a.jpg"
    assert (await broker.resolve("posts/b.jpg")).startswith("https://signed.test/")


@pytest.mark.asyncio
async def test_unreachable_store_returns_original_key(mocker) -> None:
    client = mocker.MagicMock()
    client.generate_presigned_url.side_effect = EndpointConnectionError(
        endpoint_url="https://s3.test"
    )
    broker = MediaUrlBroker(client, bucket="media")

    assert await broker.resolve("posts/a.jpg") == "posts/a.jpg"


@pytest.mark.asyncio
async def test_slow_signing_times_out_to_original_key(mocker) -> None:
    client = mocker.MagicMock()

    def _slow(*args, **kwargs):
        time.sleep(0.5)
        return "https://late.test"

    client.generate_presigned_url.side_effect = _slow
    broker = MediaUrlBroker(client, bucket="media", timeout_seconds=0.05)

    assert await broker.resolve("posts/a.jpg") == "posts/a.jpg"


@pytest.mark.asyncio
async def test_resolve_many_isolates_failures(broker) -> None:
    resolved = await broker.resolve_many(
        ["posts/a.jpg", "missing/b.jpg", None, "blob:xyz", "posts/a.jpg"]
    )

    assert resolved["posts/a.jpg"].startswith("https://signed.test/")
    assert resolved["missing/b.jpg"] == "missing/b.jpg"
    assert resolved["blob:xyz"] == "blob:xyz"
    assert None not in resolved


@pytest.mark.asyncio
async def test_resolve_many_propagates_cancellation(broker, mocker) -> None:
    mocker.patch.object(broker, "resolve", side_effect=asyncio.CancelledError())

    with pytest.raises(asyncio.CancelledError):
        await broker.resolve_many(["posts/a.jpg"])


@pytest.mark.asyncio
async def test_lazy_client_is_built_once_under_fan_out(mocker) -> None:
    client = mocker.MagicMock()
    client.generate_presigned_url.return_value = "https://signed.test/x"

    def _build():
        time.sleep(0.05)
        return client

    factory = mocker.patch("rankshare.services.media._get_client", side_effect=_build)
    broker = MediaUrlBroker(bucket="media", timeout_seconds=2.0)

    resolved = await broker.resolve_many([f"posts/{n}.jpg" for n in range(6)])

    assert factory.call_count == 1
    assert set(resolved.values()) == {"https://signed.test/x"}
