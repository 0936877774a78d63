"""Media URL broker.

Converts stored object keys into time-limited signed URLs. Values that are
already usable references (local preview ``blob:`` tokens, inline ``data:``
URIs, third-party URLs) are returned untouched.

Signed URLs are never cached: every feed read issues fresh ones. Failures to
sign degrade to returning the original value so that a storage outage never
fails the page that references the media.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Iterable
from enum import Enum
from functools import lru_cache
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from rankshare.core.settings import settings

logger = logging.getLogger(__name__)

DIRECT_PREFIXES = ("blob:", "data:")
EXTERNAL_PREFIXES = ("http://", "https://")


class MediaContext(str, Enum):
    """Call context selecting the validity window of issued URLs."""

    FEED = "feed"
    EDIT_PREVIEW = "edit_preview"


def _get_client() -> Any:
    """Create a boto3 S3 client using configured credentials."""
    return boto3.client(
        "s3",
        region_name=settings.media_region,
        endpoint_url=settings.media_endpoint_url,
        aws_access_key_id=settings.media_access_key_id,
        aws_secret_access_key=settings.media_secret_access_key,
    )


class MediaUrlBroker:
    """Issue signed, time-limited URLs for stored media keys."""

    def __init__(
        self,
        client: Any | None = None,
        *,
        bucket: str | None = None,
        public_url_prefix: str | None = None,
        ttl_seconds: dict[MediaContext, int] | None = None,
        timeout_seconds: float | None = None,
        verify_exists: bool | None = None,
    ) -> None:
        self._client = client
        self._client_lock = threading.Lock()
        self.bucket = bucket or settings.media_bucket
        self.public_url_prefix = (
            public_url_prefix if public_url_prefix is not None else settings.media_public_url_prefix
        )
        self.ttl_seconds = ttl_seconds or {
            MediaContext.FEED: settings.media_feed_ttl_seconds,
            MediaContext.EDIT_PREVIEW: settings.media_preview_ttl_seconds,
        }
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None
            else settings.media_resolve_timeout_seconds
        )
        self.verify_exists = (
            verify_exists if verify_exists is not None else settings.media_verify_exists
        )

    @property
    def client(self) -> Any:
        # Signing runs in worker threads; only one of them may build the client.
        with self._client_lock:
            if self._client is None:
                self._client = _get_client()
            return self._client

    def object_key(self, value: str) -> str | None:
        """Return the storage key behind ``value``, or None if it needs no credential."""
        if value.startswith(DIRECT_PREFIXES):
            return None
        if self.public_url_prefix and value.startswith(self.public_url_prefix):
            return value[len(self.public_url_prefix):].lstrip("/") or None
        if value.startswith(EXTERNAL_PREFIXES):
            return None
        return value

    def _sign_sync(self, key: str, expires_in: int) -> str:
        """Synchronous signing, run through asyncio.to_thread."""
        if self.verify_exists:
            self.client.head_object(Bucket=self.bucket, Key=key)
        return self.client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=expires_in,
        )

    async def resolve(
        self,
        key: str | None,
        context: MediaContext = MediaContext.FEED,
    ) -> str | None:
        """Return a signed URL for ``key``.

        Args:
            key: Stored media value; may be None, a storage key, a public URL
                of our bucket, or a direct reference.
            context: Selects the validity window of the issued URL.

        Returns:
            None for empty input, the value itself for direct references or
            when signing fails, otherwise a freshly signed URL.
        """
        if not key:
            return None
        object_key = self.object_key(key)
        if object_key is None:
            return key

        expires_in = self.ttl_seconds[context]
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._sign_sync, object_key, expires_in),
                timeout=self.timeout_seconds,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.warning("Signed URL issuance failed for %s: %s", object_key, exc)
        except TimeoutError:
            logger.warning("Signed URL issuance timed out for %s", object_key)
        return key

    async def resolve_many(
        self,
        keys: Iterable[str | None],
        context: MediaContext = MediaContext.FEED,
    ) -> dict[str, str | None]:
        """Resolve several keys concurrently; one failure never affects the others."""
        unique = list(dict.fromkeys(key for key in keys if key))
        if not unique:
            return {}
        results = await asyncio.gather(
            *(self.resolve(key, context) for key in unique),
            return_exceptions=True,
        )
        resolved: dict[str, str | None] = {}
        for key, result in zip(unique, results, strict=True):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                logger.error("Unexpected media resolution error for %s: %s", key, result)
                resolved[key] = key
            else:
                resolved[key] = result
        return resolved


@lru_cache(maxsize=1)
def get_media_broker() -> MediaUrlBroker:
    """Return the process-wide media broker."""
    return MediaUrlBroker()
