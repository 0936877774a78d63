"""HTTP client for the feed and like endpoints."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Literal, TypeVar

import httpx
import pydantic

from rankshare.core.errors import (
    AuthError,
    InvalidCursorError,
    NotFoundOrForbidden,
    RankshareError,
    TransientStoreError,
    ValidationError,
)
from rankshare.models.like import LikeTargetType
from rankshare.schemas.feed import FeedPage
from rankshare.schemas.like import LikeState

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)

HTTP_BAD_REQUEST = 400
HTTP_UNAUTHORIZED = 401
HTTP_NOT_FOUND = 404
HTTP_INTERNAL_SERVER_ERROR = 500


@dataclass(frozen=True)
class FeedKey:
    """Identifies one feed: the parameters every page of it shares."""

    kind: Literal["home", "profile"]
    target: str | None = None

    @property
    def path(self) -> str:
        if self.kind == "home":
            return "/api/v1/feed/home"
        return f"/api/v1/feed/users/{self.target}"

    @property
    def tags(self) -> tuple[str, ...]:
        tags = ("feed", f"feed:{self.kind}")
        if self.target:
            tags += (f"feed:{self.kind}:{self.target}",)
        return tags


class FeedClient:
    """Async wrapper around the feed HTTP API."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        *,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self.token = token
        self.timeout_seconds = timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
                self._client = httpx.AsyncClient(
                    base_url=self.base_url,
                    timeout=httpx.Timeout(self.timeout_seconds),
                    headers=headers,
                    transport=self._transport,
                )
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        client = await self._ensure_client()
        try:
            response = await client.request(method, path, params=params)
        except httpx.TimeoutException as exc:
            raise TransientStoreError(f"{method} {path} timed out") from exc
        except httpx.HTTPError as exc:
            raise TransientStoreError(f"{method} {path} failed: {exc}") from exc

        if response.status_code >= HTTP_INTERNAL_SERVER_ERROR:
            logger.warning("%s %s responded with %s", method, path, response.status_code)
            raise TransientStoreError(_detail(response))
        if response.status_code == HTTP_BAD_REQUEST:
            if _code(response) == "invalid_cursor":
                raise InvalidCursorError(_detail(response))
            raise ValidationError(_detail(response))
        if response.status_code == HTTP_UNAUTHORIZED:
            raise AuthError(_detail(response))
        if response.status_code == HTTP_NOT_FOUND:
            raise NotFoundOrForbidden()
        if response.is_error:
            raise RankshareError(f"{method} {path} responded with {response.status_code}")
        try:
            return response.json()
        except ValueError as exc:
            raise TransientStoreError(f"{method} {path} returned a non-JSON body") from exc

    async def fetch_page(self, key: FeedKey, cursor: str | None, limit: int) -> FeedPage:
        """Fetch one page of ``key`` starting after ``cursor``."""
        params: dict[str, Any] = {"limit": limit}
        if cursor:
            params["cursor"] = cursor
        data = await self._request("GET", key.path, params=params)
        return _parse(FeedPage, data)

    async def like(self, target_type: LikeTargetType, target_id: str) -> LikeState:
        data = await self._request("PUT", f"/api/v1/likes/{target_type.value}/{target_id}")
        return _parse(LikeState, data)

    async def unlike(self, target_type: LikeTargetType, target_id: str) -> LikeState:
        data = await self._request("DELETE", f"/api/v1/likes/{target_type.value}/{target_id}")
        return _parse(LikeState, data)

    async def close(self) -> None:
        """Clean up underlying HTTP client resources."""
        async with self._client_lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None


def _detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict) and "detail" in body:
        return str(body["detail"])
    return str(body)


def _code(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    return body.get("code") if isinstance(body, dict) else None


def _parse(model: type[ModelT], data: Any) -> ModelT:
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as exc:
        raise TransientStoreError(f"Malformed {model.__name__} response: {exc}") from exc
