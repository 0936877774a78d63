# src/rankshare/api/v1/endpoints/feed.py
"""Feed endpoints: home and profile timelines, item detail, reposts."""

from fastapi import APIRouter, Query, Response, status

from rankshare.core.errors import NotFoundOrForbidden
from rankshare.core.settings import settings
from rankshare.schemas.feed import FeedItemView, FeedPage
from rankshare.schemas.post import FeedItemCreated, QuoteCreate
from rankshare.services import feed_service
from rankshare.services.feed_composer import FeedAudience
from rankshare.services.media import MediaContext

from ..dependencies import ComposerDep, CurrentUserDep, SessionDep

router = APIRouter(prefix="/feed", tags=["feed"])


@router.get("/home", response_model=FeedPage)
async def home_feed(
    composer: ComposerDep,
    current_user: CurrentUserDep,
    cursor: str | None = Query(None, description="Id of the last item of the previous page"),
    limit: int = Query(settings.feed_default_page_size, description="Page size"),
) -> FeedPage:
    """Return one page of items authored by accounts the caller follows."""
    return await composer.fetch_feed(FeedAudience.home(current_user.id), cursor, limit)


@router.get("/users/{username}", response_model=FeedPage)
async def profile_feed(
    username: str,
    composer: ComposerDep,
    current_user: CurrentUserDep,
    cursor: str | None = Query(None, description="Id of the last item of the previous page"),
    limit: int = Query(settings.feed_default_page_size, description="Page size"),
) -> FeedPage:
    """Return one page of items authored by ``username``."""
    author = composer.repo.get_user_by_username(username)
    if author is None:
        raise NotFoundOrForbidden()
    return await composer.fetch_feed(FeedAudience.profile(author.id), cursor, limit)


@router.get("/items/{feed_item_id}", response_model=FeedItemView)
async def get_feed_item(
    feed_item_id: str,
    composer: ComposerDep,
    current_user: CurrentUserDep,
    context: MediaContext = Query(MediaContext.FEED, description="Media URL validity window"),
) -> FeedItemView:
    """Return a single feed item with its reference resolved."""
    return await composer.fetch_item(feed_item_id, context)


@router.post(
    "/items/{feed_item_id}/retweet",
    response_model=FeedItemCreated,
    status_code=status.HTTP_201_CREATED,
)
async def retweet(
    feed_item_id: str,
    db: SessionDep,
    current_user: CurrentUserDep,
) -> FeedItemCreated:
    """Repost a feed item. Reposting twice returns the existing repost."""
    item = feed_service.retweet(db, current_user, feed_item_id)
    return FeedItemCreated(feed_item_id=item.id)


@router.delete("/items/{feed_item_id}/retweet", status_code=status.HTTP_204_NO_CONTENT)
async def undo_retweet(
    feed_item_id: str,
    db: SessionDep,
    current_user: CurrentUserDep,
) -> Response:
    """Remove the caller's reposts of a feed item."""
    feed_service.undo_retweet(db, current_user, feed_item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/items/{feed_item_id}/quote",
    response_model=FeedItemCreated,
    status_code=status.HTTP_201_CREATED,
)
async def quote(
    feed_item_id: str,
    payload: QuoteCreate,
    db: SessionDep,
    current_user: CurrentUserDep,
) -> FeedItemCreated:
    """Quote a feed item with a comment."""
    item = feed_service.quote_retweet(
        db, current_user, feed_item_id, payload.content, payload.image_key
    )
    return FeedItemCreated(feed_item_id=item.id, post_id=item.post_id)


@router.delete("/items/{feed_item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_feed_item(
    feed_item_id: str,
    db: SessionDep,
    current_user: CurrentUserDep,
) -> Response:
    """Delete one of the caller's own feed items."""
    feed_service.delete_feed_item(db, current_user, feed_item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
