# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import UTC, datetime, timedelta
from itertools import count
from typing import Any

import pytest
from botocore.exceptions import ClientError
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("PYTEST_RUNNING", "true")

from rankshare.api.v1.dependencies import create_access_token, get_broker
from rankshare.db.session import Base
from rankshare.db.session import get_db as app_get_session
from rankshare.main import app as fastapi_app
from rankshare.models import (
    FeedItem,
    FeedType,
    Follow,
    ListStatus,
    Post,
    RankedItem,
    RankingList,
    Sentiment,
    Tag,
    User,
)
from rankshare.services.media import MediaUrlBroker

TEST_DB_URL = "sqlite://"
T0 = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)

_USER_COUNTER = count(1)


class FakeS3Client:
    """Stands in for a boto3 S3 client; keys starting with ``missing`` fail."""

    def __init__(self) -> None:
        self.signed: list[tuple[str, int]] = []

    def head_object(self, Bucket: str, Key: str) -> dict[str, Any]:
        if Key.startswith("missing"):
            raise ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadObject")
        return {}

    def generate_presigned_url(self, operation: str, Params: dict[str, str], ExpiresIn: int) -> str:
        key = Params["Key"]
        if key.startswith("missing"):
            raise ClientError({"Error": {"Code": "NoSuchKey", "Message": "gone"}}, "GetObject")
        self.signed.append((key, ExpiresIn))
        return f"https://signed.test/{Params['Bucket']}/{key}?expires={ExpiresIn}"


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def connection(engine: Engine) -> Iterator[Connection]:
    connection = engine.connect()
    transaction = connection.begin()
    try:
        yield connection
    finally:
        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def db_session(connection: Connection) -> Iterator[Session]:
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    session.begin_nested()

    @event.listens_for(session, "after_transaction_end")
    def restart_savepoint(sess: Session, trans) -> None:  # pragma: no cover - SQLAlchemy internals
        if trans.nested and not getattr(trans._parent, "nested", False):
            session.begin_nested()

    try:
        yield session
    finally:
        event.remove(session, "after_transaction_end", restart_savepoint)
        session.close()


@pytest.fixture()
def session_factory(connection: Connection, db_session: Session) -> Callable[[], Session]:
    """Sessions sharing the test connection; each commit releases its own savepoint."""
    db_session.flush()
    return sessionmaker(
        bind=connection,
        autoflush=False,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )


@pytest.fixture()
def s3_client() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture()
def broker(s3_client: FakeS3Client) -> MediaUrlBroker:
    return MediaUrlBroker(
        s3_client,
        bucket="media",
        public_url_prefix="https://cdn.test/media/",
        timeout_seconds=2.0,
        verify_exists=False,
    )


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    broker: MediaUrlBroker,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_broker] = lambda: broker
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_broker, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Return a factory persisting users with unique usernames."""

    def _make(username: str | None = None, avatar_key: str | None = None) -> User:
        number = next(_USER_COUNTER)
        user = User(
            username=username or f"user{number}",
            name=f"User {number}",
            avatar_key=avatar_key,
        )
        db_session.add(user)
        db_session.flush()
        return user

    return _make


@pytest.fixture()
def alice(make_user: Callable[..., User]) -> User:
    return make_user("alice")


@pytest.fixture()
def bob(make_user: Callable[..., User]) -> User:
    return make_user("bob", avatar_key="avatars/bob.png")


@pytest.fixture()
def carol(make_user: Callable[..., User]) -> User:
    return make_user("carol")


@pytest.fixture()
def follow(db_session: Session) -> Callable[[User, User], Follow]:
    def _follow(follower: User, following: User) -> Follow:
        edge = Follow(follower_id=follower.id, following_id=following.id)
        db_session.add(edge)
        db_session.flush()
        return edge

    return _follow


@pytest.fixture()
def post_item(db_session: Session) -> Callable[..., FeedItem]:
    """Return a factory creating a post and its POST feed item."""

    def _post_item(
        author: User,
        content: str = "hello",
        *,
        created_at: datetime | None = None,
        image_key: str | None = None,
    ) -> FeedItem:
        when = created_at or T0
        post = Post(author_id=author.id, content=content, image_key=image_key, created_at=when)
        db_session.add(post)
        db_session.flush()
        item = FeedItem(user_id=author.id, type=FeedType.POST, post_id=post.id, created_at=when)
        db_session.add(item)
        db_session.flush()
        return item

    return _post_item


@pytest.fixture()
def reference_item(db_session: Session) -> Callable[..., FeedItem]:
    """Return a factory creating RETWEET or QUOTE_RETWEET items."""

    def _reference_item(
        author: User,
        target_id: str | None,
        *,
        quote: str | None = None,
        created_at: datetime | None = None,
    ) -> FeedItem:
        when = created_at or T0
        if quote is None:
            item = FeedItem(
                user_id=author.id,
                type=FeedType.RETWEET,
                retweet_of_feed_item_id=target_id,
                created_at=when,
            )
        else:
            post = Post(author_id=author.id, content=quote, created_at=when)
            db_session.add(post)
            db_session.flush()
            item = FeedItem(
                user_id=author.id,
                type=FeedType.QUOTE_RETWEET,
                post_id=post.id,
                quoted_feed_item_id=target_id,
                created_at=when,
            )
        db_session.add(item)
        db_session.flush()
        return item

    return _reference_item


@pytest.fixture()
def ranking_list(db_session: Session) -> Callable[..., RankingList]:
    """Return a factory creating a ranking list with ranked items and tags."""
    tags: dict[str, Tag] = {}

    def _ranking_list(
        author: User,
        subject: str,
        items: list[str],
        *,
        tag_names: tuple[str, ...] = (),
        status: ListStatus = ListStatus.PUBLISHED,
        created_at: datetime | None = None,
        image_keys: dict[str, str] | None = None,
    ) -> RankingList:
        when = created_at or T0
        ranking = RankingList(
            author_id=author.id,
            subject=subject,
            sentiment=Sentiment.LIKE,
            status=status,
            created_at=when,
            updated_at=when,
        )
        for name in tag_names:
            if name not in tags:
                tags[name] = Tag(name=name)
            ranking.tags.append(tags[name])
        for rank, item_name in enumerate(items, start=1):
            ranking.items.append(
                RankedItem(
                    rank=rank,
                    item_name=item_name,
                    image_key=(image_keys or {}).get(item_name),
                )
            )
        db_session.add(ranking)
        db_session.flush()
        return ranking

    return _ranking_list


@pytest.fixture()
def ranking_item(db_session: Session) -> Callable[..., FeedItem]:
    """Return a factory creating the RANKING_UPDATE item announcing a list."""

    def _ranking_item(ranking: RankingList, *, created_at: datetime | None = None) -> FeedItem:
        item = FeedItem(
            user_id=ranking.author_id,
            type=FeedType.RANKING_UPDATE,
            ranking_list_id=ranking.id,
            created_at=created_at or ranking.created_at,
        )
        db_session.add(item)
        db_session.flush()
        return item

    return _ranking_item


@pytest.fixture()
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Return a helper building authorization headers for a user."""

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers


def minutes(n: int) -> timedelta:
    return timedelta(minutes=n)
