"""Shared API dependencies for authentication and common functionality."""

from datetime import UTC, datetime, timedelta
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from rankshare.core.errors import AuthError
from rankshare.core.settings import settings
from rankshare.db.session import get_db
from rankshare.models import User
from rankshare.services.feed_composer import FeedComposer
from rankshare.services.media import MediaUrlBroker, get_media_broker

# HTTP Bearer scheme for JWT authentication; missing headers are reported as AuthError
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def create_access_token(user_id: str, extra_claims: dict[str, str] | None = None) -> str:
    """Create a JWT access token whose subject is ``user_id``."""
    to_encode: dict[str, object] = {"sub": user_id}
    if extra_claims:
        to_encode.update(extra_claims)
    to_encode["exp"] = datetime.now(UTC) + timedelta(
        minutes=settings.access_token_expire_minutes
    )
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: SessionDep,
) -> User:
    """Get the current authenticated user from JWT token.

    Args:
        credentials: HTTP Bearer token credentials
        db: Database session

    Returns:
        User object for the authenticated user

    Raises:
        AuthError: If the token is missing or invalid, or the user no longer exists
    """
    if credentials is None:
        raise AuthError("Not authenticated")
    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as err:
        raise AuthError("Could not validate credentials") from err

    subject = payload.get("sub")
    if not subject:
        raise AuthError("Could not validate credentials")

    user = db.get(User, subject)
    if user is None:
        raise AuthError("User not found")
    return user


def get_broker() -> MediaUrlBroker:
    """Return the shared media URL broker."""
    return get_media_broker()


BrokerDep = Annotated[MediaUrlBroker, Depends(get_broker)]


def get_feed_composer(db: SessionDep, broker: BrokerDep) -> FeedComposer:
    """Return a feed composer bound to the request's session."""
    return FeedComposer(db, broker)


# Type aliases for current user and composer dependencies
CurrentUserDep = Annotated[User, Depends(get_current_user)]
ComposerDep = Annotated[FeedComposer, Depends(get_feed_composer)]
