"""Two-phase values for optimistic client updates."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

from rankshare.core.errors import RankshareError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OptimisticValue(Generic[T]):
    """A confirmed value plus an optional tentative one awaiting the server.

    ``value`` shows the tentative value while one is pending. When the server
    rejects the change, :meth:`rollback` drops it and invokes ``on_rollback``
    with the confirmed value so that callers can restore any state derived
    from the tentative one.
    """

    def __init__(
        self,
        confirmed: T,
        on_rollback: Callable[[T], None] | None = None,
    ) -> None:
        self.confirmed = confirmed
        self.on_rollback = on_rollback
        self._tentative: T | None = None
        self._pending = False

    @property
    def pending(self) -> bool:
        return self._pending

    @property
    def tentative(self) -> T | None:
        return self._tentative if self._pending else None

    @property
    def value(self) -> T:
        if self._pending:
            return self._tentative  # type: ignore[return-value]
        return self.confirmed

    def propose(self, value: T) -> None:
        self._tentative = value
        self._pending = True

    def confirm(self, value: T | None = None) -> T:
        """Accept the server's value, or the tentative one if none is given."""
        if value is None:
            if not self._pending:
                return self.confirmed
            value = self._tentative  # type: ignore[assignment]
        self.confirmed = value  # type: ignore[assignment]
        self._tentative = None
        self._pending = False
        return self.confirmed

    def rollback(self) -> T:
        """Discard the tentative value and notify ``on_rollback``."""
        self._tentative = None
        self._pending = False
        if self.on_rollback is not None:
            self.on_rollback(self.confirmed)
        return self.confirmed

    async def apply(self, value: T, send: Callable[[], Awaitable[T]]) -> T:
        """Show ``value`` immediately, then confirm or roll back with the server result.

        Raises:
            RankshareError: Re-raised from ``send`` after rolling back.
        """
        self.propose(value)
        try:
            result = await send()
        except RankshareError as exc:
            logger.info("Rolling back optimistic update: %s", exc)
            self.rollback()
            raise
        return self.confirm(result)
