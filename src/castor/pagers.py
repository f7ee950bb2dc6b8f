"""Lazy, restartable iteration over page-token driven list endpoints."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from pydantic import BaseModel

logger = logging.getLogger(__name__)

T = TypeVar("T")
C = TypeVar("C", bound="BaseModel")


class AsyncPager(Generic[T]):
    """Iterate every item of a list endpoint, fetching pages on demand.

    Each ``async for`` starts again from the configured page token, so the
    pager can be iterated more than once. ``page``/``next_page_token`` hold
    the most recently fetched page for manual paging via :meth:`next_page`.

    Example:
        async for model in await client.models.list():
            print(model.name)
    """

    def __init__(
        self,
        item_field: str,
        fetch: Callable[[Any], Awaitable[Any]],
        config: C | None,
        config_type: type[C],
    ) -> None:
        self._item_field = item_field
        self._fetch = fetch
        self._config: Any = config if config is not None else config_type()
        self.page: list[T] = []
        self.next_page_token: str | None = None
        self._fetched = False

    @property
    def page_size(self) -> int | None:
        return getattr(self._config, "page_size", None)

    async def _fetch_page(self, page_token: str | None) -> tuple[list[T], str | None]:
        config = self._config.model_copy(update={"page_token": page_token or None})
        response = await self._fetch(config)
        items = list(getattr(response, self._item_field) or [])
        token = response.next_page_token or None
        logger.debug("Fetched %d %s (next page: %s)", len(items), self._item_field, bool(token))
        return items, token

    async def next_page(self) -> list[T]:
        """Fetch the page after the current one (or the first page)."""
        if self._fetched and not self.next_page_token:
            raise IndexError("No more pages to fetch.")
        token = self.next_page_token if self._fetched else self._config.page_token
        self.page, self.next_page_token = await self._fetch_page(token)
        self._fetched = True
        return self.page

    def __aiter__(self) -> AsyncIterator[T]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[T]:
        token: str | None = self._config.page_token
        while True:
            items, token = await self._fetch_page(token)
            self.page, self.next_page_token, self._fetched = items, token, True
            for item in items:
                yield item
            if not token:
                return
