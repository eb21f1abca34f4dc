"""
Cursor pagination primitives.

A `Connection` is one page of a Relay-style connection plus a way to fetch the next
page. Pages are fetched lazily and in order; `drain` walks a connection to the end.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

from pydantic import Field

from .entities import LinearModel

T = TypeVar("T")


class PageInfo(LinearModel):
    has_next_page: bool = Field(False, alias="hasNextPage")
    end_cursor: str | None = Field(None, alias="endCursor")


class Connection(Generic[T]):
    """
    One page of results.

    `fetch_page` is called with the end cursor of this page to produce the next one.
    """

    def __init__(
        self,
        nodes: list[T],
        page_info: PageInfo,
        fetch_page: Callable[[str | None], Awaitable[Connection[T]]] | None = None,
    ) -> None:
        self.nodes = nodes
        self.page_info = page_info
        self._fetch_page = fetch_page

    @property
    def has_next_page(self) -> bool:
        return self.page_info.has_next_page

    async def fetch_next(self) -> Connection[T]:
        if not self.has_next_page or self._fetch_page is None:
            raise ValueError("connection has no next page")
        return await self._fetch_page(self.page_info.end_cursor)

    def __repr__(self) -> str:
        return f"Connection(nodes={len(self.nodes)}, has_next_page={self.has_next_page})"


async def drain(connection: Connection[T]) -> list[T]:
    """
    Collect every node of a connection, fetching pages sequentially.

    There is no page ceiling: a backend that always reports `hasNextPage` loops forever.
    """
    nodes = list(connection.nodes)
    while connection.has_next_page:
        connection = await connection.fetch_next()
        nodes.extend(connection.nodes)
    return nodes
