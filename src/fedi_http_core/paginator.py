"""
Cursor based pagination over the REST API.

A Paginator presents one collection (an account's followers, a timeline)
as a forward-only sequence of pages. Each response names the next page
in its ``Link`` header; the paginator keeps that position as its cursor.

The sequence ends one step after the data runs out: the page that comes
back without a ``next`` link is still returned, and only the following
call reports the end.
"""

import logging
from typing import (
    TYPE_CHECKING,
    Any,
    AsyncIterator,
    Generic,
    NamedTuple,
    Optional,
    Tuple,
    TypeVar,
)

from .http_primitives import QueryParams
from .links import find_link

if TYPE_CHECKING:
    from .transport import HTTPTransport

logger = logging.getLogger(__name__)

T = TypeVar("T")

Page = Tuple[T, ...]


class PageCursor(NamedTuple):
    """Where the next fetch goes. ``url`` is None once the sequence is done."""
    url: Optional[str]
    params: Optional[QueryParams] = None


def _freeze(data: Any) -> Any:
    # An empty body is an empty page, not the end of the sequence.
    if data is None:
        return ()
    if isinstance(data, list):
        return tuple(data)
    return data


class Paginator(Generic[T]):
    """
    Lazily fetched sequence of pages.

    Use ``advance()`` directly when resets or one-off overrides are needed,
    or iterate with ``async for``.
    """

    def __init__(
        self,
        transport: "HTTPTransport",
        url: str,
        params: Optional[QueryParams] = None,
    ):
        """
        Initialize the paginator.

        Args:
            transport: Transport used for every fetch
            url: URL or path of the first page
            params: Query parameters of the first page
        """
        self._transport = transport
        self._initial = PageCursor(url, dict(params) if params else None)
        self._cursor = self._initial
        self._fetching = False

    @property
    def cursor(self) -> PageCursor:
        return self._cursor

    @property
    def done(self) -> bool:
        """True once a page without a ``next`` link has been returned."""
        return self._cursor.url is None

    def reset(self) -> None:
        """Go back to the first page without fetching."""
        self._cursor = self._initial

    async def advance(
        self,
        reset: bool = False,
        url: Optional[str] = None,
        params: Optional[QueryParams] = None,
    ) -> Optional[Page[T]]:
        """
        Fetch the next page.

        Args:
            reset: Restart from the first page before fetching
            url: Fetch this URL instead of the cursor, for this call only
            params: Use these query parameters instead of the cursor's,
                    for this call only

        Returns:
            The page, or None when the sequence has ended

        Raises:
            APIError: If the fetch fails; the cursor is left unchanged
            RuntimeError: If another advance on this paginator is in flight
        """
        if self._fetching:
            raise RuntimeError("Paginator.advance() called while a fetch is in flight")

        if reset:
            self.reset()

        target_url = url or self._cursor.url
        if target_url is None:
            return None
        target_params = params if params is not None else self._cursor.params

        self._fetching = True
        try:
            response = await self._transport.get(target_url, target_params)
        finally:
            self._fetching = False

        next_url = find_link(
            response.get_header("Link"),
            "next",
            base_url=self._transport.resolve_url(target_url),
        )
        # The next link already encodes its query, so params are dropped.
        self._cursor = PageCursor(next_url)

        if next_url is None:
            logger.debug(f"Pagination of {self._initial.url} reached its last page")

        return _freeze(response.json())

    def __aiter__(self) -> AsyncIterator[Page[T]]:
        return self

    async def __anext__(self) -> Page[T]:
        page = await self.advance()
        if page is None:
            raise StopAsyncIteration
        return page

    def __repr__(self) -> str:
        return f"Paginator(url={self._initial.url!r}, cursor={self._cursor.url!r})"
