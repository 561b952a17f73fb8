"""
Cursor pagination for CLOB list endpoints.

The exchange hands back an opaque `next_cursor` with each page. "MA=="
(base64 "0") is the first page and "LTE=" (base64 "-1") means there are no
more pages.
"""

import logging
from typing import Callable, Generic, Iterator, List, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

INITIAL_CURSOR = "MA=="
END_CURSOR = "LTE="

PageFetcher = Callable[[str], Tuple[List[T], Optional[str]]]


class CursorPaginator(Generic[T]):
    """
    Lazy, finite, restartable sequence of records.

    Nothing is fetched until iteration starts. Every new iteration starts
    again from `start_cursor`. Iteration ends at the end cursor, an empty
    cursor, or a cursor that was already visited in this pass.
    """

    def __init__(self, fetch_page: PageFetcher, start_cursor: Optional[str] = None):
        """
        Args:
            fetch_page: cursor -> (records, next_cursor)
            start_cursor: Cursor to start from (None means the first page)
        """
        self._fetch_page = fetch_page
        self.start_cursor = start_cursor or INITIAL_CURSOR

    def pages(self) -> Iterator[List[T]]:
        """Iterate page by page."""
        cursor = self.start_cursor
        seen = set()

        while cursor and cursor != END_CURSOR:
            if cursor in seen:
                logger.warning(f"Cursor {cursor} repeated, stopping pagination")
                return
            seen.add(cursor)

            records, cursor = self._fetch_page(cursor)
            yield records

    def __iter__(self) -> Iterator[T]:
        for page in self.pages():
            yield from page

    def all(self) -> List[T]:
        """Fetch every remaining page into a list."""
        return list(self)
