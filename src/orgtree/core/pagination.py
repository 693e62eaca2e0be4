from __future__ import annotations
from typing import Any, Callable, Dict, Iterator, List, Optional

from orgtree.core.models import PagedResult, UserRecord

PageFetcher = Callable[..., PagedResult]


class PageCursor:
    """
    One-shot iterator over Graph-style pages.

    Stops after a page without `@odata.nextLink` or a page with no records
    (that page is still yielded). A consumed cursor stays consumed.
    """
    def __init__(self, fetch: PageFetcher, first_url: str, *, params: Optional[Dict[str, Any]] = None):
        self._fetch = fetch
        self._next_url: Optional[str] = first_url
        self._params = params
        self.pages = 0

    def __iter__(self) -> Iterator[PagedResult]:
        return self

    def __next__(self) -> PagedResult:
        if self._next_url is None:
            raise StopIteration
        url, self._next_url = self._next_url, None
        # nextLink already carries the original query string
        page = self._fetch(url, params=self._params if self.pages == 0 else None)
        self.pages += 1
        if page.records and page.next_link:
            self._next_url = page.next_link
        return page

    def records(self) -> Iterator[UserRecord]:
        for page in self:
            yield from page.records

    def collect(self) -> List[UserRecord]:
        return list(self.records())
