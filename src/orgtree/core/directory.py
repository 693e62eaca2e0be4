# src/orgtree/core/directory.py
from __future__ import annotations
from typing import Any, Dict, List, Optional

from orgtree.core.graph_client import GraphClient
from orgtree.core.models import GRAPH_FIELDS, PagedResult, UserRecord
from orgtree.core.pagination import PageCursor
from orgtree.http.errors import DeserializationError

SELECT = ",".join(GRAPH_FIELDS)


def startswith_filter(name: str) -> str:
    # OData string literals escape ' by doubling it
    return "startswith(displayName, '{}')".format(name.replace("'", "''"))


def parse_page(data: dict, url: str) -> PagedResult:
    items = data.get("value")
    if not isinstance(items, list):
        raise DeserializationError(url, "response has no 'value' list")
    try:
        records = tuple(UserRecord.from_graph(it) for it in items)
    except ValueError as ex:
        raise DeserializationError(url, str(ex)) from ex
    next_link = data.get("@odata.nextLink")
    if next_link is not None and not isinstance(next_link, str):
        raise DeserializationError(url, "@odata.nextLink is not a string")
    return PagedResult(records=records, next_link=next_link or None)


class DirectoryClient:
    """User lookups against the Graph directory, one page per call."""
    def __init__(self, graph: GraphClient):
        self._graph = graph

    def fetch_page(self, url: str, *, params: Optional[Dict[str, Any]] = None) -> PagedResult:
        data = self._graph.get_json(url, params=params)
        return parse_page(data, url)

    def search_users(self, name: str) -> PagedResult:
        """First page of users whose displayName starts with `name`."""
        return self.fetch_page("/users", params={"$filter": startswith_filter(name), "$select": SELECT})

    def direct_reports_cursor(self, user_id: str) -> PageCursor:
        return PageCursor(self.fetch_page, f"/users/{user_id}/directReports", params={"$select": SELECT})

    def direct_reports(self, user_id: str) -> List[UserRecord]:
        return self.direct_reports_cursor(user_id).collect()
