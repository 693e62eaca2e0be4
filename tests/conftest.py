from __future__ import annotations

import json
import threading
import time
from typing import Dict, Iterable, List, Optional

import pytest

from orgtree.core.directory import DirectoryClient
from orgtree.core.graph_client import GraphClient
from orgtree.core.models import UserRecord
from orgtree.http.errors import ServerError
from orgtree.http.throttle import ConcurrencyGate

BASE = "https://graph.microsoft.com/beta"


def graph_user(uid: str, name: Optional[str] = None, **extra) -> dict:
    d = {"id": uid, "displayName": name or uid.upper()}
    d.update(extra)
    return d


def reports_url(uid: str) -> str:
    return f"{BASE}/users/{uid}/directReports"


class FakeResponse:
    def __init__(self, status_code: int = 200, payload=None, *, text: Optional[str] = None, headers=None):
        self.status_code = status_code
        self.headers = headers or {}
        self.text = text if text is not None else json.dumps(payload if payload is not None else {})


class FakeSession:
    """Stands in for requests.Session: routes by full URL, records calls, tracks overlap."""
    def __init__(self, routes: Optional[Dict[str, object]] = None, *, delay: float = 0.0):
        self.routes: Dict[str, object] = dict(routes or {})
        self.delay = delay
        self.calls: List[dict] = []
        self.in_flight = 0
        self.peak = 0
        self._lock = threading.Lock()

    def request(self, method, url, headers=None, params=None, timeout=None):
        with self._lock:
            self.calls.append({"method": method, "url": url, "headers": headers, "params": params})
            self.in_flight += 1
            self.peak = max(self.peak, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            route = self.routes.get(url)
            if route is None:
                return FakeResponse(404, {"error": {"code": "Request_ResourceNotFound"}})
            if isinstance(route, list):
                # successive responses for the same URL
                route = route.pop(0) if len(route) > 1 else route[0]
            if isinstance(route, Exception):
                raise route
            return route
        finally:
            with self._lock:
                self.in_flight -= 1

    def urls(self) -> List[str]:
        return [c["url"] for c in self.calls]


def tree_routes(tree: Dict[str, Iterable[str]]) -> Dict[str, FakeResponse]:
    """{manager_id: [report ids]} -> directReports routes (leaves get an empty page)."""
    ids = set(tree)
    for kids in tree.values():
        ids.update(kids)
    routes = {}
    for uid in ids:
        kids = list(tree.get(uid, []))
        routes[reports_url(uid)] = FakeResponse(200, {"value": [graph_user(k) for k in kids]})
    return routes


class FakeDirectory:
    """In-memory DirectoryClient stand-in for traversal tests."""
    def __init__(self, tree: Dict[str, List[str]], *, fail_on: Optional[str] = None):
        self.tree = tree
        self.fail_on = fail_on
        self.calls: List[str] = []

    def direct_reports(self, user_id: str) -> List[UserRecord]:
        self.calls.append(user_id)
        if user_id == self.fail_on:
            raise ServerError(503, reports_url(user_id), "Server error", "backend unavailable")
        return [UserRecord(id=k, display_name=k.upper()) for k in self.tree.get(user_id, [])]


def make_directory(session: FakeSession, *, capacity: int = 10, max_retries: int = 0) -> DirectoryClient:
    graph = GraphClient(
        lambda: "test-token",
        gate=ConcurrencyGate(capacity),
        max_retries=max_retries,
        session=session,
    )
    return DirectoryClient(graph)


@pytest.fixture
def org_tree() -> Dict[str, List[str]]:
    return {"root": ["a", "b"], "a": ["c"], "b": [], "c": []}


@pytest.fixture
def root_user() -> UserRecord:
    return UserRecord(id="root", display_name="ROOT")
