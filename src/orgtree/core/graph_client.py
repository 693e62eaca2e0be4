# src/orgtree/core/graph_client.py
from __future__ import annotations
from typing import Callable, Dict, Any
from orgtree.http.client import HttpClient
from orgtree.http.throttle import ConcurrencyGate

GRAPH_BASE = "https://graph.microsoft.com"


class GraphClient:
    """
    Thin Graph wrapper: versioned base URL plus bearer auth on every call.
    Token is provided lazily via token_provider().
    """
    def __init__(
        self,
        token_provider: Callable[[], str],
        *,
        base_url: str = GRAPH_BASE,
        api_version: str = "beta",
        timeout: float = 30.0,
        max_retries: int = 0,
        gate: ConcurrencyGate | None = None,
        session=None,
        logger=None,
    ):
        self._token_provider = token_provider
        self._http = HttpClient(
            base_url=f"{base_url.rstrip('/')}/{api_version.strip('/')}",
            timeout=timeout,
            max_retries=max_retries,
            gate=gate,
            session=session,
            logger=logger,
        )

    @property
    def gate(self) -> ConcurrencyGate:
        return self._http.gate

    def _auth_headers(self, extra: Dict[str, str] | None = None) -> Dict[str, str]:
        h = {
            "Authorization": f"Bearer {self._token_provider()}",
            "Content-Type": "application/json",
        }
        if extra:
            h.update(extra)
        return h

    def get_json(self, path_or_url: str, *, params: Dict[str, Any] | None = None) -> dict:
        return self._http.get_json(path_or_url, headers=self._auth_headers(), params=params)
