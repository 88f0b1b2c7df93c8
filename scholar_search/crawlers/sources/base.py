"""대체 검색 소스 공통 베이스."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from scholar_search.core.exceptions import HttpStatusException, ParsingException
from scholar_search.crawlers.http_client import HttpResponse, HttpTransport
from scholar_search.engine.result import ScholarResult


class AlternateSource(ABC):
    """대체 소스 (FallbackSource 프로토콜 구현)"""

    name: str = ""

    def __init__(self, transport: HttpTransport, base_url: str) -> None:
        self.transport = transport
        self.base_url = base_url.rstrip("/")

    @abstractmethod
    async def search(self, query: str, *, max_results: int, timeout_s: float) -> list[ScholarResult]:
        raise NotImplementedError

    async def _get(
        self,
        path: str,
        *,
        params: Dict[str, Any],
        timeout_s: float,
        headers: Optional[Dict[str, str]] = None,
    ) -> HttpResponse:
        url = f"{self.base_url}{path}"
        resp = await self.transport.get(url, timeout_s=timeout_s, headers=headers, params=params)
        if not resp.ok:
            raise HttpStatusException(resp.status_code, url, resp.header("Retry-After"))
        return resp

    async def _get_json(
        self,
        path: str,
        *,
        params: Dict[str, Any],
        timeout_s: float,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        resp = await self._get(path, params=params, timeout_s=timeout_s, headers=headers)
        try:
            return json.loads(resp.text)
        except ValueError as e:
            raise ParsingException(f"{self.name} returned invalid JSON", {"source": self.name}) from e

    def __repr__(self) -> str:
        return f"{type(self).__name__}(base_url={self.base_url!r})"
