"""공유 HTTP 클라이언트 (curl_cffi)

- 요청마다 AsyncSession을 만들면 TLS/커넥션 오버헤드가 커지므로 프로세스 단위로
  세션을 재사용합니다.
- 브라우저 TLS 지문을 흉내내야(impersonate) Scholar의 봇 차단을 덜 받습니다.
- 실패는 삼키지 않고 NetworkTimeoutException / NetworkConnectionException 으로
  변환해서 올립니다 (분류는 ErrorClassifier 몫).
- 앱 종료 시 close()로 정리합니다.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol

from curl_cffi.requests import AsyncSession
from curl_cffi.requests.exceptions import RequestException, Timeout

from scholar_search.core.config import settings
from scholar_search.core.exceptions import NetworkConnectionException, NetworkTimeoutException
from scholar_search.core.logging import logger

# curl 자체 타임아웃이 먼저 터지도록 바깥 wait_for 에 약간 여유를 둔다
_OUTER_TIMEOUT_GRACE_S = 1.0


@dataclass(frozen=True)
class HttpResponse:
    """전송 계층 응답 (상태 코드, 헤더, 본문)"""

    status_code: int
    text: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)

    def header(self, name: str) -> Optional[str]:
        """대소문자 무시 헤더 조회"""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class HttpTransport(Protocol):
    """GET/HEAD 를 지원하는 비동기 전송 계층"""

    async def get(
        self,
        url: str,
        *,
        timeout_s: float,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> HttpResponse:
        ...

    async def head(self, url: str, *, timeout_s: float) -> HttpResponse:
        ...


class SharedHttpClient:
    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._session: Optional[AsyncSession] = None

    async def _ensure_session(self) -> AsyncSession:
        async with self._lock:
            if self._session is not None:
                return self._session
            self._session = AsyncSession(
                impersonate=settings.scholar_http_impersonate,
                headers=self.default_headers(),
                allow_redirects=True,
                max_clients=settings.scholar_http_max_clients,
                trust_env=False,
            )
            return self._session

    def default_headers(self) -> Dict[str, str]:
        return {
            "User-Agent": settings.scholar_user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": settings.scholar_accept_language,
            "DNT": "1",
            "Upgrade-Insecure-Requests": "1",
        }

    async def get(
        self,
        url: str,
        *,
        timeout_s: float,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> HttpResponse:
        sess = await self._ensure_session()
        resp = await self._send(
            "GET",
            sess.get(url, params=params, headers=headers, timeout=timeout_s, allow_redirects=True),
            url,
            timeout_s,
        )
        return HttpResponse(
            status_code=getattr(resp, "status_code", 0) or 0,
            text=getattr(resp, "text", "") or "",
            headers=_copy_headers(resp),
        )

    async def head(self, url: str, *, timeout_s: float) -> HttpResponse:
        sess = await self._ensure_session()
        resp = await self._send(
            "HEAD",
            sess.head(url, timeout=timeout_s, allow_redirects=True),
            url,
            timeout_s,
        )
        return HttpResponse(
            status_code=getattr(resp, "status_code", 0) or 0,
            headers=_copy_headers(resp),
        )

    async def _send(self, method: str, request, url: str, timeout_s: float):
        timeout_ms = int(timeout_s * 1000)
        try:
            return await asyncio.wait_for(request, timeout=timeout_s + _OUTER_TIMEOUT_GRACE_S)
        except asyncio.TimeoutError as e:
            logger.info(f"[HTTP_CLIENT] {method} timed out after {timeout_ms}ms: {url}")
            raise NetworkTimeoutException(method, timeout_ms, {"url": url}) from e
        except Timeout as e:
            logger.info(f"[HTTP_CLIENT] {method} timed out after {timeout_ms}ms: {url}")
            raise NetworkTimeoutException(method, timeout_ms, {"url": url}) from e
        except RequestException as e:
            logger.info(f"[HTTP_CLIENT] {method} failed: {type(e).__name__}: {repr(e)}")
            if _looks_like_timeout(e):
                raise NetworkTimeoutException(method, timeout_ms, {"url": url}) from e
            raise NetworkConnectionException(f"{type(e).__name__}: {e}", {"url": url}) from e

    async def close(self) -> None:
        async with self._lock:
            if self._session is None:
                return
            try:
                await self._session.close()
            except RequestException as e:
                logger.info(f"[HTTP_CLIENT] close failed: {type(e).__name__}: {e}")
            self._session = None


def _copy_headers(resp) -> Dict[str, str]:
    raw = getattr(resp, "headers", None)
    if not raw:
        return {}
    return {str(k): str(v) for k, v in raw.items()}


def _looks_like_timeout(error: BaseException) -> bool:
    # libcurl CURLE_OPERATION_TIMEDOUT == 28
    return getattr(error, "code", None) == 28 or "timed out" in str(error).lower()


_shared_http_client = SharedHttpClient()


def get_shared_http_client() -> SharedHttpClient:
    return _shared_http_client


async def shutdown_shared_http_client() -> None:
    await _shared_http_client.close()
