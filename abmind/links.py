"""
External link status checks.

Courses and resources point to slides, repositories, recordings and papers
hosted elsewhere. This module checks whether those URLs still answer, with a
short in-memory cache so repeated checks within a run stay cheap.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, Literal, Optional, Set
from urllib.parse import urlparse

import requests
from pydantic import BaseModel

logger = logging.getLogger(__name__)

LinkStatus = Literal["available", "unavailable"]

USER_AGENT = "ABMind-Content-Validator/1.0"


@dataclass
class LinkCheckResult:
    url: str
    status: LinkStatus
    status_code: Optional[int] = None
    error: Optional[str] = None
    checked_at: datetime = field(default_factory=datetime.now)

    @property
    def ok(self) -> bool:
        return self.status == "available"


class LinkChecker:
    """
    HEAD-requests URLs and caches the result for `cache_seconds`.
    Hosts that refuse HEAD get a second chance with GET.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = 10,
        cache_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.session = session if session is not None else requests.Session()
        self.session.headers.setdefault("User-Agent", USER_AGENT)
        self.timeout = timeout
        self.cache_seconds = cache_seconds
        self._clock = clock
        self._cache: Dict[str, tuple[float, LinkCheckResult]] = {}

    def _cached(self, url: str) -> Optional[LinkCheckResult]:
        hit = self._cache.get(url)
        if hit is None:
            return None
        stored_at, result = hit
        if self._clock() - stored_at > self.cache_seconds:
            del self._cache[url]
            return None
        return result

    def check(self, url: str) -> LinkCheckResult:
        cached = self._cached(url)
        if cached is not None:
            return cached

        try:
            resp = self.session.head(url, timeout=self.timeout, allow_redirects=True)
            if resp.status_code >= 400:
                # Some hosts reject HEAD; ask again with GET before calling it broken
                resp = self.session.get(url, timeout=self.timeout, allow_redirects=True, stream=True)
                resp.close()
        except requests.RequestException as exc:
            logger.info("Link check failed for %s: %s", url, exc)
            result = LinkCheckResult(url=url, status="unavailable", error=str(exc))
        else:
            if resp.status_code < 400:
                result = LinkCheckResult(url=url, status="available", status_code=resp.status_code)
            else:
                logger.info("Link %s answered HTTP %s", url, resp.status_code)
                result = LinkCheckResult(
                    url=url,
                    status="unavailable",
                    status_code=resp.status_code,
                    error=f"HTTP {resp.status_code}",
                )

        self._cache[url] = (self._clock(), result)
        return result

    def check_many(self, urls: Iterable[str]) -> Dict[str, LinkCheckResult]:
        results: Dict[str, LinkCheckResult] = {}
        for url in urls:
            if url not in results:
                results[url] = self.check(url)
        return results


def extract_urls(obj: Any, urls: Optional[Set[str]] = None) -> Set[str]:
    """
    Recursively collect every http(s) string in models, dicts and lists.
    """
    if urls is None:
        urls = set()

    if isinstance(obj, BaseModel):
        extract_urls(obj.model_dump(), urls)
    elif isinstance(obj, str):
        if obj.startswith(("http://", "https://")):
            urls.add(obj)
    elif isinstance(obj, dict):
        for value in obj.values():
            extract_urls(value, urls)
    elif isinstance(obj, (list, tuple, set)):
        for value in obj:
            extract_urls(value, urls)
    return urls


def _hostname(url: str) -> str:
    return urlparse(url).hostname or "unknown"


def get_fallback_content(url: str, kind: Optional[str] = None) -> str:
    """
    Hint shown to readers when a link is unavailable.
    """
    host = _hostname(url)

    if kind == "slides" or ".pdf" in url or "slides" in url:
        return f"课件暂时无法访问，请联系讲师获取 {host} 的替代资源"

    if kind == "code_repo" or "github.com" in url or "gitlab.com" in url:
        return f"代码仓库暂时无法访问，请尝试访问 {host} 或联系作者"

    if kind == "recording" or "video" in url or "recording" in url:
        return f"录像暂时无法访问，请联系讲师获取 {host} 的替代链接"

    return "资源暂时无法访问，请稍后重试或联系管理员"
