from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path

import httpx

from carpark_pipeline.core.exceptions import FetchError, PermanentFetchError, TransientFetchError
from carpark_pipeline.core.metrics import InMemoryPipelineMetricsCollector
from carpark_pipeline.core.retry import BackoffPolicy, with_bounded_backoff

logger = logging.getLogger(__name__)

DEFAULT_HEADERS: dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "zh-HK,zh;q=0.9,en-US;q=0.8,en;q=0.7",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


@dataclass(frozen=True)
class SourceDescriptor:
    name: str
    location: str
    headers: dict[str, str] = field(default_factory=dict)


class DocumentFetcher(ABC):
    @abstractmethod
    async def fetch(self, source: SourceDescriptor) -> str:
        raise NotImplementedError


class HttpDocumentFetcher(DocumentFetcher):
    def __init__(
        self,
        policy: BackoffPolicy | None = None,
        connect_timeout_seconds: float = 5.0,
        read_timeout_seconds: float = 15.0,
        metrics: InMemoryPipelineMetricsCollector | None = None,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
        sleep_fn: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._policy = policy or BackoffPolicy()
        self._timeout = httpx.Timeout(
            connect=connect_timeout_seconds,
            read=read_timeout_seconds,
            write=read_timeout_seconds,
            pool=connect_timeout_seconds,
        )
        self._metrics = metrics
        self._client_factory = client_factory
        self._sleep_fn = sleep_fn

    async def fetch(self, source: SourceDescriptor) -> str:
        headers = {**DEFAULT_HEADERS, **source.headers}
        factory = self._client_factory or (lambda: httpx.AsyncClient(timeout=self._timeout, follow_redirects=True))
        async with factory() as client:

            async def _request_once() -> str:
                try:
                    response = await client.get(source.location, headers=headers)
                except httpx.TimeoutException as exc:
                    raise TransientFetchError(f"timeout fetching {source.location}", source=source.name) from exc
                except httpx.HTTPError as exc:
                    raise TransientFetchError(
                        f"request error fetching {source.location}: {exc}", source=source.name
                    ) from exc

                if response.status_code == 404:
                    raise PermanentFetchError(f"not found: {source.location}", source=source.name)
                if not response.is_success:
                    raise TransientFetchError(
                        f"unexpected status={response.status_code} for {source.location}",
                        source=source.name,
                    )
                return response.text

            try:
                document = await with_bounded_backoff(
                    _request_once,
                    policy=self._policy,
                    source=source.name,
                    on_retry=lambda attempt, exc, delay: self._on_retry(source, attempt, exc, delay),
                    sleep_fn=self._sleep_fn,
                )
            except FetchError as exc:
                logger.error(
                    "fetch_failed",
                    extra={
                        "component": "carpark_pipeline",
                        "source": source.name,
                        "kind": exc.kind,
                        "attempts": exc.attempts,
                        "error": str(exc),
                    },
                )
                if self._metrics:
                    self._metrics.increment_fetch_failure(source.name, exc.kind)
                raise
        logger.info(
            "fetch_completed",
            extra={"component": "carpark_pipeline", "source": source.name, "bytes": len(document)},
        )
        return document

    def _on_retry(self, source: SourceDescriptor, attempt: int, exc: Exception, delay: float) -> None:
        logger.warning(
            "fetch_retry",
            extra={
                "component": "carpark_pipeline",
                "source": source.name,
                "attempt": attempt,
                "delay_seconds": delay,
                "reason": str(exc),
            },
        )
        if self._metrics:
            self._metrics.increment_fetch_retry(source.name)


class FileDocumentFetcher(DocumentFetcher):
    """Reads a saved document from disk; ``file://`` prefixes are accepted."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self._encoding = encoding

    async def fetch(self, source: SourceDescriptor) -> str:
        path = Path(source.location.removeprefix("file://"))
        if not path.exists():
            raise PermanentFetchError(f"not found: {path}", source=source.name)
        try:
            return await asyncio.to_thread(path.read_text, encoding=self._encoding)
        except OSError as exc:
            raise TransientFetchError(f"cannot read {path}: {exc}", source=source.name) from exc


def build_fetcher(location: str, http_fetcher: DocumentFetcher) -> DocumentFetcher:
    if location.startswith(("http://", "https://")):
        return http_fetcher
    return FileDocumentFetcher()
