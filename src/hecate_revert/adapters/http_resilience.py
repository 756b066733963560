"""Rate-limited httpx client used by the remote adapters."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from aiolimiter import AsyncLimiter
from httpx_retries import Retry, RetryTransport

from hecate_revert.config.http_resilience import IDEMPOTENT_METHODS

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from hecate_revert.config.http_resilience import ResilienceConfig, RetryPolicy

log = getLogger(__name__)


def build_retry(policy: RetryPolicy) -> Retry:
    """Translate a ``RetryPolicy`` for httpx-retries; only idempotent methods are retried."""

    return Retry(
        total=policy.attempts,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        status_forcelist=tuple(sorted(policy.statuses)),
        allowed_methods=tuple(sorted(IDEMPOTENT_METHODS)),
    )


class ResilientClient:
    """``httpx.AsyncClient`` behind a request rate limiter and a retry transport.

    ``transport`` replaces the network transport underneath the retry layer, which
    is how tests plug in ``httpx.MockTransport``.
    """

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        ratelimit = config.ratelimit
        self._limiter = (
            AsyncLimiter(ratelimit.max_calls, ratelimit.per_seconds) if ratelimit else None
        )
        if config.retry.enabled:
            log.debug("%s: retrying up to %s times", config.name, config.retry.attempts)
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout_seconds,
            headers=dict(config.headers),
            auth=httpx.BasicAuth(*config.auth) if config.auth else None,
            transport=RetryTransport(transport=transport, retry=build_retry(config.retry)),
        )

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(self, url: str, *, params: Mapping[str, str] | None = None) -> httpx.Response:
        if self._limiter is None:
            return await self._client.get(url, params=params)
        async with self._limiter:
            return await self._client.get(url, params=params)
