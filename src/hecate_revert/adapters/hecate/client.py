"""HTTP client for the Hecate delta and feature history endpoints."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any, cast

import httpx
from pydantic import ValidationError

from hecate_revert.adapters.http_resilience import ResilientClient

from .schema import DeltaResponse, HistoryResponse
from .translator import translate_delta

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from hecate_revert.config.hecate import HecateConfig
    from hecate_revert.config.http_resilience import ResilienceConfig
    from hecate_revert.domain.model import Delta, WrappedHistory

log = getLogger(__name__)


class HecateAPIError(RuntimeError):
    """Raised when the Hecate API fails or returns an unexpected payload."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class HecateClient:
    """Async client implementing ``RemoteHistorySource`` against a Hecate server.

    Use as an async context manager; one HTTP connection pool serves every call
    made inside the block.
    """

    def __init__(
        self,
        *,
        config: HecateConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient
        self._client: ResilientClient | None = None

    async def __aenter__(self) -> HecateClient:
        self._client = self._client_factory(self._resilience)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch_delta(self, delta_id: int) -> Delta:
        payload = await self._get_json(f"api/delta/{delta_id}")
        try:
            response = DeltaResponse.model_validate(payload)
        except ValidationError as exc:
            raise HecateAPIError(f"Unexpected delta {delta_id} payload: {exc}") from exc
        return translate_delta(delta_id, response)

    async def fetch_history(self, entity_id: int) -> WrappedHistory:
        payload = await self._get_json(f"api/data/feature/{entity_id}/history")
        try:
            HistoryResponse.validate_python(payload)
        except ValidationError as exc:
            raise HecateAPIError(
                f"Unexpected history payload for feature {entity_id}: {exc}"
            ) from exc
        return cast(list[dict[str, Any]], payload)

    async def _get_json(self, path: str) -> object:
        if self._client is None:
            raise HecateAPIError("HecateClient used outside of 'async with'")
        try:
            response = await self._client.get(path)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise HecateAPIError(
                f"{status}: {exc.response.reason_phrase} ({path})", status_code=status
            ) from exc
        except httpx.HTTPError as exc:
            raise HecateAPIError(f"Request to {path} failed: {exc}") from exc

        log.debug("GET %s -> %s", path, response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            raise HecateAPIError(f"Response from {path} is not JSON") from exc
