"""
Base class for all CNPJ source adapters.
"""
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from domain.models import FetchOutcome, Failure, ProviderId, SourceRecord, Success
from .errors import SourceError, TransportError

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; ConsultaCNPJBot/1.0)"


class BaseParser(ABC):
    """Abstract base class for provider adapters.

    Subclasses implement ``fetch`` and raise ``SourceError`` on a failed
    attempt. Callers use ``query``, which applies the retry policy and always
    resolves to a ``FetchOutcome``.
    """

    PROVIDER: ProviderId
    BASE_URL: str = ""
    TIMEOUT: float = 15
    MAX_ATTEMPTS: int = 1
    RETRY_DELAY: float = 1.5

    def __init__(
        self,
        base_url: Optional[str] = None,
        max_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.base_url = base_url or self.BASE_URL
        self.max_attempts = max(1, max_attempts or self.MAX_ATTEMPTS)
        self.retry_delay = self.RETRY_DELAY if retry_delay is None else retry_delay
        self.timeout = timeout or self.TIMEOUT
        self._transport = transport
        self._sleep = sleep
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def name(self) -> str:
        return self.PROVIDER.title

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"User-Agent": USER_AGENT},
                transport=self._transport,
            )
        return self._client

    async def close(self):
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _get_json(self, url: str, params: Optional[Dict[str, str]] = None) -> Any:
        """GET ``url`` and decode JSON, mapping every transport problem to TransportError."""
        client = await self._get_client()
        try:
            resp = await client.get(url, params=params)
        except httpx.HTTPError as e:
            raise TransportError(f"{type(e).__name__}: {e}") from e

        if not resp.is_success:
            raise TransportError(f"HTTP {resp.status_code}")
        try:
            return resp.json()
        except ValueError as e:
            raise TransportError("response body is not valid JSON") from e

    @abstractmethod
    async def fetch(self, cnpj: str) -> Dict[str, Any]:
        """Run one attempt for a normalized 14-digit CNPJ.

        Returns the provider's native record; raises SourceError on failure.
        """
        ...

    async def query(self, cnpj: str) -> FetchOutcome:
        """Fetch with retries. Never raises."""
        reason = "no attempt made"
        for attempt in range(1, self.max_attempts + 1):
            try:
                data = await self.fetch(cnpj)
            except SourceError as e:
                reason = str(e) or type(e).__name__
                logger.warning(
                    f"⚠️ {self.name}: attempt {attempt}/{self.max_attempts} failed for CNPJ {cnpj}: {reason}"
                )
            except Exception as e:
                reason = f"unexpected error: {e}"
                logger.warning(
                    f"⚠️ {self.name}: attempt {attempt}/{self.max_attempts} crashed for CNPJ {cnpj}: {e}"
                )
            else:
                logger.info(f"✅ {self.name}: data received for CNPJ {cnpj} (attempt {attempt})")
                return Success(SourceRecord(self.PROVIDER, data), attempts=attempt)

            if attempt < self.max_attempts:
                await self._sleep(self.retry_delay)

        logger.warning(f"❌ {self.name}: giving up on CNPJ {cnpj} after {self.max_attempts} attempt(s)")
        return Failure(self.PROVIDER, reason, attempts=self.max_attempts)
