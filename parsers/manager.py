"""
Parser manager -- runs the three CNPJ source adapters concurrently.

Usage:
    from parsers.manager import ParserManager

    mgr = ParserManager()
    async for outcome in mgr.stream("11222333000181"):
        ...  # Success / Failure, in completion order
    await mgr.close()
"""
from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Dict, Iterable, List, Optional

import config_env as config
from domain.models import FetchOutcome, ProviderId, Success
from .base import BaseParser
from .brasilapi_parser import BrasilAPIParser
from .cnpja_parser import CNPJAParser
from .receitaws_parser import ReceitaWSParser

logger = logging.getLogger(__name__)


def build_default_parsers() -> List[BaseParser]:
    """Adapters configured from config_env (URLs, timeout, retry policy)."""
    return [
        CNPJAParser(
            base_url=config.CNPJA_BASE_URL,
            max_attempts=config.CNPJA_MAX_ATTEMPTS,
            retry_delay=config.RETRY_DELAY_SECONDS,
            timeout=config.HTTP_TIMEOUT_SECONDS,
        ),
        ReceitaWSParser(
            base_url=config.RECEITAWS_BASE_URL,
            proxy_url=config.RECEITAWS_PROXY_URL or None,
            max_attempts=config.RECEITAWS_MAX_ATTEMPTS,
            retry_delay=config.RETRY_DELAY_SECONDS,
            timeout=config.HTTP_TIMEOUT_SECONDS,
        ),
        BrasilAPIParser(
            base_url=config.BRASILAPI_BASE_URL,
            max_attempts=config.BRASILAPI_MAX_ATTEMPTS,
            retry_delay=config.RETRY_DELAY_SECONDS,
            timeout=config.HTTP_TIMEOUT_SECONDS,
        ),
    ]


class ParserManager:
    """Fan-out over all adapters for one CNPJ, fan-in as a single stream."""

    def __init__(self, parsers: Optional[Iterable[BaseParser]] = None):
        if parsers is None:
            parsers = build_default_parsers()
        self.parsers: Dict[ProviderId, BaseParser] = {p.PROVIDER: p for p in parsers}

    @property
    def providers(self) -> List[ProviderId]:
        return list(self.parsers)

    async def stream(self, cnpj: str) -> AsyncIterator[FetchOutcome]:
        """Start every adapter at once and yield outcomes as they complete.

        The adapter tasks are never cancelled: they run to completion,
        retries included, whatever the consumer does with the results.
        """
        tasks = [
            asyncio.create_task(parser.query(cnpj), name=f"{provider.value}:{cnpj}")
            for provider, parser in self.parsers.items()
        ]
        for next_done in asyncio.as_completed(tasks):
            yield await next_done

    async def fetch_all(self, cnpj: str) -> Dict[ProviderId, FetchOutcome]:
        """Wait for every adapter and return the outcomes keyed by provider."""
        output: Dict[ProviderId, FetchOutcome] = {}
        async for outcome in self.stream(cnpj):
            output[outcome.provider] = outcome

        filled = sum(1 for v in output.values() if isinstance(v, Success))
        logger.info(f"📊 ParserManager: {filled}/{len(output)} sources returned data for CNPJ {cnpj}")
        return output

    async def close(self):
        """Close all HTTP clients."""
        await asyncio.gather(*(parser.close() for parser in self.parsers.values()))
