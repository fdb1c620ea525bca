"""
Adapter for BrasilAPI (brasilapi.com.br) -- CNPJ v1 endpoint.
"""
from __future__ import annotations

from typing import Any, Dict

from domain.models import ProviderId
from .base import BaseParser
from .errors import ApplicationError


class BrasilAPIParser(BaseParser):
    """Fetch the company record from BrasilAPI."""

    PROVIDER = ProviderId.BRASILAPI
    BASE_URL = "https://brasilapi.com.br/api/cnpj/v1/"
    MAX_ATTEMPTS = 2
    RETRY_DELAY = 1.5

    async def fetch(self, cnpj: str) -> Dict[str, Any]:
        data = await self._get_json(f"{self.base_url}{cnpj}")

        if not isinstance(data, dict):
            raise ApplicationError("unexpected payload type")
        if not data.get("cnpj"):
            # e.g. {"message": "...", "type": "service_error", "name": "CnpjPromiseError"}
            message = data.get("message") or data.get("type") or "payload without cnpj"
            raise ApplicationError(f"BrasilAPI error: {message}")
        return data
