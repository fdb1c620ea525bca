"""
Adapter for open.cnpja.com -- the authoritative source.

Fetches the office record: company, address, status, activities, contacts,
state registrations (IE) and Simples/SIMEI options.
"""
from __future__ import annotations

from typing import Any, Dict

from domain.models import ProviderId
from .base import BaseParser
from .errors import ApplicationError


class CNPJAParser(BaseParser):
    """Fetch the office record from the CNPJá open API."""

    PROVIDER = ProviderId.CNPJA
    BASE_URL = "https://open.cnpja.com/office/"
    # Authoritative data is not retried: a failure falls back to the others.
    MAX_ATTEMPTS = 1

    async def fetch(self, cnpj: str) -> Dict[str, Any]:
        data = await self._get_json(f"{self.base_url}{cnpj}")

        if not isinstance(data, dict):
            raise ApplicationError("unexpected payload type")
        if not data.get("taxId"):
            message = data.get("message") or data.get("code") or "payload without taxId"
            raise ApplicationError(f"CNPJá error: {message}")
        return data
