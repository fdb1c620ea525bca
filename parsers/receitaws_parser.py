"""
Adapter for ReceitaWS (receitaws.com.br).

The public endpoint does not allow cross-origin calls, so requests go through
an allorigins-style proxy that wraps the body as a JSON string:
``{"contents": "<json>", "status": {"http_code": 200}}``. Set the proxy URL to
an empty string to call ReceitaWS directly.

ReceitaWS answers HTTP 200 with ``{"status": "ERROR", "message": ...}`` for
unknown or rate-limited lookups; that counts as a failed attempt.
"""
from __future__ import annotations

import json
from typing import Any, Dict, Optional

from domain.models import ProviderId
from .base import BaseParser
from .errors import ApplicationError, TransportError


DEFAULT_PROXY_URL = "https://api.allorigins.win/get"


class ReceitaWSParser(BaseParser):
    """Fetch the Receita Federal record mirrored by ReceitaWS."""

    PROVIDER = ProviderId.RECEITAWS
    BASE_URL = "https://www.receitaws.com.br/v1/cnpj/"
    MAX_ATTEMPTS = 3
    RETRY_DELAY = 1.5

    def __init__(self, *args, proxy_url: Optional[str] = DEFAULT_PROXY_URL, **kwargs):
        super().__init__(*args, **kwargs)
        self.proxy_url = proxy_url

    async def fetch(self, cnpj: str) -> Dict[str, Any]:
        target = f"{self.base_url}{cnpj}"
        if self.proxy_url:
            data = await self._fetch_via_proxy(target)
        else:
            data = await self._get_json(target)

        if not isinstance(data, dict):
            raise ApplicationError("unexpected payload type")
        if data.get("status") == "ERROR":
            raise ApplicationError(f"ReceitaWS error: {data.get('message') or 'status ERROR'}")
        return data

    async def _fetch_via_proxy(self, target: str) -> Any:
        envelope = await self._get_json(self.proxy_url, params={"url": target})
        if not isinstance(envelope, dict):
            raise TransportError("unexpected proxy envelope")

        http_code = (envelope.get("status") or {}).get("http_code")
        if http_code and http_code >= 400:
            raise TransportError(f"proxied HTTP {http_code}")

        contents = envelope.get("contents")
        if not contents:
            raise TransportError("proxy returned empty contents")
        try:
            return json.loads(contents)
        except ValueError as e:
            raise TransportError("proxied body is not valid JSON") from e
