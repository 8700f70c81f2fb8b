"""Zerion wallet positions.

GET https://api.zerion.io/v1/wallets/{address}/positions/ returns the
fungible positions of a wallet, already priced in USD. Auth is HTTP Basic
with the API key as username and an empty password.
"""
from __future__ import annotations

import base64
import logging
from typing import Any

import httpx

from assetly.config import settings
from assetly.portfolio.models import TokenPosition
from assetly.portfolio.tokens import is_stablecoin
from assetly.providers.base import ProviderClient

logger = logging.getLogger(__name__)

# Trash-flagged positions are dropped, except these (Zerion flags testnet LINK)
_KEEP_EVEN_IF_TRASH = {"LINK"}


class ZerionClient(ProviderClient):
    name = "zerion"
    base_url = "https://api.zerion.io/v1"

    def __init__(
        self,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(transport, **kwargs)
        self.api_key = api_key if api_key is not None else settings.zerion_api_key

    def _headers(self) -> dict[str, str]:
        key = self._require_key(self.api_key, "ZERION_API_KEY")
        token = base64.b64encode(f"{key}:".encode()).decode()
        headers = {"accept": "application/json", "authorization": f"Basic {token}"}
        if settings.zerion_env:
            headers["X-Env"] = settings.zerion_env
        return headers

    async def get_wallet_positions(self, address: str) -> list[dict]:
        """Return the raw ``data`` list of all position pages."""
        headers = self._headers()
        url: str | None = f"/wallets/{address.lower()}/positions/"
        params: dict[str, str] | None = {
            "filter[positions]": "only_simple",
            "currency": "usd",
            "filter[trash]": "no_filter",
            "sort": "value",
        }
        positions: list[dict] = []
        while url:
            page = await self._get(url, params=params, headers=headers)
            positions.extend(page.get("data", []))
            url = (page.get("links") or {}).get("next")
            params = None  # the next link already carries the query
        logger.info("Zerion returned %d positions for %s", len(positions), address)
        return positions


def parse_positions(payload: list[dict] | dict) -> list[TokenPosition]:
    """Flatten Zerion position objects into TokenPosition rows.

    Accepts either the ``data`` list or the whole response body.
    """
    items = payload.get("data", []) if isinstance(payload, dict) else payload
    positions: list[TokenPosition] = []
    for item in items:
        attrs = item.get("attributes") or {}
        info = attrs.get("fungible_info") or {}
        symbol = info.get("symbol") or "?"
        flags = attrs.get("flags") or {}
        if flags.get("is_trash") and symbol.upper() not in _KEEP_EVEN_IF_TRASH:
            continue

        quantity = (attrs.get("quantity") or {}).get("numeric") or 0
        implementations = info.get("implementations") or []
        chain = (((item.get("relationships") or {}).get("chain") or {}).get("data") or {}).get("id", "")
        token_address = implementations[0].get("address") if implementations else None

        positions.append(TokenPosition(
            symbol=symbol,
            name=info.get("name") or symbol,
            quantity=float(quantity),
            value_usd=float(attrs.get("value") or 0),
            price=float(attrs["price"]) if attrs.get("price") is not None else None,
            chain=chain,
            token_address=token_address,
            is_stablecoin=is_stablecoin(symbol),
        ))
    return positions
