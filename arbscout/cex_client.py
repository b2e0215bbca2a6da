"""Spot ETH/USD price from the Coinbase exchange-rates endpoint."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx


class CexError(Exception):
    """Raised when the exchange price cannot be fetched or parsed."""


def parse_coinbase_price(payload: Any) -> float:
    """Extract the USD rate from a decoded Coinbase exchange-rates response."""
    data = payload.get("data") if isinstance(payload, Mapping) else None
    rates = data.get("rates") if isinstance(data, Mapping) else None
    if not isinstance(rates, Mapping) or not all(
        isinstance(key, str) and isinstance(value, str) for key, value in rates.items()
    ):
        raise CexError("Failed to parse Coinbase response")

    usd_rate = rates.get("USD")
    if usd_rate is None:
        raise CexError("USD rate not found in Coinbase response")

    if usd_rate != usd_rate.strip() or "_" in usd_rate:
        raise CexError("Failed to parse USD rate as float")
    try:
        return float(usd_rate)
    except ValueError as exc:
        raise CexError("Failed to parse USD rate as float") from exc


class CexClient:
    """Client for a centralised-exchange price endpoint."""

    def __init__(self, api_url: str) -> None:
        self.api_url = api_url

    async def get_coinbase_price(self) -> float:
        """Fetch the current USD price of ETH."""
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(self.api_url)
        except httpx.HTTPError as exc:
            raise CexError("Failed to fetch from Coinbase API") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise CexError("Failed to parse Coinbase response") from exc
        return parse_coinbase_price(payload)