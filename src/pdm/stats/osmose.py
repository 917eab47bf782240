"""Osmose QA API client for issue counts over time of one item/class."""

from __future__ import annotations

from datetime import date

import httpx

from pdm.projects.registry import DataSource

GRAPH_PATH = "/fr/errors/graph.json"


class OsmoseClient:
    """Thin async wrapper over the Osmose ``graph.json`` endpoint."""

    def __init__(self, base_url: str, timeout: float = 10.0, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def issue_counts(
        self,
        source: DataSource,
        start_date: date,
        end_date: date | None,
    ) -> list[tuple[str, int]]:
        """Return ``(date, count)`` pairs sorted by date ascending."""
        params = {
            "item": source.item,
            "class": source.class_,
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat() if end_date else None,
            "country": source.country,
        }
        params = {k: v for k, v in params.items() if v is not None}

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.get(f"{self.base_url}{GRAPH_PATH}", params=params)
            response.raise_for_status()
            payload = response.json()

        data = payload.get("data") or {}
        return sorted(((str(k), v) for k, v in data.items()), key=lambda e: e[0])
