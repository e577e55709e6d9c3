"""
Minimal async client for the Prometheus HTTP API.

Only what the dashboard needs: instant queries that yield a single number and range queries
that yield (timestamp, value) series. Every failure is logged and reported as "no data".
"""

from __future__ import annotations

import logging
import math
import re
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_DURATION_SECONDS = 1800

_DURATION_RE = re.compile(r"(\d+)([smhd])")
_DURATION_UNITS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


# PUBLIC_INTERFACE
def parse_duration(value: str) -> int:
    """Parse '30s', '30m', '2h', '1d' into seconds; anything unparseable means 30 minutes."""
    m = _DURATION_RE.search(value or "")
    if not m:
        return DEFAULT_DURATION_SECONDS
    return int(m.group(1)) * _DURATION_UNITS[m.group(2)]


@dataclass
class RangeSeries:
    """One series of a range query; timestamps are unix seconds."""

    labels: Dict[str, str] = field(default_factory=dict)
    timestamps: List[float] = field(default_factory=list)
    values: List[float] = field(default_factory=list)


def _to_float(raw: Any) -> float:
    try:
        return float(raw)
    except (TypeError, ValueError):
        return math.nan


class PrometheusClient:
    """Async Prometheus HTTP API client with a lazily created, reusable connection pool."""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_seconds,
                headers={"Accept": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def _get_data(self, path: str, params: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """GET an API path and return its 'data' object when status == success."""
        try:
            client = await self._get_client()
            resp = await client.get(path, params=params)
            resp.raise_for_status()
            body = resp.json()
        except httpx.HTTPError as exc:
            logger.warning("Prometheus request failed path=%s query=%s: %s", path, params.get("query"), exc)
            return None
        except ValueError:
            logger.warning("Prometheus returned non-JSON body path=%s query=%s", path, params.get("query"))
            return None

        if not isinstance(body, dict) or body.get("status") != "success":
            logger.warning(
                "Prometheus query unsuccessful query=%s error=%s",
                params.get("query"),
                (body or {}).get("error") if isinstance(body, dict) else None,
            )
            return None
        data = body.get("data")
        return data if isinstance(data, dict) else None

    # PUBLIC_INTERFACE
    async def query(self, promql: str) -> Optional[float]:
        """Instant query; returns the first sample's value or None when there is no result."""
        data = await self._get_data("/api/v1/query", {"query": promql})
        result = (data or {}).get("result") or []
        if not result:
            return None
        try:
            return float(result[0]["value"][1])
        except (KeyError, IndexError, TypeError, ValueError):
            logger.warning("Unexpected instant query result shape for %s", promql)
            return None

    # PUBLIC_INTERFACE
    async def query_range(
        self,
        promql: str,
        duration: str = "30m",
        step: str = "30s",
        end: Optional[float] = None,
    ) -> List[RangeSeries]:
        """Range query over the trailing `duration`; returns [] on any failure."""
        end_ts = int(end if end is not None else time.time())
        start_ts = end_ts - parse_duration(duration)
        data = await self._get_data(
            "/api/v1/query_range",
            {"query": promql, "start": start_ts, "end": end_ts, "step": step},
        )
        result = (data or {}).get("result") or []
        if not isinstance(result, list):
            logger.warning("Unexpected range query result shape for %s", promql)
            return []

        series: List[RangeSeries] = []
        for r in result:
            if not isinstance(r, dict):
                continue
            metric = r.get("metric")
            values = r.get("values")
            if not isinstance(values, list):
                values = []
            # each sample is a [timestamp, "value"] pair
            pairs = [v for v in values if isinstance(v, list) and len(v) == 2]
            series.append(
                RangeSeries(
                    labels=dict(metric) if isinstance(metric, dict) else {},
                    timestamps=[_to_float(v[0]) for v in pairs],
                    values=[_to_float(v[1]) for v in pairs],
                )
            )
        return series

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None
