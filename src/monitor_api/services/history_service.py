from __future__ import annotations

import asyncio
import logging
import math
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from src.monitor_api.schemas.history import HistoryResponse, HistorySeries
from src.monitor_api.services.prometheus_client import PrometheusClient, RangeSeries

logger = logging.getLogger(__name__)

# Chart key -> PromQL. Keys match HistoryResponse aliases.
HISTORY_QUERIES: Dict[str, str] = {
    "cpu": '100 - (avg(rate(node_cpu_seconds_total{mode="idle"}[1m])) * 100)',
    "memory": "100 - (node_memory_MemAvailable_bytes / node_memory_MemTotal_bytes * 100)",
    "disk": (
        '100 - (node_filesystem_avail_bytes{mountpoint="/"} '
        '/ node_filesystem_size_bytes{mountpoint="/"} * 100)'
    ),
    "gpuUtil": "avg(DCGM_FI_DEV_GPU_UTIL)",
    "gpuMem": "avg(DCGM_FI_DEV_FB_USED)",
    "gpuTemp": "avg(DCGM_FI_DEV_GPU_TEMP)",
}


def _time_label(ts: float) -> Optional[str]:
    try:
        return datetime.fromtimestamp(ts).strftime("%H:%M")
    except (OverflowError, OSError, ValueError):
        return None


# PUBLIC_INTERFACE
def to_chart_series(results: Sequence[RangeSeries]) -> HistorySeries:
    """
    Format the first series of a range result for charting.

    Labels are local HH:MM, values rounded to one decimal; points with a non-numeric
    value or timestamp are dropped so labels and data stay aligned.
    """
    if not results:
        return HistorySeries()
    first = results[0]
    labels: List[str] = []
    data: List[float] = []
    for ts, v in zip(first.timestamps, first.values):
        if not math.isfinite(ts) or not math.isfinite(v):
            continue
        label = _time_label(ts)
        if label is None:
            continue
        labels.append(label)
        data.append(round(v, 1))
    return HistorySeries(labels=labels, data=data)


# PUBLIC_INTERFACE
async def get_history(
    client: PrometheusClient,
    duration: str,
    step: str,
    end: Optional[float] = None,
) -> HistoryResponse:
    """Run all history queries concurrently and assemble the chart payload."""
    keys = list(HISTORY_QUERIES.keys())
    results = await asyncio.gather(
        *(client.query_range(HISTORY_QUERIES[k], duration=duration, step=step, end=end) for k in keys)
    )
    charts = {k: to_chart_series(r) for k, r in zip(keys, results)}
    logger.debug("History assembled duration=%s step=%s points=%s", duration, step, {k: len(v.data) for k, v in charts.items()})
    return HistoryResponse(**charts)
