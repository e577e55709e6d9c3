from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from src.monitor_api.config import BackendConfig
from src.monitor_api.schemas.common import utc_now
from src.monitor_api.schemas.snapshots import WorkloadInstance
from src.monitor_api.services.commands import run_command

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
def format_age(seconds: float) -> str:
    """Render an elapsed duration the way the dashboard shows pod age: '3d 4h', '2h 5m' or '7m'."""
    s = max(0, int(seconds))
    days, rem = divmod(s, 86400)
    hours, rem = divmod(rem, 3600)
    minutes = rem // 60
    if days > 0:
        return f"{days}d {hours}h"
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def _parse_start_time(raw: Any) -> Optional[datetime]:
    if not isinstance(raw, str) or not raw:
        return None
    try:
        dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def _pod_from_item(item: Dict[str, Any], now: datetime) -> WorkloadInstance:
    meta = item.get("metadata") or {}
    status = item.get("status") or {}

    restarts = 0
    for cs in status.get("containerStatuses") or []:
        restarts += int(cs.get("restartCount") or 0)

    started = _parse_start_time(status.get("startTime"))
    age = format_age((now - started).total_seconds()) if started else "0m"

    return WorkloadInstance(
        namespace=meta.get("namespace") or "default",
        name=meta.get("name") or "",
        status=status.get("phase") or "Unknown",
        restarts=max(0, restarts),
        age=age,
    )


# PUBLIC_INTERFACE
def parse_pod_list(payload: Dict[str, Any], now: Optional[datetime] = None) -> List[WorkloadInstance]:
    """Convert a `kubectl get pods -o json` document into WorkloadInstances (unnamed items skipped)."""
    now = now or utc_now()
    pods: List[WorkloadInstance] = []
    for item in payload.get("items") or []:
        pod = _pod_from_item(item, now)
        if pod.name:
            pods.append(pod)
    return pods


# PUBLIC_INTERFACE
def fetch_workload_instances(config: BackendConfig) -> List[WorkloadInstance]:
    """List pods in all namespaces via kubectl. Returns [] on any failure."""
    output = run_command(
        [config.kubectl_bin, "get", "pods", "-A", "-o", "json"],
        timeout=config.collector_timeout_sec,
    )
    if output is None:
        return []
    try:
        payload = json.loads(output)
        return parse_pod_list(payload)
    except (ValueError, TypeError, AttributeError):
        logger.exception("Could not parse kubectl pod list")
        return []
