from __future__ import annotations

import logging
from typing import Optional

import psutil

from src.monitor_api.config import BackendConfig
from src.monitor_api.schemas.snapshots import CpuSection, HostSnapshot, UsageSection

logger = logging.getLogger(__name__)


def _round1(v: float) -> float:
    return round(float(v), 1)


def _percent(used: float, total: float) -> Optional[float]:
    if total <= 0:
        return None
    return _round1(used / total * 100.0)


def _cpu_section(config: BackendConfig) -> CpuSection:
    try:
        load = float(psutil.getloadavg()[0])
    except (OSError, AttributeError, IndexError, TypeError, ValueError):
        logger.warning("Host collector could not read the load average", exc_info=True)
        return CpuSection()
    return CpuSection(load_1min=load, percent=_round1(load / max(1, config.host_cpu_cores) * 100.0))


def _memory_section() -> UsageSection:
    try:
        mem = psutil.virtual_memory()
        total, available = int(mem.total), int(mem.available)
    except (OSError, AttributeError, TypeError, ValueError):
        logger.warning("Host collector could not read memory usage", exc_info=True)
        return UsageSection()
    # "used" is total minus available so page cache counts as free
    used = max(0, total - available)
    return UsageSection(total=total, used=used, percent=_percent(used, total))


def _disk_section(config: BackendConfig) -> UsageSection:
    try:
        usage = psutil.disk_usage(config.host_disk_path)
    except OSError:
        logger.warning("Host collector could not stat %s", config.host_disk_path, exc_info=True)
        return UsageSection()
    return UsageSection(total=usage.total, used=usage.used, percent=_percent(usage.used, usage.total))


# PUBLIC_INTERFACE
def fetch_host_snapshot(config: BackendConfig) -> HostSnapshot:
    """Read CPU load, memory and disk usage. Each section degrades to empty on its own failure."""
    return HostSnapshot(
        cpu=_cpu_section(config),
        memory=_memory_section(),
        disk=_disk_section(config),
    )
