from __future__ import annotations

import logging
from typing import Optional

from src.monitor_api.config import BackendConfig
from src.monitor_api.schemas.snapshots import AcceleratorReading, AcceleratorSnapshot
from src.monitor_api.services.commands import run_command

logger = logging.getLogger(__name__)

GPU_QUERY_FIELDS = "index,name,utilization.gpu,memory.used,memory.total,temperature.gpu"


def _int_or_none(raw: str) -> Optional[int]:
    # nvidia-smi prints "[N/A]" / "[Not Supported]" for unavailable fields
    try:
        return int(float(raw))
    except (ValueError, OverflowError):
        return None


# PUBLIC_INTERFACE
def parse_gpu_csv(output: str) -> AcceleratorSnapshot:
    """Parse `nvidia-smi --format=csv,noheader,nounits` output into readings ordered by index."""
    readings: AcceleratorSnapshot = []
    for line in output.splitlines():
        if not line.strip():
            continue
        parts = [p.strip() for p in line.split(",")]
        if len(parts) < 6:
            logger.warning("Skipping malformed nvidia-smi line: %r", line)
            continue
        readings.append(
            AcceleratorReading(
                index=_int_or_none(parts[0]) or 0,
                name=parts[1],
                utilization=_int_or_none(parts[2]),
                memoryUsed=_int_or_none(parts[3]),
                memoryTotal=_int_or_none(parts[4]),
                temperature=_int_or_none(parts[5]),
            )
        )
    readings.sort(key=lambda r: r.index)
    return readings


# PUBLIC_INTERFACE
def fetch_accelerator_snapshot(config: BackendConfig) -> AcceleratorSnapshot:
    """Query nvidia-smi for all GPUs. Returns [] when there are no GPUs or the tool fails."""
    output = run_command(
        [
            config.nvidia_smi_bin,
            f"--query-gpu={GPU_QUERY_FIELDS}",
            "--format=csv,noheader,nounits",
        ],
        timeout=config.collector_timeout_sec,
    )
    if output is None:
        return []
    return parse_gpu_csv(output)
