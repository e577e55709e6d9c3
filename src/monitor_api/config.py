from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    """Parse an int env var with a default."""
    try:
        return int(os.getenv(name, str(default)))
    except Exception:
        return int(default)


def _env_float(name: str, default: float) -> float:
    """Parse a float env var with a default."""
    try:
        return float(os.getenv(name, str(default)))
    except Exception:
        return float(default)


def _env_bool(name: str, default: bool = False) -> bool:
    """Parse a bool env var (true/false/1/0/yes/no/on/off)."""
    raw = os.getenv(name)
    if raw is None:
        return bool(default)
    val = raw.strip().lower()
    if val in ("1", "true", "yes", "y", "on"):
        return True
    if val in ("0", "false", "no", "n", "off"):
        return False
    return bool(default)


def _env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    """Return a stripped env var, treating empty strings as unset."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def _clamp_int(v: int, lo: int, hi: int) -> int:
    """Clamp integer to [lo, hi]."""
    return max(lo, min(hi, int(v)))


@dataclass(frozen=True)
class BackendConfig:
    """Runtime configuration loaded from env."""

    host: str
    port: int

    # Metrics store (Prometheus HTTP API).
    prometheus_url: str
    prometheus_timeout_sec: float
    history_duration: str
    history_step: str

    # Host collector: 1-minute load is divided by this to produce a CPU percent.
    host_cpu_cores: int
    host_disk_path: str

    # Subprocess-backed collectors.
    nvidia_smi_bin: str
    kubectl_bin: str
    collector_timeout_sec: float

    # Alerts engine: whether a workload's first sighting only establishes a baseline.
    alert_baseline_first_sighting: bool

    dashboard_static_dir: Optional[str]
    log_level: str


# PUBLIC_INTERFACE
def load_config() -> BackendConfig:
    """Load BackendConfig from env vars."""
    port = _clamp_int(_env_int("MONITOR_PORT", 8888), 1, 65535)

    prometheus_url = (_env_str("PROMETHEUS_URL", "http://localhost:9090") or "").rstrip("/")
    prometheus_timeout = max(0.5, _env_float("PROMETHEUS_TIMEOUT_SEC", 10.0))

    cores = _env_int("HOST_CPU_CORES", os.cpu_count() or 1)
    cores = max(1, cores)

    collector_timeout = max(0.5, _env_float("COLLECTOR_TIMEOUT_SEC", 10.0))

    log_level = (_env_str("LOG_LEVEL", "INFO") or "INFO").upper()
    if log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        log_level = "INFO"

    cfg = BackendConfig(
        host=_env_str("MONITOR_HOST", "0.0.0.0") or "0.0.0.0",
        port=port,
        prometheus_url=prometheus_url,
        prometheus_timeout_sec=prometheus_timeout,
        history_duration=_env_str("HISTORY_DURATION", "30m") or "30m",
        history_step=_env_str("HISTORY_STEP", "30s") or "30s",
        host_cpu_cores=cores,
        host_disk_path=_env_str("HOST_DISK_PATH", "/") or "/",
        nvidia_smi_bin=_env_str("NVIDIA_SMI_BIN", "nvidia-smi") or "nvidia-smi",
        kubectl_bin=_env_str("KUBECTL_BIN", "kubectl") or "kubectl",
        collector_timeout_sec=collector_timeout,
        alert_baseline_first_sighting=_env_bool("ALERT_BASELINE_FIRST_SIGHTING", True),
        dashboard_static_dir=_env_str("DASHBOARD_STATIC_DIR"),
        log_level=log_level,
    )

    logger.info(
        "Resolved monitor config prometheus=%s cores=%s collector_timeout=%ss baseline_first_sighting=%s",
        cfg.prometheus_url,
        cfg.host_cpu_cores,
        cfg.collector_timeout_sec,
        cfg.alert_baseline_first_sighting,
    )
    return cfg
