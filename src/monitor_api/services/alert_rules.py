from __future__ import annotations

import logging
import math
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from src.monitor_api.schemas.alerts import Alert, AlertBundle
from src.monitor_api.schemas.common import Tier
from src.monitor_api.schemas.snapshots import AcceleratorReading, HostSnapshot, WorkloadInstance
from src.monitor_api.services.alert_state import SEED_OBSERVATION, WorkloadObservation, WorkloadStateStore

logger = logging.getLogger(__name__)

PERCENT_CRITICAL = 95.0
PERCENT_SERIOUS = 85.0
PERCENT_MINOR = 70.0

GPU_TEMP_CRITICAL = 85.0
GPU_TEMP_SERIOUS = 75.0

RUNNING = "Running"
PENDING = "Pending"
TERMINAL_STATUSES = ("Failed", "Error")

# (title, description prefix, remediation) per metric and tier.
_HOST_COPY: Dict[str, Dict[Tier, Tuple[str, str, str]]] = {
    "cpu": {
        Tier.critical: (
            "CPU usage critical",
            "Current CPU usage",
            "1. Look for runaway processes 2. Add CPU cores 3. Optimize the heaviest services",
        ),
        Tier.serious: (
            "CPU usage high",
            "Current CPU usage",
            "1. Inspect the top CPU consumers 2. Add CPU or more instances 3. Check for abnormal traffic",
        ),
        Tier.minor: (
            "CPU usage elevated",
            "Current CPU usage",
            "Keep monitoring; scale up if the trend continues",
        ),
    },
    "memory": {
        Tier.critical: (
            "Memory usage critical",
            "Current memory usage",
            "1. Drop page caches (echo 3 > /proc/sys/vm/drop_caches) 2. Restart memory-heavy services 3. Add memory",
        ),
        Tier.serious: (
            "Memory usage high",
            "Current memory usage",
            "1. Check for memory leaks 2. Add swap 3. Plan a memory upgrade",
        ),
        Tier.minor: (
            "Memory usage elevated",
            "Current memory usage",
            "Watch the memory trend; add memory if it keeps growing",
        ),
    },
    "disk": {
        Tier.critical: (
            "Disk space exhausted",
            "Disk usage",
            "1. Clean up log files now 2. Remove unused images and containers 3. Expand the disk",
        ),
        Tier.serious: (
            "Disk space low",
            "Disk usage",
            "1. Rotate old logs 2. Delete temporary files 3. Plan a disk expansion",
        ),
        Tier.minor: (
            "Disk usage elevated",
            "Disk usage",
            "Watch disk growth and clean up periodically",
        ),
    },
}

_GPU_MEMORY_COPY: Dict[Tier, Tuple[str, str]] = {
    Tier.critical: ("GPU memory exhausted", "1. Reduce batch_size 2. Quantize the model 3. Add GPUs or shard across devices"),
    Tier.serious: ("GPU memory usage high", "Profile inference workloads and trim GPU memory usage"),
    Tier.minor: ("GPU memory usage elevated", "Keep monitoring GPU memory usage"),
}

_GPU_TEMP_COPY: Dict[Tier, Tuple[str, str]] = {
    Tier.critical: ("GPU temperature critical", "1. Check the GPU fans 2. Reduce compute load 3. Improve room cooling"),
    Tier.serious: ("GPU temperature high", "Watch the temperature trend and inspect the cooling system"),
}


class AlertEvaluationError(RuntimeError):
    """Raised when an evaluation cannot complete; no bundle and no state change result."""


def _usable(value: Optional[float]) -> Optional[float]:
    """Return value as float, or None when absent or not a finite number."""
    if value is None:
        return None
    try:
        v = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(v) or math.isinf(v):
        return None
    return v


# PUBLIC_INTERFACE
def classify_percent(
    value: Optional[float],
    critical: float = PERCENT_CRITICAL,
    serious: float = PERCENT_SERIOUS,
    minor: Optional[float] = PERCENT_MINOR,
) -> Optional[Tier]:
    """
    Map a reading onto at most one tier using strict '>' breakpoints; highest tier wins.

    A boundary value falls into the lower tier. Absent/NaN readings classify as None.
    Pass minor=None for scales without a minor tier.
    """
    v = _usable(value)
    if v is None:
        return None
    if v > critical:
        return Tier.critical
    if v > serious:
        return Tier.serious
    if minor is not None and v > minor:
        return Tier.minor
    return None


# PUBLIC_INTERFACE
def host_metric_alert(metric: str, value: Optional[float]) -> Optional[Alert]:
    """Build the alert for a host percent metric ('cpu', 'memory' or 'disk'), if any."""
    tier = classify_percent(value)
    if tier is None:
        return None
    title, prefix, fix = _HOST_COPY[metric][tier]
    return Alert(tier=tier, title=title, description=f"{prefix} {float(value):.1f}%", remediation=fix)


# PUBLIC_INTERFACE
def accelerator_alerts(accelerators: Sequence[AcceleratorReading]) -> List[Alert]:
    """
    Memory-pressure and temperature alerts for the first device.

    The two checks are independent; temperature has no minor tier.
    """
    if not accelerators:
        return []
    gpu = accelerators[0]
    out: List[Alert] = []

    used = _usable(gpu.memory_used)
    total = _usable(gpu.memory_total)
    if used is not None and total is not None and total > 0:
        pct = used / total * 100.0
        tier = classify_percent(pct)
        if tier is not None:
            title, fix = _GPU_MEMORY_COPY[tier]
            out.append(
                Alert(
                    tier=tier,
                    title=title,
                    description=f"GPU memory used {gpu.memory_used}/{gpu.memory_total} MB ({pct:.1f}%)",
                    remediation=fix,
                )
            )

    tier = classify_percent(gpu.temperature, critical=GPU_TEMP_CRITICAL, serious=GPU_TEMP_SERIOUS, minor=None)
    if tier is not None:
        title, fix = _GPU_TEMP_COPY[tier]
        out.append(Alert(tier=tier, title=title, description=f"GPU temperature {gpu.temperature}°C", remediation=fix))

    return out


def _recovery_alert(pod: WorkloadInstance, prior: WorkloadObservation) -> Alert:
    return Alert(
        tier=Tier.serious,
        title=f"Pod recovered: {pod.name}",
        description=f"Namespace: {pod.namespace}, previous status: {prior.status}",
        remediation=f"Check the earlier failure cause: kubectl describe pod {pod.name} -n {pod.namespace}",
    )


def _restart_alert(pod: WorkloadInstance, prior: WorkloadObservation) -> Alert:
    delta = pod.restarts - prior.restart_count
    return Alert(
        tier=Tier.serious,
        title=f"Pod restarted: {pod.name}",
        description=f"Namespace: {pod.namespace}, restarts: {pod.restarts} (increased by {delta})",
        remediation=f"kubectl logs {pod.name} -n {pod.namespace} --previous to see logs from before the restart",
    )


def _status_alert(pod: WorkloadInstance) -> Optional[Alert]:
    if pod.status in TERMINAL_STATUSES:
        return Alert(
            tier=Tier.critical,
            title=f"Pod failed: {pod.name}",
            description=f"Namespace: {pod.namespace}, status: {pod.status}",
            remediation=f"kubectl describe pod {pod.name} -n {pod.namespace}",
        )
    if pod.status == PENDING:
        return Alert(
            tier=Tier.serious,
            title=f"Pod pending scheduling: {pod.name}",
            description=f"Namespace: {pod.namespace}",
            remediation=f"kubectl describe pod {pod.name} -n {pod.namespace}",
        )
    return None


# PUBLIC_INTERFACE
def detect_workload_transitions(
    workloads: Iterable[WorkloadInstance],
    store: WorkloadStateStore,
    bundle: AlertBundle,
    *,
    baseline_first_sighting: bool = True,
) -> None:
    """
    Compare each pod with its prior observation, emit transition and status alerts, then commit.

    Per pod: seed missing history, check recovery (non-Running -> Running), check restart-count
    increase, check terminal/pending status, record the observation. Afterwards the store is
    replaced by exactly the pods seen in this poll.

    With baseline_first_sighting, a seeded prior never triggers recovery or restart alerts.
    Every pod is compared against the previous poll only, so a pod listed twice in one poll
    cannot transition against itself. The store is only written once every pod has been processed.
    """
    with store.exclusive():
        previous = store.snapshot()
        seen: Dict[str, WorkloadObservation] = {}

        for pod in workloads:
            key = pod.key
            prior = previous.get(key, SEED_OBSERVATION)

            compare = not (prior.seeded and baseline_first_sighting)

            if compare and prior.status != RUNNING and pod.status == RUNNING:
                bundle.add(_recovery_alert(pod, prior))

            if compare and pod.restarts > prior.restart_count and pod.restarts > 0:
                bundle.add(_restart_alert(pod, prior))

            status_alert = _status_alert(pod)
            if status_alert is not None:
                bundle.add(status_alert)

            seen[key] = WorkloadObservation(status=pod.status, restart_count=pod.restarts, age_label=pod.age)

        store.replace(seen)


# PUBLIC_INTERFACE
def evaluate_alerts(
    host: Optional[HostSnapshot],
    accelerators: Optional[Sequence[AcceleratorReading]],
    workloads: Optional[Iterable[WorkloadInstance]],
    store: WorkloadStateStore,
    *,
    baseline_first_sighting: bool = True,
) -> AlertBundle:
    """
    Run every rule against one set of snapshots and return the tiered bundle.

    Missing snapshots or fields are skipped. Any unexpected failure is raised as
    AlertEvaluationError and leaves the retained state untouched.
    """
    host = host or HostSnapshot()
    bundle = AlertBundle()
    try:
        for metric, value in (
            ("cpu", host.cpu_percent),
            ("memory", host.mem_percent),
            ("disk", host.disk_percent),
        ):
            alert = host_metric_alert(metric, value)
            if alert is not None:
                bundle.add(alert)

        for alert in accelerator_alerts(accelerators or []):
            bundle.add(alert)

        detect_workload_transitions(
            workloads or [],
            store,
            bundle,
            baseline_first_sighting=baseline_first_sighting,
        )
    except Exception as exc:
        logger.exception("Alert evaluation failed")
        raise AlertEvaluationError(str(exc) or exc.__class__.__name__) from exc

    logger.debug("Alert evaluation done counts=%s retained=%s", bundle.counts(), len(store))
    return bundle
