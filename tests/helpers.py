from __future__ import annotations

from typing import Optional

from src.monitor_api.schemas.snapshots import (
    AcceleratorReading,
    CpuSection,
    HostSnapshot,
    UsageSection,
    WorkloadInstance,
)


def host(cpu: Optional[float] = None, mem: Optional[float] = None, disk: Optional[float] = None) -> HostSnapshot:
    return HostSnapshot(
        cpu=CpuSection(percent=cpu),
        memory=UsageSection(percent=mem),
        disk=UsageSection(percent=disk),
    )


def gpu(used: Optional[int] = 10, total: Optional[int] = 100, temp: Optional[int] = 40, name: str = "A100") -> AcceleratorReading:
    return AcceleratorReading(index=0, name=name, utilization=50, memoryUsed=used, memoryTotal=total, temperature=temp)


def pod(name: str, status: str = "Running", restarts: int = 0, ns: str = "default", age: str = "5m") -> WorkloadInstance:
    return WorkloadInstance(namespace=ns, name=name, status=status, restarts=restarts, age=age)
