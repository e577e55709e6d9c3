from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CpuSection(BaseModel):
    """CPU load derived from /proc/loadavg."""

    load_1min: Optional[float] = Field(default=None, description="1-minute load average.")
    percent: Optional[float] = Field(default=None, description="Load as a percentage of configured cores.")


class UsageSection(BaseModel):
    """Byte totals and usage percent for memory or a filesystem."""

    total: Optional[int] = Field(default=None, ge=0, description="Total bytes.")
    used: Optional[int] = Field(default=None, ge=0, description="Used bytes.")
    percent: Optional[float] = Field(default=None, description="Used / total * 100, one decimal.")


class HostSnapshot(BaseModel):
    """Point-in-time host resource readings. Sections left empty when their source failed."""

    cpu: CpuSection = Field(default_factory=CpuSection)
    memory: UsageSection = Field(default_factory=UsageSection)
    disk: UsageSection = Field(default_factory=UsageSection)

    @property
    def cpu_percent(self) -> Optional[float]:
        return self.cpu.percent

    @property
    def mem_percent(self) -> Optional[float]:
        return self.memory.percent

    @property
    def disk_percent(self) -> Optional[float]:
        return self.disk.percent


class AcceleratorReading(BaseModel):
    """One GPU as reported by nvidia-smi."""

    model_config = ConfigDict(populate_by_name=True)

    index: int = Field(0, ge=0, description="Device index.")
    name: str = Field("", description="Device product name.")
    utilization: Optional[int] = Field(default=None, description="GPU utilization percent.")
    memory_used: Optional[int] = Field(default=None, description="Framebuffer used (MB).", alias="memoryUsed")
    memory_total: Optional[int] = Field(default=None, description="Framebuffer total (MB).", alias="memoryTotal")
    temperature: Optional[int] = Field(default=None, description="Core temperature (°C).")


class WorkloadInstance(BaseModel):
    """A Kubernetes pod as seen by one poll."""

    namespace: str = Field(..., description="Pod namespace.")
    name: str = Field(..., description="Pod name.")
    status: str = Field("Unknown", description="Pod phase (Running, Pending, Failed, ...).")
    restarts: int = Field(0, ge=0, description="Sum of container restart counts.")
    age: str = Field("0m", description="Descriptive age label, e.g. '3d 4h'.")

    @property
    def key(self) -> str:
        """Identity across polls."""
        return f"{self.namespace}/{self.name}"


AcceleratorSnapshot = List[AcceleratorReading]
