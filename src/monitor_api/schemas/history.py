from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class HistorySeries(BaseModel):
    """One chart line: time labels and values of equal length."""

    labels: List[str] = Field(default_factory=list, description="Local time labels (HH:MM).")
    data: List[float] = Field(default_factory=list, description="Values rounded to one decimal.")


class HistoryResponse(BaseModel):
    """Chart data for the dashboard's history panels."""

    model_config = ConfigDict(populate_by_name=True)

    cpu: HistorySeries = Field(default_factory=HistorySeries, description="Host CPU usage percent.")
    memory: HistorySeries = Field(default_factory=HistorySeries, description="Host memory usage percent.")
    disk: HistorySeries = Field(default_factory=HistorySeries, description="Root filesystem usage percent.")
    gpu_util: HistorySeries = Field(default_factory=HistorySeries, description="GPU utilization percent.", alias="gpuUtil")
    gpu_mem: HistorySeries = Field(default_factory=HistorySeries, description="GPU framebuffer used (MB).", alias="gpuMem")
    gpu_temp: HistorySeries = Field(default_factory=HistorySeries, description="GPU temperature (°C).", alias="gpuTemp")
