from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field

from src.monitor_api.schemas.common import Tier


class Alert(BaseModel):
    """
    A single alert produced by one evaluation.

    Serialized as {title, desc, fix}; the tier is conveyed by the bundle list holding it.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    tier: Tier = Field(..., description="Severity bucket.", exclude=True)
    title: str = Field(..., description="Short alert title.")
    description: str = Field(..., description="What was observed.", alias="desc")
    remediation: str = Field(..., description="Suggested next step.", alias="fix")


class AlertBundle(BaseModel):
    """Alerts grouped by tier. Rebuilt from scratch on every evaluation."""

    minor: List[Alert] = Field(default_factory=list, description="Minor alerts.")
    serious: List[Alert] = Field(default_factory=list, description="Serious alerts.")
    critical: List[Alert] = Field(default_factory=list, description="Critical alerts.")

    def add(self, alert: Alert) -> None:
        """Append an alert to the list matching its tier."""
        getattr(self, alert.tier.value).append(alert)

    def counts(self) -> Dict[str, int]:
        return {t.value: len(getattr(self, t.value)) for t in Tier}

    def all(self) -> List[Alert]:
        """All alerts, most severe tier first."""
        return [*self.critical, *self.serious, *self.minor]
