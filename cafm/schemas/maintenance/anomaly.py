"""
Maintenance anomaly schemas.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from cafm.schemas.common.base import BaseSchema
from cafm.schemas.common.enums import AnomalyType

__all__ = ["MaintenanceAnomaly"]


class MaintenanceAnomaly(BaseSchema):
    """Work order flagged for review."""

    work_order_id: UUID = Field(..., description="Offending work order")
    anomaly_type: AnomalyType = Field(..., description="Anomaly kind")
    description: str = Field(..., description="Why the work order was flagged")
    severity_score: float = Field(
        ...,
        ge=0,
        description="Deviation from the baseline, as a multiple of the mean",
    )
    detected_at: datetime = Field(
        ...,
        description="Timestamp of the offending work order",
    )
