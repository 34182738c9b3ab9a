"""
Maintenance history schemas.

Read-only snapshots of assets, maintenance reports and work orders as
supplied by the persistence layer. Timestamps without a timezone are
interpreted as UTC.
"""

from __future__ import annotations

from datetime import date as Date, datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import Field, field_validator, model_validator

from cafm.schemas.common.base import BaseSchema
from cafm.schemas.common.enums import AssetStatus, Priority

__all__ = [
    "Asset",
    "MaintenanceRecord",
    "WorkOrderRecord",
]


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Asset(BaseSchema):
    """Physical, maintainable item tracked for a company."""

    id: UUID = Field(..., description="Asset identifier")
    name: str = Field(..., min_length=1, description="Display name")
    company_id: Optional[UUID] = Field(None, description="Owning company")
    status: AssetStatus = Field(AssetStatus.ACTIVE, description="Lifecycle status")
    acquisition_date: Optional[Date] = Field(
        None,
        description="Purchase or commissioning date",
    )
    last_maintenance_date: Optional[Date] = Field(
        None,
        description="Date of the most recent maintenance",
    )


class MaintenanceRecord(BaseSchema):
    """One historical maintenance report raised against an asset."""

    id: UUID = Field(..., description="Report identifier")
    asset_id: Optional[UUID] = Field(None, description="Asset the report concerns")
    created_at: datetime = Field(..., description="Report timestamp")
    priority: Optional[Priority] = Field(None, description="Priority / severity tier")
    actual_cost: Optional[Decimal] = Field(
        None,
        ge=0,
        description="Actual cost of the maintenance",
    )

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, v: datetime) -> datetime:
        return _as_utc(v)


class WorkOrderRecord(BaseSchema):
    """
    One historical work order.

    ``total_cost`` is derived from the labor, material and other cost
    components when it is not supplied explicitly.
    """

    id: UUID = Field(..., description="Work order identifier")
    company_id: Optional[UUID] = Field(None, description="Owning company")
    asset_id: Optional[UUID] = Field(None, description="Asset worked on")
    created_at: datetime = Field(..., description="Work order timestamp")
    labor_cost: Optional[Decimal] = Field(None, ge=0)
    material_cost: Optional[Decimal] = Field(None, ge=0)
    other_cost: Optional[Decimal] = Field(None, ge=0)
    total_cost: Optional[Decimal] = Field(None, ge=0)
    actual_hours: Optional[Decimal] = Field(
        None,
        ge=0,
        description="Duration of the work in hours",
    )

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @model_validator(mode="before")
    @classmethod
    def derive_total_cost(cls, data):
        if not isinstance(data, dict) or data.get("total_cost") is not None:
            return data

        components = [
            data.get(name)
            for name in ("labor_cost", "material_cost", "other_cost")
            if data.get(name) is not None
        ]
        if components:
            data = dict(data)
            data["total_cost"] = sum(
                (Decimal(str(c)) for c in components), Decimal("0")
            )
        return data
