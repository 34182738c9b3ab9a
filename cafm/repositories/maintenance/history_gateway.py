"""
Read-only access to asset maintenance history.

The analytics engine never writes history. ``HistoryGateway`` is the narrow
query surface the persistence layer implements; ``InMemoryHistoryGateway``
serves callers that already hold a history snapshot (and the test suite).

All list results are ordered most-recent-first.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from cafm.core.logging import get_logger
from cafm.schemas.common.enums import AssetStatus
from cafm.schemas.maintenance.history import (
    Asset,
    MaintenanceRecord,
    WorkOrderRecord,
)

logger = get_logger(__name__)


class HistoryGateway(ABC):
    """
    Query interface over assets, maintenance reports and work orders.

    Implementations are called from worker threads and must not depend on
    per-thread state such as a thread-bound session.
    """

    @abstractmethod
    def find_asset(self, asset_id: UUID) -> Optional[Asset]:
        """Return the asset or None when it does not exist."""

    @abstractmethod
    def company_exists(self, company_id: UUID) -> bool:
        """Return whether the company is known."""

    @abstractmethod
    def get_asset_maintenance_reports(self, asset_id: UUID) -> List[MaintenanceRecord]:
        """Maintenance reports raised against the asset, most recent first."""

    @abstractmethod
    def get_asset_maintenance_history(self, asset_id: UUID) -> List[WorkOrderRecord]:
        """Work orders performed on the asset, most recent first."""

    @abstractmethod
    def find_work_orders_by_company_and_date_range(
        self,
        company_id: UUID,
        start: datetime,
        end: datetime,
    ) -> List[WorkOrderRecord]:
        """Company work orders created within ``[start, end]``, most recent first."""

    @abstractmethod
    def find_active_assets_by_company(self, company_id: UUID) -> List[Asset]:
        """Active assets owned by the company."""


class InMemoryHistoryGateway(HistoryGateway):
    """HistoryGateway backed by in-process collections."""

    def __init__(
        self,
        assets: Optional[Iterable[Asset]] = None,
        maintenance_records: Optional[Iterable[MaintenanceRecord]] = None,
        work_orders: Optional[Iterable[WorkOrderRecord]] = None,
        company_ids: Optional[Iterable[UUID]] = None,
    ):
        self._assets: Dict[UUID, Asset] = {}
        self._reports: List[MaintenanceRecord] = []
        self._work_orders: List[WorkOrderRecord] = []
        self._companies = set(company_ids or ())

        for asset in assets or ():
            self.add_asset(asset)
        for record in maintenance_records or ():
            self.add_maintenance_record(record)
        for work_order in work_orders or ():
            self.add_work_order(work_order)

    # ==================== Loading ====================

    def add_asset(self, asset: Asset) -> None:
        self._assets[asset.id] = asset
        if asset.company_id is not None:
            self._companies.add(asset.company_id)

    def add_company(self, company_id: UUID) -> None:
        self._companies.add(company_id)

    def add_maintenance_record(self, record: MaintenanceRecord) -> None:
        self._reports.append(record)

    def add_work_order(self, work_order: WorkOrderRecord) -> None:
        self._work_orders.append(work_order)
        if work_order.company_id is not None:
            self._companies.add(work_order.company_id)

    # ==================== Queries ====================

    def find_asset(self, asset_id: UUID) -> Optional[Asset]:
        return self._assets.get(asset_id)

    def company_exists(self, company_id: UUID) -> bool:
        return company_id in self._companies

    def get_asset_maintenance_reports(self, asset_id: UUID) -> List[MaintenanceRecord]:
        return self._most_recent_first(
            r for r in self._reports if r.asset_id == asset_id
        )

    def get_asset_maintenance_history(self, asset_id: UUID) -> List[WorkOrderRecord]:
        return self._most_recent_first(
            wo for wo in self._work_orders if wo.asset_id == asset_id
        )

    def find_work_orders_by_company_and_date_range(
        self,
        company_id: UUID,
        start: datetime,
        end: datetime,
    ) -> List[WorkOrderRecord]:
        if end < start:
            logger.warning(
                "Empty work order date range requested",
                extra={"company_id": str(company_id)},
            )
            return []
        return self._most_recent_first(
            wo
            for wo in self._work_orders
            if wo.company_id == company_id and start <= wo.created_at <= end
        )

    def find_active_assets_by_company(self, company_id: UUID) -> List[Asset]:
        return [
            asset
            for asset in self._assets.values()
            if asset.company_id == company_id and asset.status == AssetStatus.ACTIVE
        ]

    @staticmethod
    def _most_recent_first(records):
        return sorted(records, key=lambda r: r.created_at, reverse=True)
