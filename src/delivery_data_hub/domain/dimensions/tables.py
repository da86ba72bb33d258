"""
Dimension table descriptors.

Each descriptor names the upstream table and the role of its columns (key,
display name, snapshot period, soft-delete flag, owning company) so the
resolution pipeline can stay generic over companies, stores, areas,
addresses and portals.

Warehouse naming convention:
- pk_id_* : primary key columns
- pfk_id_* : foreign key columns
- des_* : description / text columns
- flg_* : flag columns
- td_* : date columns
- pk_ts_month : snapshot month ("YYYY-MM-01")
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from delivery_data_hub.domain.protocols import DimensionQuery
from delivery_data_hub.infrastructure.resolution.snapshots import (
    DEFAULT_DELETED_COLUMN,
    DEFAULT_PERIOD_COLUMN,
)


def as_source_id(value: Any) -> str:
    """String form of a raw warehouse id ("" when missing).

    Nullable integer columns come back from pandas as floats, so ``12.0``
    maps to ``"12"``.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, float):
        if value != value:
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value).strip()


@dataclass(frozen=True)
class DimensionTable:
    """Column roles of one dimension table."""

    name: str
    key_column: str
    name_column: str
    columns: Tuple[str, ...]
    period_column: Optional[str] = DEFAULT_PERIOD_COLUMN
    deleted_column: str = DEFAULT_DELETED_COLUMN
    company_column: Optional[str] = None

    @property
    def resolution_period_column(self) -> str:
        # Tables without snapshots resolve every row as the same (oldest) period
        return self.period_column or DEFAULT_PERIOD_COLUMN

    def row_id(self, row: Mapping[str, Any]) -> str:
        return as_source_id(row.get(self.key_column))

    def display_name(self, row: Mapping[str, Any]) -> str:
        value = row.get(self.name_column)
        return "" if value is None else str(value)

    def query(
        self,
        in_filters: Optional[Dict[str, Sequence[Any]]] = None,
        max_period: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> DimensionQuery:
        """Query for every snapshot of this table, newest first."""
        order_by: Tuple[str, ...] = (self.name_column,)
        if self.period_column:
            order_by = (f"-{self.period_column}", self.name_column)
        return DimensionQuery(
            table=self.name,
            columns=self.columns,
            in_filters={key: tuple(values) for key, values in (in_filters or {}).items()},
            period_column=self.period_column,
            max_period=max_period if self.period_column else None,
            order_by=order_by,
            limit=limit,
        )


COMPANY_TABLE = DimensionTable(
    name="crp_portal__dt_company",
    key_column="pk_id_company",
    name_column="des_company_name",
    columns=(
        "pk_id_company",
        "des_company_name",
        "des_status",
        "des_key_account_manager",
        "td_firma_contrato",
        "flg_deleted",
        "pk_ts_month",
    ),
    company_column="pk_id_company",
)

STORE_TABLE = DimensionTable(
    name="crp_portal__dt_store",
    key_column="pk_id_store",
    name_column="des_store",
    columns=("pk_id_store", "des_store", "pfk_id_company", "flg_deleted", "pk_ts_month"),
    company_column="pfk_id_company",
)

BUSINESS_AREA_TABLE = DimensionTable(
    name="crp_portal__ct_business_area",
    key_column="pk_id_business_area",
    name_column="des_business_area",
    columns=("pk_id_business_area", "des_business_area", "flg_deleted"),
    period_column=None,
)

ADDRESS_TABLE = DimensionTable(
    name="crp_portal__dt_address",
    key_column="pk_id_address",
    name_column="des_address",
    columns=(
        "pk_id_address",
        "des_address",
        "pfk_id_company",
        "pfk_id_store",
        "pfk_id_business_area",
        "des_latitude",
        "des_longitude",
        "flg_deleted",
        "pk_ts_month",
    ),
    company_column="pfk_id_company",
)

PORTAL_TABLE = DimensionTable(
    name="crp_portal__dt_portal",
    key_column="pk_id_portal",
    name_column="des_portal",
    columns=("pk_id_portal", "des_portal", "flg_deleted", "pk_ts_month"),
)
