from datetime import datetime
from uuid import UUID
from pydantic import BaseModel
from typing import List, Optional
from shared.core.schemas import CommonQueryParams

from ...enum.billing_enum import InvoicePaidFilter


class InvoiceOut(BaseModel):
    id: UUID
    reading_id: UUID
    shop_id: UUID
    units: float
    rate_per_unit: float
    total_amount: float
    issued_date: datetime
    billing_period: Optional[str] = None
    status: Optional[str] = None
    paid_status: bool = False
    shop_name: Optional[str] = None

    class Config:
        from_attributes = True


class InvoicesRequest(CommonQueryParams):
    status: Optional[InvoicePaidFilter] = InvoicePaidFilter.all
    shop_id: Optional[UUID] = None


class InvoicesResponse(BaseModel):
    invoices: List[InvoiceOut]
    total: int

    model_config = {"from_attributes": True}


class InvoicesOverview(BaseModel):
    invoice_count: int
    paid_count: int
    unpaid_count: int
    total_units: float
    total_billed: float
    total_paid: float
    outstanding: float
    collection_rate: float


class MonthlySummaryOut(BaseModel):
    month: str  # YYYY-MM
    label: str  # e.g. "Oct 26"
    units: float
    revenue: float
    invoice_count: int
