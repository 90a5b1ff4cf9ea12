from pydantic import BaseModel, Field
from uuid import UUID
from typing import Optional, List
from datetime import datetime

from shared.core.schemas import CommonQueryParams

from ...enum.billing_enum import ConsumptionBasis, MatchedBy, ReadingSource
from ..financials.invoices_schemas import InvoiceOut
from ..shops.shops_schemas import ShopOut
from .meters_schemas import MeterOut


class MeterReadingOut(BaseModel):
    id: UUID
    meter_id: UUID
    shop_id: UUID
    reading_value: float
    previous_reading_value: float
    photo_url: Optional[str] = None
    reading_date: datetime
    confidence: Optional[float] = None
    status: Optional[str] = None
    source: Optional[str] = None
    manual_override: bool = False
    notes: Optional[str] = None
    serial_number: Optional[str] = None
    shop_name: Optional[str] = None

    class Config:
        from_attributes = True


class MeterReadingListResponse(BaseModel):
    readings: List[MeterReadingOut]
    total: Optional[int] = None


class MeterReadingRequest(CommonQueryParams):
    shop_id: Optional[UUID] = None


class AnalysisResult(BaseModel):
    """Analyzer output after validation; safe to feed into billing."""
    serial_number: str = ""
    reading_value: float
    consumed_units: Optional[float] = None
    confidence: float = 0
    explanation: Optional[str] = None


class AnalyzeReadingRequest(BaseModel):
    image: str  # base64, with or without the data: prefix
    manual_shop_id: Optional[UUID] = None
    units_override: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)


class ManualPreviewRequest(BaseModel):
    reading_value: float = Field(ge=0, allow_inf_nan=False)
    shop_id: Optional[UUID] = None
    serial_number: Optional[str] = None
    units_override: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)


class ReadingPreviewOut(BaseModel):
    analysis: Optional[AnalysisResult] = None
    reading_value: float
    shop: Optional[ShopOut] = None
    meter_id: Optional[UUID] = None
    matched_by: Optional[MatchedBy] = None
    identity_unresolved: bool
    previous_reading_value: float
    units: float
    amount: float
    basis: ConsumptionBasis
    rate_per_unit: float
    rolled_back: bool = False
    low_confidence: bool = False
    can_confirm: bool


class ReadingConfirmRequest(BaseModel):
    reading_value: float = Field(ge=0, allow_inf_nan=False)
    shop_id: Optional[UUID] = None
    serial_number: Optional[str] = None
    photo_url: Optional[str] = None
    confidence: Optional[float] = Field(default=None, allow_inf_nan=False)
    units_override: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    analyzer_consumed_units: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    expected_previous_reading: Optional[float] = Field(default=None, allow_inf_nan=False)
    source: ReadingSource = ReadingSource.manual
    notes: Optional[str] = None
    confirmed: bool = False


class ReadingInvoiceOut(BaseModel):
    reading: MeterReadingOut
    invoice: InvoiceOut
    meter: MeterOut
    shop: ShopOut
