from typing import Dict, List, Optional
from pydantic import BaseModel

from ..energy_iot.meter_readings_schemas import MeterReadingOut
from ..energy_iot.meters_schemas import MeterOut
from ..financials.invoices_schemas import InvoiceOut
from ..shops.shops_schemas import ShopOut


class LedgerTotals(BaseModel):
    total_units: float = 0
    total_billed: float = 0
    total_paid: float = 0
    outstanding: float = 0
    invoice_count: int = 0


class ShopDetailsOut(BaseModel):
    shop: ShopOut
    meter: Optional[MeterOut] = None
    readings: List[MeterReadingOut] = []
    invoices: List[InvoiceOut] = []
    totals: LedgerTotals


class LinkAuditOut(BaseModel):
    orphan_invoices: List[str] = []
    shared_readings: List[str] = []
    uninvoiced_readings: List[str] = []


class DataSnapshotOut(BaseModel):
    shops: List[ShopOut]
    meters: List[MeterOut]
    readings: List[MeterReadingOut]
    invoices: List[InvoiceOut]
    settings: Optional[Dict] = None
    link_audit: LinkAuditOut
