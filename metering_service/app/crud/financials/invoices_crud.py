from typing import List
from uuid import UUID

from sqlalchemy.orm import Session, joinedload

from ...core.exceptions import NotFound
from ...models.financials.invoices import Invoice
from ...models.energy_iot.meter_readings import MeterReading
from ...models.shops.shops import Shop
from ...schemas.financials.invoices_schemas import (
    InvoicesOverview, InvoicesRequest, InvoicesResponse, MonthlySummaryOut
)
from ..billing import invoice_ledger_crud as ledger
from ..billing.serializers import invoice_out, meter_out, reading_out, shop_out


def get_invoices_query(db: Session, params: InvoicesRequest):
    q = db.query(Invoice).options(joinedload(Invoice.shop))
    if params.shop_id:
        q = q.filter(Invoice.shop_id == params.shop_id)
    return q.order_by(Invoice.issued_date.desc())


def get_invoices(db: Session, params: InvoicesRequest) -> InvoicesResponse:
    invoices = get_invoices_query(db, params).all()
    shops = db.query(Shop).all()

    filtered = ledger.filter_invoices(invoices, shops, params.search, params.status)
    page = filtered[params.skip: params.skip + params.limit]

    return {"invoices": [invoice_out(i) for i in page], "total": len(filtered)}


def get_invoices_overview(db: Session) -> InvoicesOverview:
    invoices = db.query(Invoice).all()
    summary = ledger.totals(invoices)
    paid, unpaid = ledger.partition_by_status(invoices)

    return InvoicesOverview(
        **summary,
        paid_count=len(paid),
        unpaid_count=len(unpaid),
        collection_rate=ledger.collection_rate(invoices),
    )


def get_monthly_summary(db: Session) -> List[MonthlySummaryOut]:
    invoices = db.query(Invoice).all()
    return [MonthlySummaryOut(**row) for row in ledger.monthly_summary(invoices)]


def get_invoice_detail(db: Session, invoice_id: UUID):
    invoice = (
        db.query(Invoice)
        .options(
            joinedload(Invoice.shop),
            joinedload(Invoice.reading).joinedload(MeterReading.meter),
        )
        .filter(Invoice.id == invoice_id)
        .first()
    )
    if not invoice:
        raise NotFound("Invoice not found")

    reading = invoice.reading
    return {
        "invoice": invoice_out(invoice),
        "reading": reading_out(reading),
        "meter": meter_out(reading.meter, last_reading_date=None),
        "shop": shop_out(invoice.shop),
    }


def toggle_paid(db: Session, invoice_id: UUID):
    return invoice_out(ledger.toggle_paid(db, invoice_id))
