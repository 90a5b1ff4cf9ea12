import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from ...core.exceptions import NotFound
from ...enum.billing_enum import InvoicePaidFilter
from ...models.energy_iot.meter_readings import MeterReading
from ...models.financials.invoices import Invoice
from ...models.shops.shops import Shop
from .consumption_calculator import safe_number

logger = logging.getLogger(__name__)


def latest_reading(db: Session, shop_id: UUID) -> Optional[MeterReading]:
    return (
        db.query(MeterReading)
        .filter(MeterReading.shop_id == shop_id)
        .order_by(MeterReading.reading_date.desc())
        .first()
    )


def totals(invoices: Iterable[Invoice]) -> Dict[str, float]:
    total_units = 0.0
    total_billed = 0.0
    total_paid = 0.0
    count = 0

    for invoice in invoices:
        count += 1
        amount = safe_number(invoice.total_amount)
        total_units += safe_number(invoice.units)
        total_billed += amount
        if invoice.paid_status:
            total_paid += amount

    return {
        "total_units": total_units,
        "total_billed": total_billed,
        "total_paid": total_paid,
        "outstanding": total_billed - total_paid,
        "invoice_count": count,
    }


def partition_by_status(invoices: Iterable[Invoice]) -> Tuple[List[Invoice], List[Invoice]]:
    paid, unpaid = [], []
    for invoice in invoices:
        (paid if invoice.paid_status else unpaid).append(invoice)
    return paid, unpaid


def collection_rate(invoices: Iterable[Invoice]) -> float:
    summary = totals(invoices)
    if summary["total_billed"] <= 0:
        return 0.0
    return summary["total_paid"] / summary["total_billed"] * 100


def monthly_summary(invoices: Iterable[Invoice]) -> List[Dict]:
    """Units and revenue per YYYY-MM of issue date, oldest month first."""
    months: Dict[str, Dict] = {}
    for invoice in invoices:
        if not invoice.issued_date:
            continue
        key = invoice.issued_date.strftime("%Y-%m")
        bucket = months.setdefault(key, {
            "month": key,
            "label": invoice.issued_date.strftime("%b %y"),
            "units": 0.0,
            "revenue": 0.0,
            "invoice_count": 0,
        })
        bucket["units"] += safe_number(invoice.units)
        bucket["revenue"] += safe_number(invoice.total_amount)
        bucket["invoice_count"] += 1

    return [months[k] for k in sorted(months)]


def filter_invoices(
    invoices: Iterable[Invoice],
    shops: Iterable[Shop],
    search: Optional[str] = None,
    status: Optional[InvoicePaidFilter] = InvoicePaidFilter.all,
) -> List[Invoice]:
    shops_by_id = {str(s.id): s for s in shops}
    term = (search or "").strip().lower()
    status = InvoicePaidFilter(status or InvoicePaidFilter.all)

    result = []
    for invoice in invoices:
        if status == InvoicePaidFilter.paid and not invoice.paid_status:
            continue
        if status == InvoicePaidFilter.pending and invoice.paid_status:
            continue

        if term:
            shop = shops_by_id.get(str(invoice.shop_id))
            haystack = [str(invoice.id)]
            if shop:
                haystack += [shop.name or "", shop.owner_name or "", shop.shop_number or ""]
            if not any(term in value.lower() for value in haystack):
                continue

        result.append(invoice)
    return result


def toggle_paid(db: Session, invoice_id: UUID) -> Invoice:
    invoice = db.query(Invoice).filter(Invoice.id == invoice_id).first()
    if not invoice:
        raise NotFound("Invoice not found")

    invoice.paid_status = not invoice.paid_status
    db.commit()
    db.refresh(invoice)
    logger.info("Invoice %s marked %s", invoice.id,
                "paid" if invoice.paid_status else "unpaid")
    return invoice


def verify_invoice_reading_links(snapshot: Dict[str, List]) -> Dict[str, List[str]]:
    """Audit the one-invoice-per-reading link over a get_all_data snapshot."""
    reading_ids = {str(r.id) for r in snapshot.get("readings", [])}
    invoices = snapshot.get("invoices", [])

    orphans = [str(i.id) for i in invoices if str(i.reading_id) not in reading_ids]
    counts = Counter(str(i.reading_id) for i in invoices)
    shared = [rid for rid, n in counts.items() if n > 1]

    uninvoiced = sorted(reading_ids - set(counts))

    if orphans or shared:
        logger.warning("Invoice/reading link check failed: %d orphan invoices, %d shared readings",
                       len(orphans), len(shared))

    return {
        "orphan_invoices": orphans,
        "shared_readings": shared,
        "uninvoiced_readings": uninvoiced,
    }
