from sqlalchemy.orm import Session

from ..billing import persistence_crud
from ..billing.invoice_ledger_crud import verify_invoice_reading_links
from ..billing.serializers import invoice_out, meter_out, reading_out, shop_out
from ..system.system_settings_crud import get_or_create_settings


def get_snapshot(db: Session):
    """Everything the dashboards need in one read."""
    snapshot = persistence_crud.get_all_data(db)
    setting = get_or_create_settings(db)

    last_dates = {}
    for r in snapshot["readings"]:
        # readings come newest first
        last_dates.setdefault(r.meter_id, r.reading_date)

    return {
        "shops": [shop_out(s) for s in snapshot["shops"]],
        "meters": [meter_out(m, last_reading_date=last_dates.get(m.id)) for m in snapshot["meters"]],
        "readings": [reading_out(r) for r in snapshot["readings"]],
        "invoices": [invoice_out(i) for i in snapshot["invoices"]],
        "settings": {
            "rate_per_unit": setting.rate_per_unit,
            "currency": setting.currency,
            "business_name": setting.business_name,
        },
        "link_audit": verify_invoice_reading_links(snapshot),
    }
