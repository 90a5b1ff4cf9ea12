from contextlib import contextmanager
from typing import Dict, List

from sqlalchemy.orm import Session

from ...models.energy_iot.meter_readings import MeterReading
from ...models.energy_iot.meters import Meter
from ...models.financials.invoices import Invoice
from ...models.shops.shops import Shop


@contextmanager
def transaction(db: Session):
    """Commit once on success; roll everything back on any error."""
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


def get_all_data(db: Session) -> Dict[str, List]:
    return {
        "shops": db.query(Shop).order_by(Shop.registration_date.desc()).all(),
        "meters": db.query(Meter).all(),
        "readings": db.query(MeterReading).order_by(MeterReading.reading_date.desc()).all(),
        "invoices": db.query(Invoice).order_by(Invoice.issued_date.desc()).all(),
    }


def save_shop_with_meter(db: Session, shop: Shop, meter: Meter):
    db.add(shop)
    db.flush()

    meter.shop_id = shop.id
    db.add(meter)
    db.flush()

    shop.meter_id = meter.id
    db.flush()
    return shop, meter


def delete_shop(db: Session, shop: Shop):
    # meters, readings and invoices go with it (ORM cascade + ON DELETE CASCADE)
    db.delete(shop)
    db.flush()


def put_reading(db: Session, reading: MeterReading) -> MeterReading:
    db.add(reading)
    db.flush()
    return reading


def put_invoice(db: Session, invoice: Invoice) -> Invoice:
    db.add(invoice)
    db.flush()
    return invoice


def update_meter_last_reading(db: Session, meter: Meter, reading_value: float) -> Meter:
    # version_id_col turns a concurrent write into StaleDataError here
    meter.last_reading = reading_value
    db.flush()
    return meter
