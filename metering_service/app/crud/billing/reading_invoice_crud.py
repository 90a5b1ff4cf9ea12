import logging
import math
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from shared.core.config import settings

from ...core.exceptions import (
    BillingError, ConcurrencyConflict, ConfirmationRequired, IdentityUnresolved, PersistenceFailure,
    ValidationFailure
)
from ...enum.billing_enum import InvoiceStatus, ReadingStatus
from ...models.energy_iot.meter_readings import MeterReading
from ...models.energy_iot.meters import Meter
from ...models.financials.invoices import Invoice
from ...models.shops.shops import Shop
from ...schemas.energy_iot.meter_readings_schemas import ReadingConfirmRequest
from ..system import system_settings_crud
from . import persistence_crud
from .consumption_calculator import calculate_consumption
from .analyzer_client import normalize_confidence
from .identity_resolver import resolve_shop
from .invoice_ledger_crud import latest_reading
from .serializers import invoice_out, meter_out, reading_out, shop_out

logger = logging.getLogger(__name__)


def billing_period_for(issued: datetime) -> str:
    return issued.strftime("%B %Y")


def previous_reading_for(db: Session, shop: Shop, meter: Optional[Meter]) -> float:
    """Meter's last reading, else the newest stored reading, else 0."""
    if meter is not None and meter.last_reading is not None:
        return float(meter.last_reading)

    latest = latest_reading(db, shop.id)
    if latest is not None:
        return float(latest.reading_value)
    return 0.0


def _lock_meter(db: Session, meter_id) -> Optional[Meter]:
    return (
        db.query(Meter)
        .filter(Meter.id == meter_id)
        .with_for_update()
        .populate_existing()
        .first()
    )


def validate_confirm(request: ReadingConfirmRequest) -> Dict[str, str]:
    """Field -> message for numbers that must never reach the meter or an invoice."""
    errors = {}
    limit = settings.MAX_READING_VALUE

    bounded = {
        "reading_value": request.reading_value,
        "units_override": request.units_override,
        "analyzer_consumed_units": request.analyzer_consumed_units,
    }
    for field, value in bounded.items():
        if value is None:
            continue
        if not math.isfinite(value):
            errors[field] = "Value must be a finite number"
        elif value < 0:
            errors[field] = "Value cannot be negative"
        elif value > limit:
            errors[field] = f"Value exceeds the maximum of {limit:g}"

    for field in ("confidence", "expected_previous_reading"):
        value = getattr(request, field)
        if value is not None and not math.isfinite(value):
            errors[field] = "Value must be a finite number"

    return errors


def _load_identity(db: Session, request: ReadingConfirmRequest) -> Tuple[Shop, Meter]:
    if request.shop_id:
        shops = db.query(Shop).filter(Shop.id == request.shop_id).all()
        meters = db.query(Meter).filter(Meter.shop_id == request.shop_id).all()
    else:
        shops = db.query(Shop).all()
        meters = db.query(Meter).all()

    identity = resolve_shop(request.serial_number, meters, shops, request.shop_id)
    if not identity.resolved:
        raise IdentityUnresolved()
    if identity.meter is None:
        raise IdentityUnresolved("The selected shop has no meter registered")

    shop = identity.shop
    meter_id = shop.meter_id if shop.meter_id and any(
        m.id == shop.meter_id for m in meters) else identity.meter.id

    meter = _lock_meter(db, meter_id)
    if meter is None:
        raise IdentityUnresolved("The selected shop has no meter registered")
    return shop, meter


def record_reading(db: Session, request: ReadingConfirmRequest):
    """Store a confirmed reading, its invoice and the meter advance atomically."""
    if not request.confirmed:
        raise ConfirmationRequired()

    errors = validate_confirm(request)
    if errors:
        raise ValidationFailure(errors)

    confidence = None
    if request.confidence is not None:
        confidence = normalize_confidence(request.confidence)

    try:
        with persistence_crud.transaction(db):
            shop, meter = _load_identity(db, request)

            previous = previous_reading_for(db, shop, meter)
            if (request.expected_previous_reading is not None
                    and float(request.expected_previous_reading) != previous):
                logger.warning(
                    "Meter %s moved from %s to %s since the preview, billing against %s",
                    meter.serial_number, request.expected_previous_reading, previous, previous)

            rate = system_settings_crud.get_rate_per_unit(db)
            consumption = calculate_consumption(
                request.reading_value,
                previous,
                rate,
                units_override=request.units_override,
                analyzer_consumed_units=request.analyzer_consumed_units,
            )
            if consumption.rolled_back:
                logger.warning(
                    "Reading %s is below previous %s for meter %s, billing %s units",
                    request.reading_value, previous, meter.serial_number, consumption.units)

            now = datetime.now(timezone.utc)
            reading = persistence_crud.put_reading(db, MeterReading(
                meter_id=meter.id,
                shop_id=shop.id,
                reading_value=request.reading_value,
                previous_reading_value=previous,
                photo_url=request.photo_url,
                reading_date=now,
                confidence=confidence,
                status=ReadingStatus.approved.value,
                source=request.source.value,
                manual_override=request.units_override is not None,
                notes=request.notes,
            ))

            invoice = persistence_crud.put_invoice(db, Invoice(
                reading_id=reading.id,
                shop_id=shop.id,
                units=consumption.units,
                rate_per_unit=rate,
                total_amount=consumption.amount,
                issued_date=now,
                billing_period=billing_period_for(now),
                status=InvoiceStatus.issued.value,
                paid_status=False,
            ))

            persistence_crud.update_meter_last_reading(db, meter, request.reading_value)
    except BillingError:
        raise
    except StaleDataError as e:
        logger.warning("Concurrent update on meter while recording reading: %s", e)
        raise ConcurrencyConflict() from e
    except Exception as e:
        logger.exception("Reading/invoice transaction rolled back")
        raise PersistenceFailure() from e

    logger.info("Recorded reading %s and invoice %s for shop %s: %s units x %s = %s",
                reading.id, invoice.id, shop.id, consumption.units, rate, consumption.amount)

    return {
        "reading": reading_out(reading),
        "invoice": invoice_out(invoice),
        "meter": meter_out(meter, last_reading_date=reading.reading_date),
        "shop": shop_out(shop, meter),
    }
