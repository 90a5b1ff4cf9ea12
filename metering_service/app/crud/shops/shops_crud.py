import logging
import re
from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ...core.exceptions import NotFound, PersistenceFailure, ValidationFailure
from ...models.energy_iot.meter_readings import MeterReading
from ...models.energy_iot.meters import Meter
from ...models.financials.invoices import Invoice
from ...models.shops.shops import Shop
from ...schemas.shops.shops_schemas import ShopCreate, ShopRequest, ShopUpdate
from ..billing import persistence_crud
from ..billing.identity_resolver import find_duplicate_serials, normalize_serial
from ..billing.invoice_ledger_crud import totals
from ..billing.serializers import current_meter, invoice_out, meter_out, reading_out, shop_out

logger = logging.getLogger(__name__)

_DIGITS = re.compile(r"\D")


def _digits(value: Optional[str]) -> str:
    return _DIGITS.sub("", value or "")


def validate_shop(payload, partial: bool = False) -> Dict[str, str]:
    """Field -> message for every problem found; empty when the payload is fine."""
    errors = {}
    data = payload.model_dump(exclude_unset=partial)

    required = {
        "name": "Shop name is required",
        "owner_name": "Owner name is required",
        "meter_serial": "Meter serial number is required",
    }
    for field, message in required.items():
        if field in data or not partial:
            if not data.get(field):
                errors[field] = message

    if "cnic" in data or not partial:
        if len(_digits(data.get("cnic"))) != 13:
            errors["cnic"] = "Invalid CNIC: must be exactly 13 digits"

    if "phone" in data or not partial:
        if len(_digits(data.get("phone"))) < 10:
            errors["phone"] = "Invalid phone number: at least 10 digits required"

    for field in ("initial_reading_before", "initial_reading_after"):
        value = data.get(field)
        if value is not None and value < 0:
            errors[field] = "Reading cannot be negative"

    return errors


def _duplicate_warnings(db: Session, meter: Meter) -> List[str]:
    meters = db.query(Meter).all()
    groups = find_duplicate_serials(meters)
    others = [m for m in groups.get(normalize_serial(meter.serial_number), []) if m.id != meter.id]
    if not others:
        return []

    shop_ids = {m.shop_id for m in others}
    names = [s.name for s in db.query(Shop).filter(Shop.id.in_(shop_ids)).all()]
    logger.warning("Meter serial %s is also registered to %s",
                   meter.serial_number, ", ".join(names))
    return [f"Meter serial {meter.serial_number} is already registered to: {', '.join(names)}"]


def _get_shop(db: Session, shop_id: UUID) -> Shop:
    shop = db.query(Shop).options(joinedload(Shop.meters)).filter(Shop.id == shop_id).first()
    if not shop:
        raise NotFound("Shop not found")
    return shop


def get_list(db: Session, params: ShopRequest):
    q = db.query(Shop).outerjoin(Meter, Meter.shop_id == Shop.id)

    if params.search:
        search_term = f"%{params.search}%"
        q = q.filter(
            or_(
                Shop.name.ilike(search_term),
                Shop.owner_name.ilike(search_term),
                Shop.shop_number.ilike(search_term),
                Meter.serial_number.ilike(search_term),
            )
        )

    q = q.distinct()
    total = q.with_entities(func.count(func.distinct(Shop.id))).scalar()

    shops = (
        q.options(joinedload(Shop.meters))
        .order_by(Shop.registration_date.desc())
        .offset(params.skip)
        .limit(params.limit)
        .all()
    )

    return {"shops": [shop_out(s) for s in shops], "total": total}


def get_shop_details(db: Session, shop_id: UUID):
    shop = _get_shop(db, shop_id)
    meter = current_meter(shop)

    readings = (
        db.query(MeterReading)
        .filter(MeterReading.shop_id == shop.id)
        .order_by(MeterReading.reading_date.desc())
        .all()
    )
    invoices = (
        db.query(Invoice)
        .filter(Invoice.shop_id == shop.id)
        .order_by(Invoice.issued_date.desc())
        .all()
    )

    last_date = readings[0].reading_date if readings else None
    return {
        "shop": shop_out(shop, meter),
        "meter": meter_out(meter, last_reading_date=last_date) if meter else None,
        "readings": [reading_out(r) for r in readings],
        "invoices": [invoice_out(i) for i in invoices],
        "totals": totals(invoices),
    }


def register_shop(db: Session, payload: ShopCreate):
    errors = validate_shop(payload)
    if errors:
        raise ValidationFailure(errors)

    now = datetime.now(timezone.utc)
    shop = Shop(
        name=payload.name,
        owner_name=payload.owner_name,
        cnic=payload.cnic,
        phone=payload.phone,
        address=payload.address,
        shop_number=payload.shop_number,
        customer_image=payload.customer_image,
        registration_date=payload.registration_date or now,
    )
    # the starting value is history, not billable consumption
    meter = Meter(
        serial_number=payload.meter_serial,
        install_date=now,
        last_reading=payload.initial_reading_before or 0,
        meter_image=payload.meter_image,
        initial_reading_before=payload.initial_reading_before,
        initial_reading_after=payload.initial_reading_after,
    )

    try:
        with persistence_crud.transaction(db):
            persistence_crud.save_shop_with_meter(db, shop, meter)
    except SQLAlchemyError as e:
        logger.exception("Failed to register shop %s", payload.name)
        raise PersistenceFailure("Could not save the shop. Nothing was recorded.") from e

    logger.info("Registered shop %s with meter %s", shop.id, meter.serial_number)

    return {
        "shop": shop_out(shop, meter),
        "meter": meter_out(meter),
        "warnings": _duplicate_warnings(db, meter),
    }


def update_shop(db: Session, shop_id: UUID, payload: ShopUpdate):
    errors = validate_shop(payload, partial=True)
    if errors:
        raise ValidationFailure(errors)

    shop = _get_shop(db, shop_id)
    meter = current_meter(shop)

    data = payload.model_dump(exclude_unset=True)
    meter_fields = {"meter_serial": "serial_number", "meter_image": "meter_image"}

    try:
        with persistence_crud.transaction(db):
            for field, value in data.items():
                if field in meter_fields:
                    if meter is not None:
                        setattr(meter, meter_fields[field], value)
                elif field == "registration_date" and value is None:
                    continue
                else:
                    setattr(shop, field, value)
            # last_reading is only ever advanced by a recorded reading
            db.flush()
    except SQLAlchemyError as e:
        logger.exception("Failed to update shop %s", shop_id)
        raise PersistenceFailure("Could not update the shop.") from e

    return {
        "shop": shop_out(shop, meter),
        "meter": meter_out(meter) if meter else None,
        "warnings": _duplicate_warnings(db, meter) if meter and "meter_serial" in data else [],
    }


def delete_shop(db: Session, shop_id: UUID):
    shop = _get_shop(db, shop_id)

    try:
        with persistence_crud.transaction(db):
            persistence_crud.delete_shop(db, shop)
    except SQLAlchemyError as e:
        logger.exception("Failed to delete shop %s", shop_id)
        raise PersistenceFailure("Could not delete the shop.") from e

    logger.info("Deleted shop %s with its meter, readings and invoices", shop_id)
    return {"id": shop_id}
