from typing import List
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import func, or_

from shared.core.schemas import Lookup

from ...models.energy_iot.meters import Meter
from ...models.energy_iot.meter_readings import MeterReading
from ...models.shops.shops import Shop
from ...schemas.energy_iot.meters_schemas import MeterRequest, MeterListResponse
from ..billing.serializers import meter_out


def get_list(db: Session, params: MeterRequest) -> MeterListResponse:
    query = (
        db.query(Meter)
        .join(Shop, Shop.id == Meter.shop_id)
        .options(joinedload(Meter.shop))
    )

    if params.search:
        search_term = f"%{params.search}%"
        query = query.filter(
            or_(
                Meter.serial_number.ilike(search_term),
                Shop.name.ilike(search_term),
                Shop.shop_number.ilike(search_term),
            )
        )

    total = query.with_entities(func.count(Meter.id)).scalar()

    meters = (
        query
        .order_by(Meter.serial_number.asc())
        .offset(params.skip)
        .limit(params.limit)
        .all()
    )

    # latest reading date per meter
    last_dates = dict(
        db.query(MeterReading.meter_id, func.max(MeterReading.reading_date))
        .filter(MeterReading.meter_id.in_([m.id for m in meters]))
        .group_by(MeterReading.meter_id)
        .all()
    ) if meters else {}

    result = [meter_out(m, last_reading_date=last_dates.get(m.id)) for m in meters]
    return {"meters": result, "total": total}


def meter_lookup(db: Session) -> List[Lookup]:
    rows = (
        db.query(Meter.id, Meter.serial_number, Shop.name)
        .join(Shop, Shop.id == Meter.shop_id)
        .order_by(Meter.serial_number.asc())
        .all()
    )
    return [Lookup(id=r.id, name=f"{r.serial_number} - {r.name}") for r in rows]
