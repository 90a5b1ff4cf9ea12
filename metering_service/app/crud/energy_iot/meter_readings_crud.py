import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session, joinedload
from sqlalchemy import func, or_

from shared.core.config import settings

from ...core.exceptions import NotFound
from ...models.energy_iot.meter_readings import MeterReading
from ...models.energy_iot.meters import Meter
from ...models.shops.shops import Shop
from ...schemas.energy_iot.meter_readings_schemas import (
    AnalysisResult, AnalyzeReadingRequest, ManualPreviewRequest, MeterReadingListResponse,
    MeterReadingOut, MeterReadingRequest, ReadingPreviewOut
)
from ..billing.analyzer_client import AnalyzerClient
from ..billing.consumption_calculator import calculate_consumption
from ..billing.identity_resolver import resolve_shop
from ..billing.invoice_ledger_crud import latest_reading
from ..billing.reading_invoice_crud import previous_reading_for
from ..billing.serializers import reading_out, shop_out
from ..system import system_settings_crud

logger = logging.getLogger(__name__)


def get_list(db: Session, params: MeterReadingRequest) -> MeterReadingListResponse:
    """Return all readings, newest first, optionally for one shop."""
    q = (
        db.query(MeterReading)
        .join(Meter, Meter.id == MeterReading.meter_id)
        .join(Shop, Shop.id == MeterReading.shop_id)
        .options(joinedload(MeterReading.meter), joinedload(MeterReading.shop))
    )

    if params.shop_id:
        q = q.filter(MeterReading.shop_id == params.shop_id)

    if params.search:
        search_term = f"%{params.search}%"
        q = q.filter(
            or_(
                Meter.serial_number.ilike(search_term),
                Shop.name.ilike(search_term)
            )
        )

    total = q.with_entities(func.count(MeterReading.id)).scalar()

    readings = (
        q.order_by(MeterReading.reading_date.desc())
        .offset(params.skip)
        .limit(params.limit)
        .all()
    )

    return {"readings": [reading_out(r) for r in readings], "total": total}


def get_latest_for_shop(db: Session, shop_id: UUID) -> Optional[MeterReadingOut]:
    if not db.query(Shop.id).filter(Shop.id == shop_id).first():
        raise NotFound("Shop not found")

    reading = latest_reading(db, shop_id)
    return reading_out(reading) if reading else None


def _build_preview(
    db: Session,
    reading_value: float,
    serial_number: Optional[str],
    manual_shop_id: Optional[UUID],
    units_override: Optional[float],
    analysis: Optional[AnalysisResult] = None,
) -> ReadingPreviewOut:
    meters = db.query(Meter).all()
    shops = db.query(Shop).all()

    identity = resolve_shop(serial_number, meters, shops, manual_shop_id)
    rate = system_settings_crud.get_rate_per_unit(db)

    previous = 0.0
    if identity.resolved:
        previous = previous_reading_for(db, identity.shop, identity.meter)
    else:
        logger.info("No shop matched serial %r", serial_number)

    consumption = calculate_consumption(
        reading_value,
        previous,
        rate,
        units_override=units_override,
        analyzer_consumed_units=analysis.consumed_units if analysis else None,
    )

    low_confidence = bool(
        analysis and analysis.confidence < settings.LOW_CONFIDENCE_THRESHOLD)
    if low_confidence:
        logger.warning("Low confidence analysis (%s) for serial %r",
                       analysis.confidence, serial_number)

    return ReadingPreviewOut(
        analysis=analysis,
        reading_value=reading_value,
        shop=shop_out(identity.shop, identity.meter) if identity.resolved else None,
        meter_id=identity.meter.id if identity.meter else None,
        matched_by=identity.matched_by,
        identity_unresolved=not identity.resolved,
        previous_reading_value=previous,
        units=consumption.units,
        amount=consumption.amount,
        basis=consumption.basis,
        rate_per_unit=rate,
        rolled_back=consumption.rolled_back,
        low_confidence=low_confidence,
        can_confirm=identity.resolved and identity.meter is not None,
    )


def analyze_reading(db: Session, request: AnalyzeReadingRequest, client: AnalyzerClient) -> ReadingPreviewOut:
    known_serials = [s for (s,) in db.query(Meter.serial_number).all()]
    analysis = client.analyze(request.image, known_serials)

    return _build_preview(
        db,
        analysis.reading_value,
        analysis.serial_number,
        request.manual_shop_id,
        request.units_override,
        analysis=analysis,
    )


def manual_preview(db: Session, request: ManualPreviewRequest) -> ReadingPreviewOut:
    return _build_preview(
        db,
        request.reading_value,
        request.serial_number,
        request.shop_id,
        request.units_override,
    )
