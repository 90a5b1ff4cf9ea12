from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shared.core.database import get_billing_db as get_db
from shared.helpers.json_response_helper import success_response
from shared.utils.app_status_code import AppStatusCode

from ...crud.billing.analyzer_client import AnalyzerClient
from ...crud.billing import reading_invoice_crud
from ...crud.energy_iot import meter_readings_crud as crud
from ...schemas.energy_iot.meter_readings_schemas import (
    AnalyzeReadingRequest, ManualPreviewRequest, MeterReadingListResponse, MeterReadingOut,
    MeterReadingRequest, ReadingConfirmRequest, ReadingInvoiceOut, ReadingPreviewOut
)

router = APIRouter(
    prefix="/api/meter-readings",
    tags=["Meter Readings"],
)


def get_analyzer_client() -> AnalyzerClient:
    return AnalyzerClient()

# -----------------------------------------------------------------


@router.get("/all", response_model=MeterReadingListResponse)
def get_meter_readings(
        params: MeterReadingRequest = Depends(),
        db: Session = Depends(get_db)):
    return crud.get_list(db, params)


@router.get("/latest/{shop_id}", response_model=Optional[MeterReadingOut])
def latest_reading(shop_id: UUID, db: Session = Depends(get_db)):
    return crud.get_latest_for_shop(db, shop_id)


@router.post("/analyze", response_model=ReadingPreviewOut)
def analyze_reading(
        request: AnalyzeReadingRequest,
        db: Session = Depends(get_db),
        client: AnalyzerClient = Depends(get_analyzer_client)):
    # preview only, nothing is written until /confirm
    return crud.analyze_reading(db, request, client)


@router.post("/preview", response_model=ReadingPreviewOut)
def preview_reading(request: ManualPreviewRequest, db: Session = Depends(get_db)):
    return crud.manual_preview(db, request)


@router.post("/confirm", response_model=None)
def confirm_reading(request: ReadingConfirmRequest, db: Session = Depends(get_db)):
    result = reading_invoice_crud.record_reading(db, request)
    return success_response(
        data=ReadingInvoiceOut.model_validate(result),
        message="Reading saved and invoice generated",
        status_code=AppStatusCode.OPERATION_SUCCESSFUL,
    )
