from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shared.core.database import get_billing_db as get_db
from shared.core.schemas import Lookup

from ...crud.energy_iot import meters_crud as crud
from ...schemas.energy_iot.meters_schemas import MeterListResponse, MeterRequest

router = APIRouter(
    prefix="/api/meters",
    tags=["Meters"],
)


@router.get("/all", response_model=MeterListResponse)
def get_meters(
        params: MeterRequest = Depends(),
        db: Session = Depends(get_db)):
    return crud.get_list(db, params)


@router.get("/lookup", response_model=List[Lookup])
def meter_lookup(db: Session = Depends(get_db)):
    return crud.meter_lookup(db)
