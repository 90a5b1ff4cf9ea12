from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shared.core.database import get_billing_db as get_db

from ...crud.common import data_crud as crud
from ...schemas.billing.billing_schemas import DataSnapshotOut

router = APIRouter(
    prefix="/api/data",
    tags=["Data"],
)


@router.get("/snapshot", response_model=DataSnapshotOut)
def get_snapshot(db: Session = Depends(get_db)):
    return crud.get_snapshot(db)
