# routers/system/system_settings_router.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shared.core.database import get_billing_db as get_db
from shared.helpers.json_response_helper import success_response
from shared.utils.app_status_code import AppStatusCode

from ...crud.system import system_settings_crud as crud
from ...schemas.system.system_settings_schema import SystemSettingsOut, SystemSettingsUpdate

router = APIRouter(
    prefix="/api/system-settings",
    tags=["system_settings"],
)


@router.get("/", response_model=SystemSettingsOut)
def get_system_settings(db: Session = Depends(get_db)):
    return crud.get_system_settings(db)


@router.put("/", response_model=None)
def update_system_settings(
    update_data: SystemSettingsUpdate,
    db: Session = Depends(get_db),
):
    updated = crud.update_system_settings(db, update_data)
    return success_response(
        data=SystemSettingsOut.model_validate(updated),
        message="Settings updated",
        status_code=AppStatusCode.OPERATION_SUCCESSFUL,
    )
