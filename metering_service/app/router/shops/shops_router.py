from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shared.core.database import get_billing_db as get_db
from shared.helpers.json_response_helper import success_response
from shared.utils.app_status_code import AppStatusCode

from ...crud.shops import shops_crud as crud
from ...schemas.billing.billing_schemas import ShopDetailsOut
from ...schemas.shops.shops_schemas import (
    ShopCreate, ShopListResponse, ShopRequest, ShopSaveResponse, ShopUpdate
)

router = APIRouter(
    prefix="/api/shops",
    tags=["Shops"],
)


@router.get("/all", response_model=ShopListResponse)
def get_shops(
        params: ShopRequest = Depends(),
        db: Session = Depends(get_db)):
    return crud.get_list(db, params)


@router.get("/{shop_id}", response_model=ShopDetailsOut)
def get_shop(shop_id: UUID, db: Session = Depends(get_db)):
    return crud.get_shop_details(db, shop_id)


@router.post("/", response_model=None)
def register_shop(payload: ShopCreate, db: Session = Depends(get_db)):
    result = crud.register_shop(db, payload)
    return success_response(
        data=ShopSaveResponse.model_validate(result),
        message="Shop registered successfully",
        status_code=AppStatusCode.OPERATION_SUCCESSFUL,
    )


@router.put("/{shop_id}", response_model=None)
def update_shop(shop_id: UUID, payload: ShopUpdate, db: Session = Depends(get_db)):
    result = crud.update_shop(db, shop_id, payload)
    return success_response(
        data=ShopSaveResponse.model_validate(result),
        message="Shop updated successfully",
        status_code=AppStatusCode.OPERATION_SUCCESSFUL,
    )


@router.delete("/{shop_id}", response_model=None)
def delete_shop(shop_id: UUID, db: Session = Depends(get_db)):
    result = crud.delete_shop(db, shop_id)
    return success_response(
        data=result,
        message="Shop and its readings and invoices deleted",
        status_code=AppStatusCode.OPERATION_SUCCESSFUL,
    )
