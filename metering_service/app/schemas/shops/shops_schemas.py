from datetime import datetime
from pydantic import BaseModel
from uuid import UUID
from typing import Optional, List

from shared.core.schemas import CommonQueryParams
from shared.wrappers.empty_string_model_wrapper import EmptyStringModel

from ..energy_iot.meters_schemas import MeterOut


class ShopBase(EmptyStringModel):
    name: Optional[str] = None
    owner_name: Optional[str] = None
    cnic: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    shop_number: Optional[str] = None
    customer_image: Optional[str] = None
    registration_date: Optional[datetime] = None
    meter_serial: Optional[str] = None
    meter_image: Optional[str] = None


class ShopCreate(ShopBase):
    initial_reading_before: Optional[float] = None
    initial_reading_after: Optional[float] = None


class ShopUpdate(ShopBase):
    pass


class ShopOut(BaseModel):
    id: UUID
    name: str
    owner_name: str
    cnic: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    shop_number: Optional[str] = None
    customer_image: Optional[str] = None
    registration_date: Optional[datetime] = None
    meter_id: Optional[UUID] = None
    meter_serial: Optional[str] = None
    last_reading: Optional[float] = None

    class Config:
        from_attributes = True


class ShopSaveResponse(BaseModel):
    shop: ShopOut
    meter: Optional[MeterOut] = None
    warnings: List[str] = []


class ShopListResponse(BaseModel):
    shops: List[ShopOut]
    total: int


class ShopRequest(CommonQueryParams):
    pass
