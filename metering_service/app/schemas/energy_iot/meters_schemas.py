from datetime import datetime
from pydantic import BaseModel
from uuid import UUID
from typing import Optional, List

from shared.core.schemas import CommonQueryParams


class MeterOut(BaseModel):
    id: UUID
    serial_number: str
    shop_id: UUID
    shop_name: Optional[str] = None
    install_date: Optional[datetime] = None
    last_reading: Optional[float] = None
    last_reading_date: Optional[datetime] = None
    meter_image: Optional[str] = None
    initial_reading_before: Optional[float] = None
    initial_reading_after: Optional[float] = None

    class Config:
        from_attributes = True


class MeterListResponse(BaseModel):
    meters: List[MeterOut]
    total: Optional[int] = None


class MeterRequest(CommonQueryParams):
    pass
