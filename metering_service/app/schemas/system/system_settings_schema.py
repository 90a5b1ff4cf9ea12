# schemas/system/system_settings_schema.py
from pydantic import BaseModel, Field
from typing import Optional
from uuid import UUID


class SystemSettingsOut(BaseModel):
    id: UUID
    rate_per_unit: float
    currency: str
    business_name: str

    model_config = {"from_attributes": True}


class SystemSettingsUpdate(BaseModel):
    rate_per_unit: Optional[float] = Field(default=None, gt=0)
    currency: Optional[str] = None
    business_name: Optional[str] = None
