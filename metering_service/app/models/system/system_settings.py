from sqlalchemy import Column, String, Numeric, DateTime, Uuid
from sqlalchemy.sql import func
import uuid
from shared.core.database import Base


class SystemSetting(Base):
    __tablename__ = "system_settings"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # ---------- Billing ----------
    rate_per_unit = Column(Numeric(18, 6, asdecimal=False), nullable=False)
    currency = Column(String(10), nullable=False)
    business_name = Column(String(100), nullable=False)

    # ---------- Meta ----------
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
