import uuid
from sqlalchemy import Boolean, Column, String, Numeric, ForeignKey, DateTime, Text, Uuid, func
from sqlalchemy.orm import relationship
from shared.core.database import Base


class MeterReading(Base):
    __tablename__ = "meter_readings"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    meter_id = Column(Uuid(as_uuid=True), ForeignKey(
        "meters.id", ondelete="CASCADE"), nullable=False, index=True)
    shop_id = Column(Uuid(as_uuid=True), ForeignKey(
        "shops.id", ondelete="CASCADE"), nullable=False, index=True)
    reading_value = Column(Numeric(18, 6, asdecimal=False), nullable=False)
    # meter.last_reading at the moment this row was written, never recomputed
    previous_reading_value = Column(
        Numeric(18, 6, asdecimal=False), nullable=False, default=0)
    photo_url = Column(Text)
    reading_date = Column(DateTime(timezone=True),
                          server_default=func.now(), nullable=False)
    confidence = Column(Numeric(5, 2, asdecimal=False))  # 0-100, NULL for manual entry
    status = Column(String(16), default="approved")  # approved | pending | rejected
    source = Column(String(16), default="manual")  # ai | ocr | manual
    manual_override = Column(Boolean, default=False, nullable=False)
    notes = Column(Text)

    meter = relationship("Meter", back_populates="readings")
    shop = relationship("Shop", back_populates="readings")
    invoice = relationship("Invoice", back_populates="reading",
                           uselist=False, cascade="all, delete")
