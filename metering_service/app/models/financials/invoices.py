import uuid
from sqlalchemy import (
    Boolean, Column, String, Numeric, ForeignKey, DateTime, Uuid, func, UniqueConstraint
)
from sqlalchemy.orm import relationship
from shared.core.database import Base


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    reading_id = Column(Uuid(as_uuid=True), ForeignKey(
        "meter_readings.id", ondelete="CASCADE"), nullable=False)
    shop_id = Column(Uuid(as_uuid=True), ForeignKey(
        "shops.id", ondelete="CASCADE"), nullable=False, index=True)
    units = Column(Numeric(18, 6, asdecimal=False), nullable=False)
    # frozen at issuance, never recomputed from settings
    rate_per_unit = Column(Numeric(18, 6, asdecimal=False), nullable=False)
    total_amount = Column(Numeric(18, 6, asdecimal=False), nullable=False)
    issued_date = Column(DateTime(timezone=True),
                         server_default=func.now(), nullable=False)
    billing_period = Column(String(32))  # e.g. "October 2026"
    status = Column(String(16), default="issued")
    paid_status = Column(Boolean, default=False, nullable=False)

    __table_args__ = (
        UniqueConstraint("reading_id", name="uq_invoices_reading_id"),
    )

    reading = relationship("MeterReading", back_populates="invoice")
    shop = relationship("Shop", back_populates="invoices")
