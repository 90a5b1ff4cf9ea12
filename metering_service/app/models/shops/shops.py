import uuid
from sqlalchemy import Column, String, Text, DateTime, Uuid, func
from sqlalchemy.orm import relationship
from shared.core.database import Base


class Shop(Base):
    __tablename__ = "shops"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(128), nullable=False)
    owner_name = Column(String(128), nullable=False)
    cnic = Column(String(20))
    phone = Column(String(20))
    address = Column(Text)
    shop_number = Column(String(32))
    customer_image = Column(Text)
    registration_date = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False)
    # current meter, a plain id reference (meters point back with a real FK)
    meter_id = Column(Uuid(as_uuid=True), nullable=True)

    meters = relationship(
        "Meter", back_populates="shop", cascade="all, delete")
    readings = relationship(
        "MeterReading", back_populates="shop", cascade="all, delete")
    invoices = relationship(
        "Invoice", back_populates="shop", cascade="all, delete")
