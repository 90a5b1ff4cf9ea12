import uuid
from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, Text, Uuid, func
from sqlalchemy.orm import relationship
from shared.core.database import Base


class Meter(Base):
    __tablename__ = "meters"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # not unique: duplicates are only warned about at registration
    serial_number = Column(String(64), nullable=False, index=True)
    shop_id = Column(Uuid(as_uuid=True), ForeignKey(
        "shops.id", ondelete="CASCADE"), nullable=False, index=True)
    install_date = Column(DateTime(timezone=True),
                          server_default=func.now(), nullable=False)
    last_reading = Column(Numeric(18, 6, asdecimal=False))
    meter_image = Column(Text)
    initial_reading_before = Column(Numeric(18, 6, asdecimal=False))
    initial_reading_after = Column(Numeric(18, 6, asdecimal=False))
    version = Column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}

    shop = relationship("Shop", back_populates="meters")
    readings = relationship(
        "MeterReading", back_populates="meter", cascade="all, delete")
