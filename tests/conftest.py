import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from shared.core.database import Base, enable_sqlite_foreign_keys, get_billing_db
from metering_service.app.main import app
from metering_service.app.crud.shops import shops_crud
from metering_service.app.models.energy_iot.meters import Meter
from metering_service.app.models.shops.shops import Shop
from metering_service.app.schemas.shops.shops_schemas import ShopCreate


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_billing_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def shop_payload(**overrides):
    payload = {
        "name": "Madina General Store",
        "owner_name": "Ahmed Raza",
        "cnic": "42101-1234567-1",
        "phone": "0300-1234567",
        "address": "Block 5, Saddar",
        "shop_number": "A-12",
        "meter_serial": "XY001",
        "initial_reading_before": 1000,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_shop(db):
    """Register a shop through the crud layer and return (shop, meter) rows."""
    def _make(**overrides):
        result = shops_crud.register_shop(db, ShopCreate(**shop_payload(**overrides)))
        shop = db.get(Shop, result["shop"].id)
        meter = db.get(Meter, result["meter"].id)
        return shop, meter
    return _make
