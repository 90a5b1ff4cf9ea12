import uuid

import pytest

from metering_service.app.core.exceptions import NotFound, ValidationFailure
from metering_service.app.crud.billing import reading_invoice_crud
from metering_service.app.crud.shops import shops_crud
from metering_service.app.models.energy_iot.meter_readings import MeterReading
from metering_service.app.models.energy_iot.meters import Meter
from metering_service.app.models.financials.invoices import Invoice
from metering_service.app.models.shops.shops import Shop
from metering_service.app.schemas.energy_iot.meter_readings_schemas import ReadingConfirmRequest
from metering_service.app.schemas.shops.shops_schemas import ShopCreate, ShopRequest, ShopUpdate

from conftest import shop_payload


def test_register_seeds_last_reading_without_billing(db):
    result = shops_crud.register_shop(db, ShopCreate(**shop_payload(initial_reading_before=1000)))

    assert result["meter"].last_reading == 1000
    assert result["shop"].meter_id == result["meter"].id
    assert result["shop"].meter_serial == "XY001"
    assert result["warnings"] == []
    assert db.query(MeterReading).count() == 0
    assert db.query(Invoice).count() == 0


def test_register_without_initial_reading_starts_at_zero(db):
    result = shops_crud.register_shop(db, ShopCreate(**shop_payload(initial_reading_before=None)))
    assert result["meter"].last_reading == 0


@pytest.mark.parametrize("field,value", [
    ("name", ""),
    ("owner_name", "   "),
    ("meter_serial", None),
    ("cnic", "42101-123"),
    ("phone", "0300-12"),
])
def test_register_validation_errors(db, field, value):
    with pytest.raises(ValidationFailure) as exc:
        shops_crud.register_shop(db, ShopCreate(**shop_payload(**{field: value})))

    assert field in exc.value.errors
    assert db.query(Shop).count() == 0


def test_register_collects_every_field_error(db):
    with pytest.raises(ValidationFailure) as exc:
        shops_crud.register_shop(db, ShopCreate(name="", owner_name="", cnic="1", phone="2"))
    assert set(exc.value.errors) == {"name", "owner_name", "meter_serial", "cnic", "phone"}


def test_duplicate_serial_is_allowed_with_warning(db, make_shop):
    make_shop(name="First Shop", meter_serial="XY-001")

    result = shops_crud.register_shop(
        db, ShopCreate(**shop_payload(name="Second Shop", meter_serial="xy001")))

    assert db.query(Meter).count() == 2
    assert len(result["warnings"]) == 1
    assert "First Shop" in result["warnings"][0]


def test_update_never_touches_last_reading(db, make_shop):
    shop, meter = make_shop(initial_reading_before=1000)

    result = shops_crud.update_shop(db, shop.id, ShopUpdate(
        owner_name="New Owner", meter_serial="XY-002"))

    assert result["shop"].owner_name == "New Owner"
    assert result["meter"].serial_number == "XY-002"
    assert result["meter"].last_reading == 1000


def test_update_validates_only_sent_fields(db, make_shop):
    shop, _ = make_shop()

    shops_crud.update_shop(db, shop.id, ShopUpdate(address="New address"))

    with pytest.raises(ValidationFailure) as exc:
        shops_crud.update_shop(db, shop.id, ShopUpdate(phone="123"))
    assert list(exc.value.errors) == ["phone"]


def test_update_unknown_shop(db):
    with pytest.raises(NotFound):
        shops_crud.update_shop(db, uuid.uuid4(), ShopUpdate(address="x"))


def test_delete_cascades_to_meter_readings_and_invoices(db, make_shop):
    shop, _ = make_shop(initial_reading_before=1000)
    other, _ = make_shop(name="Other Shop", meter_serial="ZZ-900")
    for value in (1010, 1020):
        reading_invoice_crud.record_reading(db, ReadingConfirmRequest(
            shop_id=shop.id, reading_value=value, confirmed=True))
    reading_invoice_crud.record_reading(db, ReadingConfirmRequest(
        shop_id=other.id, reading_value=1005, confirmed=True))

    shops_crud.delete_shop(db, shop.id)

    db.expire_all()
    assert db.query(Shop).count() == 1
    assert db.query(Meter).count() == 1
    assert db.query(MeterReading).count() == 1
    assert db.query(Invoice).count() == 1


def test_list_shops_search(db, make_shop):
    make_shop(name="Madina Store", meter_serial="XY-001")
    make_shop(name="City Tailors", owner_name="Bilal Khan", meter_serial="QR-555")

    assert shops_crud.get_list(db, ShopRequest())["total"] == 2
    assert shops_crud.get_list(db, ShopRequest(search="bilal"))["total"] == 1

    by_serial = shops_crud.get_list(db, ShopRequest(search="QR-555"))
    assert [s.name for s in by_serial["shops"]] == ["City Tailors"]


def test_shop_details(db, make_shop):
    shop, _ = make_shop(initial_reading_before=1000)
    for value in (1045, 1100):
        reading_invoice_crud.record_reading(db, ReadingConfirmRequest(
            shop_id=shop.id, reading_value=value, confirmed=True))

    details = shops_crud.get_shop_details(db, shop.id)

    assert details["meter"].last_reading == 1100
    assert [r.reading_value for r in details["readings"]] == [1100, 1045]
    assert details["totals"]["total_units"] == 100
    assert details["totals"]["outstanding"] == 4500
