import pytest
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from metering_service.app.core.exceptions import (
    ConcurrencyConflict, ConfirmationRequired, IdentityUnresolved, PersistenceFailure, ValidationFailure
)
from metering_service.app.crud.billing import persistence_crud, reading_invoice_crud
from metering_service.app.crud.billing.invoice_ledger_crud import verify_invoice_reading_links
from metering_service.app.crud.system import system_settings_crud
from metering_service.app.models.energy_iot.meter_readings import MeterReading
from metering_service.app.models.energy_iot.meters import Meter
from metering_service.app.models.financials.invoices import Invoice
from metering_service.app.models.shops.shops import Shop
from metering_service.app.schemas.energy_iot.meter_readings_schemas import ReadingConfirmRequest
from metering_service.app.schemas.system.system_settings_schema import SystemSettingsUpdate


def confirm(db, shop, reading_value, **kwargs):
    request = ReadingConfirmRequest(
        shop_id=shop.id, reading_value=reading_value, confirmed=True, **kwargs)
    return reading_invoice_crud.record_reading(db, request)


def test_delta_reading_creates_invoice_and_advances_meter(db, make_shop):
    shop, meter = make_shop(initial_reading_before=1000)

    result = confirm(db, shop, 1045)

    assert result["invoice"].units == 45
    assert result["invoice"].rate_per_unit == 45
    assert result["invoice"].total_amount == 2025
    assert result["invoice"].paid_status is False
    assert result["reading"].previous_reading_value == 1000
    assert result["invoice"].reading_id == result["reading"].id

    db.expire_all()
    assert db.get(Meter, meter.id).last_reading == 1045


def test_manual_override_is_billed_and_flagged(db, make_shop):
    shop, _ = make_shop(initial_reading_before=1000)

    result = confirm(db, shop, 1045, units_override=40)

    assert result["invoice"].units == 40
    assert result["invoice"].total_amount == 1800
    assert result["reading"].manual_override is True


def test_first_reading_on_meter_without_last_reading(db, make_shop):
    shop, meter = make_shop(initial_reading_before=None)
    meter.last_reading = None
    db.commit()

    result = confirm(db, shop, 120)

    assert result["reading"].previous_reading_value == 0
    assert result["invoice"].units == 120


def test_sequential_readings_chain_previous_values(db, make_shop):
    shop, _ = make_shop(initial_reading_before=1000)

    first = confirm(db, shop, 1045)
    second = confirm(db, shop, 1100)

    assert second["reading"].previous_reading_value == first["reading"].reading_value
    assert second["invoice"].units == 55


def test_lower_reading_bills_zero_and_still_moves_meter(db, make_shop):
    shop, meter = make_shop(initial_reading_before=1000)

    result = confirm(db, shop, 10)

    assert result["invoice"].units == 0
    assert result["invoice"].total_amount == 0
    db.expire_all()
    assert db.get(Meter, meter.id).last_reading == 10


def test_rate_is_frozen_at_issuance(db, make_shop):
    shop, _ = make_shop(initial_reading_before=0)
    result = confirm(db, shop, 10)

    system_settings_crud.update_system_settings(db, SystemSettingsUpdate(rate_per_unit=60))

    invoice = db.get(Invoice, result["invoice"].id)
    assert invoice.rate_per_unit == 45
    assert invoice.total_amount == invoice.units * 45

    later = confirm(db, shop, 20)
    assert later["invoice"].rate_per_unit == 60
    assert later["invoice"].total_amount == 600


def test_unconfirmed_request_is_rejected(db, make_shop):
    shop, _ = make_shop()

    with pytest.raises(ConfirmationRequired):
        reading_invoice_crud.record_reading(
            db, ReadingConfirmRequest(shop_id=shop.id, reading_value=1045))

    assert db.query(MeterReading).count() == 0


def test_unresolved_serial_blocks_submission(db, make_shop):
    make_shop(meter_serial="XY001")

    with pytest.raises(IdentityUnresolved):
        reading_invoice_crud.record_reading(db, ReadingConfirmRequest(
            serial_number="QQ-404", reading_value=1045, confirmed=True))

    assert db.query(MeterReading).count() == 0
    assert db.query(Invoice).count() == 0


def test_serial_only_request_resolves_shop(db, make_shop):
    shop, _ = make_shop(meter_serial="XY001")

    result = reading_invoice_crud.record_reading(db, ReadingConfirmRequest(
        serial_number="xy-001", reading_value=1010, confirmed=True))

    assert result["shop"].id == shop.id


def test_invoice_write_failure_leaves_nothing_behind(db, make_shop, monkeypatch):
    shop, meter = make_shop(initial_reading_before=1000)

    def failing_put_invoice(db, invoice):
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(persistence_crud, "put_invoice", failing_put_invoice)

    with pytest.raises(PersistenceFailure):
        confirm(db, shop, 1045)

    db.expire_all()
    assert db.query(MeterReading).count() == 0
    assert db.query(Invoice).count() == 0
    assert db.get(Meter, meter.id).last_reading == 1000


def test_concurrent_meter_update_is_reported(db, make_shop, monkeypatch):
    shop, meter = make_shop(initial_reading_before=1000)

    def stale_update(db, meter, reading_value):
        raise StaleDataError("meters row changed underneath")

    monkeypatch.setattr(persistence_crud, "update_meter_last_reading", stale_update)

    with pytest.raises(ConcurrencyConflict):
        confirm(db, shop, 1045)

    db.expire_all()
    assert db.query(MeterReading).count() == 0
    assert db.get(Meter, meter.id).last_reading == 1000


def test_stale_expected_previous_bills_against_fresh_value(db, make_shop, caplog):
    shop, _ = make_shop(initial_reading_before=1000)
    confirm(db, shop, 1045)

    result = confirm(db, shop, 1100, expected_previous_reading=1000)

    assert result["reading"].previous_reading_value == 1045
    assert result["invoice"].units == 55
    assert "since the preview" in caplog.text


def test_meter_version_increments_per_reading(db, make_shop):
    shop, meter = make_shop()
    start = meter.version

    confirm(db, shop, 1100)

    db.expire_all()
    assert db.get(Meter, meter.id).version == start + 1


def test_one_invoice_per_reading(db, make_shop):
    shop, _ = make_shop()
    confirm(db, shop, 1045)
    confirm(db, shop, 1090)

    audit = verify_invoice_reading_links(persistence_crud.get_all_data(db))
    assert audit["orphan_invoices"] == []
    assert audit["shared_readings"] == []
    assert audit["uninvoiced_readings"] == []

    reading = db.query(MeterReading).first()
    db.add(Invoice(reading_id=reading.id, shop_id=shop.id, units=1, rate_per_unit=45, total_amount=45))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_no_idempotency_two_calls_two_invoices(db, make_shop):
    shop, _ = make_shop()
    confirm(db, shop, 1045)
    confirm(db, shop, 1045)

    assert db.query(Invoice).count() == 2
    assert db.query(Shop).count() == 1


def test_confidence_fraction_is_stored_as_percentage(db, make_shop):
    shop, _ = make_shop(initial_reading_before=1000)

    result = confirm(db, shop, 1045, confidence=0.93)

    assert result["reading"].confidence == pytest.approx(93)
    assert result["invoice"].status == "issued"


def test_unvalidated_non_finite_values_never_reach_the_meter(db, make_shop):
    shop, meter = make_shop(initial_reading_before=1000)
    request = ReadingConfirmRequest.model_construct(
        shop_id=shop.id, reading_value=float("inf"), analyzer_consumed_units=float("nan"),
        confirmed=True)

    with pytest.raises(ValidationFailure) as exc:
        reading_invoice_crud.record_reading(db, request)

    assert set(exc.value.errors) == {"reading_value", "analyzer_consumed_units"}
    db.expire_all()
    assert db.query(MeterReading).count() == 0
    assert db.get(Meter, meter.id).last_reading == 1000


def test_consumed_units_above_maximum_are_rejected(db, make_shop, monkeypatch):
    shop, _ = make_shop(initial_reading_before=1000)
    monkeypatch.setattr(reading_invoice_crud.settings, "MAX_READING_VALUE", 5000)

    with pytest.raises(ValidationFailure) as exc:
        confirm(db, shop, 1045, analyzer_consumed_units=6000)

    assert "analyzer_consumed_units" in exc.value.errors
    assert db.query(Invoice).count() == 0
