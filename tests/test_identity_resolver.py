import uuid

import pytest

from metering_service.app.crud.billing.identity_resolver import (
    find_duplicate_serials, match_meter, normalize_serial, resolve_shop
)
from metering_service.app.enum.billing_enum import MatchedBy
from metering_service.app.models.energy_iot.meters import Meter
from metering_service.app.models.shops.shops import Shop


def _shop(name):
    return Shop(id=uuid.uuid4(), name=name, owner_name="Owner")


def _meter(serial, shop):
    return Meter(id=uuid.uuid4(), serial_number=serial, shop_id=shop.id)


@pytest.fixture
def registry():
    bakery = _shop("Bakery")
    tailor = _shop("Tailor")
    meters = [_meter("ABC-123", bakery), _meter("XY001", tailor)]
    return [bakery, tailor], meters


@pytest.mark.parametrize("raw", ["ABC-123", "abc123", "  AbC123 ", "a.b c/1_2-3"])
def test_normalize_serial_variants_collapse(raw):
    assert normalize_serial(raw) == "abc123"


def test_normalize_serial_empty():
    assert normalize_serial(None) == ""
    assert normalize_serial("  --  ") == ""


@pytest.mark.parametrize("raw", ["ABC-123", "abc123", "  AbC123 "])
def test_serial_variants_resolve_to_same_meter(registry, raw):
    shops, meters = registry
    identity = resolve_shop(raw, meters, shops)
    assert identity.meter is meters[0]
    assert identity.shop is shops[0]
    assert identity.matched_by == MatchedBy.serial


def test_analyzer_serial_with_dash_matches_stored_serial(registry):
    shops, meters = registry
    identity = resolve_shop("xy-001", meters, shops)
    assert identity.shop.name == "Tailor"


def test_empty_serial_never_matches(registry):
    _, meters = registry
    assert match_meter("", meters) is None
    assert match_meter("---", meters) is None


def test_unknown_serial_is_unresolved(registry):
    shops, meters = registry
    identity = resolve_shop("ZZ-999", meters, shops)
    assert not identity.resolved
    assert identity.meter is None
    assert identity.matched_by is None


def test_manual_choice_wins_over_serial_match(registry):
    shops, meters = registry
    bakery, tailor = shops
    identity = resolve_shop("ABC-123", meters, shops, manual_shop_id=tailor.id)
    assert identity.shop is tailor
    assert identity.meter.serial_number == "XY001"
    assert identity.matched_by == MatchedBy.manual


def test_unknown_manual_shop_does_not_fall_back_to_serial(registry):
    shops, meters = registry
    identity = resolve_shop("ABC-123", meters, shops, manual_shop_id=uuid.uuid4())
    assert not identity.resolved


def test_find_duplicate_serials(registry):
    shops, meters = registry
    meters.append(_meter("abc 123", shops[1]))
    duplicates = find_duplicate_serials(meters)
    assert list(duplicates) == ["abc123"]
    assert len(duplicates["abc123"]) == 2
