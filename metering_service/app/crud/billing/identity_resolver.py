import re
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from pydantic import BaseModel

from ...enum.billing_enum import MatchedBy
from ...models.energy_iot.meters import Meter
from ...models.shops.shops import Shop

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")


class ResolvedIdentity(BaseModel):
    shop: Optional[Any] = None
    meter: Optional[Any] = None
    matched_by: Optional[MatchedBy] = None

    @property
    def resolved(self) -> bool:
        return self.shop is not None


def normalize_serial(serial: Optional[str]) -> str:
    """'SN-123 45' and 'sn12345' normalize to the same key."""
    if not serial:
        return ""
    return _NON_ALNUM.sub("", str(serial)).lower()


def match_meter(serial: Optional[str], meters: Iterable[Meter]) -> Optional[Meter]:
    key = normalize_serial(serial)
    if not key:
        return None

    for meter in meters:
        if normalize_serial(meter.serial_number) == key:
            return meter
    return None


def _same_id(a, b) -> bool:
    return a is not None and b is not None and str(a) == str(b)


def resolve_shop(
    serial: Optional[str],
    meters: List[Meter],
    shops: List[Shop],
    manual_shop_id: Optional[UUID] = None,
) -> ResolvedIdentity:
    # operator choice wins, even over a serial that matches someone else
    if manual_shop_id:
        shop = next((s for s in shops if _same_id(s.id, manual_shop_id)), None)
        if shop is None:
            return ResolvedIdentity()
        meter = next((m for m in meters if _same_id(m.shop_id, shop.id)), None)
        return ResolvedIdentity(shop=shop, meter=meter, matched_by=MatchedBy.manual)

    meter = match_meter(serial, meters)
    if meter is None:
        return ResolvedIdentity()

    shop = next((s for s in shops if _same_id(s.id, meter.shop_id)), None)
    if shop is None:
        return ResolvedIdentity()
    return ResolvedIdentity(shop=shop, meter=meter, matched_by=MatchedBy.serial)


def find_duplicate_serials(meters: Iterable[Meter]) -> Dict[str, List[Meter]]:
    groups = defaultdict(list)
    for meter in meters:
        key = normalize_serial(meter.serial_number)
        if key:
            groups[key].append(meter)
    return {k: v for k, v in groups.items() if len(v) > 1}
