from typing import Optional

from ...models.energy_iot.meter_readings import MeterReading
from ...models.energy_iot.meters import Meter
from ...models.financials.invoices import Invoice
from ...models.shops.shops import Shop
from ...schemas.energy_iot.meter_readings_schemas import MeterReadingOut
from ...schemas.energy_iot.meters_schemas import MeterOut
from ...schemas.financials.invoices_schemas import InvoiceOut
from ...schemas.shops.shops_schemas import ShopOut


def current_meter(shop: Shop) -> Optional[Meter]:
    meters = list(shop.meters or [])
    if shop.meter_id:
        for meter in meters:
            if meter.id == shop.meter_id:
                return meter
    return meters[0] if meters else None


def shop_out(shop: Shop, meter: Optional[Meter] = None) -> ShopOut:
    meter = meter or current_meter(shop)
    return ShopOut.model_validate(shop).model_copy(update={
        "meter_serial": meter.serial_number if meter else None,
        "last_reading": meter.last_reading if meter else None,
    })


def meter_out(meter: Meter, last_reading_date=None) -> MeterOut:
    return MeterOut.model_validate(meter).model_copy(update={
        "shop_name": meter.shop.name if meter.shop else None,
        "last_reading_date": last_reading_date,
    })


def reading_out(reading: MeterReading) -> MeterReadingOut:
    return MeterReadingOut.model_validate(reading).model_copy(update={
        "serial_number": reading.meter.serial_number if reading.meter else None,
        "shop_name": reading.shop.name if reading.shop else None,
    })


def invoice_out(invoice: Invoice) -> InvoiceOut:
    return InvoiceOut.model_validate(invoice).model_copy(update={
        "shop_name": invoice.shop.name if invoice.shop else None,
    })
