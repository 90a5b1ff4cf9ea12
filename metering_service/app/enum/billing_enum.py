from enum import Enum


class ReadingStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class ReadingSource(str, Enum):
    ai = "ai"
    ocr = "ocr"
    manual = "manual"


class InvoicePaidFilter(str, Enum):
    all = "all"
    paid = "paid"
    pending = "pending"


class ConsumptionBasis(str, Enum):
    override = "override"
    analyzer = "analyzer"
    delta = "delta"


class MatchedBy(str, Enum):
    manual = "manual"
    serial = "serial"


class InvoiceStatus(str, Enum):
    issued = "issued"
