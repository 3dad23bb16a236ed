from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
from dateutil.parser import parse as dateutil_parse


ORDER_STATUSES = ("reserved", "scheduled", "photographed", "post-sale")
PAYMENT_METHODS = ("pix", "card", "cash", "transfer")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-ish timestamp into a naive wall-clock datetime.

    Offsets are dropped rather than converted, so the calendar date is the one
    written in the record.
    """
    if value is None or value == "":
        return None
    if isinstance(value, pd.Timestamp):
        if pd.isna(value):
            return None
        value = value.to_pydatetime()
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    try:
        parsed = dateutil_parse(str(value))
    except (TypeError, ValueError, OverflowError):
        raise ValueError(f"Could not parse timestamp value '{value}'")
    return parsed.replace(tzinfo=None)


def parse_day(value: Any) -> date:
    parsed = parse_timestamp(value)
    if parsed is None:
        raise ValueError("A date value is required")
    return parsed.date()


def _require(raw: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    raise ValueError(f"Missing required field '{keys[0]}'")


@dataclass(frozen=True)
class Order:
    id: str
    year: int
    customer_id: str
    created_at: datetime
    package_name: str
    entry_amount: float
    total_amount: float
    entry_payment_method: str
    status: str
    session_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Order":
        return cls(
            id=str(_require(raw, "id")),
            year=int(_require(raw, "year")),
            customer_id=str(_require(raw, "customer_id", "customerId")),
            created_at=parse_timestamp(_require(raw, "created_at", "createdAt")),
            session_at=parse_timestamp(raw.get("session_at", raw.get("sessionAt"))),
            package_name=str(_require(raw, "package_name", "packageName")),
            entry_amount=float(_require(raw, "entry_amount", "entryAmount")),
            total_amount=float(_require(raw, "total_amount", "totalAmount")),
            entry_payment_method=str(_require(raw, "entry_payment_method", "entryPaymentMethod")),
            status=str(_require(raw, "status")),
        )


@dataclass(frozen=True)
class Customer:
    id: str
    name: str
    contact_handle: str
    email: Optional[str] = None
    tags: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Customer":
        return cls(
            id=str(_require(raw, "id")),
            name=str(_require(raw, "name")),
            contact_handle=str(raw.get("contact_handle") or raw.get("whatsapp") or ""),
            email=raw.get("email") or None,
            tags=tuple(sorted(set(str(t) for t in (raw.get("tags") or [])))),
        )


@dataclass(frozen=True)
class PackageYearPrice:
    year: int
    total: float
    entry: float
    installments_count: int
    installment_value: float

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "PackageYearPrice":
        return cls(
            year=int(_require(raw, "year")),
            total=float(_require(raw, "total")),
            entry=float(_require(raw, "entry")),
            installments_count=int(_require(raw, "installments_count", "installmentsCount")),
            installment_value=float(_require(raw, "installment_value", "installmentValue")),
        )


@dataclass(frozen=True)
class ExtraPhotoYearPrice:
    year: int
    unit_price: float

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ExtraPhotoYearPrice":
        return cls(year=int(_require(raw, "year")), unit_price=float(_require(raw, "unit_price", "unitPrice")))


@dataclass(frozen=True)
class PricingTable:
    packages: Dict[str, List[PackageYearPrice]] = field(default_factory=dict)
    extra_photo: List[ExtraPhotoYearPrice] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "PricingTable":
        packages = {
            str(name): [PackageYearPrice.from_dict(row) for row in rows]
            for name, rows in (raw.get("packages") or {}).items()
        }
        extra = [ExtraPhotoYearPrice.from_dict(row) for row in (raw.get("extra_photo") or raw.get("extraPhoto") or [])]
        return cls(packages=packages, extra_photo=extra)


@dataclass(frozen=True)
class SeriesPoint:
    """One chart row: a label plus (year, value) pairs in a fixed year order."""

    label: str
    values: Tuple[Tuple[int, float], ...]

    def value_for(self, year: int) -> float:
        for tag, value in self.values:
            if tag == year:
                return value
        return 0

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "values": [{"year": y, "value": v} for y, v in self.values]}
