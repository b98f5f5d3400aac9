"""Order data model with strict JSON decoding and canonical encoding."""

from __future__ import annotations

import json
import re
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional, Union


class OrderDecodeError(ValueError):
    """Raised when order JSON is malformed or does not match the schema."""


@dataclass
class Delivery:
    name: str = ""
    phone: str = ""
    zip: str = ""
    city: str = ""
    address: str = ""
    region: str = ""
    email: str = ""


@dataclass
class Payment:
    transaction: str = ""
    request_id: str = ""
    currency: str = ""
    provider: str = ""
    amount: int = 0
    payment_dt: int = 0
    bank: str = ""
    delivery_cost: int = 0
    goods_total: int = 0
    custom_fee: int = 0


@dataclass
class Item:
    chrt_id: int = 0
    track_number: str = ""
    price: int = 0
    rid: str = ""
    name: str = ""
    sale: int = 0
    size: str = ""
    total_price: int = 0
    nm_id: int = 0
    brand: str = ""
    status: int = 0


@dataclass
class Order:
    order_uid: str = ""
    track_number: str = ""
    entry: str = ""
    delivery: Delivery = field(default_factory=Delivery)
    payment: Payment = field(default_factory=Payment)
    items: List[Item] = field(default_factory=list)
    locale: str = ""
    internal_signature: str = ""
    customer_id: str = ""
    delivery_service: str = ""
    shardkey: str = ""
    sm_id: int = 0
    date_created: Optional[datetime] = None
    oof_shard: str = ""

    def to_dict(self) -> dict:
        """Return a JSON-ready dict in field order."""
        data = asdict(self)
        data["date_created"] = _format_time(self.date_created)
        return data

    def to_json(self) -> str:
        """Return compact canonical JSON."""
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)


_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
_TIME_RE = re.compile(r"(\d{4}-\d{2}-\d{2})[Tt](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})$")


def _parse_time(text: str) -> Optional[datetime]:
    m = _TIME_RE.match(text)
    if not m:
        raise OrderDecodeError(f"invalid json: cannot parse time {text!r}")
    date, clock, frac, off = m.groups()
    micro = frac[:6].ljust(6, "0") if frac else "000000"
    off = "+00:00" if off in ("Z", "z") else off
    try:
        value = datetime.fromisoformat(f"{date}T{clock}.{micro}{off}")
    except ValueError as exc:
        raise OrderDecodeError(f"invalid json: {exc}") from exc
    return None if value == _ZERO_TIME else value


def _format_time(value: Optional[datetime]) -> str:
    value = value or _ZERO_TIME
    text = value.strftime("%Y-%m-%dT%H:%M:%S").rjust(19, "0")
    if value.microsecond:
        text += "." + f"{value.microsecond:06d}".rstrip("0")
    offset = value.utcoffset() or timedelta(0)
    if not offset:
        return text + "Z"
    total = int(offset.total_seconds())
    sign = "-" if total < 0 else "+"
    total = abs(total)
    return f"{text}{sign}{total // 3600:02d}:{total % 3600 // 60:02d}"


def _build(cls, data: Any, path: str):
    if not isinstance(data, dict):
        raise OrderDecodeError(f"invalid json: {path or 'order'} must be an object")
    defaults = cls()
    names = {f.name for f in fields(cls)}
    kwargs = {}
    for key, value in data.items():
        if key not in names:
            raise OrderDecodeError(f'invalid json: unknown field "{key}"')
        if value is None:
            continue
        where = f"{path}.{key}" if path else key
        default = getattr(defaults, key)
        if isinstance(default, (Delivery, Payment)):
            kwargs[key] = _build(type(default), value, where)
        elif key == "items":
            if not isinstance(value, list):
                raise OrderDecodeError(f"invalid json: {where} must be an array")
            kwargs[key] = [_build(Item, v or {}, f"{where}[{i}]") for i, v in enumerate(value)]
        elif key == "date_created":
            if not isinstance(value, str):
                raise OrderDecodeError(f"invalid json: {where} must be a string")
            kwargs[key] = _parse_time(value)
        elif isinstance(default, int):
            if not isinstance(value, int) or isinstance(value, bool):
                raise OrderDecodeError(f"invalid json: {where} must be an integer")
            kwargs[key] = value
        else:
            if not isinstance(value, str):
                raise OrderDecodeError(f"invalid json: {where} must be a string")
            kwargs[key] = value
    return cls(**kwargs)


def order_from_dict(data: Any) -> Order:
    """Build an Order from decoded JSON, rejecting unknown fields and wrong types."""
    return _build(Order, data, "")


def parse_order(raw: Union[str, bytes]) -> Order:
    """Strictly decode exactly one JSON order; trailing data is an error."""
    try:
        if isinstance(raw, (bytes, bytearray)):
            raw = bytes(raw).decode("utf-8")
        start = len(raw) - len(raw.lstrip())
        data, end = json.JSONDecoder().raw_decode(raw, start)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise OrderDecodeError(f"invalid json: {exc}") from exc
    order = order_from_dict(data)
    if raw[end:].strip():
        raise OrderDecodeError("invalid json: trailing data")
    return order