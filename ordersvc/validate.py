"""Order validation and validation of JSON / JSONL inputs."""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parseaddr
from typing import IO, Iterable, List, Optional, Union

from ordersvc.domain import Delivery, Item, Order, Payment, parse_order

_MIN_DATE = datetime(2000, 1, 1, tzinfo=timezone.utc)
_MAX_LINE = 10 * 1024 * 1024


class InvalidOrderError(ValueError):
    """Raised when an order fails domain validation."""

    def __init__(self, reason: str):
        super().__init__(f"order validation failed: {reason}")
        self.reason = reason


def _valid_email(value: str) -> bool:
    _, addr = parseaddr(value)
    if not addr or any(ch.isspace() for ch in addr):
        return False
    local, sep, domain = addr.rpartition("@")
    return bool(sep and local and domain)


class OrderValidator:
    """Checks required fields and value ranges of an order."""

    def validate(self, ctx, order: Optional[Order]) -> None:
        self._core(order)
        self._payment(order.payment)
        self._delivery(order.delivery)
        self._items(order.items)

    @staticmethod
    def _core(order: Optional[Order]) -> None:
        if order is None:
            raise InvalidOrderError("заказ не может быть nil")
        if not order.order_uid:
            raise InvalidOrderError("order_uid обязателен")
        if not order.track_number:
            raise InvalidOrderError("track_number обязателен")
        if not order.entry:
            raise InvalidOrderError("entry (канал поступления) обязателен")
        created = order.date_created
        if created is not None and created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        if created is None or created < _MIN_DATE:
            raise InvalidOrderError("date_created некорректен")

    @staticmethod
    def _payment(p: Payment) -> None:
        if not p.transaction:
            raise InvalidOrderError("payment.transaction обязателен")
        if not p.currency:
            raise InvalidOrderError("payment.currency обязателен")
        if p.amount < 0:
            raise InvalidOrderError("payment.amount должен быть неотрицательным")

    @staticmethod
    def _delivery(d: Delivery) -> None:
        if not d.email:
            raise InvalidOrderError("delivery.email обязателен")
        if not _valid_email(d.email):
            raise InvalidOrderError("delivery.email некорректен")

    @staticmethod
    def _items(items: List[Item]) -> None:
        if not items:
            raise InvalidOrderError("items не должен быть пустым")
        for idx, item in enumerate(items):
            if not item.name:
                raise InvalidOrderError(f"items[{idx}].name обязателен")
            if item.price < 0:
                raise InvalidOrderError(f"items[{idx}].price должен быть неотрицательным")
            if item.total_price < 0:
                raise InvalidOrderError(f"items[{idx}].total_price должен быть неотрицательным")


class InputFormat(str, enum.Enum):
    AUTO = "auto"
    JSON = "json"
    JSONL = "jsonl"


@dataclass
class JSONLResult:
    valid_lines: int = 0
    invalid_lines: int = 0


def validate_order_from_json(ctx, validator, raw: Union[str, bytes]) -> Order:
    """Strictly decode one order and validate it."""
    order = parse_order(raw)
    validator.validate(ctx, order)
    return order


def validate_jsonl_stream(ctx, validator, reader: Iterable[str], writer: IO[str]) -> JSONLResult:
    """Validate each non-blank line; write valid orders as canonical JSON lines."""
    result = JSONLResult()
    for line in reader:
        if len(line) > _MAX_LINE:
            raise ValueError("scan: token too long")
        line = line.rstrip("\r\n")
        if not line.strip():
            continue
        try:
            order = validate_order_from_json(ctx, validator, line)
        except ValueError:
            result.invalid_lines += 1
            continue
        writer.write(order.to_json() + "\n")
        result.valid_lines += 1
    return result


def validate_file(ctx, validator, file_path, fmt, writer: IO[str]) -> str:
    """Validate a JSON or JSONL file and return a "N valid / M invalid" summary.

    A single invalid JSON document raises its error with ``summary`` set on it.
    """
    if fmt == InputFormat.AUTO:
        ext = os.path.splitext(str(file_path))[1].lower()
        fmt = InputFormat.JSONL if ext == ".jsonl" else InputFormat.JSON

    with open(file_path, encoding="utf-8", newline="") as handle:
        if fmt == InputFormat.JSON:
            raw = handle.read()
            try:
                order = validate_order_from_json(ctx, validator, raw)
            except ValueError as exc:
                exc.summary = "0 valid / 1 invalid"
                raise
            writer.write(order.to_json() + "\n")
            return "1 valid / 0 invalid"
        if fmt == InputFormat.JSONL:
            result = validate_jsonl_stream(ctx, validator, handle, writer)
            return f"{result.valid_lines} valid / {result.invalid_lines} invalid"
    name = fmt.value if isinstance(fmt, InputFormat) else fmt
    raise ValueError(f"unsupported format: {name}")