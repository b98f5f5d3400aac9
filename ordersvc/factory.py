"""Builders of valid sample orders."""

from __future__ import annotations

import secrets
from datetime import datetime, timezone
from typing import Callable

from ordersvc.domain import Delivery, Item, Order, Payment

Option = Callable[[Order], None]


def uniq_suffix() -> str:
    """Return a random 12-character hex suffix."""
    return secrets.token_hex(6)


def _item(chrt_id: int, price: int, rid: str, name: str, nm_id: int) -> Item:
    return Item(
        chrt_id=chrt_id,
        track_number="TR-" + uniq_suffix(),
        price=price,
        rid=rid,
        name=name,
        size="M",
        total_price=price,
        nm_id=nm_id,
        brand="brand",
        status=200,
    )


def make_order(*opts: Option) -> Order:
    """Build a valid order, then apply each option to it."""
    uid = "ord-" + uniq_suffix()
    now = datetime.now(timezone.utc).replace(microsecond=0)
    order = Order(
        order_uid=uid,
        track_number="TR-" + uniq_suffix(),
        customer_id="cust-" + uniq_suffix(),
        date_created=now,
        entry="WBIL",
        delivery=Delivery(
            name="John Smith",
            phone="+1",
            zip="000000",
            city="Metropolis",
            address="Main st 1",
            region="NA",
            email="john@example.com",
        ),
        payment=Payment(
            transaction=uid,
            currency="USD",
            provider="test",
            amount=123,
            payment_dt=int(now.timestamp()),
            bank="TC-BANK",
            delivery_cost=10,
            goods_total=113,
        ),
        items=[_item(1001, 100, "RID-1", "Widget", 1)],
    )
    for opt in opts:
        opt(order)
    return order


def with_entry(entry: str) -> Option:
    def apply(order: Order) -> None:
        order.entry = entry

    return apply


def with_customer(cust: str) -> Option:
    def apply(order: Order) -> None:
        order.customer_id = cust

    return apply


def with_order_uid(uid: str) -> Option:
    def apply(order: Order) -> None:
        order.order_uid = uid
        order.payment.transaction = uid

    return apply


def with_items(n: int) -> Option:
    def apply(order: Order) -> None:
        order.items = [_item(1000 + i, 10 * (i + 1), "RID-" + uniq_suffix(), "Item", i + 1) for i in range(n)]

    return apply