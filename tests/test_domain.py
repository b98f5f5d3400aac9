import json
from datetime import datetime, timezone

import pytest

from ordersvc.domain import Delivery, Item, Order, OrderDecodeError, order_from_dict, parse_order


def _sample():
    return Order(
        order_uid="uid-1",
        track_number="TN",
        entry="WBIL",
        delivery=Delivery(name="N", email="user@example.com"),
        items=[Item(name="x", price=1, total_price=1)],
        date_created=datetime(2021, 11, 26, 6, 22, 19, tzinfo=timezone.utc),
    )


def test_round_trip():
    order = _sample()
    assert parse_order(order.to_json()) == order


def test_time_format_from_input_preserved():
    raw = '{"order_uid":"a","date_created":"2021-11-26T06:22:19Z"}'
    order = parse_order(raw)
    assert json.loads(order.to_json())["date_created"] == "2021-11-26T06:22:19Z"


def test_compact_output_has_no_spaces_between_tokens():
    text = _sample().to_json()
    assert ", " not in text and '": ' not in text


def test_unknown_field_rejected():
    with pytest.raises(OrderDecodeError, match="invalid json"):
        parse_order('{"unknown":"x","order_uid":"a"}')


def test_unknown_nested_field_rejected():
    with pytest.raises(OrderDecodeError):
        order_from_dict({"delivery": {"foo": 1}})


def test_trailing_data_rejected():
    with pytest.raises(OrderDecodeError, match="trailing data"):
        parse_order(_sample().to_json() + " {}")


def test_malformed_rejected():
    with pytest.raises(OrderDecodeError, match="invalid json"):
        parse_order(b"{")


def test_wrong_type_rejected():
    with pytest.raises(OrderDecodeError):
        order_from_dict({"sm_id": "1"})
    with pytest.raises(OrderDecodeError):
        order_from_dict({"order_uid": 5})


def test_null_leaves_defaults():
    order = parse_order('{"order_uid":null,"items":null}')
    assert order.order_uid == ""
    assert order.items == []


def test_missing_date_round_trips_as_none():
    order = Order(order_uid="z")
    assert parse_order(order.to_json()).date_created is None