import json
import threading

from werkzeug.test import Client, EnvironBuilder
from werkzeug.wrappers import Request

from ordersvc.domain import Item, Order
from ordersvc.router import Handler, new_router


class _NoopLogger:
    def info(self, ctx, message, *args):
        pass

    def warning(self, ctx, message, *args):
        pass

    def error(self, ctx, message, *args):
        pass


class _FakeService:
    def __init__(self, order=None, orders=None, error=None):
        self.order = order
        self.orders = orders
        self.error = error
        self.calls = []

    def get_order(self, ctx, order_uid):
        self.calls.append(("get_order", order_uid))
        if self.error is not None:
            raise self.error
        return self.order

    def orders_by_customer(self, ctx, customer_id, limit, offset):
        self.calls.append(("orders_by_customer", customer_id, limit, offset))
        if self.error is not None:
            raise self.error
        return self.orders


class _SlowService:
    def __init__(self):
        self.release = threading.Event()

    def get_order(self, ctx, order_uid):
        self.release.wait(5)
        raise TimeoutError("context deadline exceeded")

    def orders_by_customer(self, ctx, customer_id, limit, offset):
        self.release.wait(5)
        raise TimeoutError("context deadline exceeded")


def _client(service, static_dir="", timeout=0):
    handler = Handler(service, _NoopLogger(), timeout)
    return Client(new_router(handler, static_dir, "test"))


def _json(resp):
    return json.loads(resp.get_data(as_text=True))


def test_get_order_found():
    svc = _FakeService(order=Order(order_uid="order-1", items=[Item(name="item")]))
    resp = _client(svc).get("/order/order-1")
    assert resp.status_code == 200
    body = _json(resp)
    assert body["order_uid"] == "order-1"
    assert body["items"][0]["name"] == "item"
    assert svc.calls == [("get_order", "order-1")]


def test_get_order_not_found():
    resp = _client(_FakeService(order=None)).get("/order/missing")
    assert resp.status_code == 404
    assert _json(resp) == {"error": "order not found"}


def test_get_order_internal_error():
    resp = _client(_FakeService(error=RuntimeError("db error"))).get("/order/intErr")
    assert resp.status_code == 500
    assert _json(resp) == {"error": "internal server error"}


def test_list_orders_by_customer_default_pagination():
    svc = _FakeService(orders=[Order(order_uid="a"), Order(order_uid="b")])
    resp = _client(svc).get("/customer/cust-1/orders")
    assert resp.status_code == 200
    assert [o["order_uid"] for o in _json(resp)] == ["a", "b"]
    assert svc.calls == [("orders_by_customer", "cust-1", 20, 0)]


def test_list_orders_by_customer_with_params():
    svc = _FakeService(orders=[Order(order_uid="x")])
    resp = _client(svc).get("/customer/cust-9/orders?limit=3&offset=7")
    assert resp.status_code == 200
    assert [o["order_uid"] for o in _json(resp)] == ["x"]
    assert svc.calls == [("orders_by_customer", "cust-9", 3, 7)]


def test_list_orders_by_customer_limit_clamped_to_max():
    svc = _FakeService(orders=[])
    resp = _client(svc).get("/customer/c/orders?limit=500")
    assert resp.status_code == 200
    assert _json(resp) == []
    assert svc.calls == [("orders_by_customer", "c", 100, 0)]


def test_list_orders_by_customer_service_error():
    svc = _FakeService(error=RuntimeError("service error"))
    resp = _client(svc).get("/customer/cust-err/orders")
    assert resp.status_code == 500
    assert svc.calls == [("orders_by_customer", "cust-err", 20, 0)]


def test_no_route_404():
    resp = _client(_FakeService()).get("/no-such-route")
    assert resp.status_code == 404
    assert _json(resp) == {"error": "route not found"}


def test_method_not_allowed_405():
    svc = _FakeService()
    resp = _client(svc).post("/order/123")
    assert resp.status_code == 405
    assert resp.headers.get("Allow") == "GET"
    assert _json(resp) == {"error": "method not allowed"}
    assert svc.calls == []


def test_ping_200():
    resp = _client(_FakeService()).get("/ping")
    assert resp.status_code == 200
    assert resp.get_data(as_text=True) == "pong"


def test_metrics_200():
    resp = _client(_FakeService()).get("/metrics")
    assert resp.status_code == 200
    text = resp.get_data(as_text=True)
    assert len(text) > 0
    assert "cache_size" in text


def test_responses_carry_request_id():
    resp = _client(_FakeService()).get("/ping", headers={"X-Request-ID": "rid-7"})
    assert resp.headers.get("X-Request-ID") == "rid-7"


def test_timeout_gives_500():
    svc = _SlowService()
    try:
        resp = _client(svc, timeout=0.05).get("/order/any")
        assert resp.status_code == 500
        assert _json(resp) == {"error": "internal server error"}
    finally:
        svc.release.set()


def test_handler_default_timeout():
    assert Handler(_FakeService(), _NoopLogger(), 0).req_timeout == 3.0
    assert Handler(_FakeService(), _NoopLogger(), 1.5).req_timeout == 1.5


def test_handler_empty_ids_give_400():
    handler = Handler(_FakeService(), _NoopLogger(), 0)
    request = Request(EnvironBuilder(path="/").get_environ())
    resp = handler.get_order_by_id(request, "")
    assert resp.status_code == 400
    assert _json(resp) == {"error": "empty id"}
    resp = handler.list_orders_by_customer(request, "")
    assert resp.status_code == 400
    assert _json(resp) == {"error": "empty customer id"}


def test_static_files_served(tmp_path):
    (tmp_path / "index.html").write_text("<h1>orders</h1>", encoding="utf-8")
    (tmp_path / "app.js").write_text("console.log(1)", encoding="utf-8")
    client = _client(_FakeService(), static_dir=str(tmp_path))
    index = client.get("/")
    assert index.status_code == 200
    assert index.get_data(as_text=True) == "<h1>orders</h1>"
    script = client.get("/static/app.js")
    assert script.status_code == 200
    assert script.get_data(as_text=True) == "console.log(1)"
    missing = client.get("/static/nope.css")
    assert missing.status_code == 404


def test_root_is_404_without_static_dir():
    resp = _client(_FakeService()).get("/")
    assert resp.status_code == 404
    assert _json(resp) == {"error": "route not found"}