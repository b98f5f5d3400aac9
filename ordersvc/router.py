"""WSGI router for the order read API, health check, metrics and static files."""

from __future__ import annotations

import concurrent.futures
import json
import os
from typing import Any

from werkzeug.exceptions import NotFound, RequestRedirect
from werkzeug.routing import Map, Rule
from werkzeug.utils import send_file, send_from_directory
from werkzeug.wrappers import Request, Response

from ordersvc import metrics
from ordersvc.httpx import ROUTE_KEY, context_from_environ, parse_limit_offset, request_id_middleware, request_logger

DEFAULT_TIMEOUT = 3.0
DEFAULT_LIMIT = 20
MAX_LIMIT = 100

_EXECUTOR = concurrent.futures.ThreadPoolExecutor(max_workers=16)


def _json_response(status: int, body: Any, headers: dict = None) -> Response:
    return Response(json.dumps(body, ensure_ascii=False), status=status, headers=headers, content_type="application/json")


class Handler:
    """HTTP handlers over an order read service, with a per-request time limit in seconds."""

    def __init__(self, service, log, req_timeout: float = 0):
        self.service = service
        self.log = log
        self.req_timeout = req_timeout if req_timeout and req_timeout > 0 else DEFAULT_TIMEOUT

    def _call(self, fn, *args):
        try:
            return _EXECUTOR.submit(fn, *args).result(timeout=self.req_timeout)
        except concurrent.futures.TimeoutError:
            raise TimeoutError("context deadline exceeded") from None

    def get_order_by_id(self, request: Request, order_id: str) -> Response:
        """GET /order/<id>: 200 with the order, 404 if absent, 500 on failure."""
        if not order_id:
            return _json_response(400, {"error": "empty id"})
        ctx = context_from_environ(request.environ)
        try:
            order = self._call(self.service.get_order, ctx, order_id)
        except Exception as exc:
            self.log.error(ctx, "GetOrder failed id=%s err=%s", order_id, exc)
            return _json_response(500, {"error": "internal server error"})
        if order is None:
            return _json_response(404, {"error": "order not found"})
        return _json_response(200, order.to_dict())

    def list_orders_by_customer(self, request: Request, customer_id: str) -> Response:
        """GET /customer/<id>/orders?limit=&offset=: 200 with a list, 500 on failure."""
        if not customer_id:
            return _json_response(400, {"error": "empty customer id"})
        limit, offset = parse_limit_offset(request.args, DEFAULT_LIMIT, MAX_LIMIT)
        ctx = context_from_environ(request.environ)
        try:
            orders = self._call(self.service.orders_by_customer, ctx, customer_id, limit, offset)
        except Exception as exc:
            self.log.error(ctx, "OrdersByCustomer failed id=%s err=%s", customer_id, exc)
            return _json_response(500, {"error": "internal server error"})
        return _json_response(200, None if orders is None else [o.to_dict() for o in orders])


def new_router(handler: Handler, static_dir: str = "", service_name: str = ""):
    """Build the WSGI application; service_name is kept for tracing, which this build does not enable."""
    metrics.must_register()
    rules = [
        Rule("/ping", endpoint="ping"),
        Rule("/metrics", endpoint="metrics"),
        Rule("/order/<order_id>", endpoint="order"),
        Rule("/customer/<customer_id>/orders", endpoint="customer_orders"),
    ]
    if static_dir:
        rules += [Rule("/static/<path:filename>", endpoint="static"), Rule("/", endpoint="index")]
    url_map = Map(rules)
    route_not_found = _json_response(404, {"error": "route not found"})

    def api(environ, start_response):
        request = Request(environ)
        args = request.view_args = environ["ordersvc.match"]
        if "order_id" in args:
            response = handler.get_order_by_id(request, args["order_id"])
        else:
            response = handler.list_orders_by_customer(request, args["customer_id"])
        return response(environ, start_response)

    logged_api = request_logger(api, handler.log)

    def core(environ, start_response):
        try:
            rule, args = url_map.bind_to_environ(environ).match(return_rule=True)
        except RequestRedirect as redirect:
            return redirect(environ, start_response)
        except NotFound:
            return route_not_found(environ, start_response)
        if environ.get("REQUEST_METHOD", "GET") != "GET":
            return _json_response(405, {"error": "method not allowed"}, {"Allow": "GET"})(environ, start_response)

        environ[ROUTE_KEY] = rule.rule
        endpoint = rule.endpoint
        if endpoint in ("order", "customer_orders"):
            environ["ordersvc.match"] = args
            return logged_api(environ, start_response)
        if endpoint == "ping":
            response = Response("pong", content_type="text/plain; charset=utf-8")
        elif endpoint == "metrics":
            response = Response(metrics.REGISTRY.exposition(), content_type="text/plain; version=0.0.4; charset=utf-8")
        else:
            try:
                if endpoint == "index":
                    response = send_file(os.path.join(static_dir, "index.html"), environ)
                else:
                    response = send_from_directory(static_dir, args["filename"], environ)
            except (NotFound, OSError):
                response = route_not_found
        return response(environ, start_response)

    app = request_id_middleware(core)

    def recovery(environ, start_response):
        try:
            return app(environ, start_response)
        except Exception:
            start_response("500 Internal Server Error", [("Content-Length", "0")])
            return [b""]

    return recovery