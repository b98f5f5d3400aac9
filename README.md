# ordersvc

Building blocks for a service that receives orders as JSON, checks them,
stores and caches them through pluggable back ends, and serves them back
over HTTP as a WSGI application.

## What is inside

- `ordersvc.ctxmeta` — an immutable request `Context` (`background()`,
  `Context.with_value()`, `Context.value()`) and helpers for the request id:
  `with_request_id()` and `request_id_from_context()`, which returns the id
  or `None`. `trace_id_from_context()` and `span_id_from_context()` always
  return `None`; tracing is not enabled.
- `ordersvc.domain` — the `Order`, `Delivery`, `Payment` and `Item`
  dataclasses. `parse_order()` decodes exactly one JSON order strictly:
  malformed JSON, unknown fields, wrongly typed values and trailing data
  raise `OrderDecodeError` (a `ValueError`). `order_from_dict()` does the
  same for an already decoded dict. `Order.to_dict()` and `Order.to_json()`
  give the canonical form, with `date_created` as an RFC 3339 string.
- `ordersvc.validate` — `OrderValidator.validate(ctx, order)` raises
  `InvalidOrderError` naming the first offending field (required ids,
  `date_created` not before 2000-01-01, payment fields, a well-formed
  delivery e-mail, a non-empty item list with named items and
  non-negative prices). Also:
  - `validate_order_from_json(ctx, validator, raw)` — decode and validate
    one order;
  - `validate_jsonl_stream(ctx, validator, reader, writer)` — validate every
    non-blank line, write valid orders as canonical JSON lines, and return a
    `JSONLResult` with `valid_lines` and `invalid_lines`;
  - `validate_file(ctx, validator, file_path, fmt, writer)` — validate a
    file as `InputFormat.JSON` or `InputFormat.JSONL`; `InputFormat.AUTO`
    picks JSONL for a `.jsonl` extension and JSON otherwise. It returns a
    summary such as `"2 valid / 1 invalid"`. An invalid single JSON document
    re-raises its error with a `summary` attribute of
    `"0 valid / 1 invalid"`; an unknown format raises `ValueError`.
- `ordersvc.factory` — `make_order()` builds a valid order with random
  unique ids; options `with_customer()`, `with_entry()`, `with_order_uid()`
  and `with_items(n)` adjust it. `uniq_suffix()` returns 12 random hex
  characters.
- `ordersvc.usecase` — `OrderService(repo, cache, log, validator)` with
  `get_order()` (cache first, then the repository, caching what it finds;
  `None` if absent), `orders_by_customer()`, `save_from_message()` (decode,
  validate, save, cache; a failed save raises
  `RuntimeError("failed to save order: ...")`, a failed cache write is only
  logged) and `warm_up_cache(n)` (skipped when `n <= 0`). The collaborators
  are described by the protocols `OrderRepository`, `OrderCache`, `Logger`
  and `Validator`.
- `ordersvc.logger` — `new_logger(is_prod)` returns a `ContextLogger` that
  writes JSON lines (production) or tab-separated console lines
  (development) to stderr, adding `request_id` from the context.
  Methods: `info`, `warning`, `error` (each taking a context, a %-style
  message and arguments), `sync`, and the `base` property.
- `ordersvc.metrics` — `Counter`, `CounterVec`, `Gauge` and `Registry`
  (with `exposition()` in the Prometheus text format). The service metrics
  `KAFKA_MESSAGES_CONSUMED`, `KAFKA_MESSAGES_PROCESSED`,
  `KAFKA_MESSAGES_FAILED` (labelled by `topic`), `CACHE_OPS` (labelled by
  `op`) and `CACHE_SIZE` are added to `REGISTRY` by `must_register()`,
  which may be called any number of times.
- `ordersvc.httpx` — `clamp_int()`, `parse_limit_offset()`,
  `context_from_environ()` and two WSGI middlewares:
  `request_id_middleware()` (reuses the client's `X-Request-ID` or makes a
  UUID, stores it in the request context and echoes it back) and
  `request_logger()` (one log line per request, except `/ping` and
  `/metrics`).
- `ordersvc.router` — `Handler(service, log, req_timeout)` and
  `new_router(handler, static_dir, service_name)`, which returns a WSGI
  application serving:
  - `GET /order/<id>` — 200 with the order, 404 `{"error": "order not found"}`,
    500 `{"error": "internal server error"}`;
  - `GET /customer/<id>/orders?limit=&offset=` — 200 with a list
    (default limit 20, maximum 100);
  - `GET /ping` — `pong`; `GET /metrics` — the metrics exposition;
  - `/static/...` and `/` (`index.html`) when `static_dir` is given;
  - 404 `{"error": "route not found"}` for unknown paths and 405
    `{"error": "method not allowed"}` with `Allow: GET` for other methods.

  Service calls are limited to `req_timeout` seconds (3 when not positive);
  running over it gives a 500.

## Validating an order

```python
from ordersvc.ctxmeta import background
from ordersvc.domain import OrderDecodeError
from ordersvc.validate import InvalidOrderError, OrderValidator, validate_order_from_json

raw = open("order.json", "rb").read()
try:
    order = validate_order_from_json(background(), OrderValidator(), raw)
except (OrderDecodeError, InvalidOrderError) as exc:
    print("rejected:", exc)
else:
    print(order.order_uid, order.to_json())
```

## Validating a JSONL file

```python
import sys

from ordersvc.ctxmeta import background
from ordersvc.validate import InputFormat, OrderValidator, validate_file

summary = validate_file(background(), OrderValidator(), "orders.jsonl", InputFormat.AUTO, sys.stdout)
print(summary, file=sys.stderr)
```

## Building test data

```python
from ordersvc.factory import make_order, with_customer, with_items

order = make_order(with_customer("cust-1"), with_items(3))
assert len(order.items) == 3
```

## Request metadata

```python
from ordersvc.ctxmeta import background, request_id_from_context, with_request_id

ctx = with_request_id(background(), "req-123")
print(request_id_from_context(ctx))   # req-123
```

## Serving the API

`new_router()` returns a plain WSGI application; any WSGI server can run it:

```python
from werkzeug.serving import run_simple

from ordersvc.logger import new_logger
from ordersvc.router import Handler, new_router

service = ...  # an object with get_order(ctx, uid) and orders_by_customer(ctx, id, limit, offset)
app = new_router(Handler(service, new_logger(False), 2.0), "", "orders")
run_simple("localhost", 8080, app)
```

## What this package does not do

- It has no database repository and no cache implementation: `OrderService`
  needs objects matching `OrderRepository` and `OrderCache` supplied by you.
- It has no message-queue consumer; `save_from_message()` and the Kafka
  counters are there to be driven by one.
- It installs no command and starts no server by itself.
- Tracing is not enabled: trace and span ids are always absent and the
  `service_name` passed to `new_router()` is unused.