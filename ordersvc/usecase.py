"""Order application service: cache-aside reads, strict message ingestion, cache warm-up."""

from __future__ import annotations

import time
from typing import Any, List, Optional, Protocol, Union

from ordersvc.domain import Order, parse_order


class OrderRepository(Protocol):
    def get_by_uid(self, ctx, order_uid: str) -> Optional[Order]: ...

    def list_by_customer(self, ctx, customer_id: str, limit: int, offset: int) -> List[Order]: ...

    def save(self, ctx, order: Order) -> None: ...

    def last_n(self, ctx, n: int) -> List[Order]: ...


class OrderCache(Protocol):
    def get(self, ctx, order_uid: str) -> Optional[Order]: ...

    def set(self, ctx, order: Order) -> None: ...

    def warm_up(self, ctx, orders: List[Order]) -> None: ...


class Logger(Protocol):
    def info(self, ctx, message: str, *args: Any) -> None: ...

    def warning(self, ctx, message: str, *args: Any) -> None: ...

    def error(self, ctx, message: str, *args: Any) -> None: ...


class Validator(Protocol):
    def validate(self, ctx, order: Order) -> None: ...


def _elapsed(start: float) -> str:
    return f"{time.perf_counter() - start:.6f}s"


class OrderService:
    """Order use cases, independent of any transport."""

    def __init__(self, repo: OrderRepository, cache: OrderCache, log: Logger, validator: Validator):
        self._repo = repo
        self._cache = cache
        self._log = log
        self._validator = validator

    def get_order(self, ctx, order_uid: str) -> Optional[Order]:
        """Return the order from cache, else from the repository (caching it); None if absent."""
        cached = self._cache.get(ctx, order_uid)
        if cached is not None:
            self._log.info(ctx, "cache hit for order=%s", order_uid)
            return cached
        self._log.info(ctx, "cache miss for order=%s", order_uid)

        start = time.perf_counter()
        try:
            order = self._repo.get_by_uid(ctx, order_uid)
        except Exception as exc:
            self._log.error(ctx, "repo.get_by_uid failed order_uid=%s err=%s", order_uid, exc)
            raise

        if order is not None:
            try:
                self._cache.set(ctx, order)
            except Exception as exc:
                self._log.warning(ctx, "cache.set failed order_uid=%s err=%s", order_uid, exc)

        self._log.info(ctx, "db fetch order_uid=%s took=%s", order_uid, _elapsed(start))
        return order

    def orders_by_customer(self, ctx, customer_id: str, limit: int, offset: int) -> List[Order]:
        """Pass a paginated customer query straight to the repository."""
        return self._repo.list_by_customer(ctx, customer_id, limit, offset)

    def save_from_message(self, ctx, raw: Union[str, bytes]) -> None:
        """Strictly decode, validate, persist and cache an order from a raw message.

        Raises OrderDecodeError for bad JSON, the validator's error for invalid
        orders and RuntimeError("failed to save order: ...") if persisting fails.
        """
        try:
            order = parse_order(raw)
        except ValueError as exc:
            self._log.warning(ctx, "%s", exc)
            raise

        try:
            self._validator.validate(ctx, order)
        except Exception as exc:
            self._log.warning(ctx, "validation failed order_uid=%s err=%s", order.order_uid, exc)
            raise

        try:
            self._repo.save(ctx, order)
        except Exception as exc:
            self._log.error(ctx, "repo.save failed order_uid=%s err=%s", order.order_uid, exc)
            raise RuntimeError(f"failed to save order: {exc}") from exc

        try:
            self._cache.set(ctx, order)
        except Exception as exc:
            self._log.warning(ctx, "cache.set failed order_uid=%s err=%s", order.order_uid, exc)

        self._log.info(ctx, "order saved uid=%s items=%d", order.order_uid, len(order.items))

    def warm_up_cache(self, ctx, n: int) -> None:
        """Load the latest n orders into the cache; n <= 0 skips the warm-up."""
        if n <= 0:
            self._log.warning(ctx, "cache warm-up skipped: n <= 0 (n=%d)", n)
            return

        start = time.perf_counter()
        try:
            orders = self._repo.last_n(ctx, n)
        except Exception as exc:
            self._log.error(ctx, "repo.last_n failed n=%d err=%s", n, exc)
            raise
        try:
            self._cache.warm_up(ctx, orders)
        except Exception as exc:
            self._log.warning(ctx, "cache.warm_up failed err=%s", exc)
        self._log.info(ctx, "cache warmed with %d orders in %s", len(orders), _elapsed(start))