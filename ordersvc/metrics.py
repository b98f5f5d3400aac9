"""Service metrics: counters, a gauge and a text-format registry."""

from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Tuple


class Counter:
    """Monotonically increasing value."""

    kind = "counter"

    def __init__(self, name: str, help: str = "", labels: Dict[str, str] = None):
        self.name = name
        self.help = help
        self._labels = dict(labels or {})
        self.value = 0.0
        self._lock = threading.Lock()

    def inc(self, amount: float = 1) -> None:
        """Add amount, which must not be negative."""
        if amount < 0:
            raise ValueError("counter cannot decrease in value")
        with self._lock:
            self.value += amount

    def _samples(self) -> List[Tuple[Dict[str, str], float]]:
        return [(self._labels, self.value)]


class CounterVec:
    """Family of counters partitioned by label values."""

    kind = "counter"

    def __init__(self, name: str, help: str, label_names: Iterable[str]):
        self.name = name
        self.help = help
        self.label_names = tuple(label_names)
        self._children: Dict[Tuple[str, ...], Counter] = {}
        self._lock = threading.Lock()

    def labels(self, *args: str) -> Counter:
        """Return the counter for these label values, creating it on first use."""
        if len(args) != len(self.label_names):
            raise ValueError(f"expected {len(self.label_names)} label values but got {len(args)}")
        with self._lock:
            if args not in self._children:
                self._children[args] = Counter(self.name, self.help, dict(zip(self.label_names, args)))
            return self._children[args]

    def _samples(self) -> List[Tuple[Dict[str, str], float]]:
        with self._lock:
            return [s for key in sorted(self._children) for s in self._children[key]._samples()]


class Gauge:
    """Value that can be set to anything."""

    kind = "gauge"

    def __init__(self, name: str, help: str = ""):
        self.name = name
        self.help = help
        self.value = 0.0

    def set(self, value: float) -> None:
        self.value = float(value)

    def _samples(self) -> List[Tuple[Dict[str, str], float]]:
        return [({}, self.value)]


def _format_value(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else repr(float(value))


class Registry:
    """Holds collectors and renders them in the Prometheus text format."""

    def __init__(self):
        self._collectors: Dict[str, object] = {}
        self._lock = threading.Lock()

    def register(self, *args) -> None:
        """Register collectors; a name registered twice is an error."""
        with self._lock:
            names = [c.name for c in args]
            for name in names:
                if name in self._collectors or names.count(name) > 1:
                    raise ValueError(f"duplicate metrics collector registration attempted: {name}")
            self._collectors.update(zip(names, args))

    def __contains__(self, name: str) -> bool:
        return name in self._collectors

    def exposition(self) -> str:
        """Render all collectors, sorted by name."""
        with self._lock:
            collectors = [self._collectors[n] for n in sorted(self._collectors)]
        lines: List[str] = []
        for c in collectors:
            lines += [f"# HELP {c.name} {c.help}", f"# TYPE {c.name} {c.kind}"]
            for labels, value in c._samples():
                label_text = ",".join(f'{k}="{v}"' for k, v in labels.items())
                label_text = "{" + label_text + "}" if label_text else ""
                lines.append(f"{c.name}{label_text} {_format_value(value)}")
        return "".join(line + "\n" for line in lines)


REGISTRY = Registry()

KAFKA_MESSAGES_CONSUMED = CounterVec("kafka_messages_consumed_total", "Number of messages fetched from Kafka", ["topic"])
KAFKA_MESSAGES_PROCESSED = CounterVec(
    "kafka_messages_processed_total", "Number of messages processed successfully", ["topic"]
)
KAFKA_MESSAGES_FAILED = CounterVec("kafka_messages_failed_total", "Number of messages failed to process", ["topic"])
# op label: hit | miss | evicted | expired
CACHE_OPS = CounterVec("cache_operations_total", "Cache operations", ["op"])
CACHE_SIZE = Gauge("cache_size", "Number of items currently in cache")

_register_lock = threading.Lock()
_registered = False


def must_register() -> None:
    """Register the service metrics in REGISTRY; later calls do nothing."""
    global _registered
    with _register_lock:
        if not _registered:
            REGISTRY.register(
                KAFKA_MESSAGES_CONSUMED, KAFKA_MESSAGES_PROCESSED, KAFKA_MESSAGES_FAILED, CACHE_OPS, CACHE_SIZE
            )
            _registered = True