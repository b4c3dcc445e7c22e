"""In-process metrics: counters, gauges and histograms keyed by labels."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any


class Counter:
    """A value that only goes up."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.value = 0.0

    def inc(self) -> None:
        with self._lock:
            self.value += 1


class Gauge:
    """A value that goes up and down."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.value = 0.0

    def inc(self) -> None:
        with self._lock:
            self.value += 1

    def dec(self) -> None:
        with self._lock:
            self.value -= 1


class Histogram:
    """Observations counted into cumulative buckets by upper bound."""

    def __init__(self, buckets: Iterable[float]) -> None:
        self._lock = threading.Lock()
        self.buckets = tuple(sorted(buckets))
        self.bucket_counts = [0] * len(self.buckets)
        self.sum = 0.0
        self.count = 0

    def observe(self, value: float) -> None:
        with self._lock:
            self.sum += value
            self.count += 1
            for i, bound in enumerate(self.buckets):
                if value <= bound:
                    self.bucket_counts[i] += 1


def linear_buckets(start: float, width: float, count: int) -> list[float]:
    """``count`` bucket bounds starting at ``start``, ``width`` apart."""
    if count < 1:
        raise ValueError("linear_buckets needs a positive count")
    return [start + i * width for i in range(count)]


@contextmanager
def timer(observer: Histogram) -> Iterator[None]:
    """Observe the seconds spent in the ``with`` block."""
    began = time.perf_counter()
    try:
        yield
    finally:
        observer.observe(time.perf_counter() - began)


class MetricVec:
    """A family of metrics, one per distinct set of label values."""

    def __init__(
        self,
        name: str,
        help_text: str,
        label_names: Sequence[str],
        factory: Callable[[], Any],
    ) -> None:
        self.name = name
        self.help_text = help_text
        self.label_names = tuple(label_names)
        self._factory = factory
        self._lock = threading.Lock()
        self._children: dict[tuple[str, ...], Any] = {}

    def with_labels(self, labels: Mapping[str, str]) -> Any:
        """The metric for these label values, created on first use."""
        if set(labels) != set(self.label_names):
            raise ValueError(
                f"{self.name}: expected labels {sorted(self.label_names)}, got {sorted(labels)}"
            )
        key = tuple(str(labels[name]) for name in self.label_names)
        with self._lock:
            child = self._children.get(key)
            if child is None:
                child = self._children[key] = self._factory()
            return child

    def samples(self) -> list[tuple[dict[str, str], Any]]:
        """Every label set seen so far with its metric."""
        with self._lock:
            items = list(self._children.items())
        return [(dict(zip(self.label_names, key)), metric) for key, metric in items]


_DHCP_TYPES = (
    "DHCPACK",
    "DHCPDECLINE",
    "DHCPDISCOVER",
    "DHCPINFORM",
    "DHCPNAK",
    "DHCPOFFER",
    "DHCPRELEASE",
    "DHCPREQUEST",
)


def _preset(vecs: Iterable[MetricVec], label_sets: Iterable[Mapping[str, str]]) -> None:
    label_sets = list(label_sets)
    for vec in vecs:
        for labels in label_sets:
            vec.with_labels(labels)


class Metrics:
    """The server's metric families, with their expected label values preset."""

    def __init__(self) -> None:
        def histogram() -> Histogram:
            return Histogram(linear_buckets(0.01, 0.05, 10))

        self.dhcp_total = MetricVec(
            "dhcp_total", "Number of DHCP Requests handled.", ("op", "type", "giaddr"), Counter
        )
        dhcp_labels = [{"op": "recv", "type": t, "giaddr": "0.0.0.0"} for t in _DHCP_TYPES]
        dhcp_labels.append({"op": "send", "type": "DHCPOFFER", "giaddr": "0.0.0.0"})
        _preset([self.dhcp_total], dhcp_labels)

        self.cacher_duration = MetricVec(
            "cacher_request_duration_seconds", "Duration of cacher requests.", ("from",), histogram
        )
        self.cacher_cache_hits = MetricVec(
            "cacher_cache_hits",
            "Number of requests which returned data from cacher.",
            ("from",),
            Counter,
        )
        self.cacher_total = MetricVec(
            "cacher_total", "Total number of requests to the cacher service.", ("from",), Counter
        )
        self.cacher_requests_in_progress = MetricVec(
            "cacher_requests_in_progress",
            "Number of cacher requests that have yet to receive a response.",
            ("from",),
            Gauge,
        )
        from_labels = [{"from": "dhcp"}, {"from": "ip"}]
        _preset(
            [
                self.cacher_duration,
                self.cacher_cache_hits,
                self.cacher_total,
                self.cacher_requests_in_progress,
            ],
            from_labels,
        )

        self.discover_duration = MetricVec(
            "discover_duration_seconds",
            "Duration taken to get a responce for a newly discovered request.",
            ("from",),
            histogram,
        )
        self.hardware_discovers = MetricVec(
            "discover_total", "Number of discover requests requested.", ("from",), Counter
        )
        self.discovers_in_progress = MetricVec(
            "discover_in_progress",
            "Number of discover requests that have yet to receive a response.",
            ("from",),
            Gauge,
        )
        _preset(
            [self.discover_duration, self.hardware_discovers, self.discovers_in_progress],
            from_labels,
        )

        self.job_duration = MetricVec(
            "jobs_duration_seconds", "Duration taken for a job to complete.", ("from", "op"), histogram
        )
        self.jobs_total = MetricVec("jobs_total", "Number of jobs.", ("from", "op"), Counter)
        self.jobs_in_progress = MetricVec(
            "jobs_in_progress", "Number of jobs waiting to complete.", ("from", "op"), Gauge
        )
        job_labels = [{"from": "dhcp", "op": t} for t in _DHCP_TYPES]
        job_labels += [
            {"from": "http", "op": op}
            for op in ("file", "hardware-components", "phone-home", "problem", "event")
        ]
        job_labels.append({"from": "tftp", "op": "read"})
        _preset([self.job_duration, self.jobs_total, self.jobs_in_progress], job_labels)