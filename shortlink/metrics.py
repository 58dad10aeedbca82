"""Prometheus metrics for the link lifecycle.

``LinkMetrics`` owns a private ``CollectorRegistry``. One instance is built by
the service container and handed to every component that records metrics, so
several apps (or test cases) can live in one process without colliding on
metric names.

Metric Overview
===============
::
    shortlink_links_created_total{status}
    shortlink_redirects_total{status}
    shortlink_stats_requests_total{status}
    shortlink_analytics_updates_total{status}
    shortlink_analytics_updates_in_flight
    shortlink_creation_duration_seconds
    shortlink_redirect_duration_seconds
"""

from dataclasses import dataclass, field

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

__all__ = ["LinkMetrics"]


@dataclass
class LinkMetrics:
    registry: CollectorRegistry = field(default_factory=CollectorRegistry)

    def __post_init__(self) -> None:
        self.links_created = Counter(
            "shortlink_links_created_total",
            "Link creation attempts",
            ["status"],
            registry=self.registry,
        )
        self.redirects = Counter(
            "shortlink_redirects_total",
            "Redirect lookups",
            ["status"],
            registry=self.registry,
        )
        self.stats_requests = Counter(
            "shortlink_stats_requests_total",
            "Analytic record lookups",
            ["status"],
            registry=self.registry,
        )
        self.analytics_updates = Counter(
            "shortlink_analytics_updates_total",
            "Background click-count updates by outcome",
            ["status"],
            registry=self.registry,
        )
        self.analytics_in_flight = Gauge(
            "shortlink_analytics_updates_in_flight",
            "Background click-count updates not yet finished",
            registry=self.registry,
        )
        self.creation_duration = Histogram(
            "shortlink_creation_duration_seconds",
            "Time taken to create short links",
            buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
            registry=self.registry,
        )
        self.redirect_duration = Histogram(
            "shortlink_redirect_duration_seconds",
            "Time taken to resolve a redirect (excludes analytics)",
            buckets=[0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25],
            registry=self.registry,
        )
