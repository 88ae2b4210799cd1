# -*- coding: utf-8 -*-
"""
Prometheus metrics for the FocusFlow API.

HTTP traffic is labelled by the matched URL rule (``unmatched`` for 404s) so
query strings and ids never explode label cardinality. Billing counters:

- ``focusflow_checkout_sessions_total{outcome}``
- ``focusflow_webhook_events_total{event_type, outcome}``
- ``focusflow_entitlement_denials_total{feature}``

Set ``FOCUSFLOW_METRICS_ENABLED=false`` to disable collection and the
``/metrics`` endpoint.
"""

import os
import time
from typing import Optional

from flask import Flask, Response, current_app, g, has_app_context, request
from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram
from prometheus_client.exposition import CONTENT_TYPE_LATEST, generate_latest


class MetricsService:
    """Owns the Prometheus collectors for one app."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.enabled = os.environ.get("FOCUSFLOW_METRICS_ENABLED", "true").lower() == "true"
        self.registry = registry if registry is not None else REGISTRY
        if not self.enabled:
            return

        self.http_requests_total = Counter(
            "focusflow_http_requests_total",
            "HTTP requests by route, method and status.",
            ["route", "method", "status"],
            registry=self.registry,
        )
        self.http_request_duration_seconds = Histogram(
            "focusflow_http_request_duration_seconds",
            "HTTP request latency by route.",
            ["route", "method"],
            buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
            registry=self.registry,
        )
        self.checkout_sessions_total = Counter(
            "focusflow_checkout_sessions_total",
            "Checkout session requests by outcome.",
            ["outcome"],
            registry=self.registry,
        )
        self.webhook_events_total = Counter(
            "focusflow_webhook_events_total",
            "Stripe webhook deliveries by event type and outcome.",
            ["event_type", "outcome"],
            registry=self.registry,
        )
        self.entitlement_denials_total = Counter(
            "focusflow_entitlement_denials_total",
            "Requests rejected for missing premium entitlement.",
            ["feature"],
            registry=self.registry,
        )

    def record_http_request(self, route: str, method: str, status_code: int, duration_seconds: float):
        if self.enabled:
            self.http_requests_total.labels(route=route, method=method, status=status_code).inc()
            self.http_request_duration_seconds.labels(route=route, method=method).observe(duration_seconds)

    def record_checkout_session(self, outcome: str):
        if self.enabled:
            self.checkout_sessions_total.labels(outcome=outcome).inc()

    def record_webhook_event(self, event_type: str, outcome: str):
        if self.enabled:
            self.webhook_events_total.labels(event_type=event_type, outcome=outcome).inc()

    def record_entitlement_denial(self, feature: str):
        if self.enabled:
            self.entitlement_denials_total.labels(feature=feature).inc()


def get_metrics_service() -> Optional[MetricsService]:
    if has_app_context():
        return current_app.extensions.get('metrics')
    return None


def init_metrics(app: Flask) -> MetricsService:
    service = MetricsService()
    app.extensions['metrics'] = service
    if not service.enabled:
        return service

    @app.before_request
    def _start_timer():
        g.metrics_start = time.perf_counter()

    @app.after_request
    def _observe(response):
        started = getattr(g, 'metrics_start', None)
        route = request.url_rule.rule if request.url_rule is not None else 'unmatched'
        service.record_http_request(
            route=route,
            method=request.method,
            status_code=response.status_code,
            duration_seconds=time.perf_counter() - started if started else 0.0,
        )
        return response

    @app.route("/metrics")
    def metrics():
        return Response(generate_latest(service.registry), mimetype=CONTENT_TYPE_LATEST)

    return service
