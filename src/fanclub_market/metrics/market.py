"""Prometheus metrics for ledger sync and trading.

Counters:
- ledger_reads_total{op,ok}
- ledger_writes_total{op,ok}
- market_refresh_total{ok}
- trade_validation_rejected_total{reason}

Gauge:
- market_fan_clubs

Histogram:
- market_refresh_latency_seconds
"""
from __future__ import annotations

import logging
import os
from typing import Optional

from prometheus_client import Counter, Gauge, Histogram, REGISTRY, start_http_server

_ledger_reads = None
_ledger_writes = None
_refresh_total = None
_validation_rejected = None
_fan_clubs_gauge = None
_refresh_latency = None


class _NoOp:
    def labels(self, *args, **kwargs):
        return self
    def inc(self, *args, **kwargs):
        return None
    def set(self, *args, **kwargs):
        return None
    def observe(self, *args, **kwargs):
        return None


def _existing(name: str):
    coll = getattr(REGISTRY, "_names_to_collectors", {}).get(name)
    if coll is not None:
        return coll
    for coll in list(getattr(REGISTRY, "_collector_to_names", {}).keys()):
        if getattr(coll, "_name", None) == name:
            return coll
    return None


def _safe_metric(kind, name: str, doc: str, labelnames=(), **kwargs):
    if os.getenv("DISABLE_PROMETHEUS", "0") == "1":
        return _NoOp()
    try:
        return kind(name, doc, labelnames, **kwargs)
    except ValueError:
        # Already registered (module reloads, tests)
        return _existing(name) or _NoOp()


def get_ledger_reads_total():
    global _ledger_reads
    if _ledger_reads is None:
        _ledger_reads = _safe_metric(Counter, "ledger_reads_total", "Ledger read calls", ["op", "ok"])
    return _ledger_reads


def get_ledger_writes_total():
    global _ledger_writes
    if _ledger_writes is None:
        _ledger_writes = _safe_metric(Counter, "ledger_writes_total", "Ledger write calls", ["op", "ok"])
    return _ledger_writes


def get_refresh_total():
    global _refresh_total
    if _refresh_total is None:
        _refresh_total = _safe_metric(Counter, "market_refresh_total", "Market view refreshes", ["ok"])
    return _refresh_total


def get_validation_rejected_total():
    global _validation_rejected
    if _validation_rejected is None:
        _validation_rejected = _safe_metric(
            Counter, "trade_validation_rejected_total", "Intents rejected before reaching the ledger", ["reason"]
        )
    return _validation_rejected


def get_fan_clubs_gauge():
    global _fan_clubs_gauge
    if _fan_clubs_gauge is None:
        _fan_clubs_gauge = _safe_metric(Gauge, "market_fan_clubs", "Fan clubs in the current view")
    return _fan_clubs_gauge


def get_refresh_latency_seconds():
    global _refresh_latency
    if _refresh_latency is None:
        _refresh_latency = _safe_metric(
            Histogram,
            "market_refresh_latency_seconds",
            "Time to rebuild the market view from the ledger",
            buckets=(0.1, 0.25, 0.5, 1, 2, 5, 10, 30),
        )
    return _refresh_latency


def start_server_safe(port: int) -> Optional[int]:
    """Expose metrics over HTTP; return the port, or None if it could not bind."""
    try:
        start_http_server(port)
        logging.info(f"Prometheus metrics server started on :{port}")
        return port
    except OSError as e:
        logging.warning(f"Failed to start Prometheus server on :{port}: {e}")
        return None
