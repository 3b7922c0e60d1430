"""Prometheus metrics for the letter drafting service.

Tracks HTTP traffic, credit consumption and the text-generation provider.
"""

import os

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    Info,
    generate_latest,
    multiprocess,
)

REGISTRY = CollectorRegistry()

# Gunicorn workers share metrics through the multiprocess directory
if "PROMETHEUS_MULTIPROC_DIR" in os.environ:
    multiprocess.MultiProcessCollector(REGISTRY)


# ============================================
# Application Info
# ============================================
APP_INFO = Info(
    "gst_letters_app",
    "Application information",
    registry=REGISTRY,
)


# ============================================
# HTTP Request Metrics
# ============================================
HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
    registry=REGISTRY,
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
    registry=REGISTRY,
)


# ============================================
# Credit Metrics
# ============================================
CREDITS_DEBITED_TOTAL = Counter(
    "credits_debited_total",
    "Credits consumed by successful generations",
    registry=REGISTRY,
)

CREDIT_RESETS_TOTAL = Counter(
    "credit_resets_total",
    "Monthly credit resets applied",
    ["plan"],
    registry=REGISTRY,
)

QUOTA_EXHAUSTED_TOTAL = Counter(
    "quota_exhausted_total",
    "Generation requests rejected for lack of credits",
    registry=REGISTRY,
)

PLAN_UPGRADES_TOTAL = Counter(
    "plan_upgrades_total",
    "Plan upgrade events by outcome (applied, duplicate)",
    ["plan", "outcome"],
    registry=REGISTRY,
)


# ============================================
# Generation Metrics
# ============================================
LETTER_GENERATIONS_TOTAL = Counter(
    "letter_generations_total",
    "Letter generation requests by outcome",
    ["outcome"],
    registry=REGISTRY,
)

PROVIDER_REQUEST_DURATION_SECONDS = Histogram(
    "provider_request_duration_seconds",
    "Text-generation provider call duration in seconds",
    buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0],
    registry=REGISTRY,
)


def set_app_info(version: str, environment: str) -> None:
    APP_INFO.info({"version": version, "environment": environment})


def get_metrics() -> bytes:
    """Render all metrics in the Prometheus text exposition format."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
