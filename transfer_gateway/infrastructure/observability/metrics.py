"""Prometheus metrics for monitoring wizard progress, submissions and bank latency"""

from typing import Optional
from prometheus_client import Counter, Histogram

# Submission metrics
submission_counter = Counter(
    "transfer_submission_total",
    "Transfer submissions dispatched to the bank",
    ["outcome", "error_kind"],  # success | failure
)

duplicate_submission_counter = Counter(
    "transfer_duplicate_submission_total",
    "Authorizations ignored because a submission was already in flight",
)

authorization_rejected_counter = Counter(
    "transfer_authorization_rejected_total",
    "Authorizations rejected for a malformed secret",
)

# Wizard metrics
step_transition_counter = Counter(
    "transfer_wizard_step_total",
    "Wizard steps entered",
    ["step"],
)

wizard_session_counter = Counter(
    "transfer_wizard_session_total",
    "Wizard sessions by lifecycle event",
    ["event"],  # opened | reset | abandoned
)

# Bank API metrics
transfer_latency_histogram = Histogram(
    "transfer_execution_latency_seconds",
    "Transfer execution API response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

collaborator_failures_counter = Counter(
    "collaborator_failures_total",
    "Failed account/beneficiary API calls",
    ["service"],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_submission(succeeded: bool, error_kind: Optional[str] = None) -> None:
    """Record submission outcome for monitoring success rate and failure causes"""
    outcome = "success" if succeeded else "failure"
    submission_counter.labels(outcome=outcome, error_kind=error_kind or "none").inc()


def record_step(step_name: str) -> None:
    step_transition_counter.labels(step=step_name.lower()).inc()
