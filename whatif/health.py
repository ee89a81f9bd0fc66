"""Classify service health from accumulated metrics."""

from typing import Optional

from whatif.models import HealthThresholds, HealthVerdict, RunningMetrics

DEFAULT_THRESHOLDS = HealthThresholds()


def evaluate(
    metrics: RunningMetrics,
    thresholds: Optional[HealthThresholds] = None,
) -> HealthVerdict:
    """Map a metrics snapshot to a health verdict.

    Error rate is checked before latency, so a service that fails often is
    unhealthy even when it answers quickly. A service that has seen no
    traffic is reported healthy.

    Args:
        metrics: Metrics to classify. Not modified.
        thresholds: Limits to apply; defaults to ``DEFAULT_THRESHOLDS``.

    Returns:
        The first matching HealthVerdict.
    """
    t = thresholds or DEFAULT_THRESHOLDS

    if metrics.total == 0:
        return HealthVerdict.HEALTHY

    # Error rate
    if metrics.error_rate > t.max_degraded_error_rate:
        return HealthVerdict.UNHEALTHY
    if metrics.error_rate > t.max_healthy_error_rate:
        return HealthVerdict.DEGRADED

    # Latency
    if metrics.mean_latency_ms > t.max_degraded_latency_ms:
        return HealthVerdict.UNHEALTHY
    if metrics.mean_latency_ms > t.max_healthy_latency_ms:
        return HealthVerdict.DEGRADED

    return HealthVerdict.HEALTHY
