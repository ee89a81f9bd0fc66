"""Fold simulated responses into running per-service metrics."""

from whatif.models import RunningMetrics, SimulatedResponse


def update_metrics(metrics: RunningMetrics, response: SimulatedResponse) -> RunningMetrics:
    """Record one response in ``metrics`` (in place) and return it.

    The mean is updated incrementally so memory stays constant no matter
    how many responses are folded in.
    """
    metrics.total += 1
    if response.success:
        metrics.successes += 1
    else:
        metrics.failures += 1

    latency = response.latency_ms
    metrics.mean_latency_ms = (
        metrics.mean_latency_ms * (metrics.total - 1) + latency
    ) / metrics.total

    if latency > metrics.max_latency_ms:
        metrics.max_latency_ms = latency
    if latency < metrics.min_latency_ms:
        metrics.min_latency_ms = latency
    return metrics


def reset_metrics(metrics: RunningMetrics) -> RunningMetrics:
    """Restore ``metrics`` to its empty state."""
    metrics.total = 0
    metrics.successes = 0
    metrics.failures = 0
    metrics.mean_latency_ms = 0.0
    metrics.min_latency_ms = float("inf")
    metrics.max_latency_ms = 0
    return metrics
