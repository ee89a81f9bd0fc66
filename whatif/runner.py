"""Run scenarios: route traffic, simulate services, and classify health."""

import logging
import math
import random
import time
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional, Tuple

from whatif.accumulator import update_metrics
from whatif.health import evaluate
from whatif.models import (
    BatchOutcome,
    HealthThresholds,
    RunningMetrics,
    ScenarioConfig,
    ScenarioFailure,
    ScenarioResult,
    ServiceOutcome,
    ServiceRole,
)
from whatif.simulator import ServiceSimulator, build_request

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when a scenario cannot be run as configured."""


def validate_scenario(config: ScenarioConfig) -> None:
    """Check a scenario before any request is simulated.

    Raises:
        ConfigurationError: Listing every problem found.
    """
    errors: List[str] = []

    if not isinstance(config.total_requests, int) or isinstance(config.total_requests, bool):
        errors.append("'total_requests' must be an integer")
    elif config.total_requests < 0:
        errors.append(f"'total_requests' must be >= 0, got {config.total_requests}")

    ratio = config.fast_service_ratio
    if not isinstance(ratio, (int, float)) or not 0.0 <= ratio <= 1.0:
        errors.append(f"'fast_service_ratio' must be within [0, 1], got {ratio!r}")

    if not config.services:
        errors.append("at least one service is required")

    seen = set()
    for i, profile in enumerate(config.services):
        if not profile.name:
            errors.append(f"services[{i}].name is required")
        elif profile.name in seen:
            errors.append(f"duplicate service name: {profile.name}")
        seen.add(profile.name)
        if not is_finite_number(profile.base_latency_ms) or profile.base_latency_ms < 0:
            errors.append(f"services[{i}].base_latency_ms must be a finite number >= 0")
        if not is_finite_number(profile.latency_jitter_ms) or profile.latency_jitter_ms < 0:
            errors.append(f"services[{i}].latency_jitter_ms must be a finite number >= 0")
        if not 0.0 <= profile.failure_probability <= 1.0:
            errors.append(f"services[{i}].failure_probability must be within [0, 1]")

    if config.weights is not None:
        _check_weights(config, seen, errors)
    else:
        for role in (ServiceRole.FAST, ServiceRole.SLOW):
            count = sum(1 for p in config.services if p.role == role)
            if count != 1:
                errors.append(
                    f"exactly one '{role.value}' service is required "
                    f"without explicit weights, found {count}"
                )

    if errors:
        raise ConfigurationError(
            f"scenario '{config.name}' is invalid:\n  - " + "\n  - ".join(errors)
        )


def is_finite_number(value) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _check_weights(config: ScenarioConfig, names: set, errors: List[str]) -> None:
    for name, weight in config.weights.items():
        if name not in names:
            errors.append(f"weight given for unknown service: {name}")
        if not is_finite_number(weight) or weight < 0:
            errors.append(f"weight for {name} must be a finite, non-negative number")
    valid = [w for w in config.weights.values() if is_finite_number(w) and w > 0]
    if not valid:
        errors.append("at least one service weight must be positive")


def routing_weights(config: ScenarioConfig) -> List[Tuple[str, float]]:
    """Return ``(service name, weight)`` pairs in declaration order.

    Without explicit weights the fast service gets ``fast_service_ratio``
    and the slow service the remainder.
    """
    if config.weights is not None:
        return [(p.name, float(config.weights.get(p.name, 0.0))) for p in config.services]

    fast = next(p.name for p in config.services if p.role == ServiceRole.FAST)
    slow = next(p.name for p in config.services if p.role == ServiceRole.SLOW)
    ratio = float(config.fast_service_ratio)
    return [(fast, ratio), (slow, 1.0 - ratio)]


def choose_service(weights: List[Tuple[str, float]], rng: random.Random) -> str:
    """Draw one service name from a weighted discrete distribution."""
    total = sum(w for _, w in weights)
    point = rng.random() * total
    cumulative = 0.0
    for name, weight in weights:
        cumulative += weight
        if point < cumulative:
            return name
    # float rounding can leave point == total; fall back to the last live service
    return [name for name, weight in weights if weight > 0][-1]


def run_scenario(
    config: ScenarioConfig,
    rng: Optional[random.Random] = None,
    thresholds: Optional[HealthThresholds] = None,
) -> ScenarioResult:
    """Simulate every request of a scenario and classify each service.

    Args:
        config: Scenario to run. Validated before anything is simulated.
        rng: Random source; a fresh unseeded one is used when omitted.
        thresholds: Health limits; defaults apply when omitted.

    Returns:
        The ScenarioResult, with services in declaration order.

    Raises:
        ConfigurationError: If the scenario is invalid. No result is produced.
    """
    validate_scenario(config)
    rng = rng if rng is not None else random.Random()

    logger.info(
        "running scenario %s: %d requests, fast ratio %.2f",
        config.name, config.total_requests, config.fast_service_ratio,
    )
    started_at = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    start = time.perf_counter()

    simulators = {p.name: ServiceSimulator(p) for p in config.services}
    metrics = {p.name: RunningMetrics() for p in config.services}
    weights = routing_weights(config)

    for _ in range(config.total_requests):
        name = choose_service(weights, rng)
        request = build_request(name, rng)
        response = simulators[name].process(request, rng)
        update_metrics(metrics[name], response)

    services = {}
    for profile in config.services:
        snapshot = replace(metrics[profile.name])
        services[profile.name] = ServiceOutcome(
            name=profile.name,
            display_name=profile.display_name,
            role=profile.role,
            metrics=snapshot,
            verdict=evaluate(snapshot, thresholds),
        )

    duration = time.perf_counter() - start
    logger.info("scenario %s finished in %.3fs", config.name, duration)
    return ScenarioResult(
        scenario=config.name,
        started_at=started_at,
        duration_seconds=duration,
        services=services,
    )


def run_scenarios(
    configs: Iterable[ScenarioConfig],
    rng: Optional[random.Random] = None,
    thresholds: Optional[HealthThresholds] = None,
    pause_seconds: float = 0.0,
    on_start: Optional[Callable[[ScenarioConfig], None]] = None,
    on_result: Optional[Callable[[ScenarioResult], None]] = None,
) -> BatchOutcome:
    """Run scenarios one after another.

    An invalid scenario is recorded as a failure and skipped; the ones
    after it still run. ``pause_seconds`` sleeps between scenarios and has
    no effect on the simulated metrics. ``on_start`` and ``on_result`` are
    called around each scenario for progress reporting.
    """
    configs = list(configs)
    rng = rng if rng is not None else random.Random()
    outcome = BatchOutcome()

    for i, config in enumerate(configs):
        if on_start is not None:
            on_start(config)
        try:
            result = run_scenario(config, rng=rng, thresholds=thresholds)
        except ConfigurationError as exc:
            logger.warning("skipping scenario %s: %s", config.name, exc)
            outcome.failures.append(ScenarioFailure(scenario=config.name, message=str(exc)))
            continue

        outcome.results.append(result)
        if on_result is not None:
            on_result(result)
        if pause_seconds > 0 and i < len(configs) - 1:
            time.sleep(pause_seconds)

    return outcome
