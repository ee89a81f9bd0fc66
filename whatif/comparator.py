"""Compare scenario results: rankings, health filters, and recommendations."""

from statistics import mean
from typing import List, Optional, Tuple

from whatif.models import (
    ComparisonSummary,
    HealthVerdict,
    Recommendation,
    ScenarioResult,
    ServiceOutcome,
    ServiceRole,
)


class ScenarioComparator:
    """Append-only collection of scenario results.

    Role queries only look at results that declare a service with that
    role; other results are ignored for the query.
    """

    def __init__(self, results=None):
        self._results: List[ScenarioResult] = []
        for result in results or []:
            self.add(result)

    def add(self, result: ScenarioResult) -> None:
        self._results.append(result)

    @property
    def results(self) -> Tuple[ScenarioResult, ...]:
        return tuple(self._results)

    def __len__(self) -> int:
        return len(self._results)

    def _for_role(self, role: ServiceRole) -> List[Tuple[ScenarioResult, ServiceOutcome]]:
        pairs = []
        for result in self._results:
            outcome = result.service_for_role(role)
            if outcome is not None:
                pairs.append((result, outcome))
        return pairs

    def best_by_health_and_latency(self, role: ServiceRole) -> Optional[ScenarioResult]:
        """Healthy result with the lowest mean latency for ``role``, ties by error rate."""
        healthy = [
            (r, o) for r, o in self._for_role(role) if o.verdict == HealthVerdict.HEALTHY
        ]
        if not healthy:
            return None
        best = min(
            healthy,
            key=lambda pair: (pair[1].metrics.mean_latency_ms, pair[1].metrics.error_rate),
        )
        return best[0]

    def worst_by_error_and_latency(self, role: ServiceRole) -> Optional[ScenarioResult]:
        """Result with the highest error rate for ``role``, ties by mean latency."""
        pairs = self._for_role(role)
        if not pairs:
            return None
        worst = max(
            pairs,
            key=lambda pair: (pair[1].metrics.error_rate, pair[1].metrics.mean_latency_ms),
        )
        return worst[0]

    def latency_threshold_recommendation(self, role: ServiceRole) -> Optional[float]:
        """Midpoint between the slowest healthy latency and the worst result's latency.

        Descriptive only; it is never fed back into classification.
        """
        healthy = [
            o.metrics.mean_latency_ms
            for _, o in self._for_role(role)
            if o.verdict == HealthVerdict.HEALTHY
        ]
        worst = self.worst_by_error_and_latency(role)
        if not healthy or worst is None:
            return None
        worst_latency = worst.service_for_role(role).metrics.mean_latency_ms
        return (max(healthy) + worst_latency) / 2

    def all_healthy_scenarios(self) -> List[ScenarioResult]:
        return [
            r for r in self._results
            if all(v == HealthVerdict.HEALTHY for v in r.verdicts())
        ]

    def any_unhealthy_scenarios(self) -> List[ScenarioResult]:
        return [
            r for r in self._results
            if any(v == HealthVerdict.UNHEALTHY for v in r.verdicts())
        ]

    def recommendations(self) -> List[Recommendation]:
        recs: List[Recommendation] = []

        for role in ServiceRole:
            best = self.best_by_health_and_latency(role)
            if best is not None:
                recs.append(Recommendation(
                    kind="best-scenario",
                    role=role,
                    scenarios=[best.scenario],
                    message=f"{role.value} service performs best in scenario '{best.scenario}'",
                ))

            worst = self.worst_by_error_and_latency(role)
            if worst is not None:
                outcome = worst.service_for_role(role)
                if outcome.verdict == HealthVerdict.UNHEALTHY:
                    m = outcome.metrics
                    recs.append(Recommendation(
                        kind="unhealthy-boundary",
                        role=role,
                        scenarios=[worst.scenario],
                        value=m.mean_latency_ms,
                        message=(
                            f"{role.value} service becomes unhealthy at latency > "
                            f"{m.mean_latency_ms:.0f} ms or errors > {m.error_rate * 100:.1f}%"
                        ),
                    ))

            threshold = self.latency_threshold_recommendation(role)
            if threshold is not None:
                recs.append(Recommendation(
                    kind="latency-threshold",
                    role=role,
                    value=threshold,
                    message=f"{role.value} service critical latency: ~{threshold:.0f} ms",
                ))

        stable = [r.scenario for r in self.all_healthy_scenarios()]
        if stable:
            recs.append(Recommendation(
                kind="stable-scenarios",
                scenarios=stable,
                message="stable scenarios: " + ", ".join(stable),
            ))
        risky = [r.scenario for r in self.any_unhealthy_scenarios()]
        if risky:
            recs.append(Recommendation(
                kind="risky-scenarios",
                scenarios=risky,
                message="risky scenarios: " + ", ".join(risky),
            ))
        return recs

    def summary(self) -> ComparisonSummary:
        """Totals and best/worst scenario across every result."""
        if not self._results:
            return ComparisonSummary()

        def successes(r: ScenarioResult) -> int:
            return sum(o.metrics.successes for o in r.services.values())

        def avg_latency(r: ScenarioResult) -> float:
            if not r.services:
                return 0.0
            return mean(o.metrics.mean_latency_ms for o in r.services.values())

        best = min(self._results, key=lambda r: (-successes(r), avg_latency(r)))
        worst = min(self._results, key=lambda r: (successes(r), -avg_latency(r)))

        outcomes = [o for r in self._results for o in r.services.values()]
        return ComparisonSummary(
            scenario_count=len(self._results),
            total_requests=sum(o.metrics.total for o in outcomes),
            total_successes=sum(o.metrics.successes for o in outcomes),
            total_failures=sum(o.metrics.failures for o in outcomes),
            healthy_scenarios=len(self.all_healthy_scenarios()),
            degraded_scenarios=sum(
                1 for r in self._results if HealthVerdict.DEGRADED in r.verdicts()
            ),
            unhealthy_scenarios=len(self.any_unhealthy_scenarios()),
            best_scenario=best.scenario,
            worst_scenario=worst.scenario,
        )
