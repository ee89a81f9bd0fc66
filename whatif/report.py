"""Plain-text rendering of scenario results and comparisons."""

from typing import List

from whatif.comparator import ScenarioComparator
from whatif.models import (
    ComparisonSummary,
    HealthVerdict,
    Recommendation,
    ScenarioConfig,
    ScenarioResult,
)

RULE = "-" * 60
WIDE_RULE = "-" * 80

_ICONS = {
    HealthVerdict.HEALTHY: "[OK]",
    HealthVerdict.DEGRADED: "[WARN]",
    HealthVerdict.UNHEALTHY: "[FAIL]",
}


def verdict_label(verdict: HealthVerdict) -> str:
    return f"{_ICONS[verdict]} {verdict.value.upper()}"


def format_scenario_header(config: ScenarioConfig) -> str:
    lines = [f"Scenario: {config.name}"]
    if config.description:
        lines.append(config.description)
    for p in config.services:
        lines.append(
            f"  {p.display_name} ({p.name}): base latency {p.base_latency_ms} ms, "
            f"failure probability {p.failure_probability * 100:.0f}%"
        )
    lines.append(f"  {config.total_requests} requests, fast ratio {config.fast_service_ratio:.2f}")
    return "\n".join(lines)


def format_scenario_summary(result: ScenarioResult) -> str:
    lines = [f"Results for scenario: {result.scenario}", RULE]
    for outcome in result.services.values():
        m = outcome.metrics
        lines.append(f"{_ICONS[outcome.verdict]} {outcome.display_name} ({outcome.name}):")
        lines.append(f"   requests: {m.total}")
        lines.append(f"   successes: {m.successes} ({m.success_rate * 100:.1f}%)")
        lines.append(f"   failures: {m.failures} ({m.error_rate * 100:.1f}%)")
        lines.append(
            f"   latency: {m.mean_latency_ms:.0f} ms "
            f"(min: {m.reported_min_latency_ms} ms, max: {m.max_latency_ms} ms)"
        )
        lines.append(f"   health: {outcome.verdict.value.upper()}")
    lines.append(f"Duration: {result.duration_seconds:.2f} s")
    lines.append(RULE)
    return "\n".join(lines)


def format_comparison_table(comparator: ScenarioComparator) -> str:
    if not len(comparator):
        return "No results to compare."

    lines = [
        WIDE_RULE,
        f"| {'Scenario':<18} | {'Service':<18} | {'Latency':<8} | {'Errors':<7} | {'Health':<15} |",
        WIDE_RULE,
    ]
    for result in sorted(comparator.results, key=lambda r: r.scenario):
        first = True
        for name in sorted(result.services):
            outcome = result.services[name]
            m = outcome.metrics
            scenario = result.scenario if first else ""
            latency = f"{m.mean_latency_ms:.0f}ms"
            errors = f"{m.error_rate * 100:.1f}%"
            lines.append(
                f"| {scenario:<18} | {outcome.name:<18} | {latency:<8} | "
                f"{errors:<7} | {verdict_label(outcome.verdict):<15} |"
            )
            first = False
        lines.append(WIDE_RULE)
    return "\n".join(lines)


def format_recommendations(recommendations: List[Recommendation]) -> str:
    lines = ["Recommendations:", RULE]
    if not recommendations:
        lines.append("  (none)")
    for rec in recommendations:
        lines.append(f"  - {rec.message}")
    return "\n".join(lines)


def format_statistics(summary: ComparisonSummary) -> str:
    lines = ["Statistics across all scenarios:", RULE]
    lines.append(f"  - scenarios run: {summary.scenario_count}")
    lines.append(f"  - requests processed: {summary.total_requests}")
    lines.append(
        f"  - successful requests: {summary.total_successes} ({summary.success_rate * 100:.1f}%)"
    )
    lines.append(
        f"  - failed requests: {summary.total_failures} ({summary.error_rate * 100:.1f}%)"
    )
    lines.append(f"  - all-healthy scenarios: {summary.healthy_scenarios}")
    lines.append(f"  - scenarios with degradation: {summary.degraded_scenarios}")
    lines.append(f"  - scenarios with unhealthy services: {summary.unhealthy_scenarios}")
    if summary.best_scenario is not None:
        lines.append(f"Best scenario: '{summary.best_scenario}'")
        lines.append(f"Worst scenario: '{summary.worst_scenario}'")
    return "\n".join(lines)
