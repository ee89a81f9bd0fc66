"""Serialize scenario definitions and run results to YAML or JSON."""

import json
import os
from dataclasses import asdict
from typing import Dict, List

import yaml

from whatif.comparator import ScenarioComparator
from whatif.models import (
    BatchOutcome,
    ScenarioConfig,
    ScenarioResult,
    ScenarioSet,
    ServiceOutcome,
)


def scenario_to_dict(config: ScenarioConfig) -> Dict:
    services = []
    for p in config.services:
        svc = {
            "name": p.name,
            "display_name": p.display_name,
            "base_latency_ms": p.base_latency_ms,
            "latency_jitter_ms": p.latency_jitter_ms,
            "failure_probability": p.failure_probability,
        }
        if p.role is not None:
            svc["role"] = p.role.value
        services.append(svc)

    out = {
        "name": config.name,
        "description": config.description,
        "total_requests": config.total_requests,
        "fast_service_ratio": config.fast_service_ratio,
        "services": services,
    }
    if config.weights is not None:
        out["weights"] = dict(config.weights)
    return out


def scenario_set_to_dict(scenario_set: ScenarioSet) -> Dict:
    return {
        "thresholds": asdict(scenario_set.thresholds),
        "scenarios": [scenario_to_dict(s) for s in scenario_set.scenarios],
    }


def write_scenarios(scenario_set: ScenarioSet, out_path: str) -> None:
    """Write a scenario file that ``load_scenarios`` can read back.

    The format follows the extension: ``.json`` writes JSON, anything else
    YAML.
    """
    data = scenario_set_to_dict(scenario_set)
    with open(out_path, "w", encoding="utf-8") as f:
        if os.path.splitext(out_path)[1].lower() == ".json":
            json.dump(data, f, indent=2)
            f.write("\n")
        else:
            yaml.safe_dump(data, f, sort_keys=False)


def outcome_to_dict(outcome: ServiceOutcome) -> Dict:
    m = outcome.metrics
    return {
        "name": outcome.name,
        "display_name": outcome.display_name,
        "role": outcome.role.value if outcome.role else None,
        "total": m.total,
        "successes": m.successes,
        "failures": m.failures,
        "error_rate": m.error_rate,
        "success_rate": m.success_rate,
        "mean_latency_ms": m.mean_latency_ms,
        "min_latency_ms": m.reported_min_latency_ms,
        "max_latency_ms": m.max_latency_ms,
        "verdict": outcome.verdict.value,
    }


def result_to_dict(result: ScenarioResult) -> Dict:
    return {
        "scenario": result.scenario,
        "started_at": result.started_at,
        "duration_seconds": result.duration_seconds,
        "services": [outcome_to_dict(o) for o in result.services.values()],
    }


def batch_to_dict(outcome: BatchOutcome, comparator: ScenarioComparator) -> Dict:
    summary = comparator.summary()
    recommendations: List[Dict] = []
    for rec in comparator.recommendations():
        recommendations.append({
            "kind": rec.kind,
            "role": rec.role.value if rec.role else None,
            "scenarios": list(rec.scenarios),
            "value": rec.value,
            "message": rec.message,
        })
    return {
        "results": [result_to_dict(r) for r in outcome.results],
        "skipped": [{"scenario": f.scenario, "error": f.message} for f in outcome.failures],
        "summary": asdict(summary),
        "recommendations": recommendations,
    }


def batch_to_json(outcome: BatchOutcome, comparator: ScenarioComparator) -> str:
    return json.dumps(batch_to_dict(outcome, comparator), indent=2)
