"""Load scenario definitions from YAML or JSON files, or use the built-ins."""

import json
import os
from typing import List, Optional

import yaml

from whatif.models import (
    HealthThresholds,
    ScenarioConfig,
    ScenarioSet,
    ServiceProfile,
    ServiceRole,
)
from whatif.runner import ConfigurationError, is_finite_number


class ScenarioFileError(ConfigurationError):
    """Raised when a scenario file is missing, unreadable, or malformed."""


def _pair(index: int, fast: tuple, slow: tuple) -> List[ServiceProfile]:
    return [
        ServiceProfile(
            name=f"fast-service-{index}",
            display_name="Fast service",
            base_latency_ms=fast[0],
            failure_probability=fast[1],
            latency_jitter_ms=fast[2],
            role=ServiceRole.FAST,
        ),
        ServiceProfile(
            name=f"slow-service-{index}",
            display_name="Slow service",
            base_latency_ms=slow[0],
            failure_probability=slow[1],
            latency_jitter_ms=slow[2],
            role=ServiceRole.SLOW,
        ),
    ]


# (base latency ms, failure probability, jitter ms)
DEFAULT_SCENARIOS: List[ScenarioConfig] = [
    ScenarioConfig(
        name="optimistic",
        description="Ideal conditions, light load",
        total_requests=80,
        fast_service_ratio=0.6,
        services=_pair(1, (30, 0.02, 20), (120, 0.08, 40)),
    ),
    ScenarioConfig(
        name="realistic",
        description="Current system configuration",
        total_requests=100,
        fast_service_ratio=0.5,
        services=_pair(2, (50, 0.05, 30), (200, 0.15, 50)),
    ),
    ScenarioConfig(
        name="pessimistic",
        description="High load, network trouble",
        total_requests=120,
        fast_service_ratio=0.4,
        services=_pair(3, (100, 0.10, 60), (450, 0.25, 100)),
    ),
    ScenarioConfig(
        name="critical",
        description="System on the verge of failure",
        total_requests=150,
        fast_service_ratio=0.3,
        services=_pair(4, (200, 0.20, 100), (800, 0.40, 200)),
    ),
    ScenarioConfig(
        name="balanced",
        description="Optimised configuration",
        total_requests=100,
        fast_service_ratio=0.7,
        services=_pair(5, (40, 0.03, 25), (180, 0.12, 45)),
    ),
]


def default_scenarios() -> ScenarioSet:
    """Return the built-in scenarios with default thresholds."""
    return ScenarioSet(scenarios=list(DEFAULT_SCENARIOS), thresholds=HealthThresholds())


_PARSERS = {
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
    ".json": json.load,
}


def load_scenarios(path: str) -> ScenarioSet:
    """Load scenarios (and optional thresholds) from a YAML or JSON file.

    Only the file's structure is checked here. Ratios, request counts and
    roles are checked per scenario when it runs, so one bad scenario does
    not block the others.

    Args:
        path: Path to the scenario file.

    Returns:
        A ScenarioSet with scenarios in file order.

    Raises:
        ScenarioFileError: If the file is missing, unreadable, or malformed.
    """
    return _build_set(_read_document(path))


def _read_document(path: str) -> dict:
    if not os.path.isfile(path):
        raise ScenarioFileError(f"scenario file not found: {path}")

    ext = os.path.splitext(path)[1].lower()
    parse = _PARSERS.get(ext)
    if parse is None:
        expected = ", ".join(sorted(_PARSERS))
        raise ScenarioFileError(f"unsupported file extension: {ext} (expected one of {expected})")

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = parse(f)
    except UnicodeDecodeError as exc:
        raise ScenarioFileError(f"{path} is not valid UTF-8: {exc}") from exc
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ScenarioFileError(f"failed to parse {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ScenarioFileError("scenario file must be a mapping/object at the top level")
    return raw


def _build_set(raw: dict) -> ScenarioSet:
    errors: List[str] = []

    scenarios_raw = raw.get("scenarios")
    scenarios = []
    if not isinstance(scenarios_raw, list) or not scenarios_raw:
        errors.append("'scenarios' is required and must be a non-empty list")
    else:
        for i, item in enumerate(scenarios_raw):
            scenario = _parse_scenario(item, f"scenarios[{i}]", errors)
            if scenario is not None:
                scenarios.append(scenario)

    thresholds = _parse_thresholds(raw.get("thresholds"), errors)

    if errors:
        raise ScenarioFileError(
            "scenario file validation failed:\n  - " + "\n  - ".join(errors)
        )
    return ScenarioSet(scenarios=scenarios, thresholds=thresholds)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _parse_scenario(raw, where: str, errors: List[str]) -> Optional[ScenarioConfig]:
    if not isinstance(raw, dict):
        errors.append(f"{where} must be a mapping")
        return None

    name = raw.get("name")
    if not name or not isinstance(name, str):
        errors.append(f"{where}.name is required and must be a non-empty string")

    total = raw.get("total_requests", 100)
    if not _is_int(total):
        errors.append(f"{where}.total_requests must be an integer")
        total = 0

    ratio = raw.get("fast_service_ratio", 0.5)
    if not is_finite_number(ratio):
        errors.append(f"{where}.fast_service_ratio must be a number")
        ratio = 0.5

    services_raw = raw.get("services", [])
    if not isinstance(services_raw, list):
        errors.append(f"{where}.services must be a list")
        services_raw = []
    services = []
    for j, svc in enumerate(services_raw):
        profile = _parse_service(svc, f"{where}.services[{j}]", errors)
        if profile is not None:
            services.append(profile)

    weights = raw.get("weights")
    if weights is not None:
        if not isinstance(weights, dict) or not all(
            is_finite_number(w) for w in weights.values()
        ):
            errors.append(f"{where}.weights must map service names to numbers")
            weights = None
        else:
            weights = {str(k): float(v) for k, v in weights.items()}

    return ScenarioConfig(
        name=name or "",
        description=str(raw.get("description", "")),
        total_requests=total,
        fast_service_ratio=float(ratio),
        services=services,
        weights=weights,
    )


def _parse_service(raw, where: str, errors: List[str]) -> Optional[ServiceProfile]:
    if not isinstance(raw, dict):
        errors.append(f"{where} must be a mapping")
        return None

    name = raw.get("name")
    if not name or not isinstance(name, str):
        errors.append(f"{where}.name is required and must be a non-empty string")
        name = ""

    base = raw.get("base_latency_ms")
    if not _is_int(base):
        errors.append(f"{where}.base_latency_ms is required and must be an integer")
        base = 0
    jitter = raw.get("latency_jitter_ms", 50)
    if not _is_int(jitter):
        errors.append(f"{where}.latency_jitter_ms must be an integer")
        jitter = 0
    failure = raw.get("failure_probability", 0.0)
    if not is_finite_number(failure):
        errors.append(f"{where}.failure_probability must be a number")
        failure = 0.0

    role = raw.get("role")
    if role is not None:
        try:
            role = ServiceRole(str(role).lower())
        except ValueError:
            errors.append(
                f"{where}.role must be one of: " + ", ".join(r.value for r in ServiceRole)
            )
            role = None

    return ServiceProfile(
        name=name,
        display_name=str(raw.get("display_name") or name),
        base_latency_ms=base,
        failure_probability=float(failure),
        latency_jitter_ms=jitter,
        role=role,
    )


_THRESHOLD_KEYS = (
    "max_healthy_error_rate",
    "max_degraded_error_rate",
    "max_healthy_latency_ms",
    "max_degraded_latency_ms",
)


def _parse_thresholds(raw, errors: List[str]) -> HealthThresholds:
    if raw is None:
        return HealthThresholds()
    if not isinstance(raw, dict):
        errors.append("'thresholds' must be a mapping")
        return HealthThresholds()

    kwargs = {}
    for key, val in raw.items():
        if key not in _THRESHOLD_KEYS:
            errors.append(f"unknown threshold: {key}")
        elif not is_finite_number(val):
            errors.append(f"thresholds.{key} must be a number")
        else:
            kwargs[key] = float(val)
    return HealthThresholds(**kwargs)
