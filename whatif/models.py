"""Data models for service profiles, scenarios, metrics, and verdicts."""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional


class ServiceRole(str, Enum):
    FAST = "fast"
    SLOW = "slow"


class HealthVerdict(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass(frozen=True)
class ServiceProfile:
    name: str
    display_name: str
    base_latency_ms: int
    failure_probability: float
    latency_jitter_ms: int = 50  # exclusive upper bound
    role: Optional[ServiceRole] = None


@dataclass(frozen=True)
class SimulatedRequest:
    service_name: str
    payload_bytes: int
    deadline_ms: Optional[int] = None


@dataclass(frozen=True)
class SimulatedResponse:
    success: bool
    latency_ms: int
    error_code: Optional[str] = None
    error_message: Optional[str] = None


@dataclass
class RunningMetrics:
    """Streaming latency and outcome statistics for one service.

    Only the running mean is kept, never the individual samples. The
    minimum starts at +inf so the first observation always replaces it.
    """

    total: int = 0
    successes: int = 0
    failures: int = 0
    mean_latency_ms: float = 0.0
    min_latency_ms: float = float("inf")
    max_latency_ms: int = 0

    @property
    def error_rate(self) -> float:
        return self.failures / self.total if self.total else 0.0

    @property
    def success_rate(self) -> float:
        return self.successes / self.total if self.total else 0.0

    @property
    def reported_min_latency_ms(self) -> int:
        return int(self.min_latency_ms) if self.total else 0


@dataclass(frozen=True)
class HealthThresholds:
    max_healthy_error_rate: float = 0.05
    max_degraded_error_rate: float = 0.20
    max_healthy_latency_ms: float = 150
    max_degraded_latency_ms: float = 400


@dataclass
class ScenarioConfig:
    name: str
    description: str = ""
    total_requests: int = 100
    fast_service_ratio: float = 0.5
    services: List[ServiceProfile] = field(default_factory=list)
    weights: Optional[Dict[str, float]] = None  # service name -> weight


@dataclass(frozen=True)
class ServiceOutcome:
    name: str
    display_name: str
    role: Optional[ServiceRole]
    metrics: RunningMetrics
    verdict: HealthVerdict


@dataclass(frozen=True)
class ScenarioResult:
    """Outcome of one scenario run.

    ``services`` is a read-only mapping in declaration order. Each
    outcome holds its own copy of the metrics, so the result is a snapshot
    owned by whoever reads it.
    """

    scenario: str
    started_at: str
    duration_seconds: float
    services: Mapping[str, ServiceOutcome] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "services", MappingProxyType(dict(self.services)))

    def service_for_role(self, role: ServiceRole) -> Optional[ServiceOutcome]:
        for outcome in self.services.values():
            if outcome.role == role:
                return outcome
        return None

    def verdicts(self) -> List[HealthVerdict]:
        return [o.verdict for o in self.services.values()]


@dataclass(frozen=True)
class Recommendation:
    kind: str  # "best-scenario", "unhealthy-boundary", "latency-threshold", ...
    message: str
    role: Optional[ServiceRole] = None
    scenarios: List[str] = field(default_factory=list)
    value: Optional[float] = None


@dataclass(frozen=True)
class ComparisonSummary:
    scenario_count: int = 0
    total_requests: int = 0
    total_successes: int = 0
    total_failures: int = 0
    healthy_scenarios: int = 0
    degraded_scenarios: int = 0
    unhealthy_scenarios: int = 0
    best_scenario: Optional[str] = None
    worst_scenario: Optional[str] = None

    @property
    def success_rate(self) -> float:
        return self.total_successes / self.total_requests if self.total_requests else 0.0

    @property
    def error_rate(self) -> float:
        return self.total_failures / self.total_requests if self.total_requests else 0.0


@dataclass(frozen=True)
class ScenarioFailure:
    scenario: str
    message: str


@dataclass
class BatchOutcome:
    results: List[ScenarioResult] = field(default_factory=list)
    failures: List[ScenarioFailure] = field(default_factory=list)


@dataclass
class ScenarioSet:
    scenarios: List[ScenarioConfig] = field(default_factory=list)
    thresholds: HealthThresholds = field(default_factory=HealthThresholds)
