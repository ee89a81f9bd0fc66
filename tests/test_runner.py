"""Tests for scenario validation, routing, and runs."""

import random

import pytest

from whatif.models import (
    HealthThresholds,
    HealthVerdict,
    ScenarioConfig,
    ServiceProfile,
    ServiceRole,
)
from whatif.runner import (
    ConfigurationError,
    choose_service,
    routing_weights,
    run_scenario,
    run_scenarios,
    validate_scenario,
)


def _fast(**overrides):
    values = dict(
        name="fast-api", display_name="Fast API", base_latency_ms=30,
        failure_probability=0.0, latency_jitter_ms=0, role=ServiceRole.FAST,
    )
    values.update(overrides)
    return ServiceProfile(**values)


def _slow(**overrides):
    values = dict(
        name="slow-api", display_name="Slow API", base_latency_ms=500,
        failure_probability=1.0, latency_jitter_ms=0, role=ServiceRole.SLOW,
    )
    values.update(overrides)
    return ServiceProfile(**values)


def _scenario(**overrides):
    values = dict(
        name="test", total_requests=10, fast_service_ratio=0.5,
        services=[_fast(), _slow()],
    )
    values.update(overrides)
    return ScenarioConfig(**values)


class TestValidateScenario:
    def test_valid_scenario(self):
        validate_scenario(_scenario())

    def test_ratio_above_one(self):
        with pytest.raises(ConfigurationError, match="fast_service_ratio"):
            validate_scenario(_scenario(fast_service_ratio=1.5))

    def test_negative_ratio(self):
        with pytest.raises(ConfigurationError, match="fast_service_ratio"):
            validate_scenario(_scenario(fast_service_ratio=-0.1))

    def test_negative_request_count(self):
        with pytest.raises(ConfigurationError, match="total_requests"):
            validate_scenario(_scenario(total_requests=-1))

    def test_missing_slow_role(self):
        with pytest.raises(ConfigurationError, match="'slow'"):
            validate_scenario(_scenario(services=[_fast()]))

    def test_two_fast_roles(self):
        services = [_fast(), _fast(name="fast-2"), _slow()]
        with pytest.raises(ConfigurationError, match="'fast'"):
            validate_scenario(_scenario(services=services))

    def test_duplicate_service_names(self):
        services = [_fast(), _slow(name="fast-api")]
        with pytest.raises(ConfigurationError, match="duplicate"):
            validate_scenario(_scenario(services=services))

    def test_profile_ranges(self):
        services = [_fast(base_latency_ms=-1, failure_probability=2.0), _slow(latency_jitter_ms=-5)]
        with pytest.raises(ConfigurationError) as excinfo:
            validate_scenario(_scenario(services=services))
        message = str(excinfo.value)
        assert "base_latency_ms" in message
        assert "failure_probability" in message
        assert "latency_jitter_ms" in message

    def test_weights_for_unknown_service(self):
        with pytest.raises(ConfigurationError, match="unknown service"):
            validate_scenario(_scenario(weights={"nope": 1.0}))

    def test_weights_all_zero(self):
        with pytest.raises(ConfigurationError, match="positive"):
            validate_scenario(_scenario(weights={"fast-api": 0, "slow-api": 0}))

    def test_weights_replace_role_requirement(self):
        svc = _fast(role=None)
        validate_scenario(_scenario(services=[svc], weights={"fast-api": 1.0}))

    @pytest.mark.parametrize("bad", [float("nan"), float("inf")])
    def test_non_finite_weight(self, bad):
        with pytest.raises(ConfigurationError, match="finite"):
            validate_scenario(_scenario(weights={"fast-api": 3.0, "slow-api": bad}))

    def test_non_finite_profile_fields(self):
        services = [
            _fast(base_latency_ms=float("inf")),
            _slow(latency_jitter_ms=float("nan"), failure_probability=float("nan")),
        ]
        with pytest.raises(ConfigurationError) as excinfo:
            validate_scenario(_scenario(services=services))
        message = str(excinfo.value)
        assert "base_latency_ms" in message
        assert "latency_jitter_ms" in message
        assert "failure_probability" in message

    def test_nan_ratio(self):
        with pytest.raises(ConfigurationError, match="fast_service_ratio"):
            validate_scenario(_scenario(fast_service_ratio=float("nan")))


class TestRouting:
    def test_two_role_weights(self):
        weights = routing_weights(_scenario(fast_service_ratio=0.25))
        assert weights == [("fast-api", 0.25), ("slow-api", 0.75)]

    def test_explicit_weights_in_declaration_order(self):
        config = _scenario(weights={"slow-api": 3.0})
        assert routing_weights(config) == [("fast-api", 0.0), ("slow-api", 3.0)]

    def test_zero_weight_never_chosen(self):
        rng = random.Random(11)
        picks = {choose_service([("a", 0.0), ("b", 1.0), ("c", 0.0)], rng) for _ in range(200)}
        assert picks == {"b"}

    def test_weighted_split(self):
        rng = random.Random(2)
        picks = [choose_service([("a", 1.0), ("b", 3.0)], rng) for _ in range(4000)]
        share = picks.count("b") / len(picks)
        assert 0.7 < share < 0.8


class TestRunScenario:
    def test_single_service_fixed_latency(self):
        config = ScenarioConfig(
            name="single",
            total_requests=10,
            services=[_fast(role=None)],
            weights={"fast-api": 1.0},
        )
        result = run_scenario(config, rng=random.Random(0))
        m = result.services["fast-api"].metrics
        assert (m.total, m.successes, m.failures) == (10, 10, 0)
        assert m.mean_latency_ms == 30
        assert m.min_latency_ms == 30
        assert m.max_latency_ms == 30
        assert result.services["fast-api"].verdict == HealthVerdict.HEALTHY

    def test_always_failing_service_is_unhealthy(self):
        config = _scenario(total_requests=5, fast_service_ratio=0.0)
        result = run_scenario(config, rng=random.Random(0))
        slow = result.services["slow-api"]
        assert slow.metrics.total == 5
        assert slow.metrics.successes == 0
        assert slow.metrics.failures == 5
        assert slow.metrics.error_rate == 1.0
        assert slow.verdict == HealthVerdict.UNHEALTHY

    def test_full_fast_ratio_leaves_slow_untouched(self):
        result = run_scenario(_scenario(total_requests=50, fast_service_ratio=1.0), rng=random.Random(4))
        assert result.services["fast-api"].metrics.total == 50
        slow = result.services["slow-api"]
        assert slow.metrics.total == 0
        assert slow.verdict == HealthVerdict.HEALTHY

    def test_services_keep_declaration_order(self):
        services = [_slow(), _fast()]
        result = run_scenario(_scenario(services=services), rng=random.Random(1))
        assert list(result.services) == ["slow-api", "fast-api"]

    def test_request_counts_add_up(self):
        result = run_scenario(_scenario(total_requests=200), rng=random.Random(8))
        assert sum(o.metrics.total for o in result.services.values()) == 200

    def test_zero_requests(self):
        result = run_scenario(_scenario(total_requests=0), rng=random.Random(8))
        assert all(o.metrics.total == 0 for o in result.services.values())
        assert all(o.verdict == HealthVerdict.HEALTHY for o in result.services.values())

    def test_same_seed_same_result(self):
        config = _scenario(
            total_requests=100,
            services=[_fast(latency_jitter_ms=40, failure_probability=0.1), _slow(failure_probability=0.3)],
        )
        a = run_scenario(config, rng=random.Random(123))
        b = run_scenario(config, rng=random.Random(123))
        assert [o.metrics for o in a.services.values()] == [o.metrics for o in b.services.values()]

    def test_custom_thresholds_applied(self):
        strict = HealthThresholds(max_healthy_latency_ms=10, max_degraded_latency_ms=20)
        config = _scenario(fast_service_ratio=1.0)
        result = run_scenario(config, rng=random.Random(0), thresholds=strict)
        assert result.services["fast-api"].verdict == HealthVerdict.UNHEALTHY

    def test_invalid_ratio_rejected_before_simulation(self):
        class ExplodingRandom(random.Random):
            def random(self):
                raise AssertionError("no request should be simulated")

        with pytest.raises(ConfigurationError):
            run_scenario(_scenario(fast_service_ratio=1.5), rng=ExplodingRandom())

    def test_duration_recorded(self):
        result = run_scenario(_scenario(), rng=random.Random(0))
        assert result.duration_seconds >= 0
        assert result.started_at.endswith("Z")


class TestRunScenarios:
    def test_invalid_scenario_skipped_others_run(self):
        configs = [
            _scenario(name="first"),
            _scenario(name="broken", fast_service_ratio=1.5),
            _scenario(name="last"),
        ]
        outcome = run_scenarios(configs, rng=random.Random(0))
        assert [r.scenario for r in outcome.results] == ["first", "last"]
        assert len(outcome.failures) == 1
        assert outcome.failures[0].scenario == "broken"
        assert "fast_service_ratio" in outcome.failures[0].message

    def test_callbacks(self):
        started, finished = [], []
        run_scenarios(
            [_scenario(name="a"), _scenario(name="b", total_requests=-1)],
            rng=random.Random(0),
            on_start=lambda c: started.append(c.name),
            on_result=lambda r: finished.append(r.scenario),
        )
        assert started == ["a", "b"]
        assert finished == ["a"]

    def test_pause_between_scenarios(self, monkeypatch):
        sleeps = []
        monkeypatch.setattr("whatif.runner.time.sleep", sleeps.append)
        run_scenarios(
            [_scenario(name="a"), _scenario(name="b"), _scenario(name="c")],
            rng=random.Random(0),
            pause_seconds=0.5,
        )
        assert sleeps == [0.5, 0.5]


class TestResultSnapshot:
    def test_services_mapping_is_read_only(self):
        result = run_scenario(_scenario(), rng=random.Random(0))
        with pytest.raises(TypeError):
            result.services["extra"] = result.services["fast-api"]
        assert list(result.services) == ["fast-api", "slow-api"]
