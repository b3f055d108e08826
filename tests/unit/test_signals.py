"""Unit tests for the signal registry and scoring configuration models"""

import pytest
from pydantic import ValidationError

from predelinq_gateway.config import Settings
from predelinq_gateway.domain.models import FeatureVector
from predelinq_gateway.domain.signals import (
    SIGNAL_REGISTRY,
    RiskWeights,
    ScoringConfig,
    Signal,
    SignalToggles,
)


def test_registry_covers_every_signal():
    assert set(SIGNAL_REGISTRY) == set(Signal)


def test_weights_and_toggles_have_one_field_per_signal():
    expected = {signal.value for signal in Signal}

    assert set(RiskWeights.model_fields) == expected
    assert set(SignalToggles.model_fields) == expected


def test_registry_features_exist_on_vector():
    vector_fields = set(FeatureVector.__dataclass_fields__)

    for spec in SIGNAL_REGISTRY.values():
        assert spec.feature in vector_fields
        assert spec.saturation > 0


def test_default_weights_sum_to_one():
    weights = RiskWeights()

    assert weights.total() == pytest.approx(1.0)
    assert weights.for_signal(Signal.SALARY_DELAY) == 0.18
    assert weights.for_signal(Signal.VOLATILITY) == 0.05


@pytest.mark.parametrize("bad_value", [-0.1, float("nan"), float("inf")])
def test_invalid_weight_rejected(bad_value):
    with pytest.raises(ValidationError):
        RiskWeights(salary_delay=bad_value)


def test_unknown_signal_rejected():
    with pytest.raises(ValidationError):
        SignalToggles(credit_score=True)


def test_weights_are_immutable():
    weights = RiskWeights()

    with pytest.raises(ValidationError):
        weights.salary_delay = 0.5


def test_all_disabled():
    toggles = SignalToggles.all_disabled()

    assert not any(toggles.is_enabled(signal) for signal in Signal)


def test_explanations_format_values():
    assert SIGNAL_REGISTRY[Signal.LENDING_APP_SPIKE].explanation(4).startswith(
        "4 lending app transactions in last 14 days"
    )
    assert SIGNAL_REGISTRY[Signal.ATM_SPIKE].explanation(2).startswith(
        "ATM withdrawals 2.00x above baseline."
    )


def test_settings_nested_env_overrides(monkeypatch):
    monkeypatch.setenv("WEIGHTS__SALARY_DELAY", "0.3")
    monkeypatch.setenv("SIGNALS__VOLATILITY", "false")

    config = Settings().scoring_config()

    assert isinstance(config, ScoringConfig)
    assert config.weights.salary_delay == 0.3
    assert config.weights.salary_drop == 0.12
    assert config.signals.volatility is False
    assert config.signals.salary_delay is True
