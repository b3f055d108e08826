"""
Signal registry - the single table that scoring, explainability and
configuration all derive from.

Each scoring signal has one entry: display label, the FeatureVector attribute
holding its raw value, the saturation constant used for normalization, its
default weight and the explanation template shown to analysts.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict

from pydantic import BaseModel, ConfigDict, Field


class Signal(str, Enum):
    SALARY_DELAY = "salary_delay"
    SALARY_DROP = "salary_drop"
    SAVINGS_DRAWDOWN = "savings_drawdown"
    UTILITY_DELAY = "utility_delay"
    LENDING_APP_SPIKE = "lending_app_spike"
    ATM_SPIKE = "atm_spike"
    DISCRETIONARY_DROP = "discretionary_drop"
    FAILED_AUTO_DEBIT = "failed_auto_debit"
    VOLATILITY = "volatility"


@dataclass(frozen=True)
class SignalSpec:
    label: str
    feature: str
    saturation: float
    default_weight: float
    explanation: Callable[[float], str]


SIGNAL_REGISTRY: Dict[Signal, SignalSpec] = {
    Signal.SALARY_DELAY: SignalSpec(
        label="Salary Delay",
        feature="salary_delay_days",
        saturation=10,
        default_weight=0.18,
        explanation=lambda v: (
            f"Salary credited {v:.1f} days later than baseline. "
            "Delayed income inflow is a strong predictor of missed payments."
        ),
    ),
    Signal.SALARY_DROP: SignalSpec(
        label="Salary Drop",
        feature="salary_drop_percent",
        saturation=40,
        default_weight=0.12,
        explanation=lambda v: (
            f"Salary amount dropped by {v:.1f}%. "
            "A significant income reduction often precedes financial stress."
        ),
    ),
    Signal.SAVINGS_DRAWDOWN: SignalSpec(
        label="Savings Drawdown",
        feature="savings_drawdown_percent",
        saturation=30,
        default_weight=0.18,
        explanation=lambda v: (
            f"Account balance eroded by {v:.1f}% week-over-week, "
            "indicating depletion of liquidity cushion."
        ),
    ),
    Signal.UTILITY_DELAY: SignalSpec(
        label="Utility Payment Delay",
        feature="utility_delay_days",
        saturation=10,
        default_weight=0.08,
        explanation=lambda v: (
            f"Utility bills paid {v:.1f} days later than usual. "
            "Delayed essential payments signal cash scarcity."
        ),
    ),
    Signal.LENDING_APP_SPIKE: SignalSpec(
        label="Lending App Activity",
        feature="lending_app_txn_count",
        saturation=8,
        default_weight=0.12,
        explanation=lambda v: (
            f"{v:.0f} lending app transactions in last 14 days, "
            "suggesting active borrowing to cover expenses."
        ),
    ),
    Signal.ATM_SPIKE: SignalSpec(
        label="ATM Cash Spike",
        feature="atm_withdrawal_spike_ratio",
        saturation=3,
        default_weight=0.08,
        explanation=lambda v: (
            f"ATM withdrawals {v:.2f}x above baseline. "
            "Cash hoarding behavior associated with financial anxiety."
        ),
    ),
    Signal.DISCRETIONARY_DROP: SignalSpec(
        label="Discretionary Spend Drop",
        feature="discretionary_spend_drop_percent",
        saturation=50,
        default_weight=0.07,
        explanation=lambda v: (
            f"Discretionary spending fell {v:.1f}%. "
            "Customers cut non-essentials before missing debt payments."
        ),
    ),
    Signal.FAILED_AUTO_DEBIT: SignalSpec(
        label="Missed Repayment Risk",
        feature="failed_auto_debit_count",
        saturation=2,
        default_weight=0.12,
        explanation=lambda v: (
            f"{v:.0f} expected loan repayment(s) not detected. "
            "Auto-debit failures are a direct delinquency signal."
        ),
    ),
    Signal.VOLATILITY: SignalSpec(
        label="Spending Volatility",
        feature="spending_volatility_index",
        saturation=2,
        default_weight=0.05,
        explanation=lambda v: (
            f"Spending volatility index of {v:.2f}. "
            "Erratic cash flows indicate financial instability."
        ),
    ),
}


def _weight(signal: Signal):
    return Field(default=SIGNAL_REGISTRY[signal].default_weight, ge=0.0, allow_inf_nan=False)


class RiskWeights(BaseModel):
    """Per-signal weights; the sum is shown to operators but never renormalized"""

    model_config = ConfigDict(frozen=True, extra="forbid")

    salary_delay: float = _weight(Signal.SALARY_DELAY)
    salary_drop: float = _weight(Signal.SALARY_DROP)
    savings_drawdown: float = _weight(Signal.SAVINGS_DRAWDOWN)
    utility_delay: float = _weight(Signal.UTILITY_DELAY)
    lending_app_spike: float = _weight(Signal.LENDING_APP_SPIKE)
    atm_spike: float = _weight(Signal.ATM_SPIKE)
    discretionary_drop: float = _weight(Signal.DISCRETIONARY_DROP)
    failed_auto_debit: float = _weight(Signal.FAILED_AUTO_DEBIT)
    volatility: float = _weight(Signal.VOLATILITY)

    def for_signal(self, signal: Signal) -> float:
        return getattr(self, signal.value)

    def total(self) -> float:
        return sum(self.for_signal(signal) for signal in Signal)


class SignalToggles(BaseModel):
    """Per-signal enable switches; a disabled signal contributes nothing"""

    model_config = ConfigDict(frozen=True, extra="forbid")

    salary_delay: bool = True
    salary_drop: bool = True
    savings_drawdown: bool = True
    utility_delay: bool = True
    lending_app_spike: bool = True
    atm_spike: bool = True
    discretionary_drop: bool = True
    failed_auto_debit: bool = True
    volatility: bool = True

    def is_enabled(self, signal: Signal) -> bool:
        return getattr(self, signal.value)

    @classmethod
    def all_disabled(cls) -> "SignalToggles":
        return cls(**{signal.value: False for signal in Signal})


class ScoringConfig(BaseModel):
    """Weights and toggles read together for one scoring call"""

    model_config = ConfigDict(frozen=True)

    weights: RiskWeights = Field(default_factory=RiskWeights)
    signals: SignalToggles = Field(default_factory=SignalToggles)
