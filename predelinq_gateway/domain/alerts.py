"""Rule-based alert generation from a scored customer profile"""

from datetime import datetime, timezone
from typing import List, Optional

from predelinq_gateway.domain.models import (
    Alert,
    AlertAction,
    AlertLevel,
    CustomerProfile,
    RiskBand,
    generate_id,
)
from predelinq_gateway.utils.numeric import round_half_up

SALARY_DELAY_ALERT_DAYS = 5
FAILED_AUTO_DEBIT_ALERT_COUNT = 1
LENDING_APP_ALERT_COUNT = 4
SAVINGS_DRAIN_ALERT_PERCENT = 15
DEBT_BURDEN_ALERT_RATIO = 0.40


def priority_score(profile: CustomerProfile) -> int:
    """Linear urgency heuristic used to sort and highlight alerts"""
    features = profile.features
    return round_half_up(
        profile.risk_score * 100
        + features.failed_auto_debit_count * 20
        + features.salary_delay_days * 2
    )


def generate_alerts(profile: CustomerProfile, now: Optional[datetime] = None) -> List[Alert]:
    """
    Evaluate every alert rule against the profile.

    Rules are independent: a Critical customer with a missed repayment gets
    both the band alert and the auto-debit alert. Returns an empty list when
    no rule fires.
    """
    created_at = now or datetime.now(timezone.utc)
    priority = priority_score(profile)
    features = profile.features
    score_pct = f"{profile.risk_score * 100:.0f}"
    alerts: List[Alert] = []

    def add(level: AlertLevel, title: str, detail: str, signals: List[str], action: AlertAction) -> None:
        alerts.append(
            Alert(
                alert_id=generate_id("ALT"),
                customer_id=profile.id,
                level=level,
                title=title,
                detail=detail,
                signals=signals,
                created_at=created_at,
                action=action,
                priority_score=priority,
            )
        )

    # Band-level alerts
    if profile.band == RiskBand.CRITICAL:
        add(
            AlertLevel.CRITICAL,
            f"Critical Delinquency Risk - {profile.id}",
            f"Customer risk score is {score_pct}/100. Estimated "
            f"{profile.estimated_days_to_delinquency} days to potential default.",
            list(profile.flags),
            AlertAction.INTERVENE,
        )
    elif profile.band == RiskBand.HIGH:
        add(
            AlertLevel.HIGH,
            f"High Risk Detected - {profile.id}",
            f"Customer shows multiple stress signals. Risk score: {score_pct}/100.",
            list(profile.flags),
            AlertAction.INTERVENE,
        )

    # Signal-specific alerts
    if features.salary_delay_days > SALARY_DELAY_ALERT_DAYS:
        add(
            AlertLevel.HIGH,
            "Salary Delay Spike Detected",
            f"Salary credited {features.salary_delay_days:.1f} days late. Baseline breached significantly.",
            ["Salary Delay Signal"],
            AlertAction.INTERVENE,
        )

    if features.failed_auto_debit_count >= FAILED_AUTO_DEBIT_ALERT_COUNT:
        add(
            AlertLevel.CRITICAL,
            "Auto-Debit Failure Risk",
            f"{features.failed_auto_debit_count} expected repayment(s) not detected. "
            "Immediate intervention required.",
            ["Repayment Missed Risk"],
            AlertAction.INTERVENE,
        )

    if features.lending_app_txn_count >= LENDING_APP_ALERT_COUNT:
        add(
            AlertLevel.HIGH,
            "Borrowing App Dependence",
            f"{features.lending_app_txn_count} lending app transactions in 14 days. "
            "Customer may be bridging income gaps with informal credit.",
            ["Lending App Spike"],
            AlertAction.INTERVENE,
        )

    if features.savings_drawdown_percent > SAVINGS_DRAIN_ALERT_PERCENT:
        add(
            AlertLevel.HIGH,
            "Savings Drain Detected",
            f"Account balance eroded by {features.savings_drawdown_percent:.1f}% week-over-week.",
            ["Savings Drawdown Signal"],
            AlertAction.REVIEW,
        )

    if features.net_cashflow < 0:
        add(
            AlertLevel.MEDIUM,
            "Negative Cashflow Detected",
            "Customer spent more than received in the last 30 days. "
            f"Net cashflow: ₹{features.net_cashflow:.0f}.",
            ["Negative Cashflow"],
            AlertAction.REVIEW,
        )

    if features.debt_burden_ratio > DEBT_BURDEN_ALERT_RATIO:
        add(
            AlertLevel.MEDIUM,
            "High Debt-to-Income Ratio",
            f"Debt burden ratio of {features.debt_burden_ratio * 100:.0f}% exceeds safe threshold of 35%.",
            ["High Debt Burden"],
            AlertAction.REVIEW,
        )

    return alerts
