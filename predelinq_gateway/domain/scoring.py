"""Risk scoring engine - core business logic for pre-delinquency assessment"""

from typing import Dict, List, Optional

from predelinq_gateway.domain.models import (
    FeatureVector,
    InterventionTier,
    RiskAssessment,
    RiskBand,
    RiskDriver,
)
from predelinq_gateway.domain.signals import (
    SIGNAL_REGISTRY,
    RiskWeights,
    ScoringConfig,
    Signal,
    SignalToggles,
)
from predelinq_gateway.utils.numeric import clamp, round_half_up

TOP_DRIVER_COUNT = 5
NARRATIVE_DRIVER_COUNT = 3

BAND_TO_TIER: Dict[RiskBand, InterventionTier] = {
    RiskBand.LOW: InterventionTier.TIER_0,
    RiskBand.MEDIUM: InterventionTier.TIER_1,
    RiskBand.HIGH: InterventionTier.TIER_2,
    RiskBand.CRITICAL: InterventionTier.TIER_3,
}

TIER_DESCRIPTIONS: Dict[InterventionTier, str] = {
    InterventionTier.TIER_0: "Tier 0 (No Immediate Action)",
    InterventionTier.TIER_1: "Tier 1 (Soft Intervention)",
    InterventionTier.TIER_2: "Tier 2 (Proactive Restructuring)",
    InterventionTier.TIER_3: "Tier 3 (Urgent Human Outreach)",
}

# Regulatory disclosure, always part of the narrative
NO_PROTECTED_ATTRIBUTES_STATEMENT = "No protected demographic attributes were used in this scoring."
HUMAN_REVIEW_STATEMENT = (
    "A human review is required before any credit action. "
    "This report is generated in compliance with model explainability requirements."
)


def raw_value(features: FeatureVector, signal: Signal) -> float:
    return float(getattr(features, SIGNAL_REGISTRY[signal].feature))


def normalize(features: FeatureVector) -> Dict[Signal, float]:
    """
    Scale each scoring signal to [0, 1] by its saturation constant.

    e.g. a 5-day salary delay against a 10-day saturation -> 0.5;
    anything at or beyond saturation -> 1.0.
    """
    return {
        signal: clamp(raw_value(features, signal) / spec.saturation)
        for signal, spec in SIGNAL_REGISTRY.items()
    }


def calculate_risk_score(
    features: FeatureVector,
    weights: RiskWeights,
    signals: SignalToggles,
) -> float:
    """
    Calculate risk score from 0.0 (no stress signals) to 1.0 (maximum risk).

    Score = sum(normalized value x weight) over enabled signals, clamped to
    [0, 1]. Weights are used as configured; they are not renormalized when
    they do not sum to 1.
    """
    normalized = normalize(features)
    score = sum(
        normalized[signal] * weights.for_signal(signal)
        for signal in SIGNAL_REGISTRY
        if signals.is_enabled(signal)
    )
    return clamp(score)


def get_band(score: float) -> RiskBand:
    """
    Map risk score to a fixed band.

    - 0.00 - 0.30: Low
    - 0.30 - 0.55: Medium
    - 0.55 - 0.75: High
    - 0.75+:       Critical
    """
    if score < 0.30:
        return RiskBand.LOW
    elif score < 0.55:
        return RiskBand.MEDIUM
    elif score < 0.75:
        return RiskBand.HIGH
    else:
        return RiskBand.CRITICAL


def get_intervention_tier(band: RiskBand) -> InterventionTier:
    return BAND_TO_TIER[band]


def get_days_to_delinquency(score: float) -> int:
    """Illustrative linear estimate: 28 days at score 0 down to 14 days at score 1"""
    return round_half_up(28 - score * 14)


def generate_explainability(
    features: FeatureVector,
    weights: RiskWeights,
    signals: SignalToggles,
) -> List[RiskDriver]:
    """Rank enabled signals by weighted contribution and keep the top five"""
    normalized = normalize(features)
    drivers = []
    for signal, spec in SIGNAL_REGISTRY.items():
        if not signals.is_enabled(signal):
            continue
        value = raw_value(features, signal)
        drivers.append(
            RiskDriver(
                signal=signal.value,
                label=spec.label,
                value=value,
                normalized_value=normalized[signal],
                contribution=normalized[signal] * weights.for_signal(signal),
                explanation=spec.explanation(value),
            )
        )

    # sorted() is stable, so ties keep registry order
    drivers = sorted(drivers, key=lambda d: d.contribution, reverse=True)
    return drivers[:TOP_DRIVER_COUNT]


def generate_compliance_narrative(
    customer_id: str,
    band: RiskBand,
    drivers: List[RiskDriver],
    risk_score: float,
) -> str:
    """Fixed-template explanation of the assessment for the compliance record"""
    top_driver_names = ", ".join(d.label.lower() for d in drivers[:NARRATIVE_DRIVER_COUNT])
    tier = get_intervention_tier(band)
    return (
        f"Customer {customer_id} has been classified as {band.value.upper()} risk "
        f"with a composite risk score of {risk_score * 100:.1f}/100. "
        f"The primary risk drivers are: {top_driver_names}. "
        "This assessment was generated using a weighted ensemble of behavioral financial "
        "signals with full feature transparency. "
        f"Recommended intervention: {TIER_DESCRIPTIONS[tier]}. "
        f"{NO_PROTECTED_ATTRIBUTES_STATEMENT} "
        f"{HUMAN_REVIEW_STATEMENT}"
    )


def assess_risk(
    customer_id: str,
    features: FeatureVector,
    config: Optional[ScoringConfig] = None,
) -> RiskAssessment:
    """
    Main entry point: score a feature vector and explain the result.

    Returns complete RiskAssessment with score, band, tier, drivers and narrative.
    """
    config = config or ScoringConfig()
    score = calculate_risk_score(features, config.weights, config.signals)
    band = get_band(score)
    drivers = generate_explainability(features, config.weights, config.signals)

    return RiskAssessment(
        score=score,
        band=band,
        tier=get_intervention_tier(band),
        default_probability=round_half_up(score * 100),
        days_to_delinquency=get_days_to_delinquency(score),
        drivers=drivers,
        narrative=generate_compliance_narrative(customer_id, band, drivers, score),
    )
