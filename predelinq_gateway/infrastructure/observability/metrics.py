"""Prometheus metrics for monitoring ingestion outcomes, risk bands, alerts and interventions"""

from typing import Sequence

from prometheus_client import REGISTRY, Counter, Histogram, generate_latest

from predelinq_gateway.domain.models import Alert, InterventionLog, RiskAssessment

# Ingestion metrics
ingestion_counter = Counter(
    "predelinq_ingestion_total",
    "Statement ingestions by outcome",
    ["outcome"],  # scored | rejected
)

ingestion_duration_histogram = Histogram(
    "predelinq_ingestion_duration_seconds",
    "End-to-end ingestion pipeline latency",
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
)

# Scoring metrics
band_counter = Counter(
    "predelinq_risk_band_total",
    "Risk assessments by band",
    ["band"],  # Low | Medium | High | Critical
)

risk_score_histogram = Histogram(
    "predelinq_risk_score",
    "Distribution of composite risk scores",
    buckets=[0.1, 0.2, 0.3, 0.4, 0.55, 0.65, 0.75, 0.9, 1.0],
)

# Alert / intervention metrics
alert_counter = Counter(
    "predelinq_alerts_total",
    "Alerts generated by severity level",
    ["level"],
)

intervention_counter = Counter(
    "predelinq_interventions_total",
    "Intervention actions triggered by tier",
    ["tier"],
)


def record_assessment(assessment: RiskAssessment) -> None:
    """Record score distribution and band mix"""
    band_counter.labels(band=assessment.band.value).inc()
    risk_score_histogram.observe(assessment.score)


def record_alerts(alerts: Sequence[Alert]) -> None:
    for alert in alerts:
        alert_counter.labels(level=alert.level.value).inc()


def record_interventions(interventions: Sequence[InterventionLog]) -> None:
    for intervention in interventions:
        intervention_counter.labels(tier=intervention.tier.value).inc()


def export_metrics() -> bytes:
    """Current metrics in the Prometheus text exposition format"""
    return generate_latest(REGISTRY)
