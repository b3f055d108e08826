"""Customer profile construction and lifecycle rules"""

from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, FrozenSet, Optional, Sequence

from predelinq_gateway.domain.exceptions import InvalidStatusTransitionError
from predelinq_gateway.domain.features import compute_data_confidence, detect_segment
from predelinq_gateway.domain.interventions import get_intervention_text
from predelinq_gateway.domain.models import (
    CustomerProfile,
    CustomerStatus,
    FeatureVector,
    RiskAssessment,
    Transaction,
    UploadHistoryEntry,
    generate_id,
)

ALLOWED_STATUS_TRANSITIONS: Dict[CustomerStatus, FrozenSet[CustomerStatus]] = {
    CustomerStatus.ACTIVE: frozenset({CustomerStatus.UNDER_INTERVENTION}),
    CustomerStatus.UNDER_INTERVENTION: frozenset({CustomerStatus.RESOLVED}),
    CustomerStatus.RESOLVED: frozenset({CustomerStatus.ACTIVE, CustomerStatus.UNDER_INTERVENTION}),
}


def build_customer_profile(
    customer_id: str,
    transactions: Sequence[Transaction],
    features: FeatureVector,
    assessment: RiskAssessment,
    existing: Optional[CustomerProfile] = None,
    name: Optional[str] = None,
    now: Optional[datetime] = None,
    history_limit: Optional[int] = None,
) -> CustomerProfile:
    """
    Create or overwrite a profile from a fresh ingestion.

    Score and feature fields are always replaced. Name, notes and status
    carry over from the existing profile; upload history gets one new entry
    appended (oldest entries dropped beyond `history_limit`).
    """
    timestamp = now or datetime.now(timezone.utc)
    entry = UploadHistoryEntry(
        upload_id=generate_id("UP"),
        timestamp=timestamp,
        risk_score=assessment.score,
        band=assessment.band,
        txn_count=len(transactions),
    )

    history = list(existing.upload_history) if existing else []
    history.append(entry)
    if history_limit is not None and len(history) > history_limit:
        history = history[-history_limit:]

    return CustomerProfile(
        id=customer_id,
        name=existing.name if existing else (name or customer_id),
        segment=detect_segment(transactions),
        risk_score=assessment.score,
        band=assessment.band,
        predicted_default_probability=assessment.default_probability,
        estimated_days_to_delinquency=assessment.days_to_delinquency,
        features=features,
        data_confidence_score=compute_data_confidence(transactions),
        last_updated=timestamp,
        recommended_intervention_tier=assessment.tier,
        recommended_intervention_text=get_intervention_text(assessment.tier),
        flags=list(features.flags),
        notes=existing.notes if existing else "",
        status=existing.status if existing else CustomerStatus.ACTIVE,
        upload_history=history,
    )


def apply_rescore(profile: CustomerProfile, features: FeatureVector, assessment: RiskAssessment,
                  now: Optional[datetime] = None) -> CustomerProfile:
    """Overwrite score fields after re-scoring the stored batch; history is left untouched"""
    return replace(
        profile,
        risk_score=assessment.score,
        band=assessment.band,
        predicted_default_probability=assessment.default_probability,
        estimated_days_to_delinquency=assessment.days_to_delinquency,
        features=features,
        flags=list(features.flags),
        recommended_intervention_tier=assessment.tier,
        recommended_intervention_text=get_intervention_text(assessment.tier),
        last_updated=now or datetime.now(timezone.utc),
    )


def transition_status(profile: CustomerProfile, new_status: CustomerStatus) -> CustomerProfile:
    """Move a profile along Active -> Under Intervention -> Resolved"""
    if profile.status == new_status:
        return profile
    if new_status not in ALLOWED_STATUS_TRANSITIONS[profile.status]:
        raise InvalidStatusTransitionError(
            f"Cannot move customer {profile.id} from {profile.status.value} to {new_status.value}"
        )
    return replace(profile, status=new_status)


def with_notes(profile: CustomerProfile, notes: str) -> CustomerProfile:
    return replace(profile, notes=notes)
