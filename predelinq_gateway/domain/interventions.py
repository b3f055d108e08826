"""Tiered outreach templates materialized on explicit operator trigger"""

from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from predelinq_gateway.domain.models import (
    CustomerProfile,
    InterventionChannel,
    InterventionLog,
    InterventionTier,
    generate_id,
)

INTERVENTIONS_BY_TIER: Dict[InterventionTier, List[Tuple[InterventionChannel, str]]] = {
    InterventionTier.TIER_0: [],
    InterventionTier.TIER_1: [
        (
            InterventionChannel.SMS,
            "Friendly reminder: Your EMI of ₹{amount} is due on {date}. "
            "Ensure your account has sufficient balance.",
        ),
        (
            InterventionChannel.APP_NOTIFICATION,
            "Your personalized budgeting report is ready. View insights to improve financial health.",
        ),
        (
            InterventionChannel.EMAIL,
            "We've prepared a savings plan tailored to your income pattern. Explore options in your app.",
        ),
    ],
    InterventionTier.TIER_2: [
        (
            InterventionChannel.SMS,
            "We understand you may need flexibility. You can shift your EMI date by up to 7 days. "
            "Call us or use the app.",
        ),
        (
            InterventionChannel.APP_NOTIFICATION,
            "Partial payment option now enabled for your account. Pay what you can today to avoid penalties.",
        ),
        (
            InterventionChannel.EMAIL,
            "Based on your spending patterns, we recommend a temporary credit limit adjustment "
            "to help manage your finances.",
        ),
    ],
    InterventionTier.TIER_3: [
        (
            InterventionChannel.CALL,
            "A relationship manager will call you within 24 hours to discuss a payment restructuring plan.",
        ),
        (
            InterventionChannel.SMS,
            "You are eligible for a 1-month payment holiday. No penalties will apply. Contact us to activate.",
        ),
        (
            InterventionChannel.EMAIL,
            "We've prepared a debt restructuring proposal based on your financial situation. "
            "Review it in your portal.",
        ),
    ],
}

INTERVENTION_TEXT: Dict[InterventionTier, str] = {
    InterventionTier.TIER_0: "No immediate action required. Continue monitoring.",
    InterventionTier.TIER_1: (
        "Soft digital nudge: Send budgeting insights, EMI reminder via SMS and App Notification."
    ),
    InterventionTier.TIER_2: (
        "Offer flexible EMI date shift, enable partial payment, and adjust credit limit temporarily."
    ),
    InterventionTier.TIER_3: (
        "Assign relationship manager call, offer payment holiday, initiate debt restructuring plan."
    ),
}


def get_intervention_text(tier: InterventionTier) -> str:
    return INTERVENTION_TEXT[tier]


def generate_interventions(
    profile: CustomerProfile,
    operator: str,
    now: Optional[datetime] = None,
) -> List[InterventionLog]:
    """
    Materialize one Triggered log per template of the profile's recommended tier.

    Static lookup: Tier 0 yields nothing, every other tier yields three actions.
    """
    created_at = now or datetime.now(timezone.utc)
    tier = profile.recommended_intervention_tier
    return [
        InterventionLog(
            intervention_id=generate_id("INT"),
            customer_id=profile.id,
            tier=tier,
            channel=channel,
            message=message,
            created_at=created_at,
            operator=operator,
        )
        for channel, message in INTERVENTIONS_BY_TIER[tier]
    ]
