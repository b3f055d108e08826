"""Domain models - pure Python dataclasses representing business entities"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Direction(str, Enum):
    CREDIT = "credit"
    DEBIT = "debit"


class Channel(str, Enum):
    UPI = "UPI"
    ATM = "ATM"
    CARD = "Card"
    NET_BANKING = "NetBanking"
    CASH = "Cash"
    AUTO_DEBIT = "AutoDebit"


class RiskBand(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class InterventionTier(str, Enum):
    TIER_0 = "Tier 0"
    TIER_1 = "Tier 1"
    TIER_2 = "Tier 2"
    TIER_3 = "Tier 3"


class CustomerStatus(str, Enum):
    ACTIVE = "Active"
    UNDER_INTERVENTION = "Under Intervention"
    RESOLVED = "Resolved"


class Segment(str, Enum):
    SALARIED = "Salaried"
    SELF_EMPLOYED = "Self-employed"
    STUDENT = "Student"
    RETIRED = "Retired"


class AlertLevel(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AlertAction(str, Enum):
    INTERVENE = "Intervene"
    REVIEW = "Review"


class InterventionChannel(str, Enum):
    SMS = "SMS"
    EMAIL = "Email"
    CALL = "Call"
    APP_NOTIFICATION = "App Notification"


class InterventionStatus(str, Enum):
    TRIGGERED = "Triggered"
    DELIVERED = "Delivered"
    ACKNOWLEDGED = "Acknowledged"


class AuditEventType(str, Enum):
    UPLOAD = "UPLOAD"
    RISK_SCORE = "RISK_SCORE"
    ALERT_GENERATED = "ALERT_GENERATED"
    INTERVENTION_TRIGGERED = "INTERVENTION_TRIGGERED"
    CUSTOMER_UPDATED = "CUSTOMER_UPDATED"


def generate_id(prefix: str) -> str:
    """Short prefixed identifier, e.g. ALT-3F9A0C12BD"""
    return f"{prefix}-{uuid.uuid4().hex[:10].upper()}"


@dataclass(frozen=True)
class Transaction:
    """Single ledger entry from an uploaded statement"""

    transaction_id: str
    customer_id: str
    date: date
    amount: float
    type: Direction
    category: str  # lower-cased free text
    balance: float  # running balance after this transaction
    merchant: str
    channel: Channel

    @property
    def is_credit(self) -> bool:
        return self.type == Direction.CREDIT

    @property
    def is_debit(self) -> bool:
        return self.type == Direction.DEBIT


@dataclass
class ParseResult:
    """Outcome of parsing one uploaded CSV"""

    transactions: List[Transaction] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    raw_rows: int = 0
    customer_name: Optional[str] = None

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class FeatureVector:
    """Behavioral signals extracted from one ingestion batch"""

    salary_delay_days: float = 0.0
    salary_drop_percent: float = 0.0
    savings_drawdown_percent: float = 0.0
    utility_delay_days: float = 0.0
    lending_app_txn_count: int = 0
    lending_app_spike_ratio: float = 0.0
    atm_withdrawal_spike_ratio: float = 0.0
    discretionary_spend_drop_percent: float = 0.0
    failed_auto_debit_count: int = 0
    spending_volatility_index: float = 0.0
    debt_burden_ratio: float = 0.0
    net_cashflow: float = 0.0
    gambling_spend_ratio: float = 0.0
    flags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class RiskDriver:
    """One signal's explained contribution to the score"""

    signal: str
    label: str
    value: float
    normalized_value: float
    contribution: float
    explanation: str


@dataclass(frozen=True)
class RiskAssessment:
    """Output of the scoring engine for one feature vector"""

    score: float
    band: RiskBand
    tier: InterventionTier
    default_probability: int
    days_to_delinquency: int
    drivers: List[RiskDriver]
    narrative: str


@dataclass(frozen=True)
class UploadHistoryEntry:
    upload_id: str
    timestamp: datetime
    risk_score: float
    band: RiskBand
    txn_count: int


@dataclass
class CustomerProfile:
    """System of record per customer"""

    id: str
    name: str
    segment: Segment
    risk_score: float
    band: RiskBand
    predicted_default_probability: int
    estimated_days_to_delinquency: int
    features: FeatureVector
    data_confidence_score: float
    last_updated: datetime
    recommended_intervention_tier: InterventionTier
    recommended_intervention_text: str
    flags: List[str] = field(default_factory=list)
    notes: str = ""
    status: CustomerStatus = CustomerStatus.ACTIVE
    upload_history: List[UploadHistoryEntry] = field(default_factory=list)


@dataclass
class Alert:
    """Generated risk alert; only `read` changes after creation"""

    alert_id: str
    customer_id: str
    level: AlertLevel
    title: str
    detail: str
    signals: List[str]
    created_at: datetime
    action: AlertAction
    priority_score: int
    read: bool = False


@dataclass(frozen=True)
class InterventionLog:
    """Outreach action materialized on explicit operator trigger"""

    intervention_id: str
    customer_id: str
    tier: InterventionTier
    channel: InterventionChannel
    message: str
    created_at: datetime
    operator: str
    status: InterventionStatus = InterventionStatus.TRIGGERED


@dataclass(frozen=True)
class AuditEvent:
    """Side-channel notification for the audit collaborator"""

    log_id: str
    type: AuditEventType
    actor: str
    description: str
    timestamp: datetime
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class IngestionResult:
    """Everything produced by one successful CSV ingestion"""

    profile: CustomerProfile
    features: FeatureVector
    assessment: RiskAssessment
    alerts: List[Alert]
    warnings: List[str]
    transaction_count: int
