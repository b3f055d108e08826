"""Ingestion, scoring and intervention orchestration over the collaborator stores"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from predelinq_gateway.config import settings
from predelinq_gateway.domain.alerts import generate_alerts
from predelinq_gateway.domain.exceptions import (
    ProfileNotFoundError,
    TransactionBatchNotFoundError,
    TransactionParseError,
)
from predelinq_gateway.domain.features import extract_features
from predelinq_gateway.domain.interventions import generate_interventions
from predelinq_gateway.domain.models import (
    Alert,
    AuditEvent,
    AuditEventType,
    CustomerProfile,
    CustomerStatus,
    IngestionResult,
    InterventionLog,
    RiskAssessment,
    Transaction,
    generate_id,
)
from predelinq_gateway.domain.parser import parse_transactions, require_transactions
from predelinq_gateway.domain.profiles import (
    apply_rescore,
    build_customer_profile,
    transition_status,
    with_notes,
)
from predelinq_gateway.domain.scoring import assess_risk
from predelinq_gateway.infrastructure.observability.logging import log_ingestion, log_parse_rejected
from predelinq_gateway.infrastructure.observability.metrics import (
    ingestion_counter,
    ingestion_duration_histogram,
    record_alerts,
    record_assessment,
    record_interventions,
)
from predelinq_gateway.services.ports import (
    AlertStore,
    ConfigProvider,
    EventSink,
    InterventionStore,
    ProfileStore,
    TransactionBatchStore,
)

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RiskPipeline:
    """
    Synchronous pipeline for one customer per call.

    Every call takes the acting user explicitly; audit events are attributed
    to that actor rather than to any ambient session state. A blank actor is
    recorded as the configured default operator.
    """

    def __init__(
        self,
        profiles: ProfileStore,
        batches: TransactionBatchStore,
        alerts: AlertStore,
        interventions: InterventionStore,
        events: EventSink,
        config: ConfigProvider = settings,
        clock: Callable[[], datetime] = utc_now,
        history_limit: Optional[int] = settings.upload_history_limit,
    ):
        self.profiles = profiles
        self.batches = batches
        self.alerts = alerts
        self.interventions = interventions
        self.events = events
        self.config = config
        self.clock = clock
        self.history_limit = history_limit

    def _emit(self, event_type: AuditEventType, actor: str, description: str,
              metadata: Optional[Dict[str, Any]] = None) -> None:
        self.events.emit(
            AuditEvent(
                log_id=generate_id("LOG"),
                type=event_type,
                actor=actor,
                description=description,
                timestamp=self.clock(),
                metadata=metadata or {},
            )
        )

    def _actor(self, actor: Optional[str]) -> str:
        return (actor or "").strip() or self.config.default_operator

    def _require_profile(self, customer_id: str) -> CustomerProfile:
        profile = self.profiles.get(customer_id)
        if profile is None:
            raise ProfileNotFoundError(customer_id)
        return profile

    def _require_batch(self, customer_id: str) -> List[Transaction]:
        transactions = self.batches.get(customer_id)
        if not transactions:
            raise TransactionBatchNotFoundError(customer_id)
        return transactions

    def ingest(self, csv_text: str, actor: Optional[str], source_name: Optional[str] = None) -> IngestionResult:
        """
        Score one uploaded statement end to end.

        Flow:
        1. Parse and validate the CSV (fatal errors abort before any write)
        2. Extract behavioral features
        3. Score with the current weights/toggles
        4. Create or update the customer profile, replace the stored batch
        5. Generate and store alerts
        6. Emit UPLOAD, RISK_SCORE and ALERT_GENERATED audit events

        Raises:
            TransactionParseError: statement failed structural validation
        """
        start_time = time.time()
        actor = self._actor(actor)

        # 1. Parse
        parsed = parse_transactions(csv_text)
        try:
            transactions = require_transactions(parsed)
        except TransactionParseError as e:
            ingestion_counter.labels(outcome="rejected").inc()
            log_parse_rejected(actor, source_name, e.errors)
            raise

        # A successful parse always holds at least one row for the single customer
        customer_id = transactions[0].customer_id

        # 2-3. Features and score
        features = extract_features(transactions)
        assessment = assess_risk(customer_id, features, self.config.scoring_config())

        # 4. Profile upsert
        now = self.clock()
        existing = self.profiles.get(customer_id)
        profile = build_customer_profile(
            customer_id,
            transactions,
            features,
            assessment,
            existing=existing,
            name=parsed.customer_name,
            now=now,
            history_limit=self.history_limit,
        )
        self.profiles.upsert(profile)
        self.batches.replace(customer_id, transactions)

        # 5. Alerts
        alerts = generate_alerts(profile, now=now)
        self.alerts.add_many(alerts)

        # 6. Audit trail
        self._emit(
            AuditEventType.UPLOAD,
            actor,
            f"CSV uploaded for customer {customer_id}",
            {"txnCount": len(transactions), "fileName": source_name, "isUpdate": existing is not None},
        )
        self._emit(
            AuditEventType.RISK_SCORE,
            actor,
            f"Risk scored: {customer_id} => {assessment.band.value} ({assessment.score * 100:.1f})",
            {"riskScore": assessment.score, "band": assessment.band.value},
        )
        self._emit(
            AuditEventType.ALERT_GENERATED,
            actor,
            f"{len(alerts)} alerts generated for {customer_id}",
            {"alertIds": [a.alert_id for a in alerts]},
        )

        # Record metrics and logs
        duration = time.time() - start_time
        ingestion_counter.labels(outcome="scored").inc()
        ingestion_duration_histogram.observe(duration)
        record_assessment(assessment)
        record_alerts(alerts)
        log_ingestion(
            customer_id,
            actor,
            len(transactions),
            assessment.score,
            assessment.band.value,
            len(alerts),
            len(parsed.warnings),
            duration * 1000,
        )

        return IngestionResult(
            profile=profile,
            features=features,
            assessment=assessment,
            alerts=alerts,
            warnings=list(parsed.warnings),
            transaction_count=len(transactions),
        )

    def trigger_interventions(self, customer_id: str, operator: Optional[str]) -> List[InterventionLog]:
        """
        Materialize the recommended tier's outreach actions for a customer.

        Only ever called on an explicit operator request. When at least one
        action is generated the customer moves to Under Intervention.
        """
        operator = self._actor(operator)
        profile = self._require_profile(customer_id)
        interventions = generate_interventions(profile, operator, now=self.clock())
        self.interventions.add_many(interventions)

        if interventions and profile.status != CustomerStatus.UNDER_INTERVENTION:
            self.profiles.upsert(transition_status(profile, CustomerStatus.UNDER_INTERVENTION))

        self._emit(
            AuditEventType.INTERVENTION_TRIGGERED,
            operator,
            f"Interventions triggered for {customer_id}",
            {"tier": profile.recommended_intervention_tier.value, "count": len(interventions)},
        )
        record_interventions(interventions)
        logger.info(
            "Interventions triggered",
            extra={"customer_id": customer_id, "operator": operator, "count": len(interventions)},
        )
        return interventions

    def rescore(self, customer_id: str, actor: Optional[str]) -> RiskAssessment:
        """
        Re-score the stored batch with the current weights and toggles.

        Overwrites the profile's score fields; upload history and alerts are
        left alone.

        Raises:
            ProfileNotFoundError: no profile for the customer
            TransactionBatchNotFoundError: profile exists but no batch is stored
        """
        profile = self._require_profile(customer_id)
        transactions = self._require_batch(customer_id)
        features = extract_features(transactions)
        assessment = assess_risk(customer_id, features, self.config.scoring_config())

        self.profiles.upsert(apply_rescore(profile, features, assessment, now=self.clock()))
        self._emit(
            AuditEventType.RISK_SCORE,
            self._actor(actor),
            f"Risk re-scored: {customer_id} => {assessment.band.value} ({assessment.score * 100:.1f})",
            {"riskScore": assessment.score, "band": assessment.band.value, "rescore": True},
        )
        record_assessment(assessment)
        return assessment

    def explain(self, customer_id: str) -> RiskAssessment:
        """Drivers and narrative for the stored batch under the current config, without writing"""
        self._require_profile(customer_id)
        features = extract_features(self._require_batch(customer_id))
        return assess_risk(customer_id, features, self.config.scoring_config())

    def update_notes(self, customer_id: str, notes: str, actor: Optional[str]) -> CustomerProfile:
        profile = with_notes(self._require_profile(customer_id), notes)
        self.profiles.upsert(profile)
        self._emit(AuditEventType.CUSTOMER_UPDATED, self._actor(actor), f"Notes updated for {customer_id}")
        return profile

    def update_status(self, customer_id: str, status: CustomerStatus, actor: Optional[str]) -> CustomerProfile:
        current = self._require_profile(customer_id)
        profile = transition_status(current, status)
        self.profiles.upsert(profile)
        self._emit(
            AuditEventType.CUSTOMER_UPDATED,
            self._actor(actor),
            f"Status updated for {customer_id}",
            {"from": current.status.value, "to": status.value},
        )
        return profile

    def list_alerts(
        self,
        customer_id: Optional[str] = None,
        unread_only: bool = False,
        limit: Optional[int] = None,
    ) -> List[Alert]:
        """Newest first, one page of `alert_page_size` unless a limit is given"""
        page_size = limit if limit is not None else self.config.alert_page_size
        return self.alerts.list(customer_id=customer_id, unread_only=unread_only, limit=page_size)

    def mark_alert_read(self, alert_id: str) -> bool:
        return self.alerts.mark_read(alert_id)
