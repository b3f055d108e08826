"""Data access layer implementing the collaborator stores on SQLAlchemy"""

from typing import List, Optional, Sequence

from pydantic import TypeAdapter
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from predelinq_gateway.domain.models import (
    Alert,
    AuditEvent,
    CustomerProfile,
    InterventionLog,
    Transaction,
)
from predelinq_gateway.infrastructure.database.models import (
    AlertRecord,
    AuditLogRecord,
    CustomerProfileRecord,
    InterventionRecord,
    TransactionBatchRecord,
)

# dataclass <-> JSON payload conversion
profile_adapter = TypeAdapter(CustomerProfile)
transactions_adapter = TypeAdapter(List[Transaction])
alert_adapter = TypeAdapter(Alert)
intervention_adapter = TypeAdapter(InterventionLog)


def _commit(db: Session) -> None:
    """Commit, rolling the session back before re-raising on failure"""
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


class ProfileRepository:
    """Repository for customer profiles (upsert by id)"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, customer_id: str) -> Optional[CustomerProfile]:
        record = self.db.get(CustomerProfileRecord, customer_id)
        if record is None:
            return None
        return profile_adapter.validate_python(record.payload)

    def upsert(self, profile: CustomerProfile) -> None:
        """Insert or overwrite the profile row"""
        record = self.db.get(CustomerProfileRecord, profile.id)
        if record is None:
            record = CustomerProfileRecord(customer_id=profile.id)
            self.db.add(record)
        record.band = profile.band.value
        record.risk_score = profile.risk_score
        record.status = profile.status.value
        record.payload = profile_adapter.dump_python(profile, mode="json")
        _commit(self.db)

    def list(self) -> List[CustomerProfile]:
        records = (
            self.db.query(CustomerProfileRecord)
            .order_by(CustomerProfileRecord.risk_score.desc())
            .all()
        )
        return [profile_adapter.validate_python(r.payload) for r in records]


class TransactionBatchRepository:
    """Repository for the latest transaction batch per customer"""

    def __init__(self, db: Session):
        self.db = db

    def replace(self, customer_id: str, transactions: Sequence[Transaction]) -> None:
        record = self.db.get(TransactionBatchRecord, customer_id)
        if record is None:
            record = TransactionBatchRecord(customer_id=customer_id)
            self.db.add(record)
        record.txn_count = len(transactions)
        record.transactions = transactions_adapter.dump_python(list(transactions), mode="json")
        _commit(self.db)

    def get(self, customer_id: str) -> List[Transaction]:
        record = self.db.get(TransactionBatchRecord, customer_id)
        if record is None:
            return []
        return transactions_adapter.validate_python(record.transactions)


def _next_seq(db: Session, model) -> int:
    return (db.query(func.max(model.seq)).scalar() or 0) + 1


class AlertRepository:
    """Repository for alerts; listing is newest first"""

    def __init__(self, db: Session):
        self.db = db

    def add_many(self, alerts: Sequence[Alert]) -> None:
        # Highest seq goes to the first alert so newest-first listing keeps rule order
        top = _next_seq(self.db, AlertRecord) + len(alerts)
        for offset, alert in enumerate(alerts):
            self.db.add(
                AlertRecord(
                    alert_id=alert.alert_id,
                    customer_id=alert.customer_id,
                    level=alert.level.value,
                    read=alert.read,
                    priority_score=alert.priority_score,
                    created_at=alert.created_at,
                    seq=top - offset,
                    payload=alert_adapter.dump_python(alert, mode="json"),
                )
            )
        _commit(self.db)

    def list(
        self,
        customer_id: Optional[str] = None,
        unread_only: bool = False,
        limit: Optional[int] = None,
    ) -> List[Alert]:
        query = self.db.query(AlertRecord)
        if customer_id is not None:
            query = query.filter(AlertRecord.customer_id == customer_id)
        if unread_only:
            query = query.filter(AlertRecord.read.is_(False))
        query = query.order_by(AlertRecord.seq.desc())
        if limit is not None:
            query = query.limit(limit)
        return [self._to_domain(r) for r in query.all()]

    def mark_read(self, alert_id: str) -> bool:
        record = self.db.get(AlertRecord, alert_id)
        if record is None:
            return False
        record.read = True
        _commit(self.db)
        return True

    def mark_all_read(self) -> int:
        count = (
            self.db.query(AlertRecord)
            .filter(AlertRecord.read.is_(False))
            .update({AlertRecord.read: True}, synchronize_session=False)
        )
        _commit(self.db)
        return count

    def clear(self) -> int:
        count = self.db.query(AlertRecord).delete(synchronize_session=False)
        _commit(self.db)
        return count

    @staticmethod
    def _to_domain(record: AlertRecord) -> Alert:
        alert = alert_adapter.validate_python(record.payload)
        # `read` is the only mutable field and lives in its own column
        alert.read = bool(record.read)
        return alert


class InterventionRepository:
    """Repository for intervention logs; append-only, newest first"""

    def __init__(self, db: Session):
        self.db = db

    def add_many(self, interventions: Sequence[InterventionLog]) -> None:
        top = _next_seq(self.db, InterventionRecord) + len(interventions)
        for offset, intervention in enumerate(interventions):
            self.db.add(
                InterventionRecord(
                    intervention_id=intervention.intervention_id,
                    customer_id=intervention.customer_id,
                    tier=intervention.tier.value,
                    status=intervention.status.value,
                    created_at=intervention.created_at,
                    seq=top - offset,
                    payload=intervention_adapter.dump_python(intervention, mode="json"),
                )
            )
        _commit(self.db)

    def list(self, customer_id: Optional[str] = None, limit: Optional[int] = None) -> List[InterventionLog]:
        query = self.db.query(InterventionRecord)
        if customer_id is not None:
            query = query.filter(InterventionRecord.customer_id == customer_id)
        query = query.order_by(InterventionRecord.seq.desc())
        if limit is not None:
            query = query.limit(limit)
        return [intervention_adapter.validate_python(r.payload) for r in query.all()]


class DatabaseEventSink:
    """Audit sink persisting every event to the audit_log table"""

    def __init__(self, db: Session):
        self.db = db

    def emit(self, event: AuditEvent) -> None:
        self.db.add(
            AuditLogRecord(
                log_id=event.log_id,
                event_type=event.type.value,
                actor=event.actor,
                description=event.description,
                timestamp=event.timestamp,
                event_metadata=event.metadata,
            )
        )
        _commit(self.db)

    def recent(self, limit: int = 50) -> List[AuditLogRecord]:
        """Fetch recent audit entries, newest first"""
        return (
            self.db.query(AuditLogRecord)
            .order_by(AuditLogRecord.timestamp.desc())
            .limit(limit)
            .all()
        )
