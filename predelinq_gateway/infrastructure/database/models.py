"""SQLAlchemy ORM models for the profile, batch, alert, intervention and audit stores"""

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, Integer, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class CustomerProfileRecord(Base):
    """One row per customer; full profile kept as JSON, key fields indexed"""

    __tablename__ = "customer_profile"

    customer_id = Column(Text, primary_key=True)
    band = Column(Text, nullable=False, index=True)
    risk_score = Column(Float, nullable=False)
    status = Column(Text, nullable=False, index=True)
    payload = Column(JSON, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class TransactionBatchRecord(Base):
    """Latest validated transaction batch per customer, replaced on every upload"""

    __tablename__ = "transaction_batch"

    customer_id = Column(Text, primary_key=True)
    txn_count = Column(Integer, nullable=False)
    transactions = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class AlertRecord(Base):
    """Generated risk alert"""

    __tablename__ = "risk_alert"

    alert_id = Column(Text, primary_key=True)
    customer_id = Column(Text, nullable=False, index=True)
    level = Column(Text, nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    priority_score = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    seq = Column(Integer, nullable=False, index=True)
    payload = Column(JSON, nullable=False)


class InterventionRecord(Base):
    """Append-only outreach log"""

    __tablename__ = "intervention_log"

    intervention_id = Column(Text, primary_key=True)
    customer_id = Column(Text, nullable=False, index=True)
    tier = Column(Text, nullable=False)
    status = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    seq = Column(Integer, nullable=False, index=True)
    payload = Column(JSON, nullable=False)


class AuditLogRecord(Base):
    """Audit trail entry"""

    __tablename__ = "audit_log"

    log_id = Column(Text, primary_key=True)
    event_type = Column(Text, nullable=False, index=True)
    actor = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    event_metadata = Column("metadata", JSON, nullable=False, default=dict)
