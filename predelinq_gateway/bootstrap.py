"""Process wiring for a SQL-backed pipeline"""

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from predelinq_gateway.config import settings
from predelinq_gateway.infrastructure.audit import CompositeEventSink, LoggingEventSink
from predelinq_gateway.infrastructure.database.models import Base
from predelinq_gateway.infrastructure.database.repositories import (
    AlertRepository,
    DatabaseEventSink,
    InterventionRepository,
    ProfileRepository,
    TransactionBatchRepository,
)
from predelinq_gateway.infrastructure.database.session import engine
from predelinq_gateway.infrastructure.observability.logging import setup_logging
from predelinq_gateway.services.pipeline import RiskPipeline


def startup(bind: Engine = engine) -> None:
    """Configure JSON logging and create any missing tables"""
    setup_logging(settings.log_level)
    Base.metadata.create_all(bind=bind)


def create_pipeline(db: Session) -> RiskPipeline:
    """
    Pipeline over the SQLAlchemy repositories sharing one session.

    Audit events are written both to the JSON log and to the audit_log table.
    """
    return RiskPipeline(
        profiles=ProfileRepository(db),
        batches=TransactionBatchRepository(db),
        alerts=AlertRepository(db),
        interventions=InterventionRepository(db),
        events=CompositeEventSink([LoggingEventSink(), DatabaseEventSink(db)]),
        config=settings,
        history_limit=settings.upload_history_limit,
    )
