"""
Collaborator interfaces the pipeline depends on.

Implementations live in predelinq_gateway.infrastructure (in-memory and
SQLAlchemy-backed). Stores are expected to serialize writes per customer id;
the pipeline itself keeps no shared state.
"""

from typing import List, Optional, Protocol, Sequence

from predelinq_gateway.domain.models import (
    Alert,
    AuditEvent,
    CustomerProfile,
    InterventionLog,
    Transaction,
)
from predelinq_gateway.domain.signals import ScoringConfig


class ProfileStore(Protocol):
    def get(self, customer_id: str) -> Optional[CustomerProfile]: ...

    def upsert(self, profile: CustomerProfile) -> None: ...

    def list(self) -> List[CustomerProfile]: ...


class TransactionBatchStore(Protocol):
    """Latest validated batch per customer; a new upload replaces the old one"""

    def replace(self, customer_id: str, transactions: Sequence[Transaction]) -> None: ...

    def get(self, customer_id: str) -> List[Transaction]: ...


class AlertStore(Protocol):
    def add_many(self, alerts: Sequence[Alert]) -> None: ...

    def list(
        self,
        customer_id: Optional[str] = None,
        unread_only: bool = False,
        limit: Optional[int] = None,
    ) -> List[Alert]:
        """Newest first"""
        ...

    def mark_read(self, alert_id: str) -> bool: ...

    def mark_all_read(self) -> int: ...

    def clear(self) -> int: ...


class InterventionStore(Protocol):
    def add_many(self, interventions: Sequence[InterventionLog]) -> None: ...

    def list(self, customer_id: Optional[str] = None, limit: Optional[int] = None) -> List[InterventionLog]:
        """Newest first"""
        ...


class EventSink(Protocol):
    def emit(self, event: AuditEvent) -> None: ...


class ConfigProvider(Protocol):
    alert_page_size: int
    default_operator: str

    def scoring_config(self) -> ScoringConfig: ...
