"""In-memory collaborator stores for tests, notebooks and single-process use"""

import threading
from dataclasses import replace
from typing import Dict, List, Optional, Sequence

from predelinq_gateway.domain.models import Alert, CustomerProfile, InterventionLog, Transaction


class InMemoryProfileStore:
    """Profiles keyed by customer id; writes serialized by a lock"""

    def __init__(self):
        self._profiles: Dict[str, CustomerProfile] = {}
        self._lock = threading.Lock()

    def get(self, customer_id: str) -> Optional[CustomerProfile]:
        with self._lock:
            return self._profiles.get(customer_id)

    def upsert(self, profile: CustomerProfile) -> None:
        with self._lock:
            self._profiles[profile.id] = profile

    def list(self) -> List[CustomerProfile]:
        with self._lock:
            return list(self._profiles.values())


class InMemoryTransactionBatchStore:
    def __init__(self):
        self._batches: Dict[str, List[Transaction]] = {}
        self._lock = threading.Lock()

    def replace(self, customer_id: str, transactions: Sequence[Transaction]) -> None:
        with self._lock:
            self._batches[customer_id] = list(transactions)

    def get(self, customer_id: str) -> List[Transaction]:
        with self._lock:
            return list(self._batches.get(customer_id, []))


class InMemoryAlertStore:
    """Alerts kept newest first"""

    def __init__(self):
        self._alerts: List[Alert] = []
        self._lock = threading.Lock()

    def add_many(self, alerts: Sequence[Alert]) -> None:
        with self._lock:
            self._alerts = list(alerts) + self._alerts

    def list(
        self,
        customer_id: Optional[str] = None,
        unread_only: bool = False,
        limit: Optional[int] = None,
    ) -> List[Alert]:
        with self._lock:
            alerts = [
                a for a in self._alerts
                if (customer_id is None or a.customer_id == customer_id)
                and not (unread_only and a.read)
            ]
        return alerts[:limit] if limit is not None else alerts

    def mark_read(self, alert_id: str) -> bool:
        with self._lock:
            for i, alert in enumerate(self._alerts):
                if alert.alert_id == alert_id:
                    self._alerts[i] = replace(alert, read=True)
                    return True
        return False

    def mark_all_read(self) -> int:
        with self._lock:
            unread = sum(1 for a in self._alerts if not a.read)
            self._alerts = [replace(a, read=True) for a in self._alerts]
        return unread

    def clear(self) -> int:
        with self._lock:
            count = len(self._alerts)
            self._alerts = []
        return count


class InMemoryInterventionStore:
    """Intervention logs kept newest first; append-only"""

    def __init__(self):
        self._logs: List[InterventionLog] = []
        self._lock = threading.Lock()

    def add_many(self, interventions: Sequence[InterventionLog]) -> None:
        with self._lock:
            self._logs = list(interventions) + self._logs

    def list(self, customer_id: Optional[str] = None, limit: Optional[int] = None) -> List[InterventionLog]:
        with self._lock:
            logs = [i for i in self._logs if customer_id is None or i.customer_id == customer_id]
        return logs[:limit] if limit is not None else logs
