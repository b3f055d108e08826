"""Pytest fixtures for testing"""

from datetime import date, datetime, timedelta, timezone
from typing import Generator, Iterable, List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from predelinq_gateway.domain.models import Channel, Direction, Transaction
from predelinq_gateway.infrastructure.audit import InMemoryEventSink
from predelinq_gateway.infrastructure.database.models import Base
from predelinq_gateway.infrastructure.database.repositories import (
    AlertRepository,
    InterventionRepository,
    ProfileRepository,
    TransactionBatchRepository,
)
from predelinq_gateway.infrastructure.memory import (
    InMemoryAlertStore,
    InMemoryInterventionStore,
    InMemoryProfileStore,
    InMemoryTransactionBatchStore,
)
from predelinq_gateway.services.pipeline import RiskPipeline

# Test database
TEST_DATABASE_URL = "sqlite://"
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

FIXED_NOW = datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc)


def build_txn(
    day: date,
    amount: float,
    type: str = "debit",
    category: str = "other",
    balance: float = 10_000,
    merchant: str = "Test Merchant",
    channel: Channel = Channel.UPI,
    customer_id: str = "CUST001",
    txn_id: Optional[str] = None,
) -> Transaction:
    """Build a Transaction with sensible defaults"""
    return Transaction(
        transaction_id=txn_id or f"tx-{day.isoformat()}-{category}-{amount}",
        customer_id=customer_id,
        date=day,
        amount=amount,
        type=Direction(type),
        category=category,
        balance=balance,
        merchant=merchant,
        channel=channel,
    )


def to_csv(rows: Iterable[dict], columns: List[str]) -> str:
    """Render dict rows as CSV text with the given header"""
    lines = [",".join(columns)]
    for row in rows:
        lines.append(",".join(str(row.get(col, "")) for col in columns))
    return "\n".join(lines) + "\n"


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def events() -> InMemoryEventSink:
    return InMemoryEventSink()


@pytest.fixture
def memory_pipeline(events: InMemoryEventSink) -> RiskPipeline:
    """Pipeline wired to in-memory collaborators with a fixed clock"""
    return RiskPipeline(
        profiles=InMemoryProfileStore(),
        batches=InMemoryTransactionBatchStore(),
        alerts=InMemoryAlertStore(),
        interventions=InMemoryInterventionStore(),
        events=events,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def sql_pipeline(db: Session, events: InMemoryEventSink) -> RiskPipeline:
    """Pipeline wired to the SQLAlchemy repositories"""
    return RiskPipeline(
        profiles=ProfileRepository(db),
        batches=TransactionBatchRepository(db),
        alerts=AlertRepository(db),
        interventions=InterventionRepository(db),
        events=events,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def salary_csv() -> str:
    """Two monthly salaries: 50,000 on the 5th, then 40,000 on the 15th"""
    rows = [
        {"customer_id": "CUST001", "date": "2024-01-05", "amount": "50000", "type": "credit",
         "category": "salary", "merchant": "Employer Corp", "channel": "NetBanking"},
        {"customer_id": "CUST001", "date": "2024-02-15", "amount": "40000", "type": "credit",
         "category": "salary", "merchant": "Employer Corp", "channel": "NetBanking"},
    ]
    return to_csv(rows, ["customer_id", "date", "amount", "type", "category", "merchant", "channel"])


@pytest.fixture
def stressed_csv() -> str:
    """
    Statement for a customer under visible stress: salary slipping and
    shrinking, missed EMI in the latest month, heavy lending-app borrowing.
    """
    base = date(2024, 1, 1)
    rows = []
    balance = 20_000
    for month, (day, amount) in enumerate([(1, 60_000), (2, 60_000), (14, 30_000)]):
        salary_day = date(2024, month + 1, day)
        balance += amount
        rows.append({"customer_id": "CUST042", "date": salary_day.isoformat(), "amount": amount,
                     "type": "credit", "category": "salary", "balance": balance,
                     "merchant": "Employer Corp", "channel": "NetBanking"})
    for month in range(2):
        balance -= 15_000
        rows.append({"customer_id": "CUST042", "date": date(2024, month + 1, 10).isoformat(),
                     "amount": 15_000, "type": "debit", "category": "loan_repayment",
                     "balance": balance, "merchant": "Bank EMI", "channel": "AutoDebit"})
    for offset in range(5):
        day = base + timedelta(days=75 + offset * 2)
        balance -= 2_000
        rows.append({"customer_id": "CUST042", "date": day.isoformat(), "amount": 2_000,
                     "type": "debit", "category": "lending_app", "balance": balance,
                     "merchant": "QuickCash", "channel": "UPI"})
    return to_csv(rows, ["customer_id", "date", "amount", "type", "category", "balance", "merchant", "channel"])


@pytest.fixture
def make_txn():
    """Factory fixture for Transactions"""
    return build_txn
