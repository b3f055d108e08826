"""Integration tests for the SQLAlchemy-backed stores"""

from datetime import date, datetime, timedelta, timezone

from predelinq_gateway.domain.alerts import generate_alerts
from predelinq_gateway.domain.features import extract_features
from predelinq_gateway.domain.interventions import generate_interventions
from predelinq_gateway.domain.models import AuditEvent, AuditEventType, FeatureVector
from predelinq_gateway.domain.profiles import build_customer_profile
from predelinq_gateway.domain.scoring import assess_risk
from predelinq_gateway.infrastructure.database.repositories import (
    AlertRepository,
    DatabaseEventSink,
    InterventionRepository,
    ProfileRepository,
    TransactionBatchRepository,
)

FIXED_NOW = datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc)


def make_profile(customer_id, features, now=FIXED_NOW):
    assessment = assess_risk(customer_id, features)
    return build_customer_profile(customer_id, [], features, assessment, now=now)


def test_profile_upsert_and_list_by_risk(db):
    repo = ProfileRepository(db)
    low = make_profile("LOW1", FeatureVector())
    high = make_profile("HIGH1", FeatureVector(salary_delay_days=10, failed_auto_debit_count=2))

    repo.upsert(low)
    repo.upsert(high)
    repo.upsert(low)

    assert [p.id for p in repo.list()] == ["HIGH1", "LOW1"]
    assert repo.get("HIGH1") == high
    assert repo.get("MISSING") is None


def test_transaction_batch_is_replaced(db, make_txn):
    repo = TransactionBatchRepository(db)
    first = [make_txn(date(2024, 3, 1), 100), make_txn(date(2024, 3, 2), 200)]
    second = [make_txn(date(2024, 4, 1), 300)]

    repo.replace("CUST001", first)
    assert repo.get("CUST001") == first

    repo.replace("CUST001", second)
    assert repo.get("CUST001") == second
    assert repo.get("OTHER") == []


def test_alerts_newest_batch_first_in_rule_order(db):
    repo = AlertRepository(db)
    first = generate_alerts(
        make_profile("C1", FeatureVector(salary_delay_days=8, net_cashflow=-1)), now=FIXED_NOW
    )
    second = generate_alerts(
        make_profile("C2", FeatureVector(failed_auto_debit_count=1, lending_app_txn_count=5)),
        now=FIXED_NOW + timedelta(minutes=1),
    )

    repo.add_many(first)
    repo.add_many(second)

    assert [a.alert_id for a in repo.list()] == [a.alert_id for a in second + first]
    assert [a.alert_id for a in repo.list(customer_id="C1")] == [a.alert_id for a in first]
    assert len(repo.list(limit=1)) == 1


def test_alert_read_flags(db):
    repo = AlertRepository(db)
    alerts = generate_alerts(
        make_profile("C1", FeatureVector(salary_delay_days=8, net_cashflow=-1)), now=FIXED_NOW
    )
    repo.add_many(alerts)

    assert repo.mark_read(alerts[0].alert_id) is True
    assert [a.alert_id for a in repo.list(unread_only=True)] == [alerts[1].alert_id]
    assert repo.mark_all_read() == 1
    assert repo.list(unread_only=True) == []
    assert repo.clear() == 2
    assert repo.list() == []


def test_interventions_append_only_newest_first(db):
    repo = InterventionRepository(db)
    profile = make_profile("C1", FeatureVector(salary_delay_days=10, salary_drop_percent=40,
                                               savings_drawdown_percent=30))
    first = generate_interventions(profile, "ops", now=FIXED_NOW)
    second = generate_interventions(profile, "ops", now=FIXED_NOW + timedelta(hours=1))

    repo.add_many(first)
    repo.add_many(second)

    assert repo.list(customer_id="C1") == second + first
    assert repo.list(limit=2) == second[:2]


def test_database_event_sink(db):
    sink = DatabaseEventSink(db)
    for minute, event_type in enumerate([AuditEventType.UPLOAD, AuditEventType.RISK_SCORE]):
        sink.emit(
            AuditEvent(
                log_id=f"LOG-{minute}",
                type=event_type,
                actor="analyst@bank",
                description=f"event {minute}",
                timestamp=FIXED_NOW + timedelta(minutes=minute),
                metadata={"minute": minute},
            )
        )

    recent = sink.recent(limit=10)

    assert [r.event_type for r in recent] == ["RISK_SCORE", "UPLOAD"]
    assert recent[0].event_metadata == {"minute": 1}
    assert recent[0].actor == "analyst@bank"


def test_rescored_features_round_trip(db, make_txn):
    """Features computed from a stored batch match the ones from the in-memory list"""
    batch = [
        make_txn(date(2024, 1, 5), 50_000, "credit", "salary"),
        make_txn(date(2024, 2, 15), 40_000, "credit", "salary"),
    ]
    repo = TransactionBatchRepository(db)
    repo.replace("CUST001", batch)

    assert extract_features(repo.get("CUST001")) == extract_features(batch)
