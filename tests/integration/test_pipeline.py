"""Integration tests for the ingestion pipeline over in-memory and SQLite stores"""

import pytest
from prometheus_client import REGISTRY

from predelinq_gateway.config import Settings
from predelinq_gateway.domain.exceptions import (
    InvalidStatusTransitionError,
    ProfileNotFoundError,
    TransactionBatchNotFoundError,
    TransactionParseError,
)
from predelinq_gateway.domain.models import (
    AuditEventType,
    CustomerStatus,
    InterventionTier,
    RiskBand,
)
from predelinq_gateway.domain.signals import SignalToggles


def metric_value(name: str, **labels) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


@pytest.fixture(params=["memory_pipeline", "sql_pipeline"])
def pipeline(request):
    """Run every test against both store implementations"""
    return request.getfixturevalue(request.param)


def test_ingest_scores_and_stores_profile(pipeline, salary_csv):
    result = pipeline.ingest(salary_csv, actor="analyst@bank", source_name="cust001.csv")

    assert result.transaction_count == 2
    assert result.warnings == [
        "Column 'balance' missing - will compute running balance from transactions."
    ]
    assert result.features.salary_delay_days == 10
    assert result.assessment.score == pytest.approx(0.24)
    assert result.assessment.band == RiskBand.LOW

    stored = pipeline.profiles.get("CUST001")
    assert stored == result.profile
    assert stored.band == RiskBand.LOW
    assert stored.recommended_intervention_tier == InterventionTier.TIER_0
    assert len(pipeline.batches.get("CUST001")) == 2


def test_ingest_generates_and_stores_alerts(pipeline, salary_csv):
    result = pipeline.ingest(salary_csv, actor="analyst@bank")

    assert [a.title for a in result.alerts] == ["Salary Delay Spike Detected"]
    assert pipeline.alerts.list(customer_id="CUST001") == result.alerts


def test_ingest_emits_audit_trail(pipeline, salary_csv, events):
    result = pipeline.ingest(salary_csv, actor="analyst@bank", source_name="cust001.csv")

    assert [e.type for e in events.events] == [
        AuditEventType.ALERT_GENERATED,
        AuditEventType.RISK_SCORE,
        AuditEventType.UPLOAD,
    ]
    assert {e.actor for e in events.events} == {"analyst@bank"}

    upload = events.of_type(AuditEventType.UPLOAD)[0]
    assert upload.description == "CSV uploaded for customer CUST001"
    assert upload.metadata == {"txnCount": 2, "fileName": "cust001.csv", "isUpdate": False}

    score_event = events.of_type(AuditEventType.RISK_SCORE)[0]
    assert score_event.description == "Risk scored: CUST001 => Low (24.0)"
    assert score_event.metadata["band"] == "Low"

    alert_event = events.of_type(AuditEventType.ALERT_GENERATED)[0]
    assert alert_event.metadata == {"alertIds": [a.alert_id for a in result.alerts]}


def test_reupload_updates_existing_profile(pipeline, salary_csv, events):
    pipeline.ingest(salary_csv, actor="analyst@bank")
    pipeline.update_notes("CUST001", "Prefers email", actor="analyst@bank")

    result = pipeline.ingest(salary_csv, actor="analyst@bank")

    assert result.profile.notes == "Prefers email"
    assert len(result.profile.upload_history) == 2
    assert events.of_type(AuditEventType.UPLOAD)[0].metadata["isUpdate"] is True
    # Alerts from both uploads are kept
    assert len(pipeline.alerts.list(customer_id="CUST001")) == 2


def test_parse_error_prevents_all_writes(pipeline, events):
    rejected_before = metric_value("predelinq_ingestion_total", outcome="rejected")
    bad_csv = "customer_id,date,amount,type\nC1,2024-03-01,100,debit\nC2,2024-03-02,100,debit\n"

    with pytest.raises(TransactionParseError) as exc_info:
        pipeline.ingest(bad_csv, actor="analyst@bank")

    assert exc_info.value.errors == ["Upload must contain only one customer_id per file. Found: C1, C2"]
    assert pipeline.profiles.get("C1") is None
    assert pipeline.batches.get("C1") == []
    assert pipeline.alerts.list() == []
    assert events.events == []
    assert metric_value("predelinq_ingestion_total", outcome="rejected") == rejected_before + 1


def test_ingest_records_metrics(pipeline, salary_csv):
    scored_before = metric_value("predelinq_ingestion_total", outcome="scored")
    low_before = metric_value("predelinq_risk_band_total", band="Low")
    high_alerts_before = metric_value("predelinq_alerts_total", level="high")

    pipeline.ingest(salary_csv, actor="analyst@bank")

    assert metric_value("predelinq_ingestion_total", outcome="scored") == scored_before + 1
    assert metric_value("predelinq_risk_band_total", band="Low") == low_before + 1
    assert metric_value("predelinq_alerts_total", level="high") == high_alerts_before + 1


def test_stressed_customer(pipeline, stressed_csv):
    result = pipeline.ingest(stressed_csv, actor="analyst@bank")

    assert result.profile.name == "CUST042"
    assert result.assessment.band == RiskBand.MEDIUM
    assert result.assessment.score == pytest.approx(0.5168, abs=1e-4)
    assert result.profile.flags == [
        "Salary Delay Signal",
        "Salary Drop Signal",
        "Savings Drawdown Signal",
        "Lending App Spike",
        "Repayment Missed Risk",
    ]
    assert [d.signal for d in result.assessment.drivers] == [
        "salary_delay",
        "salary_drop",
        "savings_drawdown",
        "lending_app_spike",
        "failed_auto_debit",
    ]
    assert [a.title for a in result.alerts] == [
        "Salary Delay Spike Detected",
        "Auto-Debit Failure Risk",
        "Borrowing App Dependence",
    ]


def test_trigger_interventions_moves_status(pipeline, stressed_csv, events):
    pipeline.ingest(stressed_csv, actor="analyst@bank")

    logs = pipeline.trigger_interventions("CUST042", operator="rm@bank")

    assert len(logs) == 3
    assert {log.tier for log in logs} == {InterventionTier.TIER_1}
    assert {log.operator for log in logs} == {"rm@bank"}
    assert pipeline.interventions.list(customer_id="CUST042") == logs
    assert pipeline.profiles.get("CUST042").status == CustomerStatus.UNDER_INTERVENTION

    event = events.events[0]
    assert event.type == AuditEventType.INTERVENTION_TRIGGERED
    assert event.actor == "rm@bank"
    assert event.metadata == {"tier": "Tier 1", "count": 3}


def test_tier_0_trigger_changes_nothing(pipeline, salary_csv):
    pipeline.ingest(salary_csv, actor="analyst@bank")

    logs = pipeline.trigger_interventions("CUST001", operator="rm@bank")

    assert logs == []
    assert pipeline.profiles.get("CUST001").status == CustomerStatus.ACTIVE


def test_interventions_for_unknown_customer(pipeline):
    with pytest.raises(ProfileNotFoundError):
        pipeline.trigger_interventions("NOPE", operator="rm@bank")


def test_rescore_uses_current_config(pipeline, stressed_csv, events):
    first = pipeline.ingest(stressed_csv, actor="analyst@bank")

    pipeline.config = Settings(signals=SignalToggles.all_disabled())
    assessment = pipeline.rescore("CUST042", actor="admin@bank")

    assert assessment.score == 0.0
    assert assessment.band == RiskBand.LOW
    profile = pipeline.profiles.get("CUST042")
    assert profile.risk_score == 0.0
    assert profile.recommended_intervention_tier == InterventionTier.TIER_0
    assert profile.upload_history == first.profile.upload_history
    assert events.events[0].metadata["rescore"] is True
    # Alerts are not regenerated on rescore
    assert len(pipeline.alerts.list(customer_id="CUST042")) == 3


def test_rescore_without_stored_batch_keeps_profile(pipeline, stressed_csv, events):
    first = pipeline.ingest(stressed_csv, actor="analyst@bank")
    pipeline.batches.replace("CUST042", [])
    event_count = len(events.events)

    with pytest.raises(TransactionBatchNotFoundError):
        pipeline.rescore("CUST042", actor="admin@bank")
    with pytest.raises(TransactionBatchNotFoundError):
        pipeline.explain("CUST042")

    assert pipeline.profiles.get("CUST042") == first.profile
    assert len(events.events) == event_count


def test_explain_does_not_write(pipeline, stressed_csv, events):
    first = pipeline.ingest(stressed_csv, actor="analyst@bank")
    event_count = len(events.events)

    assessment = pipeline.explain("CUST042")

    assert assessment == first.assessment
    assert len(events.events) == event_count


def test_status_lifecycle(pipeline, salary_csv):
    pipeline.ingest(salary_csv, actor="analyst@bank")

    with pytest.raises(InvalidStatusTransitionError):
        pipeline.update_status("CUST001", CustomerStatus.RESOLVED, actor="analyst@bank")

    pipeline.update_status("CUST001", CustomerStatus.UNDER_INTERVENTION, actor="analyst@bank")
    profile = pipeline.update_status("CUST001", CustomerStatus.RESOLVED, actor="analyst@bank")

    assert profile.status == CustomerStatus.RESOLVED
    assert pipeline.profiles.get("CUST001").status == CustomerStatus.RESOLVED


def test_mark_alert_read(pipeline, salary_csv):
    alert = pipeline.ingest(salary_csv, actor="analyst@bank").alerts[0]

    assert pipeline.mark_alert_read(alert.alert_id) is True
    assert pipeline.mark_alert_read("ALT-MISSING") is False
    assert pipeline.alerts.list(unread_only=True) == []
    assert pipeline.alerts.list()[0].read is True


def test_list_alerts_pages_by_configured_size(pipeline, stressed_csv):
    alerts = pipeline.ingest(stressed_csv, actor="analyst@bank").alerts
    pipeline.config = Settings(alert_page_size=2)

    newest_first = pipeline.alerts.list()
    assert len(newest_first) == len(alerts) == 3
    assert pipeline.list_alerts() == newest_first[:2]
    assert pipeline.list_alerts(limit=5) == newest_first
    assert pipeline.list_alerts(customer_id="OTHER") == []


def test_blank_actor_recorded_as_default_operator(pipeline, stressed_csv, events):
    pipeline.config = Settings(default_operator="ops-desk")

    pipeline.ingest(stressed_csv, actor="")
    logs = pipeline.trigger_interventions("CUST042", operator="  ")
    pipeline.update_notes("CUST042", "called twice", actor=None)

    assert {e.actor for e in events.events} == {"ops-desk"}
    assert {log.operator for log in logs} == {"ops-desk"}
