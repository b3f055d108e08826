"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pythonjsonlogger import jsonlogger

from predelinq_gateway.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_ingestion(
    customer_id: str,
    actor: str,
    txn_count: int,
    risk_score: float,
    band: str,
    alert_count: int,
    warning_count: int,
    duration_ms: float,
) -> None:
    """Log structured ingestion outcome for analysis"""
    logging.getLogger("predelinq_gateway.pipeline").info(
        "Ingestion completed",
        extra={
            "customer_id": customer_id,
            "actor": actor,
            "step": "ingestion_complete",
            "txn_count": txn_count,
            "risk_score": round(risk_score, 4),
            "band": band,
            "alert_count": alert_count,
            "warning_count": warning_count,
            "duration_ms": duration_ms,
        },
    )


def log_parse_rejected(actor: str, source_name: Optional[str], errors: List[str]) -> None:
    """Log a statement rejected by structural validation"""
    logging.getLogger("predelinq_gateway.pipeline").warning(
        "Statement rejected",
        extra={
            "actor": actor,
            "step": "parse_rejected",
            "source_name": source_name,
            "errors": errors,
        },
    )
