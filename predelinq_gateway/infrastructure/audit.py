"""Audit event sinks"""

import logging
from typing import List, Sequence

from predelinq_gateway.domain.models import AuditEvent

audit_logger = logging.getLogger("predelinq_gateway.audit")


class LoggingEventSink:
    """Writes each audit event as one structured log line"""

    def emit(self, event: AuditEvent) -> None:
        audit_logger.info(
            event.description,
            extra={
                "log_id": event.log_id,
                "event_type": event.type.value,
                "actor": event.actor,
                "event_timestamp": event.timestamp.isoformat(),
                "metadata": event.metadata,
            },
        )


class InMemoryEventSink:
    """Keeps events newest first, like the audit log viewer shows them"""

    def __init__(self):
        self.events: List[AuditEvent] = []

    def emit(self, event: AuditEvent) -> None:
        self.events.insert(0, event)

    def of_type(self, event_type) -> List[AuditEvent]:
        return [e for e in self.events if e.type == event_type]


class CompositeEventSink:
    """Fans one event out to several sinks in order"""

    def __init__(self, sinks: Sequence):
        self.sinks = list(sinks)

    def emit(self, event: AuditEvent) -> None:
        for sink in self.sinks:
            sink.emit(event)
