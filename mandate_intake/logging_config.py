"""
Logging configuration for the mandate intake service.

Structured JSON logs for operators, tagged with the request id of the HTTP
call that produced them. Envelope contents and signatures are never logged;
identifiers are.
"""

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Any, Dict, Optional

# Request ID of the HTTP call being served, set by the API middleware
request_id_var: ContextVar[str] = ContextVar('request_id', default='')

SERVICE_NAME = "mandate-intake"


class StructuredFormatter(logging.Formatter):
    """
    One JSON object per line.

    Audit events attach their fields as `record.event`; they are merged into
    the top level of the output.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": time.strftime('%Y-%m-%dT%H:%M:%SZ', time.gmtime(record.created)),
            "service": SERVICE_NAME,
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "where": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        rid = request_id_var.get()
        if rid:
            entry["request_id"] = rid

        event = getattr(record, "event", None)
        if isinstance(event, dict):
            entry.update(event)

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str, ensure_ascii=False)


class AuditLogger:
    """
    Intake events, one method each.

    Every event is logged on the `intake.audit` logger with an `event_type`
    and its own fields, so the JSON output can be filtered per event.
    """

    def __init__(self, name: str = "intake.audit"):
        self._logger = logging.getLogger(name)

    def _emit(self, level: int, event_type: str, message: str, **fields) -> None:
        self._logger.log(level, message, extra={"event": {"event_type": event_type, **fields}})

    def mandate_received(self, identifier: str, has_amounts: bool) -> None:
        self._emit(logging.INFO, "MANDATE_RECEIVED", f"Mandate received for {identifier}",
                   identifier=identifier, has_amounts=has_amounts)

    def mandate_stored(self, identifier: str, submission_count: int) -> None:
        self._emit(logging.INFO, "MANDATE_STORED",
                   f"Mandate {identifier} stored (submission #{submission_count})",
                   identifier=identifier, submission_count=submission_count)

    def mandate_rejected(self, reason: str, field: Optional[str] = None) -> None:
        self._emit(logging.WARNING, "MANDATE_REJECTED", f"Mandate rejected: {reason}",
                   reason=reason, field=field)

    def notification_sent(self, kind: str, recipient: str) -> None:
        self._emit(logging.INFO, "NOTIFICATION_SENT", f"{kind} notification sent to {recipient}",
                   kind=kind, recipient=recipient)

    def notification_failed(self, kind: str, reason: str) -> None:
        self._emit(logging.ERROR, "NOTIFICATION_FAILED", f"{kind} notification failed: {reason}",
                   kind=kind, reason=reason)

    def contact_received(self, sender: str) -> None:
        self._emit(logging.INFO, "CONTACT_RECEIVED", f"Contact form received from {sender}",
                   sender=sender)

    def rate_limit_exceeded(self, client_id: str, endpoint: str) -> None:
        self._emit(logging.WARNING, "RATE_LIMIT_EXCEEDED",
                   f"Rate limit exceeded for {client_id} on {endpoint}",
                   client_id=client_id, endpoint=endpoint)


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None
) -> None:
    """
    Install handlers on the root logger, replacing any already there.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: JSON lines when True, plain text otherwise
        log_file: Also write to this file when given
    """
    formatter: logging.Formatter
    if json_format:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter('%(asctime)s %(levelname)s [%(name)s] %(message)s')

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for h in root.handlers[:]:
        root.removeHandler(h)
    for h in handlers:
        h.setFormatter(formatter)
        root.addHandler(h)


def set_request_id(request_id: Optional[str] = None) -> str:
    """Set the request ID for the current context, generating one if none is given."""
    rid = request_id or str(uuid.uuid4())
    request_id_var.set(rid)
    return rid


# Global audit logger instance
audit_log = AuditLogger()
