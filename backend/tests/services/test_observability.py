"""Structured Logging — verifies the JSON formatter and the lifecycle observer levels."""

import json
import logging

from helpboard.core.domain_types import Operation
from helpboard.core.errors import DuplicateOfferError, ErrorContext, InternalError
from helpboard.infrastructure.observability import (
    JSONFormatter, LoggingLifecycleObserver,
)


def _record(**extra):
    record = logging.LogRecord(
        "helpboard.lifecycle", logging.INFO, __file__, 1, "hello", None, None,
    )
    record.__dict__.update(extra)
    return record


def test_json_formatter_includes_known_extras():
    line = JSONFormatter().format(_record(post_id="p1", operation="accept_offer"))
    payload = json.loads(line)
    assert payload["message"] == "hello"
    assert payload["level"] == "INFO"
    assert payload["post_id"] == "p1"
    assert payload["operation"] == "accept_offer"
    assert "offer_id" not in payload


def test_observer_logs_domain_failure_as_warning(caplog):
    observer = LoggingLifecycleObserver()
    error = DuplicateOfferError(ErrorContext(post_id="p1"))
    with caplog.at_level(logging.INFO, logger="helpboard.lifecycle"):
        observer.operation_failed(Operation.SUBMIT_OFFER, "helper-1", None, error)
    record = caplog.records[-1]
    assert record.levelno == logging.WARNING
    assert record.error_code == "DUPLICATE_OFFER"
    assert record.caller_id == "helper-1"


def test_observer_logs_internal_failure_as_error(caplog):
    observer = LoggingLifecycleObserver()
    with caplog.at_level(logging.INFO, logger="helpboard.lifecycle"):
        observer.operation_failed(Operation.EDIT_POST, "a", None, InternalError())
    assert caplog.records[-1].levelno == logging.ERROR


def test_observer_logs_retry_attempt(caplog):
    observer = LoggingLifecycleObserver()
    with caplog.at_level(logging.INFO, logger="helpboard.lifecycle"):
        observer.conflict_retried(Operation.ACCEPT_OFFER, "p1", 2)
    record = caplog.records[-1]
    assert record.levelno == logging.WARNING
    assert record.attempt == 2
    assert record.post_id == "p1"


def test_observer_logs_success_with_fields(caplog):
    observer = LoggingLifecycleObserver()
    with caplog.at_level(logging.INFO, logger="helpboard.lifecycle"):
        observer.operation_succeeded(
            Operation.UPDATE_STATUS, "a", "p1", status="completed",
        )
    record = caplog.records[-1]
    assert record.getMessage() == "update_status succeeded"
    assert record.status == "completed"
