import json
import logging
from pathlib import Path

import pytest

from movie_rental.core import startup_checks
from movie_rental.core.errors import ErrorReason, OperationFailedError
from movie_rental.core.logging_setup import JsonFormatter
from movie_rental.core.request_context import clear_request_context, get_request_id, set_request_context


def _record(message, *args, **extra):
    record = logging.LogRecord(
        name="movie_rental.tests",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=args,
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_request_context_and_extras():
    set_request_context(request_id="req-42")
    try:
        output = JsonFormatter("%(message)s").format(
            _record("rental booked id=%s", 7, rental_id=7, payment_method="mbway")
        )
    finally:
        clear_request_context()

    payload = json.loads(output)
    assert payload["request_id"] == "req-42"
    assert payload["message"] == "rental booked id=7"
    assert payload["rental_id"] == 7
    assert payload["payment_method"] == "mbway"
    assert payload["level"] == "INFO"
    assert "endpoint" not in payload


def test_json_formatter_masks_secrets():
    output = JsonFormatter("%(message)s").format(_record("provider call token=abc123 password: hunter2"))

    message = json.loads(output)["message"]
    assert "abc123" not in message
    assert "hunter2" not in message
    assert "token=***" in message


def test_request_context_is_cleared():
    set_request_context(request_id="abc")
    clear_request_context()

    assert get_request_id() is None


@pytest.mark.parametrize(
    "reason,status_code",
    [
        (ErrorReason.VALIDATION, 400),
        (ErrorReason.PAYMENT_FAILED, 402),
        (ErrorReason.NOT_FOUND, 404),
        (ErrorReason.CONFLICT, 409),
        (ErrorReason.STORAGE_FAILURE, 500),
    ],
)
def test_error_reason_maps_to_http_status(reason, status_code):
    error = OperationFailedError("boom", reason=reason)

    assert error.status_code == status_code
    assert error.message == "boom"
    assert error.title


def test_sqlite_is_rejected_in_production(monkeypatch):
    monkeypatch.setattr(startup_checks, "IS_PROD", True)
    monkeypatch.setattr(startup_checks, "DATABASE_URL", "sqlite:///./movie_rental.db")

    with pytest.raises(RuntimeError, match="SQLite is forbidden"):
        startup_checks.validate_database_environment()


def test_postgres_is_accepted_in_production(monkeypatch):
    monkeypatch.setattr(startup_checks, "IS_PROD", True)
    monkeypatch.setattr(startup_checks, "DATABASE_URL", "postgresql://rental@db/rental")

    startup_checks.validate_database_environment()


def test_migration_check_is_skipped_outside_production(monkeypatch):
    monkeypatch.setattr(startup_checks, "IS_TEST", True)

    startup_checks.ensure_migrations_applied(engine=None, alembic_config_path=Path("/nonexistent/alembic.ini"))


def test_missing_alembic_config_fails_in_production(monkeypatch):
    monkeypatch.setattr(startup_checks, "IS_TEST", False)
    monkeypatch.setattr(startup_checks, "IS_DEV", False)

    with pytest.raises(RuntimeError, match="alembic config not found"):
        startup_checks.ensure_migrations_applied(engine=None, alembic_config_path=Path("/nonexistent/alembic.ini"))
