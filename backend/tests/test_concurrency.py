"""
Transient-failure retry tests.

Verifies:
- Driver errors are classified by error code, never by message text
- execute_with_retry backs off exponentially and gives up after N attempts
- A statement inside an open transaction is never replayed on its own
- Non-transient errors propagate on the first attempt
"""

from types import SimpleNamespace
from unittest import mock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from qrmenu.services import concurrency
from qrmenu.services.concurrency import (
    RetryExhaustedError,
    TransientErrorKind,
    classify_db_error,
    execute_with_retry,
    run_with_retry,
)


class DriverError(Exception):
    """Stand-in for a DB-API driver exception."""

    def __init__(self, *args, pgcode=None, sqlite_errorname=None):
        super().__init__(*args)
        self.pgcode = pgcode
        self.sqlite_errorname = sqlite_errorname


def operational(*args, **kwargs):
    return OperationalError("UPDATE tax_configurations ...", {}, DriverError(*args, **kwargs))


class TestClassifyDbError:

    @pytest.mark.parametrize(
        "code,kind",
        [
            (1213, TransientErrorKind.DEADLOCK),
            (1205, TransientErrorKind.LOCK_TIMEOUT),
            (2006, TransientErrorKind.CONNECTION_RESET),
            (2013, TransientErrorKind.CONNECTION_RESET),
            (3024, TransientErrorKind.TIMEOUT),
        ],
    )
    def test_mysql_codes(self, code, kind):
        assert classify_db_error(operational(code, "driver message")) is kind

    @pytest.mark.parametrize(
        "pgcode,kind",
        [
            ("40P01", TransientErrorKind.DEADLOCK),
            ("55P03", TransientErrorKind.LOCK_TIMEOUT),
            ("57014", TransientErrorKind.TIMEOUT),
        ],
    )
    def test_postgres_sqlstate(self, pgcode, kind):
        assert classify_db_error(operational("canceling statement", pgcode=pgcode)) is kind

    def test_sqlite_busy(self):
        err = operational("database is locked", sqlite_errorname="SQLITE_BUSY_SNAPSHOT")
        assert classify_db_error(err) is TransientErrorKind.LOCK_TIMEOUT

    def test_invalidated_connection(self):
        err = OperationalError("SELECT 1", {}, DriverError("gone"), connection_invalidated=True)
        assert classify_db_error(err) is TransientErrorKind.CONNECTION_RESET

    def test_message_text_is_ignored(self):
        assert classify_db_error(operational("connection timeout while reading")) is None

    def test_integrity_error_is_not_transient(self):
        err = IntegrityError("INSERT ...", {}, DriverError(1062, "Duplicate entry"))
        assert classify_db_error(err) is None

    def test_non_driver_error(self):
        assert classify_db_error(ValueError("nope")) is None


def _fake_db(execute, in_transaction=False):
    return SimpleNamespace(session=SimpleNamespace(
        execute=execute,
        rollback=mock.Mock(),
        in_transaction=lambda: in_transaction,
    ))


class TestExecuteWithRetry:

    def test_retries_then_succeeds(self, app, monkeypatch):
        execute = mock.Mock(side_effect=[operational(1213), "result"])
        monkeypatch.setattr(concurrency, "db", _fake_db(execute))

        with app.app_context(), mock.patch("qrmenu.services.concurrency.time.sleep") as sleep:
            assert execute_with_retry("stmt", attempts=3, base_delay=0.5) == "result"

        assert execute.call_count == 2
        sleep.assert_called_once_with(0.5)

    def test_exponential_backoff_and_exhaustion(self, app, monkeypatch):
        execute = mock.Mock(side_effect=operational(1205, "Lock wait timeout exceeded"))
        monkeypatch.setattr(concurrency, "db", _fake_db(execute))

        with app.app_context(), mock.patch("qrmenu.services.concurrency.time.sleep") as sleep:
            with pytest.raises(RetryExhaustedError) as exc:
                execute_with_retry("stmt", attempts=3, base_delay=0.5)

        assert execute.call_count == 3
        assert [c.args[0] for c in sleep.call_args_list] == [0.5, 1.0]
        assert exc.value.attempts == 3
        assert str(exc.value).startswith("Query failed after 3 attempts. Last error: ")
        assert "Lock wait timeout exceeded" in str(exc.value)

    def test_non_transient_propagates_immediately(self, app, monkeypatch):
        error = IntegrityError("INSERT ...", {}, DriverError(1062, "Duplicate entry"))
        execute = mock.Mock(side_effect=error)
        monkeypatch.setattr(concurrency, "db", _fake_db(execute))

        with app.app_context(), mock.patch("qrmenu.services.concurrency.time.sleep") as sleep:
            with pytest.raises(IntegrityError):
                execute_with_retry("stmt", attempts=3, base_delay=0.5)

        assert execute.call_count == 1
        sleep.assert_not_called()

    def test_params_are_forwarded(self, app, monkeypatch):
        execute = mock.Mock(return_value="ok")
        monkeypatch.setattr(concurrency, "db", _fake_db(execute))

        with app.app_context():
            execute_with_retry("stmt", {"id": 1}, attempts=1, base_delay=0)

        execute.assert_called_once_with("stmt", {"id": 1})

    def test_defaults_come_from_config(self, app, monkeypatch):
        execute = mock.Mock(side_effect=operational(1213))
        monkeypatch.setattr(concurrency, "db", _fake_db(execute))

        with app.app_context(), mock.patch("qrmenu.services.concurrency.time.sleep"):
            with pytest.raises(RetryExhaustedError):
                execute_with_retry("stmt")

        assert execute.call_count == app.config["RETRY_ATTEMPTS"]

    def test_open_transaction_is_not_replayed(self, app, monkeypatch):
        execute = mock.Mock(side_effect=[operational(1213), "result"])
        fake = _fake_db(execute, in_transaction=True)
        monkeypatch.setattr(concurrency, "db", fake)

        with app.app_context(), mock.patch("qrmenu.services.concurrency.time.sleep") as sleep:
            with pytest.raises(OperationalError):
                execute_with_retry("stmt", attempts=3, base_delay=0.5)

        assert execute.call_count == 1
        sleep.assert_not_called()
        fake.session.rollback.assert_not_called()


class TestRunWithRetry:

    def test_rolls_back_between_attempts(self, monkeypatch):
        fake = _fake_db(mock.Mock())
        monkeypatch.setattr(concurrency, "db", fake)
        work = mock.Mock(side_effect=[operational(1213), "committed"])

        with mock.patch("qrmenu.services.concurrency.time.sleep"):
            assert run_with_retry(work) == "committed"

        assert work.call_count == 2
        fake.session.rollback.assert_called_once()

    def test_gives_up(self, monkeypatch):
        monkeypatch.setattr(concurrency, "db", _fake_db(mock.Mock()))
        work = mock.Mock(side_effect=operational(1213))

        with mock.patch("qrmenu.services.concurrency.time.sleep"):
            with pytest.raises(OperationalError):
                run_with_retry(work, attempts=2)

        assert work.call_count == 2
