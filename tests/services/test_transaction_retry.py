"""
Tests for run_with_retry, the transaction boundary OrderService runs every
lifecycle operation through.
"""

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError

from order_kernel.db.engine import is_retryable, run_with_retry
from order_kernel.exceptions import OutOfStockError, TransactionRetryExhaustedError
from order_kernel.models.member import Member, MemberRole
from order_kernel.services.member_service import MemberService


def code_collision():
    return IntegrityError(
        "INSERT INTO order_headers ...",
        {},
        Exception('duplicate key value violates unique constraint "uq_order_code"'),
    )


def member_ids(session):
    return set(session.execute(select(Member.employee_id)).scalars())


class TestIsRetryable:

    def test_order_code_collision(self):
        assert is_retryable(code_collision())

    def test_sqlite_code_collision(self):
        exc = IntegrityError(
            "INSERT", {}, Exception("UNIQUE constraint failed: order_headers.order_code"),
        )
        assert is_retryable(exc)

    def test_other_integrity_error(self):
        exc = IntegrityError("INSERT", {}, Exception('violates unique constraint "uq_buyer_nm"'))
        assert not is_retryable(exc)

    @pytest.mark.parametrize("message", ["deadlock detected", "could not serialize access"])
    def test_lock_races(self, message):
        assert is_retryable(OperationalError("UPDATE", {}, Exception(message)))

    def test_plain_exception(self):
        assert not is_retryable(ValueError("uq_order_code"))


class TestRunWithRetry:

    def test_commits_result(self, db_tables, session):
        def work(s):
            return MemberService(s).register_member("E9001", "Retry Tester").employee_id

        assert run_with_retry(session, work) == "E9001"
        assert "E9001" in member_ids(session)

    def test_retries_a_collision(self, db_tables, session, captured_logs):
        attempts = []

        def work(s):
            attempts.append(1)
            MemberService(s).register_member(f"E900{len(attempts)}", "Retry Tester")
            if len(attempts) < 3:
                raise code_collision()
            return len(attempts)

        assert run_with_retry(session, work, max_attempts=3, operation="create_order") == 3
        assert member_ids(session) == {"E9003"}

        retries = [r for r in captured_logs() if r["message"] == "transaction_retry"]
        assert [r["attempt"] for r in retries] == [1, 2]
        assert retries[0]["operation"] == "create_order"

    def test_exhausted(self, db_tables, session):
        def work(s):
            MemberService(s).register_member("E9001", "Retry Tester")
            raise code_collision()

        with pytest.raises(TransactionRetryExhaustedError) as exc_info:
            run_with_retry(session, work, max_attempts=2, operation="create_order")

        assert exc_info.value.attempts == 2
        assert exc_info.value.code == "TRANSACTION_RETRY_EXHAUSTED"
        assert member_ids(session) == set()

    def test_non_retryable_database_error_propagates(self, db_tables, session):
        attempts = []

        def work(s):
            attempts.append(1)
            raise IntegrityError("INSERT", {}, Exception("NOT NULL constraint failed"))

        with pytest.raises(IntegrityError):
            run_with_retry(session, work)
        assert len(attempts) == 1

    def test_business_error_rolls_back_once(self, db_tables, session):
        attempts = []

        def work(s):
            attempts.append(1)
            MemberService(s).register_member("E9001", "Retry Tester", MemberRole.ADMIN)
            raise OutOfStockError({"ITEM-A": 0})

        with pytest.raises(OutOfStockError):
            run_with_retry(session, work)
        assert len(attempts) == 1
        assert member_ids(session) == set()
