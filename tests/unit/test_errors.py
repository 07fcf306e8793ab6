"""Tests for cl_common.errors and cl_common.response."""

from unittest.mock import MagicMock

from src.cl_common.errors import (
    AccountNotFoundError,
    AppError,
    DuplicatePaymentError,
    InsufficientBalanceError,
    InsufficientCreditsError,
    InvalidAmountError,
    InvalidOperationError,
    LedgerBusyError,
    NotificationNotFoundError,
    PermissionDeniedError,
)
from src.cl_common.response import error_response, success_response


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.code == 9002
        assert err.message == "Internal error"
        assert err.http_status == 500

    def test_is_exception(self) -> None:
        assert isinstance(AppError(code=1001, message="test"), Exception)


class TestSpecificErrors:
    def test_insufficient_balance(self) -> None:
        err = InsufficientBalanceError(account_id=2, required=65, available=30)
        assert (err.code, err.http_status) == (2001, 422)
        assert "65" in err.message
        assert "30" in err.message

    def test_insufficient_credits_is_payment_required(self) -> None:
        err = InsufficientCreditsError(account_id=2, cost=1, available=0)
        assert (err.code, err.http_status) == (2003, 402)
        assert "administrator" in err.message

    def test_account_not_found(self) -> None:
        err = AccountNotFoundError(404)
        assert (err.code, err.http_status) == (2002, 404)

    def test_invalid_amount(self) -> None:
        err = InvalidAmountError(0)
        assert (err.code, err.http_status) == (2004, 400)

    def test_invalid_operation(self) -> None:
        assert InvalidOperationError("same account").http_status == 400

    def test_duplicate_payment(self) -> None:
        err = DuplicatePaymentError("pi_123")
        assert (err.code, err.http_status) == (2006, 409)
        assert "pi_123" in err.message

    def test_ledger_busy(self) -> None:
        assert LedgerBusyError(5).http_status == 503

    def test_notification_not_found(self) -> None:
        assert NotificationNotFoundError(7).code == 6001

    def test_permission_denied(self) -> None:
        assert PermissionDeniedError().http_status == 403


class TestApiResponse:
    def test_success(self) -> None:
        resp = success_response({"balance": 12})
        assert resp.code == 0
        assert resp.message == "success"
        assert resp.data == {"balance": 12}

    def test_success_uses_request_id(self) -> None:
        request = MagicMock()
        request.state.request_id = "req-42"
        assert success_response(None, request).request_id == "req-42"

    def test_error(self) -> None:
        resp = error_response(2001, "Insufficient balance")
        assert resp.code == 2001
        assert resp.data is None

    def test_error_uses_request_id(self) -> None:
        request = MagicMock()
        request.state.request_id = "req-7"
        assert error_response(2002, "Account not found: 9", request).request_id == "req-7"

    def test_serialization(self) -> None:
        d = success_response({"balance": 1}).model_dump()
        for key in ("code", "message", "data", "timestamp", "request_id"):
            assert key in d
