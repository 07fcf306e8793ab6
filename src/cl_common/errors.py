"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/Identity
  2xxx: Credit ledger
  6xxx: Notifications
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth/Identity ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired token", 401)


class PermissionDeniedError(AppError):
    def __init__(self, detail: str = "Administrator role required") -> None:
        super().__init__(1006, detail, 403)


# --- 2xxx: Credit ledger ---

class InsufficientBalanceError(AppError):
    def __init__(self, account_id: int, required: int, available: int) -> None:
        self.account_id = account_id
        self.required = required
        self.available = available
        super().__init__(
            2001,
            f"Insufficient balance on account {account_id}: "
            f"required {required} credits, available {available} credits",
            422,
        )


class AccountNotFoundError(AppError):
    def __init__(self, account_id: int) -> None:
        self.account_id = account_id
        super().__init__(2002, f"Account not found: {account_id}", 404)


class InsufficientCreditsError(AppError):
    """Raised by the metering gate; maps to 402 so the UI can prompt for credits."""

    def __init__(self, account_id: int, cost: int, available: int) -> None:
        self.account_id = account_id
        self.cost = cost
        self.available = available
        super().__init__(
            2003,
            f"Insufficient credits: required {cost}, available {available}. "
            "Contact your administrator for more credits.",
            402,
        )


class InvalidAmountError(AppError):
    def __init__(self, amount: int, detail: str = "amount must be positive") -> None:
        self.amount = amount
        super().__init__(2004, f"Invalid amount {amount}: {detail}", 400)


class InvalidOperationError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(2005, f"Invalid operation: {detail}", 400)


class DuplicatePaymentError(AppError):
    def __init__(self, payment_reference: str) -> None:
        self.payment_reference = payment_reference
        super().__init__(2006, f"Payment already processed: {payment_reference}", 409)


# --- 6xxx: Notifications ---

class NotificationNotFoundError(AppError):
    def __init__(self, notification_id: int) -> None:
        super().__init__(6001, f"Notification not found: {notification_id}", 404)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class LedgerBusyError(AppError):
    def __init__(self, account_id: int) -> None:
        self.account_id = account_id
        super().__init__(9003, f"Account {account_id} is busy, retry later", 503)
