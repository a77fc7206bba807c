"""
Domain exceptions for the finance app.

Storage and upload validation failures for expense documents reuse the
documents app exceptions.
"""


class FinanceServiceError(Exception):
    """Base exception for finance service errors."""
    pass


class PaymentNotFoundError(FinanceServiceError):
    """Raised when a payment log entry does not exist."""
    pass


class ExpenseNotFoundError(FinanceServiceError):
    """Raised when an expense does not exist."""
    pass


class ExpenseDocumentNotFoundError(FinanceServiceError):
    """Raised when an expense document does not exist."""
    pass


class InvalidExpenseError(FinanceServiceError):
    """Raised when expense data breaks a business rule."""
    pass


class FinanceAccessDeniedError(FinanceServiceError):
    """Raised when a non-admin touches admin-only financial data."""
    pass


class InvalidDateRangeError(FinanceServiceError):
    """Raised when a date range ends before it starts."""
    pass
