"""Business-rule failures raised by loan services."""

from common.exceptions import BusinessRuleError


class LoanNotPendingError(BusinessRuleError):
    def __init__(self, message: str = "Loan is not pending"):
        super().__init__(message)


class InsufficientStockError(BusinessRuleError):
    pass


class UnloanableItemError(BusinessRuleError):
    pass


class DuplicateRequesterError(BusinessRuleError):
    pass


class LoanDetailNotReturnableError(BusinessRuleError):
    pass
