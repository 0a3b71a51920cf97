"""Error taxonomy for service actions.

Raised inside services and converted to an ``ActionResult`` at the action
boundary (see ``common.actions``). Each class carries a stable ``code`` that
views map to an HTTP status.
"""

from typing import Optional


class ActionError(Exception):
    code = "error"

    def __init__(self, message: str = "", errors: Optional[dict] = None):
        super().__init__(message)
        self.message = message or self.__class__.__name__
        self.errors = errors


class AuthorizationError(ActionError):
    """Caller role is below the threshold for the operation."""

    code = "forbidden"


class ValidationFailed(ActionError):
    """Malformed input caught before touching the store."""

    code = "invalid"


class BusinessRuleError(ActionError):
    """A domain rule rejected the operation; the transaction is rolled back."""

    code = "conflict"


class NotFoundError(ActionError):
    code = "not_found"


class StorageFailed(ActionError):
    """The file storage backend could not complete the request."""

    code = "storage"


HTTP_STATUS_BY_CODE = {
    AuthorizationError.code: 403,
    ValidationFailed.code: 400,
    NotFoundError.code: 404,
    BusinessRuleError.code: 409,
    StorageFailed.code: 502,
}


def http_status_for(code: Optional[str]) -> int:
    return HTTP_STATUS_BY_CODE.get(code or "", 400)
