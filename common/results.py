"""Uniform result returned by every mutating action."""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class ActionResult:
    """Outcome of a service action.

    Either ``success`` with optional ``data`` (e.g. a new reference number), or
    a failure carrying a human-readable ``error``, a machine ``code`` and, for
    input validation failures, per-field ``errors``.
    """

    success: bool
    data: Any = None
    error: Optional[str] = None
    code: Optional[str] = None
    errors: Optional[dict] = field(default=None)

    @classmethod
    def ok(cls, data: Any = None) -> "ActionResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, code: str = "error", errors: Optional[dict] = None) -> "ActionResult":
        return cls(success=False, error=error, code=code, errors=errors)

    def __bool__(self) -> bool:
        return self.success
