"""Action boundary shared by all mutating services.

``guarded_action`` wraps a service step so that every call follows the same
flow: authorization check on the caller's role, then a single
``transaction.atomic()`` unit around the step, then conversion of the outcome
into an ``ActionResult``. Nothing raised inside the step escapes the wrapper;
a failure rolls back every write made by the step.
"""

import functools
import logging
from typing import Callable, Optional

from django.core.exceptions import ObjectDoesNotExist
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, OperationalError, transaction
from users.permissions import CAPABILITY_MIN_ROLE, role_has_capability, role_of

from .exceptions import ActionError, AuthorizationError, BusinessRuleError, NotFoundError, ValidationFailed
from .results import ActionResult

logger = logging.getLogger("logistics.actions")


def authorization_message(role: Optional[str], capability: str) -> str:
    if role is None:
        return "Authentication required"
    minimum = CAPABILITY_MIN_ROLE.get(capability)
    label = str(getattr(capability, "label", capability)).lower()
    if minimum is None:
        return f"Not allowed to {label}"
    return f"{minimum} access or above required to {label}"


def require_capability(actor, capability: str) -> str:
    """Raise ``AuthorizationError`` unless the actor holds the capability; return the role."""
    role = role_of(actor)
    if not role_has_capability(role, capability):
        raise AuthorizationError(authorization_message(role, capability))
    return role


def _failure(event: str, exc: ActionError, extra: dict) -> ActionResult:
    logger.warning(
        f"{event}.failed",
        extra={"event": f"{event}.failed", "code": exc.code, "error": exc.message, **extra},
    )
    return ActionResult.fail(exc.message, code=exc.code, errors=exc.errors)


def guarded_action(capability: str, event: str, clean: Optional[Callable[..., dict]] = None) -> Callable:
    """Decorate ``func(actor, *args, **kwargs)`` as an all-or-nothing action.

    ``clean``, when given, receives the keyword arguments and returns them
    normalized; it runs after the authorization check and before the
    transaction is opened, so malformed input never reaches the store.

    The decorated function returns whatever data the caller should receive on
    success; it signals failure by raising an ``ActionError`` subclass. Store
    level problems are mapped as well: unique collisions become conflicts,
    missing rows become not-found, lock/serialization failures become
    conflicts that the caller may retry.
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(actor, *args, **kwargs) -> ActionResult:
            extra = {"actor_id": getattr(actor, "id", None), "action": event}
            try:
                require_capability(actor, capability)
                if clean is not None:
                    kwargs = clean(**kwargs)
                with transaction.atomic():
                    data = func(actor, *args, **kwargs)
            except ActionError as exc:
                return _failure(event, exc, extra)
            except DjangoValidationError as exc:
                errors = getattr(exc, "message_dict", None)
                return _failure(event, ValidationFailed("; ".join(exc.messages), errors=errors), extra)
            except IntegrityError as exc:
                logger.info("integrity error in %s: %s", event, exc)
                return _failure(event, BusinessRuleError("Conflicting record already exists"), extra)
            except ObjectDoesNotExist as exc:
                return _failure(event, NotFoundError(str(exc) or "Record not found"), extra)
            except OperationalError as exc:
                logger.info("operational error in %s: %s", event, exc)
                return _failure(
                    event,
                    BusinessRuleError("The operation conflicted with a concurrent change; please retry"),
                    extra,
                )
            logger.info(event, extra={"event": event, **extra})
            return ActionResult.ok(data)

        wrapper.capability = capability
        wrapper.event = event
        return wrapper

    return decorator
