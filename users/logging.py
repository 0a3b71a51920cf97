import logging

logger = logging.getLogger("logistics.users")


def log_access_event(action: str, request, user=None, status: str = "success", extra: dict | None = None):
    """Emit a structured access event with action, caller, ip and status."""
    payload = {
        "action": action,
        "ip": request.META.get("REMOTE_ADDR"),
        "status": status,
        "actor_id": getattr(request.user, "id", None),
    }
    if user is not None:
        payload["user_id"] = getattr(user, "id", None)
        payload["role"] = getattr(user, "role", None)
    if extra:
        payload.update(extra)
    logger.info("user_access", extra=payload)
