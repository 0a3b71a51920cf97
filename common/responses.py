"""Translate action results into DRF responses."""

from rest_framework.response import Response

from .exceptions import http_status_for
from .results import ActionResult


def result_response(result: ActionResult, *, status: int = 200, data=None) -> Response:
    """Return ``data`` (or ``result.data``) on success, ``{"detail": ...}`` otherwise."""
    if result.success:
        return Response(result.data if data is None else data, status=status)
    body = {"detail": result.error}
    if result.errors:
        body["errors"] = result.errors
    return Response(body, status=http_status_for(result.code))
