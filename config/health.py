import logging

from django.db import DatabaseError, connection
from drf_spectacular.utils import extend_schema
from rest_framework.decorators import api_view
from rest_framework.response import Response

logger = logging.getLogger("logistics.health")


@extend_schema(tags=["Health Endpoint"], summary="Health check", description="Reports API and database status.")
@api_view(["GET"])
def health(request):
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except DatabaseError as exc:
        logger.error("health_database_unavailable", extra={"error": str(exc)})
        return Response({"status": "degraded", "database": "unavailable"}, status=503)
    return Response({"status": "ok", "database": "ok"})
