"""
URL configuration for the logistics project.

Versioned API routes live under /api/v1/; the schema and Swagger UI under
/api/schema/ and /api/docs/.
"""

from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

from .health import health

admin.site.site_header = "Logistics Admin"
admin.site.index_title = "Admin"

urlpatterns = [
    path("admin/", admin.site.urls),
    # API schema and Swagger UI
    path("api/schema/", SpectacularAPIView.as_view(), name="api-schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="api-schema"), name="api-docs"),
    # Healthcheck
    path("health/", health, name="health"),
    # Versioned v1 routes only
    path("api/v1/users/", include("users.urls")),
    path("api/v1/catalog/", include("catalog.urls")),
    path("api/v1/loans/", include("loans.urls")),
] + static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
