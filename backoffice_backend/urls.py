from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    # Operations endpoints (no auth required)
    path("_health/", include("ops.urls")),

    # Admin and API
    path("admin/", admin.site.urls),
    path("api/", include("accounts.urls")),
    path("api/people/", include("people.urls")),
    path("api/accounting/", include("accounting.urls")),
    path("api/reports/", include("reports.urls")),
    path("api-auth/", include("rest_framework.urls")),
]
