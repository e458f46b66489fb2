# reports/urls.py
"""
URL configuration for reports.

Endpoints:
- /cashflow/, /bfr/, /forecast/ - cash reports
- /positions/ - founder positions
- /journal/, /journal/<id>/, /journal/export/ - transaction journal
- /me/student/, /me/mentor/, /me/professor/ - self-service pages
"""

from django.urls import path

from .views import (
    CashflowView,
    BfrView,
    ForecastView,
    PositionsView,
    JournalView,
    JournalDetailView,
    JournalExportView,
    StudentSelfServiceView,
    TeamSelfServiceView,
)

app_name = "reports"

urlpatterns = [
    path("cashflow/", CashflowView.as_view(), name="cashflow"),
    path("bfr/", BfrView.as_view(), name="bfr"),
    path("forecast/", ForecastView.as_view(), name="forecast"),
    path("positions/", PositionsView.as_view(), name="positions"),
    path("journal/", JournalView.as_view(), name="journal"),
    path("journal/export/", JournalExportView.as_view(), name="journal-export"),
    path("journal/<int:pk>/", JournalDetailView.as_view(), name="journal-detail"),
    path("me/student/", StudentSelfServiceView.as_view(), name="self-student"),
    path("me/mentor/", TeamSelfServiceView.as_view(kind="mentor"), name="self-mentor"),
    path("me/professor/", TeamSelfServiceView.as_view(kind="professor"), name="self-professor"),
]
