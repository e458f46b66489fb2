# reports/views.py
"""
API views for reports.

Every figure is computed from ledger and billing rows at request time;
nothing here writes except the positions POST, which goes through
accounting.commands.
"""

from django.http import Http404
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authz import resolve_actor, require
from accounting.commands import upsert_admin_position
from accounting.serializers import (
    AdminPositionSerializer,
    AdminPositionUpsertSerializer,
    MissionSerializer,
    PaymentScheduleSerializer,
    PaymentSerializer,
    QuoteSerializer,
)
from .bfr import bfr_report
from .cashflow import cashflow_report
from .exports import JOURNAL_EXPORT_COLUMNS, create_export_response, prepare_journal_export_data
from .forecast import forecast_report
from .journal import filter_transactions, journal_detail, journal_page
from .positions import positions_summary
from .self_service import linked_person, student_overview, team_member_overview
from .serializers import (
    ForecastQuerySerializer,
    JournalExportQuerySerializer,
    JournalFilterSerializer,
    JournalTransactionSerializer,
)


class CashflowView(APIView):
    """
    GET /api/reports/cashflow/

    Balances of active bank accounts, totals per currency, and the split
    between founder-held and company accounts.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "reports.view")
        return Response(cashflow_report(actor.company))


class BfrView(APIView):
    """
    GET /api/reports/bfr/

    Amounts still owed per student on SENT and VALIDATED quotes.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "reports.view")
        return Response(bfr_report(actor.company))


class ForecastView(APIView):
    """
    GET /api/reports/forecast/?months=6

    Query params:
    - months: horizon in calendar months, 1 to 24
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "reports.view")

        params = ForecastQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        return Response(forecast_report(actor.company, params.validated_data["months"]))


class PositionsView(APIView):
    """
    GET /api/reports/positions/ -> positions per admin + rebalancing suggestions
    POST /api/reports/positions/ -> set an admin's advanced/received figures
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "positions.view")
        return Response(positions_summary(actor.company))

    def post(self, request):
        actor = resolve_actor(request)

        serializer = AdminPositionUpsertSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = upsert_admin_position(actor, **serializer.validated_data)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(AdminPositionSerializer(result.data).data)


# =============================================================================
# Journal
# =============================================================================

class JournalView(APIView):
    """
    GET /api/reports/journal/

    Query params: date_from, date_to, currency, type, account, student,
    mentor, professor, limit (default 50, max 500), offset.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "ledger.view")

        filters = JournalFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)

        page = journal_page(actor.company, filters.validated_data)
        page["transactions"] = JournalTransactionSerializer(page["transactions"], many=True).data
        return Response(page)


class JournalDetailView(APIView):
    """GET /api/reports/journal/<pk>/ -> row, the row it links to, rows linking back"""
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "ledger.view")

        found = journal_detail(actor.company, pk)
        if found is None:
            raise Http404
        txn, linked, linked_from = found

        data = JournalTransactionSerializer(txn).data
        data["linked_transaction_detail"] = JournalTransactionSerializer(linked).data if linked else None
        data["linked_from"] = JournalTransactionSerializer(linked_from, many=True).data
        return Response(data)


class JournalExportView(APIView):
    """
    GET /api/reports/journal/export/?format=xlsx|csv|txt

    Same filters as the journal listing, without paging.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "reports.export")

        params = JournalExportQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)

        transactions = filter_transactions(actor.company, params.validated_data).select_related(
            "source_account", "destination_account", "student", "mentor", "professor", "created_by",
        )
        return create_export_response(
            prepare_journal_export_data(transactions),
            JOURNAL_EXPORT_COLUMNS,
            params.validated_data["format"],
            filename=f"journal_{actor.company.slug}",
            title=f"{actor.company.name} - Journal",
        )


# =============================================================================
# Self-service
# =============================================================================

class StudentSelfServiceView(APIView):
    """GET /api/reports/me/student/ -> own schedules, payments and quotes"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "self_service.view")

        student = linked_person(actor, "student")
        if student is None:
            raise Http404
        overview = student_overview(actor.company, student)
        return Response({
            "student": {"id": student.id, "name": student.display_name},
            "schedules": PaymentScheduleSerializer(overview["schedules"], many=True).data,
            "payments": PaymentSerializer(overview["payments"], many=True).data,
            "quotes": QuoteSerializer(overview["quotes"], many=True).data,
            "totals_by_currency": overview["totals_by_currency"],
        })


class TeamSelfServiceView(APIView):
    """GET /api/reports/me/<mentor|professor>/ -> own missions and payments"""
    permission_classes = [IsAuthenticated]
    kind = None

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "self_service.view")

        person = linked_person(actor, self.kind)
        if person is None:
            raise Http404
        overview = team_member_overview(actor.company, self.kind, person)
        return Response({
            self.kind: {"id": person.id, "name": person.display_name},
            "missions": MissionSerializer(overview["missions"], many=True).data,
            "payments": PaymentSerializer(overview["payments"], many=True).data,
            "totals_by_currency": overview["totals_by_currency"],
        })
