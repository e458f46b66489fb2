# accounting/billing_views.py
"""
Views for quotes, payment schedules, student/team payments and missions.

Mutations go through accounting.billing_commands.
"""

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authz import resolve_actor, require
from .allocation import allocatable_schedules, get_allocation_stats, suggest_allocation
from .billing_commands import (
    create_quote,
    update_quote,
    delete_quote,
    generate_schedules,
    schedule_overview,
    record_student_payment,
    validate_student_payment,
    reject_student_payment,
    update_student_payment,
    allocate_student_payment,
    create_mission,
    validate_mission,
    update_mission,
    delete_mission,
    record_team_payment,
)
from .models import Mission, Payment, PaymentSchedule, Quote
from .serializers import (
    AllocatePaymentSerializer,
    GenerateSchedulesSerializer,
    MissionSerializer,
    MissionCreateSerializer,
    MissionUpdateSerializer,
    MissionReviewSerializer,
    PaymentSerializer,
    PaymentAllocationSerializer,
    PaymentRejectSerializer,
    PaymentScheduleSerializer,
    QuoteSerializer,
    QuoteCreateSerializer,
    QuoteUpdateSerializer,
    StudentPaymentCreateSerializer,
    StudentPaymentUpdateSerializer,
    TeamPaymentCreateSerializer,
    TransactionSerializer,
)
from .validation import mission_alerts, payment_alerts


def _quote_queryset(company):
    return (
        Quote.objects.filter(company=company)
        .select_related("student")
        .prefetch_related("items", "schedules")
    )


# =============================================================================
# Quotes
# =============================================================================

class QuoteListCreateView(APIView):
    """
    GET /api/accounting/quotes/ -> list (?status=&student=)
    POST /api/accounting/quotes/ -> create a DRAFT quote from the student's active packs
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "quotes.view")

        qs = _quote_queryset(actor.company)
        if request.query_params.get("status"):
            qs = qs.filter(status=request.query_params["status"])
        if request.query_params.get("student"):
            qs = qs.filter(student_id=request.query_params["student"])
        return Response(QuoteSerializer(qs, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)

        serializer = QuoteCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = create_quote(actor, **serializer.validated_data)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(QuoteSerializer(result.data).data, status=status.HTTP_201_CREATED)


class QuoteDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "quotes.view")

        quote = get_object_or_404(_quote_queryset(actor.company), pk=pk)
        return Response(QuoteSerializer(quote).data)

    def patch(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(Quote, company=actor.company, pk=pk)

        serializer = QuoteUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = update_quote(actor, pk, **serializer.validated_data)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(QuoteSerializer(result.data).data)

    def delete(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(Quote, company=actor.company, pk=pk)

        result = delete_quote(actor, pk)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(status=status.HTTP_204_NO_CONTENT)


class QuoteScheduleView(APIView):
    """
    GET /api/accounting/quotes/<pk>/schedules/ -> installments + summary
    POST /api/accounting/quotes/<pk>/schedules/ -> generate installments
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "quotes.view")

        quote = get_object_or_404(Quote, company=actor.company, pk=pk)
        overview = schedule_overview(actor.company, quote)
        return Response({
            "schedules": PaymentScheduleSerializer(overview["schedules"], many=True).data,
            "summary": overview["summary"],
        })

    def post(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(Quote, company=actor.company, pk=pk)

        serializer = GenerateSchedulesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = generate_schedules(actor, pk, serializer.validated_data["schedules"])
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(
            PaymentScheduleSerializer(result.data, many=True).data,
            status=status.HTTP_201_CREATED,
        )


class PaymentScheduleListView(APIView):
    """GET /api/accounting/schedules/?student=&status="""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "payments.view")

        qs = PaymentSchedule.objects.filter(company=actor.company).select_related("quote")
        if request.query_params.get("student"):
            qs = qs.filter(student_id=request.query_params["student"])
        if request.query_params.get("status"):
            qs = qs.filter(status=request.query_params["status"])
        return Response(PaymentScheduleSerializer(qs, many=True).data)


# =============================================================================
# Student Payments
# =============================================================================

class StudentPaymentListCreateView(APIView):
    """
    GET /api/accounting/student-payments/ -> list (?status=&student=)
    POST /api/accounting/student-payments/ -> record, response carries validation alerts
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "payments.view")

        qs = Payment.objects.filter(
            company=actor.company, student__isnull=False,
        ).select_related("student", "bank_account")
        if request.query_params.get("status"):
            qs = qs.filter(status=request.query_params["status"])
        if request.query_params.get("student"):
            qs = qs.filter(student_id=request.query_params["student"])
        return Response(PaymentSerializer(qs, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)

        serializer = StudentPaymentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = record_student_payment(actor, **serializer.validated_data)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)

        data = PaymentSerializer(result.data).data
        data["alerts"] = [a.to_dict() for a in payment_alerts(actor.company, result.data)]
        return Response(data, status=status.HTTP_201_CREATED)


class StudentPaymentDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "payments.view")

        payment = get_object_or_404(Payment, company=actor.company, student__isnull=False, pk=pk)
        data = PaymentSerializer(payment).data
        data["allocations"] = PaymentAllocationSerializer(payment.allocations.all(), many=True).data
        data["transactions"] = TransactionSerializer(payment.transactions.all(), many=True).data
        return Response(data)

    def patch(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(Payment, company=actor.company, student__isnull=False, pk=pk)

        serializer = StudentPaymentUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = update_student_payment(actor, pk, **serializer.validated_data)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(PaymentSerializer(result.data).data)


class StudentPaymentValidateView(APIView):
    """POST /api/accounting/student-payments/<pk>/validate/"""
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(Payment, company=actor.company, student__isnull=False, pk=pk)

        result = validate_student_payment(actor, pk)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(PaymentSerializer(result.data).data)


class StudentPaymentRejectView(APIView):
    """POST /api/accounting/student-payments/<pk>/reject/"""
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(Payment, company=actor.company, student__isnull=False, pk=pk)

        serializer = PaymentRejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = reject_student_payment(actor, pk, **serializer.validated_data)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(PaymentSerializer(result.data).data)


class PaymentAllocationView(APIView):
    """
    GET /api/accounting/student-payments/<pk>/allocations/ -> schedules, suggestions, stats
    POST /api/accounting/student-payments/<pk>/allocations/ -> split the payment
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "payments.view")

        payment = get_object_or_404(Payment, company=actor.company, student__isnull=False, pk=pk)
        schedules = allocatable_schedules(payment, same_currency=False).select_related("quote")
        return Response({
            "payment": PaymentSerializer(payment).data,
            "schedules": PaymentScheduleSerializer(schedules, many=True).data,
            "suggestions": [s.to_dict() for s in suggest_allocation(payment)],
            "stats": get_allocation_stats(payment),
        })

    def post(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(Payment, company=actor.company, student__isnull=False, pk=pk)

        serializer = AllocatePaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = allocate_student_payment(actor, pk, **serializer.validated_data)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)

        payment = Payment.objects.get(pk=pk)
        return Response({
            "allocations": PaymentAllocationSerializer(result.data, many=True).data,
            "stats": get_allocation_stats(payment),
        }, status=status.HTTP_201_CREATED)


# =============================================================================
# Team Payments
# =============================================================================

class TeamPaymentListCreateView(APIView):
    """
    GET /api/accounting/team-payments/ -> mentor and professor payments
    POST /api/accounting/team-payments/ -> pay validated missions
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "payments.view")

        qs = Payment.objects.filter(company=actor.company, student__isnull=True).select_related(
            "mentor", "professor", "bank_account",
        )
        if request.query_params.get("mentor"):
            qs = qs.filter(mentor_id=request.query_params["mentor"])
        if request.query_params.get("professor"):
            qs = qs.filter(professor_id=request.query_params["professor"])
        return Response(PaymentSerializer(qs, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)

        serializer = TeamPaymentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = record_team_payment(actor, **serializer.validated_data)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)

        payment = result.data["payment"]
        return Response({
            "payment": PaymentSerializer(payment).data,
            "transaction": TransactionSerializer(result.data["transaction"]).data,
            "missions": MissionSerializer(result.data["missions"], many=True).data,
            "alerts": [a.to_dict() for a in payment_alerts(actor.company, payment)],
        }, status=status.HTTP_201_CREATED)


# =============================================================================
# Missions
# =============================================================================

class MissionListCreateView(APIView):
    """
    GET /api/accounting/missions/ -> list (?status=&mentor=&professor=)
    POST /api/accounting/missions/ -> create
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "missions.view")

        qs = Mission.objects.filter(company=actor.company).select_related("mentor", "professor", "student")
        params = request.query_params
        if params.get("status"):
            qs = qs.filter(status=params["status"])
        if params.get("mentor"):
            qs = qs.filter(mentor_id=params["mentor"])
        if params.get("professor"):
            qs = qs.filter(professor_id=params["professor"])
        return Response(MissionSerializer(qs, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)

        serializer = MissionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = create_mission(actor, **serializer.validated_data)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)

        data = MissionSerializer(result.data).data
        data["alerts"] = [a.to_dict() for a in mission_alerts(result.data)]
        return Response(data, status=status.HTTP_201_CREATED)


class MissionDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "missions.view")

        mission = get_object_or_404(Mission, company=actor.company, pk=pk)
        return Response(MissionSerializer(mission).data)

    def patch(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(Mission, company=actor.company, pk=pk)

        serializer = MissionUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = update_mission(actor, pk, **serializer.validated_data)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(MissionSerializer(result.data).data)

    def delete(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(Mission, company=actor.company, pk=pk)

        result = delete_mission(actor, pk)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(result.data)


class MissionReviewView(APIView):
    """POST /api/accounting/missions/<pk>/review/ {"action": "approve"|"reject", "reason"}"""
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(Mission, company=actor.company, pk=pk)

        serializer = MissionReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = validate_mission(actor, pk, **serializer.validated_data)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(MissionSerializer(result.data).data)
