# accounting/views.py
"""
Thin views that delegate to the commands layer.

Views handle: HTTP parsing, authentication, response formatting.
Commands handle: business logic, validation, audit.

All mutations go through accounting.commands so every ledger write and
audit row happens inside one transaction. Views never call .save().
"""

from collections import defaultdict

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authz import resolve_actor, require
from . import ledger
from .commands import (
    create_bank_account,
    update_bank_account,
    delete_bank_account,
    create_fx_exchange,
    create_transfer,
    create_expense,
    update_expense,
    delete_expense,
    create_recurring_expense,
    update_recurring_expense,
    deactivate_recurring_expense,
    pay_recurring_expense,
    create_distribution,
)
from .models import (
    AuditLog,
    BankAccount,
    Distribution,
    Expense,
    RecurringExpense,
)
from .periods import monthly_equivalent
from .serializers import (
    AuditLogSerializer,
    BankAccountSerializer,
    BankAccountCreateSerializer,
    BankAccountUpdateSerializer,
    DistributionSerializer,
    DistributionCreateSerializer,
    ExpenseSerializer,
    ExpenseCreateSerializer,
    ExpenseUpdateSerializer,
    FxExchangeCreateSerializer,
    RecurringExpenseSerializer,
    RecurringExpenseCreateSerializer,
    RecurringExpenseUpdateSerializer,
    RecurringExpensePaySerializer,
    TransactionSerializer,
    TransactionPairSerializer,
    TransferCreateSerializer,
)
from .validation import expense_alerts, transfer_alerts


def _limit(request, default=50, maximum=500) -> int:
    try:
        value = int(request.query_params.get("limit", default))
    except (TypeError, ValueError):
        return default
    return max(1, min(value, maximum))


# =============================================================================
# Bank Accounts
# =============================================================================

class BankAccountListCreateView(APIView):
    """
    GET /api/accounting/bank-accounts/ -> accounts with balances
    POST /api/accounting/bank-accounts/ -> create
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "bank_accounts.view")

        qs = BankAccount.objects.filter(company=actor.company)
        if request.query_params.get("active", "").lower() == "true":
            qs = qs.filter(is_active=True)
        currency = request.query_params.get("currency")
        if currency:
            qs = qs.filter(currency=currency)

        context = {"movements": ledger.movements_by_account(actor.company)}
        return Response(BankAccountSerializer(qs, many=True, context=context).data)

    def post(self, request):
        actor = resolve_actor(request)

        serializer = BankAccountCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = create_bank_account(actor, **serializer.validated_data)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(BankAccountSerializer(result.data).data, status=status.HTTP_201_CREATED)


class BankAccountDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "bank_accounts.view")

        account = get_object_or_404(BankAccount, company=actor.company, pk=pk)
        return Response(BankAccountSerializer(account).data)

    def patch(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(BankAccount, company=actor.company, pk=pk)

        serializer = BankAccountUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = update_bank_account(actor, pk, **serializer.validated_data)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(BankAccountSerializer(result.data).data)

    def delete(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(BankAccount, company=actor.company, pk=pk)

        result = delete_bank_account(actor, pk)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(result.data)


# =============================================================================
# FX Exchanges and Transfers
# =============================================================================

class FxExchangeListCreateView(APIView):
    """
    GET /api/accounting/fx-exchanges/ -> recent pairs, newest first
    POST /api/accounting/fx-exchanges/ -> write a linked FX pair
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "ledger.view")

        pairs = ledger.list_fx_exchanges(actor.company, limit=_limit(request))
        return Response(TransactionPairSerializer(pairs, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)

        serializer = FxExchangeCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = create_fx_exchange(actor, **serializer.validated_data)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(
            TransactionPairSerializer(result.data).data,
            status=status.HTTP_201_CREATED,
        )


class TransferListCreateView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "ledger.view")

        pairs = ledger.list_transfers(actor.company, limit=_limit(request))
        return Response(TransactionPairSerializer(pairs, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)

        serializer = TransferCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = create_transfer(actor, **serializer.validated_data)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)

        outgoing = result.data["outgoing"]
        data = TransactionPairSerializer({"from": outgoing, "to": result.data["incoming"]}).data
        data["alerts"] = [a.to_dict() for a in transfer_alerts(outgoing.amount, outgoing.currency)]
        return Response(data, status=status.HTTP_201_CREATED)


# =============================================================================
# Expenses
# =============================================================================

class ExpenseListCreateView(APIView):
    """
    GET /api/accounting/expenses/ -> list (?category=&currency=&date_from=&date_to=)
    POST /api/accounting/expenses/ -> create, response carries validation alerts
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "expenses.view")

        qs = Expense.objects.filter(company=actor.company).select_related("paying_account")
        params = request.query_params
        if params.get("category"):
            qs = qs.filter(category=params["category"])
        if params.get("currency"):
            qs = qs.filter(currency=params["currency"])
        if params.get("date_from"):
            qs = qs.filter(expense_date__gte=params["date_from"])
        if params.get("date_to"):
            qs = qs.filter(expense_date__lte=params["date_to"])
        return Response(ExpenseSerializer(qs[:_limit(request, 200, 1000)], many=True).data)

    def post(self, request):
        actor = resolve_actor(request)

        serializer = ExpenseCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = create_expense(actor, **serializer.validated_data)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)

        data = ExpenseSerializer(result.data).data
        data["alerts"] = [a.to_dict() for a in expense_alerts(result.data)]
        return Response(data, status=status.HTTP_201_CREATED)


class ExpenseDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "expenses.view")

        expense = get_object_or_404(Expense, company=actor.company, pk=pk)
        data = ExpenseSerializer(expense).data
        data["transactions"] = TransactionSerializer(expense.transactions.all(), many=True).data
        return Response(data)

    def patch(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(Expense, company=actor.company, pk=pk)

        serializer = ExpenseUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = update_expense(actor, pk, **serializer.validated_data)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(ExpenseSerializer(result.data).data)

    def delete(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(Expense, company=actor.company, pk=pk)

        result = delete_expense(actor, pk)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(status=status.HTTP_204_NO_CONTENT)


class RecurringExpenseListCreateView(APIView):
    """
    GET /api/accounting/recurring-expenses/ -> list + monthly totals per currency
    POST /api/accounting/recurring-expenses/ -> create
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "expenses.view")

        qs = RecurringExpense.objects.filter(company=actor.company)
        if request.query_params.get("active", "").lower() == "true":
            qs = qs.filter(is_active=True)

        monthly_totals = defaultdict(int)
        for recurring in qs:
            if recurring.is_active:
                monthly_totals[recurring.currency] += monthly_equivalent(
                    recurring.amount, recurring.months_per_period,
                )

        return Response({
            "recurring_expenses": RecurringExpenseSerializer(qs, many=True).data,
            "monthly_totals": dict(monthly_totals),
        })

    def post(self, request):
        actor = resolve_actor(request)

        serializer = RecurringExpenseCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = create_recurring_expense(actor, **serializer.validated_data)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(RecurringExpenseSerializer(result.data).data, status=status.HTTP_201_CREATED)


class RecurringExpenseDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "expenses.view")

        recurring = get_object_or_404(RecurringExpense, company=actor.company, pk=pk)
        data = RecurringExpenseSerializer(recurring).data
        data["payments"] = ExpenseSerializer(recurring.payments.all()[:24], many=True).data
        return Response(data)

    def patch(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(RecurringExpense, company=actor.company, pk=pk)

        serializer = RecurringExpenseUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = update_recurring_expense(actor, pk, **serializer.validated_data)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(RecurringExpenseSerializer(result.data).data)

    def delete(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(RecurringExpense, company=actor.company, pk=pk)

        result = deactivate_recurring_expense(actor, pk)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(RecurringExpenseSerializer(result.data).data)


class RecurringExpensePayView(APIView):
    """POST /api/accounting/recurring-expenses/<pk>/pay/"""
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(RecurringExpense, company=actor.company, pk=pk)

        serializer = RecurringExpensePaySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = pay_recurring_expense(actor, pk, **serializer.validated_data)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response({
            "expense": ExpenseSerializer(result.data["expense"]).data,
            "transaction": TransactionSerializer(result.data["transaction"]).data,
            "recurring_expense": RecurringExpenseSerializer(result.data["recurring"]).data,
        }, status=status.HTTP_201_CREATED)


# =============================================================================
# Distributions
# =============================================================================

class DistributionListCreateView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "distributions.view")

        qs = Distribution.objects.filter(company=actor.company).prefetch_related("shares__admin")
        return Response(DistributionSerializer(qs, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)

        serializer = DistributionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = create_distribution(actor, **serializer.validated_data)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(DistributionSerializer(result.data).data, status=status.HTTP_201_CREATED)


class DistributionDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "distributions.view")

        distribution = get_object_or_404(Distribution, company=actor.company, pk=pk)
        return Response(DistributionSerializer(distribution).data)


# =============================================================================
# Audit Log
# =============================================================================

class AuditLogListView(APIView):
    """GET /api/accounting/audit-log/?action=&resource_type="""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "company.manage_users")

        qs = AuditLog.objects.filter(company=actor.company)
        action = request.query_params.get("action")
        if action:
            qs = qs.filter(action=action)
        resource_type = request.query_params.get("resource_type")
        if resource_type:
            qs = qs.filter(resource_type=resource_type)
        return Response(AuditLogSerializer(qs[:_limit(request, 100, 500)], many=True).data)
