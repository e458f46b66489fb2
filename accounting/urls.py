# accounting/urls.py
"""
URL configuration for accounting API.

Endpoints:
- /bank-accounts/ - Bank accounts with ledger balances
- /fx-exchanges/, /transfers/ - Linked ledger pairs
- /quotes/ - Quotes, /quotes/<id>/schedules/ - installments
- /student-payments/ - Student payments with validate/reject/allocations actions
- /team-payments/ - Mentor and professor payments
- /missions/ - Missions with review action
- /expenses/, /recurring-expenses/ - Expenses
- /distributions/ - Profit distributions
- /audit-log/ - Audit trail
"""

from django.urls import path

from .views import (
    BankAccountListCreateView,
    BankAccountDetailView,
    FxExchangeListCreateView,
    TransferListCreateView,
    ExpenseListCreateView,
    ExpenseDetailView,
    RecurringExpenseListCreateView,
    RecurringExpenseDetailView,
    RecurringExpensePayView,
    DistributionListCreateView,
    DistributionDetailView,
    AuditLogListView,
)
from .billing_views import (
    QuoteListCreateView,
    QuoteDetailView,
    QuoteScheduleView,
    PaymentScheduleListView,
    StudentPaymentListCreateView,
    StudentPaymentDetailView,
    StudentPaymentValidateView,
    StudentPaymentRejectView,
    PaymentAllocationView,
    TeamPaymentListCreateView,
    MissionListCreateView,
    MissionDetailView,
    MissionReviewView,
)

app_name = "accounting"

urlpatterns = [
    # Bank accounts
    path("bank-accounts/", BankAccountListCreateView.as_view(), name="bank-account-list"),
    path("bank-accounts/<int:pk>/", BankAccountDetailView.as_view(), name="bank-account-detail"),

    # Ledger pairs
    path("fx-exchanges/", FxExchangeListCreateView.as_view(), name="fx-exchange-list"),
    path("transfers/", TransferListCreateView.as_view(), name="transfer-list"),

    # Quotes and schedules
    path("quotes/", QuoteListCreateView.as_view(), name="quote-list"),
    path("quotes/<int:pk>/", QuoteDetailView.as_view(), name="quote-detail"),
    path("quotes/<int:pk>/schedules/", QuoteScheduleView.as_view(), name="quote-schedules"),
    path("schedules/", PaymentScheduleListView.as_view(), name="schedule-list"),

    # Payments
    path("student-payments/", StudentPaymentListCreateView.as_view(), name="student-payment-list"),
    path("student-payments/<int:pk>/", StudentPaymentDetailView.as_view(), name="student-payment-detail"),
    path("student-payments/<int:pk>/validate/", StudentPaymentValidateView.as_view(), name="student-payment-validate"),
    path("student-payments/<int:pk>/reject/", StudentPaymentRejectView.as_view(), name="student-payment-reject"),
    path("student-payments/<int:pk>/allocations/", PaymentAllocationView.as_view(), name="student-payment-allocations"),
    path("team-payments/", TeamPaymentListCreateView.as_view(), name="team-payment-list"),

    # Missions
    path("missions/", MissionListCreateView.as_view(), name="mission-list"),
    path("missions/<int:pk>/", MissionDetailView.as_view(), name="mission-detail"),
    path("missions/<int:pk>/review/", MissionReviewView.as_view(), name="mission-review"),

    # Expenses
    path("expenses/", ExpenseListCreateView.as_view(), name="expense-list"),
    path("expenses/<int:pk>/", ExpenseDetailView.as_view(), name="expense-detail"),
    path("recurring-expenses/", RecurringExpenseListCreateView.as_view(), name="recurring-expense-list"),
    path("recurring-expenses/<int:pk>/", RecurringExpenseDetailView.as_view(), name="recurring-expense-detail"),
    path("recurring-expenses/<int:pk>/pay/", RecurringExpensePayView.as_view(), name="recurring-expense-pay"),

    # Distributions
    path("distributions/", DistributionListCreateView.as_view(), name="distribution-list"),
    path("distributions/<int:pk>/", DistributionDetailView.as_view(), name="distribution-detail"),

    # Audit
    path("audit-log/", AuditLogListView.as_view(), name="audit-log"),
]
