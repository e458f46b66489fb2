# accounting/admin.py
"""
Django admin configuration for accounting models.

The ledger and everything that writes to it is read-only here. Balances
are derived from Transaction rows, so edits must go through the command
layer (accounting/commands.py, accounting/billing_commands.py) which keeps
ledger rows, schedules and the audit log consistent.
"""

from django.contrib import admin
from django.utils.html import format_html

from .models import (
    AdminPosition,
    AuditLog,
    BankAccount,
    Distribution,
    DistributionShare,
    Expense,
    Mission,
    Payment,
    PaymentAllocation,
    PaymentSchedule,
    Quote,
    QuoteItem,
    RecurringExpense,
    Transaction,
)


class ReadOnlyModelAdmin(admin.ModelAdmin):
    """
    Base admin class for ledger-backed models.

    To modify these models, use the command layer.
    """

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class ReadOnlyInline(admin.TabularInline):
    extra = 0

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# =============================================================================
# Inline Admin Classes
# =============================================================================

class QuoteItemInline(ReadOnlyInline):
    model = QuoteItem
    readonly_fields = fields = ["pack", "description", "quantity", "unit_price", "total_price"]


class PaymentScheduleInline(ReadOnlyInline):
    model = PaymentSchedule
    readonly_fields = fields = ["installment_number", "amount", "currency", "due_date", "paid_amount", "status"]


class PaymentAllocationInline(ReadOnlyInline):
    model = PaymentAllocation
    readonly_fields = fields = ["schedule", "amount", "created_at"]


class DistributionShareInline(ReadOnlyInline):
    model = DistributionShare
    readonly_fields = fields = ["admin", "percentage", "amount"]


# =============================================================================
# Ledger
# =============================================================================

@admin.register(BankAccount)
class BankAccountAdmin(admin.ModelAdmin):
    """Bank accounts are reference data; only notes and flags change here."""

    list_display = ["account_name", "bank_name", "currency", "account_type", "is_admin_owned", "is_active", "company"]
    list_filter = ["company", "currency", "account_type", "is_active"]
    search_fields = ["account_name", "bank_name", "iban"]
    readonly_fields = ["public_id", "company", "currency", "created_at", "updated_at"]

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Transaction)
class TransactionAdmin(ReadOnlyModelAdmin):
    list_display = [
        "transaction_number", "date", "type", "amount", "currency",
        "source_account", "destination_account", "company",
    ]
    list_filter = ["company", "type", "currency"]
    search_fields = ["transaction_number", "description"]
    date_hierarchy = "date"
    list_select_related = ["source_account", "destination_account", "company"]
    readonly_fields = [f.name for f in Transaction._meta.fields]


# =============================================================================
# Billing
# =============================================================================

@admin.register(Quote)
class QuoteAdmin(ReadOnlyModelAdmin):
    list_display = ["quote_number", "student", "total_amount", "currency", "status_colored", "created_at"]
    list_filter = ["company", "status"]
    search_fields = ["quote_number", "student__last_name"]
    readonly_fields = [f.name for f in Quote._meta.fields]
    inlines = [QuoteItemInline, PaymentScheduleInline]

    def status_colored(self, obj):
        colors = {
            Quote.Status.DRAFT: "#999",
            Quote.Status.SENT: "#007bff",
            Quote.Status.VALIDATED: "#28a745",
            Quote.Status.REJECTED: "#dc3545",
            Quote.Status.EXPIRED: "#6c757d",
        }
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            colors.get(obj.status, "#000"),
            obj.get_status_display(),
        )
    status_colored.short_description = "Status"
    status_colored.admin_order_field = "status"


@admin.register(PaymentSchedule)
class PaymentScheduleAdmin(ReadOnlyModelAdmin):
    list_display = ["quote", "installment_number", "student", "amount", "currency", "due_date", "paid_amount", "status"]
    list_filter = ["company", "status", "currency"]
    readonly_fields = [f.name for f in PaymentSchedule._meta.fields]


@admin.register(Payment)
class PaymentAdmin(ReadOnlyModelAdmin):
    list_display = ["payment_date", "payer_kind", "amount", "currency", "bank_account", "status"]
    list_filter = ["company", "status", "currency", "payment_method"]
    search_fields = ["reference", "notes"]
    readonly_fields = [f.name for f in Payment._meta.fields]
    inlines = [PaymentAllocationInline]


@admin.register(Mission)
class MissionAdmin(ReadOnlyModelAdmin):
    list_display = ["date", "title", "mentor", "professor", "amount", "currency", "status"]
    list_filter = ["company", "status"]
    search_fields = ["title"]
    readonly_fields = [f.name for f in Mission._meta.fields]


# =============================================================================
# Expenses, Distributions, Positions
# =============================================================================

@admin.register(Expense)
class ExpenseAdmin(ReadOnlyModelAdmin):
    list_display = ["expense_date", "category", "amount", "currency", "supplier", "paying_account"]
    list_filter = ["company", "category", "currency"]
    search_fields = ["supplier", "description"]
    readonly_fields = [f.name for f in Expense._meta.fields]


@admin.register(RecurringExpense)
class RecurringExpenseAdmin(ReadOnlyModelAdmin):
    list_display = ["name", "amount", "currency", "frequency", "next_due_date", "is_active"]
    list_filter = ["company", "frequency", "is_active"]
    readonly_fields = [f.name for f in RecurringExpense._meta.fields]


@admin.register(Distribution)
class DistributionAdmin(ReadOnlyModelAdmin):
    list_display = ["date", "total_amount", "investment_amount", "distributed_amount", "currency"]
    list_filter = ["company", "currency"]
    readonly_fields = [f.name for f in Distribution._meta.fields]
    inlines = [DistributionShareInline]


@admin.register(AdminPosition)
class AdminPositionAdmin(ReadOnlyModelAdmin):
    list_display = ["admin", "currency", "advanced", "received", "as_of_date", "company"]
    list_filter = ["company", "currency"]
    readonly_fields = [f.name for f in AdminPosition._meta.fields]


@admin.register(AuditLog)
class AuditLogAdmin(ReadOnlyModelAdmin):
    list_display = ["created_at", "action", "resource_type", "resource_id", "user", "company"]
    list_filter = ["company", "action", "resource_type"]
    search_fields = ["resource_id"]
    readonly_fields = [f.name for f in AuditLog._meta.fields]
