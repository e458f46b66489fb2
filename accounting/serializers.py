# accounting/serializers.py
"""
Serializers for accounting API.

Note: These serializers are used for:
1. Input validation
2. Output formatting

The actual business logic happens in commands.py and billing_commands.py.
Amounts are integer cents on the wire.
"""

from rest_framework import serializers

from .ledger import type_label
from .models import (
    AdminPosition,
    AuditLog,
    BankAccount,
    Currency,
    Distribution,
    DistributionShare,
    Expense,
    ExpenseCategory,
    Mission,
    Payment,
    PaymentAllocation,
    PaymentSchedule,
    Quote,
    QuoteItem,
    RecurringExpense,
    Transaction,
)
from .periods import monthly_equivalent


def _person(obj):
    if obj is None:
        return None
    return {"id": obj.id, "name": obj.display_name}


# =============================================================================
# Bank Account Serializers
# =============================================================================

class BankAccountSerializer(serializers.ModelSerializer):
    """
    Bank account with ledger totals.

    Pass context={"movements": ledger.movements_by_account(company)} when
    serializing many accounts to avoid one query per account.
    """
    total_in = serializers.SerializerMethodField()
    total_out = serializers.SerializerMethodField()
    balance = serializers.SerializerMethodField()
    owner_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = BankAccount
        fields = [
            "id", "public_id", "account_name", "bank_name", "currency",
            "account_type", "country", "iban", "is_admin_owned", "owner_id",
            "is_active", "notes", "total_in", "total_out", "balance",
            "created_at", "updated_at",
        ]
        read_only_fields = fields

    def _movements(self, obj):
        cache = self.context.setdefault("_movements", {})
        if obj.id not in cache:
            movements = self.context.get("movements")
            if movements is not None:
                cache[obj.id] = movements.get(obj.id, (0, 0))
            else:
                from .ledger import account_movements
                total_in, total_out, _ = account_movements(obj)
                cache[obj.id] = (total_in, total_out)
        return cache[obj.id]

    def get_total_in(self, obj):
        return self._movements(obj)[0]

    def get_total_out(self, obj):
        return self._movements(obj)[1]

    def get_balance(self, obj):
        total_in, total_out = self._movements(obj)
        return total_in - total_out


class BankAccountCreateSerializer(serializers.Serializer):
    account_name = serializers.CharField(max_length=200)
    currency = serializers.ChoiceField(choices=Currency.choices)
    bank_name = serializers.CharField(max_length=200, required=False, allow_blank=True, default="")
    account_type = serializers.ChoiceField(
        choices=BankAccount.AccountType.choices, required=False, default=BankAccount.AccountType.BUSINESS,
    )
    country = serializers.CharField(max_length=2, required=False, allow_blank=True, default="")
    iban = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")
    is_admin_owned = serializers.BooleanField(required=False, default=False)
    owner_id = serializers.IntegerField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class BankAccountUpdateSerializer(serializers.Serializer):
    account_name = serializers.CharField(max_length=200, required=False)
    currency = serializers.ChoiceField(choices=Currency.choices, required=False)
    bank_name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    account_type = serializers.ChoiceField(choices=BankAccount.AccountType.choices, required=False)
    country = serializers.CharField(max_length=2, required=False, allow_blank=True)
    iban = serializers.CharField(max_length=64, required=False, allow_blank=True)
    is_admin_owned = serializers.BooleanField(required=False)
    owner_id = serializers.IntegerField(required=False, allow_null=True)
    is_active = serializers.BooleanField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


# =============================================================================
# Transaction Serializers
# =============================================================================

class TransactionSerializer(serializers.ModelSerializer):
    type_label = serializers.SerializerMethodField()
    direction = serializers.CharField(read_only=True)
    source_account_name = serializers.CharField(
        source="source_account.account_name", read_only=True, default=None,
    )
    destination_account_name = serializers.CharField(
        source="destination_account.account_name", read_only=True, default=None,
    )

    class Meta:
        model = Transaction
        fields = [
            "id", "public_id", "transaction_number", "date", "type", "type_label",
            "direction", "amount", "currency",
            "source_account", "source_account_name",
            "destination_account", "destination_account_name",
            "payment", "expense", "distribution", "mission", "quote",
            "payment_schedule", "student", "mentor", "professor",
            "linked_transaction", "exchange_rate", "fx_fees",
            "description", "notes", "created_by", "created_at",
        ]
        read_only_fields = fields

    def get_type_label(self, obj):
        return type_label(obj.type)


class TransactionPairSerializer(serializers.Serializer):
    """An outgoing leg and the incoming leg linked to it."""
    outgoing = TransactionSerializer(source="from", read_only=True)
    incoming = TransactionSerializer(source="to", read_only=True, allow_null=True)


class FxExchangeCreateSerializer(serializers.Serializer):
    from_account_id = serializers.IntegerField()
    to_account_id = serializers.IntegerField()
    from_amount = serializers.IntegerField()
    to_amount = serializers.IntegerField()
    exchange_rate = serializers.DecimalField(max_digits=18, decimal_places=6, required=False, allow_null=True)
    fx_fees = serializers.IntegerField(required=False, default=0)
    date = serializers.DateField(required=False)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class TransferCreateSerializer(serializers.Serializer):
    from_account_id = serializers.IntegerField()
    to_account_id = serializers.IntegerField()
    amount = serializers.IntegerField()
    date = serializers.DateField(required=False)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")


# =============================================================================
# Quote and Schedule Serializers
# =============================================================================

class QuoteItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = QuoteItem
        fields = ["id", "pack", "description", "quantity", "unit_price", "total_price"]
        read_only_fields = fields


class QuoteSerializer(serializers.ModelSerializer):
    items = QuoteItemSerializer(many=True, read_only=True)
    student = serializers.SerializerMethodField()
    schedule_count = serializers.SerializerMethodField()
    paid_amount = serializers.SerializerMethodField()

    class Meta:
        model = Quote
        fields = [
            "id", "public_id", "quote_number", "student", "total_amount",
            "currency", "payment_currency", "status", "valid_until", "notes",
            "sent_at", "validated_at", "rejected_at", "items",
            "schedule_count", "paid_amount", "created_at", "updated_at",
        ]
        read_only_fields = fields

    def get_student(self, obj):
        return _person(obj.student)

    def get_schedule_count(self, obj):
        return len(obj.schedules.all())

    def get_paid_amount(self, obj):
        return sum(s.paid_amount for s in obj.schedules.all())


class QuoteCreateSerializer(serializers.Serializer):
    student_id = serializers.IntegerField()
    payment_currency = serializers.ChoiceField(choices=Currency.choices, required=False, allow_null=True)
    valid_until = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class QuoteUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Quote.Status.choices, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    valid_until = serializers.DateField(required=False)
    payment_currency = serializers.ChoiceField(choices=Currency.choices, required=False, allow_blank=True)


class PaymentScheduleSerializer(serializers.ModelSerializer):
    remaining = serializers.IntegerField(read_only=True)
    quote_number = serializers.CharField(source="quote.quote_number", read_only=True)

    class Meta:
        model = PaymentSchedule
        fields = [
            "id", "public_id", "quote", "quote_number", "student",
            "installment_number", "amount", "currency", "schedule_currency",
            "actual_currency", "due_date", "paid_amount", "paid_date",
            "remaining", "status", "description",
        ]
        read_only_fields = fields


class ScheduleItemSerializer(serializers.Serializer):
    amount = serializers.IntegerField()
    due_date = serializers.DateField()
    currency = serializers.CharField(max_length=3, required=False, allow_blank=True)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True)


class GenerateSchedulesSerializer(serializers.Serializer):
    schedules = ScheduleItemSerializer(many=True, allow_empty=False)


# =============================================================================
# Payment Serializers
# =============================================================================

class PaymentAllocationSerializer(serializers.ModelSerializer):
    class Meta:
        model = PaymentAllocation
        fields = ["id", "payment", "schedule", "amount", "created_at"]
        read_only_fields = fields


class PaymentSerializer(serializers.ModelSerializer):
    payer_kind = serializers.CharField(read_only=True)
    payer = serializers.SerializerMethodField()
    bank_account_name = serializers.CharField(source="bank_account.account_name", read_only=True, default=None)

    class Meta:
        model = Payment
        fields = [
            "id", "public_id", "payer_kind", "payer", "student", "mentor", "professor",
            "amount", "currency", "payment_date", "payment_method", "reference",
            "bank_account", "bank_account_name", "schedule", "status",
            "validated_by", "validated_at", "notes", "created_at", "updated_at",
        ]
        read_only_fields = fields

    def get_payer(self, obj):
        return _person(obj.student or obj.mentor or obj.professor)


class StudentPaymentCreateSerializer(serializers.Serializer):
    student_id = serializers.IntegerField()
    amount = serializers.IntegerField()
    currency = serializers.ChoiceField(choices=Currency.choices)
    payment_date = serializers.DateField()
    bank_account_id = serializers.IntegerField()
    schedule_id = serializers.IntegerField(required=False, allow_null=True)
    payment_method = serializers.ChoiceField(
        choices=Payment.Method.choices, required=False, default=Payment.Method.BANK_TRANSFER,
    )
    reference = serializers.CharField(max_length=200, required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    auto_validate = serializers.BooleanField(required=False, default=False)


class StudentPaymentUpdateSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True)
    reference = serializers.CharField(max_length=200, required=False, allow_blank=True)
    payment_method = serializers.ChoiceField(choices=Payment.Method.choices, required=False)


class PaymentRejectSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class AllocationItemSerializer(serializers.Serializer):
    schedule_id = serializers.IntegerField()
    amount = serializers.IntegerField()


class AllocatePaymentSerializer(serializers.Serializer):
    allocations = AllocationItemSerializer(many=True, allow_empty=False)
    allow_cross_currency = serializers.BooleanField(required=False, default=True)


class TeamPaymentCreateSerializer(serializers.Serializer):
    mentor_id = serializers.IntegerField(required=False, allow_null=True)
    professor_id = serializers.IntegerField(required=False, allow_null=True)
    amount = serializers.IntegerField()
    currency = serializers.ChoiceField(choices=Currency.choices)
    payment_date = serializers.DateField()
    bank_account_id = serializers.IntegerField()
    mission_ids = serializers.ListField(child=serializers.IntegerField(), required=False, default=list)
    payment_method = serializers.ChoiceField(
        choices=Payment.Method.choices, required=False, default=Payment.Method.BANK_TRANSFER,
    )
    reference = serializers.CharField(max_length=200, required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):
        if bool(attrs.get("mentor_id")) == bool(attrs.get("professor_id")):
            raise serializers.ValidationError("Exactly one of mentor_id or professor_id is required.")
        return attrs


# =============================================================================
# Mission Serializers
# =============================================================================

class MissionSerializer(serializers.ModelSerializer):
    mentor = serializers.SerializerMethodField()
    professor = serializers.SerializerMethodField()
    student = serializers.SerializerMethodField()

    class Meta:
        model = Mission
        fields = [
            "id", "public_id", "mentor", "professor", "student", "title",
            "description", "date", "hours", "amount", "currency", "status",
            "validated_by", "validated_at", "paid_at", "rejection_reason",
            "created_at", "updated_at",
        ]
        read_only_fields = fields

    def get_mentor(self, obj):
        return _person(obj.mentor)

    def get_professor(self, obj):
        return _person(obj.professor)

    def get_student(self, obj):
        return _person(obj.student)


class MissionCreateSerializer(serializers.Serializer):
    mentor_id = serializers.IntegerField(required=False, allow_null=True)
    professor_id = serializers.IntegerField(required=False, allow_null=True)
    student_id = serializers.IntegerField(required=False, allow_null=True)
    title = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    date = serializers.DateField()
    hours = serializers.DecimalField(max_digits=6, decimal_places=2, required=False, allow_null=True)
    amount = serializers.IntegerField()
    currency = serializers.ChoiceField(choices=Currency.choices, required=False, default=Currency.EUR)
    auto_validate = serializers.BooleanField(required=False, default=False)


class MissionUpdateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    date = serializers.DateField(required=False)
    hours = serializers.DecimalField(max_digits=6, decimal_places=2, required=False, allow_null=True)
    amount = serializers.IntegerField(required=False)
    currency = serializers.ChoiceField(choices=Currency.choices, required=False)
    student_id = serializers.IntegerField(required=False, allow_null=True)


class MissionReviewSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=["approve", "reject"])
    reason = serializers.CharField(required=False, allow_blank=True, default="")


# =============================================================================
# Expense Serializers
# =============================================================================

class ExpenseSerializer(serializers.ModelSerializer):
    paying_account_name = serializers.CharField(source="paying_account.account_name", read_only=True, default=None)

    class Meta:
        model = Expense
        fields = [
            "id", "public_id", "category", "amount", "currency", "supplier",
            "description", "expense_date", "paying_account", "paying_account_name",
            "is_recurring", "recurring_expense", "receipt_reference",
            "created_at", "updated_at",
        ]
        read_only_fields = fields


class ExpenseCreateSerializer(serializers.Serializer):
    category = serializers.ChoiceField(choices=ExpenseCategory.choices)
    amount = serializers.IntegerField()
    currency = serializers.ChoiceField(choices=Currency.choices, required=False, default=Currency.EUR)
    expense_date = serializers.DateField()
    paying_account_id = serializers.IntegerField(required=False, allow_null=True)
    supplier = serializers.CharField(max_length=200, required=False, allow_blank=True, default="")
    description = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
    receipt_reference = serializers.CharField(max_length=200, required=False, allow_blank=True, default="")
    create_transaction_entry = serializers.BooleanField(required=False, default=True)


class ExpenseUpdateSerializer(serializers.Serializer):
    category = serializers.ChoiceField(choices=ExpenseCategory.choices, required=False)
    amount = serializers.IntegerField(required=False)
    currency = serializers.ChoiceField(choices=Currency.choices, required=False)
    expense_date = serializers.DateField(required=False)
    paying_account_id = serializers.IntegerField(required=False, allow_null=True)
    supplier = serializers.CharField(max_length=200, required=False, allow_blank=True)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True)
    receipt_reference = serializers.CharField(max_length=200, required=False, allow_blank=True)


class RecurringExpenseSerializer(serializers.ModelSerializer):
    monthly_equivalent = serializers.SerializerMethodField()

    class Meta:
        model = RecurringExpense
        fields = [
            "id", "public_id", "name", "category", "amount", "currency",
            "frequency", "next_due_date", "last_paid_date", "paying_account",
            "supplier", "is_active", "monthly_equivalent", "created_at", "updated_at",
        ]
        read_only_fields = fields

    def get_monthly_equivalent(self, obj):
        return monthly_equivalent(obj.amount, obj.months_per_period)


class RecurringExpenseCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    category = serializers.ChoiceField(choices=ExpenseCategory.choices, required=False, default=ExpenseCategory.OTHER)
    amount = serializers.IntegerField()
    currency = serializers.ChoiceField(choices=Currency.choices, required=False, default=Currency.EUR)
    frequency = serializers.ChoiceField(
        choices=RecurringExpense.Frequency.choices, required=False, default=RecurringExpense.Frequency.MONTHLY,
    )
    next_due_date = serializers.DateField()
    paying_account_id = serializers.IntegerField(required=False, allow_null=True)
    supplier = serializers.CharField(max_length=200, required=False, allow_blank=True, default="")


class RecurringExpenseUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200, required=False)
    category = serializers.ChoiceField(choices=ExpenseCategory.choices, required=False)
    amount = serializers.IntegerField(required=False)
    currency = serializers.ChoiceField(choices=Currency.choices, required=False)
    frequency = serializers.ChoiceField(choices=RecurringExpense.Frequency.choices, required=False)
    next_due_date = serializers.DateField(required=False)
    paying_account_id = serializers.IntegerField(required=False, allow_null=True)
    supplier = serializers.CharField(max_length=200, required=False, allow_blank=True)
    is_active = serializers.BooleanField(required=False)


class RecurringExpensePaySerializer(serializers.Serializer):
    payment_date = serializers.DateField(required=False)
    amount = serializers.IntegerField(required=False)
    paying_account_id = serializers.IntegerField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


# =============================================================================
# Distribution and Position Serializers
# =============================================================================

class DistributionShareSerializer(serializers.ModelSerializer):
    admin_name = serializers.SerializerMethodField()

    class Meta:
        model = DistributionShare
        fields = ["id", "admin", "admin_name", "percentage", "amount"]
        read_only_fields = fields

    def get_admin_name(self, obj):
        return obj.admin.name or obj.admin.email


class DistributionSerializer(serializers.ModelSerializer):
    shares = DistributionShareSerializer(many=True, read_only=True)
    has_transactions = serializers.SerializerMethodField()

    class Meta:
        model = Distribution
        fields = [
            "id", "public_id", "date", "total_amount", "investment_amount",
            "distributed_amount", "currency", "source_account", "notes",
            "shares", "has_transactions", "created_at",
        ]
        read_only_fields = fields

    def get_has_transactions(self, obj):
        return obj.transactions.exists()


class DistributionShareInputSerializer(serializers.Serializer):
    admin_id = serializers.IntegerField()
    percentage = serializers.DecimalField(max_digits=6, decimal_places=2, min_value=0)


class DistributionCreateSerializer(serializers.Serializer):
    date = serializers.DateField()
    total_amount = serializers.IntegerField()
    investment_amount = serializers.IntegerField(required=False, default=0)
    currency = serializers.ChoiceField(choices=Currency.choices, required=False, default=Currency.EUR)
    shares = DistributionShareInputSerializer(many=True, allow_empty=False)
    source_account_id = serializers.IntegerField(required=False, allow_null=True)
    update_positions = serializers.BooleanField(required=False, default=False)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class AdminPositionSerializer(serializers.ModelSerializer):
    balance = serializers.IntegerField(read_only=True)

    class Meta:
        model = AdminPosition
        fields = [
            "id", "public_id", "admin", "currency", "advanced", "received",
            "balance", "as_of_date", "notes", "updated_at",
        ]
        read_only_fields = fields


class AdminPositionUpsertSerializer(serializers.Serializer):
    admin_id = serializers.IntegerField()
    currency = serializers.ChoiceField(choices=Currency.choices)
    advanced = serializers.IntegerField(required=False, allow_null=True)
    received = serializers.IntegerField(required=False, allow_null=True)
    as_of_date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class AuditLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = AuditLog
        fields = ["id", "user", "action", "resource_type", "resource_id", "metadata", "created_at"]
        read_only_fields = fields
