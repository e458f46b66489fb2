# accounting/models.py
"""
Accounting models for the back office.

All amounts are integer cents. A row of the Transaction ledger moves
money into a bank account (destination only), out of one (source only),
or is one leg of a linked pair (transfer, currency exchange).

Models:
- CompanySequence: Per-company counters (transaction and quote numbers)
- BankAccount: Where money sits, one currency per account
- Transaction: The ledger
- Payment / PaymentSchedule / PaymentAllocation: Money received and owed
- Quote / QuoteItem: What a student agreed to pay
- Mission: Work done by mentors and professors
- Expense / RecurringExpense: Money spent
- Distribution / DistributionShare: Profit paid out to founders
- AdminPosition: What each founder advanced and received
- AuditLog: Who did what
"""

import uuid

from django.conf import settings
from django.db import models

from accounts.models import Company


class Currency(models.TextChoices):
    EUR = "EUR", "Euro"
    MAD = "MAD", "Moroccan dirham"
    USD = "USD", "US dollar"


class CompanySequence(models.Model):
    """
    Per-company counters for sequential identifiers.

    Commands allocate numbers under select_for_update so two
    concurrent requests never receive the same value.
    """

    company = models.ForeignKey(
        Company,
        on_delete=models.CASCADE,
        related_name="sequences",
    )
    name = models.CharField(max_length=100)
    next_value = models.BigIntegerField(default=1)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["company", "name"],
                name="uniq_company_sequence_name",
            ),
        ]
        indexes = [
            models.Index(fields=["company", "name"], name="acct_seq_company_name_idx"),
        ]

    def __str__(self):
        return f"{self.company_id}:{self.name}={self.next_value}"


class BankAccount(models.Model):
    class AccountType(models.TextChoices):
        BUSINESS = "BUSINESS", "Business"
        PERSONAL = "PERSONAL", "Personal"
        SAVINGS = "SAVINGS", "Savings"
        CASH = "CASH", "Cash"

    public_id = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="bank_accounts")
    account_name = models.CharField(max_length=200)
    bank_name = models.CharField(max_length=200, blank=True, default="")
    currency = models.CharField(max_length=3, choices=Currency.choices)
    account_type = models.CharField(
        max_length=20,
        choices=AccountType.choices,
        default=AccountType.BUSINESS,
    )
    country = models.CharField(max_length=2, blank=True, default="")
    iban = models.CharField(max_length=64, blank=True, default="")
    is_admin_owned = models.BooleanField(
        default=False,
        help_text="Held personally by a founder on behalf of the company.",
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    is_active = models.BooleanField(default=True)
    notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["currency", "account_name"]
        indexes = [
            models.Index(fields=["company", "is_active"], name="acct_bank_active_idx"),
            models.Index(fields=["company", "currency"], name="acct_bank_currency_idx"),
        ]

    def __str__(self):
        return f"{self.account_name} ({self.currency})"

    @property
    def has_transactions(self) -> bool:
        return self.outgoing_transactions.exists() or self.incoming_transactions.exists()


class Transaction(models.Model):
    class Type(models.TextChoices):
        STUDENT_PAYMENT = "STUDENT_PAYMENT", "Student payment"
        MENTOR_PAYMENT = "MENTOR_PAYMENT", "Mentor payment"
        PROFESSOR_PAYMENT = "PROFESSOR_PAYMENT", "Professor payment"
        EXPENSE = "EXPENSE", "Expense"
        DISTRIBUTION = "DISTRIBUTION", "Distribution"
        TRANSFER = "TRANSFER", "Transfer"
        FX_EXCHANGE = "FX_EXCHANGE", "Currency exchange"

    public_id = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="transactions")
    transaction_number = models.CharField(max_length=20)
    date = models.DateField()
    type = models.CharField(max_length=20, choices=Type.choices)
    amount = models.BigIntegerField(help_text="Cents, always positive")
    currency = models.CharField(max_length=3, choices=Currency.choices)

    source_account = models.ForeignKey(
        BankAccount,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="outgoing_transactions",
    )
    destination_account = models.ForeignKey(
        BankAccount,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="incoming_transactions",
    )

    payment = models.ForeignKey(
        "accounting.Payment", on_delete=models.PROTECT, null=True, blank=True, related_name="transactions",
    )
    expense = models.ForeignKey(
        "accounting.Expense", on_delete=models.PROTECT, null=True, blank=True, related_name="transactions",
    )
    distribution = models.ForeignKey(
        "accounting.Distribution", on_delete=models.PROTECT, null=True, blank=True, related_name="transactions",
    )
    mission = models.ForeignKey(
        "accounting.Mission", on_delete=models.PROTECT, null=True, blank=True, related_name="transactions",
    )
    quote = models.ForeignKey(
        "accounting.Quote", on_delete=models.PROTECT, null=True, blank=True, related_name="transactions",
    )
    payment_schedule = models.ForeignKey(
        "accounting.PaymentSchedule", on_delete=models.PROTECT, null=True, blank=True, related_name="transactions",
    )
    student = models.ForeignKey(
        "people.Student", on_delete=models.PROTECT, null=True, blank=True, related_name="transactions",
    )
    mentor = models.ForeignKey(
        "people.Mentor", on_delete=models.PROTECT, null=True, blank=True, related_name="transactions",
    )
    professor = models.ForeignKey(
        "people.Professor", on_delete=models.PROTECT, null=True, blank=True, related_name="transactions",
    )
    linked_transaction = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="linked_from",
        help_text="Incoming leg of a transfer/exchange points at its outgoing leg.",
    )

    exchange_rate = models.DecimalField(max_digits=18, decimal_places=6, null=True, blank=True)
    fx_fees = models.BigIntegerField(default=0)
    description = models.CharField(max_length=500, blank=True, default="")
    notes = models.TextField(blank=True, default="")
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-date", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "transaction_number"],
                name="uniq_transaction_number_per_company",
            ),
        ]
        indexes = [
            models.Index(fields=["company", "date"], name="acct_txn_date_idx"),
            models.Index(fields=["company", "type"], name="acct_txn_type_idx"),
            models.Index(fields=["company", "currency"], name="acct_txn_currency_idx"),
        ]

    def __str__(self):
        return f"{self.transaction_number} {self.type} {self.amount} {self.currency}"

    @property
    def direction(self) -> str:
        if self.destination_account_id and not self.source_account_id:
            return "IN"
        if self.source_account_id and not self.destination_account_id:
            return "OUT"
        return "INTERNAL"


class Quote(models.Model):
    class Status(models.TextChoices):
        DRAFT = "DRAFT", "Draft"
        SENT = "SENT", "Sent"
        VALIDATED = "VALIDATED", "Validated"
        REJECTED = "REJECTED", "Rejected"
        EXPIRED = "EXPIRED", "Expired"

    public_id = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="quotes")
    quote_number = models.CharField(max_length=20)
    student = models.ForeignKey("people.Student", on_delete=models.PROTECT, related_name="quotes")
    total_amount = models.BigIntegerField()
    currency = models.CharField(max_length=3, choices=Currency.choices, default=Currency.EUR)
    payment_currency = models.CharField(max_length=3, choices=Currency.choices, blank=True, default="")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT)
    valid_until = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True, default="")
    sent_at = models.DateTimeField(null=True, blank=True)
    validated_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "quote_number"],
                name="uniq_quote_number_per_company",
            ),
        ]

    def __str__(self):
        return self.quote_number


class QuoteItem(models.Model):
    quote = models.ForeignKey(Quote, on_delete=models.CASCADE, related_name="items")
    pack = models.ForeignKey("people.Pack", on_delete=models.PROTECT, null=True, blank=True, related_name="+")
    description = models.CharField(max_length=500)
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.BigIntegerField()
    total_price = models.BigIntegerField()

    class Meta:
        ordering = ["id"]


class PaymentSchedule(models.Model):
    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        PARTIAL = "PARTIAL", "Partially paid"
        PAID = "PAID", "Paid"
        OVERDUE = "OVERDUE", "Overdue"
        CANCELLED = "CANCELLED", "Cancelled"

    OPEN_STATUSES = (Status.PENDING, Status.PARTIAL, Status.OVERDUE)

    public_id = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="payment_schedules")
    quote = models.ForeignKey(Quote, on_delete=models.CASCADE, related_name="schedules")
    student = models.ForeignKey("people.Student", on_delete=models.PROTECT, related_name="schedules")
    installment_number = models.PositiveIntegerField()
    amount = models.BigIntegerField()
    currency = models.CharField(max_length=3, choices=Currency.choices)
    schedule_currency = models.CharField(max_length=3, choices=Currency.choices, default=Currency.EUR)
    actual_currency = models.CharField(max_length=3, choices=Currency.choices, blank=True, default="")
    due_date = models.DateField()
    paid_amount = models.BigIntegerField(default=0)
    paid_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    description = models.CharField(max_length=500, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["due_date", "installment_number"]
        indexes = [
            models.Index(fields=["company", "status"], name="acct_sched_status_idx"),
            models.Index(fields=["company", "due_date"], name="acct_sched_due_idx"),
        ]

    def __str__(self):
        return f"{self.quote_id}#{self.installment_number} {self.amount} {self.currency}"

    @property
    def remaining(self) -> int:
        return max(self.amount - self.paid_amount, 0)


class Payment(models.Model):
    class Status(models.TextChoices):
        PENDING_VALIDATION = "PENDING_VALIDATION", "Pending validation"
        VALIDATED = "VALIDATED", "Validated"
        REJECTED = "REJECTED", "Rejected"

    class Method(models.TextChoices):
        BANK_TRANSFER = "BANK_TRANSFER", "Bank transfer"
        CASH = "CASH", "Cash"
        CHECK = "CHECK", "Check"
        CARD = "CARD", "Card"
        OTHER = "OTHER", "Other"

    public_id = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="payments")
    student = models.ForeignKey(
        "people.Student", on_delete=models.PROTECT, null=True, blank=True, related_name="payments",
    )
    mentor = models.ForeignKey(
        "people.Mentor", on_delete=models.PROTECT, null=True, blank=True, related_name="payments",
    )
    professor = models.ForeignKey(
        "people.Professor", on_delete=models.PROTECT, null=True, blank=True, related_name="payments",
    )
    amount = models.BigIntegerField()
    currency = models.CharField(max_length=3, choices=Currency.choices)
    payment_date = models.DateField()
    payment_method = models.CharField(max_length=20, choices=Method.choices, default=Method.BANK_TRANSFER)
    reference = models.CharField(max_length=200, blank=True, default="")
    bank_account = models.ForeignKey(
        BankAccount, on_delete=models.PROTECT, null=True, blank=True, related_name="payments",
    )
    schedule = models.ForeignKey(
        PaymentSchedule,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="direct_payments",
    )
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING_VALIDATION)
    validated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+",
    )
    validated_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True, default="")
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-payment_date", "-id"]
        indexes = [
            models.Index(fields=["company", "status"], name="acct_pay_status_idx"),
            models.Index(fields=["company", "payment_date"], name="acct_pay_date_idx"),
        ]

    def __str__(self):
        return f"Payment {self.amount} {self.currency} ({self.status})"

    @property
    def payer_kind(self) -> str:
        if self.student_id:
            return "student"
        if self.mentor_id:
            return "mentor"
        if self.professor_id:
            return "professor"
        return ""


class PaymentAllocation(models.Model):
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="+")
    payment = models.ForeignKey(Payment, on_delete=models.CASCADE, related_name="allocations")
    schedule = models.ForeignKey(PaymentSchedule, on_delete=models.CASCADE, related_name="allocations")
    amount = models.BigIntegerField()
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]


class Mission(models.Model):
    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        VALIDATED = "VALIDATED", "Validated"
        PAID = "PAID", "Paid"
        REJECTED = "REJECTED", "Rejected"
        CANCELLED = "CANCELLED", "Cancelled"

    public_id = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="missions")
    mentor = models.ForeignKey(
        "people.Mentor", on_delete=models.PROTECT, null=True, blank=True, related_name="missions",
    )
    professor = models.ForeignKey(
        "people.Professor", on_delete=models.PROTECT, null=True, blank=True, related_name="missions",
    )
    student = models.ForeignKey(
        "people.Student", on_delete=models.SET_NULL, null=True, blank=True, related_name="missions",
    )
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    date = models.DateField()
    hours = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    amount = models.BigIntegerField()
    currency = models.CharField(max_length=3, choices=Currency.choices, default=Currency.EUR)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    validated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+",
    )
    validated_at = models.DateTimeField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-date", "-id"]
        indexes = [
            models.Index(fields=["company", "status"], name="acct_mission_status_idx"),
        ]

    def __str__(self):
        return self.title


class ExpenseCategory(models.TextChoices):
    RENT = "RENT", "Rent"
    SALARIES = "SALARIES", "Salaries"
    SOFTWARE = "SOFTWARE", "Software"
    MARKETING = "MARKETING", "Marketing"
    TRAVEL = "TRAVEL", "Travel"
    OFFICE = "OFFICE", "Office"
    BANK_FEES = "BANK_FEES", "Bank fees"
    TAXES = "TAXES", "Taxes"
    OTHER = "OTHER", "Other"


class RecurringExpense(models.Model):
    class Frequency(models.TextChoices):
        MONTHLY = "MONTHLY", "Monthly"
        QUARTERLY = "QUARTERLY", "Quarterly"
        YEARLY = "YEARLY", "Yearly"

    MONTHS_PER_PERIOD = {
        Frequency.MONTHLY: 1,
        Frequency.QUARTERLY: 3,
        Frequency.YEARLY: 12,
    }

    public_id = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="recurring_expenses")
    name = models.CharField(max_length=200)
    category = models.CharField(max_length=20, choices=ExpenseCategory.choices, default=ExpenseCategory.OTHER)
    amount = models.BigIntegerField()
    currency = models.CharField(max_length=3, choices=Currency.choices, default=Currency.EUR)
    frequency = models.CharField(max_length=20, choices=Frequency.choices, default=Frequency.MONTHLY)
    next_due_date = models.DateField()
    last_paid_date = models.DateField(null=True, blank=True)
    paying_account = models.ForeignKey(
        BankAccount, on_delete=models.SET_NULL, null=True, blank=True, related_name="recurring_expenses",
    )
    supplier = models.CharField(max_length=200, blank=True, default="")
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["next_due_date", "name"]

    def __str__(self):
        return self.name

    @property
    def months_per_period(self) -> int:
        return self.MONTHS_PER_PERIOD[self.frequency]


class Expense(models.Model):
    Category = ExpenseCategory

    public_id = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="expenses")
    category = models.CharField(max_length=20, choices=Category.choices, default=Category.OTHER)
    amount = models.BigIntegerField()
    currency = models.CharField(max_length=3, choices=Currency.choices, default=Currency.EUR)
    supplier = models.CharField(max_length=200, blank=True, default="")
    description = models.CharField(max_length=500, blank=True, default="")
    expense_date = models.DateField()
    paying_account = models.ForeignKey(
        BankAccount, on_delete=models.PROTECT, null=True, blank=True, related_name="expenses",
    )
    is_recurring = models.BooleanField(default=False)
    recurring_expense = models.ForeignKey(
        RecurringExpense, on_delete=models.SET_NULL, null=True, blank=True, related_name="payments",
    )
    receipt_reference = models.CharField(max_length=200, blank=True, default="")
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-expense_date", "-id"]
        indexes = [
            models.Index(fields=["company", "expense_date"], name="acct_exp_date_idx"),
            models.Index(fields=["company", "category"], name="acct_exp_category_idx"),
        ]

    def __str__(self):
        return f"{self.category} {self.amount} {self.currency}"


class Distribution(models.Model):
    public_id = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="distributions")
    date = models.DateField()
    total_amount = models.BigIntegerField()
    investment_amount = models.BigIntegerField(default=0, help_text="Kept in the company")
    distributed_amount = models.BigIntegerField()
    currency = models.CharField(max_length=3, choices=Currency.choices)
    source_account = models.ForeignKey(
        BankAccount, on_delete=models.PROTECT, null=True, blank=True, related_name="distributions",
    )
    notes = models.TextField(blank=True, default="")
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-date", "-id"]


class DistributionShare(models.Model):
    distribution = models.ForeignKey(Distribution, on_delete=models.CASCADE, related_name="shares")
    admin = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="+")
    percentage = models.DecimalField(max_digits=5, decimal_places=2)
    amount = models.BigIntegerField()

    class Meta:
        ordering = ["id"]


class AdminPosition(models.Model):
    """Money a founder advanced to the company versus what they received back."""

    public_id = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="admin_positions")
    admin = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="+")
    currency = models.CharField(max_length=3, choices=Currency.choices)
    advanced = models.BigIntegerField(default=0)
    received = models.BigIntegerField(default=0)
    as_of_date = models.DateField()
    notes = models.TextField(blank=True, default="")
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["admin_id", "currency"]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "admin", "currency"],
                name="uniq_admin_position_currency",
            ),
        ]

    @property
    def balance(self) -> int:
        return self.advanced - self.received


class AuditLog(models.Model):
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="audit_logs")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+",
    )
    action = models.CharField(max_length=64)
    resource_type = models.CharField(max_length=64)
    resource_id = models.CharField(max_length=64)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["company", "resource_type", "resource_id"], name="acct_audit_resource_idx"),
            models.Index(fields=["company", "action"], name="acct_audit_action_idx"),
        ]

    def __str__(self):
        return f"{self.action} {self.resource_type}:{self.resource_id}"
