import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

CURRENCIES = [("EUR", "Euro"), ("MAD", "Moroccan dirham"), ("USD", "US dollar")]
EXPENSE_CATEGORIES = [
    ("RENT", "Rent"),
    ("SALARIES", "Salaries"),
    ("SOFTWARE", "Software"),
    ("MARKETING", "Marketing"),
    ("TRAVEL", "Travel"),
    ("OFFICE", "Office"),
    ("BANK_FEES", "Bank fees"),
    ("TAXES", "Taxes"),
    ("OTHER", "Other"),
]


def _id():
    return ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID"))


def _public_id():
    return ("public_id", models.UUIDField(default=uuid.uuid4, editable=False, unique=True))


def _user_fk(name):
    return (name, models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL))


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
        ("people", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="CompanySequence",
            fields=[
                _id(),
                ("name", models.CharField(max_length=100)),
                ("next_value", models.BigIntegerField(default=1)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="sequences", to="accounts.company")),
            ],
            options={
                "indexes": [models.Index(fields=["company", "name"], name="acct_seq_company_name_idx")],
                "constraints": [models.UniqueConstraint(fields=("company", "name"), name="uniq_company_sequence_name")],
            },
        ),
        migrations.CreateModel(
            name="BankAccount",
            fields=[
                _id(),
                _public_id(),
                ("account_name", models.CharField(max_length=200)),
                ("bank_name", models.CharField(blank=True, default="", max_length=200)),
                ("currency", models.CharField(choices=CURRENCIES, max_length=3)),
                ("account_type", models.CharField(choices=[("BUSINESS", "Business"), ("PERSONAL", "Personal"), ("SAVINGS", "Savings"), ("CASH", "Cash")], default="BUSINESS", max_length=20)),
                ("country", models.CharField(blank=True, default="", max_length=2)),
                ("iban", models.CharField(blank=True, default="", max_length=64)),
                ("is_admin_owned", models.BooleanField(default=False, help_text="Held personally by a founder on behalf of the company.")),
                ("is_active", models.BooleanField(default=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="bank_accounts", to="accounts.company")),
                _user_fk("owner"),
            ],
            options={
                "ordering": ["currency", "account_name"],
                "indexes": [
                    models.Index(fields=["company", "is_active"], name="acct_bank_active_idx"),
                    models.Index(fields=["company", "currency"], name="acct_bank_currency_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Quote",
            fields=[
                _id(),
                _public_id(),
                ("quote_number", models.CharField(max_length=20)),
                ("total_amount", models.BigIntegerField()),
                ("currency", models.CharField(choices=CURRENCIES, default="EUR", max_length=3)),
                ("payment_currency", models.CharField(blank=True, choices=CURRENCIES, default="", max_length=3)),
                ("status", models.CharField(choices=[("DRAFT", "Draft"), ("SENT", "Sent"), ("VALIDATED", "Validated"), ("REJECTED", "Rejected"), ("EXPIRED", "Expired")], default="DRAFT", max_length=20)),
                ("valid_until", models.DateField(blank=True, null=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("sent_at", models.DateTimeField(blank=True, null=True)),
                ("validated_at", models.DateTimeField(blank=True, null=True)),
                ("rejected_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="quotes", to="accounts.company")),
                ("student", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="quotes", to="people.student")),
                _user_fk("created_by"),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "constraints": [models.UniqueConstraint(fields=("company", "quote_number"), name="uniq_quote_number_per_company")],
            },
        ),
        migrations.CreateModel(
            name="QuoteItem",
            fields=[
                _id(),
                ("description", models.CharField(max_length=500)),
                ("quantity", models.PositiveIntegerField(default=1)),
                ("unit_price", models.BigIntegerField()),
                ("total_price", models.BigIntegerField()),
                ("pack", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="+", to="people.pack")),
                ("quote", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="accounting.quote")),
            ],
            options={
                "ordering": ["id"],
            },
        ),
        migrations.CreateModel(
            name="PaymentSchedule",
            fields=[
                _id(),
                _public_id(),
                ("installment_number", models.PositiveIntegerField()),
                ("amount", models.BigIntegerField()),
                ("currency", models.CharField(choices=CURRENCIES, max_length=3)),
                ("schedule_currency", models.CharField(choices=CURRENCIES, default="EUR", max_length=3)),
                ("actual_currency", models.CharField(blank=True, choices=CURRENCIES, default="", max_length=3)),
                ("due_date", models.DateField()),
                ("paid_amount", models.BigIntegerField(default=0)),
                ("paid_date", models.DateField(blank=True, null=True)),
                ("status", models.CharField(choices=[("PENDING", "Pending"), ("PARTIAL", "Partially paid"), ("PAID", "Paid"), ("OVERDUE", "Overdue"), ("CANCELLED", "Cancelled")], default="PENDING", max_length=20)),
                ("description", models.CharField(blank=True, default="", max_length=500)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="payment_schedules", to="accounts.company")),
                ("quote", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="schedules", to="accounting.quote")),
                ("student", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="schedules", to="people.student")),
            ],
            options={
                "ordering": ["due_date", "installment_number"],
                "indexes": [
                    models.Index(fields=["company", "status"], name="acct_sched_status_idx"),
                    models.Index(fields=["company", "due_date"], name="acct_sched_due_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                _id(),
                _public_id(),
                ("amount", models.BigIntegerField()),
                ("currency", models.CharField(choices=CURRENCIES, max_length=3)),
                ("payment_date", models.DateField()),
                ("payment_method", models.CharField(choices=[("BANK_TRANSFER", "Bank transfer"), ("CASH", "Cash"), ("CHECK", "Check"), ("CARD", "Card"), ("OTHER", "Other")], default="BANK_TRANSFER", max_length=20)),
                ("reference", models.CharField(blank=True, default="", max_length=200)),
                ("status", models.CharField(choices=[("PENDING_VALIDATION", "Pending validation"), ("VALIDATED", "Validated"), ("REJECTED", "Rejected")], default="PENDING_VALIDATION", max_length=20)),
                ("validated_at", models.DateTimeField(blank=True, null=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="payments", to="accounts.company")),
                ("student", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="payments", to="people.student")),
                ("mentor", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="payments", to="people.mentor")),
                ("professor", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="payments", to="people.professor")),
                ("bank_account", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="payments", to="accounting.bankaccount")),
                ("schedule", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="direct_payments", to="accounting.paymentschedule")),
                _user_fk("validated_by"),
                _user_fk("created_by"),
            ],
            options={
                "ordering": ["-payment_date", "-id"],
                "indexes": [
                    models.Index(fields=["company", "status"], name="acct_pay_status_idx"),
                    models.Index(fields=["company", "payment_date"], name="acct_pay_date_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PaymentAllocation",
            fields=[
                _id(),
                ("amount", models.BigIntegerField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="+", to="accounts.company")),
                ("payment", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="allocations", to="accounting.payment")),
                ("schedule", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="allocations", to="accounting.paymentschedule")),
                _user_fk("created_by"),
            ],
            options={
                "ordering": ["created_at", "id"],
            },
        ),
        migrations.CreateModel(
            name="Mission",
            fields=[
                _id(),
                _public_id(),
                ("title", models.CharField(max_length=200)),
                ("description", models.TextField(blank=True, default="")),
                ("date", models.DateField()),
                ("hours", models.DecimalField(blank=True, decimal_places=2, max_digits=6, null=True)),
                ("amount", models.BigIntegerField()),
                ("currency", models.CharField(choices=CURRENCIES, default="EUR", max_length=3)),
                ("status", models.CharField(choices=[("PENDING", "Pending"), ("VALIDATED", "Validated"), ("PAID", "Paid"), ("REJECTED", "Rejected"), ("CANCELLED", "Cancelled")], default="PENDING", max_length=20)),
                ("validated_at", models.DateTimeField(blank=True, null=True)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("rejection_reason", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="missions", to="accounts.company")),
                ("mentor", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="missions", to="people.mentor")),
                ("professor", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="missions", to="people.professor")),
                ("student", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="missions", to="people.student")),
                _user_fk("validated_by"),
            ],
            options={
                "ordering": ["-date", "-id"],
                "indexes": [models.Index(fields=["company", "status"], name="acct_mission_status_idx")],
            },
        ),
        migrations.CreateModel(
            name="RecurringExpense",
            fields=[
                _id(),
                _public_id(),
                ("name", models.CharField(max_length=200)),
                ("category", models.CharField(choices=EXPENSE_CATEGORIES, default="OTHER", max_length=20)),
                ("amount", models.BigIntegerField()),
                ("currency", models.CharField(choices=CURRENCIES, default="EUR", max_length=3)),
                ("frequency", models.CharField(choices=[("MONTHLY", "Monthly"), ("QUARTERLY", "Quarterly"), ("YEARLY", "Yearly")], default="MONTHLY", max_length=20)),
                ("next_due_date", models.DateField()),
                ("last_paid_date", models.DateField(blank=True, null=True)),
                ("supplier", models.CharField(blank=True, default="", max_length=200)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="recurring_expenses", to="accounts.company")),
                ("paying_account", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="recurring_expenses", to="accounting.bankaccount")),
            ],
            options={
                "ordering": ["next_due_date", "name"],
            },
        ),
        migrations.CreateModel(
            name="Expense",
            fields=[
                _id(),
                _public_id(),
                ("category", models.CharField(choices=EXPENSE_CATEGORIES, default="OTHER", max_length=20)),
                ("amount", models.BigIntegerField()),
                ("currency", models.CharField(choices=CURRENCIES, default="EUR", max_length=3)),
                ("supplier", models.CharField(blank=True, default="", max_length=200)),
                ("description", models.CharField(blank=True, default="", max_length=500)),
                ("expense_date", models.DateField()),
                ("is_recurring", models.BooleanField(default=False)),
                ("receipt_reference", models.CharField(blank=True, default="", max_length=200)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="expenses", to="accounts.company")),
                ("paying_account", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="expenses", to="accounting.bankaccount")),
                ("recurring_expense", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="payments", to="accounting.recurringexpense")),
                _user_fk("created_by"),
            ],
            options={
                "ordering": ["-expense_date", "-id"],
                "indexes": [
                    models.Index(fields=["company", "expense_date"], name="acct_exp_date_idx"),
                    models.Index(fields=["company", "category"], name="acct_exp_category_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Distribution",
            fields=[
                _id(),
                _public_id(),
                ("date", models.DateField()),
                ("total_amount", models.BigIntegerField()),
                ("investment_amount", models.BigIntegerField(default=0, help_text="Kept in the company")),
                ("distributed_amount", models.BigIntegerField()),
                ("currency", models.CharField(choices=CURRENCIES, max_length=3)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="distributions", to="accounts.company")),
                ("source_account", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="distributions", to="accounting.bankaccount")),
                _user_fk("created_by"),
            ],
            options={
                "ordering": ["-date", "-id"],
            },
        ),
        migrations.CreateModel(
            name="DistributionShare",
            fields=[
                _id(),
                ("percentage", models.DecimalField(decimal_places=2, max_digits=5)),
                ("amount", models.BigIntegerField()),
                ("admin", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("distribution", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="shares", to="accounting.distribution")),
            ],
            options={
                "ordering": ["id"],
            },
        ),
        migrations.CreateModel(
            name="AdminPosition",
            fields=[
                _id(),
                _public_id(),
                ("currency", models.CharField(choices=CURRENCIES, max_length=3)),
                ("advanced", models.BigIntegerField(default=0)),
                ("received", models.BigIntegerField(default=0)),
                ("as_of_date", models.DateField()),
                ("notes", models.TextField(blank=True, default="")),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("admin", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="admin_positions", to="accounts.company")),
            ],
            options={
                "ordering": ["admin_id", "currency"],
                "constraints": [models.UniqueConstraint(fields=("company", "admin", "currency"), name="uniq_admin_position_currency")],
            },
        ),
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                _id(),
                ("action", models.CharField(max_length=64)),
                ("resource_type", models.CharField(max_length=64)),
                ("resource_id", models.CharField(max_length=64)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="audit_logs", to="accounts.company")),
                _user_fk("user"),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["company", "resource_type", "resource_id"], name="acct_audit_resource_idx"),
                    models.Index(fields=["company", "action"], name="acct_audit_action_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Transaction",
            fields=[
                _id(),
                _public_id(),
                ("transaction_number", models.CharField(max_length=20)),
                ("date", models.DateField()),
                ("type", models.CharField(choices=[("STUDENT_PAYMENT", "Student payment"), ("MENTOR_PAYMENT", "Mentor payment"), ("PROFESSOR_PAYMENT", "Professor payment"), ("EXPENSE", "Expense"), ("DISTRIBUTION", "Distribution"), ("TRANSFER", "Transfer"), ("FX_EXCHANGE", "Currency exchange")], max_length=20)),
                ("amount", models.BigIntegerField(help_text="Cents, always positive")),
                ("currency", models.CharField(choices=CURRENCIES, max_length=3)),
                ("exchange_rate", models.DecimalField(blank=True, decimal_places=6, max_digits=18, null=True)),
                ("fx_fees", models.BigIntegerField(default=0)),
                ("description", models.CharField(blank=True, default="", max_length=500)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="transactions", to="accounts.company")),
                ("source_account", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="outgoing_transactions", to="accounting.bankaccount")),
                ("destination_account", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="incoming_transactions", to="accounting.bankaccount")),
                ("payment", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="transactions", to="accounting.payment")),
                ("expense", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="transactions", to="accounting.expense")),
                ("distribution", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="transactions", to="accounting.distribution")),
                ("mission", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="transactions", to="accounting.mission")),
                ("quote", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="transactions", to="accounting.quote")),
                ("payment_schedule", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="transactions", to="accounting.paymentschedule")),
                ("student", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="transactions", to="people.student")),
                ("mentor", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="transactions", to="people.mentor")),
                ("professor", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="transactions", to="people.professor")),
                ("linked_transaction", models.ForeignKey(blank=True, help_text="Incoming leg of a transfer/exchange points at its outgoing leg.", null=True, on_delete=django.db.models.deletion.PROTECT, related_name="linked_from", to="accounting.transaction")),
                _user_fk("created_by"),
            ],
            options={
                "ordering": ["-date", "-id"],
                "indexes": [
                    models.Index(fields=["company", "date"], name="acct_txn_date_idx"),
                    models.Index(fields=["company", "type"], name="acct_txn_type_idx"),
                    models.Index(fields=["company", "currency"], name="acct_txn_currency_idx"),
                ],
                "constraints": [models.UniqueConstraint(fields=("company", "transaction_number"), name="uniq_transaction_number_per_company")],
            },
        ),
    ]
