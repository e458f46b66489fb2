# tests/test_validation_tasks.py
"""
Tests for alerts, scheduled tasks and calendar helpers.
"""

import datetime
from decimal import Decimal
from io import StringIO

import pytest
from django.core.management import CommandError, call_command

from accounting.billing_commands import generate_schedules, record_student_payment
from accounting.commands import create_recurring_expense, deactivate_recurring_expense
from accounting.models import Expense, Mission, PaymentSchedule
from accounting.periods import add_months, month_end, month_key, month_keys, monthly_equivalent
from accounting.tasks import mark_overdue_schedules, recurring_expenses_due
from accounting.validation import (
    expense_alerts,
    get_usable_account,
    mission_alerts,
    payment_alerts,
    transfer_alerts,
    validate_account_currency,
    validate_account_exists,
    validate_currency,
    validate_positive_amount,
)


# =============================================================================
# Validators and Alerts
# =============================================================================

class TestValidators:

    def test_positive_amount(self):
        assert validate_positive_amount(1) is None
        assert validate_positive_amount(0) == "amount must be positive (got: 0)"
        assert validate_positive_amount(None, "total_amount").startswith("total_amount")

    def test_currency(self):
        assert validate_currency("MAD") is None
        assert "not supported" in validate_currency("GBP")

    @pytest.mark.django_db
    def test_account_exists(self, company, eur_account, foreign_account):
        assert validate_account_exists(company, eur_account.id) == (eur_account, None)
        assert validate_account_exists(company, 999999) == (None, "Bank account 999999 not found.")
        assert validate_account_exists(company, foreign_account.id)[0] is None

    @pytest.mark.django_db
    def test_inactive_account_is_refused(self, company, eur_account):
        eur_account.is_active = False
        eur_account.save()

        account, error = validate_account_exists(company, eur_account.id)

        assert account is None
        assert error == f'Account "{eur_account.account_name}" is inactive.'

    @pytest.mark.django_db
    def test_account_currency(self, eur_account):
        assert validate_account_currency(eur_account, "EUR") is None
        assert "does not match expected currency (MAD)" in validate_account_currency(eur_account, "MAD")

        eur_account.is_active = False
        assert "inactive" in validate_account_currency(eur_account, "EUR")

    @pytest.mark.django_db
    def test_usable_account(self, company, eur_account, foreign_account):
        assert get_usable_account(company, eur_account.id) == (eur_account, None)
        assert get_usable_account(company, eur_account.id, "EUR") == (eur_account, None)

        account, error = get_usable_account(company, eur_account.id, "MAD")
        assert account is None
        assert "does not match" in error

        account, error = get_usable_account(company, foreign_account.id, "EUR")
        assert account is None
        assert "not found" in error


@pytest.mark.django_db
class TestPaymentAlerts:

    def test_large_amount(self, actor, company, student, eur_account, today):
        payment = record_student_payment(actor, student.id, 1500000, "EUR", today, eur_account.id).data

        alerts = payment_alerts(company, payment)

        assert [a.type for a in alerts] == ["LARGE_AMOUNT"]
        assert alerts[0].message == "Large payment amount: 15000.00 EUR"

    def test_potential_duplicate(self, actor, company, student, eur_account, today):
        first = record_student_payment(actor, student.id, 100000, "EUR", today, eur_account.id).data
        second = record_student_payment(
            actor, student.id, 102000, "EUR", today + datetime.timedelta(days=1), eur_account.id,
        ).data

        [alert] = payment_alerts(company, second)

        assert alert.type == "POTENTIAL_DUPLICATE"
        assert alert.to_dict()["data"]["duplicate_id"] == first.id

    def test_distant_dates_are_not_duplicates(self, actor, company, student, eur_account, today):
        record_student_payment(actor, student.id, 100000, "EUR", today, eur_account.id)
        later = record_student_payment(
            actor, student.id, 100000, "EUR", today + datetime.timedelta(days=3), eur_account.id,
        ).data

        assert payment_alerts(company, later) == []


class TestOtherAlerts:

    def test_expense_alerts(self):
        expense = Expense(amount=600000, currency="EUR", supplier="")

        assert [a.type for a in expense_alerts(expense)] == ["LARGE_EXPENSE", "NO_SUPPLIER"]

    def test_expense_without_alerts(self):
        assert expense_alerts(Expense(amount=100, currency="EUR", supplier="Cloud Inc")) == []

    def test_mission_alerts(self):
        assert [a.type for a in mission_alerts(Mission(amount=300000, currency="EUR"))] == [
            "LARGE_MISSION",
            "NO_HOURS",
        ]
        assert mission_alerts(Mission(amount=1000, currency="EUR", hours=Decimal("2.5"))) == []

    def test_transfer_alerts(self):
        assert transfer_alerts(1000000, "EUR") == []
        [alert] = transfer_alerts(1000001, "MAD")
        assert alert.type == "LARGE_TRANSFER"
        assert alert.level == "WARNING"


# =============================================================================
# Scheduled Tasks
# =============================================================================

@pytest.fixture
def installments(actor, validated_quote, today):
    return generate_schedules(actor, validated_quote.id, [
        {"amount": 100000, "due_date": today - datetime.timedelta(days=5)},
        {"amount": 200000, "due_date": today + datetime.timedelta(days=10)},
    ]).data


@pytest.mark.django_db
class TestMarkOverdueSchedules:

    def test_past_due_pending_becomes_overdue(self, installments, today):
        result = mark_overdue_schedules.apply(kwargs={"today": today.isoformat()}).get()

        assert result == {"updated": 1, "as_of": today.isoformat()}
        statuses = list(PaymentSchedule.objects.order_by("installment_number").values_list("status", flat=True))
        assert statuses == [PaymentSchedule.Status.OVERDUE, PaymentSchedule.Status.PENDING]

    def test_partially_paid_left_alone(self, actor, student, eur_account, installments, today):
        record_student_payment(
            actor, student.id, 100, "EUR", today, eur_account.id,
            schedule_id=installments[0].id, auto_validate=True,
        )

        result = mark_overdue_schedules.apply(kwargs={"today": today.isoformat()}).get()

        assert result["updated"] == 0

    def test_restricted_to_company(self, second_company, installments):
        result = mark_overdue_schedules.apply(kwargs={"company_id": second_company.id}).get()

        assert result["updated"] == 0

    def test_management_command(self, company, installments, today):
        out = StringIO()

        call_command("mark_overdue_schedules", "--company", company.slug, "--as-of", today.isoformat(), stdout=out)

        assert f"Marked 1 schedule(s) overdue as of {today.isoformat()}." in out.getvalue()

    def test_management_command_rejects_unknown_company(self, db):
        with pytest.raises(CommandError):
            call_command("mark_overdue_schedules", "--company", "nope")

    def test_management_command_rejects_bad_date(self, db):
        with pytest.raises(CommandError):
            call_command("mark_overdue_schedules", "--as-of", "31/01/2025")


@pytest.mark.django_db
class TestRecurringExpensesDue:

    def test_due_window(self, actor, today):
        create_recurring_expense(actor, "Rent", 120000, today + datetime.timedelta(days=3))
        create_recurring_expense(actor, "Internet", 5000, today - datetime.timedelta(days=2))
        create_recurring_expense(actor, "Insurance", 30000, today + datetime.timedelta(days=30))
        stopped = create_recurring_expense(actor, "Old tool", 1000, today).data
        deactivate_recurring_expense(actor, stopped.id)

        result = recurring_expenses_due.apply(kwargs={"days": 7, "today": today.isoformat()}).get()

        assert result["count"] == 2
        assert result["totals"] == {"test-consulting:EUR": 125000}
        assert {item["name"]: item["overdue"] for item in result["items"]} == {"Internet": True, "Rent": False}


# =============================================================================
# Calendar Helpers
# =============================================================================

class TestPeriods:

    @pytest.mark.parametrize("start, months, expected", [
        (datetime.date(2025, 1, 31), 1, datetime.date(2025, 2, 28)),
        (datetime.date(2024, 1, 31), 1, datetime.date(2024, 2, 29)),
        (datetime.date(2025, 11, 30), 3, datetime.date(2026, 2, 28)),
        (datetime.date(2025, 5, 15), 12, datetime.date(2026, 5, 15)),
        (datetime.date(2025, 3, 31), -1, datetime.date(2025, 2, 28)),
    ])
    def test_add_months(self, start, months, expected):
        assert add_months(start, months) == expected

    def test_month_keys_cross_year(self):
        assert month_keys(datetime.date(2025, 11, 20), 3) == ["2025-11", "2025-12", "2026-01"]

    def test_month_end_and_key(self):
        assert month_end(datetime.date(2024, 2, 3)) == datetime.date(2024, 2, 29)
        assert month_key(datetime.date(2025, 7, 1)) == "2025-07"

    def test_monthly_equivalent_rounds_half_up(self):
        assert monthly_equivalent(1000, 3) == 333
        assert monthly_equivalent(1001, 2) == 501
        assert monthly_equivalent(120000, 12) == 10000
