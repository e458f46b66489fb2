# tests/test_reports.py
"""
Tests for the read-side reports.

Tests cover:
- Cash position per account and currency
- Working-capital need (BFR) over open quotes
- Monthly cash forecast
- Founder positions and rebalancing suggestions
- Journal filtering, paging and exports
- Self-service pages
"""

import csv
import datetime
import io

import pytest
from django.contrib.auth import get_user_model

from accounting import ledger
from accounting.billing_commands import (
    create_mission,
    create_quote,
    generate_schedules,
    record_student_payment,
)
from accounting.commands import create_expense, create_recurring_expense, create_transfer, upsert_admin_position
from accounting.models import Expense, Transaction
from accounts.authz import ActorContext
from accounts.models import CompanyMembership
from accounts.permissions import grant_role_defaults
from people.models import Student, StudentPack
from reports.bfr import bfr_report
from reports.cashflow import cashflow_report
from reports.exports import (
    JOURNAL_EXPORT_COLUMNS,
    ExportFormat,
    Money,
    create_export_response,
    format_value,
    prepare_journal_export_data,
)
from reports.forecast import forecast_report
from reports.journal import filter_transactions, journal_detail, journal_page, journal_totals
from reports.positions import positions_summary, rebalancing_suggestions
from reports.self_service import linked_person, student_overview, team_member_overview


def fund(company, account, amount, date=datetime.date(2025, 1, 10), **links):
    return ledger.record_transaction(
        company, None,
        date=date,
        type=Transaction.Type.STUDENT_PAYMENT,
        amount=amount,
        currency=account.currency,
        destination_account=account,
        **links,
    )


# =============================================================================
# Cash Flow
# =============================================================================

@pytest.mark.django_db
class TestCashflowReport:

    def test_balances_per_account_and_currency(self, company, eur_account, founder_eur_account, mad_account):
        fund(company, eur_account, 1000)
        fund(company, founder_eur_account, 500)
        fund(company, mad_account, 9000)

        report = cashflow_report(company)

        assert len(report["accounts"]) == 3
        assert report["totals_by_currency"]["EUR"] == {"total_in": 1500, "total_out": 0, "balance": 1500}
        assert report["totals_by_currency"]["MAD"]["balance"] == 9000
        assert report["admin_totals_by_currency"] == {"EUR": {"total_in": 500, "total_out": 0, "balance": 500}}
        assert [a["account_name"] for a in report["admin_accounts"]] == ["Owner EUR"]
        assert len(report["accounts_by_currency"]["EUR"]) == 2

    def test_inactive_accounts_hidden(self, company, eur_account):
        eur_account.is_active = False
        eur_account.save()

        assert cashflow_report(company)["accounts"] == []


# =============================================================================
# BFR
# =============================================================================

@pytest.mark.django_db
class TestBfrReport:

    def test_open_quotes_split_overdue_and_upcoming(self, actor, company, validated_quote, today):
        generate_schedules(actor, validated_quote.id, [
            {"amount": 100000, "due_date": today - datetime.timedelta(days=3)},
            {"amount": 200000, "due_date": today + datetime.timedelta(days=20)},
        ])

        report = bfr_report(company, today=today)

        [entry] = report["students"]
        assert entry["student_name"] == "Sara Alaoui"
        assert entry["remaining"] == 300000
        assert entry["overdue"] == 100000
        assert entry["upcoming"] == 200000
        assert report["totals_by_currency"]["EUR"]["student_count"] == 1
        assert [s["overdue"] for s in report["overdue_students"]] == [100000]
        assert [p["amount"] for p in report["upcoming_payments"]] == [200000]
        assert report["summary"]["currencies"] == ["EUR"]

    def test_draft_quotes_ignored(self, actor, company, pack):
        other = Student.objects.create(company=company, first_name="Omar")
        StudentPack.objects.create(company=company, student=other, pack=pack, custom_price=100000)
        create_quote(actor, other.id)

        report = bfr_report(company)

        assert report["students"] == []
        assert report["summary"]["total_students"] == 0


# =============================================================================
# Forecast
# =============================================================================

@pytest.mark.django_db
class TestForecastReport:

    @pytest.mark.parametrize("months", [0, 25])
    def test_months_out_of_range(self, company, months):
        with pytest.raises(ValueError):
            forecast_report(company, months)

    def test_projection(self, actor, company, validated_quote, mentor, eur_account, founder_eur_account):
        today = datetime.date(2025, 1, 15)
        generate_schedules(actor, validated_quote.id, [
            {"amount": 100000, "due_date": datetime.date(2025, 1, 5)},
            {"amount": 200000, "due_date": datetime.date(2025, 3, 10)},
        ])
        create_recurring_expense(actor, "Office rent", 1000, datetime.date(2025, 1, 31))
        create_mission(actor, "Coaching", datetime.date(2025, 2, 10), 20000, mentor_id=mentor.id)
        fund(company, founder_eur_account, 50000)
        fund(company, eur_account, 999)

        report = forecast_report(company, 3, today=today)

        assert report["period"] == {"from": today, "to": datetime.date(2025, 3, 31), "months": 3}
        assert report["current_balance"] == {"EUR": 50000}
        assert report["revenue"]["by_month_currency"] == {
            "2025-01": {"EUR": 100000},
            "2025-03": {"EUR": 200000},
        }
        assert report["expenses"]["by_month_currency"] == {
            "2025-01": {"EUR": 1000},
            "2025-02": {"EUR": 21000},
            "2025-03": {"EUR": 1000},
        }
        assert report["expenses"]["missions_count"] == 1
        assert report["expenses"]["recurring_count"] == 1
        assert len(report["expenses"]["details"]) == 4
        assert [(r["month"], r["opening"], r["closing"]) for r in report["projection"]] == [
            ("2025-01", 50000, 149000),
            ("2025-02", 149000, 128000),
            ("2025-03", 128000, 327000),
        ]

    def test_recurring_occurrences_clamp_month_end(self, actor, company):
        create_recurring_expense(actor, "Office rent", 1000, datetime.date(2025, 1, 31))

        report = forecast_report(company, 4, today=datetime.date(2025, 1, 1))

        due_dates = [d["due_date"] for d in report["expenses"]["details"]]
        assert due_dates == [
            datetime.date(2025, 1, 31),
            datetime.date(2025, 2, 28),
            datetime.date(2025, 3, 31),
            datetime.date(2025, 4, 30),
        ]


# =============================================================================
# Founder Positions
# =============================================================================

class TestRebalancingSuggestions:

    NAMES = {1: "Amine", 2: "Badr", 3: "Chafik"}

    def test_largest_debtor_pays_largest_creditor(self):
        balances = {1: {"EUR": 300}, 2: {"EUR": -200}, 3: {"EUR": -100}}

        suggestions = rebalancing_suggestions(balances, self.NAMES)

        assert [(s["from_admin_id"], s["to_admin_id"], s["amount"]) for s in suggestions] == [
            (2, 1, 200),
            (3, 1, 100),
        ]
        assert suggestions[0]["from_admin"] == "Badr"

    def test_currencies_handled_separately(self):
        balances = {1: {"EUR": 100, "MAD": -50}, 2: {"EUR": -100, "MAD": 50}}

        suggestions = rebalancing_suggestions(balances, self.NAMES)

        assert [(s["currency"], s["from_admin_id"]) for s in suggestions] == [("EUR", 2), ("MAD", 1)]

    def test_limit(self):
        balances = {1: {"EUR": 300}, 2: {"EUR": -200}, 3: {"EUR": -100}}

        assert len(rebalancing_suggestions(balances, self.NAMES, limit=1)) == 1

    def test_balanced_positions_need_nothing(self):
        assert rebalancing_suggestions({1: {"EUR": 0}}, self.NAMES) == []


@pytest.mark.django_db
class TestPositionsSummary:

    def test_summary_and_suggestion(self, actor, company, owner, admin_user):
        upsert_admin_position(actor, owner.id, "EUR", advanced=100000)
        upsert_admin_position(actor, admin_user.id, "EUR", received=40000)

        summary = positions_summary(company)

        assert summary["global_totals"]["EUR"] == {"advanced": 100000, "received": 40000, "balance": 60000}
        assert {p["admin"]["name"]: p["balances"] for p in summary["positions"]} == {
            "Owner": {"EUR": 100000},
            "Admin": {"EUR": -40000},
        }
        [suggestion] = summary["rebalancing_suggestions"]
        assert (suggestion["from_admin_id"], suggestion["to_admin_id"]) == (admin_user.id, owner.id)
        assert suggestion["amount"] == 40000


# =============================================================================
# Journal
# =============================================================================

@pytest.fixture
def journal_rows(actor, company, student, eur_account, eur_savings, mad_account):
    fund(company, eur_account, 100000, date=datetime.date(2025, 1, 10), student=student)
    create_expense(
        actor, Expense.Category.RENT, 30000, datetime.date(2025, 2, 1), paying_account_id=eur_account.id,
    )
    fund(company, mad_account, 500000, date=datetime.date(2025, 2, 15))
    create_transfer(actor, eur_account.id, eur_savings.id, 10000, date=datetime.date(2025, 3, 1))


@pytest.mark.django_db
class TestJournal:

    def test_filters(self, company, student, eur_account, journal_rows):
        assert filter_transactions(company, {}).count() == 5
        assert filter_transactions(company, {"currency": "MAD"}).count() == 1
        assert filter_transactions(company, {"type": Transaction.Type.TRANSFER}).count() == 2
        assert filter_transactions(company, {"account": eur_account.id}).count() == 3
        assert filter_transactions(company, {"student": student.id}).count() == 1
        assert filter_transactions(
            company, {"date_from": datetime.date(2025, 2, 1), "date_to": datetime.date(2025, 2, 28)},
        ).count() == 2

    def test_newest_first(self, company, journal_rows):
        dates = [t.date for t in filter_transactions(company, {})]

        assert dates == sorted(dates, reverse=True)

    def test_totals_cover_whole_filtered_set(self, company, journal_rows):
        totals = journal_totals(filter_transactions(company, {}))

        assert totals["EUR"] == {"incoming": 110000, "outgoing": 40000}
        assert totals["MAD"] == {"incoming": 500000, "outgoing": 0}

    def test_page(self, company, journal_rows):
        page = journal_page(company, {"limit": 2, "offset": 0})

        assert len(page["transactions"]) == 2
        assert page["pagination"] == {"total": 5, "limit": 2, "offset": 0, "has_more": True}
        assert page["summary"]["totals_by_currency"]["EUR"]["incoming"] == 110000
        assert page["summary"]["by_type"][Transaction.Type.TRANSFER] == 2

    def test_last_page(self, company, journal_rows):
        page = journal_page(company, {"limit": 2, "offset": 4})

        assert page["pagination"]["has_more"] is False
        assert page["summary"]["count"] == 1

    def test_detail_shows_both_legs(self, company, second_company, journal_rows):
        incoming = Transaction.objects.get(type=Transaction.Type.TRANSFER, destination_account__isnull=False)

        txn, linked, linked_from = journal_detail(company, incoming.id)
        outgoing_detail = journal_detail(company, linked.id)

        assert txn == incoming
        assert linked.source_account_id is not None
        assert outgoing_detail[2] == [incoming]
        assert journal_detail(second_company, incoming.id) is None


# =============================================================================
# Exports
# =============================================================================

class TestFormatValue:

    @pytest.mark.parametrize("value, expected", [
        (Money(123456), "1234.56"),
        (Money(-1234), "-12.34"),
        (Money(5), "0.05"),
        (None, ""),
        (True, "Yes"),
        (datetime.date(2025, 1, 2), "2025-01-02"),
        (42, "42"),
    ])
    def test_format(self, value, expected):
        assert format_value(value) == expected

    def test_unknown_format_refused(self):
        with pytest.raises(ValueError):
            create_export_response([], JOURNAL_EXPORT_COLUMNS, "pdf", "journal")


@pytest.mark.django_db
class TestJournalExport:

    def test_csv_rows(self, company, journal_rows):
        rows = prepare_journal_export_data(filter_transactions(company, {"currency": "EUR"}))

        response = create_export_response(rows, JOURNAL_EXPORT_COLUMNS, ExportFormat.CSV, "journal")

        assert response["Content-Disposition"] == 'attachment; filename="journal.csv"'
        lines = list(csv.reader(io.StringIO(response.content.decode("utf-8-sig"))))
        assert lines[0][:3] == ["Number", "Date", "Type"]
        assert len(lines) == 5
        first_payment = next(line for line in lines if line[2] == "Student payment")
        assert first_payment[6] == "Sara Alaoui"
        assert first_payment[7] == "1000.00"
        assert first_payment[8] == ""

    def test_excel_and_text(self, company, journal_rows):
        rows = prepare_journal_export_data(filter_transactions(company, {}))

        xlsx = create_export_response(rows, JOURNAL_EXPORT_COLUMNS, ExportFormat.EXCEL, "journal")
        txt = create_export_response(rows, JOURNAL_EXPORT_COLUMNS, ExportFormat.TXT, "journal")

        assert xlsx.content[:2] == b"PK"
        assert txt.content.decode().splitlines()[0].startswith("Number")


# =============================================================================
# Self-Service
# =============================================================================

@pytest.fixture
def student_actor(company, student):
    user = get_user_model().objects.create_user(email="sara@test.com", password="testpass123", name="Sara")
    membership = CompanyMembership.objects.create(
        company=company, user=user, role=CompanyMembership.Role.STUDENT, is_active=True,
    )
    grant_role_defaults(membership, granted_by=user)
    student.user = user
    student.save(update_fields=["user"])
    return ActorContext(
        user=user,
        company=company,
        membership=membership,
        perms=frozenset(membership.permissions.values_list("code", flat=True)),
    )


@pytest.mark.django_db
class TestSelfService:

    def test_linked_person_resolves_from_user(self, student_actor, student):
        assert linked_person(student_actor, "student") == student
        assert linked_person(student_actor, "mentor") is None

    def test_student_overview(self, actor, company, student, validated_quote, eur_account, today):
        first, second = generate_schedules(actor, validated_quote.id, [
            {"amount": 100000, "due_date": today},
            {"amount": 200000, "due_date": today + datetime.timedelta(days=30)},
        ]).data
        record_student_payment(
            actor, student.id, 100000, "EUR", today, eur_account.id, schedule_id=first.id, auto_validate=True,
        )

        overview = student_overview(company, student)

        assert overview["totals_by_currency"] == {"EUR": {"due": 300000, "paid": 100000, "remaining": 200000}}
        assert len(overview["payments"]) == 1
        assert [q.id for q in overview["quotes"]] == [validated_quote.id]

    def test_team_member_overview(self, actor, company, mentor, today):
        create_mission(actor, "Coaching", today, 20000, mentor_id=mentor.id)
        create_mission(actor, "Essay", today, 5000, mentor_id=mentor.id, auto_validate=True)

        overview = team_member_overview(company, "mentor", mentor)

        assert len(overview["missions"]) == 2
        assert overview["totals_by_currency"] == {"EUR": {"pending": 20000, "validated": 5000, "paid": 0}}
