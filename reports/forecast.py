# reports/forecast.py
"""
Cash forecast over the next N calendar months.

Revenue comes from unpaid installments, expenses from unpaid missions and
recurring expenses. Anything already due lands in the current month.
The projection starts from the balance of active founder-held accounts.
"""

import datetime
from collections import defaultdict

from django.utils import timezone

from accounting import ledger
from accounting.models import Mission, PaymentSchedule, RecurringExpense
from accounting.periods import add_months, month_end, month_key, month_keys, month_start

MIN_MONTHS = 1
MAX_MONTHS = 24

UNPAID_MISSION_STATUSES = (Mission.Status.PENDING, Mission.Status.VALIDATED)


def _by_month_currency():
    return defaultdict(lambda: defaultdict(int))


def _plain(nested) -> dict:
    return {month: dict(per_currency) for month, per_currency in sorted(nested.items())}


def forecast_report(company, months: int, today: datetime.date = None) -> dict:
    if not MIN_MONTHS <= months <= MAX_MONTHS:
        raise ValueError(f"months must be between {MIN_MONTHS} and {MAX_MONTHS}")

    today = today or timezone.localdate()
    end = month_end(add_months(month_start(today), months - 1))

    def bucket(day):
        return month_key(max(day, today))

    # Revenue
    revenue = _by_month_currency()
    revenue_details = []
    schedules = (
        PaymentSchedule.objects.filter(
            company=company,
            status__in=PaymentSchedule.OPEN_STATUSES,
            due_date__lte=end,
        )
        .select_related("student")
        .order_by("due_date", "id")
    )
    for schedule in schedules:
        remaining = schedule.amount - schedule.paid_amount
        if remaining <= 0:
            continue
        revenue[bucket(schedule.due_date)][schedule.currency] += remaining
        revenue_details.append({
            "id": schedule.id,
            "student": schedule.student.display_name,
            "amount": schedule.amount,
            "remaining": remaining,
            "currency": schedule.currency,
            "due_date": schedule.due_date,
            "status": schedule.status,
        })

    # Expenses
    expenses = _by_month_currency()
    expense_details = []
    missions = (
        Mission.objects.filter(company=company, status__in=UNPAID_MISSION_STATUSES, date__lte=end)
        .select_related("mentor", "professor")
        .order_by("date", "id")
    )
    for mission in missions:
        expenses[bucket(mission.date)][mission.currency] += mission.amount
        person = mission.mentor or mission.professor
        expense_details.append({
            "id": f"mission-{mission.id}",
            "kind": "mission",
            "name": f"{mission.title} - {person.display_name}" if person else mission.title,
            "amount": mission.amount,
            "currency": mission.currency,
            "due_date": mission.date,
        })

    recurring_count = 0
    for recurring in RecurringExpense.objects.filter(company=company, is_active=True):
        recurring_count += 1
        step = recurring.months_per_period
        occurrence = 0
        due = recurring.next_due_date
        while due <= end:
            key = bucket(due)
            expenses[key][recurring.currency] += recurring.amount
            expense_details.append({
                "id": f"recurring-{recurring.id}-{occurrence}",
                "kind": "recurring",
                "name": recurring.name,
                "amount": recurring.amount,
                "currency": recurring.currency,
                "due_date": due,
            })
            occurrence += 1
            due = add_months(recurring.next_due_date, occurrence * step)

    # Projection
    current_balance = ledger.balances_by_currency(company, admin_owned=True)
    currencies = set(current_balance)
    for nested in (revenue, expenses):
        for per_currency in nested.values():
            currencies.update(per_currency)

    projection = []
    for currency in currencies:
        running = current_balance.get(currency, 0)
        for key in month_keys(today, months):
            month_revenue = revenue.get(key, {}).get(currency, 0)
            month_expenses = expenses.get(key, {}).get(currency, 0)
            net = month_revenue - month_expenses
            projection.append({
                "month": key,
                "currency": currency,
                "opening": running,
                "revenue": month_revenue,
                "expenses": month_expenses,
                "net": net,
                "closing": running + net,
            })
            running += net
    projection.sort(key=lambda row: (row["month"], row["currency"]))

    revenue_totals = defaultdict(int)
    for detail in revenue_details:
        revenue_totals[detail["currency"]] += detail["remaining"]
    expense_totals = defaultdict(int)
    for detail in expense_details:
        expense_totals[detail["currency"]] += detail["amount"]

    return {
        "period": {"from": today, "to": end, "months": months},
        "current_balance": current_balance,
        "revenue": {
            "by_month_currency": _plain(revenue),
            "details": revenue_details,
            "totals": dict(revenue_totals),
            "count": len(revenue_details),
        },
        "expenses": {
            "by_month_currency": _plain(expenses),
            "details": expense_details,
            "totals": dict(expense_totals),
            "missions_count": len(missions),
            "recurring_count": recurring_count,
        },
        "projection": projection,
        "summary": {"currencies": sorted(currencies)},
    }
