# reports/bfr.py
"""
Working-capital need (BFR): what students still owe on open quotes.

Only SENT and VALIDATED quotes count. Amounts are summed from the quotes'
payment schedules; a schedule is overdue once its due date has passed
with something left to pay.
"""

import datetime
from collections import defaultdict

from django.conf import settings
from django.utils import timezone

from accounting.models import Quote

OPEN_QUOTE_STATUSES = (Quote.Status.SENT, Quote.Status.VALIDATED)


def _totals():
    return {
        "total_amount": 0,
        "total_paid": 0,
        "remaining": 0,
        "overdue": 0,
        "upcoming": 0,
        "student_count": 0,
    }


def bfr_report(company, today: datetime.date = None) -> dict:
    today = today or timezone.localdate()
    horizon = today + datetime.timedelta(days=settings.UPCOMING_PAYMENTS_DAYS)

    quotes = (
        Quote.objects.filter(company=company, status__in=OPEN_QUOTE_STATUSES)
        .select_related("student")
        .prefetch_related("schedules")
        .order_by("created_at", "id")
    )

    students = {}
    for quote in quotes:
        entry = students.get(quote.student_id)
        if entry is None:
            entry = students[quote.student_id] = {
                "student_id": quote.student_id,
                "student_name": quote.student.display_name,
                "email": quote.student.email,
                "currency": quote.payment_currency or quote.currency,
                "quotes": [],
                "total_amount": 0,
                "total_paid": 0,
                "remaining": 0,
                "overdue": 0,
                "upcoming": 0,
                "schedules": [],
            }
        entry["quotes"].append({"id": quote.id, "quote_number": quote.quote_number, "status": quote.status})
        entry["total_amount"] += quote.total_amount

        for schedule in quote.schedules.all():
            remaining = schedule.amount - schedule.paid_amount
            is_overdue = schedule.due_date < today and remaining > 0
            entry["total_paid"] += schedule.paid_amount
            entry["remaining"] += remaining
            if is_overdue:
                entry["overdue"] += remaining
            elif remaining > 0:
                entry["upcoming"] += remaining
            entry["schedules"].append({
                "id": schedule.id,
                "quote_number": quote.quote_number,
                "installment_number": schedule.installment_number,
                "amount": schedule.amount,
                "paid_amount": schedule.paid_amount,
                "remaining": remaining,
                "currency": schedule.currency,
                "due_date": schedule.due_date,
                "status": schedule.status,
                "is_overdue": is_overdue,
            })

    rows = list(students.values())
    for entry in rows:
        entry["schedules"].sort(key=lambda s: (s["due_date"], s["installment_number"]))
    rows.sort(key=lambda e: e["remaining"], reverse=True)

    totals_by_currency = defaultdict(_totals)
    for entry in rows:
        bucket = totals_by_currency[entry["currency"]]
        for key in ("total_amount", "total_paid", "remaining", "overdue", "upcoming"):
            bucket[key] += entry[key]
        bucket["student_count"] += 1

    overdue_students = [
        {
            "student_id": e["student_id"],
            "student_name": e["student_name"],
            "overdue": e["overdue"],
            "currency": e["currency"],
        }
        for e in rows
        if e["overdue"] > 0
    ]

    upcoming_payments = sorted(
        (
            {
                "student_id": e["student_id"],
                "student_name": e["student_name"],
                "schedule_id": s["id"],
                "amount": s["remaining"],
                "currency": s["currency"],
                "due_date": s["due_date"],
            }
            for e in rows
            for s in e["schedules"]
            if today <= s["due_date"] <= horizon and s["remaining"] > 0
        ),
        key=lambda p: p["due_date"],
    )

    return {
        "as_of": today,
        "students": rows,
        "totals_by_currency": dict(totals_by_currency),
        "overdue_students": overdue_students,
        "upcoming_payments": upcoming_payments,
        "summary": {
            "total_students": len(rows),
            "overdue_count": len(overdue_students),
            "upcoming_payments_count": len(upcoming_payments),
            "currencies": sorted(totals_by_currency),
        },
    }
