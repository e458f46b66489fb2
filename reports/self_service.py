# reports/self_service.py
"""
Read-only pages for students, mentors and professors.

Each page is resolved from the directory record linked to the requesting
user, never from an id in the request.
"""

from collections import defaultdict

from accounting.models import Mission, Payment, PaymentSchedule, Quote
from people.models import Mentor, Professor, Student

SELF_SERVICE_MODELS = {
    "student": Student,
    "mentor": Mentor,
    "professor": Professor,
}


def linked_person(actor, kind: str):
    return SELF_SERVICE_MODELS[kind].objects.filter(
        company=actor.company, user=actor.user, is_active=True,
    ).first()


def student_overview(company, student: Student) -> dict:
    schedules = list(
        PaymentSchedule.objects.filter(company=company, student=student)
        .exclude(status=PaymentSchedule.Status.CANCELLED)
        .select_related("quote")
    )
    payments = list(
        Payment.objects.filter(company=company, student=student)
        .exclude(status=Payment.Status.REJECTED)
        .select_related("bank_account")
    )
    quotes = list(
        Quote.objects.filter(company=company, student=student)
        .exclude(status=Quote.Status.DRAFT)
        .prefetch_related("items", "schedules")
    )

    totals = defaultdict(lambda: {"due": 0, "paid": 0, "remaining": 0})
    for schedule in schedules:
        bucket = totals[schedule.currency]
        bucket["due"] += schedule.amount
        bucket["paid"] += schedule.paid_amount
        bucket["remaining"] += schedule.remaining

    return {
        "schedules": schedules,
        "payments": payments,
        "quotes": quotes,
        "totals_by_currency": dict(totals),
    }


def team_member_overview(company, kind: str, person) -> dict:
    missions = list(
        Mission.objects.filter(company=company, **{kind: person}).select_related("student")
    )
    payments = list(
        Payment.objects.filter(company=company, **{kind: person}).select_related("bank_account")
    )

    totals = defaultdict(lambda: {"pending": 0, "validated": 0, "paid": 0})
    for mission in missions:
        key = mission.status.lower()
        if key in ("pending", "validated", "paid"):
            totals[mission.currency][key] += mission.amount

    return {
        "missions": missions,
        "payments": payments,
        "totals_by_currency": dict(totals),
    }
