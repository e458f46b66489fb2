"""
Celery tasks for scheduled bookkeeping.

Tasks:
- mark_overdue_schedules: Flag unpaid installments whose due date passed
- recurring_expenses_due: Report recurring expenses coming due

Usage:
    from accounting.tasks import mark_overdue_schedules
    mark_overdue_schedules.delay()

    # Scheduled periodic processing
    # Configure in Django admin -> Periodic Tasks (daily)
"""
import datetime
import logging
from datetime import timedelta
from typing import Optional

from celery import shared_task
from django.utils import timezone

logger = logging.getLogger(__name__)


def _parse_day(value: Optional[str]) -> datetime.date:
    if value:
        return datetime.date.fromisoformat(value)
    return timezone.localdate()


@shared_task(ignore_result=False)
def mark_overdue_schedules(company_id: Optional[int] = None, today: Optional[str] = None) -> dict:
    """
    Move PENDING installments with nothing paid and a past due date to OVERDUE.

    Args:
        company_id: Restrict to one company (all companies when omitted)
        today: ISO date used as "today" (defaults to the local date)

    Returns:
        Dict with the number of installments updated
    """
    from accounting.models import PaymentSchedule

    day = _parse_day(today)
    qs = PaymentSchedule.objects.filter(
        status=PaymentSchedule.Status.PENDING,
        paid_amount=0,
        due_date__lt=day,
    )
    if company_id is not None:
        qs = qs.filter(company_id=company_id)

    updated = qs.update(status=PaymentSchedule.Status.OVERDUE, updated_at=timezone.now())
    logger.info(
        "Marked overdue schedules",
        extra={"company_id": company_id, "updated": updated, "as_of": day.isoformat()},
    )
    return {"updated": updated, "as_of": day.isoformat()}


@shared_task(ignore_result=False)
def recurring_expenses_due(days: int = 7, today: Optional[str] = None) -> dict:
    """
    Log active recurring expenses due within the next `days` days.

    Returns:
        Summary with the count and totals per company and currency
    """
    from accounting.models import RecurringExpense

    day = _parse_day(today)
    horizon = day + timedelta(days=days)
    due = RecurringExpense.objects.filter(
        is_active=True,
        next_due_date__lte=horizon,
    ).select_related("company").order_by("company_id", "next_due_date")

    totals = {}
    items = []
    for recurring in due:
        key = f"{recurring.company.slug}:{recurring.currency}"
        totals[key] = totals.get(key, 0) + recurring.amount
        items.append({
            "company_id": recurring.company_id,
            "id": recurring.id,
            "name": recurring.name,
            "amount": recurring.amount,
            "currency": recurring.currency,
            "next_due_date": recurring.next_due_date.isoformat(),
            "overdue": recurring.next_due_date < day,
        })
        logger.info(
            "Recurring expense due",
            extra={
                "company_id": recurring.company_id,
                "recurring_expense_id": recurring.id,
                "next_due_date": recurring.next_due_date.isoformat(),
            },
        )

    return {"count": len(items), "totals": totals, "items": items}
