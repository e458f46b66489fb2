# accounting/allocation.py
"""
Payment-to-schedule allocation.

A received payment can settle several installments. Allocation rows
record how much of which payment went to which schedule; the schedule's
paid_amount and status are always recomputed from those rows (plus any
validated payment tied directly to the schedule), never incremented
blindly.

Suggestion order:
1. OVERDUE installments (priority 1)
2. PARTIAL installments (priority 2)
3. PENDING installments (priority 3)
oldest due date first within a priority.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, asdict

from django.db.models import Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from accounting.models import Payment, PaymentAllocation, PaymentSchedule

logger = logging.getLogger(__name__)

PRIORITY = {
    PaymentSchedule.Status.OVERDUE: 1,
    PaymentSchedule.Status.PARTIAL: 2,
    PaymentSchedule.Status.PENDING: 3,
}


class AllocationError(ValueError):
    """An allocation request was refused. Nothing has been written."""


@dataclass
class AllocationSuggestion:
    schedule_id: int
    due_date: object
    installment_number: int
    schedule_amount: int
    schedule_paid_amount: int
    schedule_remaining_amount: int
    suggested_amount: int
    priority: int
    schedule_status: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["due_date"] = self.due_date.isoformat()
        return data


def compute_schedule_status(schedule: PaymentSchedule, paid_amount: int, today=None) -> str:
    today = today or timezone.localdate()
    if paid_amount >= schedule.amount:
        return PaymentSchedule.Status.PAID
    if paid_amount > 0:
        return PaymentSchedule.Status.PARTIAL
    if today > schedule.due_date:
        return PaymentSchedule.Status.OVERDUE
    return PaymentSchedule.Status.PENDING


def _allocated_to_schedule(schedule: PaymentSchedule) -> int:
    return schedule.allocations.aggregate(total=Coalesce(Sum("amount"), 0))["total"]


def schedule_paid_total(schedule: PaymentSchedule) -> int:
    """
    Allocations plus validated payments linked straight to the schedule.

    A payment that was allocated is counted through its allocations only.
    """
    direct = schedule.direct_payments.filter(
        status=Payment.Status.VALIDATED,
        allocations__isnull=True,
    ).aggregate(total=Coalesce(Sum("amount"), 0))["total"]
    return _allocated_to_schedule(schedule) + direct


def get_remaining_amount(payment: Payment) -> int:
    allocated = payment.allocations.aggregate(total=Coalesce(Sum("amount"), 0))["total"]
    return payment.amount - allocated


def update_schedule_status(schedule: PaymentSchedule, today=None) -> PaymentSchedule:
    """Recompute paid_amount, status and paid_date from the stored rows."""
    today = today or timezone.localdate()
    if schedule.status == PaymentSchedule.Status.CANCELLED:
        return schedule

    paid = schedule_paid_total(schedule)
    status = compute_schedule_status(schedule, paid, today)

    schedule.paid_amount = paid
    schedule.status = status
    if status == PaymentSchedule.Status.PAID:
        schedule.paid_date = schedule.paid_date or today
    else:
        schedule.paid_date = None
    schedule.save(update_fields=["paid_amount", "status", "paid_date", "updated_at"])
    return schedule


def allocatable_schedules(payment: Payment, same_currency: bool = True):
    """Open schedules of the payment's payer, oldest due date first."""
    qs = PaymentSchedule.objects.filter(
        company_id=payment.company_id,
        status__in=PaymentSchedule.OPEN_STATUSES,
    )
    if same_currency:
        qs = qs.filter(currency=payment.currency)
    if payment.student_id:
        qs = qs.filter(student_id=payment.student_id)
    return qs.order_by("due_date", "installment_number", "id")


def suggest_allocation(payment: Payment) -> list[AllocationSuggestion]:
    remaining = get_remaining_amount(payment)
    if remaining <= 0:
        return []

    suggestions = []
    for schedule in allocatable_schedules(payment):
        if remaining <= 0:
            break
        paid = schedule_paid_total(schedule)
        schedule_remaining = schedule.amount - paid
        if schedule_remaining <= 0:
            continue

        amount = min(remaining, schedule_remaining)
        suggestions.append(AllocationSuggestion(
            schedule_id=schedule.id,
            due_date=schedule.due_date,
            installment_number=schedule.installment_number,
            schedule_amount=schedule.amount,
            schedule_paid_amount=paid,
            schedule_remaining_amount=schedule_remaining,
            suggested_amount=amount,
            priority=PRIORITY.get(schedule.status, 3),
            schedule_status=schedule.status,
        ))
        remaining -= amount

    # sorted() is stable: due-date order survives within a priority.
    return sorted(suggestions, key=lambda s: s.priority)


def allocate_payment(
    payment: Payment,
    allocations: list,
    user=None,
    allow_cross_currency: bool = False,
    student_id=None,
) -> list[PaymentAllocation]:
    """
    Split a payment across schedules.

    allocations: [{"schedule_id": int, "amount": int}, ...]

    The whole request is checked before the first row is written.

    Raises:
        AllocationError: If any item is refused.
    """
    if not allocations:
        raise AllocationError("At least one allocation is required.")

    already = payment.amount - get_remaining_amount(payment)
    requested = sum(item["amount"] for item in allocations)
    if already + requested > payment.amount:
        raise AllocationError(
            f"Total allocations ({already + requested}) exceed payment amount ({payment.amount})."
        )

    planned = []
    pending_by_schedule = defaultdict(int)
    for item in allocations:
        amount = item["amount"]
        schedule_id = item["schedule_id"]

        schedule = PaymentSchedule.objects.select_for_update().filter(
            company_id=payment.company_id, pk=schedule_id,
        ).first()
        if schedule is None:
            raise AllocationError(f"Schedule {schedule_id} not found.")
        if student_id is not None and schedule.student_id != student_id:
            raise AllocationError(f"Schedule {schedule_id} does not belong to this student.")
        if schedule.status == PaymentSchedule.Status.CANCELLED:
            raise AllocationError(f"Schedule {schedule_id} is cancelled.")
        if not allow_cross_currency and schedule.currency != payment.currency:
            raise AllocationError(
                f"Schedule currency ({schedule.currency}) does not match "
                f"payment currency ({payment.currency})."
            )
        if amount <= 0:
            raise AllocationError("Allocation amounts must be positive.")

        paid = schedule_paid_total(schedule) + pending_by_schedule[schedule.id]
        if paid + amount > schedule.amount:
            raise AllocationError(
                f"Allocation amount ({amount}) exceeds schedule remaining amount "
                f"({schedule.amount - paid})."
            )
        pending_by_schedule[schedule.id] += amount
        planned.append((schedule, amount))

    created = []
    for schedule, amount in planned:
        created.append(PaymentAllocation.objects.create(
            company_id=payment.company_id,
            payment=payment,
            schedule=schedule,
            amount=amount,
            created_by=user,
        ))

    for schedule in {schedule.id: schedule for schedule, _ in planned}.values():
        update_schedule_status(schedule)

    logger.info(
        "Payment allocated",
        extra={
            "payment_id": payment.id,
            "allocation_count": len(created),
            "allocated": requested,
        },
    )
    return created


def get_allocation_stats(payment: Payment) -> dict:
    total_allocated = payment.amount - get_remaining_amount(payment)
    schedules = PaymentSchedule.objects.filter(allocations__payment=payment).distinct()
    return {
        "total_allocated": total_allocated,
        "remaining": payment.amount - total_allocated,
        "schedules_fully_paid": sum(1 for s in schedules if s.status == PaymentSchedule.Status.PAID),
        "schedules_partially_paid": sum(1 for s in schedules if s.status == PaymentSchedule.Status.PARTIAL),
    }
