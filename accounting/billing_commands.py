# accounting/billing_commands.py
"""
Command layer for billing: what students owe and what the team is paid.

- Quotes: built from a student's active packs, moved through
  DRAFT -> SENT -> VALIDATED | REJECTED (or EXPIRED)
- Payment schedules: installments generated from a validated quote
- Student payments: recorded, then validated (ledger inflow) or rejected
- Allocation: one validated payment split across installments
- Missions: work by mentors/professors, validated then paid
- Team payments: ledger outflow that marks missions PAID

Same pattern as accounting.commands: require, policies, mutate, audit,
CommandResult; everything inside transaction.atomic.
"""

import logging

from django.db import transaction
from django.utils import timezone

from accounts.authz import ActorContext, require
from accounts.commands import CommandResult
from accounting import ledger
from accounting.allocation import AllocationError, allocate_payment, update_schedule_status
from accounting.audit import AuditActions, record_audit
from accounting.models import (
    Mission,
    Payment,
    PaymentSchedule,
    Quote,
    QuoteItem,
    Transaction,
)
from accounting.policies import (
    PolicyViolation,
    assert_can_validate_payment,
    can_allocate_payment,
    can_delete_mission,
    can_delete_quote,
    can_edit_mission,
    can_edit_quote,
    can_generate_schedules,
    can_modify_payment,
    can_reject_payment,
    can_review_mission,
    can_use_account,
    validate_quote_transition,
)
from accounting.validation import (
    get_usable_account,
    validate_currency,
    validate_mission_payment,
    validate_positive_amount,
)
from people.models import Mentor, Professor, Student, StudentPack

logger = logging.getLogger(__name__)


def _get_team_member(actor: ActorContext, mentor_id, professor_id):
    """Return (mentor, professor, error); exactly one of the ids must be set."""
    if bool(mentor_id) == bool(professor_id):
        return None, None, "Exactly one of mentor or professor is required."
    if mentor_id:
        mentor = Mentor.objects.filter(company=actor.company, pk=mentor_id).first()
        if mentor is None:
            return None, None, "Mentor not found."
        return mentor, None, None
    professor = Professor.objects.filter(company=actor.company, pk=professor_id).first()
    if professor is None:
        return None, None, "Professor not found."
    return None, professor, None


# =============================================================================
# Quote Commands
# =============================================================================

def next_quote_number(company, on_date) -> str:
    """QUOTE-YYYY-NNN, counted per company and per year."""
    value = ledger.next_company_sequence(company, f"quote:{on_date.year}")
    return f"QUOTE-{on_date.year}-{value:03d}"


@transaction.atomic
def create_quote(
    actor: ActorContext,
    student_id: int,
    payment_currency: str = None,
    valid_until=None,
    notes: str = "",
) -> CommandResult:
    """
    Draft a quote from the student's active packs.

    The contractual currency is always EUR; payment_currency is what the
    student is expected to pay in.
    """
    require(actor, "quotes.manage")

    student = Student.objects.filter(company=actor.company, pk=student_id).first()
    if student is None:
        return CommandResult.fail("Student not found.")

    if payment_currency:
        error = validate_currency(payment_currency)
        if error:
            return CommandResult.fail(error)

    packs = list(
        StudentPack.objects.filter(
            company=actor.company,
            student=student,
            status=StudentPack.Status.ACTIVE,
        ).select_related("pack")
    )
    if not packs:
        return CommandResult.fail("The student has no active pack.")

    if Quote.objects.filter(company=actor.company, student=student, status=Quote.Status.VALIDATED).exists():
        return CommandResult.fail("A validated quote already exists for this student.")

    quote = Quote.objects.create(
        company=actor.company,
        quote_number=next_quote_number(actor.company, timezone.localdate()),
        student=student,
        total_amount=sum(sp.custom_price for sp in packs),
        currency="EUR",
        payment_currency=payment_currency or "",
        status=Quote.Status.DRAFT,
        valid_until=valid_until,
        notes=notes,
        created_by=actor.user,
    )
    QuoteItem.objects.bulk_create([
        QuoteItem(
            quote=quote,
            pack=sp.pack,
            description=sp.pack.name,
            quantity=1,
            unit_price=sp.custom_price,
            total_price=sp.custom_price,
        )
        for sp in packs
    ])

    record_audit(actor, AuditActions.CREATE_QUOTE, "Quote", quote.public_id, {
        "quote_number": quote.quote_number,
        "student_id": student.id,
        "total_amount": quote.total_amount,
    })
    return CommandResult.ok(quote)


TIMESTAMP_ON_STATUS = {
    Quote.Status.SENT: "sent_at",
    Quote.Status.VALIDATED: "validated_at",
    Quote.Status.REJECTED: "rejected_at",
}


@transaction.atomic
def update_quote(
    actor: ActorContext,
    quote_id: int,
    status: str = None,
    notes: str = None,
    valid_until=None,
    payment_currency: str = None,
) -> CommandResult:
    require(actor, "quotes.manage")

    try:
        quote = Quote.objects.select_for_update().get(pk=quote_id, company=actor.company)
    except Quote.DoesNotExist:
        return CommandResult.fail("Quote not found.")

    allowed, reason = can_edit_quote(actor, quote)
    if not allowed:
        return CommandResult.fail(reason)

    old_status = quote.status
    if status and status != quote.status:
        allowed, reason = validate_quote_transition(quote.status, status)
        if not allowed:
            return CommandResult.fail(reason)
        if status == Quote.Status.VALIDATED and Quote.objects.filter(
            company=actor.company, student_id=quote.student_id, status=Quote.Status.VALIDATED,
        ).exists():
            return CommandResult.fail("A validated quote already exists for this student.")
        quote.status = status
        timestamp_field = TIMESTAMP_ON_STATUS.get(status)
        if timestamp_field:
            setattr(quote, timestamp_field, timezone.now())

    if payment_currency is not None:
        if payment_currency:
            error = validate_currency(payment_currency)
            if error:
                return CommandResult.fail(error)
        quote.payment_currency = payment_currency
    if notes is not None:
        quote.notes = notes
    if valid_until is not None:
        quote.valid_until = valid_until
    quote.save()

    record_audit(actor, AuditActions.UPDATE_QUOTE, "Quote", quote.public_id, {
        "old_status": old_status,
        "new_status": quote.status,
    })
    return CommandResult.ok(quote)


@transaction.atomic
def delete_quote(actor: ActorContext, quote_id: int) -> CommandResult:
    require(actor, "quotes.manage")

    try:
        quote = Quote.objects.select_for_update().get(pk=quote_id, company=actor.company)
    except Quote.DoesNotExist:
        return CommandResult.fail("Quote not found.")

    allowed, reason = can_delete_quote(actor, quote)
    if not allowed:
        return CommandResult.fail(reason)

    public_id, number = quote.public_id, quote.quote_number
    quote.delete()
    record_audit(actor, AuditActions.DELETE_QUOTE, "Quote", public_id, {"quote_number": number})
    return CommandResult.ok({"deleted": True})


@transaction.atomic
def generate_schedules(actor: ActorContext, quote_id: int, schedules: list) -> CommandResult:
    """
    Split a validated quote into installments.

    schedules: [{"amount", "due_date", "currency"?, "description"?}, ...]
    The amounts must add up to the quote total exactly.
    """
    require(actor, "quotes.manage")

    try:
        quote = Quote.objects.select_for_update().get(pk=quote_id, company=actor.company)
    except Quote.DoesNotExist:
        return CommandResult.fail("Quote not found.")

    allowed, reason = can_generate_schedules(actor, quote)
    if not allowed:
        return CommandResult.fail(reason)

    if not schedules:
        return CommandResult.fail("At least one installment is required.")

    for item in schedules:
        if not item.get("amount") or item["amount"] <= 0:
            return CommandResult.fail("Each installment needs a positive amount.")
        if not item.get("due_date"):
            return CommandResult.fail("Each installment needs a due date.")
        if item.get("currency"):
            error = validate_currency(item["currency"])
            if error:
                return CommandResult.fail(error)

    total = sum(item["amount"] for item in schedules)
    if total != quote.total_amount:
        return CommandResult.fail(
            f"Installments total ({total}) does not match the quote amount ({quote.total_amount})."
        )

    created = [
        PaymentSchedule.objects.create(
            company=actor.company,
            quote=quote,
            student_id=quote.student_id,
            installment_number=number,
            amount=item["amount"],
            currency=item.get("currency") or quote.payment_currency or "EUR",
            schedule_currency="EUR",
            due_date=item["due_date"],
            description=item.get("description") or "",
        )
        for number, item in enumerate(schedules, start=1)
    ]

    record_audit(actor, AuditActions.GENERATE_SCHEDULES, "Quote", quote.public_id, {
        "schedule_count": len(created),
        "total_amount": quote.total_amount,
    })
    return CommandResult.ok(created)


def schedule_overview(company, quote: Quote, today=None) -> dict:
    """
    Installments of a quote with a payment summary.

    Unpaid PENDING installments past their due date are flagged OVERDUE
    on the way out.
    """
    today = today or timezone.localdate()
    schedules = list(
        PaymentSchedule.objects.filter(company=company, quote=quote).order_by("due_date", "installment_number")
    )
    for schedule in schedules:
        if (
            schedule.status == PaymentSchedule.Status.PENDING
            and schedule.paid_amount == 0
            and schedule.due_date < today
        ):
            schedule.status = PaymentSchedule.Status.OVERDUE
            schedule.save(update_fields=["status", "updated_at"])

    paid = sum(s.paid_amount for s in schedules)
    total = quote.total_amount
    return {
        "schedules": schedules,
        "summary": {
            "total": total,
            "paid": paid,
            "remaining": total - paid,
            "percent_paid": (200 * paid + total) // (2 * total) if total else 0,
            "count": len(schedules),
            "paid_count": sum(1 for s in schedules if s.status == PaymentSchedule.Status.PAID),
            "overdue_count": sum(1 for s in schedules if s.status == PaymentSchedule.Status.OVERDUE),
        },
    }


# =============================================================================
# Student Payment Commands
# =============================================================================

def _write_student_inflow(actor: ActorContext, payment: Payment) -> Transaction:
    return ledger.record_transaction(
        actor.company,
        actor.user,
        date=payment.payment_date,
        type=Transaction.Type.STUDENT_PAYMENT,
        amount=payment.amount,
        currency=payment.currency,
        destination_account=payment.bank_account,
        payment=payment,
        payment_schedule=payment.schedule,
        quote=payment.schedule.quote if payment.schedule_id else None,
        student=payment.student,
        description=f"Payment from {payment.student.display_name}",
    )


def _settle_schedule(schedule: PaymentSchedule, payment: Payment) -> None:
    if payment.currency != schedule.currency:
        schedule.actual_currency = payment.currency
        schedule.save(update_fields=["actual_currency", "updated_at"])
    update_schedule_status(schedule)


@transaction.atomic
def record_student_payment(
    actor: ActorContext,
    student_id: int,
    amount: int,
    currency: str,
    payment_date,
    bank_account_id: int,
    schedule_id: int = None,
    payment_method: str = Payment.Method.BANK_TRANSFER,
    reference: str = "",
    notes: str = "",
    auto_validate: bool = False,
) -> CommandResult:
    """
    Record money received from a student.

    Without auto_validate the payment waits in PENDING_VALIDATION and
    the ledger is untouched until validate_student_payment().
    """
    require(actor, "payments.record")
    if auto_validate:
        require(actor, "payments.validate")

    error = validate_positive_amount(amount) or validate_currency(currency)
    if error:
        return CommandResult.fail(error)

    student = Student.objects.filter(company=actor.company, pk=student_id).first()
    if student is None:
        return CommandResult.fail("Student not found.")

    account, error = get_usable_account(actor.company, bank_account_id, currency)
    if error:
        return CommandResult.fail(error)

    schedule = None
    if schedule_id is not None:
        schedule = PaymentSchedule.objects.select_for_update().filter(
            company=actor.company, pk=schedule_id,
        ).first()
        if schedule is None:
            return CommandResult.fail("Payment schedule not found.")
        if schedule.student_id != student.id:
            return CommandResult.fail("This schedule belongs to another student.")

    payment = Payment.objects.create(
        company=actor.company,
        student=student,
        amount=amount,
        currency=currency,
        payment_date=payment_date,
        payment_method=payment_method,
        reference=reference,
        bank_account=account,
        schedule=schedule,
        notes=notes,
        status=Payment.Status.VALIDATED if auto_validate else Payment.Status.PENDING_VALIDATION,
        validated_by=actor.user if auto_validate else None,
        validated_at=timezone.now() if auto_validate else None,
        created_by=actor.user,
    )

    txn = None
    if auto_validate:
        txn = _write_student_inflow(actor, payment)
        if schedule is not None:
            _settle_schedule(schedule, payment)

    record_audit(actor, AuditActions.CREATE_STUDENT_PAYMENT, "Payment", payment.public_id, {
        "student_id": student.id,
        "amount": amount,
        "currency": currency,
        "auto_validated": auto_validate,
        "transaction_number": txn.transaction_number if txn else None,
    })
    return CommandResult.ok(payment)


@transaction.atomic
def validate_student_payment(actor: ActorContext, payment_id: int) -> CommandResult:
    """Accept a pending payment: write the inflow and settle its schedule."""
    require(actor, "payments.validate")

    try:
        payment = Payment.objects.select_for_update().get(pk=payment_id, company=actor.company, student__isnull=False)
    except Payment.DoesNotExist:
        return CommandResult.fail("Payment not found.")

    try:
        assert_can_validate_payment(actor, payment)
    except PolicyViolation as exc:
        return CommandResult.fail(str(exc))

    if payment.bank_account is None:
        return CommandResult.fail("Payment must have a receiving bank account.")
    allowed, reason = can_use_account(actor, payment.bank_account, payment.currency)
    if not allowed:
        return CommandResult.fail(reason)

    payment.status = Payment.Status.VALIDATED
    payment.validated_by = actor.user
    payment.validated_at = timezone.now()
    payment.save(update_fields=["status", "validated_by", "validated_at", "updated_at"])

    txn = _write_student_inflow(actor, payment)
    if payment.schedule_id:
        _settle_schedule(payment.schedule, payment)

    record_audit(actor, AuditActions.VALIDATE_STUDENT_PAYMENT, "Payment", payment.public_id, {
        "amount": payment.amount,
        "currency": payment.currency,
        "transaction_number": txn.transaction_number,
    })
    return CommandResult.ok(payment)


@transaction.atomic
def reject_student_payment(actor: ActorContext, payment_id: int, notes: str = "") -> CommandResult:
    require(actor, "payments.validate")

    try:
        payment = Payment.objects.select_for_update().get(
            pk=payment_id, company=actor.company, student__isnull=False,
        )
    except Payment.DoesNotExist:
        return CommandResult.fail("Payment not found.")

    allowed, reason = can_reject_payment(actor, payment)
    if not allowed:
        return CommandResult.fail(reason)

    payment.status = Payment.Status.REJECTED
    if notes:
        payment.notes = notes
    payment.save(update_fields=["status", "notes", "updated_at"])

    record_audit(actor, AuditActions.REJECT_STUDENT_PAYMENT, "Payment", payment.public_id, {
        "reason": notes,
    })
    return CommandResult.ok(payment)


@transaction.atomic
def update_student_payment(
    actor: ActorContext,
    payment_id: int,
    notes: str = None,
    reference: str = None,
    payment_method: str = None,
) -> CommandResult:
    require(actor, "payments.record")

    try:
        payment = Payment.objects.select_for_update().get(
            pk=payment_id, company=actor.company, student__isnull=False,
        )
    except Payment.DoesNotExist:
        return CommandResult.fail("Payment not found.")

    allowed, reason = can_modify_payment(actor, payment)
    if not allowed:
        return CommandResult.fail(reason)

    if notes is not None:
        payment.notes = notes
    if reference is not None:
        payment.reference = reference
    if payment_method is not None:
        payment.payment_method = payment_method
    payment.save()

    record_audit(actor, AuditActions.UPDATE_STUDENT_PAYMENT, "Payment", payment.public_id)
    return CommandResult.ok(payment)


@transaction.atomic
def allocate_student_payment(
    actor: ActorContext,
    payment_id: int,
    allocations: list,
    allow_cross_currency: bool = True,
) -> CommandResult:
    """
    Spread a validated student payment over that student's installments.

    allocations: [{"schedule_id": int, "amount": int}, ...]
    """
    require(actor, "payments.validate")

    try:
        payment = Payment.objects.select_for_update().get(pk=payment_id, company=actor.company)
    except Payment.DoesNotExist:
        return CommandResult.fail("Payment not found.")

    allowed, reason = can_allocate_payment(actor, payment)
    if not allowed:
        return CommandResult.fail(reason)

    try:
        created = allocate_payment(
            payment,
            allocations,
            user=actor.user,
            allow_cross_currency=allow_cross_currency,
            student_id=payment.student_id,
        )
    except AllocationError as exc:
        return CommandResult.fail(str(exc))

    for allocation in created:
        schedule = allocation.schedule
        if payment.currency != schedule.currency and schedule.actual_currency != payment.currency:
            schedule.actual_currency = payment.currency
            schedule.save(update_fields=["actual_currency", "updated_at"])

    if len(created) == 1:
        payment.schedule = created[0].schedule
        payment.save(update_fields=["schedule", "updated_at"])

    record_audit(actor, AuditActions.ALLOCATE_PAYMENT, "Payment", payment.public_id, {
        "allocations": [
            {"schedule_id": a.schedule_id, "amount": a.amount} for a in created
        ],
    })
    return CommandResult.ok(created)


# =============================================================================
# Mission Commands
# =============================================================================

MISSION_FIELDS = {"title", "description", "date", "hours", "amount", "currency"}


@transaction.atomic
def create_mission(
    actor: ActorContext,
    title: str,
    date,
    amount: int,
    currency: str = "EUR",
    mentor_id: int = None,
    professor_id: int = None,
    student_id: int = None,
    hours=None,
    description: str = "",
    auto_validate: bool = False,
) -> CommandResult:
    require(actor, "missions.manage")
    if auto_validate:
        require(actor, "missions.validate")

    if not (title or "").strip():
        return CommandResult.fail("Title is required.")
    if not date:
        return CommandResult.fail("Date is required.")
    error = validate_positive_amount(amount) or validate_currency(currency)
    if error:
        return CommandResult.fail(error)

    mentor, professor, error = _get_team_member(actor, mentor_id, professor_id)
    if error:
        return CommandResult.fail(error)

    student = None
    if student_id is not None:
        student = Student.objects.filter(company=actor.company, pk=student_id).first()
        if student is None:
            return CommandResult.fail("Student not found.")

    now = timezone.now()
    mission = Mission.objects.create(
        company=actor.company,
        mentor=mentor,
        professor=professor,
        student=student,
        title=title,
        description=description,
        date=date,
        hours=hours,
        amount=amount,
        currency=currency,
        status=Mission.Status.VALIDATED if auto_validate else Mission.Status.PENDING,
        validated_by=actor.user if auto_validate else None,
        validated_at=now if auto_validate else None,
    )
    record_audit(actor, AuditActions.CREATE_MISSION, "Mission", mission.public_id, {
        "title": title,
        "amount": amount,
        "currency": currency,
        "auto_validated": auto_validate,
    })
    return CommandResult.ok(mission)


@transaction.atomic
def validate_mission(actor: ActorContext, mission_id: int, action: str, reason: str = "") -> CommandResult:
    """action is "approve" or "reject"."""
    require(actor, "missions.validate")

    if action not in ("approve", "reject"):
        return CommandResult.fail("Action must be 'approve' or 'reject'.")

    try:
        mission = Mission.objects.select_for_update().get(pk=mission_id, company=actor.company)
    except Mission.DoesNotExist:
        return CommandResult.fail("Mission not found.")

    allowed, why = can_review_mission(actor, mission)
    if not allowed:
        return CommandResult.fail(why)

    if action == "approve":
        mission.status = Mission.Status.VALIDATED
        mission.validated_by = actor.user
        mission.validated_at = timezone.now()
        audit_action = AuditActions.VALIDATE_MISSION
    else:
        mission.status = Mission.Status.REJECTED
        mission.rejection_reason = reason or ""
        audit_action = AuditActions.REJECT_MISSION
    mission.save()

    record_audit(actor, audit_action, "Mission", mission.public_id, {"reason": reason})
    return CommandResult.ok(mission)


@transaction.atomic
def update_mission(actor: ActorContext, mission_id: int, **updates) -> CommandResult:
    require(actor, "missions.manage")

    try:
        mission = Mission.objects.select_for_update().get(pk=mission_id, company=actor.company)
    except Mission.DoesNotExist:
        return CommandResult.fail("Mission not found.")

    allowed, reason = can_edit_mission(actor, mission)
    if not allowed:
        return CommandResult.fail(reason)

    if "amount" in updates:
        error = validate_positive_amount(updates["amount"])
        if error:
            return CommandResult.fail(error)
    if "currency" in updates:
        error = validate_currency(updates["currency"])
        if error:
            return CommandResult.fail(error)
    if "student_id" in updates:
        student_id = updates.pop("student_id")
        student = None
        if student_id is not None:
            student = Student.objects.filter(company=actor.company, pk=student_id).first()
            if student is None:
                return CommandResult.fail("Student not found.")
        mission.student = student

    for field, value in updates.items():
        if field in MISSION_FIELDS:
            setattr(mission, field, value)
    mission.save()

    record_audit(actor, AuditActions.UPDATE_MISSION, "Mission", mission.public_id, {
        "fields": sorted(updates),
    })
    return CommandResult.ok(mission)


@transaction.atomic
def delete_mission(actor: ActorContext, mission_id: int) -> CommandResult:
    """
    Delete a mission, or cancel it when the ledger references it.

    Returns {"deleted": bool, "cancelled": bool}.
    """
    require(actor, "missions.manage")

    try:
        mission = Mission.objects.select_for_update().get(pk=mission_id, company=actor.company)
    except Mission.DoesNotExist:
        return CommandResult.fail("Mission not found.")

    allowed, reason = can_delete_mission(actor, mission)
    if not allowed:
        return CommandResult.fail(reason)

    if mission.transactions.exists():
        mission.status = Mission.Status.CANCELLED
        mission.save(update_fields=["status", "updated_at"])
        record_audit(actor, AuditActions.CANCEL_MISSION, "Mission", mission.public_id)
        return CommandResult.ok({"deleted": False, "cancelled": True})

    public_id = mission.public_id
    mission.delete()
    record_audit(actor, AuditActions.DELETE_MISSION, "Mission", public_id)
    return CommandResult.ok({"deleted": True, "cancelled": False})


# =============================================================================
# Team Payment Commands
# =============================================================================

@transaction.atomic
def record_team_payment(
    actor: ActorContext,
    amount: int,
    currency: str,
    payment_date,
    bank_account_id: int,
    mentor_id: int = None,
    professor_id: int = None,
    mission_ids: list = None,
    payment_method: str = Payment.Method.BANK_TRANSFER,
    reference: str = "",
    notes: str = "",
) -> CommandResult:
    """
    Pay a mentor or professor.

    Writes a validated Payment and one MENTOR_PAYMENT/PROFESSOR_PAYMENT
    outflow, then marks the listed missions PAID.

    Returns:
        CommandResult with {"payment", "transaction", "missions"}
    """
    require(actor, "payments.record")

    error = validate_positive_amount(amount) or validate_currency(currency)
    if error:
        return CommandResult.fail(error)

    mentor, professor, error = _get_team_member(actor, mentor_id, professor_id)
    if error:
        return CommandResult.fail(error)

    account, error = get_usable_account(actor.company, bank_account_id, currency)
    if error:
        return CommandResult.fail(error)

    mission_ids = list(mission_ids or [])
    missions = list(
        Mission.objects.select_for_update().filter(company=actor.company, pk__in=mission_ids)
    )
    if len(missions) != len(set(mission_ids)):
        return CommandResult.fail("One or more missions were not found.")
    for mission in missions:
        error = validate_mission_payment(mission)
        if error:
            return CommandResult.fail(error)
        if (mentor and mission.mentor_id != mentor.id) or (professor and mission.professor_id != professor.id):
            return CommandResult.fail(f'Mission "{mission.title}" belongs to someone else.')

    now = timezone.now()
    payment = Payment.objects.create(
        company=actor.company,
        mentor=mentor,
        professor=professor,
        amount=amount,
        currency=currency,
        payment_date=payment_date,
        payment_method=payment_method,
        reference=reference,
        bank_account=account,
        notes=notes,
        status=Payment.Status.VALIDATED,
        validated_by=actor.user,
        validated_at=now,
        created_by=actor.user,
    )

    person = mentor or professor
    txn = ledger.record_transaction(
        actor.company,
        actor.user,
        date=payment_date,
        type=Transaction.Type.MENTOR_PAYMENT if mentor else Transaction.Type.PROFESSOR_PAYMENT,
        amount=amount,
        currency=currency,
        source_account=account,
        payment=payment,
        mentor=mentor,
        professor=professor,
        mission=missions[0] if len(missions) == 1 else None,
        description=f"Payment to {person.display_name}",
        notes=notes,
    )

    for mission in missions:
        mission.status = Mission.Status.PAID
        mission.paid_at = now
        mission.save(update_fields=["status", "paid_at", "updated_at"])

    record_audit(actor, AuditActions.CREATE_TEAM_PAYMENT, "Payment", payment.public_id, {
        "mentor_id": mentor.id if mentor else None,
        "professor_id": professor.id if professor else None,
        "amount": amount,
        "currency": currency,
        "mission_ids": [m.id for m in missions],
        "transaction_number": txn.transaction_number,
    })
    return CommandResult.ok({"payment": payment, "transaction": txn, "missions": missions})
