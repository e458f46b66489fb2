# tests/test_billing.py
"""
Tests for billing commands.

Tests cover:
- Quote drafting and the status workflow
- Installment generation and the schedule overview
- Student payment recording, validation and rejection
- Allocation of one payment across installments
- Missions and team payments
"""

import datetime

import pytest
from django.core.exceptions import PermissionDenied

from accounting import ledger
from accounting.allocation import get_allocation_stats, suggest_allocation
from accounting.billing_commands import (
    allocate_student_payment,
    create_mission,
    create_quote,
    delete_mission,
    delete_quote,
    generate_schedules,
    record_student_payment,
    record_team_payment,
    reject_student_payment,
    schedule_overview,
    update_quote,
    update_student_payment,
    validate_mission,
    validate_student_payment,
)
from accounting.models import (
    Mission,
    Payment,
    PaymentAllocation,
    PaymentSchedule,
    Quote,
    Transaction,
)
from accounting.policies import PolicyViolation, assert_can_validate_payment
from people.models import Mentor, Student


@pytest.fixture
def schedules(actor, validated_quote, today):
    items = [
        {"amount": 100000, "due_date": today + datetime.timedelta(days=10)},
        {"amount": 200000, "due_date": today + datetime.timedelta(days=40)},
    ]
    return generate_schedules(actor, validated_quote.id, items).data


@pytest.fixture
def validated_payment(actor, student, eur_account, today):
    """A validated 1500.00 EUR payment not tied to any installment."""
    return record_student_payment(
        actor,
        student_id=student.id,
        amount=150000,
        currency="EUR",
        payment_date=today,
        bank_account_id=eur_account.id,
        auto_validate=True,
    ).data


# =============================================================================
# Quotes
# =============================================================================

@pytest.mark.django_db
class TestQuotes:

    def test_quote_built_from_active_packs(self, actor, student_pack, today):
        result = create_quote(actor, student_pack.student_id, payment_currency="MAD")

        assert result.success, result.error
        quote = result.data
        assert quote.status == Quote.Status.DRAFT
        assert quote.total_amount == 300000
        assert quote.currency == "EUR"
        assert quote.payment_currency == "MAD"
        assert quote.quote_number == f"QUOTE-{today.year}-001"
        assert [item.total_price for item in quote.items.all()] == [300000]

    def test_quote_numbers_increment(self, actor, student_pack, today):
        create_quote(actor, student_pack.student_id)
        second = create_quote(actor, student_pack.student_id).data

        assert second.quote_number == f"QUOTE-{today.year}-002"

    def test_student_without_pack_refused(self, actor, student):
        result = create_quote(actor, student.id)

        assert not result.success
        assert "no active pack" in result.error

    def test_draft_cannot_jump_to_validated(self, actor, student_pack):
        quote = create_quote(actor, student_pack.student_id).data

        result = update_quote(actor, quote.id, status=Quote.Status.VALIDATED)

        assert not result.success
        assert "Invalid status transition" in result.error

    def test_transitions_stamp_timestamps(self, validated_quote):
        assert validated_quote.sent_at is not None
        assert validated_quote.validated_at is not None

    def test_validated_quote_is_frozen(self, actor, validated_quote):
        result = update_quote(actor, validated_quote.id, notes="changed")

        assert not result.success

    def test_one_validated_quote_per_student(self, actor, validated_quote, student_pack):
        result = create_quote(actor, student_pack.student_id)

        assert not result.success
        assert "validated quote already exists" in result.error

    def test_only_drafts_can_be_deleted(self, actor, student_pack, validated_quote):
        assert not delete_quote(actor, validated_quote.id).success

        draft = Quote.objects.create(
            company=actor.company,
            quote_number="QUOTE-2000-001",
            student_id=student_pack.student_id,
            total_amount=100,
        )
        assert delete_quote(actor, draft.id).success
        assert not Quote.objects.filter(pk=draft.pk).exists()


# =============================================================================
# Payment Schedules
# =============================================================================

@pytest.mark.django_db
class TestPaymentSchedules:

    def test_installments_created_in_order(self, schedules, validated_quote):
        assert [s.installment_number for s in schedules] == [1, 2]
        assert sum(s.amount for s in schedules) == validated_quote.total_amount
        assert all(s.status == PaymentSchedule.Status.PENDING for s in schedules)
        assert all(s.schedule_currency == "EUR" for s in schedules)

    def test_installments_must_sum_to_quote_total(self, actor, validated_quote, today):
        result = generate_schedules(actor, validated_quote.id, [{"amount": 100000, "due_date": today}])

        assert not result.success
        assert PaymentSchedule.objects.count() == 0

    def test_quote_must_be_validated(self, actor, student_pack, today):
        quote = create_quote(actor, student_pack.student_id).data

        result = generate_schedules(actor, quote.id, [{"amount": 300000, "due_date": today}])

        assert not result.success

    def test_schedules_generated_once(self, actor, schedules, validated_quote, today):
        result = generate_schedules(actor, validated_quote.id, [{"amount": 300000, "due_date": today}])

        assert not result.success
        assert "already has payment schedules" in result.error

    def test_overview_flags_overdue_and_rounds_percent(self, actor, validated_quote, student, eur_account, today):
        items = [
            {"amount": 100000, "due_date": today - datetime.timedelta(days=5)},
            {"amount": 200000, "due_date": today + datetime.timedelta(days=30)},
        ]
        first, second = generate_schedules(actor, validated_quote.id, items).data
        record_student_payment(
            actor, student.id, 50000, "EUR", today, eur_account.id,
            schedule_id=second.id, auto_validate=True,
        )

        overview = schedule_overview(actor.company, validated_quote, today=today)

        first.refresh_from_db()
        assert first.status == PaymentSchedule.Status.OVERDUE
        assert overview["summary"]["paid"] == 50000
        assert overview["summary"]["remaining"] == 250000
        assert overview["summary"]["percent_paid"] == 17
        assert overview["summary"]["overdue_count"] == 1


# =============================================================================
# Student Payments
# =============================================================================

@pytest.mark.django_db
class TestStudentPayments:

    def test_recorded_payment_waits_for_validation(self, actor, student, eur_account, today):
        result = record_student_payment(actor, student.id, 50000, "EUR", today, eur_account.id)

        assert result.success
        assert result.data.status == Payment.Status.PENDING_VALIDATION
        assert Transaction.objects.count() == 0

    def test_validation_writes_inflow_and_settles_schedule(self, actor, student, eur_account, schedules, today):
        first = schedules[0]
        payment = record_student_payment(
            actor, student.id, 100000, "EUR", today, eur_account.id, schedule_id=first.id,
        ).data

        result = validate_student_payment(actor, payment.id)

        assert result.success, result.error
        txn = Transaction.objects.get(payment=payment)
        assert txn.type == Transaction.Type.STUDENT_PAYMENT
        assert txn.destination_account_id == eur_account.id
        assert txn.source_account_id is None
        assert txn.student_id == student.id
        assert txn.quote_id == first.quote_id
        first.refresh_from_db()
        assert first.status == PaymentSchedule.Status.PAID
        assert first.paid_amount == 100000
        assert first.paid_date == today
        assert ledger.account_balance(eur_account) == 100000

    def test_partial_payment(self, actor, student, eur_account, schedules, today):
        second = schedules[1]
        record_student_payment(
            actor, student.id, 50000, "EUR", today, eur_account.id,
            schedule_id=second.id, auto_validate=True,
        )

        second.refresh_from_db()
        assert second.status == PaymentSchedule.Status.PARTIAL
        assert second.remaining == 150000

    def test_payment_validated_once(self, actor, student, eur_account, today):
        payment = record_student_payment(actor, student.id, 50000, "EUR", today, eur_account.id).data
        validate_student_payment(actor, payment.id)

        result = validate_student_payment(actor, payment.id)

        assert not result.success
        assert "pending validation" in result.error
        assert Transaction.objects.count() == 1

    def test_validation_policy_raises_for_validated_payment(self, actor, validated_payment):
        with pytest.raises(PolicyViolation, match="pending validation"):
            assert_can_validate_payment(actor, validated_payment)

    def test_rejected_payment_never_reaches_ledger(self, actor, student, eur_account, today):
        payment = record_student_payment(actor, student.id, 50000, "EUR", today, eur_account.id).data

        result = reject_student_payment(actor, payment.id, notes="Bounced")

        assert result.data.status == Payment.Status.REJECTED
        assert result.data.notes == "Bounced"
        assert not validate_student_payment(actor, payment.id).success
        assert Transaction.objects.count() == 0

    def test_account_currency_must_match(self, actor, student, mad_account, today):
        result = record_student_payment(actor, student.id, 50000, "EUR", today, mad_account.id)

        assert not result.success

    def test_schedule_of_another_student_refused(self, actor, company, eur_account, schedules, today):
        other = Student.objects.create(company=company, first_name="Omar")

        result = record_student_payment(
            actor, other.id, 50000, "EUR", today, eur_account.id, schedule_id=schedules[0].id,
        )

        assert not result.success
        assert "another student" in result.error

    def test_validated_payment_is_frozen(self, actor, validated_payment):
        result = update_student_payment(actor, validated_payment.id, notes="edit")

        assert not result.success

    def test_auto_validate_needs_validate_permission(self, user_actor, student, eur_account, today):
        with pytest.raises(PermissionDenied):
            record_student_payment(
                user_actor, student.id, 50000, "EUR", today, eur_account.id, auto_validate=True,
            )


# =============================================================================
# Allocation
# =============================================================================

@pytest.mark.django_db
class TestAllocation:

    def test_split_across_installments(self, actor, validated_payment, schedules):
        first, second = schedules

        result = allocate_student_payment(actor, validated_payment.id, [
            {"schedule_id": first.id, "amount": 100000},
            {"schedule_id": second.id, "amount": 50000},
        ])

        assert result.success, result.error
        first.refresh_from_db()
        second.refresh_from_db()
        assert first.status == PaymentSchedule.Status.PAID
        assert second.status == PaymentSchedule.Status.PARTIAL
        assert second.paid_amount == 50000
        stats = get_allocation_stats(validated_payment)
        assert stats == {
            "total_allocated": 150000,
            "remaining": 0,
            "schedules_fully_paid": 1,
            "schedules_partially_paid": 1,
        }

    def test_cannot_exceed_payment(self, actor, validated_payment, schedules):
        result = allocate_student_payment(actor, validated_payment.id, [
            {"schedule_id": schedules[1].id, "amount": 160000},
        ])

        assert not result.success
        assert "exceed payment amount" in result.error
        assert PaymentAllocation.objects.count() == 0

    def test_cannot_exceed_schedule_remaining(self, actor, validated_payment, schedules):
        result = allocate_student_payment(actor, validated_payment.id, [
            {"schedule_id": schedules[0].id, "amount": 60000},
            {"schedule_id": schedules[0].id, "amount": 60000},
        ])

        assert not result.success
        assert PaymentAllocation.objects.count() == 0
        schedules[0].refresh_from_db()
        assert schedules[0].paid_amount == 0

    def test_single_allocation_links_payment_to_schedule(self, actor, validated_payment, schedules):
        allocate_student_payment(actor, validated_payment.id, [{"schedule_id": schedules[0].id, "amount": 100000}])

        validated_payment.refresh_from_db()
        assert validated_payment.schedule_id == schedules[0].id
        schedules[0].refresh_from_db()
        assert schedules[0].paid_amount == 100000

    def test_pending_payment_cannot_be_allocated(self, actor, student, eur_account, schedules, today):
        payment = record_student_payment(actor, student.id, 50000, "EUR", today, eur_account.id).data

        result = allocate_student_payment(actor, payment.id, [{"schedule_id": schedules[0].id, "amount": 100}])

        assert not result.success
        assert "validated" in result.error

    def test_cross_currency_allocation(self, actor, student, mad_account, schedules, today):
        payment = record_student_payment(
            actor, student.id, 50000, "MAD", today, mad_account.id, auto_validate=True,
        ).data
        items = [{"schedule_id": schedules[0].id, "amount": 50000}]

        refused = allocate_student_payment(actor, payment.id, items, allow_cross_currency=False)
        allowed = allocate_student_payment(actor, payment.id, items)

        assert not refused.success
        assert allowed.success
        schedules[0].refresh_from_db()
        assert schedules[0].actual_currency == "MAD"

    def test_suggestions_put_overdue_first(self, actor, validated_payment, schedules):
        first, second = schedules
        PaymentSchedule.objects.filter(pk=second.pk).update(status=PaymentSchedule.Status.OVERDUE)

        suggestions = suggest_allocation(validated_payment)

        assert [(s.schedule_id, s.priority) for s in suggestions] == [(second.id, 1), (first.id, 3)]
        assert [s.suggested_amount for s in suggestions] == [50000, 100000]

    def test_suggestions_fill_oldest_first(self, actor, validated_payment, schedules):
        suggestions = suggest_allocation(validated_payment)

        assert [(s.schedule_id, s.suggested_amount) for s in suggestions] == [
            (schedules[0].id, 100000),
            (schedules[1].id, 50000),
        ]


# =============================================================================
# Missions and Team Payments
# =============================================================================

@pytest.mark.django_db
class TestMissions:

    def test_mission_needs_exactly_one_team_member(self, actor, mentor, professor, today):
        neither = create_mission(actor, "Coaching", today, 20000)
        both = create_mission(actor, "Coaching", today, 20000, mentor_id=mentor.id, professor_id=professor.id)

        assert not neither.success
        assert not both.success

    def test_review_approve_and_reject(self, actor, mentor, today):
        approved = create_mission(actor, "Coaching", today, 20000, mentor_id=mentor.id).data
        rejected = create_mission(actor, "Essay review", today, 10000, mentor_id=mentor.id).data

        validate_mission(actor, approved.id, "approve")
        validate_mission(actor, rejected.id, "reject", reason="Duplicate")

        approved.refresh_from_db()
        rejected.refresh_from_db()
        assert approved.status == Mission.Status.VALIDATED
        assert approved.validated_by == actor.user
        assert rejected.status == Mission.Status.REJECTED
        assert rejected.rejection_reason == "Duplicate"

    def test_only_pending_missions_are_reviewed(self, actor, mentor, today):
        mission = create_mission(actor, "Coaching", today, 20000, mentor_id=mentor.id, auto_validate=True).data

        result = validate_mission(actor, mission.id, "reject")

        assert not result.success

    def test_team_payment_marks_missions_paid(self, actor, mentor, eur_account, today):
        mission = create_mission(actor, "Coaching", today, 20000, mentor_id=mentor.id, auto_validate=True).data

        result = record_team_payment(
            actor, 20000, "EUR", today, eur_account.id, mentor_id=mentor.id, mission_ids=[mission.id],
        )

        assert result.success, result.error
        txn = result.data["transaction"]
        assert txn.type == Transaction.Type.MENTOR_PAYMENT
        assert txn.source_account_id == eur_account.id
        assert txn.mission_id == mission.id
        assert result.data["payment"].status == Payment.Status.VALIDATED
        mission.refresh_from_db()
        assert mission.status == Mission.Status.PAID
        assert mission.paid_at is not None
        assert ledger.account_balance(eur_account) == -20000

    def test_professor_payment_type(self, actor, professor, eur_account, today):
        result = record_team_payment(actor, 5000, "EUR", today, eur_account.id, professor_id=professor.id)

        assert result.data["transaction"].type == Transaction.Type.PROFESSOR_PAYMENT

    def test_pending_mission_cannot_be_paid(self, actor, mentor, eur_account, today):
        mission = create_mission(actor, "Coaching", today, 20000, mentor_id=mentor.id).data

        result = record_team_payment(
            actor, 20000, "EUR", today, eur_account.id, mentor_id=mentor.id, mission_ids=[mission.id],
        )

        assert not result.success
        assert "VALIDATED" in result.error
        assert Payment.objects.count() == 0

    def test_mission_of_someone_else_refused(self, actor, company, mentor, eur_account, today):
        other = Mentor.objects.create(company=company, first_name="Youssef")
        mission = create_mission(actor, "Coaching", today, 20000, mentor_id=other.id, auto_validate=True).data

        result = record_team_payment(
            actor, 20000, "EUR", today, eur_account.id, mentor_id=mentor.id, mission_ids=[mission.id],
        )

        assert not result.success
        assert "someone else" in result.error

    def test_paid_mission_cannot_be_deleted(self, actor, mentor, eur_account, today):
        mission = create_mission(actor, "Coaching", today, 20000, mentor_id=mentor.id, auto_validate=True).data
        record_team_payment(actor, 20000, "EUR", today, eur_account.id, mentor_id=mentor.id, mission_ids=[mission.id])

        assert not delete_mission(actor, mission.id).success

    def test_pending_mission_is_deleted(self, actor, mentor, today):
        mission = create_mission(actor, "Coaching", today, 20000, mentor_id=mentor.id).data

        result = delete_mission(actor, mission.id)

        assert result.data == {"deleted": True, "cancelled": False}
