# accounting/policies.py
"""
Business policy functions for accounting operations.

Policies answer: "Is this action allowed given the current state?"
They do NOT perform the action; that is the command's job.

Usage:
    from accounting.policies import can_validate_payment

    # Option 1: Check and get boolean + reason
    allowed, reason = can_validate_payment(actor, payment)
    if not allowed:
        return CommandResult.fail(reason)

    # Option 2: Assert and raise on failure
    assert_can_validate_payment(actor, payment)  # raises PolicyViolation

Policies are pure functions returning (bool, str) tuples.
"""

from accounting.models import Mission, Payment, Quote


class PolicyViolation(Exception):
    """Raised when a business policy is violated."""
    pass


# =============================================================================
# Tenant Boundary Policies
# =============================================================================

def check_tenant_boundary(actor, entity) -> bool:
    """
    Verify entity belongs to actor's company.
    This is the fundamental multi-tenant security check.
    """
    entity_company_id = getattr(entity, "company_id", None)
    if entity_company_id is None:
        company = getattr(entity, "company", None)
        entity_company_id = getattr(company, "id", None) if company else None
    return entity_company_id == actor.company.id


# =============================================================================
# Bank Account Policies
# =============================================================================

def can_use_account(actor, account, currency: str = None) -> tuple[bool, str]:
    """
    Check that money can move through an account.

    Rules:
    - Must belong to actor's company
    - Must be active
    - Must hold the given currency, when one is given
    """
    if not check_tenant_boundary(actor, account):
        return False, "Cross-company action denied."
    if not account.is_active:
        return False, f"Bank account '{account.account_name}' is inactive."
    if currency and account.currency != currency:
        return False, (
            f"Bank account currency ({account.currency}) does not match "
            f"the amount currency ({currency})."
        )
    return True, ""


def can_change_account_currency(account, new_currency: str) -> tuple[bool, str]:
    if new_currency != account.currency:
        return False, "The currency of a bank account cannot be changed."
    return True, ""


# =============================================================================
# Quote Policies (Workflow Rules)
# =============================================================================

QUOTE_TRANSITIONS = {
    (Quote.Status.DRAFT, Quote.Status.SENT),
    (Quote.Status.SENT, Quote.Status.VALIDATED),
    (Quote.Status.SENT, Quote.Status.REJECTED),
    (Quote.Status.DRAFT, Quote.Status.EXPIRED),
    (Quote.Status.SENT, Quote.Status.EXPIRED),
}

QUOTE_EDITABLE_STATUSES = (Quote.Status.DRAFT, Quote.Status.SENT)


def validate_quote_transition(old_status, new_status) -> tuple[bool, str]:
    """
    Allowed transitions:
    - DRAFT -> SENT
    - SENT -> VALIDATED | REJECTED
    - DRAFT | SENT -> EXPIRED
    """
    if old_status == new_status:
        return True, ""
    if (old_status, new_status) in QUOTE_TRANSITIONS:
        return True, ""
    return False, f"Invalid status transition: {old_status} -> {new_status}"


def can_edit_quote(actor, quote) -> tuple[bool, str]:
    if not check_tenant_boundary(actor, quote):
        return False, "Cross-company action denied."
    if quote.status not in QUOTE_EDITABLE_STATUSES:
        return False, f"A {quote.status} quote cannot be modified."
    return True, ""


def can_delete_quote(actor, quote) -> tuple[bool, str]:
    if not check_tenant_boundary(actor, quote):
        return False, "Cross-company action denied."
    if quote.status != Quote.Status.DRAFT:
        return False, "Only draft quotes can be deleted."
    if quote.schedules.exists():
        return False, "Cannot delete a quote that has payment schedules."
    return True, ""


def can_generate_schedules(actor, quote) -> tuple[bool, str]:
    if not check_tenant_boundary(actor, quote):
        return False, "Cross-company action denied."
    if quote.status != Quote.Status.VALIDATED:
        return False, "Schedules can only be generated for a validated quote."
    if quote.schedules.exists():
        return False, "This quote already has payment schedules."
    return True, ""


# =============================================================================
# Payment Policies
# =============================================================================

def can_validate_payment(actor, payment) -> tuple[bool, str]:
    if not check_tenant_boundary(actor, payment):
        return False, "Cross-company action denied."
    if payment.status != Payment.Status.PENDING_VALIDATION:
        return False, f"Only payments pending validation can be validated (status: {payment.status})."
    return True, ""


def can_reject_payment(actor, payment) -> tuple[bool, str]:
    if not check_tenant_boundary(actor, payment):
        return False, "Cross-company action denied."
    if payment.status != Payment.Status.PENDING_VALIDATION:
        return False, f"Only payments pending validation can be rejected (status: {payment.status})."
    return True, ""


def can_modify_payment(actor, payment) -> tuple[bool, str]:
    if not check_tenant_boundary(actor, payment):
        return False, "Cross-company action denied."
    if payment.status == Payment.Status.VALIDATED:
        return False, "A validated payment cannot be modified."
    return True, ""


def can_allocate_payment(actor, payment) -> tuple[bool, str]:
    """
    Rules:
    - Payment must be VALIDATED
    - Payment must not already be tied to a single schedule
    - Payment must come from a student
    """
    if not check_tenant_boundary(actor, payment):
        return False, "Cross-company action denied."
    if payment.status != Payment.Status.VALIDATED:
        return False, "Only validated payments can be allocated."
    if payment.schedule_id:
        return False, "This payment is already linked to a schedule."
    if not payment.student_id:
        return False, "Only student payments can be allocated to schedules."
    return True, ""


# =============================================================================
# Mission Policies
# =============================================================================

def can_review_mission(actor, mission) -> tuple[bool, str]:
    if not check_tenant_boundary(actor, mission):
        return False, "Cross-company action denied."
    if mission.status != Mission.Status.PENDING:
        return False, f"Only pending missions can be reviewed (status: {mission.status})."
    return True, ""


def can_edit_mission(actor, mission) -> tuple[bool, str]:
    if not check_tenant_boundary(actor, mission):
        return False, "Cross-company action denied."
    if mission.status != Mission.Status.PENDING:
        return False, "Only pending missions can be modified."
    return True, ""


def can_delete_mission(actor, mission) -> tuple[bool, str]:
    if not check_tenant_boundary(actor, mission):
        return False, "Cross-company action denied."
    if mission.status == Mission.Status.PAID:
        return False, "A paid mission cannot be deleted."
    return True, ""


# =============================================================================
# Expense Policies
# =============================================================================

def can_delete_expense(actor, expense) -> tuple[bool, str]:
    if not check_tenant_boundary(actor, expense):
        return False, "Cross-company action denied."
    if expense.transactions.exists():
        return False, "Cannot delete an expense that has transactions."
    return True, ""


def can_change_expense_amount(expense) -> tuple[bool, str]:
    if expense.transactions.exists():
        return False, "Amount and currency are locked once the expense has transactions."
    return True, ""


# =============================================================================
# Assertion Helpers (raise on failure)
# =============================================================================

def assert_can_validate_payment(actor, payment) -> None:
    """Assert payment can be validated, raise PolicyViolation if not."""
    allowed, reason = can_validate_payment(actor, payment)
    if not allowed:
        raise PolicyViolation(reason)

