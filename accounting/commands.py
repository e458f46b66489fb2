# accounting/commands.py
"""
Command layer for treasury operations.

Commands are the single point where business operations happen.
Views call commands; commands enforce rules and write the ledger.

Pattern:
1. Validate permissions (require)
2. Apply business policies (can_*) and validators
3. Perform the operation (model changes, ledger rows)
4. Record the audit entry
5. Return CommandResult

Every command runs in transaction.atomic: a multi-row operation (FX pair,
transfer pair, expense + ledger row) is written completely or not at all.

Billing (quotes, schedules, student and team payments, missions) lives
in accounting.billing_commands.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from accounts.authz import ActorContext, require, founder_memberships
from accounts.commands import CommandResult
from accounting import ledger
from accounting.audit import AuditActions, record_audit
from accounting.models import (
    AdminPosition,
    BankAccount,
    Distribution,
    DistributionShare,
    Expense,
    RecurringExpense,
    Transaction,
)
from accounting.periods import add_months
from accounting.policies import (
    can_change_account_currency,
    can_change_expense_amount,
    can_delete_expense,
)
from accounting.validation import (
    get_usable_account,
    validate_account_currency,
    validate_currency,
    validate_positive_amount,
)

logger = logging.getLogger(__name__)

User = get_user_model()

PERCENT_TOLERANCE = Decimal("0.01")


def _account_name_taken(actor: ActorContext, account_name: str, owner, exclude_id=None) -> bool:
    qs = BankAccount.objects.filter(company=actor.company, account_name=account_name, owner=owner)
    if exclude_id:
        qs = qs.exclude(pk=exclude_id)
    return qs.exists()


def _resolve_member(actor: ActorContext, user_id):
    return User.objects.filter(
        pk=user_id,
        memberships__company=actor.company,
        memberships__is_active=True,
    ).first()


# =============================================================================
# Bank Account Commands
# =============================================================================

BANK_ACCOUNT_FIELDS = {
    "account_name", "bank_name", "account_type", "country", "iban",
    "is_admin_owned", "is_active", "notes",
}


@transaction.atomic
def create_bank_account(
    actor: ActorContext,
    account_name: str,
    currency: str,
    bank_name: str = "",
    account_type: str = BankAccount.AccountType.BUSINESS,
    country: str = "",
    iban: str = "",
    is_admin_owned: bool = False,
    owner_id: int = None,
    notes: str = "",
) -> CommandResult:
    """
    Open a bank account.

    The currency is fixed for the life of the account. Names are unique
    per owner (company accounts have no owner).
    """
    require(actor, "bank_accounts.manage")

    error = validate_currency(currency)
    if error:
        return CommandResult.fail(error)

    owner = None
    if owner_id is not None:
        owner = _resolve_member(actor, owner_id)
        if owner is None:
            return CommandResult.fail("Owner is not a member of this company.")

    if _account_name_taken(actor, account_name, owner):
        return CommandResult.fail(f"An account named '{account_name}' already exists for this owner.")

    account = BankAccount.objects.create(
        company=actor.company,
        account_name=account_name,
        bank_name=bank_name,
        currency=currency,
        account_type=account_type,
        country=country,
        iban=iban,
        is_admin_owned=is_admin_owned,
        owner=owner,
        notes=notes,
    )
    record_audit(actor, AuditActions.CREATE_BANK_ACCOUNT, "BankAccount", account.public_id, {
        "account_name": account_name,
        "currency": currency,
    })
    return CommandResult.ok(account)


@transaction.atomic
def update_bank_account(actor: ActorContext, account_id: int, **updates) -> CommandResult:
    require(actor, "bank_accounts.manage")

    try:
        account = BankAccount.objects.select_for_update().get(pk=account_id, company=actor.company)
    except BankAccount.DoesNotExist:
        return CommandResult.fail("Bank account not found.")

    if "currency" in updates:
        allowed, reason = can_change_account_currency(account, updates.pop("currency"))
        if not allowed:
            return CommandResult.fail(reason)

    if "owner_id" in updates:
        owner_id = updates.pop("owner_id")
        owner = None
        if owner_id is not None:
            owner = _resolve_member(actor, owner_id)
            if owner is None:
                return CommandResult.fail("Owner is not a member of this company.")
        account.owner = owner

    new_name = updates.get("account_name", account.account_name)
    if _account_name_taken(actor, new_name, account.owner, exclude_id=account.id):
        return CommandResult.fail(f"An account named '{new_name}' already exists for this owner.")

    changes = {}
    for field, value in updates.items():
        if field in BANK_ACCOUNT_FIELDS and getattr(account, field) != value:
            changes[field] = {"old": getattr(account, field), "new": value}
            setattr(account, field, value)
    account.save()

    if changes:
        record_audit(actor, AuditActions.UPDATE_BANK_ACCOUNT, "BankAccount", account.public_id, {
            "changes": changes,
        })
    return CommandResult.ok(account)


@transaction.atomic
def delete_bank_account(actor: ActorContext, account_id: int) -> CommandResult:
    """
    Remove an account, or deactivate it when the ledger references it.

    Returns {"deleted": bool, "deactivated": bool}.
    """
    require(actor, "bank_accounts.manage")

    try:
        account = BankAccount.objects.select_for_update().get(pk=account_id, company=actor.company)
    except BankAccount.DoesNotExist:
        return CommandResult.fail("Bank account not found.")

    referenced = (
        account.has_transactions
        or account.payments.exists()
        or account.expenses.exists()
        or account.distributions.exists()
    )
    if referenced:
        account.is_active = False
        account.save(update_fields=["is_active", "updated_at"])
        record_audit(actor, AuditActions.DEACTIVATE_BANK_ACCOUNT, "BankAccount", account.public_id, {
            "account_name": account.account_name,
        })
        return CommandResult.ok({"deleted": False, "deactivated": True})

    public_id = account.public_id
    name = account.account_name
    account.delete()
    record_audit(actor, AuditActions.DELETE_BANK_ACCOUNT, "BankAccount", public_id, {
        "account_name": name,
    })
    return CommandResult.ok({"deleted": True, "deactivated": False})


# =============================================================================
# FX Exchange and Transfer Commands
# =============================================================================

@transaction.atomic
def create_fx_exchange(
    actor: ActorContext,
    from_account_id: int,
    to_account_id: int,
    from_amount: int,
    to_amount: int,
    date=None,
    exchange_rate=None,
    fx_fees: int = 0,
    description: str = "",
    notes: str = "",
) -> CommandResult:
    """
    Convert money between two accounts in different currencies.

    Writes two FX_EXCHANGE rows: the from leg leaves from_account, the
    to leg enters to_account and links back to the from leg.

    Returns:
        CommandResult with {"from": Transaction, "to": Transaction}
    """
    require(actor, "ledger.create")

    if from_account_id == to_account_id:
        return CommandResult.fail("Source and destination accounts must differ.")

    from_account, error = get_usable_account(actor.company, from_account_id)
    if error:
        return CommandResult.fail(f"Source: {error}")
    to_account, error = get_usable_account(actor.company, to_account_id)
    if error:
        return CommandResult.fail(f"Destination: {error}")

    if from_account.currency == to_account.currency:
        return CommandResult.fail("A currency exchange needs accounts in two different currencies.")

    for value, name in ((from_amount, "from_amount"), (to_amount, "to_amount")):
        error = validate_positive_amount(value, name)
        if error:
            return CommandResult.fail(error)
    if fx_fees is not None and fx_fees < 0:
        return CommandResult.fail("FX fees cannot be negative.")
    if exchange_rate is not None and Decimal(str(exchange_rate)) <= 0:
        return CommandResult.fail(f"Exchange rate must be positive (got: {exchange_rate}).")

    from_leg, to_leg = ledger.create_fx_pair(
        actor.company,
        actor.user,
        from_account=from_account,
        to_account=to_account,
        from_amount=from_amount,
        to_amount=to_amount,
        date=date or timezone.localdate(),
        exchange_rate=exchange_rate,
        fx_fees=fx_fees or 0,
        description=description,
        notes=notes,
    )

    record_audit(actor, AuditActions.CREATE_FX_EXCHANGE, "Transaction", from_leg.public_id, {
        "from_transaction": from_leg.transaction_number,
        "to_transaction": to_leg.transaction_number,
        "from_amount": from_amount,
        "from_currency": from_account.currency,
        "to_amount": to_amount,
        "to_currency": to_account.currency,
        "exchange_rate": str(from_leg.exchange_rate),
        "fx_fees": fx_fees or 0,
    })
    return CommandResult.ok({"from": from_leg, "to": to_leg})


@transaction.atomic
def create_transfer(
    actor: ActorContext,
    from_account_id: int,
    to_account_id: int,
    amount: int,
    date=None,
    description: str = "",
    notes: str = "",
) -> CommandResult:
    """
    Move money between two accounts of the same currency.

    Returns:
        CommandResult with {"outgoing": Transaction, "incoming": Transaction}
    """
    require(actor, "ledger.create")

    if from_account_id == to_account_id:
        return CommandResult.fail("Source and destination accounts must differ.")

    from_account, error = get_usable_account(actor.company, from_account_id)
    if error:
        return CommandResult.fail(f"Source: {error}")
    to_account, error = get_usable_account(actor.company, to_account_id)
    if error:
        return CommandResult.fail(f"Destination: {error}")

    if from_account.currency != to_account.currency:
        return CommandResult.fail(
            "Transfers need accounts in the same currency. Use a currency exchange instead."
        )

    error = validate_positive_amount(amount)
    if error:
        return CommandResult.fail(error)

    outgoing, incoming = ledger.create_transfer_pair(
        actor.company,
        actor.user,
        from_account=from_account,
        to_account=to_account,
        amount=amount,
        date=date or timezone.localdate(),
        description=description,
        notes=notes,
    )

    record_audit(actor, AuditActions.CREATE_TRANSFER, "Transaction", outgoing.public_id, {
        "outgoing_transaction": outgoing.transaction_number,
        "incoming_transaction": incoming.transaction_number,
        "amount": amount,
        "currency": from_account.currency,
    })
    return CommandResult.ok({"outgoing": outgoing, "incoming": incoming})


# =============================================================================
# Expense Commands
# =============================================================================

EXPENSE_FIELDS = {"category", "supplier", "description", "expense_date", "receipt_reference"}


@transaction.atomic
def create_expense(
    actor: ActorContext,
    category: str,
    amount: int,
    expense_date,
    currency: str = "EUR",
    paying_account_id: int = None,
    supplier: str = "",
    description: str = "",
    receipt_reference: str = "",
    create_transaction_entry: bool = True,
) -> CommandResult:
    """
    Record an expense. With a paying account, an EXPENSE outflow is
    written unless create_transaction_entry is False.
    """
    require(actor, "expenses.manage")

    error = validate_positive_amount(amount) or validate_currency(currency)
    if error:
        return CommandResult.fail(error)

    account = None
    if paying_account_id is not None:
        account, error = get_usable_account(actor.company, paying_account_id, currency)
        if error:
            return CommandResult.fail(error)

    expense = Expense.objects.create(
        company=actor.company,
        category=category,
        amount=amount,
        currency=currency,
        supplier=supplier,
        description=description,
        expense_date=expense_date,
        paying_account=account,
        receipt_reference=receipt_reference,
        created_by=actor.user,
    )

    txn = None
    if account is not None and create_transaction_entry:
        txn = ledger.record_transaction(
            actor.company,
            actor.user,
            date=expense_date,
            type=Transaction.Type.EXPENSE,
            amount=amount,
            currency=currency,
            source_account=account,
            expense=expense,
            description=description or f"Expense: {expense.get_category_display()}",
        )

    record_audit(actor, AuditActions.CREATE_EXPENSE, "Expense", expense.public_id, {
        "category": category,
        "amount": amount,
        "currency": currency,
        "transaction_number": txn.transaction_number if txn else None,
    })
    return CommandResult.ok(expense)


@transaction.atomic
def update_expense(actor: ActorContext, expense_id: int, **updates) -> CommandResult:
    """Amount and currency are frozen once the ledger references the expense."""
    require(actor, "expenses.manage")

    try:
        expense = Expense.objects.select_for_update().get(pk=expense_id, company=actor.company)
    except Expense.DoesNotExist:
        return CommandResult.fail("Expense not found.")

    money_changes = {
        field: updates[field]
        for field in ("amount", "currency")
        if field in updates and updates[field] != getattr(expense, field)
    }
    if money_changes:
        allowed, reason = can_change_expense_amount(expense)
        if not allowed:
            return CommandResult.fail(reason)
        error = None
        if "amount" in money_changes:
            error = validate_positive_amount(money_changes["amount"])
        if not error and "currency" in money_changes:
            error = validate_currency(money_changes["currency"])
        if error:
            return CommandResult.fail(error)

    if "paying_account_id" in updates:
        account_id = updates.pop("paying_account_id")
        if account_id is None:
            expense.paying_account = None
        else:
            currency = money_changes.get("currency", expense.currency)
            account, error = get_usable_account(actor.company, account_id, currency)
            if error:
                return CommandResult.fail(error)
            expense.paying_account = account
    elif "currency" in money_changes and expense.paying_account_id:
        error = validate_account_currency(expense.paying_account, money_changes["currency"])
        if error:
            return CommandResult.fail(error)

    for field, value in money_changes.items():
        setattr(expense, field, value)
    for field, value in updates.items():
        if field in EXPENSE_FIELDS:
            setattr(expense, field, value)
    expense.save()

    record_audit(actor, AuditActions.UPDATE_EXPENSE, "Expense", expense.public_id, {
        "fields": sorted(set(updates) | set(money_changes)),
    })
    return CommandResult.ok(expense)


@transaction.atomic
def delete_expense(actor: ActorContext, expense_id: int) -> CommandResult:
    require(actor, "expenses.manage")

    try:
        expense = Expense.objects.select_for_update().get(pk=expense_id, company=actor.company)
    except Expense.DoesNotExist:
        return CommandResult.fail("Expense not found.")

    allowed, reason = can_delete_expense(actor, expense)
    if not allowed:
        return CommandResult.fail(reason)

    public_id = expense.public_id
    expense.delete()
    record_audit(actor, AuditActions.DELETE_EXPENSE, "Expense", public_id)
    return CommandResult.ok({"deleted": True})


# =============================================================================
# Recurring Expense Commands
# =============================================================================

RECURRING_FIELDS = {
    "name", "category", "amount", "currency", "frequency",
    "next_due_date", "supplier", "is_active",
}


@transaction.atomic
def create_recurring_expense(
    actor: ActorContext,
    name: str,
    amount: int,
    next_due_date,
    category: str = Expense.Category.OTHER,
    currency: str = "EUR",
    frequency: str = RecurringExpense.Frequency.MONTHLY,
    paying_account_id: int = None,
    supplier: str = "",
) -> CommandResult:
    require(actor, "expenses.manage")

    error = validate_positive_amount(amount) or validate_currency(currency)
    if error:
        return CommandResult.fail(error)

    account = None
    if paying_account_id is not None:
        account, error = get_usable_account(actor.company, paying_account_id, currency)
        if error:
            return CommandResult.fail(error)

    recurring = RecurringExpense.objects.create(
        company=actor.company,
        name=name,
        category=category,
        amount=amount,
        currency=currency,
        frequency=frequency,
        next_due_date=next_due_date,
        paying_account=account,
        supplier=supplier,
    )
    record_audit(actor, AuditActions.CREATE_RECURRING_EXPENSE, "RecurringExpense", recurring.public_id, {
        "name": name,
        "amount": amount,
        "currency": currency,
        "frequency": frequency,
    })
    return CommandResult.ok(recurring)


@transaction.atomic
def update_recurring_expense(actor: ActorContext, recurring_id: int, **updates) -> CommandResult:
    require(actor, "expenses.manage")

    try:
        recurring = RecurringExpense.objects.select_for_update().get(pk=recurring_id, company=actor.company)
    except RecurringExpense.DoesNotExist:
        return CommandResult.fail("Recurring expense not found.")

    if "amount" in updates:
        error = validate_positive_amount(updates["amount"])
        if error:
            return CommandResult.fail(error)
    if "currency" in updates:
        error = validate_currency(updates["currency"])
        if error:
            return CommandResult.fail(error)

    if "paying_account_id" in updates:
        account_id = updates.pop("paying_account_id")
        if account_id is None:
            recurring.paying_account = None
        else:
            account, error = get_usable_account(actor.company, account_id, updates.get("currency", recurring.currency))
            if error:
                return CommandResult.fail(error)
            recurring.paying_account = account
    elif updates.get("currency", recurring.currency) != recurring.currency and recurring.paying_account_id:
        error = validate_account_currency(recurring.paying_account, updates["currency"])
        if error:
            return CommandResult.fail(error)

    for field, value in updates.items():
        if field in RECURRING_FIELDS:
            setattr(recurring, field, value)
    recurring.save()

    record_audit(actor, AuditActions.UPDATE_RECURRING_EXPENSE, "RecurringExpense", recurring.public_id, {
        "fields": sorted(updates),
    })
    return CommandResult.ok(recurring)


@transaction.atomic
def deactivate_recurring_expense(actor: ActorContext, recurring_id: int) -> CommandResult:
    require(actor, "expenses.manage")

    try:
        recurring = RecurringExpense.objects.select_for_update().get(pk=recurring_id, company=actor.company)
    except RecurringExpense.DoesNotExist:
        return CommandResult.fail("Recurring expense not found.")

    recurring.is_active = False
    recurring.save(update_fields=["is_active", "updated_at"])
    record_audit(actor, AuditActions.DEACTIVATE_RECURRING_EXPENSE, "RecurringExpense", recurring.public_id)
    return CommandResult.ok(recurring)


@transaction.atomic
def pay_recurring_expense(
    actor: ActorContext,
    recurring_id: int,
    payment_date=None,
    amount: int = None,
    paying_account_id: int = None,
    notes: str = "",
) -> CommandResult:
    """
    Settle one period of a recurring expense.

    Creates the Expense and its EXPENSE outflow, then moves next_due_date
    forward by one period (1, 3 or 12 months).

    Returns:
        CommandResult with {"expense", "transaction", "recurring"}
    """
    require(actor, "expenses.manage")

    try:
        recurring = RecurringExpense.objects.select_for_update().get(pk=recurring_id, company=actor.company)
    except RecurringExpense.DoesNotExist:
        return CommandResult.fail("Recurring expense not found.")

    if not recurring.is_active:
        return CommandResult.fail("This recurring expense is inactive.")

    account_id = paying_account_id or recurring.paying_account_id
    if not account_id:
        return CommandResult.fail("A paying account is required.")
    account, error = get_usable_account(actor.company, account_id, recurring.currency)
    if error:
        return CommandResult.fail(error)

    amount = recurring.amount if amount is None else amount
    error = validate_positive_amount(amount)
    if error:
        return CommandResult.fail(error)

    payment_date = payment_date or timezone.localdate()

    expense = Expense.objects.create(
        company=actor.company,
        category=recurring.category,
        amount=amount,
        currency=recurring.currency,
        supplier=recurring.supplier,
        description=f"{recurring.name} - recurring payment",
        expense_date=payment_date,
        paying_account=account,
        is_recurring=True,
        recurring_expense=recurring,
        created_by=actor.user,
    )
    txn = ledger.record_transaction(
        actor.company,
        actor.user,
        date=payment_date,
        type=Transaction.Type.EXPENSE,
        amount=amount,
        currency=recurring.currency,
        source_account=account,
        expense=expense,
        description=f"Recurring expense: {recurring.name}",
        notes=notes,
    )

    recurring.last_paid_date = payment_date
    recurring.next_due_date = add_months(recurring.next_due_date, recurring.months_per_period)
    recurring.save(update_fields=["last_paid_date", "next_due_date", "updated_at"])

    record_audit(actor, AuditActions.PAY_RECURRING_EXPENSE, "RecurringExpense", recurring.public_id, {
        "expense_id": str(expense.public_id),
        "transaction_number": txn.transaction_number,
        "amount": amount,
        "currency": recurring.currency,
        "next_due_date": recurring.next_due_date.isoformat(),
    })
    return CommandResult.ok({"expense": expense, "transaction": txn, "recurring": recurring})


# =============================================================================
# Distribution and Position Commands
# =============================================================================

def _share_amount(distributed: int, percentage: Decimal) -> int:
    return int((Decimal(distributed) * Decimal(percentage) / 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@transaction.atomic
def create_distribution(
    actor: ActorContext,
    date,
    total_amount: int,
    shares: list,
    currency: str = "EUR",
    investment_amount: int = 0,
    source_account_id: int = None,
    update_positions: bool = False,
    notes: str = "",
) -> CommandResult:
    """
    Pay profit out to the founders.

    shares: [{"admin_id": int, "percentage": Decimal}, ...] summing to 100.
    The part kept as investment is not distributed.
    """
    require(actor, "distributions.manage")

    error = validate_positive_amount(total_amount, "total_amount") or validate_currency(currency)
    if error:
        return CommandResult.fail(error)
    if not shares:
        return CommandResult.fail("At least one founder share is required.")

    investment_amount = investment_amount or 0
    if investment_amount < 0 or investment_amount > total_amount:
        return CommandResult.fail("Investment must be between zero and the total amount.")

    total_percentage = sum((Decimal(str(s["percentage"])) for s in shares), Decimal("0"))
    if abs(total_percentage - 100) > PERCENT_TOLERANCE:
        return CommandResult.fail(f"Percentages must add up to 100% (got {total_percentage}%).")

    admin_ids = [s["admin_id"] for s in shares]
    if len(set(admin_ids)) != len(admin_ids):
        return CommandResult.fail("Each founder can appear only once.")
    founders = {m.user_id: m.user for m in founder_memberships(actor.company).filter(user_id__in=admin_ids)}
    if len(founders) != len(admin_ids):
        return CommandResult.fail("One or more founders are invalid.")

    account = None
    if source_account_id is not None:
        account, error = get_usable_account(actor.company, source_account_id, currency)
        if error:
            return CommandResult.fail(error)

    distributed = total_amount - investment_amount
    distribution = Distribution.objects.create(
        company=actor.company,
        date=date,
        total_amount=total_amount,
        investment_amount=investment_amount,
        distributed_amount=distributed,
        currency=currency,
        source_account=account,
        notes=notes,
        created_by=actor.user,
    )

    share_rows = []
    for share in shares:
        percentage = Decimal(str(share["percentage"]))
        share_rows.append(DistributionShare.objects.create(
            distribution=distribution,
            admin=founders[share["admin_id"]],
            percentage=percentage,
            amount=_share_amount(distributed, percentage),
        ))

    txn = None
    if account is not None and distributed > 0:
        txn = ledger.record_transaction(
            actor.company,
            actor.user,
            date=date,
            type=Transaction.Type.DISTRIBUTION,
            amount=distributed,
            currency=currency,
            source_account=account,
            distribution=distribution,
            description="Distribution to founders",
            notes=notes,
        )

    if update_positions:
        today = timezone.localdate()
        for row in share_rows:
            position, _ = AdminPosition.objects.select_for_update().get_or_create(
                company=actor.company,
                admin=row.admin,
                currency=currency,
                defaults={"as_of_date": today},
            )
            position.received += row.amount
            position.as_of_date = today
            position.save(update_fields=["received", "as_of_date", "updated_at"])

    record_audit(actor, AuditActions.CREATE_DISTRIBUTION, "Distribution", distribution.public_id, {
        "total_amount": total_amount,
        "currency": currency,
        "investment_amount": investment_amount,
        "distributed_amount": distributed,
        "founder_count": len(share_rows),
        "positions_updated": update_positions,
        "transaction_number": txn.transaction_number if txn else None,
    })
    logger.info(
        "Distribution created",
        extra={"company_id": actor.company.id, "distribution_id": distribution.id, "currency": currency},
    )
    return CommandResult.ok(distribution)


@transaction.atomic
def upsert_admin_position(
    actor: ActorContext,
    admin_id: int,
    currency: str,
    advanced: int = None,
    received: int = None,
    as_of_date=None,
    notes: str = None,
) -> CommandResult:
    """Set a founder's advanced/received totals for one currency."""
    require(actor, "positions.manage")

    error = validate_currency(currency)
    if error:
        return CommandResult.fail(error)
    for value, name in ((advanced, "advanced"), (received, "received")):
        if value is not None and value < 0:
            return CommandResult.fail(f"{name} cannot be negative.")

    membership = founder_memberships(actor.company).filter(user_id=admin_id).first()
    if membership is None:
        return CommandResult.fail("Admin not found.")

    as_of_date = as_of_date or timezone.localdate()
    position, created = AdminPosition.objects.select_for_update().get_or_create(
        company=actor.company,
        admin=membership.user,
        currency=currency,
        defaults={"as_of_date": as_of_date},
    )
    if advanced is not None:
        position.advanced = advanced
    if received is not None:
        position.received = received
    if notes is not None:
        position.notes = notes
    position.as_of_date = as_of_date
    position.save()

    record_audit(actor, AuditActions.UPDATE_ADMIN_POSITION, "AdminPosition", position.public_id, {
        "admin_id": admin_id,
        "currency": currency,
        "advanced": advanced,
        "received": received,
        "created": created,
    })
    return CommandResult.ok(position)
