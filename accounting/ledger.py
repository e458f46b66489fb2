# accounting/ledger.py
"""
Transaction ledger writer and balance queries.

Every movement of money is one Transaction row:
- Inflows (student payments) carry a destination account only
- Outflows (team payments, expenses, distributions) carry a source only
- Transfers and currency exchanges are two linked rows, one side each;
  the incoming leg points at the outgoing leg via linked_transaction

Balances are derived, never stored:
    balance(account) = sum(in) - sum(out)

The writers here do not check permissions; commands call them after
require() and business validation, inside their own transaction.atomic.
"""

import logging
from collections import defaultdict
from decimal import Decimal, ROUND_HALF_UP

from django.db import IntegrityError
from django.db.models import Prefetch, Sum
from django.db.models.functions import Coalesce

from accounting.models import BankAccount, CompanySequence, Transaction

logger = logging.getLogger(__name__)

RATE_QUANTUM = Decimal("0.000001")

INFLOW_TYPES = frozenset({Transaction.Type.STUDENT_PAYMENT})
OUTFLOW_TYPES = frozenset({
    Transaction.Type.MENTOR_PAYMENT,
    Transaction.Type.PROFESSOR_PAYMENT,
    Transaction.Type.EXPENSE,
    Transaction.Type.DISTRIBUTION,
})
PAIRED_TYPES = frozenset({Transaction.Type.TRANSFER, Transaction.Type.FX_EXCHANGE})

TYPE_LABELS = dict(Transaction.Type.choices)

LINK_FIELDS = frozenset({
    "payment", "expense", "distribution", "mission", "quote",
    "payment_schedule", "student", "mentor", "professor",
    "linked_transaction",
})


class LedgerError(ValueError):
    """A ledger row would break a ledger invariant."""


def type_label(code: str) -> str:
    return TYPE_LABELS.get(code, code)


# =============================================================================
# Numbering
# =============================================================================

def next_company_sequence(company, name: str) -> int:
    """
    Allocate the next sequence value for a company/name pair.
    Uses select_for_update to avoid concurrent duplicates.
    """
    try:
        seq = CompanySequence.objects.select_for_update().get(company=company, name=name)
    except CompanySequence.DoesNotExist:
        try:
            seq = CompanySequence.objects.create(company=company, name=name, next_value=1)
        except IntegrityError:
            seq = CompanySequence.objects.select_for_update().get(company=company, name=name)

    value = seq.next_value
    seq.next_value = value + 1
    seq.save(update_fields=["next_value", "updated_at"])
    return value


def next_transaction_number(company, on_date) -> str:
    """TXN-YYYY-NNNNN, counted per company and per year."""
    value = next_company_sequence(company, f"transaction:{on_date.year}")
    return f"TXN-{on_date.year}-{value:05d}"


def compute_exchange_rate(from_amount: int, to_amount: int) -> Decimal:
    """Units of the target currency per unit of the source currency."""
    return (Decimal(to_amount) / Decimal(from_amount)).quantize(RATE_QUANTUM, rounding=ROUND_HALF_UP)


# =============================================================================
# Writers
# =============================================================================

def _check_account(company, account, currency: str, side: str) -> None:
    if account.company_id != company.id:
        raise LedgerError(f"{side} account belongs to another company.")
    if account.currency != currency:
        raise LedgerError(
            f"{side} account currency {account.currency} does not match {currency}."
        )


def record_transaction(
    company,
    user,
    *,
    date,
    type: str,
    amount: int,
    currency: str,
    source_account: BankAccount = None,
    destination_account: BankAccount = None,
    exchange_rate=None,
    fx_fees: int = 0,
    description: str = "",
    notes: str = "",
    **links,
) -> Transaction:
    """
    Append one row to the ledger.

    Raises:
        LedgerError: If the row breaks an invariant (non-positive amount,
            missing account, foreign account, currency mismatch, or an
            account side that does not fit the type).
    """
    if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
        raise LedgerError("Amount must be a positive integer number of cents.")
    if source_account is None and destination_account is None:
        raise LedgerError("A transaction needs a source or a destination account.")

    if type in INFLOW_TYPES and (source_account is not None or destination_account is None):
        raise LedgerError(f"{type} must have a destination account only.")
    if type in OUTFLOW_TYPES and (destination_account is not None or source_account is None):
        raise LedgerError(f"{type} must have a source account only.")
    if type in PAIRED_TYPES and source_account is not None and destination_account is not None:
        raise LedgerError(f"Each {type} leg carries a single account.")
    if type not in TYPE_LABELS:
        raise LedgerError(f"Unknown transaction type '{type}'.")

    if source_account is not None:
        _check_account(company, source_account, currency, "Source")
    if destination_account is not None:
        _check_account(company, destination_account, currency, "Destination")

    unknown = set(links) - LINK_FIELDS
    if unknown:
        raise LedgerError(f"Unknown transaction links: {', '.join(sorted(unknown))}")

    txn = Transaction.objects.create(
        company=company,
        transaction_number=next_transaction_number(company, date),
        date=date,
        type=type,
        amount=amount,
        currency=currency,
        source_account=source_account,
        destination_account=destination_account,
        exchange_rate=exchange_rate,
        fx_fees=fx_fees or 0,
        description=description or "",
        notes=notes or "",
        created_by=user,
        **links,
    )
    logger.info(
        "Transaction recorded",
        extra={
            "company_id": company.id,
            "transaction_number": txn.transaction_number,
            "type": type,
            "amount": amount,
            "currency": currency,
        },
    )
    return txn


def create_fx_pair(
    company,
    user,
    *,
    from_account: BankAccount,
    to_account: BankAccount,
    from_amount: int,
    to_amount: int,
    date,
    exchange_rate=None,
    fx_fees: int = 0,
    description: str = "",
    notes: str = "",
):
    """
    Write the two FX_EXCHANGE legs of a currency conversion.

    The from leg carries the rate and the fees; the to leg links back
    to it. Returns (from_leg, to_leg).
    """
    if exchange_rate is None:
        exchange_rate = compute_exchange_rate(from_amount, to_amount)
    else:
        exchange_rate = Decimal(str(exchange_rate)).quantize(RATE_QUANTUM, rounding=ROUND_HALF_UP)
    description = description or f"Change {from_account.currency} -> {to_account.currency}"

    from_leg = record_transaction(
        company,
        user,
        date=date,
        type=Transaction.Type.FX_EXCHANGE,
        amount=from_amount,
        currency=from_account.currency,
        source_account=from_account,
        exchange_rate=exchange_rate,
        fx_fees=fx_fees,
        description=description,
        notes=notes,
    )
    to_leg = record_transaction(
        company,
        user,
        date=date,
        type=Transaction.Type.FX_EXCHANGE,
        amount=to_amount,
        currency=to_account.currency,
        destination_account=to_account,
        exchange_rate=exchange_rate,
        description=description,
        notes=notes,
        linked_transaction=from_leg,
    )
    return from_leg, to_leg


def create_transfer_pair(
    company,
    user,
    *,
    from_account: BankAccount,
    to_account: BankAccount,
    amount: int,
    date,
    description: str = "",
    notes: str = "",
):
    """Write the outgoing and incoming TRANSFER legs. Returns (outgoing, incoming)."""
    description = description or f"Transfer {from_account.account_name} -> {to_account.account_name}"

    outgoing = record_transaction(
        company,
        user,
        date=date,
        type=Transaction.Type.TRANSFER,
        amount=amount,
        currency=from_account.currency,
        source_account=from_account,
        description=description,
        notes=notes,
    )
    incoming = record_transaction(
        company,
        user,
        date=date,
        type=Transaction.Type.TRANSFER,
        amount=amount,
        currency=to_account.currency,
        destination_account=to_account,
        description=description,
        notes=notes,
        linked_transaction=outgoing,
    )
    return outgoing, incoming


# =============================================================================
# Pair listings
# =============================================================================

def _list_pairs(company, type: str, limit: int):
    incoming = Transaction.objects.select_related("destination_account")
    legs = (
        Transaction.objects.filter(
            company=company,
            type=type,
            source_account__isnull=False,
        )
        .select_related("source_account")
        .prefetch_related(Prefetch("linked_from", queryset=incoming, to_attr="incoming_legs"))
        .order_by("-date", "-id")
    )
    if limit:
        legs = legs[:limit]
    return [
        {"from": leg, "to": leg.incoming_legs[0] if leg.incoming_legs else None}
        for leg in legs
    ]


def list_fx_exchanges(company, limit: int = 50):
    """FX from legs joined with their to legs, newest first."""
    return _list_pairs(company, Transaction.Type.FX_EXCHANGE, limit)


def list_transfers(company, limit: int = 50):
    """Outgoing transfer legs joined with their incoming legs, newest first."""
    return _list_pairs(company, Transaction.Type.TRANSFER, limit)


# =============================================================================
# Balances
# =============================================================================

def _sum(queryset) -> int:
    return queryset.aggregate(total=Coalesce(Sum("amount"), 0))["total"]


def account_movements(account: BankAccount):
    """Return (total_in, total_out, balance) for one account."""
    total_in = _sum(Transaction.objects.filter(destination_account=account))
    total_out = _sum(Transaction.objects.filter(source_account=account))
    return total_in, total_out, total_in - total_out


def account_balance(account: BankAccount) -> int:
    return account_movements(account)[2]


def movements_by_account(company) -> dict:
    """
    {account_id: (total_in, total_out)} for every account that has rows.

    Two grouped queries instead of one per account.
    """
    totals = defaultdict(lambda: [0, 0])
    incoming = (
        Transaction.objects.filter(company=company, destination_account__isnull=False)
        .values("destination_account")
        .annotate(total=Sum("amount"))
    )
    for row in incoming:
        totals[row["destination_account"]][0] = row["total"]
    outgoing = (
        Transaction.objects.filter(company=company, source_account__isnull=False)
        .values("source_account")
        .annotate(total=Sum("amount"))
    )
    for row in outgoing:
        totals[row["source_account"]][1] = row["total"]
    return {account_id: tuple(pair) for account_id, pair in totals.items()}


def balances_by_currency(company, admin_owned=None) -> dict:
    """
    Sum of balances over the company's active accounts, keyed by currency.

    admin_owned=True/False restricts to founder-held or company accounts.
    """
    accounts = BankAccount.objects.filter(company=company, is_active=True)
    if admin_owned is not None:
        accounts = accounts.filter(is_admin_owned=admin_owned)

    movements = movements_by_account(company)
    result = defaultdict(int)
    for account in accounts:
        total_in, total_out = movements.get(account.id, (0, 0))
        result[account.currency] += total_in - total_out
    return dict(result)
