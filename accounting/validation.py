# accounting/validation.py
"""
Business validation and alerting.

Validators return an error message or None; commands turn a message
into CommandResult.fail(). Alert generators never block an operation,
they flag it for a human to look at.

Thresholds come from settings (LARGE_*_THRESHOLD, in cents).
"""

import math
from dataclasses import dataclass, field, asdict
from datetime import timedelta
from typing import Optional

from django.conf import settings

from accounting.models import BankAccount, Mission, Payment


class AlertLevel:
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


@dataclass
class Alert:
    level: str
    type: str
    message: str
    data: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


def _money(amount: int, currency: str) -> str:
    return f"{amount / 100:.2f} {currency}"


# =============================================================================
# Validators
# =============================================================================

def validate_positive_amount(amount, field_name: str = "amount") -> Optional[str]:
    if amount is None or amount <= 0:
        return f"{field_name} must be positive (got: {amount})"
    return None


def validate_currency(currency: str) -> Optional[str]:
    supported = settings.SUPPORTED_CURRENCIES
    if currency not in supported:
        return f'Currency "{currency}" is not supported. Supported currencies: {", ".join(supported)}'
    return None


def validate_account_exists(company, account_id) -> tuple[Optional[BankAccount], Optional[str]]:
    """Return (account, None) for an active account of the company, else (None, message)."""
    account = BankAccount.objects.filter(company=company, pk=account_id).first()
    if account is None:
        return None, f"Bank account {account_id} not found."
    if not account.is_active:
        return None, f'Account "{account.account_name}" is inactive.'
    return account, None


def validate_account_currency(account: BankAccount, currency: str) -> Optional[str]:
    if not account.is_active:
        return f'Account "{account.account_name}" is inactive.'
    if account.currency != currency:
        return (
            f'Account "{account.account_name}" currency ({account.currency}) '
            f"does not match expected currency ({currency})."
        )
    return None


def get_usable_account(company, account_id, currency: str = None) -> tuple[Optional[BankAccount], Optional[str]]:
    """(account, None) when money can move through it in currency, else (None, message)."""
    account, error = validate_account_exists(company, account_id)
    if error:
        return None, error
    if currency:
        error = validate_account_currency(account, currency)
        if error:
            return None, error
    return account, None


def validate_mission_payment(mission: Mission) -> Optional[str]:
    if mission.status != Mission.Status.VALIDATED:
        return (
            f'Cannot pay mission "{mission.title}" - status must be VALIDATED '
            f"(current: {mission.status})."
        )
    if mission.paid_at:
        return f'Mission "{mission.title}" has already been paid on {mission.paid_at:%Y-%m-%d}.'
    return None


# =============================================================================
# Duplicate detection
# =============================================================================

def find_duplicate_payment(
    company,
    *,
    amount: int,
    payment_date,
    student=None,
    mentor=None,
    professor=None,
    exclude_id=None,
) -> Optional[Payment]:
    """
    Most recent payment by the same person within 5% of the amount
    and one day of the date.
    """
    qs = Payment.objects.filter(
        company=company,
        amount__gte=math.floor(amount * 0.95),
        amount__lte=math.ceil(amount * 1.05),
        payment_date__gte=payment_date - timedelta(days=1),
        payment_date__lte=payment_date + timedelta(days=1),
    )
    if student is not None:
        qs = qs.filter(student=student)
    if mentor is not None:
        qs = qs.filter(mentor=mentor)
    if professor is not None:
        qs = qs.filter(professor=professor)
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    return qs.order_by("-created_at", "-id").first()


# =============================================================================
# Alerts
# =============================================================================

def payment_alerts(company, payment: Payment) -> list[Alert]:
    alerts = []
    if payment.amount > settings.LARGE_PAYMENT_THRESHOLD:
        alerts.append(Alert(
            level=AlertLevel.WARNING,
            type="LARGE_AMOUNT",
            message=f"Large payment amount: {_money(payment.amount, payment.currency)}",
            data={"amount": payment.amount, "currency": payment.currency},
        ))

    duplicate = find_duplicate_payment(
        company,
        amount=payment.amount,
        payment_date=payment.payment_date,
        student=payment.student,
        mentor=payment.mentor,
        professor=payment.professor,
        exclude_id=payment.pk,
    )
    if duplicate:
        alerts.append(Alert(
            level=AlertLevel.WARNING,
            type="POTENTIAL_DUPLICATE",
            message="Potential duplicate payment detected (similar amount and date within 24h)",
            data={
                "duplicate_id": duplicate.id,
                "duplicate_amount": duplicate.amount,
                "duplicate_date": duplicate.payment_date.isoformat(),
            },
        ))
    return alerts


def expense_alerts(expense) -> list[Alert]:
    alerts = []
    if expense.amount > settings.LARGE_EXPENSE_THRESHOLD:
        alerts.append(Alert(
            level=AlertLevel.WARNING,
            type="LARGE_EXPENSE",
            message=f"Large expense amount: {_money(expense.amount, expense.currency)}",
            data={"amount": expense.amount, "currency": expense.currency},
        ))
    if not expense.supplier:
        alerts.append(Alert(
            level=AlertLevel.INFO,
            type="NO_SUPPLIER",
            message="Expense has no supplier specified",
        ))
    return alerts


def mission_alerts(mission: Mission) -> list[Alert]:
    alerts = []
    if mission.amount > settings.LARGE_MISSION_THRESHOLD:
        alerts.append(Alert(
            level=AlertLevel.INFO,
            type="LARGE_MISSION",
            message=f"Large mission amount: {_money(mission.amount, mission.currency)}",
            data={"amount": mission.amount, "currency": mission.currency},
        ))
    if not mission.hours:
        alerts.append(Alert(
            level=AlertLevel.INFO,
            type="NO_HOURS",
            message="Mission has no hours worked specified",
        ))
    return alerts


def transfer_alerts(amount: int, currency: str) -> list[Alert]:
    if amount > settings.LARGE_TRANSFER_THRESHOLD:
        return [Alert(
            level=AlertLevel.WARNING,
            type="LARGE_TRANSFER",
            message=f"Large transfer amount: {_money(amount, currency)}",
            data={"amount": amount, "currency": currency},
        )]
    return []
