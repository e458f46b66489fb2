# reports/cashflow.py
"""
Cash position per bank account.

Balances are never stored: every figure is summed from Transaction rows
through accounting.ledger.
"""

from collections import defaultdict

from accounting import ledger
from accounting.models import BankAccount


def _zero():
    return {"total_in": 0, "total_out": 0, "balance": 0}


def cashflow_report(company) -> dict:
    accounts = BankAccount.objects.filter(company=company, is_active=True).order_by("currency", "account_name")
    movements = ledger.movements_by_account(company)

    rows = []
    totals_by_currency = defaultdict(_zero)
    admin_totals_by_currency = defaultdict(_zero)
    accounts_by_currency = defaultdict(list)

    for account in accounts:
        total_in, total_out = movements.get(account.id, (0, 0))
        row = {
            "id": account.id,
            "account_name": account.account_name,
            "bank_name": account.bank_name,
            "currency": account.currency,
            "account_type": account.account_type,
            "is_admin_owned": account.is_admin_owned,
            "owner_id": account.owner_id,
            "total_in": total_in,
            "total_out": total_out,
            "balance": total_in - total_out,
        }
        rows.append(row)
        accounts_by_currency[account.currency].append(row)

        buckets = [totals_by_currency[account.currency]]
        if account.is_admin_owned:
            buckets.append(admin_totals_by_currency[account.currency])
        for bucket in buckets:
            bucket["total_in"] += total_in
            bucket["total_out"] += total_out
            bucket["balance"] += total_in - total_out

    return {
        "accounts": rows,
        "totals_by_currency": dict(totals_by_currency),
        "accounts_by_currency": dict(accounts_by_currency),
        "admin_accounts": [r for r in rows if r["is_admin_owned"]],
        "other_accounts": [r for r in rows if not r["is_admin_owned"]],
        "admin_totals_by_currency": dict(admin_totals_by_currency),
    }
