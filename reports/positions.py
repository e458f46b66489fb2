# reports/positions.py
"""
Founder positions: what each admin advanced to the company versus what
they received back, per currency.

A positive balance means the company owes the admin.
"""

from collections import defaultdict

from accounting.models import AdminPosition, Currency

MAX_SUGGESTIONS = 5


def _admin_name(user) -> str:
    return user.name or user.email


def rebalancing_suggestions(balances_by_admin: dict, names: dict, limit: int = MAX_SUGGESTIONS) -> list:
    """
    Greedy pairing per currency.

    balances_by_admin is {admin_id: {currency: balance}}. The admin owing the
    most (most negative) pays the admin owed the most, for the smaller of
    the two amounts, until one side runs out.
    """
    suggestions = []
    for currency in Currency.values:
        creditors = []
        debtors = []
        for admin_id, per_currency in balances_by_admin.items():
            balance = per_currency.get(currency, 0)
            if balance > 0:
                creditors.append([balance, admin_id])
            elif balance < 0:
                debtors.append([-balance, admin_id])

        while creditors and debtors and len(suggestions) < limit:
            creditors.sort(key=lambda c: (-c[0], c[1]))
            debtors.sort(key=lambda d: (-d[0], d[1]))
            creditor, debtor = creditors[0], debtors[0]
            amount = min(creditor[0], debtor[0])
            suggestions.append({
                "from_admin_id": debtor[1],
                "from_admin": names[debtor[1]],
                "to_admin_id": creditor[1],
                "to_admin": names[creditor[1]],
                "amount": amount,
                "currency": currency,
            })
            creditor[0] -= amount
            debtor[0] -= amount
            creditors = [c for c in creditors if c[0] > 0]
            debtors = [d for d in debtors if d[0] > 0]

        if len(suggestions) >= limit:
            break
    return suggestions


def positions_summary(company) -> dict:
    positions = (
        AdminPosition.objects.filter(company=company)
        .select_related("admin")
        .order_by("admin_id", "currency")
    )

    by_admin = {}
    names = {}
    balances = defaultdict(dict)
    global_totals = defaultdict(lambda: {"advanced": 0, "received": 0, "balance": 0})

    for position in positions:
        admin = position.admin
        names[admin.id] = _admin_name(admin)
        entry = by_admin.setdefault(admin.id, {
            "admin": {"id": admin.id, "name": names[admin.id], "email": admin.email},
            "positions": [],
            "balances": {},
        })
        balance = position.balance
        entry["positions"].append({
            "id": position.id,
            "currency": position.currency,
            "advanced": position.advanced,
            "received": position.received,
            "balance": balance,
            "as_of_date": position.as_of_date,
            "notes": position.notes,
        })
        entry["balances"][position.currency] = balance
        balances[admin.id][position.currency] = balance

        totals = global_totals[position.currency]
        totals["advanced"] += position.advanced
        totals["received"] += position.received
        totals["balance"] += balance

    return {
        "positions": list(by_admin.values()),
        "global_totals": dict(global_totals),
        "rebalancing_suggestions": rebalancing_suggestions(balances, names),
    }
