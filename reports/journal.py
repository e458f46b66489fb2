# reports/journal.py
"""
Transaction journal: filtered, paged listing of ledger rows.
"""

from django.conf import settings
from django.db.models import Count, Q, Sum

from accounting.models import Transaction


def filter_transactions(company, filters: dict):
    """
    Ledger rows of a company narrowed by the journal filters.

    filters keys (all optional): date_from, date_to, currency, type,
    account (source OR destination), student, mentor, professor.
    """
    qs = Transaction.objects.filter(company=company)
    if filters.get("date_from"):
        qs = qs.filter(date__gte=filters["date_from"])
    if filters.get("date_to"):
        qs = qs.filter(date__lte=filters["date_to"])
    if filters.get("currency"):
        qs = qs.filter(currency=filters["currency"])
    if filters.get("type"):
        qs = qs.filter(type=filters["type"])
    if filters.get("account"):
        qs = qs.filter(Q(source_account_id=filters["account"]) | Q(destination_account_id=filters["account"]))
    for link in ("student", "mentor", "professor"):
        if filters.get(link):
            qs = qs.filter(**{f"{link}_id": filters[link]})
    return qs.order_by("-date", "-created_at", "-id")


def journal_totals(queryset) -> dict:
    """{currency: {"incoming", "outgoing"}} over the whole filtered set."""
    totals = {}
    rows = queryset.order_by().values("currency").annotate(
        incoming=Sum("amount", filter=Q(destination_account__isnull=False)),
        outgoing=Sum("amount", filter=Q(source_account__isnull=False)),
    )
    for row in rows:
        totals[row["currency"]] = {
            "incoming": row["incoming"] or 0,
            "outgoing": row["outgoing"] or 0,
        }
    return totals


def journal_page(company, filters: dict) -> dict:
    limit = min(filters.get("limit") or settings.JOURNAL_PAGE_SIZE, settings.JOURNAL_MAX_PAGE_SIZE)
    offset = filters.get("offset") or 0

    qs = filter_transactions(company, filters)
    total = qs.count()
    page = list(
        qs.select_related(
            "source_account", "destination_account", "student", "mentor", "professor", "created_by",
        )[offset:offset + limit]
    )
    by_type = {
        row["type"]: row["count"]
        for row in qs.order_by().values("type").annotate(count=Count("id"))
    }

    return {
        "transactions": page,
        "pagination": {
            "total": total,
            "limit": limit,
            "offset": offset,
            "has_more": offset + len(page) < total,
        },
        "summary": {
            "totals_by_currency": journal_totals(qs),
            "by_type": by_type,
            "count": len(page),
        },
    }


def journal_detail(company, transaction_id):
    """
    One ledger row with its counterpart leg.

    Returns (transaction, linked, linked_from) or None when the row is not
    in the company. linked is the row this one points at, linked_from the
    rows pointing back at it.
    """
    txn = (
        Transaction.objects.filter(company=company, pk=transaction_id)
        .select_related(
            "source_account", "destination_account", "payment", "expense", "distribution",
            "mission", "quote", "payment_schedule", "student", "mentor", "professor",
            "linked_transaction", "created_by",
        )
        .first()
    )
    if txn is None:
        return None
    return txn, txn.linked_transaction, list(txn.linked_from.all())
