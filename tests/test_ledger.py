# tests/test_ledger.py
"""
Tests for the transaction ledger.

Tests cover:
- Row invariants (positive cents, account sides, currency, tenant)
- Per-company, per-year transaction numbering
- Transfers and currency exchanges as linked pairs
- Bank account lifecycle commands
"""

import datetime
from decimal import Decimal

import pytest
from django.core.exceptions import PermissionDenied

from accounting import ledger
from accounting.commands import (
    create_bank_account,
    create_fx_exchange,
    create_transfer,
    delete_bank_account,
    update_bank_account,
)
from accounting.ledger import LedgerError
from accounting.models import AuditLog, BankAccount, Transaction


def fund(company, account, amount, date=None):
    return ledger.record_transaction(
        company,
        None,
        date=date or datetime.date(2025, 1, 10),
        type=Transaction.Type.STUDENT_PAYMENT,
        amount=amount,
        currency=account.currency,
        destination_account=account,
    )


# =============================================================================
# Row Invariants
# =============================================================================

@pytest.mark.django_db
class TestRecordTransaction:

    def test_inflow_increases_balance(self, company, eur_account):
        fund(company, eur_account, 150000)

        assert ledger.account_movements(eur_account) == (150000, 0, 150000)

    @pytest.mark.parametrize("amount", [0, -100, 12.5])
    def test_amount_must_be_positive_integer_cents(self, company, eur_account, amount):
        with pytest.raises(LedgerError):
            fund(company, eur_account, amount)
        assert Transaction.objects.count() == 0

    def test_inflow_cannot_carry_a_source(self, company, eur_account, eur_savings):
        with pytest.raises(LedgerError):
            ledger.record_transaction(
                company, None,
                date=datetime.date(2025, 1, 1),
                type=Transaction.Type.STUDENT_PAYMENT,
                amount=100,
                currency="EUR",
                source_account=eur_savings,
                destination_account=eur_account,
            )

    def test_outflow_needs_a_source(self, company, eur_account):
        with pytest.raises(LedgerError):
            ledger.record_transaction(
                company, None,
                date=datetime.date(2025, 1, 1),
                type=Transaction.Type.EXPENSE,
                amount=100,
                currency="EUR",
                destination_account=eur_account,
            )

    def test_currency_must_match_account(self, company, mad_account):
        with pytest.raises(LedgerError, match="currency"):
            ledger.record_transaction(
                company, None,
                date=datetime.date(2025, 1, 1),
                type=Transaction.Type.EXPENSE,
                amount=100,
                currency="EUR",
                source_account=mad_account,
            )

    def test_account_of_another_company_is_refused(self, company, foreign_account):
        with pytest.raises(LedgerError, match="another company"):
            fund(company, foreign_account, 100)

    def test_unknown_link_is_refused(self, company, eur_account):
        with pytest.raises(LedgerError, match="Unknown transaction links"):
            ledger.record_transaction(
                company, None,
                date=datetime.date(2025, 1, 1),
                type=Transaction.Type.STUDENT_PAYMENT,
                amount=100,
                currency="EUR",
                destination_account=eur_account,
                invoice=1,
            )


# =============================================================================
# Numbering
# =============================================================================

@pytest.mark.django_db
class TestTransactionNumbering:

    def test_numbers_are_sequential_per_year(self, company, eur_account):
        first = fund(company, eur_account, 100, datetime.date(2025, 3, 1))
        second = fund(company, eur_account, 100, datetime.date(2025, 3, 2))
        other_year = fund(company, eur_account, 100, datetime.date(2026, 1, 5))

        assert first.transaction_number == "TXN-2025-00001"
        assert second.transaction_number == "TXN-2025-00002"
        assert other_year.transaction_number == "TXN-2026-00001"

    def test_numbers_are_per_company(self, company, second_company, eur_account, foreign_account):
        fund(company, eur_account, 100)
        txn = fund(second_company, foreign_account, 100)

        assert txn.transaction_number == "TXN-2025-00001"


# =============================================================================
# Transfers and Exchanges
# =============================================================================

@pytest.mark.django_db
class TestTransfer:

    def test_transfer_writes_linked_pair(self, actor, company, eur_account, eur_savings):
        fund(company, eur_account, 100000)

        result = create_transfer(actor, eur_account.id, eur_savings.id, 40000, date=datetime.date(2025, 2, 1))

        assert result.success, result.error
        outgoing, incoming = result.data["outgoing"], result.data["incoming"]
        assert outgoing.type == incoming.type == Transaction.Type.TRANSFER
        assert outgoing.source_account_id == eur_account.id and outgoing.destination_account_id is None
        assert incoming.destination_account_id == eur_savings.id and incoming.source_account_id is None
        assert incoming.linked_transaction_id == outgoing.id
        assert ledger.account_balance(eur_account) == 60000
        assert ledger.account_balance(eur_savings) == 40000

    def test_transfer_leaves_currency_totals_unchanged(self, actor, company, eur_account, eur_savings):
        fund(company, eur_account, 100000)
        before = ledger.balances_by_currency(company)

        create_transfer(actor, eur_account.id, eur_savings.id, 25000)

        assert ledger.balances_by_currency(company) == before

    def test_transfer_requires_same_currency(self, actor, eur_account, mad_account):
        result = create_transfer(actor, eur_account.id, mad_account.id, 1000)

        assert not result.success
        assert "same currency" in result.error
        assert Transaction.objects.count() == 0

    def test_transfer_to_same_account_is_refused(self, actor, eur_account):
        result = create_transfer(actor, eur_account.id, eur_account.id, 1000)

        assert not result.success

    def test_inactive_account_is_refused(self, actor, eur_account, eur_savings):
        eur_savings.is_active = False
        eur_savings.save()

        result = create_transfer(actor, eur_account.id, eur_savings.id, 1000)

        assert not result.success
        assert "inactive" in result.error

    def test_foreign_account_is_refused(self, actor, eur_account, foreign_account):
        result = create_transfer(actor, eur_account.id, foreign_account.id, 1000)

        assert not result.success
        assert Transaction.objects.count() == 0

    def test_transfer_is_audited(self, actor, eur_account, eur_savings):
        create_transfer(actor, eur_account.id, eur_savings.id, 1000)

        entry = AuditLog.objects.get(action="CREATE_TRANSFER")
        assert entry.user == actor.user
        assert entry.metadata["amount"] == 1000

    def test_viewer_cannot_transfer(self, viewer_actor, eur_account, eur_savings):
        with pytest.raises(PermissionDenied):
            create_transfer(viewer_actor, eur_account.id, eur_savings.id, 1000)

    def test_list_transfers_joins_legs(self, actor, company, eur_account, eur_savings):
        create_transfer(actor, eur_account.id, eur_savings.id, 1000)

        pairs = ledger.list_transfers(company)

        assert len(pairs) == 1
        assert pairs[0]["from"].source_account_id == eur_account.id
        assert pairs[0]["to"].destination_account_id == eur_savings.id


@pytest.mark.django_db
class TestFxExchange:

    def test_exchange_computes_rate(self, actor, eur_account, mad_account):
        result = create_fx_exchange(actor, eur_account.id, mad_account.id, 100000, 1080000)

        assert result.success, result.error
        from_leg, to_leg = result.data["from"], result.data["to"]
        assert from_leg.currency == "EUR" and from_leg.amount == 100000
        assert to_leg.currency == "MAD" and to_leg.amount == 1080000
        assert from_leg.exchange_rate == Decimal("10.800000")
        assert to_leg.linked_transaction_id == from_leg.id
        assert ledger.account_balance(mad_account) == 1080000

    def test_explicit_rate_and_fees_kept_on_from_leg(self, actor, eur_account, mad_account):
        result = create_fx_exchange(
            actor, eur_account.id, mad_account.id, 100000, 1075000,
            exchange_rate="10.75", fx_fees=500,
        )

        from_leg = Transaction.objects.get(pk=result.data["from"].pk)
        assert from_leg.exchange_rate == Decimal("10.750000")
        assert from_leg.fx_fees == 500
        assert result.data["to"].fx_fees == 0

    def test_exchange_requires_different_currencies(self, actor, eur_account, eur_savings):
        result = create_fx_exchange(actor, eur_account.id, eur_savings.id, 1000, 1000)

        assert not result.success
        assert Transaction.objects.count() == 0

    def test_negative_fees_refused(self, actor, eur_account, mad_account):
        result = create_fx_exchange(actor, eur_account.id, mad_account.id, 1000, 10800, fx_fees=-1)

        assert not result.success

    @pytest.mark.parametrize("rate", [Decimal("0"), Decimal("-1"), "-10.8"])
    def test_non_positive_rate_refused(self, actor, eur_account, mad_account, rate):
        result = create_fx_exchange(actor, eur_account.id, mad_account.id, 1000, 10800, exchange_rate=rate)

        assert not result.success
        assert "Exchange rate must be positive" in result.error
        assert Transaction.objects.count() == 0

    def test_same_account_on_both_sides_refused(self, actor, eur_account):
        result = create_fx_exchange(actor, eur_account.id, eur_account.id, 1000, 1000)

        assert not result.success
        assert "must differ" in result.error
        assert Transaction.objects.count() == 0

    def test_inactive_account_is_refused(self, actor, eur_account, mad_account):
        mad_account.is_active = False
        mad_account.save()

        result = create_fx_exchange(actor, eur_account.id, mad_account.id, 1000, 10800)

        assert not result.success
        assert "inactive" in result.error
        assert Transaction.objects.count() == 0

    def test_foreign_account_is_refused(self, actor, mad_account, foreign_account):
        result = create_fx_exchange(actor, foreign_account.id, mad_account.id, 1000, 10800)

        assert not result.success
        assert "not found" in result.error
        assert Transaction.objects.count() == 0

    @pytest.mark.parametrize("from_amount,to_amount", [(0, 10800), (1000, -10800)])
    def test_non_positive_amounts_refused(self, actor, eur_account, mad_account, from_amount, to_amount):
        result = create_fx_exchange(actor, eur_account.id, mad_account.id, from_amount, to_amount)

        assert not result.success
        assert "must be positive" in result.error
        assert Transaction.objects.count() == 0

    def test_list_fx_exchanges(self, actor, company, eur_account, mad_account):
        create_fx_exchange(actor, eur_account.id, mad_account.id, 1000, 10800)

        pairs = ledger.list_fx_exchanges(company)

        assert [p["to"].currency for p in pairs] == ["MAD"]


# =============================================================================
# Bank Accounts
# =============================================================================

@pytest.mark.django_db
class TestBankAccountCommands:

    def test_create_account(self, actor):
        result = create_bank_account(actor, account_name="CIH", currency="MAD", bank_name="CIH Bank")

        assert result.success
        assert result.data.company == actor.company
        assert AuditLog.objects.filter(action="CREATE_BANK_ACCOUNT").exists()

    def test_unsupported_currency_refused(self, actor):
        result = create_bank_account(actor, account_name="GBP", currency="GBP")

        assert not result.success

    def test_duplicate_name_for_same_owner_refused(self, actor, eur_account):
        result = create_bank_account(actor, account_name="Main EUR", currency="EUR")

        assert not result.success

    def test_same_name_allowed_for_another_owner(self, actor, eur_account, owner):
        result = create_bank_account(actor, account_name="Main EUR", currency="EUR", owner_id=owner.id)

        assert result.success

    def test_currency_cannot_change(self, actor, eur_account):
        result = update_bank_account(actor, eur_account.id, currency="MAD")

        assert not result.success
        eur_account.refresh_from_db()
        assert eur_account.currency == "EUR"

    def test_rename(self, actor, eur_account):
        result = update_bank_account(actor, eur_account.id, account_name="Operations EUR")

        assert result.success
        assert result.data.account_name == "Operations EUR"

    def test_unused_account_is_deleted(self, actor, eur_account):
        result = delete_bank_account(actor, eur_account.id)

        assert result.data == {"deleted": True, "deactivated": False}
        assert not BankAccount.objects.filter(pk=eur_account.pk).exists()

    def test_account_with_history_is_deactivated(self, actor, company, eur_account):
        fund(company, eur_account, 100)

        result = delete_bank_account(actor, eur_account.id)

        assert result.data == {"deleted": False, "deactivated": True}
        eur_account.refresh_from_db()
        assert eur_account.is_active is False

    def test_balances_by_currency_split_by_holder(self, company, eur_account, founder_eur_account, mad_account):
        fund(company, eur_account, 1000)
        fund(company, founder_eur_account, 500)
        fund(company, mad_account, 9000)

        assert ledger.balances_by_currency(company) == {"EUR": 1500, "MAD": 9000}
        assert ledger.balances_by_currency(company, admin_owned=True) == {"EUR": 500}
