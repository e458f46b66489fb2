# tests/conftest.py
"""
Pytest fixtures for back-office tests.

- ActorContext requires: user, company, membership, perms
- Memberships get their role defaults through grant_role_defaults()
- Money is integer cents everywhere
"""

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone

from accounts.models import Company, CompanyMembership
from accounts.authz import ActorContext
from accounts.permissions import grant_role_defaults
from accounting.billing_commands import create_quote, update_quote
from accounting.models import BankAccount, Quote
from people.models import Mentor, Pack, Professor, Student, StudentPack


User = get_user_model()


def make_actor(membership) -> ActorContext:
    perms = frozenset(membership.permissions.values_list("code", flat=True))
    return ActorContext(
        user=membership.user,
        company=membership.company,
        membership=membership,
        perms=perms,
    )


def make_member(company, email, role, name=""):
    user = User.objects.create_user(email=email, password="testpass123", name=name or email.split("@")[0])
    user.active_company = company
    user.save(update_fields=["active_company"])
    membership = CompanyMembership.objects.create(company=company, user=user, role=role, is_active=True)
    grant_role_defaults(membership, granted_by=user)
    return membership


# =============================================================================
# Company & User Fixtures
# =============================================================================

@pytest.fixture
def company(db):
    return Company.objects.create(name="Test Consulting", slug="test-consulting", default_currency="EUR")


@pytest.fixture
def second_company(db):
    """A second tenant for isolation tests."""
    return Company.objects.create(name="Other Consulting", slug="other-consulting", default_currency="EUR")


@pytest.fixture
def owner_membership(company):
    return make_member(company, "owner@test.com", CompanyMembership.Role.OWNER, name="Owner")


@pytest.fixture
def admin_membership(company):
    return make_member(company, "admin@test.com", CompanyMembership.Role.ADMIN, name="Admin")


@pytest.fixture
def user_membership(company):
    return make_member(company, "user@test.com", CompanyMembership.Role.USER, name="Staff")


@pytest.fixture
def viewer_membership(company):
    return make_member(company, "viewer@test.com", CompanyMembership.Role.VIEWER, name="Viewer")


@pytest.fixture
def owner(owner_membership):
    return owner_membership.user


@pytest.fixture
def admin_user(admin_membership):
    return admin_membership.user


# =============================================================================
# Actor Context Fixtures
# =============================================================================

@pytest.fixture
def actor(owner_membership):
    """ActorContext for the owner."""
    return make_actor(owner_membership)


@pytest.fixture
def admin_actor(admin_membership):
    return make_actor(admin_membership)


@pytest.fixture
def user_actor(user_membership):
    return make_actor(user_membership)


@pytest.fixture
def viewer_actor(viewer_membership):
    return make_actor(viewer_membership)


# =============================================================================
# Bank Account Fixtures
# =============================================================================

@pytest.fixture
def eur_account(company):
    return BankAccount.objects.create(company=company, account_name="Main EUR", currency="EUR")


@pytest.fixture
def eur_savings(company):
    return BankAccount.objects.create(
        company=company,
        account_name="Savings EUR",
        currency="EUR",
        account_type=BankAccount.AccountType.SAVINGS,
    )


@pytest.fixture
def mad_account(company):
    return BankAccount.objects.create(company=company, account_name="Main MAD", currency="MAD")


@pytest.fixture
def founder_eur_account(company, owner):
    """EUR account held personally by the owner."""
    return BankAccount.objects.create(
        company=company,
        account_name="Owner EUR",
        currency="EUR",
        account_type=BankAccount.AccountType.PERSONAL,
        is_admin_owned=True,
        owner=owner,
    )


@pytest.fixture
def foreign_account(second_company):
    return BankAccount.objects.create(company=second_company, account_name="Foreign EUR", currency="EUR")


# =============================================================================
# People Fixtures
# =============================================================================

@pytest.fixture
def student(company):
    return Student.objects.create(company=company, first_name="Sara", last_name="Alaoui", email="sara@test.com")


@pytest.fixture
def mentor(company):
    return Mentor.objects.create(company=company, first_name="Karim", last_name="Bennani")


@pytest.fixture
def professor(company):
    return Professor.objects.create(company=company, first_name="Nadia", last_name="Idrissi", subject="Maths")


@pytest.fixture
def pack(company):
    return Pack.objects.create(company=company, name="Admission Premium", base_price=300000)


@pytest.fixture
def student_pack(company, student, pack):
    return StudentPack.objects.create(company=company, student=student, pack=pack, custom_price=300000)


@pytest.fixture
def validated_quote(actor, student_pack):
    """A VALIDATED 3000.00 EUR quote for the student."""
    quote = create_quote(actor, student_pack.student_id).data
    update_quote(actor, quote.id, status=Quote.Status.SENT)
    return update_quote(actor, quote.id, status=Quote.Status.VALIDATED).data


@pytest.fixture
def today():
    return timezone.localdate()


# =============================================================================
# API Client Fixtures
# =============================================================================

@pytest.fixture
def api_client():
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def authenticated_client(api_client, owner):
    api_client.force_authenticate(user=owner)
    return api_client


@pytest.fixture
def viewer_client(api_client, viewer_membership):
    api_client.force_authenticate(user=viewer_membership.user)
    return api_client
