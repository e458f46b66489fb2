#accounts/tests/test_permissions_defaults.py

from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from django.contrib.auth import get_user_model
from django.core.exceptions import PermissionDenied

from accounts.models import Company, CompanyMembership
from accounts.authz import ActorContext
from accounts.permissions import grant_role_defaults
from accounts.commands import (
    create_user_with_membership,
    deactivate_membership,
    grant_permission,
    register_signup,
    revoke_permission,
    switch_active_company,
    update_membership_role,
)
from accounts.models import CompanyMembershipPermission, AccessPermission


User = get_user_model()


def actor_for(membership):
    perms = frozenset(membership.permissions.values_list("code", flat=True))
    return ActorContext(user=membership.user, company=membership.company, membership=membership, perms=perms)


class TestPermissionDefaults(TestCase):
    def setUp(self):
        self.company = Company.objects.create(name="C1", slug="c1")
        self.owner = User.objects.create_user(email="o@test.com", password="pass12345")
        self.user = User.objects.create_user(email="u@test.com", password="pass12345")
        self.admin = User.objects.create_user(email="a@test.com", password="pass12345")
        self.viewer = User.objects.create_user(email="v@test.com", password="pass12345")

        self.owner_m = CompanyMembership.objects.create(user=self.owner, company=self.company, role="OWNER", is_active=True)
        self.user_m = CompanyMembership.objects.create(user=self.user, company=self.company, role="USER", is_active=True)
        self.admin_m = CompanyMembership.objects.create(user=self.admin, company=self.company, role="ADMIN", is_active=True)
        self.viewer_m = CompanyMembership.objects.create(user=self.viewer, company=self.company, role="VIEWER", is_active=True)

        for membership in (self.owner_m, self.user_m, self.admin_m, self.viewer_m):
            grant_role_defaults(membership, granted_by=self.owner)

    def test_user_cannot_manage_users(self):
        actor = actor_for(self.user_m)
        self.assertFalse(actor.has("company.manage_users"))

    def test_user_records_but_does_not_validate(self):
        actor = actor_for(self.user_m)
        self.assertTrue(actor.has("payments.record"))
        self.assertFalse(actor.has("payments.validate"))
        self.assertFalse(actor.has("ledger.create"))
        self.assertFalse(actor.has("bank_accounts.manage"))

    def test_viewer_is_read_only(self):
        actor = actor_for(self.viewer_m)
        self.assertTrue(actor.has("reports.view"))
        self.assertFalse(actor.has("expenses.manage"))
        self.assertFalse(actor.has("reports.export"))

    def test_owner_is_always_allowed(self):
        actor = actor_for(self.owner_m)
        self.assertTrue(actor.has("positions.manage"))
        self.assertTrue(actor.has("not.a.real.permission"))

    def test_admin_permissions_are_real(self):
        """ADMIN is permission-based: it holds the founder defaults explicitly."""
        actor = actor_for(self.admin_m)
        self.assertTrue(actor.has("company.manage_users"))
        self.assertTrue(actor.has("distributions.manage"))
        self.assertFalse(actor.has("not.a.real.permission"))

    def test_admin_revocation_actually_blocks(self):
        perm = AccessPermission.objects.get(code="company.manage_users")
        CompanyMembershipPermission.objects.filter(membership=self.admin_m, permission=perm).delete()

        actor = actor_for(self.admin_m)

        self.assertFalse(actor.has("company.manage_users"))

    def test_inactive_membership_has_nothing(self):
        self.user_m.is_active = False
        self.user_m.save()

        self.assertFalse(actor_for(self.user_m).has("company.view"))

    def test_grant_defaults_is_idempotent(self):
        self.assertEqual(grant_role_defaults(self.user_m), 0)


class TestMembershipCommands(TestCase):
    def setUp(self):
        self.company = Company.objects.create(name="C1", slug="c1")

        self.owner = User.objects.create_user(email="o@test.com", password="pass12345")
        self.owner_m = CompanyMembership.objects.create(
            user=self.owner, company=self.company, role="OWNER", is_active=True
        )
        grant_role_defaults(self.owner_m, granted_by=self.owner)
        self.actor = actor_for(self.owner_m)

    def test_create_user_grants_defaults(self):
        res = create_user_with_membership(self.actor, email="U@Test.com", name="Staff", password="pass12345")
        self.assertTrue(res.success)

        m = res.data["membership"]
        self.assertEqual(res.data["user"].email, "u@test.com")
        self.assertEqual(res.data["user"].active_company, self.company)
        codes = set(m.permissions.values_list("code", flat=True))
        self.assertIn("company.view", codes)
        self.assertIn("payments.record", codes)
        self.assertNotIn("payments.validate", codes)

    def test_self_service_roles(self):
        res = create_user_with_membership(
            self.actor, email="student@test.com", name="Sara", password="pass12345", role="STUDENT",
        )

        codes = set(res.data["membership"].permissions.values_list("code", flat=True))
        self.assertEqual(codes, {"company.view", "self_service.view"})

    def test_duplicate_email_refused(self):
        res = create_user_with_membership(self.actor, email="o@test.com", name="Again", password="pass12345")
        self.assertFalse(res.success)

    def test_staff_cannot_create_users(self):
        staff = create_user_with_membership(self.actor, email="u@test.com", name="Staff", password="pass12345")
        staff_actor = actor_for(staff.data["membership"])

        with self.assertRaises(PermissionDenied):
            create_user_with_membership(staff_actor, email="x@test.com", name="X", password="pass12345")

    def test_role_change_resets_permissions(self):
        m = create_user_with_membership(
            self.actor, email="u@test.com", name="Staff", password="pass12345",
        ).data["membership"]

        res = update_membership_role(self.actor, m.id, "VIEWER")

        self.assertTrue(res.success)
        codes = set(m.permissions.values_list("code", flat=True))
        self.assertNotIn("payments.record", codes)
        self.assertIn("ledger.view", codes)

    def test_owner_cannot_demote_self(self):
        res = update_membership_role(self.actor, self.owner_m.id, "ADMIN")
        self.assertFalse(res.success)

    def test_deactivate_membership(self):
        m = create_user_with_membership(
            self.actor, email="u@test.com", name="Staff", password="pass12345",
        ).data["membership"]

        self.assertTrue(deactivate_membership(self.actor, m.id).success)
        self.assertFalse(deactivate_membership(self.actor, self.owner_m.id).success)

        m.refresh_from_db()
        self.assertFalse(m.is_active)

    def test_grant_and_revoke(self):
        m = create_user_with_membership(
            self.actor, email="u@test.com", name="Staff", password="pass12345",
        ).data["membership"]

        granted = grant_permission(self.actor, m.id, "payments.validate")
        again = grant_permission(self.actor, m.id, "payments.validate")
        unknown = grant_permission(self.actor, m.id, "payments.teleport")

        self.assertTrue(granted.success)
        self.assertFalse(again.success)
        self.assertFalse(unknown.success)
        self.assertTrue(m.permissions.filter(code="payments.validate").exists())

        self.assertTrue(revoke_permission(self.actor, m.id, ["payments.validate"]).success)
        self.assertFalse(m.permissions.filter(code="payments.validate").exists())


class TestSignupAndSwitching(TestCase):
    def test_signup_creates_owner_company(self):
        res = register_signup("Founder@Test.com", "pass12345", "Founder", "Atlas Consulting")

        self.assertTrue(res.success)
        user, company = res.data["user"], res.data["company"]
        self.assertEqual(company.slug, "atlas-consulting")
        self.assertEqual(user.active_company, company)
        self.assertEqual(res.data["membership"].role, "OWNER")

    def test_slugs_are_unique(self):
        register_signup("a@test.com", "pass12345", "A", "Atlas Consulting")
        res = register_signup("b@test.com", "pass12345", "B", "Atlas Consulting")

        self.assertEqual(res.data["company"].slug, "atlas-consulting-1")

    def test_switch_requires_membership(self):
        first = register_signup("a@test.com", "pass12345", "A", "Atlas").data
        other = register_signup("b@test.com", "pass12345", "B", "Rabat Advisors").data

        denied = switch_active_company(first["user"], other["company"].id)
        self.assertFalse(denied.success)

        CompanyMembership.objects.create(
            user=first["user"], company=other["company"], role="VIEWER", is_active=True,
        )
        allowed = switch_active_company(first["user"], other["company"].id)

        self.assertTrue(allowed.success)
        self.assertEqual(allowed.data["role"], "VIEWER")
        first["user"].refresh_from_db()
        self.assertEqual(first["user"].active_company, other["company"])


class TestSeedPermissionsCommand(TestCase):
    def test_seeds_codes_and_grants_empty_memberships(self):
        company = Company.objects.create(name="C1", slug="c1")
        user = User.objects.create_user(email="u@test.com", password="pass12345")
        membership = CompanyMembership.objects.create(user=user, company=company, role="USER", is_active=True)
        out = StringIO()

        call_command("seed_permissions", "--grant-defaults", stdout=out)

        self.assertTrue(AccessPermission.objects.filter(code="self_service.view").exists())
        self.assertTrue(membership.permissions.filter(code="payments.record").exists())
        self.assertIn("Updated 1 membership(s)", out.getvalue())

    def test_rerun_is_harmless(self):
        call_command("seed_permissions", stdout=StringIO())
        count = AccessPermission.objects.count()

        call_command("seed_permissions", stdout=StringIO())

        self.assertEqual(AccessPermission.objects.count(), count)
