# accounts/commands.py
"""
Command layer for accounts/authorization operations.

ALL security-critical mutations go through these commands:
- Signup and company creation
- Company switching
- User creation
- Membership management
- Permission grants/revocations
"""

import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils.text import slugify

from accounts.authz import ActorContext, require
from accounts.models import Company, CompanyMembership, AccessPermission, CompanyMembershipPermission
from accounts.permissions import grant_role_defaults

logger = logging.getLogger(__name__)

User = get_user_model()


class CommandResult:
    """
    Wrapper for command results with success/failure info.

    Usage:
        result = create_bank_account(actor, account_name="Main", ...)
        if result.success:
            account = result.data
        else:
            error_message = result.error
    """

    def __init__(self, success: bool, data=None, error: str = None):
        self.success = success
        self.data = data
        self.error = error

    @classmethod
    def ok(cls, data=None):
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str):
        return cls(success=False, error=error)


def _unique_slug(name: str) -> str:
    base_slug = slugify(name.strip()) or "company"
    slug = base_slug
    attempt = 0
    while Company.objects.filter(slug=slug).exists():
        attempt += 1
        slug = f"{base_slug}-{attempt}"
    return slug


# =============================================================================
# Registration and companies
# =============================================================================

@transaction.atomic
def register_signup(
    email: str,
    password: str,
    name: str,
    company_name: str,
    default_currency: str = "EUR",
) -> CommandResult:
    """
    Create a user, their company and the OWNER membership in one step.
    """
    email = (email or "").strip().lower()
    if not email:
        return CommandResult.fail("Email is required.")
    if User.objects.filter(email=email).exists():
        return CommandResult.fail(f"User with email '{email}' already exists.")
    if not company_name or not company_name.strip():
        return CommandResult.fail("Company name is required.")

    user = User.objects.create_user(email=email, password=password, name=name)
    result = create_company(user, company_name, default_currency=default_currency)
    if not result.success:
        return result

    logger.info("User registered", extra={"user_id": user.id, "company": result.data["company"].slug})
    return CommandResult.ok({"user": user, **result.data})


@transaction.atomic
def create_company(user, company_name: str, default_currency: str = "EUR") -> CommandResult:
    """
    Create a new company for an existing user.

    The user becomes the OWNER of the new company and their active
    company is switched to the new one.
    """
    if not company_name or not company_name.strip():
        return CommandResult.fail("Company name is required.")

    company = Company.objects.create(
        name=company_name.strip(),
        slug=_unique_slug(company_name),
        default_currency=default_currency,
    )
    membership = CompanyMembership.objects.create(
        company=company,
        user=user,
        role=CompanyMembership.Role.OWNER,
        is_active=True,
    )
    grant_role_defaults(membership, granted_by=user)

    user.active_company = company
    user.save(update_fields=["active_company"])

    return CommandResult.ok({
        "company": company,
        "membership": membership,
    })


# =============================================================================
# Company Switching
# =============================================================================

@transaction.atomic
def switch_active_company(user, target_company_id: int) -> CommandResult:
    """
    Switch user's active company.

    Security-critical: it changes what the user can access.
    """
    if isinstance(user, ActorContext):
        user = user.user

    if not user or not user.is_authenticated:
        return CommandResult.fail("Authentication required.")

    try:
        target_company = Company.objects.get(pk=target_company_id, is_active=True)
    except Company.DoesNotExist:
        return CommandResult.fail("Company not found or inactive.")

    try:
        membership = CompanyMembership.objects.get(
            user=user, company=target_company, is_active=True
        )
    except CompanyMembership.DoesNotExist:
        return CommandResult.fail("You do not have an active membership for that company.")

    old_company_id = user.active_company_id
    user.active_company = target_company
    user.save(update_fields=["active_company"])

    logger.info(
        "User switched company",
        extra={"user_id": user.id, "from_company_id": old_company_id, "to_company_id": target_company.id},
    )

    return CommandResult.ok({
        "company_id": target_company.id,
        "company_public_id": str(target_company.public_id),
        "company_name": str(target_company),
        "role": membership.role,
        "membership_id": membership.id,
    })


# =============================================================================
# User Management
# =============================================================================

@transaction.atomic
def create_user_with_membership(
    actor: ActorContext,
    email: str,
    name: str,
    password: str,
    role: str = CompanyMembership.Role.USER,
) -> CommandResult:
    """
    Create a new user and add them to the actor's company.

    Students, mentors and professors get accounts through this command
    with the matching self-service role.
    """
    require(actor, "company.manage_users")

    email = (email or "").strip().lower()
    if User.objects.filter(email=email).exists():
        return CommandResult.fail(f"User with email '{email}' already exists.")

    valid_roles = [r[0] for r in CompanyMembership.Role.choices]
    if role not in valid_roles:
        return CommandResult.fail(f"Invalid role. Must be one of: {valid_roles}")

    if role == CompanyMembership.Role.OWNER and not actor.is_owner:
        return CommandResult.fail("Only the company owner can assign OWNER role.")

    user = User.objects.create_user(email=email, password=password, name=name)
    user.active_company = actor.company
    user.save(update_fields=["active_company"])

    membership = CompanyMembership.objects.create(
        company=actor.company,
        user=user,
        role=role,
        is_active=True,
    )
    grant_role_defaults(membership, granted_by=actor.user)

    return CommandResult.ok({"user": user, "membership": membership})


@transaction.atomic
def update_membership_role(
    actor: ActorContext,
    membership_id: int,
    new_role: str,
) -> CommandResult:
    """
    Update a membership's role. Permissions are reset to the new role's defaults.
    """
    require(actor, "company.manage_users")

    try:
        membership = CompanyMembership.objects.select_related("user", "company").get(
            pk=membership_id, company=actor.company
        )
    except CompanyMembership.DoesNotExist:
        return CommandResult.fail("Membership not found.")

    valid_roles = [r[0] for r in CompanyMembership.Role.choices]
    if new_role not in valid_roles:
        return CommandResult.fail(f"Invalid role. Must be one of: {valid_roles}")

    if membership.role == CompanyMembership.Role.OWNER and not actor.is_owner:
        return CommandResult.fail("Cannot modify the owner's role.")

    if new_role == CompanyMembership.Role.OWNER and not actor.is_owner:
        return CommandResult.fail("Only the owner can assign OWNER role.")

    if (membership.user_id == actor.user.id and
            membership.role == CompanyMembership.Role.OWNER and
            new_role != CompanyMembership.Role.OWNER):
        return CommandResult.fail("Cannot demote yourself from owner. Transfer ownership first.")

    membership.role = new_role
    membership.save(update_fields=["role"])
    grant_role_defaults(membership, granted_by=actor.user, overwrite=True)

    return CommandResult.ok(membership)


@transaction.atomic
def deactivate_membership(actor: ActorContext, membership_id: int) -> CommandResult:
    """Deactivate a membership (soft delete)."""
    require(actor, "company.manage_users")

    try:
        membership = CompanyMembership.objects.select_related("user").get(
            pk=membership_id, company=actor.company
        )
    except CompanyMembership.DoesNotExist:
        return CommandResult.fail("Membership not found.")

    if membership.role == CompanyMembership.Role.OWNER:
        return CommandResult.fail("Cannot deactivate the company owner.")

    if membership.user_id == actor.user.id:
        return CommandResult.fail("Cannot deactivate your own membership.")

    membership.is_active = False
    membership.save(update_fields=["is_active"])
    return CommandResult.ok({"deactivated": True})


# =============================================================================
# Permission Management
# =============================================================================

def _normalize_codes(permission_code) -> list:
    if isinstance(permission_code, (list, tuple, set)):
        codes = list(permission_code)
    else:
        codes = [permission_code]
    return [code for code in codes if code]


@transaction.atomic
def grant_permission(actor: ActorContext, membership_id: int, permission_code) -> CommandResult:
    """Grant one or more permission codes to a membership."""
    require(actor, "company.manage_permissions")

    try:
        membership = CompanyMembership.objects.get(pk=membership_id, company=actor.company)
    except CompanyMembership.DoesNotExist:
        return CommandResult.fail("Membership not found.")

    permission_codes = _normalize_codes(permission_code)
    if not permission_codes:
        return CommandResult.fail("Permission code is required.")

    permissions = list(AccessPermission.objects.filter(code__in=permission_codes))
    missing = set(permission_codes) - {perm.code for perm in permissions}
    if missing:
        return CommandResult.fail(f"Permission(s) not found: {sorted(missing)}")

    if membership.permissions.filter(code__in=permission_codes).exists():
        return CommandResult.fail("Permission already granted.")

    CompanyMembershipPermission.objects.bulk_create([
        CompanyMembershipPermission(
            membership=membership,
            company=actor.company,
            permission=perm,
            granted_by=actor.user,
        )
        for perm in permissions
    ])
    return CommandResult.ok({"granted": permission_codes})


@transaction.atomic
def revoke_permission(actor: ActorContext, membership_id: int, permission_code) -> CommandResult:
    """Revoke one or more permission codes from a membership."""
    require(actor, "company.manage_permissions")

    try:
        membership = CompanyMembership.objects.get(pk=membership_id, company=actor.company)
    except CompanyMembership.DoesNotExist:
        return CommandResult.fail("Membership not found.")

    permission_codes = _normalize_codes(permission_code)
    if not permission_codes:
        return CommandResult.fail("Permission code is required.")

    grants = CompanyMembershipPermission.objects.filter(
        membership=membership,
        permission__code__in=permission_codes,
    )
    if not grants.exists():
        return CommandResult.fail("Permission not granted to this membership.")

    grants.delete()
    return CommandResult.ok({"revoked": permission_codes})
