# accounts/authz.py
"""
Authorization utilities for the back office.

Provides:
- ActorContext: Immutable context for the current request
- resolve_actor: Extract actor context from request
- require: Check a permission and raise if not granted

Permissions are checked:
1. By role first (OWNER: implicit allow)
2. Every other role: explicit permission codes only (defaults + manual)
"""

from dataclasses import dataclass
from typing import FrozenSet

from django.core.exceptions import PermissionDenied
from rest_framework.exceptions import NotAuthenticated

from accounts.models import CompanyMembership, Company


@dataclass(frozen=True)
class ActorContext:
    """
    Immutable context for the current actor (user + company).

    Passed to commands and policies so they know who is acting
    and inside which tenant.
    """
    user: object  # User model
    company: Company
    membership: CompanyMembership
    perms: FrozenSet[str]

    def has(self, code: str) -> bool:
        if not self.membership.is_active:
            return False
        if self.membership.role == CompanyMembership.Role.OWNER:
            return True
        if code in self.perms:
            return True
        # Permissions may have changed after the context was built.
        return self.membership.permissions.filter(code=code).exists()

    @property
    def is_owner(self) -> bool:
        return self.membership.role == CompanyMembership.Role.OWNER

    @property
    def is_founder(self) -> bool:
        """Owners and admins are the founders who advance and receive money."""
        return self.membership.is_founder

    @property
    def role(self) -> str:
        return self.membership.role


def resolve_actor(request) -> ActorContext:
    """
    Build the ActorContext for a request.

    Membership and permissions are loaded fresh on every call so
    that revocations take effect immediately.

    Raises:
        NotAuthenticated: If user is not authenticated
        PermissionDenied: If user has no active company or membership
    """
    user = getattr(request, "user", None)

    if not user or not user.is_authenticated:
        raise NotAuthenticated("Authentication required.")

    company = getattr(user, "active_company", None)

    if not company:
        raise PermissionDenied("No active company selected. Please select a company first.")

    try:
        membership = CompanyMembership.objects.select_related(
            "company"
        ).get(
            user=user,
            company=company,
            is_active=True,
        )
    except CompanyMembership.DoesNotExist:
        raise PermissionDenied("You are not an active member of the selected company.")

    perms = frozenset(
        membership.permissions.values_list("code", flat=True)
    )

    return ActorContext(
        user=user,
        company=company,
        membership=membership,
        perms=perms,
    )


def require(actor: ActorContext, code: str) -> None:
    """
    Require that the actor has a specific permission.

    Example:
        require(actor, "ledger.create")
        # If we get here, permission is granted
    """
    if not actor.has(code):
        raise PermissionDenied(f"Permission denied: {code}")


def founder_memberships(company: Company):
    """Active OWNER/ADMIN memberships of a company."""
    return CompanyMembership.objects.filter(
        company=company,
        is_active=True,
        role__in=CompanyMembership.FOUNDER_ROLES,
    ).select_related("user")
