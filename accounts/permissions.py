# accounts/permissions.py
from __future__ import annotations

import logging
from typing import Optional

from django.db import transaction

from accounts.models import AccessPermission, CompanyMembership, CompanyMembershipPermission
from accounts.permission_defaults import ROLE_DEFAULTS, all_permission_codes

logger = logging.getLogger(__name__)


def _perm_defaults(code: str) -> dict:
    return {
        "name": code,
        "module": code.split(".")[0],
        "description": "",
    }


def ensure_permissions(codes) -> list[AccessPermission]:
    """Make sure an AccessPermission row exists for each code and return them."""
    codes = set(codes)
    existing = set(AccessPermission.objects.filter(code__in=codes).values_list("code", flat=True))
    missing = [c for c in codes if c not in existing]
    if missing:
        AccessPermission.objects.bulk_create(
            [AccessPermission(code=c, **_perm_defaults(c)) for c in missing],
            ignore_conflicts=True,
        )
    return list(AccessPermission.objects.filter(code__in=codes))


def seed_all_permissions() -> int:
    """Create every known permission code. Returns the number of codes."""
    codes = all_permission_codes()
    ensure_permissions(codes)
    return len(codes)


@transaction.atomic
def grant_role_defaults(
    membership: CompanyMembership,
    granted_by=None,
    overwrite: bool = False,
) -> int:
    """
    Grant default permissions for the membership.role.

    - Idempotent by default: only grants missing codes.
    - If overwrite=True: first removes existing permissions then grants defaults.
    Returns number of permissions newly granted.
    """
    default_codes = ROLE_DEFAULTS.get(membership.role, set())

    if overwrite:
        CompanyMembershipPermission.objects.filter(
            membership=membership,
            company=membership.company,
        ).delete()

    perms = ensure_permissions(default_codes)

    already = set(
        CompanyMembershipPermission.objects.filter(
            membership=membership,
            company=membership.company,
            permission__in=perms,
        ).values_list("permission__code", flat=True)
    )

    to_grant = [p for p in perms if p.code not in already]
    if not to_grant:
        return 0

    CompanyMembershipPermission.objects.bulk_create(
        [
            CompanyMembershipPermission(
                membership=membership,
                company=membership.company,
                permission=p,
                granted_by=granted_by if (granted_by and granted_by.is_authenticated) else None,
            )
            for p in to_grant
        ],
        ignore_conflicts=True,
    )
    logger.info(
        "Granted role defaults",
        extra={"membership_id": membership.id, "role": membership.role, "granted": len(to_grant)},
    )
    return len(to_grant)


@transaction.atomic
def grant_defaults_to_all_memberships(
    granted_by=None,
    only_if_empty: bool = True,
) -> dict[str, int]:
    """
    Grant defaults across all memberships.
    - only_if_empty=True: only touches memberships with zero explicit permissions.
    """
    updated = 0
    total_granted = 0

    for m in CompanyMembership.objects.select_related("company"):
        if only_if_empty and CompanyMembershipPermission.objects.filter(membership=m).exists():
            continue
        g = grant_role_defaults(membership=m, granted_by=granted_by, overwrite=False)
        if g > 0:
            updated += 1
            total_granted += g

    return {"memberships_updated": updated, "permissions_granted": total_granted}
