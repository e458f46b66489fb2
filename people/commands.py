# people/commands.py
"""
Commands for the directory: people, packs and pack assignments.
"""

import logging

from django.contrib.auth import get_user_model
from django.db import transaction

from accounts.authz import ActorContext, require
from accounts.commands import CommandResult
from people.models import Student, Mentor, Professor, Pack, StudentPack

logger = logging.getLogger(__name__)

User = get_user_model()

PERSON_MODELS = {
    "student": Student,
    "mentor": Mentor,
    "professor": Professor,
}

PERSON_FIELDS = {"first_name", "last_name", "email", "phone", "is_active", "subject"}


def _resolve_user(actor: ActorContext, user_id):
    if user_id is None:
        return None, None
    user = User.objects.filter(pk=user_id, memberships__company=actor.company).first()
    if not user:
        return None, "User is not a member of this company."
    return user, None


@transaction.atomic
def create_person(actor: ActorContext, kind: str, user_id: int = None, **fields) -> CommandResult:
    """Create a student, mentor or professor record."""
    require(actor, "people.manage")

    model = PERSON_MODELS.get(kind)
    if model is None:
        return CommandResult.fail(f"Unknown person kind '{kind}'.")

    if not (fields.get("first_name") or "").strip():
        return CommandResult.fail("First name is required.")

    user, error = _resolve_user(actor, user_id)
    if error:
        return CommandResult.fail(error)

    if user and model.objects.filter(company=actor.company, user=user).exists():
        return CommandResult.fail(f"This user is already linked to a {kind}.")

    data = {k: v for k, v in fields.items() if k in PERSON_FIELDS}
    if model is not Professor:
        data.pop("subject", None)

    person = model.objects.create(company=actor.company, user=user, **data)
    logger.info("Person created", extra={"kind": kind, "person_id": person.id, "company_id": actor.company.id})
    return CommandResult.ok(person)


@transaction.atomic
def update_person(actor: ActorContext, kind: str, person_id: int, **updates) -> CommandResult:
    require(actor, "people.manage")

    model = PERSON_MODELS.get(kind)
    if model is None:
        return CommandResult.fail(f"Unknown person kind '{kind}'.")

    try:
        person = model.objects.select_for_update().get(pk=person_id, company=actor.company)
    except model.DoesNotExist:
        return CommandResult.fail(f"{kind.capitalize()} not found.")

    if "user_id" in updates:
        user, error = _resolve_user(actor, updates.pop("user_id"))
        if error:
            return CommandResult.fail(error)
        person.user = user

    for field, value in updates.items():
        if field in PERSON_FIELDS and hasattr(person, field):
            setattr(person, field, value)
    person.save()
    return CommandResult.ok(person)


@transaction.atomic
def create_pack(actor: ActorContext, name: str, base_price: int, description: str = "") -> CommandResult:
    require(actor, "people.manage")

    if base_price is None or base_price < 0:
        return CommandResult.fail("Base price must be zero or positive.")
    if Pack.objects.filter(company=actor.company, name=name).exists():
        return CommandResult.fail(f"Pack '{name}' already exists.")

    pack = Pack.objects.create(
        company=actor.company,
        name=name,
        base_price=base_price,
        description=description,
    )
    return CommandResult.ok(pack)


@transaction.atomic
def assign_pack(
    actor: ActorContext,
    student_id: int,
    pack_id: int,
    custom_price: int = None,
) -> CommandResult:
    """Attach a pack to a student. The price defaults to the pack's base price."""
    require(actor, "people.manage")

    try:
        student = Student.objects.get(pk=student_id, company=actor.company)
    except Student.DoesNotExist:
        return CommandResult.fail("Student not found.")

    try:
        pack = Pack.objects.get(pk=pack_id, company=actor.company, is_active=True)
    except Pack.DoesNotExist:
        return CommandResult.fail("Pack not found or inactive.")

    price = pack.base_price if custom_price is None else custom_price
    if price < 0:
        return CommandResult.fail("Custom price must be zero or positive.")

    student_pack = StudentPack.objects.create(
        company=actor.company,
        student=student,
        pack=pack,
        custom_price=price,
    )
    return CommandResult.ok(student_pack)
