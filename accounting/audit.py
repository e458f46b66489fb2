# accounting/audit.py
"""
Audit trail for accounting commands.

Commands call record_audit() after a successful mutation, inside the
same transaction, so a rolled-back command leaves no audit row.
"""

import logging

from accounting.models import AuditLog

logger = logging.getLogger(__name__)


class AuditActions:
    CREATE_BANK_ACCOUNT = "CREATE_BANK_ACCOUNT"
    UPDATE_BANK_ACCOUNT = "UPDATE_BANK_ACCOUNT"
    DEACTIVATE_BANK_ACCOUNT = "DEACTIVATE_BANK_ACCOUNT"
    DELETE_BANK_ACCOUNT = "DELETE_BANK_ACCOUNT"

    CREATE_FX_EXCHANGE = "CREATE_FX_EXCHANGE"
    CREATE_TRANSFER = "CREATE_TRANSFER"

    CREATE_STUDENT_PAYMENT = "CREATE_STUDENT_PAYMENT"
    VALIDATE_STUDENT_PAYMENT = "VALIDATE_STUDENT_PAYMENT"
    REJECT_STUDENT_PAYMENT = "REJECT_STUDENT_PAYMENT"
    UPDATE_STUDENT_PAYMENT = "UPDATE_STUDENT_PAYMENT"
    ALLOCATE_PAYMENT = "ALLOCATE_PAYMENT"
    CREATE_TEAM_PAYMENT = "CREATE_TEAM_PAYMENT"

    CREATE_QUOTE = "CREATE_QUOTE"
    UPDATE_QUOTE = "UPDATE_QUOTE"
    DELETE_QUOTE = "DELETE_QUOTE"
    GENERATE_SCHEDULES = "GENERATE_SCHEDULES"

    CREATE_MISSION = "CREATE_MISSION"
    VALIDATE_MISSION = "VALIDATE_MISSION"
    REJECT_MISSION = "REJECT_MISSION"
    UPDATE_MISSION = "UPDATE_MISSION"
    CANCEL_MISSION = "CANCEL_MISSION"
    DELETE_MISSION = "DELETE_MISSION"

    CREATE_EXPENSE = "CREATE_EXPENSE"
    UPDATE_EXPENSE = "UPDATE_EXPENSE"
    DELETE_EXPENSE = "DELETE_EXPENSE"
    CREATE_RECURRING_EXPENSE = "CREATE_RECURRING_EXPENSE"
    UPDATE_RECURRING_EXPENSE = "UPDATE_RECURRING_EXPENSE"
    DEACTIVATE_RECURRING_EXPENSE = "DEACTIVATE_RECURRING_EXPENSE"
    PAY_RECURRING_EXPENSE = "PAY_RECURRING_EXPENSE"

    CREATE_DISTRIBUTION = "CREATE_DISTRIBUTION"
    UPDATE_ADMIN_POSITION = "UPDATE_ADMIN_POSITION"


def record_audit(actor, action: str, resource_type: str, resource_id, metadata: dict = None) -> AuditLog:
    entry = AuditLog.objects.create(
        company=actor.company,
        user=actor.user,
        action=action,
        resource_type=resource_type,
        resource_id=str(resource_id),
        metadata=metadata or {},
    )
    logger.info(
        "Audit %s",
        action,
        extra={
            "company_id": actor.company.id,
            "user_id": actor.user.id,
            "resource_type": resource_type,
            "resource_id": str(resource_id),
        },
    )
    return entry
