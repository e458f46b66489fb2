# accounts/permission_defaults.py

_BACK_OFFICE_READ = {
    "company.switch",
    "company.view",

    "people.view",
    "bank_accounts.view",
    "ledger.view",
    "payments.view",
    "quotes.view",
    "missions.view",
    "expenses.view",
    "distributions.view",
    "positions.view",
    "reports.view",
}

ROLE_DEFAULTS = {
    "OWNER": _BACK_OFFICE_READ | {
        "company.manage_users",
        "company.manage_permissions",

        "people.manage",
        "bank_accounts.manage",
        "ledger.create",
        "payments.record",
        "payments.validate",
        "quotes.manage",
        "missions.manage",
        "missions.validate",
        "expenses.manage",
        "distributions.manage",
        "positions.manage",
        "reports.export",
    },
    "ADMIN": _BACK_OFFICE_READ | {
        "company.manage_users",
        "company.manage_permissions",

        "people.manage",
        "bank_accounts.manage",
        "ledger.create",
        "payments.record",
        "payments.validate",
        "quotes.manage",
        "missions.manage",
        "missions.validate",
        "expenses.manage",
        "distributions.manage",
        "positions.manage",
        "reports.export",
    },
    "USER": {
        "company.switch",
        "company.view",

        "people.view",
        "people.manage",
        "bank_accounts.view",
        "ledger.view",
        "payments.view",
        "payments.record",
        "quotes.view",
        "quotes.manage",
        "missions.view",
        "missions.manage",
        "expenses.view",
        "expenses.manage",
        "reports.view",
    },
    "VIEWER": {
        "company.switch",
        "company.view",

        "people.view",
        "bank_accounts.view",
        "ledger.view",
        "payments.view",
        "quotes.view",
        "missions.view",
        "expenses.view",
        "reports.view",
    },
    "STUDENT": {
        "company.view",
        "self_service.view",
    },
    "MENTOR": {
        "company.view",
        "self_service.view",
    },
    "PROFESSOR": {
        "company.view",
        "self_service.view",
    },
}


def all_permission_codes() -> set[str]:
    codes: set[str] = set()
    for s in ROLE_DEFAULTS.values():
        codes |= set(s)
    return codes
