# accounting/management/commands/mark_overdue_schedules.py
"""
Flag unpaid installments whose due date has passed.

Same work as the accounting.tasks.mark_overdue_schedules Celery task, for
cron setups without a beat scheduler.

Usage:
    python manage.py mark_overdue_schedules
    python manage.py mark_overdue_schedules --company acme
    python manage.py mark_overdue_schedules --as-of 2025-01-31
"""

import datetime

from django.core.management.base import BaseCommand, CommandError

from accounts.models import Company
from accounting.tasks import mark_overdue_schedules


class Command(BaseCommand):
    help = "Mark unpaid PENDING payment schedules past their due date as OVERDUE"

    def add_arguments(self, parser):
        parser.add_argument(
            "--company",
            type=str,
            help="Company slug (all companies when omitted)",
        )
        parser.add_argument(
            "--as-of",
            type=str,
            dest="as_of",
            help="ISO date used as today",
        )

    def handle(self, *args, **options):
        company_id = None
        if options.get("company"):
            company = Company.objects.filter(slug=options["company"]).first()
            if company is None:
                raise CommandError(f"Company '{options['company']}' not found")
            company_id = company.id

        as_of = options.get("as_of")
        if as_of:
            try:
                datetime.date.fromisoformat(as_of)
            except ValueError:
                raise CommandError(f"Invalid date: {as_of}")

        result = mark_overdue_schedules.apply(kwargs={"company_id": company_id, "today": as_of}).get()
        self.stdout.write(self.style.SUCCESS(
            f"Marked {result['updated']} schedule(s) overdue as of {result['as_of']}."
        ))
