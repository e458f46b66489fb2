# accounts/management/commands/seed_permissions.py

from django.core.management.base import BaseCommand

from accounts.permissions import grant_defaults_to_all_memberships, seed_all_permissions


class Command(BaseCommand):
    help = "Create every permission code, optionally granting role defaults to memberships without any"

    def add_arguments(self, parser):
        parser.add_argument(
            "--grant-defaults",
            action="store_true",
            help="Grant role defaults to memberships that hold no explicit permission yet",
        )

    def handle(self, *args, **options):
        count = seed_all_permissions()
        self.stdout.write(f"{count} permission codes present.")

        if options["grant_defaults"]:
            stats = grant_defaults_to_all_memberships()
            self.stdout.write(
                f"Updated {stats['memberships_updated']} membership(s), "
                f"granted {stats['permissions_granted']} permission(s)."
            )

        self.stdout.write(self.style.SUCCESS("Done."))
