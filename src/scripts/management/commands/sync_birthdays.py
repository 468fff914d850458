"""Regenerate birthday events from members' birth dates."""

from django.core.management.base import BaseCommand

from events.birthdays import sync_all_birthdays


class Command(BaseCommand):
    help = "Create or move every member's birthday event to the given (default: current) year."

    def add_arguments(self, parser):
        parser.add_argument("--year", type=int, default=None, help="Calendar year to sync.")

    def handle(self, *args, **options):
        count = sync_all_birthdays(year=options["year"])
        self.stdout.write(self.style.SUCCESS(f"Synced {count} birthday events."))
