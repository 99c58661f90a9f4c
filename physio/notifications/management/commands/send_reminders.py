from django.core.management.base import BaseCommand, CommandError
from django.utils.dateparse import parse_date

from physio.notifications.tasks import send_daily_reminders


class Command(BaseCommand):
    help = "Email a reminder to every patient with a scheduled or confirmed appointment today."

    def add_arguments(self, parser):
        parser.add_argument("--date", help="Send the reminders of this day instead (YYYY-MM-DD).")

    def handle(self, *args, **opts):
        day = None
        if opts["date"]:
            try:
                day = parse_date(opts["date"])
            except ValueError:
                day = None
            if day is None:
                raise CommandError(f"Invalid date: {opts['date']}")

        summary = send_daily_reminders(day)
        if not summary["total"]:
            self.stdout.write("No appointments to send reminders for.")
            return

        self.stdout.write(self.style.SUCCESS(
            f"Processed {summary['total']} appointments, "
            f"sent {summary['sent']} reminders ({summary['failed']} failed, {summary['skipped']} skipped)"
        ))
