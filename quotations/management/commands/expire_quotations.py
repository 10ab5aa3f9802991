from datetime import date

from django.core.management.base import BaseCommand, CommandError

from quotations.services.lifecycle import expire_overdue_quotations


class Command(BaseCommand):
    help = "valid_until 이 지난 견적(draft/sent/accepted)을 expired 로 변경"

    def add_arguments(self, parser):
        parser.add_argument("--date", type=str, default=None, help="기준일 YYYY-MM-DD (기본: 오늘)")

    def handle(self, *args, **options):
        today = None
        if options["date"]:
            try:
                today = date.fromisoformat(options["date"])
            except ValueError as exc:
                raise CommandError(f"Invalid --date {options['date']!r}") from exc

        count = expire_overdue_quotations(today)

        self.stdout.write(self.style.SUCCESS(f"{count} quotation(s) expired."))
