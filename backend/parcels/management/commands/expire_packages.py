from django.core.management.base import BaseCommand

from parcels.services.package_expiration import expire_stale_packages


class Command(BaseCommand):
    help = "Expire pending packages that no traveller accepted in time and notify their senders."

    def add_arguments(self, parser):
        parser.add_argument(
            "--hours",
            type=int,
            default=None,
            help="Expire packages pending for longer than this many hours (default: PACKAGE_EXPIRY_HOURS).",
        )

    def handle(self, *args, **options):
        expired_count, notified_count = expire_stale_packages(hours=options["hours"])

        self.stdout.write(
            self.style.SUCCESS(
                f"Expired {expired_count} package(s); notified {notified_count} sender(s)."
            )
        )
