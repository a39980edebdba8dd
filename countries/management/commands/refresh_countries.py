from django.core.management.base import BaseCommand, CommandError

from countries.errors import PersistenceFailed, SourceUnavailable, ValidationFailed
from countries.refresh import get_refresher
from countries.utils import multiplier_source


class Command(BaseCommand):
    help = "Fetch countries and exchange rates and upsert them into the local store."

    def add_arguments(self, parser):
        parser.add_argument(
            "--seed",
            type=int,
            help="Seed the GDP multiplier so the estimates are reproducible.",
        )

    def handle(self, *args, **options):
        multiplier = None
        if options["seed"] is not None:
            multiplier = multiplier_source(options["seed"])

        try:
            result = get_refresher().refresh(multiplier=multiplier)
        except SourceUnavailable as exc:
            raise CommandError(f"External data source unavailable: {exc.details}")
        except ValidationFailed as exc:
            fields = ", ".join(f"{field} {reason}" for field, reason in exc.details.items())
            raise CommandError(f"Validation failed for record {exc.index} ({exc.record_name!r}): {fields}")
        except PersistenceFailed as exc:
            raise CommandError(f"Refresh rolled back: {exc.reason}")

        self.stdout.write(self.style.SUCCESS(
            f"Refreshed {result.processed} countries "
            f"({result.created} new, {result.updated} updated) at {result.last_refreshed_at.isoformat()}"
        ))
        if result.image_path is None:
            self.stderr.write("Summary image was not updated, see the log for details.")
