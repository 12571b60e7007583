"""Management command to force-regenerate stored feedback patterns from their profile snapshots."""
from django.core.management.base import BaseCommand
from django.core.management.base import CommandError

from rtfeedback.feedback.orchestrator import get_orchestrator
from rtfeedback.feedback.profiles import ParticipantProfile


class Command(BaseCommand):
    help = "Regenerate feedback patterns for stored participants (all of them by default)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--participant",
            action="append",
            dest="participants",
            default=None,
            help="Participant id to refresh. May be given more than once.",
        )

    def handle(self, *args, **options):
        orchestrator = get_orchestrator()
        store = orchestrator.store
        participant_ids = options["participants"] or store.participant_ids()

        refreshed = failed = 0
        for participant_id in participant_ids:
            record = store.get(participant_id)
            if record is None:
                raise CommandError(f"No stored feedback patterns for participant {participant_id}")
            if not record.profile:
                self.stderr.write(f"Skipping {participant_id}: no profile snapshot stored")
                failed += 1
                continue
            profile = ParticipantProfile.from_dict(record.profile, participant_id=participant_id)
            resolution = orchestrator.resolve(profile, participant_id=participant_id, force=True)
            if resolution.fallback:
                self.stderr.write(f"Generation failed for {participant_id}; previous patterns kept")
                failed += 1
            else:
                refreshed += 1

        self.stdout.write(self.style.SUCCESS(f"Done: {refreshed} refreshed, {failed} failed."))
