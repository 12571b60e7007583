"""
Persistence for generated feedback pattern sets.

One live record per participant. ``put`` replaces the record atomically, so
readers see either the old or the new pattern set, never a mix.
"""
import datetime
import logging
from dataclasses import dataclass
from dataclasses import field

from django.db import DatabaseError
from django.db import transaction
from django.utils import timezone

from rtfeedback.feedback.models import FeedbackPatternRecord

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the pattern store cannot be read or written."""


@dataclass(frozen=True)
class CachedPatternRecord:
    participant_id: str
    pattern_set: dict
    generated_at: datetime.datetime
    source_profile_hash: str
    language: str
    profile: dict = field(default_factory=dict)


class ModelPatternStore:
    """Pattern store backed by the FeedbackPatternRecord table."""

    def get(self, participant_id: str) -> CachedPatternRecord | None:
        try:
            record = FeedbackPatternRecord.objects.filter(participant_id=participant_id).first()
        except DatabaseError as exc:
            raise StoreError(f"Could not read feedback patterns for {participant_id}") from exc
        if record is None:
            return None
        return CachedPatternRecord(
            participant_id=record.participant_id,
            pattern_set=record.patterns,
            generated_at=record.generated_at,
            source_profile_hash=record.profile_hash,
            language=record.language,
            profile=record.profile or {},
        )

    def put(
        self,
        participant_id: str,
        pattern_set: dict,
        profile_hash: str,
        language: str,
        profile: dict | None = None,
    ) -> None:
        """Create or replace the participant's record (last write wins)."""
        try:
            with transaction.atomic():
                FeedbackPatternRecord.objects.update_or_create(
                    participant_id=participant_id,
                    defaults={
                        "patterns": pattern_set,
                        "profile_hash": profile_hash,
                        "language": language,
                        "profile": profile or {},
                        "generated_at": timezone.now(),
                    },
                )
        except DatabaseError as exc:
            raise StoreError(f"Could not save feedback patterns for {participant_id}") from exc
        logger.info("Stored feedback patterns for participant %s", participant_id)

    def participant_ids(self) -> list[str]:
        try:
            return list(
                FeedbackPatternRecord.objects.order_by("participant_id").values_list(
                    "participant_id", flat=True
                )
            )
        except DatabaseError as exc:
            raise StoreError("Could not list feedback pattern records") from exc
