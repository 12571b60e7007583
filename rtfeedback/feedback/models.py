from django.db.models import CharField
from django.db.models import DateTimeField
from django.db.models import JSONField
from django.db.models import Model
from django.utils import timezone

from rtfeedback.feedback.profiles import PARTICIPANT_ID_MAX_LENGTH
from rtfeedback.feedback.profiles import Language


class FeedbackPatternRecord(Model):
    """The current generated pattern set for one participant; overwritten on regeneration."""

    participant_id = CharField(max_length=PARTICIPANT_ID_MAX_LENGTH, unique=True)
    language = CharField(max_length=2, choices=Language.choices, default=Language.JA)
    patterns = JSONField()
    profile = JSONField(default=dict)
    profile_hash = CharField(max_length=64)
    generated_at = DateTimeField(default=timezone.now)
    updated_at = DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"Feedback patterns – {self.participant_id} ({self.language})"
