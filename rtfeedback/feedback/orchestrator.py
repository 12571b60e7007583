"""
Generate-or-fetch orchestration for participant feedback patterns.

resolve() returns a complete pattern set in every case except a store failure:
  cached: the participant's stored set was still usable
  generated: the generator produced a valid set, which is now stored
  fallback: generation failed; the static set for the profile language is
            returned and nothing is stored, so a later call retries
"""
import datetime
import logging
import uuid
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass

from django.conf import settings
from django.utils import timezone

from rtfeedback.feedback.generator import GenerationFailure
from rtfeedback.feedback.generator import OpenAIFeedbackGenerator
from rtfeedback.feedback.generator import build_generation_request
from rtfeedback.feedback.helpers.defaults import default_pattern_set
from rtfeedback.feedback.helpers.patterns import InvalidPatternSet
from rtfeedback.feedback.helpers.patterns import is_complete_pattern_set
from rtfeedback.feedback.helpers.patterns import normalise_pattern_set
from rtfeedback.feedback.helpers.singleflight import SingleFlight
from rtfeedback.feedback.store import ModelPatternStore

logger = logging.getLogger(__name__)

# Shared by every orchestrator built with get_orchestrator() in this process.
_DEFAULT_FLIGHT = SingleFlight()


@dataclass(frozen=True)
class FeedbackResolution:
    pattern_set: dict
    cached: bool
    fallback: bool
    participant_id: str


class FeedbackOrchestrator:
    def __init__(
        self,
        store,
        generator,
        flight: SingleFlight | None = None,
        invalidate_on_profile_change: bool = False,
        max_age: datetime.timedelta | None = None,
        wait_timeout: float | None = None,
    ):
        self.store = store
        self.generator = generator
        self.flight = flight or SingleFlight()
        self.invalidate_on_profile_change = invalidate_on_profile_change
        self.max_age = max_age
        self.wait_timeout = wait_timeout

    def resolve(self, profile, participant_id: str | None = None, force: bool = False) -> FeedbackResolution:
        """
        Return a complete pattern set for *profile*.

        *participant_id* falls back to ``profile.id`` and then to a new UUID.
        With *force* the stored set is ignored and the generator always runs.
        Concurrent calls for the same participant share one generation.

        Raises:
            StoreError: if the pattern store cannot be read or written.
        """
        participant_id = participant_id or profile.id or str(uuid.uuid4())

        if not force:
            record = self.store.get(participant_id)
            if self._is_usable(record, profile):
                return FeedbackResolution(record.pattern_set, cached=True, fallback=False, participant_id=participant_id)

        while True:
            try:
                resolution, leader = self.flight.do(
                    participant_id,
                    lambda: self._fill(participant_id, profile, force),
                    wait_timeout=self.wait_timeout,
                )
            except FutureTimeoutError:
                logger.warning(
                    "Gave up waiting for in-flight generation for participant %s; using fallback",
                    participant_id,
                )
                return self._fallback(participant_id, profile)
            # A forced caller must not settle for a cache hit found by another caller's flight.
            if force and not leader and resolution.cached:
                continue
            return resolution

    def _fill(self, participant_id: str, profile, force: bool) -> FeedbackResolution:
        if not force:
            # Another flight may have stored a set since the caller's first look.
            record = self.store.get(participant_id)
            if self._is_usable(record, profile):
                return FeedbackResolution(record.pattern_set, cached=True, fallback=False, participant_id=participant_id)

        request = build_generation_request(profile)
        try:
            raw = self.generator.generate(request)
            pattern_set = normalise_pattern_set(raw)
        except (GenerationFailure, InvalidPatternSet) as exc:
            logger.warning("Feedback generation failed for participant %s: %s", participant_id, exc)
            return self._fallback(participant_id, profile)
        except Exception:
            logger.exception("Unexpected error generating feedback for participant %s", participant_id)
            return self._fallback(participant_id, profile)

        self.store.put(
            participant_id,
            pattern_set,
            profile.profile_hash(),
            language=profile.language,
            profile=profile.as_dict(),
        )
        logger.info("Generated feedback patterns for participant %s", participant_id)
        return FeedbackResolution(pattern_set, cached=False, fallback=False, participant_id=participant_id)

    def _fallback(self, participant_id: str, profile) -> FeedbackResolution:
        return FeedbackResolution(
            default_pattern_set(profile.language),
            cached=False,
            fallback=True,
            participant_id=participant_id,
        )

    def _is_usable(self, record, profile) -> bool:
        if record is None or not is_complete_pattern_set(record.pattern_set):
            return False
        if self.invalidate_on_profile_change and record.source_profile_hash != profile.profile_hash():
            logger.info("Profile changed for participant %s; regenerating", record.participant_id)
            return False
        if self.max_age is not None and timezone.now() - record.generated_at > self.max_age:
            return False
        return True


def get_orchestrator() -> FeedbackOrchestrator:
    """Build the settings-wired orchestrator used by views, tasks and commands."""
    max_age_seconds = getattr(settings, "FEEDBACK_PATTERN_MAX_AGE", None)
    return FeedbackOrchestrator(
        store=ModelPatternStore(),
        generator=OpenAIFeedbackGenerator(),
        flight=_DEFAULT_FLIGHT,
        invalidate_on_profile_change=getattr(settings, "FEEDBACK_INVALIDATE_ON_PROFILE_CHANGE", False),
        max_age=datetime.timedelta(seconds=max_age_seconds) if max_age_seconds else None,
        wait_timeout=getattr(settings, "FEEDBACK_FLIGHT_WAIT_TIMEOUT", 60),
    )
