"""
Huey background tasks for feedback patterns.

Thin wrappers: rebuild the inputs, delegate to the orchestrator, and raise on
failure so huey's retries apply.
"""
import logging

from huey.contrib.djhuey import db_task

logger = logging.getLogger(__name__)


@db_task(retries=2, retry_delay=300)
def refresh_feedback_patterns_task(participant_id: str, profile_data: dict) -> None:
    """
    Force a fresh generation for *participant_id* and store it.

    Queued after a request had to answer with the fallback set, so the
    participant's next request can find a personalised set in the store.
    Raises GenerationFailure while generation still falls back.
    """
    from rtfeedback.feedback.generator import GenerationFailure
    from rtfeedback.feedback.orchestrator import get_orchestrator
    from rtfeedback.feedback.profiles import ParticipantProfile

    profile = ParticipantProfile.from_dict(profile_data, participant_id=participant_id)
    resolution = get_orchestrator().resolve(profile, participant_id=participant_id, force=True)
    if resolution.fallback:
        logger.warning(
            "refresh_feedback_patterns_task: generation still failing for participant %s",
            participant_id,
        )
        raise GenerationFailure(f"Feedback generation still failing for participant {participant_id}")
