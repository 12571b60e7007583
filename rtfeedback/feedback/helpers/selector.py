"""Pick the message to show after a block from a participant's pattern set."""
import logging

from rtfeedback.feedback.helpers.classifier import classify
from rtfeedback.feedback.helpers.defaults import FALLBACK_LANGUAGE
from rtfeedback.feedback.helpers.defaults import neutral_feedback_message

logger = logging.getLogger(__name__)


def select_feedback(current, previous, pattern_set, thresholds=None, language=FALLBACK_LANGUAGE) -> str:
    """
    Return the feedback message for *current* compared with *previous*.

    The variant rotates with the block number so the same scenario seen in
    consecutive blocks does not repeat the identical sentence. *pattern_set*
    is only read. A missing or empty scenario yields the neutral message for
    *language*.
    """
    key = classify(current, previous, thresholds)
    variants = (pattern_set or {}).get(key)
    if not variants:
        logger.warning("select_feedback: no messages for scenario %s", key)
        return neutral_feedback_message(language)
    return variants[(current.block_number - 1) % len(variants)]
