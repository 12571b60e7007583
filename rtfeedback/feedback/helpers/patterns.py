"""Completeness checks for feedback pattern sets."""
from rtfeedback.feedback.registry import SCENARIO_KEYS
from rtfeedback.feedback.registry import VARIANTS_PER_SCENARIO


class InvalidPatternSet(ValueError):
    """Raised when a pattern set does not cover every scenario with enough messages."""


def normalise_pattern_set(raw) -> dict[str, list[str]]:
    """
    Return a clean copy of *raw* holding exactly VARIANTS_PER_SCENARIO stripped
    messages for every registered scenario key.

    Unknown keys are dropped. Extra messages beyond VARIANTS_PER_SCENARIO are
    dropped; fewer non-empty messages fail.

    Raises:
        InvalidPatternSet: if any scenario is missing or under-populated.
    """
    if not isinstance(raw, dict):
        raise InvalidPatternSet(f"Pattern set must be an object, got {type(raw).__name__}")

    missing = [key for key in SCENARIO_KEYS if key not in raw]
    if missing:
        raise InvalidPatternSet(f"Missing scenarios: {', '.join(missing)}")

    cleaned = {}
    for key in SCENARIO_KEYS:
        variants = raw[key]
        if not isinstance(variants, list):
            raise InvalidPatternSet(f"Scenario '{key}' must map to a list")
        messages = [v.strip() for v in variants if isinstance(v, str) and v.strip()]
        if len(messages) < VARIANTS_PER_SCENARIO:
            raise InvalidPatternSet(
                f"Scenario '{key}' has {len(messages)} usable messages, "
                f"{VARIANTS_PER_SCENARIO} required"
            )
        cleaned[key] = messages[:VARIANTS_PER_SCENARIO]
    return cleaned


def is_complete_pattern_set(pattern_set) -> bool:
    """Return True if *pattern_set* already has exactly the required shape (no normalising)."""
    if not isinstance(pattern_set, dict):
        return False
    for key in SCENARIO_KEYS:
        variants = pattern_set.get(key)
        if not isinstance(variants, list) or len(variants) != VARIANTS_PER_SCENARIO:
            return False
        if not all(isinstance(v, str) and v.strip() for v in variants):
            return False
    return True
