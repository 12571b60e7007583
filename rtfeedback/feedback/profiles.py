"""
Value objects handed to the feedback engine, and the parsers that build them
from the JSON payload posted by the task front end.

Parsers raise django.core.exceptions.ValidationError with a field-keyed
message dict so views can return it as a 422 body unchanged.
"""
from __future__ import annotations

import hashlib
import json
import math
from dataclasses import asdict
from dataclasses import dataclass
from dataclasses import field

from django.core.exceptions import ValidationError
from django.db.models import TextChoices

# Width of FeedbackPatternRecord.participant_id
PARTICIPANT_ID_MAX_LENGTH = 64


class TonePreference(TextChoices):
    CASUAL = "casual", "Casual"
    GENTLE = "gentle", "Gentle"
    FORMAL = "formal", "Formal"


class MotivationStyle(TextChoices):
    EMPATHETIC = "empathetic", "Empathetic"
    CHEERLEADER = "cheerleader", "Cheerleader"
    ADVISOR = "advisor", "Advisor"


class EvaluationFocus(TextChoices):
    SELF_PROGRESS = "self-progress", "Self progress"
    SOCIAL_COMPARISON = "social-comparison", "Social comparison"
    POSITIVE_FOCUS = "positive-focus", "Positive focus"


class Language(TextChoices):
    JA = "ja", "日本語"
    EN = "en", "English"


@dataclass(frozen=True)
class BlockPerformance:
    block_number: int
    accuracy: float
    average_rt: float


@dataclass(frozen=True)
class ParticipantProfile:
    nickname: str
    preferred_praise: tuple[str, ...] = ()
    tone_preference: str = TonePreference.CASUAL
    motivation_style: str = MotivationStyle.CHEERLEADER
    evaluation_focus: str = EvaluationFocus.SELF_PROGRESS
    language: str = Language.JA
    avoid_expressions: tuple[str, ...] = ()
    id: str | None = field(default=None, compare=False)

    def as_dict(self) -> dict:
        """JSON-safe form, without the participant id."""
        data = asdict(self)
        data.pop("id")
        for key in ("tone_preference", "motivation_style", "evaluation_focus", "language"):
            data[key] = str(data[key])
        data["preferred_praise"] = list(self.preferred_praise)
        data["avoid_expressions"] = list(self.avoid_expressions)
        return data

    def profile_hash(self) -> str:
        """SHA-256 of the canonical JSON form; identical preferences give identical hashes."""
        canonical = json.dumps(self.as_dict(), sort_keys=True, ensure_ascii=False)
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    @classmethod
    def from_dict(cls, data: dict, participant_id: str | None = None) -> "ParticipantProfile":
        """Rebuild a profile from ``as_dict`` output (e.g. a stored snapshot)."""
        return cls(
            nickname=data["nickname"],
            preferred_praise=tuple(data.get("preferred_praise") or ()),
            tone_preference=data.get("tone_preference", TonePreference.CASUAL),
            motivation_style=data.get("motivation_style", MotivationStyle.CHEERLEADER),
            evaluation_focus=data.get("evaluation_focus", EvaluationFocus.SELF_PROGRESS),
            language=data.get("language", Language.JA),
            avoid_expressions=tuple(data.get("avoid_expressions") or ()),
            id=participant_id,
        )


def _as_number(value, field_name: str, errors: dict) -> float | None:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        errors[field_name] = f"'{field_name}' must be a number."
        return None
    if not math.isfinite(value):
        errors[field_name] = f"'{field_name}' must be finite."
        return None
    return float(value)


def _check_accuracy(accuracy, field_name: str, errors: dict) -> None:
    if accuracy is not None and not 0 <= accuracy <= 100:
        errors[field_name] = f"'{field_name}' must be between 0 and 100."


def _check_rt(average_rt, field_name: str, errors: dict) -> None:
    if average_rt is not None and average_rt <= 0:
        errors[field_name] = f"'{field_name}' must be a positive number of milliseconds."


def _as_labels(value, field_name: str, errors: dict) -> tuple[str, ...]:
    """Accept a list of labels or a single comma-separated string."""
    if value is None or value == "":
        return ()
    if isinstance(value, str):
        return tuple(part.strip() for part in value.split(",") if part.strip())
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return tuple(v.strip() for v in value if v.strip())
    errors[field_name] = f"'{field_name}' must be a list of strings."
    return ()


def parse_block_data(data) -> tuple[BlockPerformance, BlockPerformance | None]:
    """
    Build (current, previous) BlockPerformance objects from a ``blockData`` payload.

    ``previousBlock`` carries no block number of its own; it is taken to be the
    block immediately before the current one.

    Raises:
        ValidationError: on any missing, non-numeric or out-of-range value.
    """
    if not isinstance(data, dict):
        raise ValidationError({"blockData": "blockData must be an object."})

    errors: dict[str, str] = {}
    block_number = data.get("blockNumber")
    if isinstance(block_number, bool) or not isinstance(block_number, int) or block_number < 1:
        errors["blockNumber"] = "'blockNumber' must be an integer of at least 1."

    accuracy = _as_number(data.get("accuracy"), "accuracy", errors)
    _check_accuracy(accuracy, "accuracy", errors)
    average_rt = _as_number(data.get("averageRT"), "averageRT", errors)
    _check_rt(average_rt, "averageRT", errors)

    previous_data = data.get("previousBlock")
    prev_accuracy = prev_rt = None
    if previous_data is not None:
        if not isinstance(previous_data, dict):
            errors["previousBlock"] = "previousBlock must be an object."
        else:
            prev_accuracy = _as_number(previous_data.get("accuracy"), "previousBlock.accuracy", errors)
            _check_accuracy(prev_accuracy, "previousBlock.accuracy", errors)
            prev_rt = _as_number(previous_data.get("averageRT"), "previousBlock.averageRT", errors)
            _check_rt(prev_rt, "previousBlock.averageRT", errors)

    if errors:
        raise ValidationError(errors)

    current = BlockPerformance(block_number=block_number, accuracy=accuracy, average_rt=average_rt)
    previous = None
    if previous_data is not None:
        previous = BlockPerformance(
            block_number=max(1, block_number - 1),
            accuracy=prev_accuracy,
            average_rt=prev_rt,
        )
    return current, previous


def parse_participant_info(data) -> ParticipantProfile:
    """
    Build a ParticipantProfile from a ``participantInfo`` payload.

    Raises:
        ValidationError: on an empty nickname or an unknown enum value.
    """
    if not isinstance(data, dict):
        raise ValidationError({"participantInfo": "participantInfo must be an object."})

    errors: dict[str, str] = {}
    nickname = data.get("nickname")
    if not isinstance(nickname, str) or not nickname.strip():
        errors["nickname"] = "'nickname' is required."

    choices = {
        "tonePreference": (TonePreference, TonePreference.CASUAL),
        "motivationStyle": (MotivationStyle, MotivationStyle.CHEERLEADER),
        "evaluationFocus": (EvaluationFocus, EvaluationFocus.SELF_PROGRESS),
        "language": (Language, Language.JA),
    }
    resolved = {}
    for key, (choice_cls, default) in choices.items():
        value = data.get(key) or default
        if value not in choice_cls.values:
            errors[key] = f"'{value}' is not a valid {key}; expected one of {', '.join(choice_cls.values)}."
        resolved[key] = str(value)

    preferred_praise = _as_labels(data.get("preferredPraise"), "preferredPraise", errors)
    avoid_expressions = _as_labels(data.get("avoidExpressions"), "avoidExpressions", errors)

    participant_id = data.get("id")
    if participant_id is not None and not isinstance(participant_id, str):
        errors["id"] = "'id' must be a string."
    elif isinstance(participant_id, str):
        participant_id = participant_id.strip() or None
        if participant_id is not None and len(participant_id) > PARTICIPANT_ID_MAX_LENGTH:
            errors["id"] = f"'id' must be at most {PARTICIPANT_ID_MAX_LENGTH} characters."

    if errors:
        raise ValidationError(errors)

    return ParticipantProfile(
        nickname=nickname.strip(),
        preferred_praise=preferred_praise,
        tone_preference=resolved["tonePreference"],
        motivation_style=resolved["motivationStyle"],
        evaluation_focus=resolved["evaluationFocus"],
        language=resolved["language"],
        avoid_expressions=avoid_expressions,
        id=participant_id,
    )
