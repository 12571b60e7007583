"""Pure scenario classification for a pair of consecutive block summaries.

No Django ORM calls and no clock access: the same inputs always map to the
same scenario key, so everything here is testable without a database.
"""

from __future__ import annotations

from dataclasses import dataclass

from django.conf import settings

from rtfeedback.feedback.registry import NO_PREVIOUS_BLOCK_SCENARIO

# Deltas are rounded before comparison so float noise (85.3 - 80.3) cannot flip a boundary.
_DELTA_PRECISION = 6


@dataclass(frozen=True)
class ClassifierThresholds:
    rt_ms: float = 30.0
    accuracy: float = 5.0
    large_rt_ms: float = 80.0
    large_accuracy: float = 10.0


DEFAULT_THRESHOLDS = ClassifierThresholds()


def thresholds_from_settings() -> ClassifierThresholds:
    """Build thresholds from Django settings, falling back to the defaults."""
    return ClassifierThresholds(
        rt_ms=getattr(settings, "FEEDBACK_RT_THRESHOLD_MS", DEFAULT_THRESHOLDS.rt_ms),
        accuracy=getattr(settings, "FEEDBACK_ACC_THRESHOLD", DEFAULT_THRESHOLDS.accuracy),
        large_rt_ms=getattr(settings, "FEEDBACK_LARGE_RT_THRESHOLD_MS", DEFAULT_THRESHOLDS.large_rt_ms),
        large_accuracy=getattr(settings, "FEEDBACK_LARGE_ACC_THRESHOLD", DEFAULT_THRESHOLDS.large_accuracy),
    )


def rt_axis(rt_delta: float, thresholds: ClassifierThresholds = DEFAULT_THRESHOLDS) -> str:
    """Return ``"short"``, ``"slow"`` or ``"same"``; a delta exactly at the threshold counts as a change."""
    if rt_delta <= -thresholds.rt_ms:
        return "short"
    if rt_delta >= thresholds.rt_ms:
        return "slow"
    return "same"


def accuracy_axis(acc_delta: float, thresholds: ClassifierThresholds = DEFAULT_THRESHOLDS) -> str:
    """Return ``"up"``, ``"down"`` or ``"same"``; a delta exactly at the threshold counts as a change."""
    if acc_delta >= thresholds.accuracy:
        return "up"
    if acc_delta <= -thresholds.accuracy:
        return "down"
    return "same"


def classify(current, previous, thresholds: ClassifierThresholds | None = None) -> str:
    """
    Map the change from *previous* to *current* onto one of the registered scenario keys.

    *current* and *previous* need ``accuracy`` (0–100) and ``average_rt`` (ms)
    attributes. With no previous block the result is NO_PREVIOUS_BLOCK_SCENARIO.

    The synergy and fatigue keys are checked before the 3×3 grid:
      rt_short_acc_up_synergy: RT axis short and accuracy up by the large threshold
      rt_slow_acc_down_fatigue: RT slower by the large threshold and accuracy down by the large threshold
    """
    if previous is None:
        return NO_PREVIOUS_BLOCK_SCENARIO
    if thresholds is None:
        thresholds = DEFAULT_THRESHOLDS

    rt_delta = round(current.average_rt - previous.average_rt, _DELTA_PRECISION)
    acc_delta = round(current.accuracy - previous.accuracy, _DELTA_PRECISION)

    rt = rt_axis(rt_delta, thresholds)
    acc = accuracy_axis(acc_delta, thresholds)

    if rt == "short" and acc_delta >= thresholds.large_accuracy:
        return "rt_short_acc_up_synergy"
    if (
        rt == "slow"
        and rt_delta >= thresholds.large_rt_ms
        and acc_delta <= -thresholds.large_accuracy
    ):
        return "rt_slow_acc_down_fatigue"

    return f"rt_{rt}_acc_{acc}"
