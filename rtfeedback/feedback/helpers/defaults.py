"""
Static, non-personalised feedback used whenever generation is unavailable.

One table keyed by (scenario_key, language) so completeness can be checked
mechanically; see default_pattern_set().
"""
from rtfeedback.feedback.registry import SCENARIO_KEYS

DEFAULT_FEEDBACK: dict[tuple[str, str], tuple[str, str, str]] = {
    # ── Japanese ────────────────────────────────────────────────────────────
    ("rt_short_acc_up_synergy", "ja"): (
        "スピードも正確さも大きく伸びたね！",
        "速さと正確さが一気に上がってる！",
        "素晴らしい伸び方！この調子！",
    ),
    ("rt_slow_acc_down_fatigue", "ja"): (
        "少し疲れてきたかも。深呼吸してみよう",
        "ひと息ついてから、また始めよう",
        "ここまでよく頑張ってるね。肩の力を抜こう",
    ),
    ("rt_short_acc_same", "ja"): (
        "前より速くなってるね！",
        "テンポよく反応できてる！",
        "正確さを保ったままスピードアップ！",
    ),
    ("rt_short_acc_down", "ja"): (
        "スピードが上がってるね。次は正確さも意識しよう",
        "速さはばっちり！一つずつ確かめていこう",
        "いいテンポ！落ち着いて見れば完璧",
    ),
    ("rt_short_acc_up", "ja"): (
        "速さも正確さも良くなってる！",
        "反応も判断もレベルアップ！",
        "いい流れだね、その調子！",
    ),
    ("rt_slow_acc_up", "ja"): (
        "丁寧に取り組めていて正確さが上がってる！",
        "じっくり判断できてるね",
        "慎重さが結果につながってる！",
    ),
    ("rt_slow_acc_same", "ja"): (
        "落ち着いて取り組めてるね",
        "自分のペースで大丈夫だよ",
        "リズムを思い出して、次もいこう",
    ),
    ("rt_slow_acc_down", "ja"): (
        "焦らず、一つずつ確実にいこう",
        "集中し直して、次のブロックへ",
        "大丈夫、ここから立て直せるよ",
    ),
    ("rt_same_acc_up", "ja"): (
        "正確さが上がってる！",
        "同じペースで正解が増えてるね",
        "集中できてるみたい！",
    ),
    ("rt_same_acc_down", "ja"): (
        "ペースは安定してるね。正確さも意識してみよう",
        "落ち着いて色をよく見てみよう",
        "リズムはいい感じ！次は慎重さもプラス",
    ),
    ("rt_same_acc_same", "ja"): (
        "安定したペースだね",
        "この調子で続けよう！",
        "いい感じで進んでるよ！",
    ),
    # ── English ─────────────────────────────────────────────────────────────
    ("rt_short_acc_up_synergy", "en"): (
        "Faster and far more accurate. What a leap!",
        "Speed and precision both jumped. Brilliant!",
        "A huge step up on both fronts. Keep it going!",
    ),
    ("rt_slow_acc_down_fatigue", "en"): (
        "You might be getting tired. Take a deep breath.",
        "Pause for a moment, then start fresh.",
        "You've worked hard so far. Relax your shoulders.",
    ),
    ("rt_short_acc_same", "en"): (
        "You're getting faster!",
        "Nice tempo, and just as accurate!",
        "Speed is picking up. Well done!",
    ),
    ("rt_short_acc_down", "en"): (
        "Great speed! Try to keep an eye on accuracy too.",
        "You're quick now. Check each answer calmly.",
        "Nice pace. A little more care and it's perfect.",
    ),
    ("rt_short_acc_up", "en"): (
        "Faster and more accurate. Great job!",
        "Both speed and accuracy improved!",
        "Everything is moving in the right direction!",
    ),
    ("rt_slow_acc_up", "en"): (
        "Careful work paid off with better accuracy!",
        "Taking your time is working well.",
        "Your precision is improving. Nice!",
    ),
    ("rt_slow_acc_same", "en"): (
        "Steady and calm. Keep it up.",
        "Go at your own pace, you're doing fine.",
        "Find your rhythm again for the next block.",
    ),
    ("rt_slow_acc_down", "en"): (
        "No rush. Take it one item at a time.",
        "Refocus and give the next block a fresh start.",
        "It's okay. You can turn it around from here.",
    ),
    ("rt_same_acc_up", "en"): (
        "Your accuracy went up!",
        "Same pace, more correct answers. Nice!",
        "Great focus this block!",
    ),
    ("rt_same_acc_down", "en"): (
        "Your pace is steady. Try to focus on accuracy too.",
        "Look carefully at each color.",
        "Good rhythm! Add a bit of care next time.",
    ),
    ("rt_same_acc_same", "en"): (
        "Steady pace, well done.",
        "Keep up the good work!",
        "You're doing well, keep going!",
    ),
}

# Shown when a scenario has no messages in the participant's set
NEUTRAL_FEEDBACK: dict[str, str] = {
    "ja": "その調子！きっとできるよ！",
    "en": "Keep going! You got this!",
}

FALLBACK_LANGUAGE = "ja"


def default_pattern_set(language: str) -> dict[str, list[str]]:
    """
    Return a fresh, fully populated pattern set for *language*.

    Unknown languages get the FALLBACK_LANGUAGE table. The lists are new
    objects on every call so callers may not mutate the shared table.
    """
    if (SCENARIO_KEYS[0], language) not in DEFAULT_FEEDBACK:
        language = FALLBACK_LANGUAGE
    return {key: list(DEFAULT_FEEDBACK[(key, language)]) for key in SCENARIO_KEYS}


def neutral_feedback_message(language: str) -> str:
    """The neutral message for *language*; unknown languages get FALLBACK_LANGUAGE."""
    return NEUTRAL_FEEDBACK.get(language, NEUTRAL_FEEDBACK[FALLBACK_LANGUAGE])
