# Registry of all feedback scenarios a block-to-block comparison can land in.
# Order matters: it is the order scenarios are listed in the generation prompt
# and shown in the admin.

NO_PREVIOUS_BLOCK_SCENARIO = "rt_same_acc_same"

VARIANTS_PER_SCENARIO = 3

SUPPORTED_LANGUAGES = ("ja", "en")

SCENARIO_REGISTRY: dict[str, dict] = {
    "rt_short_acc_up_synergy": {
        "label": "Breakthrough (RT ↑ / accuracy ↑↑)",
        "description": (
            "Responses became faster and accuracy rose sharply at the same time. "
            "Celebrate the combined leap in speed and precision."
        ),
    },
    "rt_slow_acc_down_fatigue": {
        "label": "Fatigue (RT ↓↓ / accuracy ↓↓)",
        "description": (
            "Responses became much slower and accuracy dropped sharply, which suggests tiredness. "
            "Acknowledge the effort, suggest a short reset, and avoid any blame."
        ),
    },
    "rt_short_acc_same": {
        "label": "RT ↑ / accuracy →",
        "description": "Responses became faster while accuracy stayed about the same.",
    },
    "rt_short_acc_down": {
        "label": "RT ↑ / accuracy ↓",
        "description": (
            "Responses became faster but accuracy dropped. "
            "Praise the speed and gently suggest balancing it with care."
        ),
    },
    "rt_short_acc_up": {
        "label": "RT ↑ / accuracy ↑",
        "description": "Responses became faster and accuracy also improved.",
    },
    "rt_slow_acc_up": {
        "label": "RT ↓ / accuracy ↑",
        "description": (
            "Responses became slower but accuracy improved. "
            "Praise the careful, accurate responding."
        ),
    },
    "rt_slow_acc_same": {
        "label": "RT ↓ / accuracy →",
        "description": "Responses became slower while accuracy stayed about the same.",
    },
    "rt_slow_acc_down": {
        "label": "RT ↓ / accuracy ↓",
        "description": (
            "Responses became slower and accuracy dropped a little. "
            "Encourage the participant to refocus for the next block."
        ),
    },
    "rt_same_acc_up": {
        "label": "RT → / accuracy ↑",
        "description": "Response speed held steady while accuracy improved.",
    },
    "rt_same_acc_down": {
        "label": "RT → / accuracy ↓",
        "description": "Response speed held steady while accuracy dropped a little.",
    },
    "rt_same_acc_same": {
        "label": "RT → / accuracy →",
        "description": (
            "Performance was stable compared with the previous block, "
            "or there is no previous block to compare with."
        ),
    },
}

SCENARIO_KEYS: tuple[str, ...] = tuple(SCENARIO_REGISTRY)


def scenario_catalog() -> list[dict]:
    """Return the scenario catalog sent to the generator: one ``{key, description}`` per scenario."""
    return [
        {"key": key, "description": meta["description"]}
        for key, meta in SCENARIO_REGISTRY.items()
    ]
