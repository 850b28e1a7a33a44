# raid/content/balance.py
from typing import Any, Dict, Optional

DEFAULTS = {
    "max_rounds": 30,
    "boss_revive_health_ratio": 0.5,
    "boss_attack_boost_per_revive": 20,   # percent per revive
    "max_hand_size": 7,
    "turn_time_limit_ms": 60000,
    "attack_to_damage_ratio": 0.5,
    "defense_mitigation_ratio": 0.2,
    "default_shield_duration": 1,
}

CAPS = {
    "crit_min": 0,
    "crit_max": 100,
    "hand_min": 1,
}

# Stackable buff/debuff kinds that stop merging at a ceiling.
STACK_CAPS = {
    "poison": 5,
    "sure_crit": 3,
}


def settings(overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Merge overrides onto DEFAULTS, rejecting unknown keys and nonsense values."""
    merged = dict(DEFAULTS)
    for key, value in (overrides or {}).items():
        if key not in DEFAULTS:
            raise ValueError(f"unknown raid setting '{key}'")
        merged[key] = type(DEFAULTS[key])(value)

    if merged["max_rounds"] < 1:
        raise ValueError("max_rounds must be at least 1")
    if merged["max_hand_size"] < CAPS["hand_min"]:
        raise ValueError("max_hand_size must be at least 1")
    if not 0 < merged["boss_revive_health_ratio"] <= 1:
        raise ValueError("boss_revive_health_ratio must be in (0, 1]")
    if merged["boss_attack_boost_per_revive"] < 0:
        raise ValueError("boss_attack_boost_per_revive cannot be negative")
    if merged["turn_time_limit_ms"] <= 0:
        raise ValueError("turn_time_limit_ms must be positive")
    return merged
