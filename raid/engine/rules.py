# raid/engine/rules.py
import math


def clamp(x: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, x))


def raw_card_damage(value: int, attack: int, attack_ratio: float = 0.5) -> int:
    return int(value + math.floor(attack * attack_ratio))


def crit_damage(raw: int, multiplier: float) -> int:
    return int(math.floor(raw * multiplier))


def mitigate(raw: float, defense: int, defense_ratio: float = 0.2) -> int:
    # chip damage: never below 1
    return max(1, int(math.floor(raw - defense * defense_ratio)))


def scaled_boss_damage(skill_damage: int, current_attack: int, base_attack: int) -> float:
    if base_attack <= 0:
        return float(skill_damage)
    return skill_damage * (current_attack / base_attack)


def rage_gain(dealt: int, rage_per_damage: float) -> int:
    return int(math.floor(dealt * rage_per_damage))


def revive_health(max_health: int, ratio: float) -> int:
    return max(1, int(math.floor(max_health * ratio)))


def revive_attack(base_attack: int, revive_count: int, boost_percent: float) -> int:
    return int(math.floor(base_attack * (100 + revive_count * boost_percent) / 100))
