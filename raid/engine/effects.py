# raid/engine/effects.py
from __future__ import annotations

from typing import List, Optional, Tuple

from .models import BattlePlayer, Boss, Buff
from ..content.balance import STACK_CAPS

BUFF_KINDS = ("attack", "defense", "speed", "heal", "shield", "empower", "amplify", "sure_crit")
DEBUFF_KINDS = ("poison", "burn", "slow", "weaken", "vulnerable")
PERIODIC_KINDS = ("poison", "burn", "heal")

EFFECT_NAMES = {
    "attack": "Attack Up",
    "defense": "Defense Up",
    "speed": "Haste",
    "heal": "Regeneration",
    "shield": "Shield",
    "empower": "Empowered",
    "amplify": "Amplified",
    "sure_crit": "Precision",
    "poison": "Poison",
    "burn": "Burn",
    "slow": "Slow",
    "weaken": "Weaken",
    "vulnerable": "Vulnerable",
}


def build_buff(
    kind: str,
    value: int,
    duration: int,
    stackable: bool = False,
    stacks: int = 1,
    source: str = "",
    name: Optional[str] = None,
) -> Buff:
    return Buff(
        id=kind,
        name=name or EFFECT_NAMES.get(kind, kind.replace("_", " ").title()),
        kind=kind,
        value=int(value),
        duration=int(duration),
        stackable=bool(stackable),
        stacks=max(1, int(stacks)),
        source=source,
    )


def find(entries: List[Buff], kind: str) -> Optional[Buff]:
    for entry in entries:
        if entry.kind == kind:
            return entry
    return None


def has_effect(entries: List[Buff], kind: str) -> bool:
    return find(entries, kind) is not None


def remove_effect(entries: List[Buff], kind: str) -> None:
    entries[:] = [e for e in entries if e.kind != kind]


def upsert(entries: List[Buff], incoming: Buff) -> Buff:
    """Merge an effect into a buff/debuff list, one entry per kind."""
    current = find(entries, incoming.kind)
    if current is None:
        entries.append(incoming)
        return incoming

    if incoming.kind == "shield":
        # shields pool their absorb
        current.value += incoming.value
        current.duration = max(current.duration, incoming.duration)
    elif current.stackable:
        cap = STACK_CAPS.get(current.kind)
        stacks = current.stacks + incoming.stacks
        current.stacks = min(stacks, cap) if cap is not None else stacks
        current.duration = max(current.duration, incoming.duration)
    else:
        current.value = max(current.value, incoming.value)
        current.duration = max(current.duration, incoming.duration)
    current.source = incoming.source or current.source
    return current


def total(entries: List[Buff], kind: str) -> int:
    return sum(e.value * e.stacks for e in entries if e.kind == kind)


def effective_attack(player: BattlePlayer) -> int:
    return max(0, player.attack + total(player.buffs, "attack") - total(player.debuffs, "weaken"))


def effective_defense(player: BattlePlayer) -> int:
    return max(0, player.defense + total(player.buffs, "defense"))


def effective_speed(player: BattlePlayer) -> int:
    return max(0, player.speed + total(player.buffs, "speed") - total(player.debuffs, "slow"))


def incoming_multiplier(player: BattlePlayer) -> float:
    return 1.0 + total(player.debuffs, "vulnerable") / 100


def boss_outgoing_multiplier(boss: Boss) -> float:
    """Weaken on the boss cuts its damage by value percent, capped at 80%."""
    reduction = min(total(boss.debuffs, "weaken"), 80)
    return 1.0 - reduction / 100


def absorb_with_shields(player: BattlePlayer, amount: int) -> Tuple[int, int]:
    """Shields soak damage first. Returns (damage left over, damage absorbed)."""
    remaining = int(amount)
    absorbed = 0
    for shield in [b for b in player.buffs if b.kind == "shield"]:
        if remaining <= 0:
            break
        used = min(shield.value, remaining)
        shield.value -= used
        remaining -= used
        absorbed += used
    player.buffs[:] = [b for b in player.buffs if not (b.kind == "shield" and b.value <= 0)]
    return remaining, absorbed


def shield_total(player: BattlePlayer) -> int:
    return total(player.buffs, "shield")


def consume_stack(entries: List[Buff], kind: str) -> bool:
    """Use one stack of a charge-style effect (sure_crit). False if absent."""
    entry = find(entries, kind)
    if entry is None:
        return False
    entry.stacks -= 1
    if entry.stacks <= 0:
        remove_effect(entries, kind)
    return True


def pop_effect(entries: List[Buff], kind: str) -> Optional[Buff]:
    entry = find(entries, kind)
    if entry is not None:
        remove_effect(entries, kind)
    return entry


def decrement_durations(entries: List[Buff]) -> None:
    for entry in entries:
        entry.duration -= 1


def periodic_ticks(entries: List[Buff]) -> List[Tuple[str, int]]:
    """(kind, amount) for every poison/burn/heal-over-time entry, in declaration order."""
    ticks = []
    for entry in entries:
        if entry.kind in PERIODIC_KINDS and entry.duration >= 0:
            ticks.append((entry.kind, entry.value * entry.stacks))
    return ticks


def expire(entries: List[Buff]) -> List[Buff]:
    """Drop zero-duration entries in place; return the ones removed."""
    expired = [e for e in entries if e.duration <= 0]
    entries[:] = [e for e in entries if e.duration > 0]
    return expired
