# raid/engine/battle_state.py
"""
Scoped mutators over BattleData.

Every change to a battle goes through one of these functions. Each one
re-checks the battle invariants afterwards and raises InvalidTransition if the
record would be left in an impossible state.
"""
import random
from typing import List, Optional, Tuple, Union

from .effects import absorb_with_shields, upsert
from .errors import InvalidTransition
from .dice import shuffled
from .models import ORGANIZATIONS, PHASES, BattleData, BattlePlayer, BattleRound, Boss, Buff, CardInstance, TurnData
from .rules import rage_gain

ALLOWED_TRANSITIONS = {
    "draw": ("player_turn",),
    "player_turn": ("boss_turn",),
    "boss_turn": ("round_end",),
    "round_end": ("draw",),
}


def check_invariants(battle: BattleData) -> None:
    boss = battle.boss
    if not 0 <= boss.current_health <= boss.max_health:
        raise InvalidTransition(f"boss health {boss.current_health} outside 0..{boss.max_health}")
    if not 0 <= boss.current_rage <= boss.max_rage:
        raise InvalidTransition(f"boss rage {boss.current_rage} outside 0..{boss.max_rage}")
    if boss.current_attack < boss.base_attack:
        raise InvalidTransition("boss attack dropped below base attack")
    if boss.revive_count < 0:
        raise InvalidTransition("negative revive count")
    if boss.state == "dead" and boss.current_health != 0:
        raise InvalidTransition("dead boss with health left")
    if battle.phase not in PHASES:
        raise InvalidTransition(f"unknown phase '{battle.phase}'")

    seen_cards = set()
    for pid, player in battle.players.items():
        if not 0 <= player.current_health <= player.max_health:
            raise InvalidTransition(f"{pid} health outside 0..{player.max_health}")
        if (player.current_health == 0) != (player.state == "dead"):
            raise InvalidTransition(f"{pid} state '{player.state}' disagrees with health {player.current_health}")
        if len(player.hand_cards) > battle.max_hand_size:
            raise InvalidTransition(f"{pid} holds more than {battle.max_hand_size} cards")
        if player.organization not in ORGANIZATIONS:
            raise InvalidTransition(f"{pid} has unknown organization '{player.organization}'")
        piles = (player.hand_cards, battle.draw_piles.get(pid, []), battle.discard_piles.get(pid, []))
        for pile in piles:
            for instance in pile:
                if instance.instance_id in seen_cards:
                    raise InvalidTransition(f"card {instance.instance_id} is in two places")
                seen_cards.add(instance.instance_id)

    if battle.phase == "player_turn" and not 0 <= battle.current_turn_index < len(battle.turn_order):
        raise InvalidTransition("turn index outside turn order")


def _player(battle: BattleData, player_id: str) -> BattlePlayer:
    player = battle.players.get(player_id)
    if player is None:
        raise InvalidTransition(f"no player '{player_id}' in battle")
    return player


def _totals(battle: BattleData, player_id: str) -> dict:
    return battle.combat_totals.setdefault(
        player_id, {"damage_dealt": 0, "damage_taken": 0, "healing_done": 0, "cards_played": 0}
    )


def damage_boss(battle: BattleData, amount: int) -> int:
    """Apply damage to the boss; returns the health actually removed."""
    boss = battle.boss
    if amount < 0:
        raise InvalidTransition("negative damage")
    if boss.state == "dead":
        raise InvalidTransition("boss is already dead")
    dealt = min(int(amount), boss.current_health)
    boss.current_health -= dealt
    boss.current_rage = min(boss.max_rage, boss.current_rage + rage_gain(dealt, boss.rage_per_damage))
    check_invariants(battle)
    return dealt


def add_boss_rage(battle: BattleData, amount: int) -> None:
    boss = battle.boss
    boss.current_rage = max(0, min(boss.max_rage, boss.current_rage + int(amount)))
    check_invariants(battle)


def reset_boss_rage(battle: BattleData) -> None:
    battle.boss.current_rage = 0
    check_invariants(battle)


def revive_boss(battle: BattleData, health: int, attack: int) -> None:
    boss = battle.boss
    if boss.current_health != 0 or boss.state == "dead":
        raise InvalidTransition("only a boss at zero health can revive")
    boss.revive_count += 1
    boss.current_health = int(health)
    boss.current_attack = int(attack)
    boss.current_rage = 0
    boss.state = "idle"
    check_invariants(battle)


def kill_boss(battle: BattleData) -> None:
    if battle.boss.current_health != 0:
        raise InvalidTransition("boss cannot die with health left")
    battle.boss.state = "dead"
    check_invariants(battle)


def set_boss_state(battle: BattleData, state: str) -> None:
    if battle.boss.state == "dead":
        raise InvalidTransition("boss is dead")
    battle.boss.state = state
    check_invariants(battle)


def damage_player(battle: BattleData, player_id: str, amount: int) -> Tuple[int, int, bool]:
    """
    Shields absorb first, the rest comes off health.
    Returns (health lost, damage absorbed, died).
    """
    player = _player(battle, player_id)
    if player.state == "dead":
        raise InvalidTransition(f"{player_id} is already dead")
    if amount < 0:
        raise InvalidTransition("negative damage")
    remaining, absorbed = absorb_with_shields(player, int(amount))
    lost = min(remaining, player.current_health)
    player.current_health -= lost
    died = player.current_health == 0
    if died:
        player.state = "dead"
    player.turn_data.damage_taken += lost
    _totals(battle, player_id)["damage_taken"] += lost
    check_invariants(battle)
    return lost, absorbed, died


def heal_player(battle: BattleData, player_id: str, value: int, healer_id: Optional[str] = None) -> int:
    player = _player(battle, player_id)
    if player.state == "dead":
        return 0
    healed = max(0, min(player.max_health - player.current_health, int(value)))
    player.current_health += healed
    _totals(battle, healer_id or player_id)["healing_done"] += healed
    check_invariants(battle)
    return healed


def apply_buff(battle: BattleData, player_id: str, buff: Buff) -> Buff:
    player = _player(battle, player_id)
    if player.state == "dead":
        raise InvalidTransition(f"cannot buff dead player {player_id}")
    merged = upsert(player.buffs, buff)
    check_invariants(battle)
    return merged


def apply_debuff(battle: BattleData, target: Union[BattlePlayer, Boss], debuff: Buff) -> Buff:
    if target.state == "dead":
        raise InvalidTransition(f"cannot debuff dead target {target.name if isinstance(target, Boss) else target.player_id}")
    merged = upsert(target.debuffs, debuff)
    check_invariants(battle)
    return merged


def set_redirect_target(battle: BattleData, organization: Optional[str]) -> None:
    if organization is not None:
        if organization not in ORGANIZATIONS:
            raise InvalidTransition(f"unknown organization '{organization}'")
        if battle.phase != "player_turn":
            raise InvalidTransition("redirect can only be set during a player turn")
    battle.redirect_target = organization
    check_invariants(battle)


def advance_phase(battle: BattleData, phase: str) -> None:
    if battle.phase == "ended":
        raise InvalidTransition("battle has ended")
    if phase != "ended" and phase not in ALLOWED_TRANSITIONS.get(battle.phase, ()):
        raise InvalidTransition(f"cannot move from {battle.phase} to {phase}")
    if phase == "player_turn" and battle.redirect_target is not None:
        raise InvalidTransition(f"redirect to {battle.redirect_target} left over from the last boss turn")
    battle.phase = phase
    check_invariants(battle)


def record_card_play(battle: BattleData, player_id: str, damage: int) -> None:
    player = _player(battle, player_id)
    player.turn_data.has_acted = True
    player.turn_data.cards_played += 1
    player.turn_data.damage_dealt += damage
    totals = _totals(battle, player_id)
    totals["cards_played"] += 1
    totals["damage_dealt"] += damage


def append_round(battle: BattleData, record: BattleRound) -> None:
    if record.round_number != battle.current_round:
        raise InvalidTransition(f"round record {record.round_number} does not match round {battle.current_round}")
    if battle.rounds and battle.rounds[-1].round_number >= record.round_number:
        raise InvalidTransition("round already recorded")
    battle.rounds.append(record)
    check_invariants(battle)


def next_round(battle: BattleData) -> None:
    battle.current_round += 1
    battle.round_actions = []
    check_invariants(battle)


def reset_turn_data(battle: BattleData) -> None:
    for player in battle.players.values():
        player.turn_data = TurnData()


def tick_cooldowns(battle: BattleData) -> None:
    for player in battle.players.values():
        if player.talent and player.talent.current_cooldown > 0:
            player.talent.current_cooldown -= 1
    boss = battle.boss
    boss.skill_cooldowns = {k: v - 1 for k, v in boss.skill_cooldowns.items() if v - 1 > 0}


def start_talent_cooldown(battle: BattleData, player_id: str) -> None:
    player = _player(battle, player_id)
    if player.talent is None:
        raise InvalidTransition(f"{player_id} has no talent")
    player.talent.current_cooldown = player.talent.cooldown


def start_skill_cooldown(battle: BattleData, skill_id: str, rounds: int) -> None:
    if rounds > 0:
        battle.boss.skill_cooldowns[skill_id] = int(rounds)


def set_connected(battle: BattleData, player_id: str, connected: bool) -> None:
    _player(battle, player_id).connected = bool(connected)


def clear_debuffs(battle: BattleData, player_id: str) -> int:
    player = _player(battle, player_id)
    removed = len(player.debuffs)
    player.debuffs = []
    return removed


# ---- cards ----

def take_from_hand(battle: BattleData, player_id: str, instance_id: str) -> CardInstance:
    """Lift a card out of the hand; it is in flight until discarded."""
    player = _player(battle, player_id)
    for index, instance in enumerate(player.hand_cards):
        if instance.instance_id == instance_id:
            return player.hand_cards.pop(index)
    raise InvalidTransition(f"{instance_id} is not in {player_id}'s hand")


def discard(battle: BattleData, player_id: str, instance: CardInstance) -> None:
    battle.discard_piles.setdefault(player_id, []).append(instance)
    check_invariants(battle)


def draw_cards(battle: BattleData, player_id: str, count: int, rng: random.Random) -> List[CardInstance]:
    """
    Move up to `count` cards from the draw pile to the hand, never past the
    hand limit. An empty draw pile is refilled by shuffling the discard pile.
    """
    player = _player(battle, player_id)
    draw_pile = battle.draw_piles.setdefault(player_id, [])
    discard_pile = battle.discard_piles.setdefault(player_id, [])
    room = battle.max_hand_size - len(player.hand_cards)
    drawn: List[CardInstance] = []
    for _ in range(max(0, min(int(count), room))):
        if not draw_pile:
            if not discard_pile:
                break
            draw_pile.extend(shuffled(discard_pile, rng))
            discard_pile.clear()
        instance = draw_pile.pop(0)
        player.hand_cards.append(instance)
        drawn.append(instance)
    check_invariants(battle)
    return drawn


# ---- queries ----

def alive_players(battle: BattleData) -> List[BattlePlayer]:
    return [p for p in battle.players.values() if p.state == "alive"]


def alive_organizations(battle: BattleData) -> List[str]:
    present = {p.organization for p in alive_players(battle)}
    return [org for org in ORGANIZATIONS if org in present]
