# raid/engine/scheduler.py
"""
Round and turn flow.

A round is: draw for everyone, one turn per living player in speed order,
one boss action, then round-end upkeep. Turns of disconnected players end on
their own, and a turn that runs past the time limit is ended by tick().
"""
from dataclasses import asdict
from typing import List, Optional

from .battle_state import (
    advance_phase,
    alive_organizations,
    alive_players,
    append_round,
    damage_boss,
    damage_player,
    draw_cards,
    heal_player,
    next_round,
    reset_turn_data,
    tick_cooldowns,
)
from .boss_ai import check_revival, take_turn
from .context import BattleContext
from .effects import decrement_durations, effective_speed, expire, periodic_ticks
from .models import BattleData, BattleRound
from .outcome import check_defeat, finish_battle, report_casualties


def compute_turn_order(battle: BattleData) -> List[str]:
    alive = sorted(alive_players(battle), key=lambda p: p.player_id)
    alive.sort(key=effective_speed, reverse=True)
    return [p.player_id for p in alive]


def _next_alive_index(battle: BattleData, start: int) -> Optional[int]:
    for index in range(start, len(battle.turn_order)):
        if battle.players[battle.turn_order[index]].state == "alive":
            return index
    return None


def begin_round(ctx: BattleContext) -> None:
    battle = ctx.battle
    ctx.emit("roundStart", roundNumber=battle.current_round)
    ctx.log(f"Round {battle.current_round}")

    battle.turn_order = compute_turn_order(battle)
    battle.current_turn_index = 0
    for pid in battle.turn_order:
        player = battle.players[pid]
        drawn = draw_cards(battle, pid, battle.max_hand_size - len(player.hand_cards), ctx.rng)
        ctx.emit("drawCards", playerId=pid, cards=[asdict(c) for c in drawn])
    advance_phase(battle, "player_turn")


def _run_turns(ctx: BattleContext, start: int) -> None:
    """
    Hand the turn to the next living player from `start`. Disconnected
    players are skipped with a turnEnd; when nobody is left the boss acts and
    the next round begins. Stops once a connected player holds the turn or the
    battle is over.
    """
    battle = ctx.battle
    index = start
    while battle.phase == "player_turn":
        found = _next_alive_index(battle, index)
        if found is None:
            run_boss_phase(ctx)
            if battle.phase == "ended":
                return
            begin_round(ctx)
            index = 0
            continue

        battle.current_turn_index = found
        actor = battle.players[battle.turn_order[found]]
        battle.turn_started_at = ctx.now
        ctx.emit("turnStart", actorId=actor.player_id, timeLimit=battle.turn_time_limit)
        if actor.connected:
            return
        ctx.emit("turnEnd", actorId=actor.player_id, reason="disconnected")
        battle.turn_started_at = None
        index = found + 1


def start_battle(ctx: BattleContext) -> None:
    begin_round(ctx)
    _run_turns(ctx, 0)


def end_turn(ctx: BattleContext, reason: str = "ended") -> None:
    battle = ctx.battle
    actor_id = battle.current_actor_id()
    ctx.emit("turnEnd", actorId=actor_id, reason=reason)
    battle.turn_started_at = None
    _run_turns(ctx, battle.current_turn_index + 1)


def tick(ctx: BattleContext) -> None:
    battle = ctx.battle
    if battle.phase != "player_turn" or battle.turn_started_at is None:
        return
    if ctx.now - battle.turn_started_at >= battle.turn_time_limit:
        ctx.log(f"{battle.current_actor_id()} ran out of time.")
        end_turn(ctx, reason="timeout")


def run_boss_phase(ctx: BattleContext) -> None:
    battle = ctx.battle
    advance_phase(battle, "boss_turn")
    action = take_turn(ctx)
    battle.round_actions.append(action)
    if check_defeat(ctx):
        return
    end_round(ctx)


def _periodic_effects(ctx: BattleContext) -> None:
    battle = ctx.battle
    dead = []
    for pid in battle.turn_order:
        player = battle.players[pid]
        for kind, amount in periodic_ticks(player.debuffs) + periodic_ticks(player.buffs):
            if player.state != "alive":
                break
            if kind == "heal":
                heal_player(battle, pid, amount)
                continue
            lost, _, died = damage_player(battle, pid, amount)
            ctx.log(f"{player.username} suffers {lost} {kind} damage.")
            if died:
                dead.append(pid)
    report_casualties(ctx, dead)

    boss = battle.boss
    for kind, amount in periodic_ticks(boss.debuffs):
        if kind == "heal" or boss.current_health <= 0:
            continue
        dealt = damage_boss(battle, amount)
        ctx.log(f"{boss.name} suffers {dealt} {kind} damage.")
        if check_revival(ctx) == "dead":
            return


def end_round(ctx: BattleContext) -> None:
    """
    Upkeep in a fixed order: durations tick down, damage and healing over
    time resolve, spent effects expire, per-turn counters and cooldowns reset,
    and the round is written to the battle record.
    """
    battle = ctx.battle
    advance_phase(battle, "round_end")

    for player in battle.players.values():
        decrement_durations(player.buffs)
        decrement_durations(player.debuffs)
    decrement_durations(battle.boss.debuffs)

    _periodic_effects(ctx)
    if battle.phase == "ended" or check_defeat(ctx):
        return

    for player in battle.players.values():
        expire(player.buffs)
        expire(player.debuffs)
    expire(battle.boss.debuffs)

    reset_turn_data(battle)
    tick_cooldowns(battle)

    boss = battle.boss
    boss_action = next((a for a in reversed(battle.round_actions) if a.get("type") == "boss"), None)
    append_round(battle, BattleRound(
        round_number=battle.current_round,
        actions=list(battle.round_actions),
        boss_action=boss_action,
        boss_health=boss.current_health,
        boss_rage=boss.current_rage,
    ))
    ctx.emit(
        "roundEnd",
        roundNumber=battle.current_round,
        bossHealth=boss.current_health,
        bossRage=boss.current_rage,
        aliveOrganizations=alive_organizations(battle),
    )

    next_round(battle)
    if battle.current_round > battle.max_rounds:
        finish_battle(ctx, "defeat", "round limit reached")
        return
    advance_phase(battle, "draw")
