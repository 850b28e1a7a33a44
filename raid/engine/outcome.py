# raid/engine/outcome.py
from typing import Any, Dict, Iterable, List, Optional

from .battle_state import advance_phase, alive_organizations, alive_players
from .context import BattleContext
from .models import ORGANIZATIONS, BattleData


def report_casualties(ctx: BattleContext, dead_ids: Iterable[str]) -> None:
    """playerDied for each newly dead player, then organizationEliminated for each emptied organization."""
    battle = ctx.battle
    dead_ids = list(dict.fromkeys(dead_ids))
    if not dead_ids:
        return
    for pid in dead_ids:
        player = battle.players[pid]
        ctx.emit("playerDied", playerId=pid, playerName=player.username, organization=player.organization)
        ctx.log(f"{player.username} has fallen.")

    still_standing = set(alive_organizations(battle))
    hit = {battle.players[pid].organization for pid in dead_ids}
    for org in ORGANIZATIONS:
        if org in hit and org not in still_standing:
            ctx.emit("organizationEliminated", organization=org)
            ctx.log(f"{org} has been eliminated.")


def battle_summary(battle: BattleData, result: str, reason: str = "") -> Dict[str, Any]:
    orgs = alive_organizations(battle)
    winner: Optional[str] = orgs[0] if result == "victory" and len(orgs) == 1 else None
    totals = battle.combat_totals
    mvp = None
    best = -1
    for pid in sorted(battle.players):
        dealt = totals.get(pid, {}).get("damage_dealt", 0)
        if dealt > best:
            mvp, best = pid, dealt

    stats: List[Dict[str, Any]] = []
    for pid in sorted(battle.players):
        player = battle.players[pid]
        row = totals.get(pid, {})
        stats.append({
            "playerId": pid,
            "playerName": player.username,
            "organization": player.organization,
            "profession": player.profession,
            "damageDealt": row.get("damage_dealt", 0),
            "damageTaken": row.get("damage_taken", 0),
            "healingDone": row.get("healing_done", 0),
            "cardsPlayed": row.get("cards_played", 0),
            "isAlive": player.state == "alive",
            "isMVP": pid == mvp and best > 0,
        })

    return {
        "result": result,
        "isVictory": result == "victory",
        "reason": reason,
        "totalRounds": min(battle.current_round, battle.max_rounds),
        "bossReviveCount": battle.boss.revive_count,
        "totalDamageDealt": sum(row["damageDealt"] for row in stats),
        "winningOrganization": winner,
        "playerStats": stats,
    }


def finish_battle(ctx: BattleContext, result: str, reason: str = "") -> None:
    battle = ctx.battle
    if battle.phase == "ended":
        return
    advance_phase(battle, "ended")
    battle.turn_started_at = None
    battle.result = battle_summary(battle, result, reason)
    ctx.log(f"Battle over: {result}" + (f" ({reason})" if reason else ""))
    ctx.emit("battleEnd", **battle.result)


def abort_battle(ctx: BattleContext, reason: str) -> None:
    """Close a battle whose state can no longer be trusted. Invariants are not re-checked here."""
    battle = ctx.battle
    battle.phase = "ended"
    battle.turn_started_at = None
    battle.result = {
        "result": "aborted",
        "isVictory": False,
        "reason": reason,
        "totalRounds": battle.current_round,
        "bossReviveCount": battle.boss.revive_count,
        "winningOrganization": None,
    }
    ctx.log(f"Battle aborted: {reason}")
    ctx.emit("battleEnd", **battle.result)


def check_defeat(ctx: BattleContext) -> bool:
    if ctx.battle.phase != "ended" and not alive_players(ctx.battle):
        finish_battle(ctx, "defeat", "all players have fallen")
    return ctx.battle.phase == "ended"
