# raid/engine/boss_ai.py
from typing import Any, Dict, List, Optional

from .battle_state import (
    alive_organizations,
    alive_players,
    damage_player,
    kill_boss,
    reset_boss_rage,
    revive_boss,
    set_boss_state,
    set_redirect_target,
    start_skill_cooldown,
)
from .context import BattleContext
from .dice import pick
from .effects import boss_outgoing_multiplier, effective_defense, incoming_multiplier
from .models import BattleData, BattlePlayer, BossSkill
from .outcome import finish_battle, report_casualties
from .rules import mitigate, revive_attack, revive_health, scaled_boss_damage


# ---- skill selection ----

def first_skill(battle: BattleData) -> BossSkill:
    return battle.boss.skills[0]


def rotation_skill(battle: BattleData) -> BossSkill:
    """Longest-cooldown skill that is ready; falls back to the first skill."""
    boss = battle.boss
    ready = [s for s in boss.skills if boss.skill_cooldowns.get(s.id, 0) <= 0]
    if not ready:
        return boss.skills[0]
    choice = ready[0]
    for skill in ready[1:]:
        if skill.cooldown > choice.cooldown:
            choice = skill
    start_skill_cooldown(battle, choice.id, choice.cooldown)
    return choice


SKILL_SELECTORS = {
    "first": first_skill,
    "rotation": rotation_skill,
}


# ---- revival ----

def check_revival(ctx: BattleContext) -> Optional[str]:
    """
    Runs whenever the boss hits zero health. With more than one organization
    still standing it comes back stronger; otherwise it dies and the battle is won.
    Returns "revived", "dead" or None when the boss still has health.
    """
    battle = ctx.battle
    boss = battle.boss
    if boss.current_health > 0 or boss.state == "dead":
        return None

    if len(alive_organizations(battle)) > 1:
        count = boss.revive_count + 1
        health = revive_health(boss.max_health, ctx.settings["boss_revive_health_ratio"])
        attack = revive_attack(boss.base_attack, count, ctx.settings["boss_attack_boost_per_revive"])
        revive_boss(battle, health, attack)
        ctx.log(f"{boss.name} rises again with {health} health and {attack} attack (revival {count}).")
        ctx.emit("bossRevive", newHealth=health, newAttack=attack, reviveCount=count)
        return "revived"

    kill_boss(battle)
    ctx.log(f"{boss.name} has been slain.")
    finish_battle(ctx, "victory", "boss defeated")
    return "dead"


# ---- the boss turn ----

def _ordinary_targets(ctx: BattleContext, skill: BossSkill):
    battle = ctx.battle
    alive = alive_players(battle)
    if skill.target == "all" or not alive:
        return None, alive, False

    orgs = alive_organizations(battle)
    redirect = battle.redirect_target
    redirected = redirect is not None and redirect in orgs
    target_org = redirect if redirected else pick(orgs, ctx.rng)
    members = [p for p in alive if p.organization == target_org]
    if skill.target == "single":
        members = [pick(members, ctx.rng)]
    return target_org, members, redirected


def _strike(ctx: BattleContext, targets: List[BattlePlayer], damage: float):
    affected = []
    dead = []
    ratio = ctx.settings["defense_mitigation_ratio"]
    for player in targets:
        amount = mitigate(damage * incoming_multiplier(player), effective_defense(player), ratio)
        lost, absorbed, died = damage_player(ctx.battle, player.player_id, amount)
        affected.append({
            "playerId": player.player_id,
            "damage": lost,
            "absorbed": absorbed,
            "remainingHealth": player.current_health,
            "died": died,
        })
        if died:
            dead.append(player.player_id)
    return affected, dead


def take_turn(ctx: BattleContext) -> Dict[str, Any]:
    """
    One boss action per round. A full rage bar overrides everything: the rage
    skill hits every living player and rage resets. Otherwise the selected
    skill goes at the redirected organization, or a random living one.
    The redirect is cleared when the turn ends either way.
    """
    battle = ctx.battle
    boss = battle.boss
    set_boss_state(battle, "acting")

    is_rage = boss.current_rage >= boss.max_rage
    if is_rage:
        skill = boss.rage_skill
        target_org, targets, redirected = None, alive_players(battle), False
        reset_boss_rage(battle)
    else:
        selector = ctx.skill_selector or first_skill
        skill = selector(battle)
        target_org, targets, redirected = _ordinary_targets(ctx, skill)

    damage = scaled_boss_damage(skill.damage, boss.current_attack, boss.base_attack) * boss_outgoing_multiplier(boss)
    affected, dead = _strike(ctx, targets, damage)

    action = {
        "type": "boss",
        "skillId": skill.id,
        "skillName": skill.name,
        "isRageSkill": is_rage,
        "targetType": "all" if is_rage else skill.target,
        "targetOrganization": target_org,
        "redirected": redirected,
        "damage": int(damage),
    }
    where = target_org or "everyone"
    ctx.log(f"{boss.name} uses {skill.name} on {where} ({sum(a['damage'] for a in affected)} total damage).")
    if is_rage:
        ctx.emit("bossRage", skill={"id": skill.id, "name": skill.name, "description": skill.description},
                 affectedPlayers=[a["playerId"] for a in affected])
    ctx.emit("bossAttack", action=action, affected=affected)
    report_casualties(ctx, dead)

    set_boss_state(battle, "idle")
    set_redirect_target(battle, None)
    return action
