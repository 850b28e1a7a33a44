# raid/engine/specials.py
"""
Named handlers for `special` card effects and profession talents.

Each handler takes (ctx, actor, effect, play) and mutates the battle only
through battle_state. The engine looks them up by name; a card that names a
handler missing from the table is refused before anything happens.
"""
import math

from .battle_state import alive_players, apply_buff, clear_debuffs
from .effects import build_buff, effective_defense
from .resolver import player_targets


def iron_bastion(ctx, actor, effect, play):
    amount = int(math.floor(effective_defense(actor) * 0.5))
    for player in alive_players(ctx.battle):
        apply_buff(ctx.battle, player.player_id, build_buff("shield", amount, 1, source=actor.player_id, name="Iron Bastion"))
    play.lines.append(f"{actor.username} raises Iron Bastion: every ally gains a {amount} point shield.")


def sword_spirit(ctx, actor, effect, play):
    apply_buff(ctx.battle, actor.player_id, build_buff("empower", 200, 1, source=actor.player_id, name="Sword Spirit"))
    play.lines.append(f"{actor.username}'s next attack deals double damage.")


def elemental_mastery(ctx, actor, effect, play):
    apply_buff(ctx.battle, actor.player_id, build_buff("amplify", 200, 1, source=actor.player_id, name="Elemental Mastery"))
    play.lines.append(f"{actor.username}'s skill cards are twice as effective this round.")


def precision_shot(ctx, actor, effect, play):
    apply_buff(
        ctx.battle,
        actor.player_id,
        build_buff("sure_crit", 0, 3, stackable=True, stacks=3, source=actor.player_id, name="Precision Shot"),
    )
    play.lines.append(f"{actor.username}'s next three attacks will crit.")


def shadow_strike(ctx, actor, effect, play):
    apply_buff(ctx.battle, actor.player_id, build_buff("empower", 300, 1, source=actor.player_id, name="Shadow Strike"))
    play.lines.append(f"{actor.username}'s next attack deals triple damage.")


def cleanse(ctx, actor, effect, play):
    removed = 0
    for player in player_targets(ctx, actor, effect, play):
        removed += clear_debuffs(ctx.battle, player.player_id)
    play.lines.append(f"{actor.username} cleanses {removed} debuff(s).")


SPECIAL_HANDLERS = {
    "iron_bastion": iron_bastion,
    "sword_spirit": sword_spirit,
    "elemental_mastery": elemental_mastery,
    "precision_shot": precision_shot,
    "shadow_strike": shadow_strike,
    "cleanse": cleanse,
}
