# raid/engine/resolver.py
import math
from dataclasses import asdict, dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from .battle_state import (
    apply_buff,
    apply_debuff,
    damage_boss,
    damage_player,
    discard,
    draw_cards,
    heal_player,
    record_card_play,
    set_redirect_target,
    take_from_hand,
)
from .boss_ai import check_revival
from .context import BattleContext
from .dice import crit_roll
from .effects import build_buff, consume_stack, effective_attack, effective_defense, find, incoming_multiplier, pop_effect
from .errors import (
    ACTOR_DEAD,
    BATTLE_ENDED,
    MISSING_TARGET,
    NOT_YOUR_TURN,
    UNKNOWN_CARD,
    UNKNOWN_EFFECT,
    WRONG_PROFESSION,
    CommandRejected,
)
from .models import ORGANIZATIONS, BattlePlayer, Card, CardEffect, CardInstance, PlayResult
from .outcome import check_defeat, report_casualties
from .rules import crit_damage, mitigate, raw_card_damage
from ..content.catalog import UnknownCatalogEntry, card_by_id

BOSS_TARGETS = ("boss", "enemy", "all_enemies")


@dataclass
class PlayState:
    """Scratch record for one card (or talent) as it resolves."""

    actor_id: str
    card: Optional[Card] = None
    target_org: Optional[str] = None
    target_player: Optional[str] = None
    damage_dealt: int = 0
    drawn: List[CardInstance] = field(default_factory=list)
    dead: List[str] = field(default_factory=list)
    lines: List[str] = field(default_factory=list)


def walk_effects(effects) -> Iterator[CardEffect]:
    """Effects in resolution order: each one followed by its chained effects."""
    for effect in effects:
        yield effect
        yield from walk_effects(effect.additional_effects)


def is_redirect_card(card: Card) -> bool:
    return card.type == "redirect" or any(e.type == "redirect" for e in walk_effects(card.effects))


def validate_play(
    ctx: BattleContext,
    actor_id: str,
    instance_id: str,
    target_org: Optional[str] = None,
    target_player: Optional[str] = None,
) -> Tuple[CardInstance, Card]:
    """
    Every check a play must pass, in order. Nothing here mutates, so a
    rejection leaves the battle exactly as it was.
    """
    battle = ctx.battle
    if battle.phase == "ended":
        raise CommandRejected(BATTLE_ENDED, "the battle is over")
    if battle.current_actor_id() != actor_id:
        raise CommandRejected(NOT_YOUR_TURN, "it is not your turn")
    actor = battle.players[actor_id]
    if actor.state != "alive":
        raise CommandRejected(ACTOR_DEAD, "dead players cannot act")

    instance = next((c for c in actor.hand_cards if c.instance_id == instance_id), None)
    if instance is None:
        raise CommandRejected(UNKNOWN_CARD, f"card '{instance_id}' is not in your hand")
    try:
        card = card_by_id(instance.card_id)
    except UnknownCatalogEntry:
        raise CommandRejected(UNKNOWN_CARD, f"unknown card '{instance.card_id}'")

    if card.profession_required and card.profession_required != actor.profession:
        raise CommandRejected(WRONG_PROFESSION, f"{card.name} is a {card.profession_required} card")

    if is_redirect_card(card) and not card.redirect_target and target_org not in ORGANIZATIONS:
        raise CommandRejected(MISSING_TARGET, f"{card.name} needs an organization to redirect to")

    for effect in walk_effects(card.effects):
        if effect.type not in EFFECT_HANDLERS:
            raise CommandRejected(UNKNOWN_EFFECT, f"unknown effect type '{effect.type}'")
        if effect.type == "special" and effect.handler not in ctx.specials:
            raise CommandRejected(UNKNOWN_EFFECT, f"no handler for '{effect.handler}'")
        if effect.target == "ally" and target_player is not None:
            ally = battle.players.get(target_player)
            if ally is None or ally.state != "alive":
                raise CommandRejected(MISSING_TARGET, f"'{target_player}' is not a living ally")

    return instance, card


# ---- targeting ----

def player_targets(ctx: BattleContext, actor: BattlePlayer, effect: CardEffect, play: PlayState) -> List[BattlePlayer]:
    battle = ctx.battle
    alive = [p for p in battle.players.values() if p.state == "alive"]
    if effect.target == "ally" and play.target_player:
        return [battle.players[play.target_player]]
    if effect.target in ("self", "ally"):
        return [actor] if actor.state == "alive" else []
    if effect.target == "all_allies":
        return alive
    if effect.target == "organization":
        return [p for p in alive if p.organization == actor.organization]
    return []


def _modifier(actor: BattlePlayer, card: Optional[Card]) -> float:
    """amplify scales every value of a skill card."""
    if card is None or card.type != "skill":
        return 1.0
    amplify = find(actor.buffs, "amplify")
    return amplify.value / 100 if amplify else 1.0


def _scaled(value: int, actor: BattlePlayer, card: Optional[Card]) -> int:
    return int(math.floor(value * _modifier(actor, card)))


# ---- effect handlers ----

def resolve_damage(ctx: BattleContext, actor: BattlePlayer, effect: CardEffect, play: PlayState) -> None:
    battle = ctx.battle
    settings = ctx.settings
    on_boss = effect.target in BOSS_TARGETS
    if on_boss:
        if battle.boss.current_health <= 0:
            return
        targets = []
    else:
        targets = player_targets(ctx, actor, effect, play)
        if not targets:
            return

    raw = raw_card_damage(_scaled(effect.value, actor, play.card), effective_attack(actor), settings["attack_to_damage_ratio"])
    empower = pop_effect(actor.buffs, "empower")
    if empower is not None:
        raw = int(math.floor(raw * empower.value / 100))

    # a forced crit does not consume a roll
    if consume_stack(actor.buffs, "sure_crit"):
        crit = True
    else:
        crit = crit_roll(ctx.rng, actor.crit_rate)
    if crit:
        raw = crit_damage(raw, actor.crit_damage)
    suffix = " Critical hit!" if crit else ""

    if on_boss:
        boss = battle.boss
        dealt = damage_boss(battle, raw)
        play.damage_dealt += dealt
        play.lines.append(f"{actor.username} hits {boss.name} for {dealt}.{suffix}")
        return

    for target in targets:
        amount = mitigate(raw * incoming_multiplier(target), effective_defense(target), settings["defense_mitigation_ratio"])
        lost, absorbed, died = damage_player(battle, target.player_id, amount)
        play.lines.append(f"{actor.username} hits {target.username} for {lost}.{suffix}")
        if died:
            play.dead.append(target.player_id)


def resolve_heal(ctx: BattleContext, actor: BattlePlayer, effect: CardEffect, play: PlayState) -> None:
    value = _scaled(effect.value, actor, play.card)
    for target in player_targets(ctx, actor, effect, play):
        healed = heal_player(ctx.battle, target.player_id, value, healer_id=actor.player_id)
        play.lines.append(f"{target.username} recovers {healed} health.")


def resolve_shield(ctx: BattleContext, actor: BattlePlayer, effect: CardEffect, play: PlayState) -> None:
    value = _scaled(effect.value, actor, play.card)
    duration = effect.duration or ctx.settings["default_shield_duration"]
    for target in player_targets(ctx, actor, effect, play):
        apply_buff(ctx.battle, target.player_id, build_buff("shield", value, duration, source=actor.player_id))
        play.lines.append(f"{target.username} gains a {value} point shield.")


def resolve_buff(ctx: BattleContext, actor: BattlePlayer, effect: CardEffect, play: PlayState) -> None:
    kind = effect.kind or "attack"
    value = _scaled(effect.value, actor, play.card)
    for target in player_targets(ctx, actor, effect, play):
        buff = build_buff(kind, value, effect.duration or 1, stackable=effect.stackable, source=actor.player_id)
        apply_buff(ctx.battle, target.player_id, buff)
        play.lines.append(f"{target.username} gains {buff.name}.")


def resolve_debuff(ctx: BattleContext, actor: BattlePlayer, effect: CardEffect, play: PlayState) -> None:
    battle = ctx.battle
    kind = effect.kind or "weaken"
    value = _scaled(effect.value, actor, play.card)
    debuff = build_buff(kind, value, effect.duration or 1, stackable=effect.stackable, source=actor.player_id)
    if effect.target in BOSS_TARGETS:
        if battle.boss.current_health > 0:
            apply_debuff(battle, battle.boss, debuff)
            play.lines.append(f"{battle.boss.name} suffers {debuff.name}.")
        return
    for target in player_targets(ctx, actor, effect, play):
        apply_debuff(battle, target, build_buff(kind, value, effect.duration or 1, stackable=effect.stackable, source=actor.player_id))
        play.lines.append(f"{target.username} suffers {debuff.name}.")


def resolve_redirect(ctx: BattleContext, actor: BattlePlayer, effect: CardEffect, play: PlayState) -> None:
    card = play.card
    target = (card.redirect_target if card else None) or play.target_org
    set_redirect_target(ctx.battle, target)
    play.lines.append(f"The boss's attention turns to {target}.")


def resolve_draw(ctx: BattleContext, actor: BattlePlayer, effect: CardEffect, play: PlayState) -> None:
    drawn = draw_cards(ctx.battle, actor.player_id, effect.value, ctx.rng)
    play.drawn.extend(drawn)
    play.lines.append(f"{actor.username} draws {len(drawn)} card(s).")


def resolve_special(ctx: BattleContext, actor: BattlePlayer, effect: CardEffect, play: PlayState) -> None:
    ctx.specials[effect.handler](ctx, actor, effect, play)


EFFECT_HANDLERS: Dict[str, Callable[[BattleContext, BattlePlayer, CardEffect, PlayState], None]] = {
    "damage": resolve_damage,
    "heal": resolve_heal,
    "shield": resolve_shield,
    "buff": resolve_buff,
    "debuff": resolve_debuff,
    "redirect": resolve_redirect,
    "draw": resolve_draw,
    "special": resolve_special,
}


def resolve_effects(ctx: BattleContext, actor: BattlePlayer, effects, play: PlayState) -> None:
    for effect in walk_effects(effects):
        EFFECT_HANDLERS[effect.type](ctx, actor, effect, play)


def after_effects(ctx: BattleContext, play: PlayState) -> None:
    """Casualties, then the boss revival check, then the defeat check."""
    report_casualties(ctx, play.dead)
    check_revival(ctx)
    check_defeat(ctx)


def play_card(
    ctx: BattleContext,
    actor_id: str,
    instance_id: str,
    target_org: Optional[str] = None,
    target_player: Optional[str] = None,
) -> PlayResult:
    _, card = validate_play(ctx, actor_id, instance_id, target_org, target_player)
    battle = ctx.battle
    actor = battle.players[actor_id]
    play = PlayState(actor_id=actor_id, card=card, target_org=target_org, target_player=target_player)

    instance = take_from_hand(battle, actor_id, instance_id)
    resolve_effects(ctx, actor, card.effects, play)
    discard(battle, actor_id, instance)
    record_card_play(battle, actor_id, play.damage_dealt)
    battle.round_actions.append({
        "type": "card",
        "actorId": actor_id,
        "cardId": card.id,
        "instanceId": instance_id,
        "damage": play.damage_dealt,
    })
    for line in play.lines:
        ctx.log(line)

    ctx.emit(
        "cardPlayed",
        actorId=actor_id,
        cardId=card.id,
        instanceId=instance_id,
        damage=play.damage_dealt,
        effects=list(play.lines),
        bossHealth=battle.boss.current_health,
        bossRage=battle.boss.current_rage,
    )
    if play.drawn:
        ctx.emit("drawCards", playerId=actor_id, cards=[asdict(c) for c in play.drawn])
    after_effects(ctx, play)
    return PlayResult(events=ctx.events, damage_dealt=play.damage_dealt, cards_drawn=len(play.drawn))
