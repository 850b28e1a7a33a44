# raid/engine/engine.py
"""
The command surface of one raid battle.

A BattleEngine owns a BattleData record and its RNG. Every command either
raises CommandRejected without touching anything, or returns the events it
produced in order. If a mutation would break an invariant the battle is
aborted with battleEnd(result="aborted") and refuses all later commands.
"""
import logging
import random
from typing import Any, Callable, Dict, List, Mapping, Optional

from .battle_state import check_invariants, set_connected, start_talent_cooldown
from .boss_ai import SKILL_SELECTORS, first_skill
from .context import BattleContext
from .dice import rng_for, shuffled
from .errors import (
    ACTOR_DEAD,
    BATTLE_ENDED,
    INVALID_SNAPSHOT,
    INVALID_TRANSITION,
    NOT_YOUR_TURN,
    TALENT_ON_COOLDOWN,
    UNKNOWN_EFFECT,
    UNKNOWN_PLAYER,
    UNKNOWN_SELECTOR,
    BattleError,
    CommandRejected,
    InvalidTransition,
)
from .models import ORGANIZATIONS, BattleData, BattlePlayer, CardEffect, CardInstance, Event, PlayResult, Talent
from .outcome import abort_battle
from .resolver import PlayState, after_effects, play_card, validate_play
from .rules import clamp
from .scheduler import compute_turn_order, end_turn, start_battle, tick
from .specials import SPECIAL_HANDLERS
from ..content import balance
from ..content.catalog import (
    UnknownCatalogEntry,
    card_by_id,
    create_boss_instance,
    profession_base_stats,
    profession_talent,
    starter_deck,
)

logger = logging.getLogger(__name__)


def build_player(entry: Mapping[str, Any]) -> BattlePlayer:
    profession = entry["profession"]
    stats = profession_base_stats(profession)
    talent = profession_talent(profession)
    return BattlePlayer(
        player_id=entry["player_id"],
        username=entry.get("username") or entry["player_id"],
        profession=profession,
        organization=entry["organization"],
        max_health=stats["max_health"],
        current_health=stats["max_health"],
        attack=stats["attack"],
        defense=stats["defense"],
        speed=stats["speed"],
        crit_rate=clamp(stats.get("crit_rate", 0), balance.CAPS["crit_min"], balance.CAPS["crit_max"]),
        crit_damage=stats.get("crit_damage", 1.5),
        talent=Talent(
            type=talent["type"],
            name=talent["name"],
            cooldown=talent["cooldown"],
            description=talent.get("description", ""),
        ),
    )


class BattleEngine:
    def __init__(
        self,
        settings: Optional[Dict[str, Any]] = None,
        specials: Optional[Dict[str, Callable]] = None,
        skill_selector: Optional[Callable] = None,
    ):
        self.settings = balance.settings(settings)
        self.specials = dict(SPECIAL_HANDLERS)
        self.specials.update(specials or {})
        if isinstance(skill_selector, str):
            if skill_selector not in SKILL_SELECTORS:
                raise BattleError(UNKNOWN_SELECTOR, f"no boss skill selector '{skill_selector}'")
            skill_selector = SKILL_SELECTORS[skill_selector]
        self.skill_selector = skill_selector or first_skill
        self.battle: Optional[BattleData] = None
        self.rng: Optional[random.Random] = None
        self.commands: List[Dict[str, Any]] = []

    @property
    def ended(self) -> bool:
        return self.battle is not None and self.battle.phase == "ended"

    # ---- setup ----

    def init(self, snapshot: Mapping[str, Any], template: Mapping[str, Any], rng: random.Random) -> BattleData:
        """
        Build the battle from a room snapshot:
        {"room_id": ..., "players": [{"player_id", "username", "profession", "organization", "deck"?}]}
        Decks default to the profession's starter deck and are shuffled here, in turn order.
        """
        entries = list(snapshot.get("players", []))
        if not entries:
            raise BattleError(INVALID_SNAPSHOT, "a battle needs at least one player")

        players: Dict[str, BattlePlayer] = {}
        decks: Dict[str, List[str]] = {}
        for entry in entries:
            pid = entry.get("player_id")
            if not pid or pid in players:
                raise BattleError(INVALID_SNAPSHOT, f"missing or duplicate player id '{pid}'")
            if entry.get("organization") not in ORGANIZATIONS:
                raise BattleError(INVALID_SNAPSHOT, f"{pid} has no valid organization")
            try:
                players[pid] = build_player(entry)
                decks[pid] = list(entry.get("deck") or [])
                if not decks[pid]:
                    decks[pid] = starter_deck(entry["profession"])
                for card_id in decks[pid]:
                    card_by_id(card_id)
            except UnknownCatalogEntry as exc:
                raise BattleError(INVALID_SNAPSHOT, str(exc))

        battle = BattleData(
            room_id=str(snapshot.get("room_id", "")),
            boss=create_boss_instance(template),
            players=players,
            max_rounds=self.settings["max_rounds"],
            max_hand_size=self.settings["max_hand_size"],
            turn_time_limit=self.settings["turn_time_limit_ms"],
        )
        for pid in compute_turn_order(battle):
            instances = [CardInstance(instance_id=f"{pid}-c{n}", card_id=card_id) for n, card_id in enumerate(decks[pid], 1)]
            battle.draw_piles[pid] = shuffled(instances, rng)
            battle.discard_piles[pid] = []
            battle.combat_totals[pid] = {"damage_dealt": 0, "damage_taken": 0, "healing_done": 0, "cards_played": 0}
        check_invariants(battle)

        self.battle = battle
        self.rng = rng
        self.commands = []
        battle.log.append(f"{battle.boss.name} awaits {len(players)} challengers.")
        return battle

    # ---- command plumbing ----

    def _context(self, now_ms: float) -> BattleContext:
        if self.battle is None:
            raise RuntimeError("battle has not been initialised")
        if self.ended:
            raise CommandRejected(BATTLE_ENDED, "the battle is over")
        return BattleContext(
            battle=self.battle,
            rng=self.rng,
            settings=self.settings,
            now=now_ms,
            skill_selector=self.skill_selector,
            specials=self.specials,
        )

    def _run(self, ctx: BattleContext, step: Callable[[], Any]) -> Any:
        try:
            return step()
        except InvalidTransition as exc:
            logger.exception("battle %s aborted", self.battle.room_id)
            abort_battle(ctx, exc.message)
            return None

    def _record(self, command: str, **args) -> None:
        self.commands.append({"command": command, **args})

    def _current_actor(self, ctx: BattleContext, actor_id: str) -> BattlePlayer:
        if ctx.battle.current_actor_id() != actor_id:
            raise CommandRejected(NOT_YOUR_TURN, "it is not your turn")
        actor = ctx.battle.players[actor_id]
        if actor.state != "alive":
            raise CommandRejected(ACTOR_DEAD, "dead players cannot act")
        return actor

    def _end_if_fallen(self, ctx: BattleContext, actor_id: str) -> None:
        battle = ctx.battle
        if battle.phase == "player_turn" and battle.current_actor_id() == actor_id and battle.players[actor_id].state != "alive":
            end_turn(ctx, reason="died")

    # ---- commands ----

    def start(self, now_ms: float = 0) -> List[Event]:
        ctx = self._context(now_ms)
        battle = self.battle
        if battle.phase != "draw" or battle.rounds or battle.current_round != 1:
            raise CommandRejected(INVALID_TRANSITION, "battle already started")
        self._record("start", now_ms=now_ms)

        def step():
            ctx.emit(
                "battleStart",
                roomId=battle.room_id,
                boss={
                    "id": battle.boss.id,
                    "name": battle.boss.name,
                    "maxHealth": battle.boss.max_health,
                    "maxRage": battle.boss.max_rage,
                    "attack": battle.boss.current_attack,
                },
                players=[
                    {
                        "playerId": p.player_id,
                        "playerName": p.username,
                        "profession": p.profession,
                        "organization": p.organization,
                        "maxHealth": p.max_health,
                    }
                    for p in battle.players.values()
                ],
                turnOrder=compute_turn_order(battle),
                maxRounds=battle.max_rounds,
            )
            start_battle(ctx)

        self._run(ctx, step)
        return ctx.events

    def play_card(
        self,
        actor_id: str,
        instance_id: str,
        target_org: Optional[str] = None,
        target_player: Optional[str] = None,
        now_ms: float = 0,
    ) -> PlayResult:
        ctx = self._context(now_ms)
        validate_play(ctx, actor_id, instance_id, target_org, target_player)
        self._record("play_card", actor_id=actor_id, instance_id=instance_id,
                     target_org=target_org, target_player=target_player, now_ms=now_ms)

        def step():
            result = play_card(ctx, actor_id, instance_id, target_org, target_player)
            self._end_if_fallen(ctx, actor_id)
            return result

        result = self._run(ctx, step)
        if result is None:
            return PlayResult(events=ctx.events)
        result.events = ctx.events
        return result

    def end_turn(self, actor_id: str, now_ms: float = 0) -> List[Event]:
        ctx = self._context(now_ms)
        self._current_actor(ctx, actor_id)
        self._record("end_turn", actor_id=actor_id, now_ms=now_ms)
        self._run(ctx, lambda: end_turn(ctx, reason="manual"))
        return ctx.events

    def use_talent(self, actor_id: str, now_ms: float = 0) -> List[Event]:
        ctx = self._context(now_ms)
        actor = self._current_actor(ctx, actor_id)
        talent = actor.talent
        if talent is None or talent.type not in self.specials:
            raise CommandRejected(UNKNOWN_EFFECT, f"{actor.username} has no usable talent")
        if talent.current_cooldown > 0:
            raise CommandRejected(TALENT_ON_COOLDOWN, f"{talent.name} is ready in {talent.current_cooldown} round(s)")
        self._record("use_talent", actor_id=actor_id, now_ms=now_ms)

        def step():
            play = PlayState(actor_id=actor_id)
            effect = CardEffect(type="special", target="self", handler=talent.type)
            self.specials[talent.type](ctx, actor, effect, play)
            start_talent_cooldown(ctx.battle, actor_id)
            actor.turn_data.has_acted = True
            for line in play.lines:
                ctx.log(line)
            ctx.emit("talentUsed", actorId=actor_id, talent=talent.type, effects=list(play.lines))
            after_effects(ctx, play)
            self._end_if_fallen(ctx, actor_id)

        self._run(ctx, step)
        return ctx.events

    def tick(self, now_ms: float) -> List[Event]:
        if self.battle is None or self.ended:
            return []
        ctx = self._context(now_ms)
        self._run(ctx, lambda: tick(ctx))
        if ctx.events:
            self._record("tick", now_ms=now_ms)
        return ctx.events

    def disconnect(self, actor_id: str, now_ms: float = 0) -> List[Event]:
        ctx = self._context(now_ms)
        if actor_id not in ctx.battle.players:
            raise CommandRejected(UNKNOWN_PLAYER, f"'{actor_id}' is not in this battle")
        self._record("disconnect", actor_id=actor_id, now_ms=now_ms)

        def step():
            set_connected(ctx.battle, actor_id, False)
            ctx.log(f"{ctx.battle.players[actor_id].username} disconnected.")
            if ctx.battle.current_actor_id() == actor_id:
                end_turn(ctx, reason="disconnected")

        self._run(ctx, step)
        return ctx.events

    def reconnect(self, actor_id: str) -> List[Event]:
        ctx = self._context(0)
        if actor_id not in ctx.battle.players:
            raise CommandRejected(UNKNOWN_PLAYER, f"'{actor_id}' is not in this battle")
        self._record("reconnect", actor_id=actor_id)
        set_connected(ctx.battle, actor_id, True)
        ctx.log(f"{ctx.battle.players[actor_id].username} reconnected.")
        return ctx.events


def replay(snapshot, template, seed, commands, settings=None, skill_selector=None) -> BattleEngine:
    """Re-run a recorded command log against a fresh engine seeded the same way."""
    engine = BattleEngine(settings=settings, skill_selector=skill_selector)
    engine.init(snapshot, template, rng_for(seed))
    for entry in commands:
        args = dict(entry)
        command = args.pop("command")
        getattr(engine, command)(**args)
    return engine
