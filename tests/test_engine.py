import pytest

from raid.content.catalog import boss_template
from raid.engine import battle_state
from raid.engine.boss_ai import rotation_skill
from raid.engine.dice import rng_for
from raid.engine.effects import build_buff, find
from raid.engine.engine import BattleEngine, replay
from raid.engine.errors import BattleError, CommandRejected

from regression_suite import TEST_BOSS, end_round_from, first, four_orgs, hand_card, make_battle, names


def _rejected(code, call, *args, **kwargs):
    with pytest.raises(CommandRejected) as info:
        call(*args, **kwargs)
    assert info.value.code == code


# ---- preconditions ----

def test_only_the_current_actor_may_act():
    engine = four_orgs()
    engine.start(0)
    before = engine.battle.to_dict()
    _rejected("not-your-turn", engine.end_turn, "p2")
    _rejected("not-your-turn", engine.play_card, "p2", engine.battle.players["p2"].hand_cards[0].instance_id)
    _rejected("not-your-turn", engine.use_talent, "p3")
    assert engine.battle.to_dict() == before, "a rejected command must not change anything"


def test_unknown_and_wrong_profession_cards():
    engine = make_battle([("p1", "knight", "iron_fortress")], decks={"p1": ["backstab"] * 8})
    engine.start(0)
    _rejected("unknown-card", engine.play_card, "p1", "p1-c999")
    _rejected("wrong-profession", engine.play_card, "p1", hand_card(engine, "p1", "backstab"))


def test_false_trail_needs_an_organization():
    engine = four_orgs(decks={"p1": ["false_trail"] * 8})
    engine.start(0)
    card = hand_card(engine, "p1", "false_trail")
    _rejected("missing-target", engine.play_card, "p1", card)
    _rejected("missing-target", engine.play_card, "p1", card, target_org="nowhere")

    engine.play_card("p1", card, target_org="frost_sanctuary")
    assert engine.battle.redirect_target == "frost_sanctuary"


def test_unregistered_special_is_refused_before_anything_happens():
    engine = make_battle([("p1", "knight", "iron_fortress")], decks={"p1": ["war_horn"] * 8})
    engine.start(0)
    engine.specials.pop("cleanse")
    hand_before = len(engine.battle.players["p1"].hand_cards)
    _rejected("unknown-effect", engine.play_card, "p1", hand_card(engine, "p1", "war_horn"))
    assert len(engine.battle.players["p1"].hand_cards) == hand_before


def test_dead_actor_is_refused():
    engine = make_battle([("p1", "knight", "iron_fortress"), ("p2", "knight", "flame_legion")])
    engine.start(0)
    p1 = engine.battle.players["p1"]
    p1.current_health = 0
    p1.state = "dead"
    _rejected("actor-dead", engine.play_card, "p1", p1.hand_cards[0].instance_id)


def test_commands_after_the_end_are_refused():
    engine = make_battle([("p1", "knight", "iron_fortress")])
    engine.start(0)
    engine.battle.boss.current_health = 1
    events = engine.play_card("p1", hand_card(engine, "p1", "strike")).events
    assert first(events, "battleEnd").payload["result"] == "victory"
    assert engine.ended
    _rejected("battle-ended", engine.end_turn, "p1")
    _rejected("battle-ended", engine.play_card, "p2", "anything")
    assert engine.tick(10 ** 9) == []


# ---- flow ----

def test_turn_order_by_speed_then_player_id():
    seats = [("p1", "knight", "iron_fortress"), ("p2", "assassin", "shadow_covenant"),
             ("p3", "gunner", "flame_legion"), ("p4", "knight", "frost_sanctuary")]
    engine = make_battle(seats)
    start = engine.start(0)
    assert first(start, "battleStart").payload["turnOrder"] == ["p2", "p3", "p1", "p4"]
    assert engine.battle.turn_order == ["p2", "p3", "p1", "p4"]


def test_start_draws_a_full_hand_for_everyone():
    engine = four_orgs()
    events = engine.start(0)
    assert names(events)[:2] == ["battleStart", "roundStart"]
    draws = [e for e in events if e.name == "drawCards"]
    assert len(draws) == 4
    assert all(len(e.payload["cards"]) == 7 for e in draws)
    assert names(events)[-1] == "turnStart"
    _rejected("invalid-transition", engine.start, 0)


def test_round_end_ticks_poison_on_the_boss():
    engine = make_battle([("p1", "knight", "iron_fortress")], decks={"p1": ["venom_flask"] * 8})
    engine.start(0)
    engine.play_card("p1", hand_card(engine, "p1", "venom_flask"))
    assert find(engine.battle.boss.debuffs, "poison") is not None

    health = []
    for _ in range(4):
        events = engine.end_turn("p1")
        health.append(first(events, "roundEnd").payload["bossHealth"])
    assert health == [92, 84, 76, 76], f"three poison ticks of 8 expected, got {health}"
    assert find(engine.battle.boss.debuffs, "poison") is None


def test_round_limit_means_defeat():
    engine = make_battle([("p1", "knight", "iron_fortress")], settings={"max_rounds": 2})
    engine.start(0)
    engine.end_turn("p1")
    events = engine.end_turn("p1")
    end = first(events, "battleEnd").payload
    assert end["result"] == "defeat" and end["totalRounds"] == 2
    assert len(engine.battle.rounds) == 2


def test_everyone_falling_means_defeat():
    crusher = dict(TEST_BOSS, skills=[{"id": "crush", "name": "Crush", "damage": 1000, "target": "all"}])
    engine = make_battle([("p1", "knight", "iron_fortress"), ("p2", "knight", "flame_legion")], boss=crusher)
    engine.start(0)
    engine.end_turn("p1")
    events = engine.end_turn("p2")
    order = names(events)
    assert order.count("playerDied") == 2
    assert order.count("organizationEliminated") == 2
    assert order[-1] == "battleEnd"
    assert events[-1].payload["result"] == "defeat"


def test_disconnecting_the_current_actor_ends_their_turn():
    engine = make_battle([("p1", "knight", "iron_fortress"), ("p2", "knight", "flame_legion")])
    engine.start(0)
    events = engine.disconnect("p1")
    assert events[0].payload == {"actorId": "p1", "reason": "disconnected"}
    assert engine.battle.current_actor_id() == "p2"
    _rejected("unknown-player", engine.disconnect, "ghost")


def test_chained_effects_resolve_after_their_parent():
    engine = make_battle([("p1", "sorcerer", "iron_fortress")], decks={"p1": ["fireball"] * 8})
    engine.start(0)
    result = engine.play_card("p1", hand_card(engine, "p1", "fireball"))
    assert result.damage_dealt == 37
    burn = find(engine.battle.boss.debuffs, "burn")
    assert burn is not None and burn.value == 4


def test_war_horn_cleanses_the_organization():
    engine = make_battle([("p1", "knight", "iron_fortress"), ("p2", "knight", "iron_fortress")],
                         decks={"p1": ["war_horn"] * 8})
    engine.start(0)
    for pid in ("p1", "p2"):
        battle_state.apply_debuff(engine.battle, engine.battle.players[pid], build_buff("poison", 5, 2))
    engine.play_card("p1", hand_card(engine, "p1", "war_horn"))
    assert not engine.battle.players["p1"].debuffs
    assert not engine.battle.players["p2"].debuffs


# ---- talents ----

def test_sword_spirit_doubles_the_next_hit_and_goes_on_cooldown():
    engine = make_battle([("p1", "swordsman", "iron_fortress")])
    engine.start(0)
    events = engine.use_talent("p1")
    assert names(events) == ["talentUsed"]
    assert engine.battle.players["p1"].talent.current_cooldown == 2

    assert engine.play_card("p1", hand_card(engine, "p1", "strike")).damage_dealt == 54
    assert engine.play_card("p1", hand_card(engine, "p1", "strike")).damage_dealt == 27
    _rejected("talent-on-cooldown", engine.use_talent, "p1")

    engine.end_turn("p1")
    assert engine.battle.players["p1"].talent.current_cooldown == 1


def test_precision_shot_forces_crits():
    engine = make_battle([("p1", "gunner", "iron_fortress")])
    engine.start(0)
    engine.battle.players["p1"].crit_damage = 2.0
    engine.use_talent("p1")
    assert engine.play_card("p1", hand_card(engine, "p1", "strike")).damage_dealt == 60
    assert find(engine.battle.players["p1"].buffs, "sure_crit").stacks == 2


def test_iron_bastion_shields_everyone():
    engine = make_battle([("p1", "knight", "iron_fortress"), ("p2", "knight", "flame_legion")])
    engine.start(0)
    engine.use_talent("p1")
    for pid in ("p1", "p2"):
        assert find(engine.battle.players[pid].buffs, "shield").value == 15


def test_elemental_mastery_amplifies_skill_cards():
    engine = make_battle([("p1", "sorcerer", "iron_fortress")], decks={"p1": ["frost_armor"] * 8})
    engine.start(0)
    engine.use_talent("p1")
    engine.play_card("p1", hand_card(engine, "p1", "frost_armor"))
    assert find(engine.battle.players["p1"].buffs, "defense").value == 20
    assert find(engine.battle.boss.debuffs, "weaken").value == 40


# ---- boss ----

def test_rotation_selector_prefers_the_longest_ready_cooldown():
    engine = make_battle([("p1", "knight", "iron_fortress")], boss=dict(boss_template("boss_abyssal_titan")))
    battle = engine.battle
    picks = [rotation_skill(battle).id for _ in range(4)]
    assert picks == ["skill_focus_crush", "skill_earthquake", "skill_titan_slam", "skill_titan_slam"]
    for _ in range(5):
        battle_state.tick_cooldowns(battle)
    assert rotation_skill(battle).id == "skill_focus_crush"


def test_boss_weaken_reduces_its_damage():
    engine = make_battle([("p1", "knight", "iron_fortress")])
    engine.start(0)
    battle_state.apply_debuff(engine.battle, engine.battle.boss, build_buff("weaken", 50, 1))
    events = engine.end_turn("p1")
    affected = first(events, "bossAttack").payload["affected"]
    assert affected[0]["damage"] == 1, "5 damage less 6 mitigation floors at 1"


# ---- aborts and replay ----

def test_broken_invariant_aborts_the_battle():
    def broken(ctx, actor, effect, play):
        battle_state.set_redirect_target(ctx.battle, "nowhere")

    engine = BattleEngine(specials={"cleanse": broken})
    snapshot = {"room_id": "r", "players": [
        {"player_id": "p1", "profession": "knight", "organization": "iron_fortress", "deck": ["war_horn"] * 8},
    ]}
    engine.init(snapshot, TEST_BOSS, rng_for(1))
    engine.start(0)
    result = engine.play_card("p1", hand_card(engine, "p1", "war_horn"))
    end = first(result.events, "battleEnd").payload
    assert end["result"] == "aborted"
    assert engine.battle.phase == "ended"
    _rejected("battle-ended", engine.end_turn, "p1")


def test_bad_snapshots_are_refused():
    engine = BattleEngine()
    with pytest.raises(BattleError):
        engine.init({"players": []}, TEST_BOSS, rng_for(1))
    with pytest.raises(BattleError):
        engine.init({"players": [{"player_id": "p1", "profession": "bard", "organization": "iron_fortress"}]},
                    TEST_BOSS, rng_for(1))
    with pytest.raises(BattleError):
        engine.init({"players": [{"player_id": "p1", "profession": "knight", "organization": "pirates"}]},
                    TEST_BOSS, rng_for(1))


def test_command_log_replays_to_the_same_battle():
    snapshot = {"room_id": "replay", "players": [
        {"player_id": "a", "profession": "assassin", "organization": "shadow_covenant"},
        {"player_id": "b", "profession": "knight", "organization": "iron_fortress"},
    ]}
    template = boss_template("boss_shadow_lurker")
    engine = BattleEngine()
    engine.init(snapshot, template, rng_for(99))
    engine.start(0)
    for _ in range(6):
        if engine.ended:
            break
        actor = engine.battle.current_actor_id()
        player = engine.battle.players[actor]
        for instance in list(player.hand_cards):
            if engine.ended or engine.battle.current_actor_id() != actor:
                break
            card_id = instance.card_id
            try:
                engine.play_card(actor, instance.instance_id, target_org="shadow_covenant")
            except CommandRejected:
                continue
            if card_id == "quick_draw":
                break
        if not engine.ended and engine.battle.current_actor_id() == actor:
            engine.end_turn(actor)

    again = replay(snapshot, template, 99, engine.commands)
    assert again.battle.to_dict() == engine.battle.to_dict()


def test_a_dead_boss_does_not_spend_crit_stacks():
    engine = make_battle([("p1", "gunner", "iron_fortress")], decks={"p1": ["rapid_fire"] * 8})
    engine.start(0)
    engine.use_talent("p1")
    engine.battle.boss.current_health = 1

    result = engine.play_card("p1", hand_card(engine, "p1", "rapid_fire"))
    assert result.damage_dealt == 1
    assert engine.battle.phase == "ended"
    assert find(engine.battle.players["p1"].buffs, "sure_crit").stacks == 2, "the second shot had nothing to hit"


def test_unknown_skill_selector_name_is_refused():
    with pytest.raises(BattleError) as info:
        BattleEngine(skill_selector="bogus")
    assert info.value.code == "unknown-selector"
    assert BattleEngine(skill_selector="rotation").skill_selector is rotation_skill


def test_every_round_opens_without_a_redirect():
    engine = four_orgs(decks={"p1": ["scapegoat_flame_legion"] * 10})
    engine.start(0)
    for round_number in range(1, 5):
        assert engine.battle.current_round == round_number
        assert engine.battle.redirect_target is None, f"round {round_number} opened with a redirect"
        engine.play_card("p1", hand_card(engine, "p1", "scapegoat_flame_legion"))
        assert engine.battle.redirect_target == "flame_legion"
        events = end_round_from(engine)
        assert "battleEnd" not in names(events)
        assert first(events, "bossAttack").payload["action"]["redirected"] is True
