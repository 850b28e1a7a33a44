import pytest

from raid.engine import battle_state
from raid.engine.effects import build_buff
from raid.engine.errors import InvalidTransition
from raid.engine.models import BattleData, BattleRound

from regression_suite import four_orgs, make_battle


def test_round_trip_through_dict():
    engine = four_orgs()
    engine.start(0)
    engine.play_card("p1", engine.battle.players["p1"].hand_cards[0].instance_id)
    data = engine.battle
    assert BattleData.from_dict(data.to_dict()) == data


def test_damage_player_uses_shields_then_health():
    battle = make_battle([("p1", "knight", "iron_fortress")]).battle
    battle_state.apply_buff(battle, "p1", build_buff("shield", 10, 1))
    lost, absorbed, died = battle_state.damage_player(battle, "p1", 25)
    assert (lost, absorbed, died) == (15, 10, False)
    assert battle.players["p1"].current_health == 135


def test_lethal_damage_marks_player_dead_and_heal_cannot_revive():
    battle = make_battle([("p1", "knight", "iron_fortress")]).battle
    lost, _, died = battle_state.damage_player(battle, "p1", 500)
    player = battle.players["p1"]
    assert died and lost == 150
    assert player.state == "dead" and player.current_health == 0
    assert battle_state.heal_player(battle, "p1", 50) == 0
    assert player.current_health == 0


def test_heal_is_capped_at_max_health():
    battle = make_battle([("p1", "knight", "iron_fortress")]).battle
    battle.players["p1"].current_health = 140
    assert battle_state.heal_player(battle, "p1", 50) == 10


def test_boss_damage_is_clamped_and_feeds_rage():
    battle = make_battle([("p1", "knight", "iron_fortress")]).battle
    assert battle_state.damage_boss(battle, 30) == 30
    assert battle.boss.current_rage == 30
    assert battle_state.damage_boss(battle, 500) == 70
    assert battle.boss.current_health == 0
    assert battle.boss.current_rage == battle.boss.max_rage


def test_illegal_phase_transitions_are_refused():
    battle = make_battle([("p1", "knight", "iron_fortress")]).battle
    assert battle.phase == "draw"
    with pytest.raises(InvalidTransition):
        battle_state.advance_phase(battle, "boss_turn")
    battle.turn_order = ["p1"]
    battle_state.advance_phase(battle, "player_turn")
    battle_state.advance_phase(battle, "ended")
    with pytest.raises(InvalidTransition):
        battle_state.advance_phase(battle, "draw")


def test_redirect_only_during_player_turn():
    battle = make_battle([("p1", "knight", "iron_fortress")]).battle
    with pytest.raises(InvalidTransition):
        battle_state.set_redirect_target(battle, "flame_legion")
    battle_state.set_redirect_target(battle, None)


def test_round_records_must_follow_the_current_round():
    battle = make_battle([("p1", "knight", "iron_fortress")]).battle
    with pytest.raises(InvalidTransition):
        battle_state.append_round(battle, BattleRound(round_number=2))
    battle_state.append_round(battle, BattleRound(round_number=1))
    with pytest.raises(InvalidTransition):
        battle_state.append_round(battle, BattleRound(round_number=1))


def test_card_in_two_places_breaks_invariants():
    battle = make_battle([("p1", "knight", "iron_fortress")]).battle
    card = battle.draw_piles["p1"][0]
    battle.discard_piles["p1"].append(card)
    with pytest.raises(InvalidTransition):
        battle_state.check_invariants(battle)


def test_draw_reshuffles_the_discard_pile():
    engine = make_battle([("p1", "knight", "iron_fortress")], decks={"p1": ["strike"] * 3})
    battle = engine.battle
    drawn = battle_state.draw_cards(battle, "p1", 3, engine.rng)
    assert len(drawn) == 3 and not battle.draw_piles["p1"]
    for instance in list(battle.players["p1"].hand_cards[:2]):
        battle_state.discard(battle, "p1", battle_state.take_from_hand(battle, "p1", instance.instance_id))

    again = battle_state.draw_cards(battle, "p1", 5, engine.rng)
    assert len(again) == 2, "only the two discarded cards can come back"
    assert not battle.discard_piles["p1"]
    assert len(battle.players["p1"].hand_cards) == 3


def test_draw_respects_hand_limit():
    engine = make_battle([("p1", "knight", "iron_fortress")], settings={"max_hand_size": 4})
    battle = engine.battle
    assert len(battle_state.draw_cards(battle, "p1", 10, engine.rng)) == 4
    assert battle_state.draw_cards(battle, "p1", 2, engine.rng) == []


def test_leftover_redirect_blocks_the_next_player_turn():
    battle = make_battle([("p1", "knight", "iron_fortress")]).battle
    battle.turn_order = ["p1"]
    battle.redirect_target = "flame_legion"
    with pytest.raises(InvalidTransition):
        battle_state.advance_phase(battle, "player_turn")
    assert battle.phase == "draw"
