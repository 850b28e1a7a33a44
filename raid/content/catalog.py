# raid/content/catalog.py
"""
Read-only lookups over the static game content.

Card and boss definitions are authored as plain dicts in the sibling modules;
this module turns them into frozen records once at import time so callers can
share them freely.
"""
import copy
from types import MappingProxyType
from typing import Any, Dict, List, Mapping

from ..engine.models import Boss, BossSkill, Card, CardEffect
from .bosses import BOSSES
from .cards import CARDS, STARTER_DECK
from .organizations import GAME_MODES, ORGANIZATIONS
from .professions import PROFESSIONS


class UnknownCatalogEntry(KeyError):
    def __init__(self, kind: str, entry_id: str):
        self.kind = kind
        self.entry_id = entry_id
        super().__init__(f"unknown {kind} '{entry_id}'")


def _build_effect(data: Dict[str, Any]) -> CardEffect:
    return CardEffect(
        type=data["type"],
        target=data.get("target", "self"),
        value=int(data.get("value", 0) or 0),
        duration=data.get("duration"),
        kind=data.get("kind"),
        stackable=bool(data.get("stackable", False)),
        handler=data.get("handler"),
        additional_effects=tuple(_build_effect(e) for e in data.get("additional_effects", []) or []),
    )


def build_card(card_id: str, data: Dict[str, Any]) -> Card:
    return Card(
        id=card_id,
        name=data["name"],
        type=data["type"],
        effects=tuple(_build_effect(e) for e in data.get("effects", [])),
        rarity=data.get("rarity", "common"),
        cost=int(data.get("cost", 0) or 0),
        profession_required=data.get("profession"),
        redirect_target=data.get("redirect_target"),
        description=data.get("description", ""),
    )


def build_skill(data: Dict[str, Any]) -> BossSkill:
    return BossSkill(
        id=data["id"],
        name=data["name"],
        damage=int(data["damage"]),
        target=data.get("target", "single"),
        description=data.get("description", ""),
        cooldown=int(data.get("cooldown", 0) or 0),
    )


_CARDS: Dict[str, Card] = {card_id: build_card(card_id, data) for card_id, data in CARDS.items()}


def card_by_id(card_id: str) -> Card:
    card = _CARDS.get(card_id)
    if card is None:
        raise UnknownCatalogEntry("card", card_id)
    return card


def all_cards() -> List[Card]:
    return list(_CARDS.values())


def cards_for_profession(profession: str) -> List[Card]:
    """Cards a profession may hold: shared cards plus its own."""
    if profession not in PROFESSIONS:
        raise UnknownCatalogEntry("profession", profession)
    return [c for c in _CARDS.values() if c.profession_required in (None, profession)]


def starter_deck(profession: str) -> List[str]:
    """Card ids of a fresh deck, in a fixed order (shuffled by the engine)."""
    deck: List[str] = []
    for card_id, copies in STARTER_DECK["common"].items():
        deck.extend([card_id] * copies)
    for card_id, copies in STARTER_DECK["redirect"].items():
        deck.extend([card_id] * copies)
    for card in cards_for_profession(profession):
        if card.profession_required == profession:
            deck.extend([card.id] * STARTER_DECK["profession"])
    return deck


def boss_template(boss_id: str) -> Mapping[str, Any]:
    template = BOSSES.get(boss_id)
    if template is None:
        raise UnknownCatalogEntry("boss", boss_id)
    return MappingProxyType(template)


def create_boss_instance(template: Mapping[str, Any]) -> Boss:
    """Fresh, fully-healed Boss; the template itself is never touched."""
    data = copy.deepcopy(dict(template))
    max_health = int(data["max_health"])
    base_attack = int(data["base_attack"])
    return Boss(
        id=data.get("id", "boss"),
        name=data["name"],
        max_health=max_health,
        current_health=max_health,
        max_rage=int(data["max_rage"]),
        base_attack=base_attack,
        current_attack=base_attack,
        rage_per_damage=float(data.get("rage_per_damage", 0.0)),
        skills=[build_skill(s) for s in data.get("skills", [])],
        rage_skill=build_skill({"target": "all", **data["rage_skill"]}),
        description=data.get("description", ""),
    )


def profession_base_stats(profession: str) -> Mapping[str, Any]:
    entry = PROFESSIONS.get(profession)
    if entry is None:
        raise UnknownCatalogEntry("profession", profession)
    return MappingProxyType(entry["base_stats"])


def profession_talent(profession: str) -> Mapping[str, Any]:
    entry = PROFESSIONS.get(profession)
    if entry is None:
        raise UnknownCatalogEntry("profession", profession)
    return MappingProxyType(entry["talent"])


def organization_info(organization: str) -> Mapping[str, Any]:
    entry = ORGANIZATIONS.get(organization)
    if entry is None:
        raise UnknownCatalogEntry("organization", organization)
    return MappingProxyType(entry)


def game_mode(mode: str) -> Mapping[str, Any]:
    entry = GAME_MODES.get(mode)
    if entry is None:
        raise UnknownCatalogEntry("game mode", mode)
    return MappingProxyType(entry)
