# raid/engine/models.py
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

ORGANIZATIONS = ("iron_fortress", "shadow_covenant", "flame_legion", "frost_sanctuary")
PHASES = ("draw", "player_turn", "boss_turn", "round_end", "ended")
EFFECT_TYPES = ("damage", "heal", "shield", "buff", "debuff", "redirect", "draw", "special")
EFFECT_TARGETS = ("self", "ally", "enemy", "all_allies", "all_enemies", "boss", "organization")
SKILL_TARGETS = ("single", "organization", "all")


# ---- catalog records (immutable) ----

@dataclass(frozen=True)
class CardEffect:
    type: str                              # one of EFFECT_TYPES
    target: str                            # one of EFFECT_TARGETS
    value: int = 0
    duration: Optional[int] = None
    kind: Optional[str] = None             # buff/debuff kind
    stackable: bool = False
    handler: Optional[str] = None          # special handler name
    additional_effects: Tuple["CardEffect", ...] = ()


@dataclass(frozen=True)
class Card:
    id: str
    name: str
    type: str                              # attack | skill | redirect | buff | heal | defense
    effects: Tuple[CardEffect, ...]
    rarity: str = "common"
    cost: int = 0
    profession_required: Optional[str] = None
    redirect_target: Optional[str] = None
    description: str = ""


@dataclass(frozen=True)
class BossSkill:
    id: str
    name: str
    damage: int
    target: str = "single"                 # one of SKILL_TARGETS
    description: str = ""
    cooldown: int = 0


# ---- battle records (mutated by the engine only) ----

@dataclass
class Buff:
    id: str
    name: str
    kind: str
    value: int
    duration: int                          # remaining rounds
    stackable: bool = False
    stacks: int = 1
    source: str = ""


@dataclass
class Talent:
    type: str
    name: str
    cooldown: int
    current_cooldown: int = 0
    description: str = ""


@dataclass
class TurnData:
    has_acted: bool = False
    cards_played: int = 0
    damage_dealt: int = 0
    damage_taken: int = 0


@dataclass
class CardInstance:
    instance_id: str
    card_id: str
    is_enhanced: bool = False
    enhance_level: int = 0


@dataclass
class Boss:
    id: str
    name: str
    max_health: int
    current_health: int
    max_rage: int
    base_attack: int
    current_attack: int
    rage_per_damage: float
    skills: List[BossSkill]
    rage_skill: BossSkill
    current_rage: int = 0
    revive_count: int = 0
    state: str = "idle"                    # idle | acting | dead
    description: str = ""
    debuffs: List[Buff] = field(default_factory=list)
    skill_cooldowns: Dict[str, int] = field(default_factory=dict)


@dataclass
class BattlePlayer:
    player_id: str
    username: str
    profession: str
    organization: str
    max_health: int
    current_health: int
    attack: int
    defense: int
    speed: int
    crit_rate: int = 0
    crit_damage: float = 1.5
    state: str = "alive"                   # alive | dead
    talent: Optional[Talent] = None
    hand_cards: List[CardInstance] = field(default_factory=list)
    buffs: List[Buff] = field(default_factory=list)
    debuffs: List[Buff] = field(default_factory=list)
    turn_data: TurnData = field(default_factory=TurnData)
    connected: bool = True


@dataclass
class BattleRound:
    round_number: int
    actions: List[Dict[str, Any]] = field(default_factory=list)
    boss_action: Optional[Dict[str, Any]] = None
    boss_health: int = 0
    boss_rage: int = 0


@dataclass
class BattleData:
    room_id: str
    boss: Boss
    players: Dict[str, BattlePlayer]
    max_rounds: int
    current_round: int = 1
    phase: str = "draw"
    turn_order: List[str] = field(default_factory=list)
    current_turn_index: int = 0
    draw_piles: Dict[str, List[CardInstance]] = field(default_factory=dict)
    discard_piles: Dict[str, List[CardInstance]] = field(default_factory=dict)
    rounds: List[BattleRound] = field(default_factory=list)
    redirect_target: Optional[str] = None
    max_hand_size: int = 7
    turn_time_limit: int = 60000           # ms
    turn_started_at: Optional[float] = None
    round_actions: List[Dict[str, Any]] = field(default_factory=list)
    combat_totals: Dict[str, Dict[str, int]] = field(default_factory=dict)
    log: List[str] = field(default_factory=list)
    result: Optional[Dict[str, Any]] = None

    def current_actor_id(self) -> Optional[str]:
        if self.phase != "player_turn" or not self.turn_order:
            return None
        if not 0 <= self.current_turn_index < len(self.turn_order):
            return None
        return self.turn_order[self.current_turn_index]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BattleData":
        payload = dict(data)
        payload["boss"] = _boss_from_dict(payload["boss"])
        payload["players"] = {pid: _player_from_dict(p) for pid, p in payload["players"].items()}
        payload["draw_piles"] = {pid: [CardInstance(**c) for c in pile] for pid, pile in payload.get("draw_piles", {}).items()}
        payload["discard_piles"] = {pid: [CardInstance(**c) for c in pile] for pid, pile in payload.get("discard_piles", {}).items()}
        payload["rounds"] = [BattleRound(**r) for r in payload.get("rounds", [])]
        payload["turn_order"] = list(payload.get("turn_order", []))
        return cls(**payload)


@dataclass
class Event:
    name: str
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "payload": self.payload}


@dataclass
class PlayResult:
    events: List[Event] = field(default_factory=list)
    damage_dealt: int = 0
    cards_drawn: int = 0


def _skill_from_dict(data: Dict[str, Any]) -> BossSkill:
    return BossSkill(**data)


def _boss_from_dict(data: Dict[str, Any]) -> Boss:
    payload = dict(data)
    payload["skills"] = [_skill_from_dict(s) for s in payload.get("skills", [])]
    payload["rage_skill"] = _skill_from_dict(payload["rage_skill"])
    payload["debuffs"] = [Buff(**b) for b in payload.get("debuffs", [])]
    payload["skill_cooldowns"] = dict(payload.get("skill_cooldowns", {}))
    return Boss(**payload)


def _player_from_dict(data: Dict[str, Any]) -> BattlePlayer:
    payload = dict(data)
    talent = payload.get("talent")
    payload["talent"] = Talent(**talent) if talent else None
    payload["hand_cards"] = [CardInstance(**c) for c in payload.get("hand_cards", [])]
    payload["buffs"] = [Buff(**b) for b in payload.get("buffs", [])]
    payload["debuffs"] = [Buff(**b) for b in payload.get("debuffs", [])]
    payload["turn_data"] = TurnData(**payload.get("turn_data", {}))
    return BattlePlayer(**payload)
