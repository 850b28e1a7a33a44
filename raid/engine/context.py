# raid/engine/context.py
import random
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .models import BattleData, BossSkill, Event


@dataclass
class BattleContext:
    """Everything one command needs: the battle, its RNG, settings and the event sink."""

    battle: BattleData
    rng: random.Random
    settings: Dict[str, Any]
    now: float = 0
    skill_selector: Optional[Callable[[BattleData], BossSkill]] = None
    specials: Dict[str, Callable] = field(default_factory=dict)
    events: List[Event] = field(default_factory=list)

    def emit(self, name: str, **payload) -> Event:
        event = Event(name=name, payload=payload)
        self.events.append(event)
        return event

    def log(self, line: str) -> None:
        self.battle.log.append(line)
