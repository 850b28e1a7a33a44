# raid/engine/dice.py
import random
from typing import List, Sequence, TypeVar

T = TypeVar("T")


def rng_for(seed: int) -> random.Random:
    # one deterministic stream per battle
    return random.Random(f"raid:{seed}")


def roll_percent(r: random.Random) -> float:
    return r.random() * 100


def crit_roll(r: random.Random, crit_rate: float) -> bool:
    return roll_percent(r) < crit_rate


def pick(options: Sequence[T], r: random.Random) -> T:
    if not options:
        raise ValueError("cannot pick from an empty sequence")
    return options[r.randrange(len(options))]


def shuffled(items: List[T], r: random.Random) -> List[T]:
    out = list(items)
    r.shuffle(out)
    return out
