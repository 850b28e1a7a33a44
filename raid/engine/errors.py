# raid/engine/errors.py

NOT_YOUR_TURN = "not-your-turn"
ACTOR_DEAD = "actor-dead"
UNKNOWN_CARD = "unknown-card"
WRONG_PROFESSION = "wrong-profession"
MISSING_TARGET = "missing-target"
INVALID_TRANSITION = "invalid-transition"
BATTLE_ENDED = "battle-ended"
UNKNOWN_EFFECT = "unknown-effect"
TALENT_ON_COOLDOWN = "talent-on-cooldown"
UNKNOWN_PLAYER = "unknown-player"
INVALID_SNAPSHOT = "invalid-snapshot"
UNKNOWN_SELECTOR = "unknown-selector"


class BattleError(Exception):
    """Base class for anything the engine refuses to do."""

    code = "battle-error"

    def __init__(self, code: str = "", message: str = ""):
        if code:
            self.code = code
        self.message = message or self.code
        super().__init__(self.message)

    def to_dict(self):
        return {"code": self.code, "message": self.message}


class CommandRejected(BattleError):
    """A user-visible rejection: nothing was mutated, nothing was emitted."""


class InvalidTransition(BattleError):
    """A mutation would have broken a battle invariant; the battle is aborted."""

    code = INVALID_TRANSITION

    def __init__(self, message: str = ""):
        super().__init__(INVALID_TRANSITION, message)
