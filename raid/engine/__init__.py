# raid/engine/__init__.py
from .errors import BattleError, CommandRejected, InvalidTransition
from .models import BattleData, Event, PlayResult
