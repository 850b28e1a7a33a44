# raid/coordinator.py
"""
Rooms, lobbies and the glue between sockets and battle engines.

Commands for a battle are serialized by the room's lock; the events a command
produces are handed back in order for the socket layer to broadcast.
"""
import logging
import random
import time
from typing import Any, Dict, List, Optional, Tuple

from . import state
from .content.catalog import UnknownCatalogEntry, boss_template, game_mode, organization_info, profession_base_stats
from .engine.dice import rng_for
from .engine.engine import BattleEngine
from .engine.errors import BattleError
from .engine.models import Event

logger = logging.getLogger(__name__)

NOT_REGISTERED = "not-registered"
NOT_IN_ROOM = "not-in-room"
ROOM_FULL = "room-full"
NOT_HOST = "not-host"
ROOM_NOT_FOUND = "room-not-found"
NOT_ENOUGH_PLAYERS = "not-enough-players"
BATTLE_IN_PROGRESS = "battle-in-progress"
INVALID_REGISTRATION = "invalid-registration"
INVALID_MESSAGE = "invalid-message"

CHAT_MAX_LENGTH = 200


class RoomError(BattleError):
    """Lobby-level rejection, reported back to the sender as room:error."""


def now_ms() -> float:
    return time.monotonic() * 1000


# ---- players ----

def register(sid: str, payload: Dict[str, Any]) -> state.RaidPlayer:
    username = str(payload.get("username") or "").strip()
    profession = payload.get("profession")
    organization = payload.get("organization")
    if not username:
        raise RoomError(INVALID_REGISTRATION, "username is required")
    try:
        profession_base_stats(profession)
        organization_info(organization)
    except UnknownCatalogEntry as exc:
        raise RoomError(INVALID_REGISTRATION, str(exc))

    player = state.register_player(sid, username, profession, organization, payload.get("playerId"))
    logger.info("player %s (%s) registered as %s/%s", player.username, player.player_id, profession, organization)
    room = state.get_room_for_player(player.player_id)
    if room and room.engine is not None and not room.engine.ended:
        with room.lock:
            room.engine.reconnect(player.player_id)
    return player


def require_player(sid: str) -> state.RaidPlayer:
    player = state.player_for_sid(sid)
    if player is None:
        raise RoomError(NOT_REGISTERED, "register before joining a room")
    return player


def player_info(player: state.RaidPlayer) -> Dict[str, Any]:
    return {
        "playerId": player.player_id,
        "username": player.username,
        "profession": player.profession,
        "organization": player.organization,
    }


# ---- rooms ----

def room_summary(room: state.RaidRoom) -> Dict[str, Any]:
    return {
        "roomId": room.room_id,
        "name": room.name,
        "mode": room.mode,
        "bossId": room.boss_id,
        "hostId": room.host_id,
        "status": room.status,
        "maxPlayers": room.max_players,
        "players": [player_info(state.raid_players[pid]) for pid in room.players],
    }


def room_list() -> List[Dict[str, Any]]:
    return [room_summary(r) for r in state.raid_rooms.values() if r.status == "waiting"]


def create_room(sid: str, payload: Dict[str, Any]) -> state.RaidRoom:
    player = require_player(sid)
    if state.get_room_for_player(player.player_id):
        raise RoomError(BATTLE_IN_PROGRESS, "leave your current room first")
    mode_id = payload.get("mode") or "weekly_boss"
    try:
        mode = game_mode(mode_id)
    except UnknownCatalogEntry as exc:
        raise RoomError(ROOM_NOT_FOUND, str(exc))
    room = state.create_room(player.player_id, payload.get("name") or f"{player.username}'s raid", mode_id, mode)
    state.add_to_room(room, player.player_id)
    logger.info("room %s created by %s (%s)", room.room_id, player.player_id, mode_id)
    return room


def join_room(sid: str, room_id: str) -> Tuple[state.RaidPlayer, state.RaidRoom]:
    player = require_player(sid)
    room = state.raid_rooms.get(room_id)
    if room is None:
        raise RoomError(ROOM_NOT_FOUND, f"no room '{room_id}'")
    if player.player_id in room.players:
        return player, room
    if room.status != "waiting":
        raise RoomError(BATTLE_IN_PROGRESS, "that raid has already started")
    if len(room.players) >= room.max_players:
        raise RoomError(ROOM_FULL, "the room is full")
    same_org = [pid for pid in room.players if state.raid_players[pid].organization == player.organization]
    if len(same_org) >= room.players_per_organization:
        raise RoomError(ROOM_FULL, f"{player.organization} already has {len(same_org)} champions here")
    state.add_to_room(room, player.player_id)
    return player, room


def leave_room(sid: str) -> Optional[state.RaidRoom]:
    player = require_player(sid)
    room = state.get_room_for_player(player.player_id)
    if room is None:
        raise RoomError(NOT_IN_ROOM, "you are not in a room")
    if room.status == "in_battle":
        raise RoomError(BATTLE_IN_PROGRESS, "you cannot leave during a battle")
    state.remove_from_room(room, player.player_id)
    if not room.players:
        state.cleanup_room(room.room_id)
        logger.info("room %s closed", room.room_id)
    return room


# ---- battles ----

def battle_snapshot(room: state.RaidRoom) -> Dict[str, Any]:
    return {
        "room_id": room.room_id,
        "players": [
            {
                "player_id": p.player_id,
                "username": p.username,
                "profession": p.profession,
                "organization": p.organization,
            }
            for p in (state.raid_players[pid] for pid in room.players)
        ],
    }


def start_battle(sid: str, settings: Optional[Dict[str, Any]] = None, seed: Optional[int] = None,
                 skill_selector: Optional[str] = None) -> Tuple[state.RaidRoom, List[Event]]:
    player = require_player(sid)
    room = state.get_room_for_player(player.player_id)
    if room is None:
        raise RoomError(NOT_IN_ROOM, "you are not in a room")
    if room.host_id != player.player_id:
        raise RoomError(NOT_HOST, "only the host can start the raid")

    with room.lock:
        if room.status != "waiting":
            raise RoomError(BATTLE_IN_PROGRESS, "the raid has already started")
        if len(room.players) < room.min_players:
            raise RoomError(NOT_ENOUGH_PLAYERS, f"need at least {room.min_players} players")
        engine = BattleEngine(settings=settings, skill_selector=skill_selector)
        room.seed = seed if seed is not None else random.SystemRandom().randrange(2 ** 32)
        engine.init(battle_snapshot(room), boss_template(room.boss_id), rng_for(room.seed))
        room.engine = engine
        room.status = "in_battle"
        events = engine.start(now_ms())
        _after_command(room, events)
    logger.info("battle started in room %s with %d players (seed %s)", room.room_id, len(room.players), room.seed)
    return room, events


def _after_command(room: state.RaidRoom, events: List[Event]) -> None:
    for event in events:
        if event.name == "battleEnd":
            room.status = "finished"
            result = event.payload.get("result")
            if result == "aborted":
                logger.error("battle in room %s aborted: %s", room.room_id, event.payload.get("reason"))
            else:
                logger.info("battle in room %s ended: %s", room.room_id, result)


def release_room(room: state.RaidRoom) -> bool:
    """
    Drop a finished battle once its events are out: the engine goes away and
    the players are free to open or join another room.
    """
    with room.lock:
        if room.status != "finished" or room.engine is None:
            return False
        room.engine = None
        state.cleanup_room(room.room_id)
    logger.info("room %s released", room.room_id)
    return True


def battle_command(sid: str, command: str, **kwargs) -> Tuple[state.RaidRoom, List[Event]]:
    """Run one engine command for the sender under the room lock."""
    player = require_player(sid)
    room = state.get_room_for_player(player.player_id)
    if room is None or room.engine is None:
        raise RoomError(NOT_IN_ROOM, "you are not in a battle")
    with room.lock:
        if room.engine is None:
            raise RoomError(NOT_IN_ROOM, "the battle is over")
        method = getattr(room.engine, command)
        outcome = method(player.player_id, now_ms=now_ms(), **kwargs)
        events = outcome.events if hasattr(outcome, "events") else outcome
        _after_command(room, events)
    return room, events


def disconnect(sid: str) -> Tuple[Optional[state.RaidRoom], List[Event]]:
    player = state.unbind_sid(sid)
    if player is None:
        return None, []
    room = state.get_room_for_player(player.player_id)
    if room is None:
        return None, []
    if room.status == "waiting":
        state.remove_from_room(room, player.player_id)
        if not room.players:
            state.cleanup_room(room.room_id)
        return room, []
    if room.engine is None or room.engine.ended:
        return room, []
    with room.lock:
        if room.engine is None:
            return room, []
        events = room.engine.disconnect(player.player_id, now_ms=now_ms())
        _after_command(room, events)
    logger.info("player %s disconnected from room %s", player.player_id, room.room_id)
    return room, events


def tick_all(at: Optional[float] = None) -> List[Tuple[state.RaidRoom, List[Event]]]:
    moment = now_ms() if at is None else at
    out = []
    for room in list(state.raid_rooms.values()):
        if room.status != "in_battle" or room.engine is None:
            continue
        with room.lock:
            if room.engine is None:
                continue
            events = room.engine.tick(moment)
            _after_command(room, events)
        if events:
            out.append((room, events))
    return out


# ---- chat ----

def chat_message(sid: str, message: Any) -> Tuple[state.RaidRoom, Dict[str, Any]]:
    player = require_player(sid)
    room = state.get_room_for_player(player.player_id)
    if room is None:
        raise RoomError(NOT_IN_ROOM, "you are not in a room")
    text = str(message or "").strip()[:CHAT_MAX_LENGTH]
    if not text:
        raise RoomError(INVALID_MESSAGE, "message is empty")
    return room, {
        "senderId": player.player_id,
        "senderName": player.username,
        "message": text,
        "timestamp": int(time.time() * 1000),
        "isSystem": False,
    }


def system_message(text: str) -> Dict[str, Any]:
    return {
        "senderId": "system",
        "senderName": "System",
        "message": text,
        "timestamp": int(time.time() * 1000),
        "isSystem": True,
    }
