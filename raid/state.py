# raid/state.py
import threading
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from .engine.engine import BattleEngine


@dataclass
class RaidPlayer:
    player_id: str
    username: str
    profession: str
    organization: str
    sid: Optional[str] = None


@dataclass
class RaidRoom:
    room_id: str
    name: str
    host_id: str
    mode: str
    boss_id: str
    min_players: int
    max_players: int
    players_per_organization: int
    players: List[str] = field(default_factory=list)
    status: str = "waiting"                # waiting | in_battle | finished
    seed: Optional[int] = None
    engine: Optional[BattleEngine] = None
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


raid_players: Dict[str, RaidPlayer] = {}
raid_rooms: Dict[str, RaidRoom] = {}
sid_to_player: Dict[str, str] = {}
player_to_room: Dict[str, str] = {}


def register_player(sid: str, username: str, profession: str, organization: str,
                    player_id: Optional[str] = None) -> RaidPlayer:
    """New registration, or re-binding a known player id to a fresh sid."""
    player = raid_players.get(player_id) if player_id else None
    if player is None:
        player = RaidPlayer(
            player_id=player_id or f"p-{uuid.uuid4().hex[:8]}",
            username=username,
            profession=profession,
            organization=organization,
        )
        raid_players[player.player_id] = player
    if player.sid:
        sid_to_player.pop(player.sid, None)
    player.sid = sid
    sid_to_player[sid] = player.player_id
    return player


def player_for_sid(sid: str) -> Optional[RaidPlayer]:
    pid = sid_to_player.get(sid)
    if not pid:
        return None
    return raid_players.get(pid)


def unbind_sid(sid: str) -> Optional[RaidPlayer]:
    player = player_for_sid(sid)
    sid_to_player.pop(sid, None)
    if player:
        player.sid = None
    return player


def create_room(host_id: str, name: str, mode_id: str, mode: Mapping) -> RaidRoom:
    room = RaidRoom(
        room_id=f"raid-{uuid.uuid4().hex[:8]}",
        name=name,
        host_id=host_id,
        mode=mode_id,
        boss_id=mode["boss_id"],
        min_players=mode["min_players"],
        max_players=mode["max_players"],
        players_per_organization=mode["players_per_organization"],
    )
    raid_rooms[room.room_id] = room
    return room


def add_to_room(room: RaidRoom, player_id: str) -> None:
    if player_id not in room.players:
        room.players.append(player_id)
    player_to_room[player_id] = room.room_id


def remove_from_room(room: RaidRoom, player_id: str) -> None:
    if player_id in room.players:
        room.players.remove(player_id)
    player_to_room.pop(player_id, None)
    if room.host_id == player_id and room.players:
        room.host_id = room.players[0]


def get_room_for_player(player_id: str) -> Optional[RaidRoom]:
    room_id = player_to_room.get(player_id)
    if not room_id:
        return None
    return raid_rooms.get(room_id)


def cleanup_room(room_id: str) -> None:
    room = raid_rooms.pop(room_id, None)
    if not room:
        return
    for pid in room.players:
        player_to_room.pop(pid, None)


def reset() -> None:
    raid_players.clear()
    raid_rooms.clear()
    sid_to_player.clear()
    player_to_room.clear()
