# raid/sockets.py
import logging

from flask import request
from flask_socketio import emit, join_room, leave_room

from . import coordinator, state
from .engine.errors import BattleError

logger = logging.getLogger(__name__)

_ticker_started = False


def broadcast_events(socketio, room, events):
    """battle:<name> to the whole room; a hand refill only goes to its owner."""
    for event in events:
        if event.name == "drawCards":
            owner = state.raid_players.get(event.payload.get("playerId"))
            if owner and owner.sid:
                socketio.emit("battle:drawCards", event.payload, to=owner.sid)
            continue
        socketio.emit(f"battle:{event.name}", event.payload, to=room.room_id)
        if event.name == "bossRevive":
            line = "The boss rises again with {newHealth} health and {newAttack} attack (revival {reviveCount}).".format(**event.payload)
            socketio.emit("chat:message", coordinator.system_message(line), to=room.room_id)


def publish(socketio, room, events):
    """Broadcast a batch; a finished battle is dropped once its battleEnd is out."""
    broadcast_events(socketio, room, events)
    if coordinator.release_room(room):
        socketio.close_room(room.room_id)


def register_raid_socket_handlers(socketio, settings=None, tick_interval=1.0):
    def start_ticker():
        global _ticker_started
        if _ticker_started or not tick_interval:
            return
        _ticker_started = True

        def loop():
            while True:
                socketio.sleep(tick_interval)
                for room, events in coordinator.tick_all():
                    publish(socketio, room, events)

        socketio.start_background_task(loop)

    @socketio.on("connect")
    def raid_connect(auth=None):
        emit("connection:success", {"sid": request.sid})

    @socketio.on("player:register")
    def raid_register(payload):
        try:
            player = coordinator.register(request.sid, payload if isinstance(payload, dict) else {})
        except BattleError as exc:
            emit("room:error", exc.to_dict())
            return
        room = state.get_room_for_player(player.player_id)
        if room:
            join_room(room.room_id)
        emit("player:info", coordinator.player_info(player))

    @socketio.on("lobby:getRooms")
    def raid_get_rooms():
        emit("lobby:roomList", coordinator.room_list())

    @socketio.on("lobby:createRoom")
    def raid_create_room(payload=None):
        try:
            room = coordinator.create_room(request.sid, payload if isinstance(payload, dict) else {})
        except BattleError as exc:
            emit("room:error", exc.to_dict())
            return
        join_room(room.room_id)
        emit("room:joined", coordinator.room_summary(room))
        socketio.emit("lobby:roomList", coordinator.room_list())

    @socketio.on("room:join")
    def raid_join_room(payload):
        room_id = payload.get("roomId") if isinstance(payload, dict) else payload
        try:
            player, room = coordinator.join_room(request.sid, room_id)
        except BattleError as exc:
            emit("room:error", exc.to_dict())
            return
        join_room(room.room_id)
        emit("room:joined", coordinator.room_summary(room))
        socketio.emit("room:playerJoined", coordinator.player_info(player), to=room.room_id)

    @socketio.on("room:leave")
    def raid_leave_room(payload=None):
        player = state.player_for_sid(request.sid)
        try:
            room = coordinator.leave_room(request.sid)
        except BattleError as exc:
            emit("room:error", exc.to_dict())
            return
        leave_room(room.room_id)
        socketio.emit("room:playerLeft", {"roomId": room.room_id, "playerId": player.player_id}, to=room.room_id)

    @socketio.on("room:start")
    def raid_start(payload=None):
        payload = payload if isinstance(payload, dict) else {}
        try:
            room, events = coordinator.start_battle(
                request.sid,
                settings=settings,
                seed=payload.get("seed"),
                skill_selector=payload.get("skillSelector"),
            )
        except BattleError as exc:
            emit("room:error", exc.to_dict())
            return
        publish(socketio, room, events)
        start_ticker()

    def battle_command(command, **kwargs):
        try:
            room, events = coordinator.battle_command(request.sid, command, **kwargs)
        except BattleError as exc:
            logger.info("%s refused for %s: %s", command, request.sid, exc.code)
            emit("battle:error", exc.to_dict())
            return
        publish(socketio, room, events)

    @socketio.on("battle:playCard")
    def raid_play_card(payload):
        payload = payload if isinstance(payload, dict) else {}
        battle_command(
            "play_card",
            instance_id=payload.get("instanceId"),
            target_org=payload.get("targetOrganization"),
            target_player=payload.get("targetPlayerId"),
        )

    @socketio.on("battle:endTurn")
    def raid_end_turn(payload=None):
        battle_command("end_turn")

    @socketio.on("battle:useTalent")
    def raid_use_talent(payload=None):
        battle_command("use_talent")

    @socketio.on("chat:send")
    def raid_chat(payload=None):
        message = payload.get("message") if isinstance(payload, dict) else payload
        try:
            room, line = coordinator.chat_message(request.sid, message)
        except BattleError as exc:
            emit("room:error", exc.to_dict())
            return
        socketio.emit("chat:message", line, to=room.room_id)

    @socketio.on("disconnect")
    def raid_disconnect(*args):
        room, events = coordinator.disconnect(request.sid)
        if room is None:
            return
        leave_room(room.room_id)
        if events:
            publish(socketio, room, events)
