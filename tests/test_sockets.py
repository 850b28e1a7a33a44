import pytest

from raid import coordinator, state
from raid.app import create_app


@pytest.fixture
def app():
    state.reset()
    app = create_app({"TESTING": True, "RAID_TICK_INTERVAL": 0})
    yield app
    state.reset()


def _client(app):
    return app.extensions["socketio"].test_client(app)


def _received(client, name):
    return [message["args"][0] for message in client.get_received() if message["name"] == name]


def _register(client, username, profession, organization):
    client.emit("player:register", {"username": username, "profession": profession, "organization": organization})
    info = _received(client, "player:info")
    assert info, f"{username} was not registered"
    return info[0]


def test_connect_and_register(app):
    client = _client(app)
    assert _received(client, "connection:success")

    client.emit("player:register", {"username": "", "profession": "knight", "organization": "iron_fortress"})
    assert _received(client, "room:error")[0]["code"] == "invalid-registration"

    info = _register(client, "Ada", "knight", "iron_fortress")
    assert info["profession"] == "knight" and info["playerId"]


def test_lobby_requires_registration(app):
    client = _client(app)
    client.get_received()
    client.emit("lobby:createRoom", {"mode": "mini_boss"})
    assert _received(client, "room:error")[0]["code"] == "not-registered"


def test_room_to_battle_round_trip(app):
    host = _client(app)
    guest = _client(app)
    host_info = _register(host, "Ada", "knight", "iron_fortress")
    guest_info = _register(guest, "Bo", "assassin", "flame_legion")

    host.emit("lobby:createRoom", {"mode": "mini_boss", "name": "practice"})
    room = _received(host, "room:joined")[0]
    assert room["hostId"] == host_info["playerId"]

    guest.emit("lobby:getRooms")
    listed = _received(guest, "lobby:roomList")[0]
    assert [r["roomId"] for r in listed] == [room["roomId"]]

    guest.emit("room:join", {"roomId": room["roomId"]})
    assert _received(guest, "room:joined")[0]["roomId"] == room["roomId"]
    assert _received(host, "room:playerJoined")[0]["playerId"] == guest_info["playerId"]

    guest.emit("room:start", {})
    assert _received(guest, "room:error")[0]["code"] == "not-host"

    host.emit("room:start", {"seed": 5})
    host_events = host.get_received()
    guest_events = guest.get_received()
    assert any(m["name"] == "battle:battleStart" for m in guest_events)
    host_draws = [m["args"][0] for m in host_events if m["name"] == "battle:drawCards"]
    assert [d["playerId"] for d in host_draws] == [host_info["playerId"]], "hands are private"

    turn = [m["args"][0] for m in host_events if m["name"] == "battle:turnStart"][0]
    assert turn["actorId"] == guest_info["playerId"], "the faster assassin acts first"

    host.emit("battle:endTurn")
    assert _received(host, "battle:error")[0]["code"] == "not-your-turn"
    assert not _received(guest, "battle:error")

    guest.emit("battle:endTurn")
    ended = _received(host, "battle:turnEnd")
    assert ended[0] == {"actorId": guest_info["playerId"], "reason": "manual"}

    live = state.raid_rooms[room["roomId"]]
    assert live.status == "in_battle" and live.seed == 5


def test_rooms_fill_up_per_organization(app):
    clients = [_client(app) for _ in range(3)]
    _register(clients[0], "A", "knight", "iron_fortress")
    _register(clients[1], "B", "knight", "iron_fortress")
    _register(clients[2], "C", "knight", "iron_fortress")

    clients[0].emit("lobby:createRoom", {"mode": "weekly_boss"})
    room_id = _received(clients[0], "room:joined")[0]["roomId"]
    clients[1].emit("room:join", {"roomId": room_id})
    assert _received(clients[1], "room:joined")
    clients[2].emit("room:join", {"roomId": room_id})
    assert _received(clients[2], "room:error")[0]["code"] == "room-full"

    clients[0].emit("room:start")
    assert _received(clients[0], "room:error")[0]["code"] == "not-enough-players"

    clients[2].emit("room:join", {"roomId": "raid-missing"})
    assert _received(clients[2], "room:error")[0]["code"] == "room-not-found"


def test_disconnect_mid_battle_skips_the_turn(app):
    host = _client(app)
    guest = _client(app)
    _register(host, "Ada", "knight", "iron_fortress")
    guest_info = _register(guest, "Bo", "assassin", "flame_legion")
    host.emit("lobby:createRoom", {"mode": "mini_boss"})
    room_id = _received(host, "room:joined")[0]["roomId"]
    guest.emit("room:join", {"roomId": room_id})
    host.emit("room:start", {"seed": 1})
    host.get_received()

    guest.disconnect()
    ended = _received(host, "battle:turnEnd")
    assert {"actorId": guest_info["playerId"], "reason": "disconnected"} in ended
    assert not state.raid_players[guest_info["playerId"]].sid


def test_tick_all_times_out_stale_turns(app):
    host = _client(app)
    guest = _client(app)
    _register(host, "Ada", "knight", "iron_fortress")
    _register(guest, "Bo", "assassin", "flame_legion")
    host.emit("lobby:createRoom", {"mode": "mini_boss"})
    room_id = _received(host, "room:joined")[0]["roomId"]
    guest.emit("room:join", {"roomId": room_id})
    host.emit("room:start", {"seed": 1})

    ticked = coordinator.tick_all(coordinator.now_ms() + 10 ** 7)
    assert ticked and ticked[0][0].room_id == room_id
    assert ticked[0][1][0].name == "turnEnd"
    assert ticked[0][1][0].payload["reason"] == "timeout"


def test_http_catalog_and_rooms(app):
    http = app.test_client()
    catalog = http.get("/raid/catalog").get_json()
    assert {"cards", "professions", "organizations", "bosses", "gameModes"} <= set(catalog)
    assert any(card["id"] == "strike" for card in catalog["cards"])
    assert http.get("/raid/rooms").get_json() == []


def _battle_pair(app, guest_organization, payload=None):
    host = _client(app)
    guest = _client(app)
    host_info = _register(host, "Ada", "knight", "iron_fortress")
    guest_info = _register(guest, "Bo", "knight", guest_organization)
    host.emit("lobby:createRoom", {"mode": "mini_boss"})
    room_id = _received(host, "room:joined")[0]["roomId"]
    guest.emit("room:join", {"roomId": room_id})
    host.emit("room:start", payload or {"seed": 3})
    host.get_received()
    guest.get_received()
    clients = {host_info["playerId"]: host, guest_info["playerId"]: guest}
    return clients, room_id


def _finishing_blow(clients, room_id):
    """The current actor hits a boss left on 1 health with a Strike."""
    battle = state.raid_rooms[room_id].engine.battle
    battle.boss.current_health = 1
    actor = battle.current_actor_id()
    instance = battle.players[actor].hand_cards[0]
    instance.card_id = "strike"
    clients[actor].emit("battle:playCard", {"instanceId": instance.instance_id})
    return clients[actor]


def test_unknown_skill_selector_gets_a_reply(app):
    host = _client(app)
    guest = _client(app)
    _register(host, "Ada", "knight", "iron_fortress")
    _register(guest, "Bo", "knight", "flame_legion")
    host.emit("lobby:createRoom", {"mode": "mini_boss"})
    room_id = _received(host, "room:joined")[0]["roomId"]
    guest.emit("room:join", {"roomId": room_id})

    host.emit("room:start", {"seed": 1, "skillSelector": "bogus"})
    assert _received(host, "room:error")[0]["code"] == "unknown-selector"
    room = state.raid_rooms[room_id]
    assert room.status == "waiting" and room.engine is None

    host.emit("room:start", {"seed": 1, "skillSelector": "rotation"})
    assert state.raid_rooms[room_id].status == "in_battle"


def test_finished_battle_frees_its_players(app):
    clients, room_id = _battle_pair(app, "iron_fortress")
    actor = _finishing_blow(clients, room_id)

    end = _received(actor, "battle:battleEnd")
    assert end and end[0]["result"] == "victory"
    assert room_id not in state.raid_rooms
    assert not state.player_to_room

    actor.emit("battle:endTurn")
    assert _received(actor, "battle:error")[0]["code"] == "not-in-room"
    actor.emit("lobby:createRoom", {"mode": "mini_boss"})
    assert _received(actor, "room:joined")[0]["roomId"] != room_id


def test_room_chat(app):
    lonely = _client(app)
    _register(lonely, "Cy", "gunner", "frost_sanctuary")
    lonely.emit("chat:send", {"message": "anyone?"})
    assert _received(lonely, "room:error")[0]["code"] == "not-in-room"

    clients, room_id = _battle_pair(app, "flame_legion")
    host, guest = clients.values()
    guest_id = [pid for pid, c in clients.items() if c is guest][0]

    guest.emit("chat:send", {"message": "  focus the boss  "})
    line = _received(host, "chat:message")[0]
    assert line["senderId"] == guest_id and line["senderName"] == "Bo"
    assert line["message"] == "focus the boss" and line["isSystem"] is False
    assert not _received(lonely, "chat:message"), "chat stays inside the room"

    guest.emit("chat:send", {"message": "   "})
    assert _received(guest, "room:error")[0]["code"] == "invalid-message"


def test_boss_revival_is_announced_in_chat(app):
    clients, room_id = _battle_pair(app, "flame_legion")
    actor = _finishing_blow(clients, room_id)

    events = actor.get_received()
    revive = [m["args"][0] for m in events if m["name"] == "battle:bossRevive"]
    system = [m["args"][0] for m in events if m["name"] == "chat:message"]
    assert revive and revive[0]["reviveCount"] == 1
    assert system and system[0]["isSystem"] is True and system[0]["senderId"] == "system"
    assert room_id in state.raid_rooms, "the battle goes on after a revival"
