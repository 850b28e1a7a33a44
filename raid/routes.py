# raid/routes.py
from dataclasses import asdict

from flask import Blueprint, jsonify

from . import coordinator
from .content.bosses import BOSSES
from .content.catalog import all_cards
from .content.organizations import GAME_MODES, ORGANIZATIONS
from .content.professions import PROFESSIONS

raid_bp = Blueprint("raid", __name__)


@raid_bp.route("/raid/catalog")
def raid_catalog():
    return jsonify({
        "cards": [asdict(card) for card in all_cards()],
        "professions": PROFESSIONS,
        "organizations": ORGANIZATIONS,
        "bosses": BOSSES,
        "gameModes": GAME_MODES,
    })


@raid_bp.route("/raid/rooms")
def raid_rooms():
    return jsonify(coordinator.room_list())
