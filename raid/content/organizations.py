# raid/content/organizations.py
ORGANIZATIONS = {
    "iron_fortress": {
        "name": "Iron Fortress",
        "description": "Known for unbreakable fortifications; veteran warriors and artisans.",
        "color": "#708090",
    },
    "shadow_covenant": {
        "name": "Shadow Covenant",
        "description": "A secretive order of scouts and assassins.",
        "color": "#4B0082",
    },
    "flame_legion": {
        "name": "Flame Legion",
        "description": "A war band that worships strength and fearless charges.",
        "color": "#DC143C",
    },
    "frost_sanctuary": {
        "name": "Frost Sanctuary",
        "description": "Scholars guarding ancient arts in a hidden refuge.",
        "color": "#00CED1",
    },
}

GAME_MODES = {
    "mini_boss": {
        "name": "Mini Boss",
        "description": "A small party takes on a lesser beast.",
        "min_players": 2,
        "max_players": 4,
        "players_per_organization": 4,
        "boss_id": "boss_shadow_lurker",
    },
    "weekly_boss": {
        "name": "Weekly Boss",
        "description": "Four organizations send two champions each. Only the last organization standing wins.",
        "min_players": 8,
        "max_players": 8,
        "players_per_organization": 2,
        "boss_id": "boss_abyssal_titan",
    },
}
