# raid/content/professions.py
PROFESSIONS = {
    "knight": {
        "name": "Knight",
        "base_stats": {"max_health": 150, "attack": 20, "defense": 30, "speed": 10, "crit_rate": 5, "crit_damage": 1.5},
        "talent": {
            "type": "iron_bastion",
            "name": "Iron Bastion",
            "description": "Shields every ally for half of the knight's defense this round.",
            "cooldown": 3,
        },
    },
    "swordsman": {
        "name": "Swordsman",
        "base_stats": {"max_health": 120, "attack": 35, "defense": 20, "speed": 20, "crit_rate": 15, "crit_damage": 1.8},
        "talent": {
            "type": "sword_spirit",
            "name": "Sword Spirit",
            "description": "The next attack deals double damage.",
            "cooldown": 2,
        },
    },
    "sorcerer": {
        "name": "Sorcerer",
        "base_stats": {"max_health": 80, "attack": 45, "defense": 10, "speed": 15, "crit_rate": 20, "crit_damage": 2.0},
        "talent": {
            "type": "elemental_mastery",
            "name": "Elemental Mastery",
            "description": "Skill cards played this round are twice as effective.",
            "cooldown": 4,
        },
    },
    "gunner": {
        "name": "Gunner",
        "base_stats": {"max_health": 90, "attack": 40, "defense": 15, "speed": 25, "crit_rate": 25, "crit_damage": 1.7},
        "talent": {
            "type": "precision_shot",
            "name": "Precision Shot",
            "description": "The next three attacks are guaranteed critical hits.",
            "cooldown": 3,
        },
    },
    "assassin": {
        "name": "Assassin",
        "base_stats": {"max_health": 85, "attack": 50, "defense": 10, "speed": 30, "crit_rate": 30, "crit_damage": 2.2},
        "talent": {
            "type": "shadow_strike",
            "name": "Shadow Strike",
            "description": "The next attack deals triple damage.",
            "cooldown": 4,
        },
    },
}
