# raid/content/cards.py
CARDS = {
    # Common
    "strike": {
        "name": "Strike",
        "type": "attack",
        "rarity": "common",
        "cost": 1,
        "effects": [{"type": "damage", "target": "boss", "value": 10}],
        "description": "Deal 10 damage to the boss.",
    },
    "guard": {
        "name": "Guard",
        "type": "defense",
        "rarity": "common",
        "cost": 1,
        "effects": [{"type": "shield", "target": "self", "value": 15, "duration": 1}],
        "description": "Gain a 15 point shield this round.",
    },
    "first_aid": {
        "name": "First Aid",
        "type": "heal",
        "rarity": "common",
        "cost": 1,
        "effects": [{"type": "heal", "target": "self", "value": 20}],
        "description": "Restore 20 health.",
    },
    "battle_cry": {
        "name": "Battle Cry",
        "type": "buff",
        "rarity": "common",
        "cost": 1,
        "effects": [{"type": "buff", "kind": "attack", "target": "self", "value": 10, "duration": 2}],
        "description": "Gain 10 attack for two rounds.",
    },
    "quick_draw": {
        "name": "Quick Draw",
        "type": "skill",
        "rarity": "common",
        "cost": 0,
        "effects": [{"type": "draw", "target": "self", "value": 2}],
        "description": "Draw two cards.",
    },
    "venom_flask": {
        "name": "Venom Flask",
        "type": "skill",
        "rarity": "common",
        "cost": 1,
        "effects": [{"type": "debuff", "kind": "poison", "target": "boss", "value": 8, "duration": 3, "stackable": True}],
        "description": "Poison the boss for 8 damage per round over three rounds.",
    },
    "war_horn": {
        "name": "War Horn",
        "type": "skill",
        "rarity": "rare",
        "cost": 1,
        "effects": [{"type": "special", "target": "organization", "value": 0, "handler": "cleanse"}],
        "description": "Remove every debuff from your organization.",
    },

    # Redirect (scapegoat) cards
    "scapegoat_iron_fortress": {
        "name": "Scapegoat: Iron Fortress",
        "type": "redirect",
        "rarity": "rare",
        "cost": 1,
        "redirect_target": "iron_fortress",
        "effects": [{"type": "redirect", "target": "organization", "value": 0}],
        "description": "The boss's next ordinary attack targets the Iron Fortress.",
    },
    "scapegoat_shadow_covenant": {
        "name": "Scapegoat: Shadow Covenant",
        "type": "redirect",
        "rarity": "rare",
        "cost": 1,
        "redirect_target": "shadow_covenant",
        "effects": [{"type": "redirect", "target": "organization", "value": 0}],
        "description": "The boss's next ordinary attack targets the Shadow Covenant.",
    },
    "scapegoat_flame_legion": {
        "name": "Scapegoat: Flame Legion",
        "type": "redirect",
        "rarity": "rare",
        "cost": 1,
        "redirect_target": "flame_legion",
        "effects": [{"type": "redirect", "target": "organization", "value": 0}],
        "description": "The boss's next ordinary attack targets the Flame Legion.",
    },
    "scapegoat_frost_sanctuary": {
        "name": "Scapegoat: Frost Sanctuary",
        "type": "redirect",
        "rarity": "rare",
        "cost": 1,
        "redirect_target": "frost_sanctuary",
        "effects": [{"type": "redirect", "target": "organization", "value": 0}],
        "description": "The boss's next ordinary attack targets the Frost Sanctuary.",
    },
    "false_trail": {
        "name": "False Trail",
        "type": "redirect",
        "rarity": "epic",
        "cost": 2,
        "effects": [{"type": "redirect", "target": "organization", "value": 0}],
        "description": "Choose the organization the boss attacks next.",
    },

    # Knight
    "shield_bash": {
        "name": "Shield Bash",
        "type": "attack",
        "rarity": "common",
        "cost": 1,
        "profession": "knight",
        "effects": [
            {"type": "damage", "target": "boss", "value": 8},
            {"type": "shield", "target": "self", "value": 5, "duration": 1},
        ],
        "description": "Deal 8 damage and gain a 5 point shield.",
    },
    "holy_guard": {
        "name": "Holy Guard",
        "type": "skill",
        "rarity": "legendary",
        "cost": 3,
        "profession": "knight",
        "effects": [
            {"type": "shield", "target": "self", "value": 30, "duration": 1},
            {"type": "shield", "target": "organization", "value": 15, "duration": 1},
        ],
        "description": "Gain a 30 point shield; your organization gains 15.",
    },

    # Swordsman
    "slash": {
        "name": "Slash",
        "type": "attack",
        "rarity": "common",
        "cost": 1,
        "profession": "swordsman",
        "effects": [{"type": "damage", "target": "boss", "value": 12}],
        "description": "Deal 12 damage to the boss.",
    },
    "blade_dance": {
        "name": "Blade Dance",
        "type": "attack",
        "rarity": "rare",
        "cost": 2,
        "profession": "swordsman",
        "effects": [
            {"type": "damage", "target": "boss", "value": 8},
            {"type": "buff", "kind": "speed", "target": "self", "value": 5, "duration": 2},
        ],
        "description": "Deal 8 damage and gain 5 speed for two rounds.",
    },

    # Sorcerer
    "fireball": {
        "name": "Fireball",
        "type": "attack",
        "rarity": "common",
        "cost": 1,
        "profession": "sorcerer",
        "effects": [
            {
                "type": "damage",
                "target": "boss",
                "value": 15,
                "additional_effects": [
                    {"type": "debuff", "kind": "burn", "target": "boss", "value": 4, "duration": 2},
                ],
            },
        ],
        "description": "Deal 15 damage and burn the boss for 4 per round.",
    },
    "frost_armor": {
        "name": "Frost Armor",
        "type": "skill",
        "rarity": "rare",
        "cost": 2,
        "profession": "sorcerer",
        "effects": [
            {"type": "buff", "kind": "defense", "target": "all_allies", "value": 10, "duration": 2},
            {"type": "debuff", "kind": "weaken", "target": "boss", "value": 20, "duration": 1},
        ],
        "description": "Allies gain 10 defense; the boss deals 20% less damage next round.",
    },
    "arcane_mend": {
        "name": "Arcane Mend",
        "type": "heal",
        "rarity": "rare",
        "cost": 2,
        "profession": "sorcerer",
        "effects": [{"type": "heal", "target": "all_allies", "value": 10}],
        "description": "Restore 10 health to every ally.",
    },

    # Gunner
    "snipe": {
        "name": "Snipe",
        "type": "attack",
        "rarity": "common",
        "cost": 1,
        "profession": "gunner",
        "effects": [{"type": "damage", "target": "boss", "value": 18}],
        "description": "Deal 18 damage to the boss.",
    },
    "rapid_fire": {
        "name": "Rapid Fire",
        "type": "attack",
        "rarity": "rare",
        "cost": 2,
        "profession": "gunner",
        "effects": [
            {
                "type": "damage",
                "target": "boss",
                "value": 6,
                "additional_effects": [{"type": "damage", "target": "boss", "value": 6}],
            },
        ],
        "description": "Fire twice for 6 damage each.",
    },

    # Assassin
    "backstab": {
        "name": "Backstab",
        "type": "attack",
        "rarity": "common",
        "cost": 1,
        "profession": "assassin",
        "effects": [{"type": "damage", "target": "boss", "value": 20}],
        "description": "Deal 20 damage to the boss.",
    },
    "poison_blade": {
        "name": "Poison Blade",
        "type": "attack",
        "rarity": "rare",
        "cost": 2,
        "profession": "assassin",
        "effects": [
            {"type": "damage", "target": "boss", "value": 6},
            {"type": "debuff", "kind": "poison", "target": "boss", "value": 6, "duration": 3, "stackable": True},
        ],
        "description": "Deal 6 damage and poison the boss for 6 per round.",
    },
}

# Copies of each card a fresh deck starts with.
STARTER_DECK = {
    "common": {"strike": 3, "guard": 2, "first_aid": 1, "battle_cry": 1, "quick_draw": 1, "venom_flask": 1},
    "redirect": {"false_trail": 1},
    "profession": 2,
}
