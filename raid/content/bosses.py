# raid/content/bosses.py
BOSSES = {
    "boss_abyssal_titan": {
        "id": "boss_abyssal_titan",
        "name": "Abyssal Titan",
        "kind": "weekly",
        "description": "A colossal beast that crawled out of the abyss to ruin the surface.",
        "max_health": 3000,
        "base_attack": 40,
        "max_rage": 150,
        "rage_per_damage": 0.3,
        "skills": [
            {
                "id": "skill_titan_slam",
                "name": "Titan Slam",
                "description": "Crushes every member of one organization.",
                "damage": 35,
                "target": "organization",
                "cooldown": 0,
            },
            {
                "id": "skill_earthquake",
                "name": "Earthquake",
                "description": "Shakes the ground under every player.",
                "damage": 25,
                "target": "all",
                "cooldown": 4,
            },
            {
                "id": "skill_focus_crush",
                "name": "Focus Crush",
                "description": "Locks onto a single target for a lethal blow.",
                "damage": 80,
                "target": "single",
                "cooldown": 5,
            },
        ],
        "rage_skill": {
            "id": "skill_apocalypse",
            "name": "Apocalypse",
            "description": "Unleashes ruinous energy upon everyone.",
            "damage": 100,
            "target": "all",
        },
    },
    "boss_shadow_lurker": {
        "id": "boss_shadow_lurker",
        "name": "Shadow Lurker",
        "kind": "mini",
        "description": "A beast roaming the deep tunnels, ambushing stragglers.",
        "max_health": 500,
        "base_attack": 25,
        "max_rage": 100,
        "rage_per_damage": 0.5,
        "skills": [
            {
                "id": "skill_shadow_claw",
                "name": "Shadow Claw",
                "description": "Rakes a single target.",
                "damage": 30,
                "target": "single",
                "cooldown": 0,
            },
            {
                "id": "skill_dark_screech",
                "name": "Dark Screech",
                "description": "A piercing scream that hits every player.",
                "damage": 15,
                "target": "all",
                "cooldown": 3,
            },
        ],
        "rage_skill": {
            "id": "skill_shadow_storm",
            "name": "Shadow Storm",
            "description": "A storm of shadow energy hits everyone.",
            "damage": 50,
            "target": "all",
        },
    },
}
