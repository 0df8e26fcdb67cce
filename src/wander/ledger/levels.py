"""Level computation from total experience.

Every 100 exp is one level; titles are attached at milestone levels.
"""

from __future__ import annotations

EXP_PER_LEVEL = 100

LEVEL_TITLES: list[dict] = [
    {"level": 1, "title": "Newcomer"},
    {"level": 2, "title": "Wanderer"},
    {"level": 5, "title": "Explorer"},
    {"level": 10, "title": "Pathfinder"},
    {"level": 20, "title": "Local Legend"},
    {"level": 50, "title": "Cartographer"},
]


def compute_level(total_exp: int) -> dict:
    """Compute level info from total exp."""
    total_exp = max(0, total_exp)
    level = total_exp // EXP_PER_LEVEL + 1

    title = LEVEL_TITLES[0]["title"]
    for entry in LEVEL_TITLES:
        if level >= entry["level"]:
            title = entry["title"]

    return {
        "level": level,
        "title": title,
        "exp_into_level": total_exp % EXP_PER_LEVEL,
        "exp_for_level": EXP_PER_LEVEL,
    }
