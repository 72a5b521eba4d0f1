# games_config.py
from models import GameId, RewardId

GAMES = [
    {
        "id": GameId.MEMORY,
        "name": "Memory Matrix",
        "description": "Remember and reproduce a grid of glowing tiles",
        "icon": "grid",
        "reward": RewardId.CRYSTAL_OF_MEMORY,
        "points_per_level": 10,
        "max_level": 10,
        # 4x4 grid, sequence of 2 + level tiles, one tile per second
        "reveal": {"base": 2, "cap": 16, "interval": 1.0},
        "timer": None,
        "rounds_per_level": 1,
        "round_bonus": 0,
        "fail_ends_first_level": False,
    },
    {
        "id": GameId.FOCUS,
        "name": "Focus Flash",
        "description": "Tap the correct shape or number before time runs out",
        "icon": "eye",
        "reward": RewardId.FLAME_OF_FOCUS,
        "points_per_level": 15,
        "max_level": 15,
        "reveal": None,
        "timer": {"start": 5.0, "step": 0.2, "floor": 2.0},
        "rounds_per_level": 1,
        "round_bonus": 0,
        "fail_ends_first_level": True,
    },
    {
        "id": GameId.MATH,
        "name": "Quick Math",
        "description": "Solve rapid-fire simple equations under time pressure",
        "icon": "function",
        "reward": RewardId.STAR_OF_SPEED,
        "points_per_level": 20,
        "max_level": 20,
        "reveal": None,
        "timer": {"start": 6.0, "step": 0.2, "floor": 3.0},
        "rounds_per_level": 5,
        # each correct question also adds level x 5 to the on-screen score
        "round_bonus": 5,
        "fail_ends_first_level": False,
    },
    {
        "id": GameId.LOGIC,
        "name": "Logic Paths",
        "description": "Choose the correct sequence to reach the goal",
        "icon": "arrow.triangle.branch",
        "reward": RewardId.BADGE_OF_LOGIC,
        "points_per_level": 20,
        "max_level": 12,
        "reveal": None,
        "timer": None,
        "rounds_per_level": 1,
        "round_bonus": 0,
        "fail_ends_first_level": False,
    },
]

REWARDS = [
    {"id": RewardId.CRYSTAL_OF_MEMORY, "name": "Crystal of Memory", "icon": "diamond", "color": "blue"},
    {"id": RewardId.FLAME_OF_FOCUS, "name": "Flame of Focus", "icon": "flame", "color": "crimson_pink"},
    {"id": RewardId.BADGE_OF_LOGIC, "name": "Badge of Logic", "icon": "shield", "color": "golden_orange"},
    {"id": RewardId.STAR_OF_SPEED, "name": "Star of Speed", "icon": "star", "color": "neon_green"},
]

_GAMES_BY_ID = {g["id"]: g for g in GAMES}


def get_game(game_id):
    """Look up a game entry; raises ValueError for unknown ids."""
    return _GAMES_BY_ID[GameId(game_id)]


def level_score(game_id, level: int) -> int:
    game = get_game(game_id)
    if not 1 <= level <= game["max_level"]:
        raise ValueError(f"level {level} out of range for {game['id'].value}")
    return level * game["points_per_level"]


def answer_seconds(game_id, level: int):
    """Time allowed per round at this level, or None for untimed games."""
    timer = get_game(game_id)["timer"]
    if timer is None:
        return None
    return max(timer["floor"], timer["start"] - level * timer["step"])


def reveal_length(game_id, level: int) -> int:
    reveal = get_game(game_id)["reveal"]
    if reveal is None:
        return 0
    return min(reveal["base"] + level, reveal["cap"])


def catalog():
    """JSON-ready view of the game and reward catalog."""
    return {
        "games": [
            {
                "id": g["id"].value,
                "name": g["name"],
                "description": g["description"],
                "icon": g["icon"],
                "reward": g["reward"].value,
                "max_level": g["max_level"],
            }
            for g in GAMES
        ],
        "rewards": [
            {"id": r["id"].value, "name": r["name"], "icon": r["icon"], "color": r["color"]}
            for r in REWARDS
        ],
    }
