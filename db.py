import sqlite3
from pathlib import Path

import config

DB_PATH = config.db_path
SCHEMA_PATH = Path(__file__).parent / "schema.sql"

ONBOARDING_KEY = "onboarding_completed"


def get_conn():
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


def init_db():
    conn = get_conn()
    conn.executescript(SCHEMA_PATH.read_text())
    conn.commit()
    conn.close()


def add_score(game, value, created_at):
    conn = get_conn()
    conn.execute(
        "INSERT INTO score (game, value, created_at) VALUES (?,?,?)",
        (game, int(value), created_at)
    )
    conn.commit()
    conn.close()


def get_scores():
    """All scores, oldest first."""
    conn = get_conn()
    rows = conn.execute(
        "SELECT id, game, value, created_at FROM score ORDER BY id ASC"
    ).fetchall()
    conn.close()
    return rows


def add_reward(reward, created_at):
    conn = get_conn()
    conn.execute(
        "INSERT OR IGNORE INTO reward (reward, created_at) VALUES (?,?)",
        (reward, created_at)
    )
    conn.commit()
    conn.close()


def get_rewards():
    conn = get_conn()
    rows = conn.execute("SELECT reward, created_at FROM reward").fetchall()
    conn.close()
    return rows


def clear_progress():
    """Delete scores and rewards in one transaction."""
    conn = get_conn()
    try:
        with conn:
            conn.execute("DELETE FROM score")
            conn.execute("DELETE FROM reward")
    finally:
        conn.close()


def get_flag(key):
    conn = get_conn()
    row = conn.execute("SELECT value FROM app_state WHERE key=?", (key,)).fetchone()
    conn.close()
    return row is not None and row["value"] == "1"


def set_flag(key, value=True):
    conn = get_conn()
    conn.execute(
        "INSERT OR REPLACE INTO app_state (key, value) VALUES (?,?)",
        (key, "1" if value else "0")
    )
    conn.commit()
    conn.close()
