"""
Fitness Database Schema
=======================
Idempotent DDL for the tables the handlers read and write.

Tables:
  - users             (profile + streak counters)
  - exercises         (read-only catalog)
  - workout_sessions  (synced from clients)
  - workout_sets      (synced from clients)
  - sleep_entries     (synced from clients)
"""
import logging

import psycopg2

from settings import get_conn_str

logger = logging.getLogger("fitness_schema")

FITNESS_SCHEMA_SQL = """
CREATE EXTENSION IF NOT EXISTS pgcrypto;

CREATE TABLE IF NOT EXISTS users (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    name TEXT,
    fitness_goal TEXT,
    current_streak INTEGER NOT NULL DEFAULT 0 CHECK (current_streak >= 0),
    longest_streak INTEGER NOT NULL DEFAULT 0 CHECK (longest_streak >= 0),
    created_at TIMESTAMPTZ DEFAULT now(),
    updated_at TIMESTAMPTZ DEFAULT now()
);

CREATE TABLE IF NOT EXISTS exercises (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    name TEXT NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS workout_sessions (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    start_time TIMESTAMPTZ NOT NULL,
    end_time TIMESTAMPTZ,
    notes TEXT,
    created_at TIMESTAMPTZ DEFAULT now(),
    updated_at TIMESTAMPTZ DEFAULT now()
);

CREATE INDEX IF NOT EXISTS idx_workout_sessions_user_start
    ON workout_sessions(user_id, start_time DESC);

CREATE TABLE IF NOT EXISTS workout_sets (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    session_id UUID NOT NULL REFERENCES workout_sessions(id) ON DELETE CASCADE,
    exercise_id UUID REFERENCES exercises(id),
    weight NUMERIC(6,2),
    reps INTEGER,
    rpe NUMERIC(3,1) CHECK (rpe IS NULL OR rpe BETWEEN 1 AND 10),
    created_at TIMESTAMPTZ DEFAULT now(),
    updated_at TIMESTAMPTZ DEFAULT now()
);

CREATE INDEX IF NOT EXISTS idx_workout_sets_session ON workout_sets(session_id);

CREATE TABLE IF NOT EXISTS sleep_entries (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    sleep_date DATE NOT NULL,
    hours_slept NUMERIC(4,2),
    sleep_quality INTEGER CHECK (sleep_quality BETWEEN 0 AND 10),
    soreness_level INTEGER CHECK (soreness_level BETWEEN 0 AND 10),
    energy_level INTEGER CHECK (energy_level BETWEEN 0 AND 10),
    created_at TIMESTAMPTZ DEFAULT now(),
    updated_at TIMESTAMPTZ DEFAULT now()
);

CREATE INDEX IF NOT EXISTS idx_sleep_entries_user_date
    ON sleep_entries(user_id, sleep_date DESC)
"""

# Columns the handlers depend on, checked by the schema audit
REQUIRED_COLUMNS = {
    "users": ["id", "name", "fitness_goal", "current_streak", "longest_streak"],
    "exercises": ["id", "name"],
    "workout_sessions": ["id", "user_id", "start_time", "updated_at"],
    "workout_sets": ["id", "user_id", "session_id", "exercise_id", "weight", "reps", "updated_at"],
    "sleep_entries": [
        "id", "user_id", "sleep_date", "hours_slept",
        "sleep_quality", "soreness_level", "energy_level", "updated_at",
    ],
}


def schema_statements():
    for statement in FITNESS_SCHEMA_SQL.split(";"):
        stmt = statement.strip()
        if stmt:
            yield stmt


def upgrade_database(conn_str=None):
    """Create any missing fitness tables and indexes."""
    conn_str = conn_str or get_conn_str()

    try:
        conn = psycopg2.connect(conn_str)
        conn.autocommit = True
        try:
            with conn.cursor() as cur:
                for stmt in schema_statements():
                    cur.execute(stmt)
        finally:
            conn.close()

        logger.info("Database schema upgraded successfully!")
        logger.info("   Tables: %s", ", ".join(REQUIRED_COLUMNS))

    except Exception as e:
        logger.error(f"Schema upgrade failed: {e}")
        raise


if __name__ == "__main__":
    upgrade_database()
