"""
Shared constants used across multiple modules.
Single source of truth for table names and CORS headers.
"""

USERS_TABLE = "users"
EXERCISES_TABLE = "exercises"
WORKOUT_SESSIONS_TABLE = "workout_sessions"
WORKOUT_SETS_TABLE = "workout_sets"
SLEEP_ENTRIES_TABLE = "sleep_entries"

# Tables a client may push offline changes into (override with SYNC_TABLES)
DEFAULT_SYNC_TABLES = (
    WORKOUT_SESSIONS_TABLE,
    WORKOUT_SETS_TABLE,
    SLEEP_ENTRIES_TABLE,
)

RECENT_LIMIT = 7

CORS_ALLOW_HEADERS = "authorization, x-client-info, apikey, content-type"
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": CORS_ALLOW_HEADERS,
}
