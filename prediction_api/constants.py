"""
Table names and PostgREST error codes shared across services.
"""

# --- Tables ---
LEAGUES_TABLE = "leagues"
TEAMS_TABLE = "teams"
MATCHES_TABLE = "matches"
MATCH_OUTCOMES_TABLE = "match_outcomes"
MATCH_VOTE_COUNTS_TABLE = "match_vote_counts"
USER_PREDICTIONS_TABLE = "user_predictions"
ADMIN_MATCH_VOTES_TABLE = "admin_match_votes"
SCORE_PREDICTIONS_TABLE = "score_predictions"
ADMIN_SCORE_PREDICTIONS_TABLE = "admin_score_predictions"
USER_SCORE_VOTES_TABLE = "user_score_votes"
COMMENTS_TABLE = "comments"
COMMENT_REACTIONS_TABLE = "comment_reactions"
USERS_TABLE = "users"

# --- RPC functions (optional, installed server-side) ---
RPC_COMMENT_REACTION_COUNTS = "get_comment_reaction_counts"
RPC_COMMENT_REPLY_COUNTS = "get_comment_reply_counts"

# --- PostgREST / Postgres error codes ---
PGRST_NO_ROWS = "PGRST116"
PGRST_FUNCTION_NOT_FOUND = "PGRST202"
PGRST_COLUMN_NOT_FOUND = "PGRST204"
PG_UNDEFINED_FUNCTION = "42883"
PG_UNDEFINED_COLUMN = "42703"
PG_UNIQUE_VIOLATION = "23505"

MISSING_CAPABILITY_CODES = frozenset(
    {
        PGRST_FUNCTION_NOT_FOUND,
        PGRST_COLUMN_NOT_FOUND,
        PG_UNDEFINED_FUNCTION,
        PG_UNDEFINED_COLUMN,
    }
)

# --- Domain values ---
MATCH_STATUSES = ("scheduled", "live", "finished", "postponed")
MATCH_TYPES = ("Normal", "Final", "Semi-Final", "Quarter-Final")
TEAM_TYPES = ("club", "country")
USER_TYPES = ("user", "admin", "seed")
AUTH_PROVIDERS = ("email", "google", "facebook", "twitter")
REACTION_TYPES = ("like", "dislike")
# Ledgers a forced recompute can rebuild the shared cache from.
VOTE_COUNT_SOURCES = ("outcomes", "scores")

MATCH_DEFAULTS = {
    "status": "scheduled",
    "allow_draw": True,
    "big_match": False,
    "derby": False,
    "match_type": "Normal",
    "published": False,
    "match_timezone": "UTC",
}
