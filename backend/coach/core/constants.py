"""Shared application constants.

Centralizes the table name and the PostgREST / Postgres condition codes the
goal repository classifies, so we can document and adjust them in one place.
"""

# Table holding one daily goal row per user
USER_GOALS_TABLE = "user_goals"

# Goal given to a user that has never saved one
DEFAULT_GOAL_MINUTES = 5

# PostgREST: single-object request matched zero rows
NO_ROWS_CODE = "PGRST116"

# Postgres insufficient_privilege (row level security rejected the statement)
PERMISSION_DENIED_CODE = "42501"

# PostgREST: JWT missing/invalid/expired
JWT_ERROR_CODES = ("PGRST301", "PGRST302", "PGRST303")

# Postgres unique_violation
UNIQUE_VIOLATION_CODE = "23505"
