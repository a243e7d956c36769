# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Copy the names below into .env (gitignored) to override defaults.

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "IVY_APP_NAME": "App display name (default: ivy).",
    "IVY_LOG_LEVEL": "Console logging level (default: INFO). The file log is always DEBUG.",
    "IVY_TIMEZONE": "IANA timezone that decides where a day starts (default: UTC).",
    # Connectors
    "IVY_CONSOLE_ENABLED": "Run the console REPL (true) or a single daily check that rolls over, refreshes insights and exits (false).",
    # Paths (gitignored)
    "IVY_DATA_DIR": "Local data directory, also holds ivy.log (default: .local/ivy).",
    "IVY_DB_PATH": "DayStore SQLite path (default: <data_dir>/days.sqlite3).",
    # Tuning
    "IVY_REVIEW_AFTER_DAYS": "Backlog items untouched this many days need review (default: 14).",
    "IVY_DEFAULT_TASK_DURATION": "Duration estimate in seconds when nothing was learned yet (default: 3600).",
    "IVY_RECENT_INSIGHTS_LIMIT": "How many unacknowledged insights /insights shows (default: 3).",
}
