# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit tokens. Credentials and preferences are written by the app itself under
TASKDESK_DATA_DIR, which is local and gitignored.

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "TASKDESK_APP_NAME": "App display name (default: taskdesk).",
    "TASKDESK_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Remote API
    "TASKDESK_API_BASE_URL": "Identity + todos REST API (default: https://dummyjson.com).",
    "TASKDESK_HTTP_CONNECT_TIMEOUT_SECONDS": "HTTP connect timeout (default: 5).",
    "TASKDESK_HTTP_READ_TIMEOUT_SECONDS": "HTTP read timeout (default: 15).",
    "TASKDESK_SESSION_EXPIRES_MINS": "Remote token lifetime for a normal login (default: 60).",
    "TASKDESK_PERSISTENT_SESSION_EXPIRES_MINS": (
        "Remote token lifetime when 'stay signed in' is chosen (default: 43200, 30 days)."
    ),
    # Inactivity policy
    "TASKDESK_INACTIVITY_TIMEOUT": (
        "Inactivity timeout in minutes used until the user picks one with /timeout (1-60, default: 10)."
    ),
    "TASKDESK_WARNING_SECONDS": "Countdown shown before a forced logout (default: 60).",
    "TASKDESK_ACTIVITY_COALESCE_SECONDS": (
        "Collapse bursts of activity into one timer reset per window (default: 0, every signal resets)."
    ),
    "TASKDESK_CLEAR_POLICY_ON_LOGOUT": (
        "Also forget the chosen inactivity timeout on logout (true/false, default: false). "
        "The timeout is a user preference (kept across logins by default), yet logout is also "
        "meant to invalidate every persisted value; true matches the browser client, which "
        "removes inactivityTimeout on logout."
    ),
    # Paths (gitignored)
    "TASKDESK_DATA_DIR": "Local data directory (default: .local/taskdesk).",
    "TASKDESK_CREDENTIALS_PATH": "Token + cached profile JSON (default: <data_dir>/credentials.json).",
    "TASKDESK_PREFERENCES_PATH": "Timeout preferences JSON (default: <data_dir>/preferences.json).",
}
