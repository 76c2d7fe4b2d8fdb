# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Use:
- .env (local, gitignored)
- config_local.py (local safe overrides, gitignored)

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "REMEMO_APP_NAME": "App display name (default: rememo).",
    "REMEMO_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Connectors
    "REMEMO_CONSOLE_ENABLED": "Run the console REPL (true/false, default true).",
    "REMEMO_NOTIFICATIONS_ENABLED": "Deliver due reminders to the console (true/false, default true).",
    # Local notification platform
    "REMEMO_NOTIFICATION_PERMISSION": "Initial permission: granted | denied | undetermined (default).",
    "REMEMO_AUTO_GRANT_PERMISSION": "Grant when permission is requested while undetermined (default true).",
    "REMEMO_NOTIFICATION_CHANNEL_ID": "Notification channel id (default: default).",
    "REMEMO_DISPATCH_INTERVAL_SECONDS": "How often due reminders are checked (default 15, min 0.5).",
    # Paths (gitignored)
    "REMEMO_DATA_DIR": "Local data directory (default: .local/rememo). Also holds rememo.log.",
    "REMEMO_KV_DB_PATH": "Key-value SQLite path (default: <data_dir>/storage.sqlite3).",
}
