# config_local.example.py

"""
Example local overrides.

Usage:
  1) Copy this file to `config_local.py`
  2) Adjust values for your machine
  3) Never commit `config_local.py` (it is gitignored)

Prefer `.env`. This file should contain only safe overrides.
"""

# Example: run as a reminder daemon without the REPL
# CONSOLE_ENABLED = False

# Example: keep the REPL but do not print delivered reminders
# NOTIFICATIONS_ENABLED = False

# Example: override the local data directory (storage.sqlite3 is placed inside it)
# DATA_DIR = "~/.rememo"
