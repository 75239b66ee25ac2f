"""Configuration and directory management for JamSession."""

from pathlib import Path

JAMSESSION_DIR = Path.home() / ".jamsession"
DB_PATH = JAMSESSION_DIR / "state.db"
LIBRARY_PATH = JAMSESSION_DIR / "library.json"

# Persisted collections, one key each
TEMPLATES_KEY = "templates"
ARCHIVE_KEY = "archive"
CURRENT_SESSION_KEY = "current-session"
STARRED_KEY = "starred-items"
RUN_PROGRESS_KEY = "run-progress"

# Clock driver period in seconds (~1 Hz)
TICK_INTERVAL = 1.0

DEFAULT_ENTRY_MINUTES = 10
DEFAULT_BREAK_MINUTES = 5


def ensure_dirs() -> None:
    """Ensure the JamSession directory structure exists."""
    JAMSESSION_DIR.mkdir(parents=True, exist_ok=True)
