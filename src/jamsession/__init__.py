"""JamSession - plan, run, and reflect on timed facilitation sessions."""

__version__ = "0.1.0"
