"""Settings persistence — a generic JSON blob store."""

from texrender.settings.store import SettingsStore

__all__ = ["SettingsStore"]
