"""3GX Core - Shared container layout and plugin settings."""
from .protocol import Header, Section, pack_version, unpack_version
from .settings import Settings, SettingsError, load_settings, settings_from_mapping

__all__ = [
    "Header",
    "Section",
    "pack_version",
    "unpack_version",
    "Settings",
    "SettingsError",
    "load_settings",
    "settings_from_mapping",
]
