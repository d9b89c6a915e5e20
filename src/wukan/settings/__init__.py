from .store import SettingsStore, apply_env_overrides, default_settings_path

__all__ = ["SettingsStore", "apply_env_overrides", "default_settings_path"]
