import os
import yaml

APP_VERSION = "1.0.0"


class YamlConfig:
    """Load and save application settings from a YAML file."""

    def __init__(self, path: str | None = None) -> None:
        self.path = path or os.environ.get("TRACKER_SETTINGS", "settings.yaml")

    def load(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return data

    def save(self, data: dict) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(dict(data), f)


def default_db_path() -> str:
    return os.environ.get("TRACKER_DB", "workout.db")
