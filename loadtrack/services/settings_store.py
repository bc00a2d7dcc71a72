"""Library settings storage."""
import json
import logging
import sys
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """Runtime settings for logging and history recording."""

    log_level: str = "INFO"
    log_file: Optional[str] = None
    history_limit: Optional[int] = 100

    def __post_init__(self):
        """Validate configuration."""
        if self.history_limit is not None and self.history_limit <= 0:
            raise ValueError(f"Invalid history_limit: {self.history_limit}")


def _default_store_path() -> Path:
    """Return platform-appropriate config path."""
    if sys.platform == "win32":
        base = Path.home() / "AppData" / "Local" / "LoadTrack"
    else:
        base = Path.home() / ".config" / "loadtrack"
    return base / "settings.json"


class SettingsStore:
    """Load / save Settings from a JSON file."""

    def __init__(self, path: Optional[Path] = None):
        self.path = path or _default_store_path()

    def load(self) -> Settings:
        if not self.path.exists():
            return Settings()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            known = {f.name for f in fields(Settings)}
            settings = Settings(**{k: v for k, v in data.items() if k in known})
            logger.info(f"Loaded settings from {self.path}")
            return settings
        except (OSError, ValueError, TypeError, AttributeError) as exc:
            logger.error(f"Failed to load settings: {exc}")
            return Settings()

    def save(self, settings: Settings) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps(asdict(settings), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        logger.info(f"Saved settings to {self.path}")
