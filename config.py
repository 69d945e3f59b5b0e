"""
VolleyQueue Configuration

Centralized settings, paths, and constants for the application.
"""

from pathlib import Path
from dataclasses import dataclass
import appdirs


# Application info
APP_NAME = "VolleyQueue"
APP_AUTHOR = "VolleyQueue"
APP_VERSION = "1.0.0"


@dataclass(frozen=True)
class Paths:
    """Application paths."""
    # Data directory (stores database)
    data_dir: Path = Path(appdirs.user_data_dir(APP_NAME, APP_AUTHOR))

    # Config directory (stores user preferences)
    config_dir: Path = Path(appdirs.user_config_dir(APP_NAME, APP_AUTHOR))

    # Log directory
    log_dir: Path = Path(appdirs.user_log_dir(APP_NAME, APP_AUTHOR))

    @property
    def database(self) -> Path:
        return self.data_dir / "volleyqueue.db"

    @property
    def database_url(self) -> str:
        return f"sqlite:///{self.database}"

    def ensure_directories(self) -> None:
        """Create all required directories."""
        for dir_path in [self.data_dir, self.config_dir, self.log_dir]:
            dir_path.mkdir(parents=True, exist_ok=True)


@dataclass(frozen=True)
class RotationSettings:
    """Queue and rotation settings."""
    # Team labels written into match records
    team_a_name: str = "Time A"
    team_b_name: str = "Time B"
    winner_team_name: str = "Time A (Vencedor)"
    challenger_team_name: str = "Time B (Desafiante)"

    # Game mode used when a command does not name one
    default_game_mode: str = "6v6"

    # Tie-break precedence for team formation (first = highest)
    default_priority_order: tuple[str, ...] = ("priority", "setter", "gender")


# Singleton instances
PATHS = Paths()
ROTATION_SETTINGS = RotationSettings()


def init_config() -> None:
    """Initialize configuration and create required directories."""
    PATHS.ensure_directories()
