"""
Configuration parser for Daybook.

Handles TOML file parsing. Every setting is optional; a missing default
configuration file means "all defaults".
"""

import tomllib
import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional

from .models import DEFAULT_COLORS
from .storage import get_default_storage_dir


@dataclass
class LayoutConfig:
    """Configuration for calendar layout arithmetic."""
    hour_height: int = 60        # Height of an hour slot in day/week view in pixels
    min_event_minutes: int = 30  # Shortest rendered event duration
    upcoming_days: int = 7       # Window of the upcoming events/tasks lists


@dataclass
class Config:
    """Main configuration container for Daybook."""

    storage_dir: Path
    timezone: Optional[str] = None  # None: use the system timezone
    layout: LayoutConfig = field(default_factory=LayoutConfig)

    @classmethod
    def get_default_config_path(cls) -> Path:
        """Get the default configuration file path."""
        xdg_config = os.environ.get('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))
        return Path(xdg_config) / 'daybook' / 'daybook.toml'

    @classmethod
    def get_default_storage_path(cls) -> Path:
        """Get the default storage directory."""
        return get_default_storage_dir()

    @classmethod
    def defaults(cls) -> 'Config':
        return cls(storage_dir=cls.get_default_storage_path())

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> 'Config':
        """
        Load configuration from TOML file.

        An explicitly given path must exist; the default path may be absent.
        """
        if config_path is None:
            config_path = cls.get_default_config_path()
            if not config_path.exists():
                return cls.defaults()
        elif not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'rb') as f:
            data = tomllib.load(f)

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> 'Config':
        # Parse General section
        general = data.get('General', {})
        storage_dir_str = general.get('storage_dir', str(cls.get_default_storage_path()))
        storage_dir = Path(os.path.expanduser(storage_dir_str))
        timezone = general.get('timezone') or None

        # Parse Layout section
        layout_data = data.get('Layout', {})
        layout = LayoutConfig(
            hour_height=layout_data.get('hour_height', LayoutConfig.hour_height),
            min_event_minutes=layout_data.get('min_event_minutes', LayoutConfig.min_event_minutes),
            upcoming_days=layout_data.get('upcoming_days', LayoutConfig.upcoming_days),
        )

        return cls(
            storage_dir=storage_dir,
            timezone=timezone,
            layout=layout,
        )


def get_next_color(used_colors: list[str]) -> str:
    """Get the next available color from the palette."""
    for color in DEFAULT_COLORS:
        if color.lower() not in [c.lower() for c in used_colors]:
            return color
    # If all colors are used, cycle back
    return DEFAULT_COLORS[len(used_colors) % len(DEFAULT_COLORS)]
