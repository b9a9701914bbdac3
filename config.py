"""
Configuration for the torque display process, the helper and each widget
"""

import json
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from errors import ConfigurationError
from logger_config import get_logger

logger = get_logger('config')

DEFAULT_ALLOWED_EXTENSIONS = (
    '.apng', '.png', '.avif', '.gif', '.jpg', '.jpeg', '.jfif',
    '.pjpeg', '.pjp', '.svg', '.webp',
)

DEFAULT_REFRESH_INTERVAL_MS = 60 * 1000
DEFAULT_CLIENT_ID = 'torque_1'

# camelCase wire key -> WidgetConfig attribute
_WIRE_KEYS = {
    'refreshIntervalMs': 'refresh_interval_ms',
    'dataDirPaths': 'data_dir_paths',
    'allowedExtensions': 'allowed_extensions',
    'showHeader': 'show_header',
    'randomizeImages': 'randomize_images',
    'randomizeAnimations': 'randomize_animations',
}


@dataclass
class WidgetConfig:
    """Options recognized by a widget and forwarded to the helper."""

    refresh_interval_ms: int = DEFAULT_REFRESH_INTERVAL_MS
    data_dir_paths: list = field(default_factory=list)
    allowed_extensions: list = field(default_factory=lambda: list(DEFAULT_ALLOWED_EXTENSIONS))
    show_header: bool = False
    randomize_images: bool = True
    randomize_animations: bool = True

    @classmethod
    def from_dict(cls, data):
        """Build a config from its camelCase form, ignoring unknown keys."""
        config = cls()
        if not data:
            return config
        if isinstance(data, WidgetConfig):
            return data
        for key, value in data.items():
            attr = _WIRE_KEYS.get(key)
            if attr is None:
                logger.warning(f"Ignoring unknown widget option {key}={value!r}")
                continue
            if attr in ('data_dir_paths', 'allowed_extensions'):
                value = list(value or [])
            setattr(config, attr, value)
        return config

    def to_dict(self):
        return {key: getattr(self, attr) for key, attr in _WIRE_KEYS.items()}

    @property
    def refresh_interval(self):
        """Refresh interval in seconds."""
        return self.refresh_interval_ms / 1000.0


@dataclass
class Settings:
    """Process level settings read from the environment."""

    config_file: str = './config.json'
    log_dir: str = 'logs'
    log_level: str = 'INFO'
    host: str = '127.0.0.1'
    port: int = 5001


def load_settings():
    """Read settings from the environment, honouring a local .env file."""
    load_dotenv()
    return Settings(
        config_file=os.getenv('TORQUE_CONFIG_FILE', './config.json'),
        log_dir=os.getenv('TORQUE_LOG_DIR', 'logs'),
        log_level=os.getenv('TORQUE_LOG_LEVEL', 'INFO'),
        host=os.getenv('TORQUE_HOST', '127.0.0.1'),
        port=int(os.getenv('TORQUE_PORT', '5001')),
    )


def load_widget_configs(config_file):
    """
    Load the widget instances declared in the JSON config file

    Returns:
        List of (client_id, WidgetConfig) pairs. A missing file yields a
        single default widget.
    """
    if not os.path.exists(config_file):
        logger.info(f"Config file not found at {config_file}, using a single default widget")
        return [(DEFAULT_CLIENT_ID, WidgetConfig())]

    try:
        with open(config_file, 'r') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Failed to load config {config_file}: {e}") from e

    widgets = data.get('widgets') if isinstance(data, dict) else None
    if not isinstance(widgets, list):
        raise ConfigurationError(f"{config_file} must contain a 'widgets' list")

    result = []
    seen = set()
    for index, entry in enumerate(widgets):
        if not isinstance(entry, dict):
            raise ConfigurationError(f"Widget entry {index} in {config_file} must be an object")
        options = entry.get('config', {})
        if not isinstance(options, dict):
            raise ConfigurationError(f"Widget entry {index} in {config_file} has a non-object 'config'")
        client_id = entry.get('id') or f'torque_{index + 1}'
        if client_id in seen:
            raise ConfigurationError(f"Duplicate widget id {client_id} in {config_file}")
        seen.add(client_id)
        result.append((client_id, WidgetConfig.from_dict(options)))

    logger.info(f"Loaded {len(result)} widget(s) from {config_file}")
    return result
