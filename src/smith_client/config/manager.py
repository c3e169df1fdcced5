from copy import deepcopy
from pathlib import Path
import toml


DEFAULTS = {
    'paths': {
        'print_data_dir': '/var/smith/print_data',
        'print_settings_file': '/var/smith/print_settings.json',
    },
    'printer': {
        'command_pipe': '/tmp/CommandPipe',
        'status_file': '/var/smith/printer_status.json',
    },
    'download': {
        'timeout': 600,
        'chunk_size': 65536,
    },
    'logging': {
        'level': 'INFO',
        'file': '',
    },
}

SEARCH_PATHS = (
    Path('/etc/smith_client/config.toml'),
    Path.home() / '.smith_client' / 'config.toml',
    Path('config.toml'),
)


def find_config_file():
    """First existing config file in SEARCH_PATHS, or None."""
    for path in SEARCH_PATHS:
        if path.exists():
            return path
    return None


def _merge(base: dict, overrides: dict) -> dict:
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


class ConfigManager:
    """Manages configuration loading and access."""

    def __init__(self, config_file: str = None):
        """
        Initialize ConfigManager.

        Args:
            config_file: Path to config file. If None, uses default locations.
        """
        if config_file is None:
            config_file = find_config_file()

        self.config_file = Path(config_file) if config_file else None
        self.config = deepcopy(DEFAULTS)
        if self.config_file:
            self.load_config()

    def exists(self):
        """Check if config file exists."""
        return bool(self.config_file and self.config_file.exists())

    def load_config(self):
        """Load configuration from file, on top of the defaults."""
        if not self.config_file or not self.config_file.exists():
            return
        _merge(self.config, toml.load(self.config_file))

    def save_config(self):
        """Save configuration to file."""
        if not self.config_file:
            raise ValueError("No config file specified")

        self.config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, 'w') as f:
            toml.dump(self.config, f)

    def get(self, key: str, default=None):
        """
        Get configuration value using dot notation.

        Args:
            key: Configuration key (e.g., 'paths.print_data_dir')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        value = self.config
        for k in key.split('.'):
            if not isinstance(value, dict):
                return default
            value = value.get(k)
            if value is None:
                return default
        return value

    def set(self, key: str, value):
        """
        Set configuration value using dot notation and save.

        Args:
            key: Configuration key (e.g., 'printer.command_pipe')
            value: Value to set
        """
        keys = key.split('.')
        config = self.config

        for k in keys[:-1]:
            config = config.setdefault(k, {})

        config[keys[-1]] = value
        self.save_config()
