"""User config file loading.

The config file is YAML and may hold default credentials:

    username: jane@example.com
    password: <api token>
    base_url: https://example.atlassian.net/wiki
"""

import os
from typing import Dict

import yaml

from .errors import ConfigFileError

CONFIG_KEYS = ('username', 'password', 'base_url')


class ConfigLoader:
    """Loads the optional user config file."""

    DEFAULT_CONFIG_PATH = os.path.join('~', '.config', 'mdpublish', 'config.yaml')

    @classmethod
    def load(cls, config_path: str = DEFAULT_CONFIG_PATH) -> Dict[str, str]:
        """Load credentials from a YAML config file.

        Args:
            config_path: Path to the config file; "~" is expanded

        Returns:
            Dict with any of username, password and base_url; empty if
            the file does not exist

        Raises:
            ConfigFileError: If the file cannot be read or is not a YAML mapping
        """
        path = os.path.expanduser(config_path)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise ConfigFileError(path, e.strerror or str(e)) from e

        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigFileError(path, f"Invalid YAML syntax: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigFileError(path, "config must be a YAML mapping")

        return {
            key: str(data[key])
            for key in CONFIG_KEYS
            if data.get(key) is not None
        }
